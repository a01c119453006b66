"""
Contracts Module

Immutable records shared by every layer: the NovelState snapshot the
analyzers read, the extraction payload they score, and the value
objects they return.

DESIGN PRINCIPLES:
==================
1. All contract types are immutable (frozen dataclasses)
2. Collections are tuples, never lists
3. Derived objects are owned by the caller and never cached
"""

from .story import (
    Antagonist, Arc, Chapter, Character, Item, ItemPossession,
    NovelState, Relationship, Scene, Technique, TechniqueMastery, WorldEntry,
    normalize_name,
)
from .findings import (
    AutoConnectionResult, ClicheSeverity, ClicheType, Connection, ConnectionType,
    Gap, GapAnalysis, GapSeverity, GapSummary, GapType, IssueLocation,
    IssueSeverity, IssueType, OpeningAnalysis, TransitionIssue,
    TransitionValidationResult,
)
from .extraction import (
    AntagonistPreview, AntagonistUpdate, CharacterPreview, CharacterUpsert,
    ConnectionPreview, ExistingRecords, Extraction, ExtractionPreview,
    ItemPreview, ItemUpdate, PreviewAction, SceneExtraction, ScenePreview,
    TechniquePreview, TechniqueUpdate, TrustFactors, TrustScore,
    WorldEntryPreview, WorldEntryUpsert,
)
from .serialization import to_json, to_plain

__all__ = [
    'Antagonist', 'Arc', 'Chapter', 'Character', 'Item',
    'ItemPossession', 'NovelState', 'Relationship', 'Scene', 'Technique',
    'TechniqueMastery', 'WorldEntry', 'normalize_name',
    'AutoConnectionResult', 'ClicheSeverity', 'ClicheType', 'Connection',
    'ConnectionType', 'Gap', 'GapAnalysis', 'GapSeverity', 'GapSummary',
    'GapType', 'IssueLocation', 'IssueSeverity', 'IssueType', 'OpeningAnalysis',
    'TransitionIssue', 'TransitionValidationResult',
    'AntagonistPreview', 'AntagonistUpdate', 'CharacterPreview',
    'CharacterUpsert', 'ConnectionPreview', 'ExistingRecords', 'Extraction',
    'ExtractionPreview', 'ItemPreview', 'ItemUpdate', 'PreviewAction',
    'SceneExtraction', 'ScenePreview', 'TechniquePreview', 'TechniqueUpdate',
    'TrustFactors', 'TrustScore', 'WorldEntryPreview', 'WorldEntryUpsert',
    'to_json', 'to_plain',
]
