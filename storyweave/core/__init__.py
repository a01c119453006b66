"""
Core Consistency Layer

RESPONSIBILITY: Name matching, co-occurrence, gap detection, auto-connections
ALLOWED INPUTS: NovelState snapshot, freshly extracted records
OUTPUTS: GapAnalysis, AutoConnectionResult (immutable)

WHAT THIS LAYER MUST NOT DO:
============================
- Mutate the snapshot it is given
- Apply or persist proposed connections
- Score extraction payloads (trust layer's job)
- Judge chapter prose (transitions layer's job)
"""

from .names import (
    COMMON_WORDS, PROPER_NOUN_INDICATORS, NameClassification, NameMatchStrategy,
    NameType, classify_name, get_name_match_strategy, get_name_variations,
    text_contains_character_name,
)
from .topology import CoAppearance, CooccurrenceGraph, CooccurrenceMetrics
from .gaps import analyze_gaps, generate_pre_generation_suggestions, summarize_gaps
from .connections import (
    analyze_auto_connections, connect_antagonists_to_arc, connect_characters_to_arcs,
    connect_characters_to_scenes, connect_items_to_arc, connect_techniques_to_arc,
    detect_character_relationships, name_mention_confidence,
)

__all__ = [
    'COMMON_WORDS', 'PROPER_NOUN_INDICATORS', 'NameClassification',
    'NameMatchStrategy', 'NameType', 'classify_name', 'get_name_match_strategy',
    'get_name_variations', 'text_contains_character_name',
    'CoAppearance', 'CooccurrenceGraph', 'CooccurrenceMetrics',
    'analyze_gaps', 'generate_pre_generation_suggestions', 'summarize_gaps',
    'analyze_auto_connections', 'connect_antagonists_to_arc',
    'connect_characters_to_arcs', 'connect_characters_to_scenes',
    'connect_items_to_arc', 'connect_techniques_to_arc',
    'detect_character_relationships', 'name_mention_confidence',
]
