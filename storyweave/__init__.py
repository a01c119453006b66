"""
Storyweave - Narrative Consistency & Auto-Linking Engine

This package keeps an in-memory story state consistent while chapters
are generated, appended and removed. Every component is a pure function
over a caller-owned NovelState snapshot; nothing here performs I/O,
caches results between calls, or mutates its inputs.

LAYER STRUCTURE:
================

1. CONTRACTS (contracts/)
   - Responsibility: Immutable snapshot records and derived value objects
   - Outputs: NovelState, Connection, Gap, ExtractionPreview, TrustScore, ...
   - MUST NOT: Contain analysis logic

2. CORE (core/)
   - Responsibility: Name matching, co-occurrence, gaps, auto-connections
   - Allowed inputs: NovelState snapshot, freshly extracted records
   - Outputs: GapAnalysis, AutoConnectionResult
   - MUST NOT: Score extraction payloads, judge chapter prose

3. TRUST (trust/)
   - Responsibility: Extraction previews and aggregate trust scoring
   - Allowed inputs: Extraction payload, existing records, core outputs
   - Outputs: ExtractionPreview, TrustScore
   - MUST NOT: Apply or persist anything

4. TRANSITIONS (transitions/)
   - Responsibility: Opening-sentence and chapter-to-chapter continuity checks
   - Allowed inputs: Two Chapter records
   - Outputs: TransitionValidationResult
   - MUST NOT: Block generation (guarded boundary never raises)

5. ENGINE (engine.py)
   - Responsibility: Compose the layers into a single chapter review

CONSTRAINTS ENFORCED:
=====================
- Immutability-first: All records are frozen dataclasses
- Deterministic: Identical snapshots always produce identical outputs
- Total: Malformed fields lower confidence or are skipped, never raise
"""

from .config import EngineConfig
from .engine import ChapterReview, ConsistencyEngine
from .errors import SnapshotError, StoryweaveError
from .logging_config import setup_logging

__version__ = "0.4.0"

__all__ = [
    'ChapterReview',
    'ConsistencyEngine',
    'EngineConfig',
    'SnapshotError',
    'StoryweaveError',
    'setup_logging',
]
