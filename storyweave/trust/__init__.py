"""
Trust Layer

RESPONSIBILITY: Preview extraction payloads and score how far they can be trusted
ALLOWED INPUTS: Extraction payload, existing records, optional snapshot + new chapter
OUTPUTS: ExtractionPreview, TrustScore (immutable)

WHAT THIS LAYER MUST NOT DO:
============================
- Apply or persist any preview entry
- Use fuzzy name matching for identity (exact normalized names only)
"""

from .preview import (
    antagonist_confidence, character_confidence, generate_extraction_preview,
    item_confidence, scene_confidence, technique_confidence, world_entry_confidence,
)
from .scoring import calculate_trust_score, explain_trust_score

__all__ = [
    'antagonist_confidence', 'character_confidence', 'generate_extraction_preview',
    'item_confidence', 'scene_confidence', 'technique_confidence',
    'world_entry_confidence', 'calculate_trust_score', 'explain_trust_score',
]
