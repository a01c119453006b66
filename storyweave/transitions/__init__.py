"""
Transitions Layer

RESPONSIBILITY: Opening-sentence quality and chapter-to-chapter continuity
ALLOWED INPUTS: Chapter records (previous and new)
OUTPUTS: OpeningAnalysis, TransitionValidationResult (immutable)

WHAT THIS LAYER MUST NOT DO:
============================
- Read the rest of the snapshot (only the two chapters are compared)
- Block chapter acceptance on an internal error
"""

from .opening import analyze_opening_sentence, generate_opening_suggestions, has_good_opening
from .locations import are_similar_locations, extract_location_indicators, is_metaphorical_location
from .validator import (
    extract_chapter_ending, extract_character_names, extract_key_phrases,
    has_good_transition, validate_chapter_transition,
)

__all__ = [
    'analyze_opening_sentence', 'generate_opening_suggestions', 'has_good_opening',
    'are_similar_locations', 'extract_location_indicators', 'is_metaphorical_location',
    'extract_chapter_ending', 'extract_character_names', 'extract_key_phrases',
    'has_good_transition', 'validate_chapter_transition',
]
