"""
Chapter Transition Validator
============================

Judges whether a new chapter picks up where the previous one ended.

Checks, in order:
1. Opening cliché (opening analyzer)
2. Time skip in the first ~500 characters (first match only)
3. Location jump between the previous ending and the new opening,
   suppressed by a time skip or an explicit movement verb
4. Character continuity (warning only, never scored)
5. Missing reference: no shared 3-word phrase and no shared name
6. Disconnected opening: no transition word, no shared name, no
   shared phrase

Score starts at 100 and loses 20 / 10 / 3 per high / medium / low
issue, floored at 0. A transition is valid at score >= 70 with no
high-severity issue.

BOUNDARY ENFORCEMENT:
=====================
- has_good_transition never raises; an internal error means "pass"
"""

from __future__ import annotations
from typing import List, Optional
import logging
import re

from ..config import TransitionConfig
from ..contracts.findings import (
    ClicheSeverity, IssueSeverity, IssueType, TransitionIssue,
    TransitionValidationResult,
)
from ..contracts.story import Chapter
from .locations import (
    extract_location_indicators, has_location_transition, locations_overlap,
    mentions_generic,
)
from .opening import analyze_opening_sentence, has_good_opening

logger = logging.getLogger(__name__)

TIME_SKIP_PATTERNS = (
    re.compile(r'\b(the\s+)?(next|following)\s+(morning|day|night|evening|afternoon)', re.IGNORECASE),
    re.compile(r'\b(hours?|days?|weeks?)\s+later', re.IGNORECASE),
    re.compile(r'\b(moments?|minutes?)\s+later', re.IGNORECASE),
    re.compile(r'\b(as|when)\s+(dawn|dusk|night|morning)\s+(broke|fell|came)', re.IGNORECASE),
    re.compile(r'\b(later\s+that\s+(day|night|morning|evening))', re.IGNORECASE),
)

TRANSITION_WORDS = re.compile(
    r'\b(but|however|meanwhile|then|next|as|when|while|still|yet|finally)\b',
    re.IGNORECASE,
)

# Capitalized sentence starters that are not names
NAME_STOPWORDS = frozenset({
    'the', 'and', 'but', 'for', 'from', 'had', 'has', 'have', 'her', 'hers', 'him',
    'his', 'into', 'its', 'not', 'now', 'she', 'that', 'then', 'there', 'these',
    'they', 'this', 'those', 'was', 'were', 'what', 'when', 'where', 'which',
    'while', 'who', 'why', 'with', 'yet', 'you', 'your', 'our', 'their', 'after',
    'before', 'once', 'still', 'however', 'meanwhile', 'finally', 'even', 'just',
    'only', 'perhaps', 'suddenly', 'again', 'all', 'one', 'each', 'every', 'some',
    'are', 'can', 'could', 'would', 'should', 'will', 'how', 'yes', 'wait',
})

MAX_CANDIDATE_NAMES = 5
KEY_PHRASE_WINDOWS = 10
MIN_PHRASE_WORD_LENGTH = 4

_SENTENCE_SPLIT = re.compile(r'[.!?]+')
_CANDIDATE_NAME = re.compile(r'^[A-Z][a-z]+$')

ISSUE_SUGGESTIONS = {
    IssueType.TIME_SKIP:
        "Continue from the exact moment the previous chapter ended - no time skip",
    IssueType.LOCATION_JUMP:
        "Add transition text showing how character moved locations, or stay in same location",
    IssueType.CHARACTER_STATE_MISMATCH:
        "Keep each character's condition consistent with how the previous chapter left them",
    IssueType.OPENING_CLICHE:
        "Rewrite opening to avoid clichés - start with character action, dialogue, or thought",
    IssueType.DISCONNECTED:
        "Open on the immediate aftermath of the previous chapter's final moment",
    IssueType.MISSING_REFERENCE:
        "Reference the previous chapter's ending directly in the opening",
}


# =============================================================================
# EXCERPTS
# =============================================================================

def extract_chapter_ending(chapter: Chapter, word_count: int = 300) -> str:
    """Last ``word_count`` words of the chapter (all of it when shorter)."""
    content = (chapter.content or "").strip()
    if not content:
        return ""
    words = content.split()
    if len(words) <= word_count:
        return content
    return ' '.join(words[-word_count:])


def extract_character_names(text: str) -> List[str]:
    """Up to five distinct capitalized words that could be names."""
    names = []
    for word in text.split():
        clean = re.sub(r'[^\w]', '', word)
        if len(clean) <= 2 or not _CANDIDATE_NAME.match(clean):
            continue
        if clean.lower() in NAME_STOPWORDS:
            continue
        names.append(clean)
    return list(dict.fromkeys(names))[:MAX_CANDIDATE_NAMES]


def extract_key_phrases(text: str) -> List[str]:
    """The last ten 3-word windows over words longer than three letters."""
    words = [w for w in text.lower().split() if len(w) >= MIN_PHRASE_WORD_LENGTH]
    phrases = [' '.join(words[i:i + 3]) for i in range(len(words) - 2)]
    return phrases[-KEY_PHRASE_WINDOWS:]


def _names_overlap(previous: List[str], new: List[str]) -> bool:
    return any(
        n.lower() in p.lower() or p.lower() in n.lower()
        for p in previous
        for n in new
    )


def _first_sentence(text: str) -> str:
    parts = _SENTENCE_SPLIT.split(text)
    return parts[0][:100] if parts else ""


# =============================================================================
# VALIDATION
# =============================================================================

def _missing_chapter_result() -> TransitionValidationResult:
    return TransitionValidationResult(
        is_valid=False,
        score=0,
        issues=(TransitionIssue(
            type=IssueType.DISCONNECTED,
            severity=IssueSeverity.HIGH,
            description="Missing previous or new chapter for validation",
        ),),
        suggestions=("Ensure both chapters are provided for validation",),
    )


def _score(issues: List[TransitionIssue], config: TransitionConfig) -> int:
    penalties = {
        IssueSeverity.HIGH: config.high_penalty,
        IssueSeverity.MEDIUM: config.medium_penalty,
        IssueSeverity.LOW: config.low_penalty,
    }
    return max(0, 100 - sum(penalties[issue.severity] for issue in issues))


def validate_chapter_transition(
    previous_chapter: Optional[Chapter],
    new_chapter: Optional[Chapter],
    config: Optional[TransitionConfig] = None
) -> TransitionValidationResult:
    config = config or TransitionConfig()
    if previous_chapter is None or new_chapter is None:
        return _missing_chapter_result()

    issues: List[TransitionIssue] = []
    warnings: List[str] = []
    suggestions: List[str] = []

    previous_ending = extract_chapter_ending(previous_chapter, config.ending_word_count)
    new_opening = (new_chapter.content or "")[:config.opening_char_count]

    # 1. Opening cliché
    opening = analyze_opening_sentence(new_chapter)
    if opening.is_cliche:
        first = opening.opening_sentences[0][:100] if opening.opening_sentences else ""
        issues.append(TransitionIssue(
            type=IssueType.OPENING_CLICHE,
            severity=(
                IssueSeverity.HIGH if opening.severity is ClicheSeverity.HIGH
                else IssueSeverity.MEDIUM
            ),
            description=f'Opening sentence contains cliché: {opening.cliche_type.value} - "{first}"',
            suggested_fix=(
                opening.suggestions[0] if opening.suggestions
                else "Rewrite opening to start with character action, dialogue, or thought"
            ),
        ))
    if not has_good_opening(new_chapter):
        suggestions.append(
            "Consider making opening sentence more character-focused (action, dialogue, or thought)"
        )

    # 2. Time skip
    time_skip = any(p.search(new_opening) for p in TIME_SKIP_PATTERNS)
    if time_skip:
        issues.append(TransitionIssue(
            type=IssueType.TIME_SKIP,
            severity=IssueSeverity.HIGH,
            description=f'Time skip detected in opening: "{_first_sentence(new_opening)}"',
            suggested_fix="Remove time skip and continue from the exact moment the previous chapter ended",
        ))

    # 3. Location jump
    previous_locations = extract_location_indicators(previous_ending)
    new_locations = extract_location_indicators(new_opening)
    if previous_locations and new_locations and not time_skip:
        both_generic = mentions_generic(previous_locations) and mentions_generic(new_locations)
        if (not locations_overlap(previous_locations, new_locations)
                and not has_location_transition(new_opening)
                and not both_generic):
            issues.append(TransitionIssue(
                type=IssueType.LOCATION_JUMP,
                severity=IssueSeverity.HIGH,
                description=(
                    f"Location discontinuity: Previous chapter ended at {previous_locations[0]}, "
                    f"new chapter starts at {new_locations[0]}"
                ),
                suggested_fix=(
                    "Add transition showing how the character moved locations, "
                    "or continue in the same location"
                ),
            ))

    # 4. Character continuity
    previous_names = extract_character_names(previous_ending)
    new_names = extract_character_names(new_opening)
    name_continuity = bool(previous_names) and _names_overlap(previous_names, new_names)
    if previous_names and not name_continuity:
        warnings.append(
            f"Main character(s) from previous chapter ending ({previous_names[0]}) "
            f"not immediately mentioned in new chapter opening"
        )

    # 5. Missing reference
    ending_phrases = extract_key_phrases(previous_ending)
    opening_phrases = extract_key_phrases(new_opening)
    phrase_overlap = any(
        o in e or e in o for e in ending_phrases for o in opening_phrases
    )
    if ending_phrases and not phrase_overlap and not name_continuity:
        issues.append(TransitionIssue(
            type=IssueType.MISSING_REFERENCE,
            severity=IssueSeverity.LOW,
            description=(
                "New chapter opening does not clearly reference or continue "
                "from previous chapter's ending"
            ),
            suggested_fix="Consider adding explicit reference to the previous chapter's ending situation",
        ))

    # 6. Disconnected opening
    if not any(i.type is IssueType.DISCONNECTED for i in issues):
        if (previous_names
                and not TRANSITION_WORDS.search(new_opening)
                and not name_continuity
                and not phrase_overlap):
            issues.append(TransitionIssue(
                type=IssueType.DISCONNECTED,
                severity=IssueSeverity.HIGH,
                description="Opening appears disconnected from previous chapter - no clear continuation",
                suggested_fix=(
                    "Add explicit continuation from previous chapter's ending "
                    "or reference to what just happened"
                ),
            ))

    score = _score(issues, config)

    if not issues and not warnings:
        suggestions.append("Transition quality is good - smooth flow between chapters")
    else:
        present = {issue.type for issue in issues}
        suggestions.extend(
            ISSUE_SUGGESTIONS[issue_type] for issue_type in IssueType if issue_type in present
        )

    is_valid = score >= config.validity_threshold and not any(
        i.severity is IssueSeverity.HIGH for i in issues
    )
    logger.debug(
        "Transition %s -> %s: score %d, %d issues, %d warnings",
        previous_chapter.number, new_chapter.number, score, len(issues), len(warnings),
    )

    return TransitionValidationResult(
        is_valid=is_valid,
        score=score,
        issues=tuple(issues),
        warnings=tuple(warnings),
        suggestions=tuple(suggestions),
    )


def has_good_transition(
    previous_chapter: Optional[Chapter],
    new_chapter: Chapter,
    config: Optional[TransitionConfig] = None
) -> bool:
    """Pass/fail gate for chapter acceptance; never raises."""
    if previous_chapter is None:
        return True
    config = config or TransitionConfig()
    try:
        result = validate_chapter_transition(previous_chapter, new_chapter, config)
        return result.is_valid and result.score >= config.validity_threshold
    except Exception:
        logger.warning("Transition check failed; accepting chapter", exc_info=True)
        return True
