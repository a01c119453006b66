"""
Opening Sentence Analyzer

Flags stock chapter openings (weather, time-of-day, generic setting,
passive observation) in the first three sentences of a chapter. The
first family that matches wins, in that priority order.
"""

from __future__ import annotations
from typing import List, Optional, Pattern, Sequence, Tuple
import re

from ..contracts.findings import ClicheSeverity, ClicheType, OpeningAnalysis
from ..contracts.story import Chapter

OPENING_SENTENCE_COUNT = 3

_SENTENCE_SPLIT = re.compile(r'[.!?]+')


def _compile(*patterns: str) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


WEATHER_PATTERNS = _compile(
    r'\b(the\s+)?(morning|afternoon|evening|dawn|dusk|sunrise|sunset)\s+(sun|light|rays?|beams?)',
    r'\b(dark|storm|rain|cloud|fog|mist)\s+(clouds?|gathered|fell|hung|filled)',
    r'\b(the\s+)?sun\s+(climbed|rose|set|peeked|emerged|shone|beamed)',
    r'\b(moonlight|starlight|sunlight)\s+(bathed|illuminated|cast|fell|streamed)',
    r'\b(shadows?|light)\s+(stretched|cast|fell|danced|gathered)',
    r'\b(rain|snow|wind)\s+(fell|blew|whipped|pounded)',
)

TIME_OF_DAY_PATTERNS = _compile(
    r'\b(as|when)\s+(dawn|dusk|night|morning|afternoon|evening)\s+(broke|fell|arrived|came|approached)',
    r'\b(the\s+)?(next|following)\s+(morning|day|night|evening)',
    r'\b(in|during|at)\s+(the\s+)?(morning|afternoon|evening|night|dawn|dusk)',
    r'\b(hours|moments|days?)\s+later',
    r'\b(time|hours?)\s+passed',
)

SETTING_PATTERNS = _compile(
    r'\b(the\s+)?(training\s+grounds?|forest|mountain|city|village|sect|palace|temple)'
    r'\s+(stretched|loomed|towered|spread|rose)',
    r'\b(the\s+)?(landscape|scenery|view|horizon)\s+(stretched|spread|extended)',
    r'\b(in|across|over)\s+the\s+(distance|horizon|landscape)',
)

PASSIVE_PATTERNS = _compile(
    r'^\s*it\s+was',
    r'^\s*there\s+were',
    r'^\s*there\s+was',
    r'^\s*in\s+the\s+distance',
    r'^\s*all\s+around',
)

# (family, severity, label, patterns) in priority order
CLICHE_FAMILIES = (
    (ClicheType.WEATHER, ClicheSeverity.HIGH, "Weather description opening", WEATHER_PATTERNS),
    (ClicheType.TIME_OF_DAY, ClicheSeverity.HIGH, "Time-of-day cliché", TIME_OF_DAY_PATTERNS),
    (ClicheType.SETTING_DESCRIPTION, ClicheSeverity.MEDIUM,
     "Generic setting description", SETTING_PATTERNS),
    (ClicheType.PASSIVE_OBSERVATION, ClicheSeverity.MEDIUM,
     "Passive observation opening", PASSIVE_PATTERNS),
)

GENERIC_SUGGESTIONS = (
    "Start with character action, dialogue, or thought instead",
    "Reference the previous chapter's ending directly",
    "Begin with the character's immediate response to the previous chapter's ending",
    "Use active voice and character-focused opening",
)

FAMILY_SUGGESTIONS = {
    ClicheType.WEATHER:
        "Avoid weather and time-of-day descriptions - these are AI-generated clichés",
    ClicheType.TIME_OF_DAY:
        "Avoid weather and time-of-day descriptions - these are AI-generated clichés",
    ClicheType.SETTING_DESCRIPTION:
        "Show the setting through character action and perception, not generic description",
    ClicheType.PASSIVE_OBSERVATION:
        "Start with active character involvement rather than passive observation",
}

ACTION_VERBS = (
    'stepped', 'pushed', 'reached', 'turned', 'looked', 'said', 'thought', 'felt',
    'walked', 'moved', 'began', 'started', 'continued',
)

_GOOD_OPENINGS = (
    re.compile(r'^["\']'),
    re.compile(
        r'^(he|she|they|it|we|i|the\s+\w+)\s+(' + '|'.join(ACTION_VERBS) + r')',
        re.IGNORECASE,
    ),
    re.compile(r'^(stepped|walked|reached|pushed|turned|looked|continued|began|started|moved)',
               re.IGNORECASE),
    re.compile(r'[a-z]+\s+(stepped|walked|looked|said|thought|reached|pushed|turned|continued)',
               re.IGNORECASE),
)


def split_sentences(text: str) -> List[str]:
    """Non-empty sentences, stripped, split on runs of . ! ?"""
    return [s.strip() for s in _SENTENCE_SPLIT.split(text) if s.strip()]


def _first_match(patterns: Sequence[Pattern[str]], text: str) -> bool:
    return any(p.search(text) for p in patterns)


def analyze_opening_sentence(chapter: Chapter) -> OpeningAnalysis:
    content = (chapter.content or "").strip()
    if not content:
        return OpeningAnalysis(
            is_cliche=False,
            cliche_type=ClicheType.NONE,
            severity=ClicheSeverity.NONE,
        )

    sentences = split_sentences(content)[:OPENING_SENTENCE_COUNT]
    opening = ' '.join(sentences).lower()

    for cliche_type, severity, label, patterns in CLICHE_FAMILIES:
        if _first_match(patterns, opening):
            return OpeningAnalysis(
                is_cliche=True,
                cliche_type=cliche_type,
                severity=severity,
                detected_patterns=(label,),
                suggestions=GENERIC_SUGGESTIONS + (FAMILY_SUGGESTIONS[cliche_type],),
                opening_sentences=tuple(sentences),
            )

    return OpeningAnalysis(
        is_cliche=False,
        cliche_type=ClicheType.NONE,
        severity=ClicheSeverity.NONE,
        opening_sentences=tuple(sentences),
    )


def _opens_with_action(text: str) -> bool:
    content = (text or "").strip()
    if not content:
        return False
    sentences = _SENTENCE_SPLIT.split(content)
    first = sentences[0].strip().lower() if sentences else ""
    return any(p.search(first) for p in _GOOD_OPENINGS)


def has_good_opening(chapter: Chapter) -> bool:
    """True when the first sentence is dialogue or leads with a character acting."""
    return _opens_with_action(chapter.content)


def generate_opening_suggestions(
    previous_chapter: Optional[Chapter],
    current_opening: str
) -> List[str]:
    """
    Continuation hints keyed off how the previous chapter ended.

    Action-or-dialogue advice is left out when ``current_opening`` already
    leads with one.
    """
    acting = _opens_with_action(current_opening)
    if previous_chapter is None:
        suggestions = [
            "Start with character action or dialogue to immediately engage the reader",
            "Begin with a specific, concrete detail rather than generic description",
        ]
        return suggestions[1:] if acting else suggestions

    suggestions = []
    previous = split_sentences(previous_chapter.content or "")
    last = previous[-1].lower() if previous else ""
    if last:
        if any(word in last for word in ('toward', 'walked', 'headed')):
            suggestions.append(
                "Continue by showing the character arriving at or reaching their destination"
            )
        elif 'thought' in last or 'wondered' in last:
            suggestions.append("Show the character acting on that thought or making a decision")
        elif 'said' in last or '"' in last:
            suggestions.append("Continue the dialogue or show the immediate response")
        else:
            suggestions.append(
                "Show the character's immediate next action or response to what just happened"
            )

    suggestions.append("Reference the previous chapter's ending directly in the first sentence")
    if not acting:
        suggestions.append("Start with character action or dialogue, not description")
    suggestions.append("Begin with the immediate next moment after the previous chapter ended")
    return suggestions
