"""
Location Indicators

Extracts where a passage takes place. A location phrase only counts in
a spatial context (a preposition such as "in"/"at"/"near", a
possessive or article, or a motion verb), and known metaphorical uses
("azure cloud", "cloud of dust", "shadow over") are excluded.

Indicators are lower-cased and de-duplicated in order of discovery.
"""

from __future__ import annotations
from typing import List, Sequence
import re

GENERIC_LOCATIONS = ('hut', 'room', 'hall', 'place')

LOCATION_SYNONYMS = {
    'hut': ('room', 'chamber', 'quarters', 'lodging'),
    'room': ('hut', 'chamber', 'quarters', 'lodging'),
    'chamber': ('room', 'hut', 'quarters', 'lodging'),
    'hall': ('chamber', 'room', 'audience chamber'),
    'square': ('courtyard', 'plaza', 'grounds'),
    'courtyard': ('square', 'plaza', 'grounds'),
    'training ground': ('training hall', 'practice yard', 'courtyard'),
    'forest': ('woods', 'woodland', 'grove'),
}

COMMON_LOCATION_WORDS = (
    'hut', 'room', 'square', 'courtyard', 'hall', 'training ground', 'forest', 'mountain',
)

MIN_LOCATION_LENGTH = 3
MAX_LOCATION_LENGTH = 49
CONTEXT_WINDOW = 30

# Descriptor group is named "place" in every pattern
LOCATION_PATTERNS = (
    re.compile(
        r'\b(?:at|in|inside|outside|near|beside|within)\s+(?:the\s+)?'
        r'(?P<place>[a-z]+(?:\s+[a-z]+){0,3})\s+'
        r'(?:grounds?|hall|chamber|room|tower|peak|palace|temple|forest|mountain|city|village|sect|realm|domain)',
        re.IGNORECASE,
    ),
    re.compile(
        r'\b(?:at|in|inside)\s+(?:the\s+)?'
        r'(?P<place>[a-z]+(?:\s+[a-z]+){0,2})\s+'
        r'(?:square|courtyard|entrance|exit|library|training\s+ground|field|garden|arena|plaza)',
        re.IGNORECASE,
    ),
    # Proper-noun places ("in Azure Dragon Sect"); case-sensitive on purpose
    re.compile(
        r'\b(?:in|at|inside)\s+'
        r'(?P<place>[A-Z][a-z]+(?:\s+[A-Z][a-z]+){0,3})\s+'
        r'(?:Sect|Realm|Domain|Palace|Temple|City|Village|Hall|Grounds)'
    ),
)

METAPHORICAL_PATTERNS = (
    re.compile(r'\b(azure|digital|computing|the)\s+cloud', re.IGNORECASE),
    re.compile(r'\bcloud\s+(of|above|over|hanging)', re.IGNORECASE),
    re.compile(r'\bentire\s+azure\s+cloud', re.IGNORECASE),
    re.compile(r'\b(shadow|darkness|light|mist|fog)\s+(of|over|above)', re.IGNORECASE),
)

_SPATIAL_BEFORE = (
    re.compile(r'\b(at|in|inside|outside|near|beside|within|beyond|toward|towards|into|onto|upon)\s+'),
    re.compile(r'\b(the|his|her|their|this|that)\s+'),
    re.compile(r'\b(entered|reached|arrived|left|went|walked|headed|returned|came)\s+'),
)

_METAPHORICAL_CLOUD = (
    re.compile(r'\b(azure|digital|computing|of\s+(dust|smoke|debris))\s+(cloud|clouds)', re.IGNORECASE),
    re.compile(r'\bcloud\s+(of|above|over)', re.IGNORECASE),
)

_CLOUD_SPATIAL = re.compile(r'\b(in|at|near|beside|within|inside)\s+')

LOCATION_TRANSITION = re.compile(
    r'\b(headed|went|walked|traveled|returned|arrived|reached|entered|came|moved)\b',
    re.IGNORECASE,
)


def is_metaphorical_location(location: str, full_match: str, context: str) -> bool:
    """True when a matched place reads as figurative rather than spatial."""
    start = context.find(full_match)
    if start < 0:
        start = 0
    window = full_match + ' ' + context[max(0, start - 50):start + 200]
    if any(p.search(window) for p in METAPHORICAL_PATTERNS):
        return True

    location_lower = location.lower()
    if 'cloud' in location_lower:
        index = context.lower().find(location_lower)
        if index >= 0:
            before = context[max(0, index - 20):index].lower()
            if not _CLOUD_SPATIAL.search(before):
                return True
    return False


def _has_spatial_context(text_lower: str, index: int) -> bool:
    before = text_lower[max(0, index - CONTEXT_WINDOW):index]
    return any(p.search(before) for p in _SPATIAL_BEFORE)


def extract_location_indicators(text: str) -> List[str]:
    """Place descriptors mentioned in a spatial context, lower-cased."""
    if not text:
        return []
    found: List[str] = []

    for pattern in LOCATION_PATTERNS:
        for match in pattern.finditer(text):
            place = match.group('place').strip()
            if not MIN_LOCATION_LENGTH <= len(place) <= MAX_LOCATION_LENGTH:
                continue
            if is_metaphorical_location(place, match.group(0), text):
                continue
            found.append(place.lower())

    text_lower = text.lower()
    metaphorical_cloud = any(p.search(text_lower) for p in _METAPHORICAL_CLOUD)
    for word in COMMON_LOCATION_WORDS:
        match = re.search(r'\b' + re.escape(word) + r'\b', text_lower)
        if match is None or metaphorical_cloud:
            continue
        if _has_spatial_context(text_lower, match.start()):
            found.append(word)

    return list(dict.fromkeys(found))


def _is_generic(location: str) -> bool:
    return any(generic in location for generic in GENERIC_LOCATIONS)


def are_similar_locations(first: str, second: str) -> bool:
    """Substring, shared-word, synonym or both-generic similarity."""
    a, b = first.lower(), second.lower()
    squashed_a, squashed_b = re.sub(r'\s+', '', a), re.sub(r'\s+', '', b)
    if squashed_a == squashed_b or squashed_a in squashed_b or squashed_b in squashed_a:
        return True

    if squashed_a and squashed_b:
        ratio = min(len(squashed_a), len(squashed_b)) / max(len(squashed_a), len(squashed_b))
        if ratio > 0.7:
            words_a = {w for w in a.split() if len(w) > 3}
            words_b = {w for w in b.split() if len(w) > 3}
            if words_a & words_b:
                return True

    for key, synonyms in LOCATION_SYNONYMS.items():
        if key in a and any(s in b for s in synonyms):
            return True
        if key in b and any(s in a for s in synonyms):
            return True

    return _is_generic(a) and _is_generic(b)


def locations_overlap(previous: Sequence[str], new: Sequence[str]) -> bool:
    return any(
        p in n or n in p or are_similar_locations(p, n)
        for p in previous
        for n in new
    )


def mentions_generic(locations: Sequence[str]) -> bool:
    """True when at least one indicator is a generic place word."""
    return any(_is_generic(loc) for loc in locations)


def has_location_transition(text: str) -> bool:
    """Explicit movement ("headed to", "returned", "entered") in the passage."""
    return bool(LOCATION_TRANSITION.search(text))
