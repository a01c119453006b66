"""
Name Matcher
============

Decides whether a body of text refers to a named entity despite partial
names. Matching is lexical and heuristic, not semantic.

A name is classified as proper ("Alex Maxwell"), descriptive ("Ancient
Spirit Tree") or mixed ("Elder Zhang"):

- proper / mixed names also match on their first or last token alone,
  unless that token is common narrative vocabulary
- descriptive names only match on distinctive fragments (>= 5 letters,
  not common), otherwise the full phrase must occur

All name content is escaped before compilation, so any string is a
valid input.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import List, Pattern, Tuple
import re


# Narrative vocabulary that appears in names but also everywhere in prose
COMMON_WORDS = frozenset({
    'ancient', 'spirit', 'tree', 'forest', 'mountain', 'river', 'lake', 'sea', 'ocean',
    'king', 'queen', 'prince', 'princess', 'emperor', 'empress', 'lord', 'lady',
    'master', 'elder', 'disciple', 'sect', 'clan', 'tribe', 'village', 'city',
    'sword', 'blade', 'spear', 'bow', 'arrow', 'shield', 'armor',
    'dragon', 'phoenix', 'tiger', 'wolf', 'bear', 'eagle', 'snake',
    'fire', 'water', 'earth', 'wind', 'thunder', 'lightning', 'ice', 'shadow',
    'gold', 'silver', 'iron', 'steel', 'jade', 'crystal', 'diamond',
    'divine', 'celestial', 'heavenly', 'immortal', 'mortal', 'demon', 'devil',
    'cultivation', 'qi', 'realm', 'technique', 'art', 'way', 'path', 'dao',
    'young', 'old', 'great', 'grand', 'supreme', 'ultimate', 'eternal',
    'north', 'south', 'east', 'west', 'central', 'inner', 'outer',
    'first', 'second', 'third', 'fourth', 'fifth', 'one', 'two', 'three',
    'red', 'blue', 'green', 'white', 'black', 'yellow', 'purple',
    'big', 'small', 'large', 'tiny', 'huge', 'massive',
    'new', 'modern', 'the', 'of',
})

# Known given names and surnames
PROPER_NOUN_INDICATORS = frozenset({
    'maxwell', 'smith', 'johnson', 'williams', 'brown', 'jones', 'garcia', 'miller',
    'zhang', 'wang', 'li', 'liu', 'chen', 'yang', 'huang', 'zhao', 'wu', 'zhou',
    'alex', 'john', 'mary', 'james', 'robert', 'michael', 'william', 'david',
    'wei', 'ming', 'jun', 'lei', 'feng', 'long', 'tian', 'yu', 'hao', 'xin',
})

SHORT_TOKEN_LENGTH = 4
MIN_FRAGMENT_LENGTH = 2
MIN_DESCRIPTIVE_FRAGMENT_LENGTH = 5

ASCII_LETTER_RE = re.compile(r'[A-Za-z]')


class NameType(Enum):
    PROPER = "proper"
    DESCRIPTIVE = "descriptive"
    MIXED = "mixed"


@dataclass(frozen=True)
class NameClassification:
    type: NameType
    has_common_words: bool
    word_count: int
    is_likely_proper_name: bool


@dataclass(frozen=True)
class NameMatchStrategy:
    """Compiled patterns plus the lower-cased strings they were built from."""
    patterns: Tuple[Pattern[str], ...]
    variations: Tuple[str, ...]
    require_full_match: bool


def _tokens(name: str) -> List[str]:
    return name.strip().split() if isinstance(name, str) else []


def _looks_proper(raw_token: str) -> bool:
    token = raw_token.lower()
    if token in PROPER_NOUN_INDICATORS or len(token) <= SHORT_TOKEN_LENGTH:
        return True
    # Capitalization only counts for words that are not stock vocabulary
    return raw_token[:1].isupper() and token not in COMMON_WORDS


def classify_name(full_name: str) -> NameClassification:
    """Classify a display name as proper, descriptive or mixed."""
    raw_tokens = _tokens(full_name)
    tokens = [t.lower() for t in raw_tokens]
    word_count = len(tokens)

    has_common_words = any(t in COMMON_WORDS for t in tokens)
    proper_count = sum(1 for raw in raw_tokens if _looks_proper(raw))
    is_likely_proper_name = proper_count >= word_count / 2

    if word_count == 1:
        name_type = NameType.DESCRIPTIVE if tokens[0] in COMMON_WORDS else NameType.PROPER
    elif has_common_words and not is_likely_proper_name:
        name_type = NameType.DESCRIPTIVE
    elif not has_common_words and is_likely_proper_name:
        name_type = NameType.PROPER
    else:
        name_type = NameType.MIXED

    return NameClassification(
        type=name_type,
        has_common_words=has_common_words,
        word_count=word_count,
        is_likely_proper_name=is_likely_proper_name,
    )


def _boundary_pattern(tokens: List[str]) -> Pattern[str]:
    # Lookarounds instead of \b so names starting or ending in punctuation
    # ("A.J. (Ace)") still get whole-word semantics.
    body = r'\s+'.join(re.escape(t) for t in tokens)
    return re.compile(rf'(?<!\w){body}(?!\w)', re.IGNORECASE)


def get_name_match_strategy(full_name: str) -> NameMatchStrategy:
    """Build the patterns used to detect ``full_name`` in prose."""
    classification = classify_name(full_name)
    tokens = [t.lower() for t in _tokens(full_name)]
    if not tokens:
        return NameMatchStrategy(patterns=(), variations=(), require_full_match=True)

    patterns = [_boundary_pattern(tokens)]
    variations = [' '.join(tokens)]

    def add_fragment(token: str) -> None:
        if token not in variations:
            patterns.append(_boundary_pattern([token]))
            variations.append(token)

    if len(tokens) > 1:
        if classification.type in (NameType.PROPER, NameType.MIXED):
            for token in (tokens[0], tokens[-1]):
                if token not in COMMON_WORDS and len(token) >= MIN_FRAGMENT_LENGTH:
                    add_fragment(token)
        elif classification.type is NameType.DESCRIPTIVE:
            for token in tokens:
                if token not in COMMON_WORDS and len(token) >= MIN_DESCRIPTIVE_FRAGMENT_LENGTH:
                    add_fragment(token)

    return NameMatchStrategy(
        patterns=tuple(patterns),
        variations=tuple(variations),
        require_full_match=classification.type is NameType.DESCRIPTIVE,
    )


def text_contains_character_name(text: str, full_name: str) -> bool:
    """
    True if ``text`` references the entity called ``full_name``.

    Total over any input: empty or non-string arguments return False.
    """
    if not isinstance(text, str) or not isinstance(full_name, str):
        return False
    if not text or not full_name.strip():
        return False

    strategy = get_name_match_strategy(full_name)
    if any(pattern.search(text) for pattern in strategy.patterns):
        return True

    if strategy.require_full_match:
        return ' '.join(_tokens(full_name)).lower() in text.lower()
    # Scripts written without spaces (CJK) have no word boundaries to anchor on
    if not ASCII_LETTER_RE.search(full_name):
        text_lower = text.lower()
        return any(variation in text_lower for variation in strategy.variations)
    return False


def get_name_variations(full_name: str) -> List[str]:
    """Strings a name can be recognised by (for display and debugging)."""
    return list(get_name_match_strategy(full_name).variations)
