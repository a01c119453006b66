"""
Auto-Connection Proposer
========================

Proposes typed links after a chapter is generated:

- characters to the scenes that mention them
- characters, items, techniques and antagonists to the active arc
- relationships between characters who keep appearing together

Every proposal carries a confidence in [0, 1]. Nothing is applied here;
the caller decides which proposals to persist.
"""

from __future__ import annotations
from typing import Dict, Iterable, List, Optional, Sequence
import logging
import re

from ..config import ConnectionConfig
from ..contracts.findings import AutoConnectionResult, Connection, ConnectionType
from ..contracts.story import (
    Antagonist, Arc, Chapter, Character, Item, NovelState, Scene, Technique,
    normalize_name,
)
from .names import text_contains_character_name
from .topology import CooccurrenceGraph

logger = logging.getLogger(__name__)


def name_mention_confidence(name: str, text: str) -> float:
    """
    Confidence that ``text`` really refers to ``name``.

    0.7 for one literal occurrence, +0.05 per additional occurrence
    (max 0.95); 0.6 when every token appears but not as a phrase, 0.4
    when only some do, 0.2 otherwise.
    """
    name_lower = name.strip().lower()
    text_lower = text.lower()
    if not name_lower:
        return 0.2

    occurrences = len(re.findall(re.escape(name_lower), text_lower))
    if occurrences:
        return round(min(0.95, 0.7 + 0.05 * (occurrences - 1)), 4)

    words = name_lower.split()
    matched = sum(1 for word in words if word in text_lower)
    if matched == len(words):
        return 0.6
    if matched > 0:
        return 0.4
    return 0.2


# =============================================================================
# SUB-ANALYZERS
# =============================================================================

def connect_characters_to_scenes(
    characters: Sequence[Character],
    scenes: Iterable[Scene]
) -> List[Connection]:
    connections = []
    for scene in scenes:
        text = scene.text
        if not text:
            continue
        for character in characters:
            if not text_contains_character_name(text, character.name):
                continue
            connections.append(Connection(
                type=ConnectionType.CHARACTER_SCENE,
                source_id=character.id,
                target_id=scene.id,
                source_name=character.name,
                target_name=scene.display_name,
                confidence=name_mention_confidence(character.name, text),
                reason=f'Character "{character.name}" mentioned in scene content',
            ))
    return connections


def connect_characters_to_arcs(
    characters: Sequence[Character],
    active_arc: Optional[Arc],
    chapters: Iterable[Chapter],
    chapter_number: int,
    config: Optional[ConnectionConfig] = None
) -> List[Connection]:
    config = config or ConnectionConfig()
    if active_arc is None or active_arc.started_at_chapter is None:
        return []
    start = active_arc.started_at_chapter
    if chapter_number < start:
        return []

    arc_chapters = [c for c in chapters if start <= c.number <= chapter_number]
    graph = CooccurrenceGraph().build(characters, arc_chapters)

    connections = []
    for index, character in enumerate(characters):
        count = graph.appearances(index)
        if count < config.min_arc_appearances:
            continue
        connections.append(Connection(
            type=ConnectionType.CHARACTER_ARC,
            source_id=character.id,
            target_id=active_arc.id,
            source_name=character.name,
            target_name=active_arc.title,
            confidence=round(min(0.9, 0.6 + 0.1 * count), 4),
            reason=f"Character appears in {count} chapters of this arc",
        ))
    return connections


def _discovered_during(first_appeared: Optional[int], arc: Arc, chapter_number: int) -> bool:
    if first_appeared is None:
        return False
    if first_appeared == chapter_number:
        return True
    return arc.started_at_chapter is not None and first_appeared >= arc.started_at_chapter


def connect_items_to_arc(
    items: Iterable[Item],
    active_arc: Optional[Arc],
    chapter_number: int
) -> List[Connection]:
    if active_arc is None:
        return []
    return [
        Connection(
            type=ConnectionType.ITEM_ARC,
            source_id=item.id,
            target_id=active_arc.id,
            source_name=item.name,
            target_name=active_arc.title,
            confidence=0.85,
            reason="Item discovered during active arc",
        )
        for item in items
        if _discovered_during(item.first_appeared_chapter, active_arc, chapter_number)
    ]


def connect_techniques_to_arc(
    techniques: Iterable[Technique],
    active_arc: Optional[Arc],
    chapter_number: int
) -> List[Connection]:
    if active_arc is None:
        return []
    return [
        Connection(
            type=ConnectionType.TECHNIQUE_ARC,
            source_id=technique.id,
            target_id=active_arc.id,
            source_name=technique.name,
            target_name=active_arc.title,
            confidence=0.85,
            reason="Technique learned during active arc",
        )
        for technique in techniques
        if _discovered_during(technique.first_appeared_chapter, active_arc, chapter_number)
    ]


def detect_character_relationships(
    characters: Sequence[Character],
    chapters: Iterable[Chapter],
    config: Optional[ConnectionConfig] = None
) -> List[Connection]:
    """Pairs co-appearing in the most recent chapters with no recorded relationship."""
    config = config or ConnectionConfig()
    recent = sorted(chapters, key=lambda c: c.number, reverse=True)
    recent = recent[:config.recent_chapter_window]
    graph = CooccurrenceGraph().build(characters, recent)

    connections = []
    for pair in graph.pairs(min_count=config.min_relationship_co_appearances):
        first, second = pair.first, pair.second
        if first.is_related_to(second):
            continue
        connections.append(Connection(
            type=ConnectionType.RELATIONSHIP,
            source_id=first.id,
            target_id=second.id,
            source_name=first.name,
            target_name=second.name,
            confidence=round(min(0.8, 0.5 + 0.1 * pair.count), 4),
            reason=f"Characters appear together in {pair.count} recent chapters",
        ))
    return connections


def connect_antagonists_to_arc(
    antagonists: Iterable[Antagonist],
    active_arc: Optional[Arc],
    chapter_number: int
) -> List[Connection]:
    if active_arc is None or active_arc.started_at_chapter is None:
        return []
    start = active_arc.started_at_chapter

    connections = []
    for antagonist in antagonists:
        if antagonist.is_associated_with(active_arc):
            continue
        first_seen = antagonist.first_appeared_chapter
        if first_seen is not None and first_seen >= start:
            confidence, reason = 0.9, "Antagonist first appeared during active arc"
        elif antagonist.last_appeared_chapter == chapter_number and chapter_number >= start:
            confidence, reason = 0.75, "Antagonist appeared in current chapter of active arc"
        else:
            continue
        connections.append(Connection(
            type=ConnectionType.ANTAGONIST_ARC,
            source_id=antagonist.id,
            target_id=active_arc.id,
            source_name=antagonist.name,
            target_name=active_arc.title,
            confidence=confidence,
            reason=reason,
        ))
    return connections


# =============================================================================
# AGGREGATION
# =============================================================================

def _merge_records(existing: Sequence, extracted: Iterable) -> list:
    """Existing records plus extracted ones not already known by id or name."""
    merged = list(existing)
    ids = {r.id for r in merged if r.id}
    names = {normalize_name(r.name) for r in merged}
    for record in extracted:
        key = normalize_name(record.name)
        if (record.id and record.id in ids) or key in names:
            continue
        merged.append(record)
        ids.add(record.id)
        names.add(key)
    return merged


def _suggestions(connections: Sequence[Connection], config: ConnectionConfig) -> List[str]:
    if not connections:
        suggestions = ["No automatic connections detected. This may be normal for early chapters."]
    else:
        suggestions = [f"Found {len(connections)} potential connections to automate."]
        by_type: Dict[ConnectionType, int] = {}
        for connection in connections:
            by_type[connection.type] = by_type.get(connection.type, 0) + 1
        for connection_type, count in by_type.items():
            suggestions.append(f"- {count} {connection_type.label} connection(s)")

    high = sum(1 for c in connections if c.confidence >= config.high_confidence_threshold)
    if high:
        suggestions.append(
            f"{high} high-confidence connection(s) recommended for automatic application."
        )
    return suggestions


def analyze_auto_connections(
    state: NovelState,
    new_chapter: Chapter,
    extracted_scenes: Iterable[Scene] = (),
    extracted_items: Iterable[Item] = (),
    extracted_techniques: Iterable[Technique] = (),
    config: Optional[ConnectionConfig] = None
) -> AutoConnectionResult:
    """
    Run every sub-analyzer for a freshly generated chapter.

    The new chapter joins the corpus for arc and relationship counts
    when the snapshot does not hold its number yet.
    """
    config = config or ConnectionConfig()
    active_arc = state.active_arc
    corpus = state.chapters_with([new_chapter])
    number = new_chapter.number

    connections: List[Connection] = []
    connections += connect_characters_to_scenes(state.characters, extracted_scenes)
    connections += connect_characters_to_arcs(
        state.characters, active_arc, corpus, number, config
    )
    connections += connect_items_to_arc(
        _merge_records(state.items, extracted_items), active_arc, number
    )
    connections += connect_techniques_to_arc(
        _merge_records(state.techniques, extracted_techniques), active_arc, number
    )
    connections += detect_character_relationships(state.characters, corpus, config)
    connections += connect_antagonists_to_arc(state.antagonists, active_arc, number)

    warnings = []
    if active_arc is None:
        warnings.append("No active arc. Arc connections were skipped.")

    logger.debug(
        "Chapter %s: proposed %d connections (active arc: %s)",
        number, len(connections), active_arc.id if active_arc else None,
    )

    return AutoConnectionResult(
        success=True,
        connections=tuple(connections),
        warnings=tuple(warnings),
        suggestions=tuple(_suggestions(connections, config)),
    )
