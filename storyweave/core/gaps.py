"""
Gap Analyzer
============

Scans the whole snapshot for structural holes before the next chapter
is generated: missing protagonist, orphaned characters / items /
techniques / scenes, co-appearing characters without a relationship,
arc associations that were never recorded, and thin world entries.

Each check is independent and additive; one entity can produce several
gaps. Gaps are recomputed on demand and never persisted.
"""

from __future__ import annotations
from typing import List, Optional, Sequence
import logging

from ..config import GapConfig
from ..contracts.findings import Gap, GapAnalysis, GapSeverity, GapSummary, GapType
from ..contracts.story import Chapter, Character, NovelState
from .names import text_contains_character_name
from .topology import CooccurrenceGraph

logger = logging.getLogger(__name__)


def _mentioned_in(chapter: Chapter, name: str) -> bool:
    """Name Matcher over the chapter's content or its summary."""
    return (
        text_contains_character_name(chapter.content, name)
        or text_contains_character_name(chapter.summary, name)
    )


def _appears_anywhere(character: Character, chapters: Sequence[Chapter]) -> bool:
    return any(_mentioned_in(chapter, character.name) for chapter in chapters)


# =============================================================================
# INDIVIDUAL CHECKS
# =============================================================================

def _missing_protagonist(state: NovelState) -> List[Gap]:
    if state.protagonists:
        return []
    return [Gap(
        type=GapType.MISSING_PROTAGONIST,
        severity=GapSeverity.CRITICAL,
        entity_name="Protagonist",
        entity_type="character",
        message="No protagonist is marked. Every novel needs a protagonist.",
        suggestion="Mark one character as the protagonist in the character manager.",
        auto_fixable=False,
        confidence=1.0,
    )]


def _orphaned_characters(state: NovelState) -> List[Gap]:
    gaps = []
    for character in state.characters:
        if character.is_protagonist or character.has_relationships:
            continue
        if not _appears_anywhere(character, state.chapters):
            continue
        gaps.append(Gap(
            type=GapType.ORPHANED_CHARACTER,
            severity=GapSeverity.WARNING,
            entity_id=character.id,
            entity_name=character.name,
            entity_type="character",
            message=f'Character "{character.name}" appears in chapters but has no relationships.',
            suggestion="Consider adding relationships to other characters, especially the protagonist.",
            auto_fixable=True,
            confidence=0.7,
        ))
    return gaps


def _missing_relationships(
    state: NovelState,
    graph: CooccurrenceGraph,
    config: GapConfig
) -> List[Gap]:
    gaps = []
    threshold = max(config.min_co_appearances, config.missing_relationship_threshold)
    for pair in graph.pairs(min_count=threshold):
        first, second = pair.first, pair.second
        anchor = _relationship_anchor(first, second)
        if anchor is None or first.is_related_to(second):
            continue
        gaps.append(Gap(
            type=GapType.MISSING_RELATIONSHIP,
            severity=GapSeverity.INFO,
            entity_id=anchor.id,
            entity_name=f"{first.name} ↔ {second.name}",
            entity_type="relationship",
            message=(
                f'Characters "{first.name}" and "{second.name}" appear together in '
                f'{pair.count} chapters but have no defined relationship.'
            ),
            suggestion="Consider adding a relationship between these characters.",
            auto_fixable=True,
            confidence=min(0.8, 0.5 + 0.1 * pair.count),
        ))
    return gaps


def _relationship_anchor(first: Character, second: Character) -> Optional[Character]:
    """The side already woven into the graph (has relationships or is protagonist)."""
    for character in (first, second):
        if character.is_protagonist or character.has_relationships:
            return character
    return None


def _orphaned_items(state: NovelState) -> List[Gap]:
    owned = {
        possession.item_id
        for character in state.characters
        for possession in character.item_possessions
    }
    gaps = []
    for item in state.items:
        if item.first_appeared_chapter is None or item.id in owned:
            continue
        gaps.append(Gap(
            type=GapType.ORPHANED_ITEM,
            severity=GapSeverity.WARNING,
            entity_id=item.id,
            entity_name=item.name,
            entity_type="item",
            message=f'Item "{item.name}" exists but is not owned by any character.',
            suggestion="Assign this item to a character who owns it, or archive it if no longer relevant.",
            auto_fixable=False,
            confidence=0.9,
        ))
    return gaps


def _orphaned_techniques(state: NovelState) -> List[Gap]:
    mastered = {
        mastery.technique_id
        for character in state.characters
        for mastery in character.technique_masteries
    }
    gaps = []
    for technique in state.techniques:
        if technique.first_appeared_chapter is None or technique.id in mastered:
            continue
        gaps.append(Gap(
            type=GapType.ORPHANED_TECHNIQUE,
            severity=GapSeverity.WARNING,
            entity_id=technique.id,
            entity_name=technique.name,
            entity_type="technique",
            message=f'Technique "{technique.name}" exists but is not mastered by any character.',
            suggestion="Assign this technique to a character who has learned it, or archive it if not used.",
            auto_fixable=False,
            confidence=0.9,
        ))
    return gaps


def _characters_without_arc(state: NovelState) -> List[Gap]:
    arc = state.active_arc
    if arc is None:
        return []
    start = arc.started_at_chapter or 0
    arc_chapters = [c for c in state.chapters if c.number >= start]

    gaps = []
    for character in state.characters:
        if character.is_protagonist or arc.id in character.arc_ids:
            continue
        if not _appears_anywhere(character, arc_chapters):
            continue
        gaps.append(Gap(
            type=GapType.CHARACTER_WITHOUT_ARC,
            severity=GapSeverity.INFO,
            entity_id=character.id,
            entity_name=character.name,
            entity_type="character",
            message=(
                f'Character "{character.name}" appears in active arc chapters but may not '
                f'be explicitly associated with the arc.'
            ),
            suggestion="Consider explicitly associating this character with the active arc if they play a role.",
            auto_fixable=True,
            confidence=0.6,
        ))
    return gaps


def _antagonists_without_arc(state: NovelState) -> List[Gap]:
    arc = state.active_arc
    if arc is None or arc.started_at_chapter is None:
        return []

    gaps = []
    for antagonist in state.antagonists:
        if not antagonist.is_active or antagonist.is_associated_with(arc):
            continue
        first_seen = antagonist.first_appeared_chapter
        if first_seen is None or first_seen < arc.started_at_chapter:
            continue
        gaps.append(Gap(
            type=GapType.ANTAGONIST_WITHOUT_ARC,
            severity=GapSeverity.WARNING,
            entity_id=antagonist.id,
            entity_name=antagonist.name,
            entity_type="antagonist",
            message=(
                f'Antagonist "{antagonist.name}" is active and appeared during the active arc '
                f'but is not associated with it.'
            ),
            suggestion="Associate this antagonist with the active arc to track their role better.",
            auto_fixable=True,
            confidence=0.85,
        ))
    return gaps


def _incomplete_world_entries(state: NovelState, config: GapConfig) -> List[Gap]:
    gaps = []
    for entry in state.world_entries:
        if len(entry.content.strip()) >= config.min_world_entry_length:
            continue
        gaps.append(Gap(
            type=GapType.INCOMPLETE_WORLD_ENTRY,
            severity=GapSeverity.INFO,
            entity_id=entry.id,
            entity_name=entry.title,
            entity_type="world-entry",
            message=f'World entry "{entry.title}" has minimal or no content.',
            suggestion="Expand this world entry with more details for better world-building.",
            auto_fixable=False,
            confidence=0.8,
        ))
    return gaps


def _orphaned_scenes(state: NovelState, config: GapConfig) -> List[Gap]:
    gaps = []
    for chapter in state.chapters:
        for scene in chapter.scenes:
            text = scene.text
            if len(text) <= config.orphaned_scene_min_length:
                continue
            if any(text_contains_character_name(text, c.name) for c in state.characters):
                continue
            gaps.append(Gap(
                type=GapType.ORPHANED_SCENE,
                severity=GapSeverity.INFO,
                entity_id=scene.id,
                entity_name=scene.display_name,
                entity_type="scene",
                message=(
                    f'Scene "{scene.display_name}" in Chapter {chapter.number} '
                    f"doesn't mention any known characters."
                ),
                suggestion=(
                    "Consider linking this scene to relevant characters or verify character "
                    "names are spelled correctly."
                ),
                auto_fixable=True,
                confidence=0.5,
            ))
    return gaps


# =============================================================================
# AGGREGATION
# =============================================================================

def summarize_gaps(gaps: Sequence[Gap]) -> GapSummary:
    return GapSummary(
        total=len(gaps),
        critical=sum(1 for g in gaps if g.severity is GapSeverity.CRITICAL),
        warnings=sum(1 for g in gaps if g.severity is GapSeverity.WARNING),
        info=sum(1 for g in gaps if g.severity is GapSeverity.INFO),
        auto_fixable=sum(1 for g in gaps if g.auto_fixable),
    )


def _recommendations(summary: GapSummary) -> List[str]:
    recommendations = []
    if summary.critical > 0:
        recommendations.append(
            f"Address {summary.critical} critical gap(s) before generating new chapters."
        )
    if summary.warnings > 0:
        recommendations.append(
            f"Review {summary.warnings} warning(s) to improve story coherence."
        )
    if summary.auto_fixable > 0:
        recommendations.append(f"{summary.auto_fixable} gap(s) can be automatically fixed.")
    if summary.total == 0:
        recommendations.append("No gaps detected. Your novel is well-connected!")
    return recommendations


def analyze_gaps(
    state: NovelState,
    current_chapter_number: int,
    config: Optional[GapConfig] = None
) -> GapAnalysis:
    """
    Detect structural gaps across the whole snapshot.

    ``current_chapter_number`` is accepted for callers that analyze
    mid-generation; the checks read chapter numbers from the snapshot.
    """
    config = config or GapConfig()
    graph = CooccurrenceGraph().build(state.characters, state.chapters)

    gaps: List[Gap] = []
    gaps += _missing_protagonist(state)
    gaps += _orphaned_characters(state)
    gaps += _missing_relationships(state, graph, config)
    gaps += _orphaned_items(state)
    gaps += _orphaned_techniques(state)
    gaps += _characters_without_arc(state)
    gaps += _antagonists_without_arc(state)
    gaps += _incomplete_world_entries(state, config)
    gaps += _orphaned_scenes(state, config)

    summary = summarize_gaps(gaps)
    metrics = graph.compute_metrics()
    logger.debug(
        "Gap analysis at chapter %s: %d gaps (%d critical), co-occurrence graph %d nodes / %d edges",
        current_chapter_number, summary.total, summary.critical,
        metrics.node_count, metrics.edge_count,
    )

    return GapAnalysis(
        gaps=tuple(gaps),
        summary=summary,
        recommendations=tuple(_recommendations(summary)),
    )


def generate_pre_generation_suggestions(
    state: NovelState,
    current_chapter_number: int,
    config: Optional[GapConfig] = None
) -> List[str]:
    """Human-readable checklist to show before the next chapter is generated."""
    config = config or GapConfig()
    analysis = analyze_gaps(state, current_chapter_number, config)
    suggestions: List[str] = []

    critical = [g for g in analysis.gaps if g.severity is GapSeverity.CRITICAL]
    if critical:
        suggestions.append("Critical issues detected:")
        suggestions.extend(f"  - {gap.message}" for gap in critical)
        suggestions.append("")

    fixable = [
        g for g in analysis.gaps
        if g.auto_fixable and g.confidence >= 0.8 and g.severity is not GapSeverity.CRITICAL
    ]
    if fixable:
        suggestions.append(f"{len(fixable)} connection(s) can be automatically made:")
        suggestions.extend(
            f"  - {gap.message}" for gap in fixable[:config.pre_generation_suggestion_limit]
        )

    if state.active_arc is None:
        suggestions.append("No active arc. Consider starting a new story arc for better structure.")

    if not any(a.is_active for a in state.antagonists):
        suggestions.append(
            "No active antagonists. Consider introducing opposition to maintain tension."
        )

    return suggestions
