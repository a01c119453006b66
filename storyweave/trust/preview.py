"""
Extraction Preview
==================

Turns one chapter's extraction payload into per-entity previews before
anything touches persistent state.

For every entry:
1. Blank names (world entries: blank title or content) are skipped
2. Identity against existing records is exact normalized-name equality
   (lower + strip), never fuzzy matching
3. Confidence = category base + fixed increments for present optional
   fields, capped at 0.95
4. Missing required fields become per-entry warnings
5. can_auto_apply = confidence >= category threshold AND no warnings

When a snapshot and the new chapter are supplied, the auto-connection
proposer also runs and its proposals are attached as connection
previews. A failure there never fails the preview.
"""

from __future__ import annotations
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar, Union
import hashlib
import logging

from ..config import ConnectionConfig, TrustConfig
from ..contracts.extraction import (
    AntagonistPreview, AntagonistUpdate, CharacterPreview, CharacterUpsert,
    ConnectionPreview, ExistingRecords, Extraction, ExtractionPreview,
    ItemPreview, ItemUpdate, PreviewAction, SceneExtraction, ScenePreview,
    TechniquePreview, TechniqueUpdate, WorldEntryPreview, WorldEntryUpsert,
)
from ..contracts.story import Chapter, Item, NovelState, Scene, Technique, normalize_name
from ..core.connections import analyze_auto_connections

logger = logging.getLogger(__name__)

MAX_CONFIDENCE = 0.95

# Auto-apply thresholds per category
CHARACTER_THRESHOLD = 0.70
ITEM_THRESHOLD = 0.75
TECHNIQUE_THRESHOLD = 0.75
ANTAGONIST_THRESHOLD = 0.80
SCENE_THRESHOLD = 0.60
WORLD_ENTRY_THRESHOLD = 0.70

RICH_CONTENT_LENGTH = 100
MIN_WORLD_CONTENT_LENGTH = 50

R = TypeVar('R')


def _find_by_name(records: Iterable[R], name: str, attr: str = "name") -> Optional[R]:
    key = normalize_name(name)
    return next((r for r in records if normalize_name(getattr(r, attr)) == key), None)


def _capped(confidence: float) -> float:
    return round(min(MAX_CONFIDENCE, confidence), 4)


# =============================================================================
# CONFIDENCE FUNCTIONS
# =============================================================================

def character_confidence(upsert: CharacterUpsert, existing: bool) -> float:
    confidence = 0.7
    if upsert.updates.get("personality"):
        confidence += 0.1
    if upsert.updates.get("currentCultivation"):
        confidence += 0.05
    if upsert.updates.get("age"):
        confidence += 0.05
    if upsert.relationships:
        confidence += 0.1
    if existing:
        confidence += 0.1
    return _capped(confidence)


def item_confidence(update: ItemUpdate, existing: bool) -> float:
    confidence = 0.75
    if update.category:
        confidence += 0.1
    if update.description:
        confidence += 0.05
    if update.character_name:
        confidence += 0.1
    if existing:
        confidence += 0.05
    return _capped(confidence)


def technique_confidence(update: TechniqueUpdate, existing: bool) -> float:
    confidence = 0.75
    if update.category:
        confidence += 0.1
    if update.type:
        confidence += 0.1
    if update.description:
        confidence += 0.05
    if existing:
        confidence += 0.05
    return _capped(confidence)


def antagonist_confidence(update: AntagonistUpdate, existing: bool) -> float:
    confidence = 0.8
    for present in (update.type, update.threat_level, update.description, update.motivation):
        if present:
            confidence += 0.05
    if existing:
        confidence += 0.05
    return _capped(confidence)


def scene_confidence(scene: SceneExtraction) -> float:
    confidence = 0.6
    if scene.title.strip():
        confidence += 0.1
    if scene.summary.strip():
        confidence += 0.1
    if len(scene.content_excerpt.strip()) >= RICH_CONTENT_LENGTH:
        confidence += 0.2
    return _capped(confidence)


def world_entry_confidence(entry: WorldEntryUpsert) -> float:
    confidence = 0.7
    if entry.category:
        confidence += 0.1
    if len(entry.content.strip()) >= RICH_CONTENT_LENGTH:
        confidence += 0.15
    if len(entry.title.strip()) > 5:
        confidence += 0.05
    return _capped(confidence)


# =============================================================================
# PER-CATEGORY PREVIEWS
# =============================================================================

def _preview_characters(
    upserts: Sequence[CharacterUpsert],
    existing: ExistingRecords
) -> List[CharacterPreview]:
    previews = []
    for upsert in upserts:
        name = upsert.name.strip()
        if not name:
            continue
        match = _find_by_name(existing.characters, name)
        warnings = []
        if match is None and not upsert.updates.get("personality"):
            warnings.append("Missing personality information")

        if match is None:
            action = PreviewAction.CREATE
        else:
            action = PreviewAction.MERGE if upsert.is_new else PreviewAction.UPDATE

        confidence = character_confidence(upsert, match is not None)
        previews.append(CharacterPreview(
            name=name,
            action=action,
            confidence=confidence,
            warnings=tuple(warnings),
            can_auto_apply=confidence >= CHARACTER_THRESHOLD and not warnings,
            existing=match,
            new_data=dict(upsert.updates),
        ))
    return previews


def _preview_items(updates: Sequence[ItemUpdate], existing: ExistingRecords) -> List[ItemPreview]:
    previews = []
    for update in updates:
        name = update.name.strip()
        if not name:
            continue
        match = _find_by_name(existing.items, name)
        warnings = []
        if not update.category:
            warnings.append("Missing category")
        if not update.character_name:
            warnings.append("Missing character association")

        confidence = item_confidence(update, match is not None)
        is_update = match is not None or update.action == "update"
        previews.append(ItemPreview(
            name=name,
            action=PreviewAction.UPDATE if is_update else PreviewAction.CREATE,
            confidence=confidence,
            warnings=tuple(warnings),
            can_auto_apply=confidence >= ITEM_THRESHOLD and not warnings,
            existing=match,
            new_data={"category": update.category, "description": update.description},
        ))
    return previews


def _preview_techniques(
    updates: Sequence[TechniqueUpdate],
    existing: ExistingRecords
) -> List[TechniquePreview]:
    previews = []
    for update in updates:
        name = update.name.strip()
        if not name:
            continue
        match = _find_by_name(existing.techniques, name)
        warnings = []
        if not update.category:
            warnings.append("Missing category")
        if not update.type:
            warnings.append("Missing type")

        confidence = technique_confidence(update, match is not None)
        is_update = match is not None or update.action == "update"
        previews.append(TechniquePreview(
            name=name,
            action=PreviewAction.UPDATE if is_update else PreviewAction.CREATE,
            confidence=confidence,
            warnings=tuple(warnings),
            can_auto_apply=confidence >= TECHNIQUE_THRESHOLD and not warnings,
            existing=match,
            new_data={
                "category": update.category,
                "type": update.type,
                "description": update.description,
            },
        ))
    return previews


def _preview_antagonists(
    updates: Sequence[AntagonistUpdate],
    existing: ExistingRecords
) -> List[AntagonistPreview]:
    previews = []
    for update in updates:
        name = update.name.strip()
        if not name:
            continue
        match = _find_by_name(existing.antagonists, name)
        warnings = []
        if not update.type:
            warnings.append("Missing antagonist type")
        if not update.threat_level:
            warnings.append("Missing threat level")

        confidence = antagonist_confidence(update, match is not None)
        is_update = match is not None or update.action == "update"
        previews.append(AntagonistPreview(
            name=name,
            action=PreviewAction.UPDATE if is_update else PreviewAction.CREATE,
            confidence=confidence,
            warnings=tuple(warnings),
            can_auto_apply=confidence >= ANTAGONIST_THRESHOLD and not warnings,
            existing=match,
            new_data={
                "type": update.type,
                "threatLevel": update.threat_level,
                "description": update.description,
                "motivation": update.motivation,
            },
        ))
    return previews


def _preview_scenes(scenes: Sequence[SceneExtraction]) -> List[ScenePreview]:
    previews = []
    for scene in scenes:
        title = scene.title.strip()
        excerpt = scene.content_excerpt.strip()
        warnings = []
        if not title and not excerpt:
            warnings.append("Missing both title and content excerpt")
        if scene.number <= 0:
            warnings.append("Invalid scene number")

        confidence = scene_confidence(scene)
        previews.append(ScenePreview(
            number=scene.number,
            title=title or f"Scene {scene.number}",
            confidence=confidence,
            word_count=len(excerpt.split()),
            warnings=tuple(warnings),
            can_auto_apply=confidence >= SCENE_THRESHOLD and not warnings,
        ))
    return previews


def _preview_world_entries(
    upserts: Sequence[WorldEntryUpsert],
    existing: ExistingRecords
) -> List[WorldEntryPreview]:
    previews = []
    for upsert in upserts:
        title = upsert.title.strip()
        content = upsert.content.strip()
        if not title or not content:
            continue
        match = _find_by_name(existing.world_entries, title, attr="title")
        warnings = []
        if not upsert.category:
            warnings.append("Missing category")
        if len(content) < MIN_WORLD_CONTENT_LENGTH:
            warnings.append("Content too short")

        confidence = world_entry_confidence(upsert)
        previews.append(WorldEntryPreview(
            title=title,
            category=upsert.category or "Other",
            action=PreviewAction.UPDATE if match is not None else PreviewAction.CREATE,
            confidence=confidence,
            warnings=tuple(warnings),
            can_auto_apply=confidence >= WORLD_ENTRY_THRESHOLD and not warnings,
            existing=match,
        ))
    return previews


# =============================================================================
# CONNECTION PREVIEWS
# =============================================================================

def _pending_id(kind: str, name: str) -> str:
    digest = hashlib.sha256(f"{kind}:{normalize_name(name)}".encode()).hexdigest()[:12]
    return f"pending_{digest}"


def _extracted_items(
    updates: Sequence[ItemUpdate],
    existing: ExistingRecords,
    chapter_number: int
) -> List[Item]:
    """Existing item per update, or a placeholder first seen in this chapter."""
    items = []
    for update in updates:
        name = update.name.strip()
        if not name:
            continue
        match = _find_by_name(existing.items, name)
        items.append(match or Item(
            id=_pending_id("item", name),
            name=name,
            category=update.category or "other",
            description=update.description,
            first_appeared_chapter=chapter_number,
        ))
    return items


def _extracted_techniques(
    updates: Sequence[TechniqueUpdate],
    existing: ExistingRecords,
    chapter_number: int
) -> List[Technique]:
    techniques = []
    for update in updates:
        name = update.name.strip()
        if not name:
            continue
        match = _find_by_name(existing.techniques, name)
        techniques.append(match or Technique(
            id=_pending_id("technique", name),
            name=name,
            category=update.category or "other",
            type=update.type or "basic",
            description=update.description,
            first_appeared_chapter=chapter_number,
        ))
    return techniques


def _connection_previews(
    extraction: Extraction,
    existing: ExistingRecords,
    novel_state: NovelState,
    new_chapter: Chapter,
    extracted_scenes: Sequence[Scene],
    config: TrustConfig,
    connection_config: Optional[ConnectionConfig] = None
) -> Tuple[ConnectionPreview, ...]:
    try:
        result = analyze_auto_connections(
            novel_state,
            new_chapter,
            extracted_scenes,
            _extracted_items(extraction.item_updates, existing, new_chapter.number),
            _extracted_techniques(extraction.technique_updates, existing, new_chapter.number),
            connection_config,
        )
    except Exception:
        logger.warning("Connection analysis failed; preview continues without connections",
                       exc_info=True)
        return ()

    return tuple(
        ConnectionPreview(
            connection=connection,
            can_auto_apply=connection.confidence >= config.connection_auto_apply_threshold,
            reason=connection.reason,
        )
        for connection in result.connections
    )


# =============================================================================
# ENTRY POINT
# =============================================================================

def generate_extraction_preview(
    extraction: Union[Extraction, Mapping],
    existing_state: ExistingRecords,
    novel_state: Optional[NovelState] = None,
    new_chapter: Optional[Chapter] = None,
    extracted_scenes: Sequence[Scene] = (),
    config: Optional[TrustConfig] = None,
    connection_config: Optional[ConnectionConfig] = None
) -> ExtractionPreview:
    """Build the full preview; accepts a parsed Extraction or its raw mapping."""
    config = config or TrustConfig()
    extraction = Extraction.coerce(extraction)

    characters = _preview_characters(extraction.character_upserts, existing_state)
    items = _preview_items(extraction.item_updates, existing_state)
    techniques = _preview_techniques(extraction.technique_updates, existing_state)
    antagonists = _preview_antagonists(extraction.antagonist_updates, existing_state)
    scenes = _preview_scenes(extraction.scenes)
    world_entries = _preview_world_entries(extraction.world_entry_upserts, existing_state)

    connections: Tuple[ConnectionPreview, ...] = ()
    if novel_state is not None and new_chapter is not None:
        connections = _connection_previews(
            extraction, existing_state, novel_state, new_chapter, extracted_scenes, config,
            connection_config,
        )

    entries = characters + items + techniques + antagonists + scenes + world_entries
    overall = sum(e.confidence for e in entries) / len(entries) if entries else 0.0

    suggestions = []
    auto_applicable = sum(1 for e in entries if e.can_auto_apply)
    if auto_applicable:
        suggestions.append(
            f"{auto_applicable} extraction(s) can be automatically applied with high confidence."
        )

    warnings = []
    needs_review = len(entries) - auto_applicable
    if needs_review:
        warnings.append(f"{needs_review} extraction(s) need review before applying.")

    logger.debug(
        "Extraction preview: %d entries (%d auto-applicable), %d connections",
        len(entries), auto_applicable, len(connections),
    )

    return ExtractionPreview(
        characters=tuple(characters),
        items=tuple(items),
        techniques=tuple(techniques),
        antagonists=tuple(antagonists),
        scenes=tuple(scenes),
        world_entries=tuple(world_entries),
        connections=connections,
        overall_confidence=overall,
        warnings=tuple(warnings),
        suggestions=tuple(suggestions),
    )
