"""
Story State Contracts

Immutable records for the NovelState snapshot the calling layer hands
to every analyzer. Only the fields the analyzers read are modelled.

BOUNDARY ENFORCEMENT:
=====================
- Records are frozen dataclasses; collections are tuples
- ``from_dict`` accepts the camelCase JSON shape the persistence layer
  returns and tolerates missing keys, None values and non-list
  collections (treated as empty)
- Only a non-mapping root payload is rejected (SnapshotError)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Tuple
import re

from ..errors import SnapshotError


# =============================================================================
# PAYLOAD COERCION (lenient, never raises on field level)
# =============================================================================

def _require_mapping(payload: Any, kind: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise SnapshotError(
            f"{kind} payload must be a mapping, got {type(payload).__name__}"
        )
    return payload


def text_field(value: Any) -> str:
    """Coerce a loosely-typed field to a string ('' for None)."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


INTEGER_RE = re.compile(r'-?[0-9]+')


def int_field(value: Any) -> Optional[int]:
    """Coerce to int, None when absent or not numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and INTEGER_RE.fullmatch(value.strip()):
        return int(value.strip())
    return None


def list_field(value: Any) -> Tuple[Any, ...]:
    """Lists and tuples pass through; anything else is an empty collection."""
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return ()


def mapping_items(value: Any) -> Tuple[Mapping[str, Any], ...]:
    """Mapping entries of a collection field; non-mapping entries are dropped."""
    return tuple(entry for entry in list_field(value) if isinstance(entry, Mapping))


def _arc_ids(value: Any) -> Tuple[str, ...]:
    """Arc ids from either plain strings or ``{arcId: ...}`` association rows."""
    ids = []
    for entry in list_field(value):
        if isinstance(entry, Mapping):
            arc_id = text_field(entry.get("arcId"))
        else:
            arc_id = text_field(entry)
        if arc_id:
            ids.append(arc_id)
    return tuple(ids)


def normalize_name(name: str) -> str:
    """Identity key used for exact record matching (lower-cased, trimmed)."""
    return text_field(name).lower().strip()


# =============================================================================
# CHARACTER RECORDS
# =============================================================================

@dataclass(frozen=True)
class Relationship:
    """Directed relationship from the owning character to a target."""
    character_id: str
    type: str
    target_name: str = ""
    history: str = ""
    impact: str = ""

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Relationship:
        payload = _require_mapping(payload, "Relationship")
        return cls(
            character_id=text_field(payload.get("characterId")),
            type=text_field(payload.get("type")),
            target_name=text_field(payload.get("targetName")),
            history=text_field(payload.get("history")),
            impact=text_field(payload.get("impact")),
        )


@dataclass(frozen=True)
class ItemPossession:
    """A character holding an item."""
    item_id: str
    status: str = "active"

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> ItemPossession:
        payload = _require_mapping(payload, "ItemPossession")
        return cls(
            item_id=text_field(payload.get("itemId")),
            status=text_field(payload.get("status")) or "active",
        )


@dataclass(frozen=True)
class TechniqueMastery:
    """A character having learned a technique."""
    technique_id: str
    status: str = "active"
    mastery_level: str = ""

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> TechniqueMastery:
        payload = _require_mapping(payload, "TechniqueMastery")
        return cls(
            technique_id=text_field(payload.get("techniqueId")),
            status=text_field(payload.get("status")) or "active",
            mastery_level=text_field(payload.get("masteryLevel")),
        )


@dataclass(frozen=True)
class Character:
    """A named character in the codex."""
    id: str
    name: str
    is_protagonist: bool = False
    age: str = ""
    personality: str = ""
    current_cultivation: str = ""
    status: str = "Alive"
    relationships: Tuple[Relationship, ...] = field(default_factory=tuple)
    item_possessions: Tuple[ItemPossession, ...] = field(default_factory=tuple)
    technique_masteries: Tuple[TechniqueMastery, ...] = field(default_factory=tuple)
    arc_ids: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def has_relationships(self) -> bool:
        return len(self.relationships) > 0

    def is_related_to(self, other: Character) -> bool:
        """
        True if either side records a relationship with the other.

        A relationship row counts when its target id equals the other
        character's id, or its denormalized target name equals the
        other's name (case/whitespace-insensitive).
        """
        return self._points_at(other) or other._points_at(self)

    def _points_at(self, other: Character) -> bool:
        other_key = normalize_name(other.name)
        for relationship in self.relationships:
            if other.id and relationship.character_id == other.id:
                return True
            if other_key and normalize_name(relationship.target_name) == other_key:
                return True
        return False

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Character:
        payload = _require_mapping(payload, "Character")
        return cls(
            id=text_field(payload.get("id")),
            name=text_field(payload.get("name")),
            is_protagonist=payload.get("isProtagonist") is True,
            age=text_field(payload.get("age")),
            personality=text_field(payload.get("personality")),
            current_cultivation=text_field(payload.get("currentCultivation")),
            status=text_field(payload.get("status")) or "Alive",
            relationships=tuple(
                Relationship.from_dict(r) for r in mapping_items(payload.get("relationships"))
            ),
            item_possessions=tuple(
                ItemPossession.from_dict(p) for p in mapping_items(payload.get("itemPossessions"))
            ),
            technique_masteries=tuple(
                TechniqueMastery.from_dict(m)
                for m in mapping_items(payload.get("techniqueMasteries"))
            ),
            arc_ids=_arc_ids(payload.get("arcAssociations")),
        )


# =============================================================================
# CHAPTER RECORDS
# =============================================================================

@dataclass(frozen=True)
class Scene:
    """A scene inside a chapter."""
    id: str
    number: int = 0
    title: str = ""
    content: str = ""
    summary: str = ""
    chapter_id: str = ""

    @property
    def text(self) -> str:
        """Content, falling back to the summary when there is no content."""
        return self.content or self.summary or ""

    @property
    def display_name(self) -> str:
        return self.title or f"Scene {self.number}"

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Scene:
        payload = _require_mapping(payload, "Scene")
        return cls(
            id=text_field(payload.get("id")),
            number=int_field(payload.get("number")) or 0,
            title=text_field(payload.get("title")),
            content=text_field(payload.get("content")),
            summary=text_field(payload.get("summary")),
            chapter_id=text_field(payload.get("chapterId")),
        )


@dataclass(frozen=True)
class Chapter:
    """
    A chapter of the novel.

    ``number`` is monotonic within a novel and drives ordering and arc
    range containment. Content is always re-read; nothing is indexed.
    """
    id: str
    number: int
    content: str = ""
    summary: str = ""
    title: str = ""
    scenes: Tuple[Scene, ...] = field(default_factory=tuple)

    @property
    def text(self) -> str:
        """Content, falling back to the summary when there is no content."""
        return self.content or self.summary or ""

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Chapter:
        payload = _require_mapping(payload, "Chapter")
        return cls(
            id=text_field(payload.get("id")),
            number=int_field(payload.get("number")) or 0,
            content=text_field(payload.get("content")),
            summary=text_field(payload.get("summary")),
            title=text_field(payload.get("title")),
            scenes=tuple(Scene.from_dict(s) for s in mapping_items(payload.get("scenes"))),
        )


@dataclass(frozen=True)
class Arc:
    """A plot arc from the plot ledger."""
    id: str
    title: str
    status: str = ""
    started_at_chapter: Optional[int] = None
    ended_at_chapter: Optional[int] = None
    description: str = ""

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Arc:
        payload = _require_mapping(payload, "Arc")
        return cls(
            id=text_field(payload.get("id")),
            title=text_field(payload.get("title")),
            status=text_field(payload.get("status")),
            started_at_chapter=int_field(payload.get("startedAtChapter")),
            ended_at_chapter=int_field(payload.get("endedAtChapter")),
            description=text_field(payload.get("description")),
        )


# =============================================================================
# WORLD RECORDS
# =============================================================================

@dataclass(frozen=True)
class Item:
    """An item in the novel's item registry."""
    id: str
    name: str
    category: str = ""
    description: str = ""
    first_appeared_chapter: Optional[int] = None
    last_referenced_chapter: Optional[int] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Item:
        payload = _require_mapping(payload, "Item")
        return cls(
            id=text_field(payload.get("id")),
            name=text_field(payload.get("name")),
            category=text_field(payload.get("category")),
            description=text_field(payload.get("description")),
            first_appeared_chapter=int_field(payload.get("firstAppearedChapter")),
            last_referenced_chapter=int_field(payload.get("lastReferencedChapter")),
        )


@dataclass(frozen=True)
class Technique:
    """A technique in the novel's technique registry."""
    id: str
    name: str
    category: str = ""
    type: str = ""
    description: str = ""
    first_appeared_chapter: Optional[int] = None
    last_referenced_chapter: Optional[int] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Technique:
        payload = _require_mapping(payload, "Technique")
        return cls(
            id=text_field(payload.get("id")),
            name=text_field(payload.get("name")),
            category=text_field(payload.get("category")),
            type=text_field(payload.get("type")),
            description=text_field(payload.get("description")),
            first_appeared_chapter=int_field(payload.get("firstAppearedChapter")),
            last_referenced_chapter=int_field(payload.get("lastReferencedChapter")),
        )


@dataclass(frozen=True)
class Antagonist:
    """An antagonist (individual, group, system, ...)."""
    id: str
    name: str
    type: str = ""
    status: str = ""
    threat_level: str = ""
    description: str = ""
    motivation: str = ""
    first_appeared_chapter: Optional[int] = None
    last_appeared_chapter: Optional[int] = None
    arc_ids: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def is_associated_with(self, arc: Arc) -> bool:
        return arc.id in self.arc_ids

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Antagonist:
        payload = _require_mapping(payload, "Antagonist")
        return cls(
            id=text_field(payload.get("id")),
            name=text_field(payload.get("name")),
            type=text_field(payload.get("type")),
            status=text_field(payload.get("status")),
            threat_level=text_field(payload.get("threatLevel")),
            description=text_field(payload.get("description")),
            motivation=text_field(payload.get("motivation")),
            first_appeared_chapter=int_field(payload.get("firstAppearedChapter")),
            last_appeared_chapter=int_field(payload.get("lastAppearedChapter")),
            arc_ids=_arc_ids(payload.get("arcAssociations")),
        )


@dataclass(frozen=True)
class WorldEntry:
    """A world-bible entry."""
    id: str
    title: str
    category: str = ""
    content: str = ""

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> WorldEntry:
        payload = _require_mapping(payload, "WorldEntry")
        return cls(
            id=text_field(payload.get("id")),
            title=text_field(payload.get("title")),
            category=text_field(payload.get("category")),
            content=text_field(payload.get("content")),
        )


# =============================================================================
# SNAPSHOT
# =============================================================================

def _records(cls, value: Any) -> tuple:
    return tuple(cls.from_dict(entry) for entry in mapping_items(value))


@dataclass(frozen=True)
class NovelState:
    """
    Read-only aggregate of everything the analyzers consume.

    Each call receives its own snapshot; analyzers never write back.
    """
    characters: Tuple[Character, ...] = field(default_factory=tuple)
    chapters: Tuple[Chapter, ...] = field(default_factory=tuple)
    arcs: Tuple[Arc, ...] = field(default_factory=tuple)
    items: Tuple[Item, ...] = field(default_factory=tuple)
    techniques: Tuple[Technique, ...] = field(default_factory=tuple)
    antagonists: Tuple[Antagonist, ...] = field(default_factory=tuple)
    world_entries: Tuple[WorldEntry, ...] = field(default_factory=tuple)
    id: str = ""
    title: str = ""

    @property
    def active_arc(self) -> Optional[Arc]:
        """The first arc whose status is 'active', if any."""
        return next((arc for arc in self.arcs if arc.is_active), None)

    @property
    def protagonists(self) -> Tuple[Character, ...]:
        return tuple(c for c in self.characters if c.is_protagonist)

    def chapter_by_number(self, number: int) -> Optional[Chapter]:
        return next((c for c in self.chapters if c.number == number), None)

    def chapters_with(self, extra: Iterable[Chapter]) -> Tuple[Chapter, ...]:
        """Snapshot chapters plus any extra chapter whose number is not present yet."""
        known = {c.number for c in self.chapters}
        added = []
        for chapter in extra:
            if chapter.number not in known:
                known.add(chapter.number)
                added.append(chapter)
        return self.chapters + tuple(added)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> NovelState:
        payload = _require_mapping(payload, "NovelState")
        return cls(
            characters=_records(Character, payload.get("characterCodex")),
            chapters=_records(Chapter, payload.get("chapters")),
            arcs=_records(Arc, payload.get("plotLedger")),
            items=_records(Item, payload.get("novelItems")),
            techniques=_records(Technique, payload.get("novelTechniques")),
            antagonists=_records(Antagonist, payload.get("antagonists")),
            world_entries=_records(WorldEntry, payload.get("worldBible")),
            id=text_field(payload.get("id")),
            title=text_field(payload.get("title")),
        )
