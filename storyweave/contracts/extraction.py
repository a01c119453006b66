"""
Extraction Contracts

The structured payload an LLM extraction step produces after a chapter
is generated, and the previews / trust score derived from it before
anything is merged into persistent state.

Every payload field is optional. Parsing never rejects an entry; blank
names are filtered later by the preview step so they can be counted.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .findings import Connection
from .story import (
    Antagonist, Character, Item, NovelState, Relationship, Technique, WorldEntry,
    _require_mapping, int_field, mapping_items, text_field,
)


# =============================================================================
# RAW EXTRACTION PAYLOAD
# =============================================================================

@dataclass(frozen=True)
class CharacterUpsert:
    name: str
    is_new: bool = False
    updates: Dict[str, Any] = field(default_factory=dict)
    relationships: Tuple[Relationship, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> CharacterUpsert:
        payload = _require_mapping(payload, "CharacterUpsert")
        updates = payload.get("set")
        return cls(
            name=text_field(payload.get("name")),
            is_new=payload.get("isNew") is True,
            updates=dict(updates) if isinstance(updates, Mapping) else {},
            relationships=tuple(
                Relationship.from_dict(r) for r in mapping_items(payload.get("relationships"))
            ),
        )


@dataclass(frozen=True)
class ItemUpdate:
    name: str
    action: str = ""
    category: str = ""
    description: str = ""
    character_name: str = ""

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> ItemUpdate:
        payload = _require_mapping(payload, "ItemUpdate")
        return cls(
            name=text_field(payload.get("name")),
            action=text_field(payload.get("action")),
            category=text_field(payload.get("category")),
            description=text_field(payload.get("description")),
            character_name=text_field(payload.get("characterName")),
        )


@dataclass(frozen=True)
class TechniqueUpdate:
    name: str
    action: str = ""
    category: str = ""
    type: str = ""
    description: str = ""
    character_name: str = ""
    mastery_level: str = ""

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> TechniqueUpdate:
        payload = _require_mapping(payload, "TechniqueUpdate")
        return cls(
            name=text_field(payload.get("name")),
            action=text_field(payload.get("action")),
            category=text_field(payload.get("category")),
            type=text_field(payload.get("type")),
            description=text_field(payload.get("description")),
            character_name=text_field(payload.get("characterName")),
            mastery_level=text_field(payload.get("masteryLevel")),
        )


@dataclass(frozen=True)
class AntagonistUpdate:
    name: str
    action: str = ""
    type: str = ""
    threat_level: str = ""
    description: str = ""
    motivation: str = ""
    status: str = ""

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> AntagonistUpdate:
        payload = _require_mapping(payload, "AntagonistUpdate")
        return cls(
            name=text_field(payload.get("name")),
            action=text_field(payload.get("action")),
            type=text_field(payload.get("type")),
            threat_level=text_field(payload.get("threatLevel")),
            description=text_field(payload.get("description")),
            motivation=text_field(payload.get("motivation")),
            status=text_field(payload.get("status")),
        )


@dataclass(frozen=True)
class SceneExtraction:
    number: int = 0
    title: str = ""
    summary: str = ""
    content_excerpt: str = ""

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> SceneExtraction:
        payload = _require_mapping(payload, "SceneExtraction")
        return cls(
            number=int_field(payload.get("number")) or 0,
            title=text_field(payload.get("title")),
            summary=text_field(payload.get("summary")),
            content_excerpt=text_field(payload.get("contentExcerpt")),
        )


@dataclass(frozen=True)
class WorldEntryUpsert:
    title: str
    category: str = ""
    content: str = ""

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> WorldEntryUpsert:
        payload = _require_mapping(payload, "WorldEntryUpsert")
        return cls(
            title=text_field(payload.get("title")),
            category=text_field(payload.get("category")),
            content=text_field(payload.get("content")),
        )


@dataclass(frozen=True)
class Extraction:
    """Post-chapter extraction payload."""
    character_upserts: Tuple[CharacterUpsert, ...] = field(default_factory=tuple)
    item_updates: Tuple[ItemUpdate, ...] = field(default_factory=tuple)
    technique_updates: Tuple[TechniqueUpdate, ...] = field(default_factory=tuple)
    antagonist_updates: Tuple[AntagonistUpdate, ...] = field(default_factory=tuple)
    scenes: Tuple[SceneExtraction, ...] = field(default_factory=tuple)
    world_entry_upserts: Tuple[WorldEntryUpsert, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Extraction:
        payload = _require_mapping(payload, "Extraction")
        return cls(
            character_upserts=tuple(
                CharacterUpsert.from_dict(e) for e in mapping_items(payload.get("characterUpserts"))
            ),
            item_updates=tuple(
                ItemUpdate.from_dict(e) for e in mapping_items(payload.get("itemUpdates"))
            ),
            technique_updates=tuple(
                TechniqueUpdate.from_dict(e) for e in mapping_items(payload.get("techniqueUpdates"))
            ),
            antagonist_updates=tuple(
                AntagonistUpdate.from_dict(e) for e in mapping_items(payload.get("antagonistUpdates"))
            ),
            scenes=tuple(
                SceneExtraction.from_dict(e) for e in mapping_items(payload.get("scenes"))
            ),
            world_entry_upserts=tuple(
                WorldEntryUpsert.from_dict(e) for e in mapping_items(payload.get("worldEntryUpserts"))
            ),
        )

    @classmethod
    def coerce(cls, payload: Union[Extraction, Mapping[str, Any]]) -> Extraction:
        """Accept either a parsed Extraction or its raw mapping."""
        if isinstance(payload, Extraction):
            return payload
        return cls.from_dict(payload)


@dataclass(frozen=True)
class ExistingRecords:
    """The slice of persisted state an extraction is compared against."""
    characters: Tuple[Character, ...] = field(default_factory=tuple)
    items: Tuple[Item, ...] = field(default_factory=tuple)
    techniques: Tuple[Technique, ...] = field(default_factory=tuple)
    antagonists: Tuple[Antagonist, ...] = field(default_factory=tuple)
    world_entries: Tuple[WorldEntry, ...] = field(default_factory=tuple)

    @classmethod
    def from_state(cls, state: NovelState) -> ExistingRecords:
        return cls(
            characters=state.characters,
            items=state.items,
            techniques=state.techniques,
            antagonists=state.antagonists,
            world_entries=state.world_entries,
        )


# =============================================================================
# PREVIEWS
# =============================================================================

class PreviewAction(Enum):
    CREATE = "create"
    UPDATE = "update"
    MERGE = "merge"


@dataclass(frozen=True)
class CharacterPreview:
    name: str
    action: PreviewAction
    confidence: float
    warnings: Tuple[str, ...] = field(default_factory=tuple)
    can_auto_apply: bool = False
    existing: Optional[Character] = None
    new_data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ItemPreview:
    name: str
    action: PreviewAction
    confidence: float
    warnings: Tuple[str, ...] = field(default_factory=tuple)
    can_auto_apply: bool = False
    existing: Optional[Item] = None
    new_data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TechniquePreview:
    name: str
    action: PreviewAction
    confidence: float
    warnings: Tuple[str, ...] = field(default_factory=tuple)
    can_auto_apply: bool = False
    existing: Optional[Technique] = None
    new_data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AntagonistPreview:
    name: str
    action: PreviewAction
    confidence: float
    warnings: Tuple[str, ...] = field(default_factory=tuple)
    can_auto_apply: bool = False
    existing: Optional[Antagonist] = None
    new_data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ScenePreview:
    number: int
    title: str
    confidence: float
    word_count: int = 0
    warnings: Tuple[str, ...] = field(default_factory=tuple)
    can_auto_apply: bool = False


@dataclass(frozen=True)
class WorldEntryPreview:
    title: str
    category: str
    action: PreviewAction
    confidence: float
    warnings: Tuple[str, ...] = field(default_factory=tuple)
    can_auto_apply: bool = False
    existing: Optional[WorldEntry] = None


@dataclass(frozen=True)
class ConnectionPreview:
    connection: Connection
    can_auto_apply: bool
    reason: str


@dataclass(frozen=True)
class ExtractionPreview:
    """
    Everything one chapter's extraction would change, with per-entry
    confidence. Created per generation cycle and discarded after the
    merge decision.
    """
    characters: Tuple[CharacterPreview, ...] = field(default_factory=tuple)
    items: Tuple[ItemPreview, ...] = field(default_factory=tuple)
    techniques: Tuple[TechniquePreview, ...] = field(default_factory=tuple)
    antagonists: Tuple[AntagonistPreview, ...] = field(default_factory=tuple)
    scenes: Tuple[ScenePreview, ...] = field(default_factory=tuple)
    world_entries: Tuple[WorldEntryPreview, ...] = field(default_factory=tuple)
    connections: Tuple[ConnectionPreview, ...] = field(default_factory=tuple)
    overall_confidence: float = 0.0
    warnings: Tuple[str, ...] = field(default_factory=tuple)
    suggestions: Tuple[str, ...] = field(default_factory=tuple)

    def entries(self) -> tuple:
        """Every per-entity preview across all categories (connections excluded)."""
        return (
            self.characters + self.items + self.techniques
            + self.antagonists + self.scenes + self.world_entries
        )


# =============================================================================
# TRUST SCORE
# =============================================================================

@dataclass(frozen=True)
class TrustFactors:
    high_confidence_extractions: int = 0
    low_confidence_extractions: int = 0
    missing_required_fields: int = 0
    inconsistencies: int = 0
    warnings: int = 0


@dataclass(frozen=True)
class TrustScore:
    """Aggregate 0-100 trust in an extraction, with weighted sub-scores."""
    overall: int
    extraction_quality: int
    connection_quality: int
    data_completeness: int
    consistency_score: int
    factors: TrustFactors = field(default_factory=TrustFactors)
