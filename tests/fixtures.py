"""
Story Fixtures

Small, explicit builders for snapshot records used across the test
modules.

RULES:
======
1. Every fixture is EXPLICIT, never random (hypothesis lives in
   test_properties.py)
2. Ids are derived from names so assertions can refer to them
"""

from __future__ import annotations
from typing import Iterable, Optional, Sequence

from storyweave.contracts import (
    Antagonist, Arc, Chapter, Character, Item, ItemPossession, NovelState,
    Relationship, Scene, Technique, TechniqueMastery, WorldEntry,
)


def slug(name: str) -> str:
    return name.lower().replace(' ', '_')


def character(
    name: str,
    protagonist: bool = False,
    related_to: Sequence[str] = (),
    items: Sequence[str] = (),
    techniques: Sequence[str] = (),
    arcs: Sequence[str] = (),
) -> Character:
    return Character(
        id=f"char_{slug(name)}",
        name=name,
        is_protagonist=protagonist,
        relationships=tuple(
            Relationship(character_id=f"char_{slug(t)}", type="ally", target_name=t)
            for t in related_to
        ),
        item_possessions=tuple(ItemPossession(item_id=i) for i in items),
        technique_masteries=tuple(TechniqueMastery(technique_id=t) for t in techniques),
        arc_ids=tuple(arcs),
    )


def chapter(number: int, content: str = "", summary: str = "",
            scenes: Iterable[Scene] = ()) -> Chapter:
    return Chapter(
        id=f"ch_{number}",
        number=number,
        content=content,
        summary=summary,
        title=f"Chapter {number}",
        scenes=tuple(scenes),
    )


def scene(scene_id: str, content: str = "", title: str = "", number: int = 1,
          summary: str = "") -> Scene:
    return Scene(id=scene_id, number=number, title=title, content=content, summary=summary)


def active_arc(start: Optional[int] = 1, arc_id: str = "arc_1",
               title: str = "The Trial") -> Arc:
    return Arc(id=arc_id, title=title, status="active", started_at_chapter=start)


def item(name: str, first: Optional[int] = None) -> Item:
    return Item(id=f"item_{slug(name)}", name=name, category="artifact",
                first_appeared_chapter=first)


def technique(name: str, first: Optional[int] = None) -> Technique:
    return Technique(id=f"tech_{slug(name)}", name=name, category="combat",
                     type="basic", first_appeared_chapter=first)


def antagonist(name: str, first: Optional[int] = None, last: Optional[int] = None,
               status: str = "active", arcs: Sequence[str] = ()) -> Antagonist:
    return Antagonist(
        id=f"ant_{slug(name)}",
        name=name,
        type="individual",
        status=status,
        first_appeared_chapter=first,
        last_appeared_chapter=last,
        arc_ids=tuple(arcs),
    )


def world_entry(title: str, content: str) -> WorldEntry:
    return WorldEntry(id=f"world_{slug(title)}", title=title, category="Geography",
                      content=content)


def state(**kwargs) -> NovelState:
    """NovelState from keyword lists; every collection becomes a tuple."""
    return NovelState(**{key: tuple(value) for key, value in kwargs.items()})


LONG_SCENE_TEXT = (
    "The wind carried ash across the empty courtyard while the old bell tolled "
    "three times and the lanterns guttered one by one in the cold evening air."
)

FULL_CAST_PAYLOAD = {
    "id": "novel_1",
    "title": "Ashes of the Jade Sect",
    "characterCodex": [
        {
            "id": "char_mei_lin",
            "name": "Mei Lin",
            "isProtagonist": True,
            "personality": "Stubborn",
            "relationships": [
                {"characterId": "char_old_chen", "type": "mentor", "targetName": "Old Chen"},
            ],
            "itemPossessions": [{"itemId": "item_jade_pendant", "status": "active"}],
            "arcAssociations": [{"arcId": "arc_1"}],
        },
        {"id": "char_old_chen", "name": "Old Chen", "relationships": None},
        {"id": "char_bo_wen", "name": "Bo Wen"},
    ],
    "chapters": [
        {
            "id": "ch_1",
            "number": 1,
            "content": "Mei Lin trained with Old Chen until the lamps went out.",
            "scenes": [{"id": "sc_1", "number": 1, "title": "Lamps", "content": "Mei Lin trained."}],
        },
        {"id": "ch_2", "number": 2, "content": "Mei Lin met Bo Wen at the gate.", "scenes": "bad"},
    ],
    "plotLedger": [
        {"id": "arc_1", "title": "The Trial", "status": "active", "startedAtChapter": 1},
    ],
    "novelItems": [
        {"id": "item_jade_pendant", "name": "Jade Pendant", "firstAppearedChapter": 1},
        "not-a-mapping",
    ],
    "novelTechniques": [],
    "antagonists": [
        {
            "id": "ant_gu",
            "name": "Master Gu",
            "status": "active",
            "firstAppearedChapter": 2,
            "arcAssociations": [],
        },
    ],
    "worldBible": [{"id": "w1", "title": "Jade Sect", "content": "A sect."}],
}
