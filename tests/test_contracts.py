"""
Contract Tests
==============

Snapshot parsing must:
1. Accept the camelCase payload the calling layer holds
2. Tolerate missing keys, None values and non-list collections
3. Reject only a non-mapping payload (SnapshotError)
"""

import json

import pytest

from storyweave.contracts import (
    Chapter, Character, Connection, ConnectionType, Extraction, NovelState,
    Relationship, to_json, to_plain,
)
from storyweave.contracts.story import int_field, text_field
from storyweave.core.gaps import analyze_gaps
from storyweave.errors import SnapshotError
from tests.fixtures import FULL_CAST_PAYLOAD, chapter, character, state


class TestNovelStateParsing:

    @pytest.fixture
    def parsed(self):
        return NovelState.from_dict(FULL_CAST_PAYLOAD)

    def test_records(self, parsed):
        assert [c.name for c in parsed.characters] == ["Mei Lin", "Old Chen", "Bo Wen"]
        assert parsed.title == "Ashes of the Jade Sect"
        assert len(parsed.items) == 1
        assert parsed.active_arc.id == "arc_1"
        assert parsed.active_arc.started_at_chapter == 1

    def test_nested_collections(self, parsed):
        hero = parsed.protagonists[0]
        assert hero.arc_ids == ("arc_1",)
        assert hero.item_possessions[0].item_id == "item_jade_pendant"
        assert hero.relationships[0].target_name == "Old Chen"

    def test_lenient_fields(self, parsed):
        assert parsed.characters[1].relationships == ()
        assert parsed.characters[2].status == "Alive"
        assert parsed.chapter_by_number(2).scenes == ()
        assert parsed.chapter_by_number(1).scenes[0].title == "Lamps"
        assert parsed.antagonists[0].arc_ids == ()
        assert parsed.techniques == ()

    def test_empty_payload(self):
        assert NovelState.from_dict({}) == NovelState()

    @pytest.mark.parametrize("payload", [None, [], "state", 3])
    def test_non_mapping_rejected(self, payload):
        with pytest.raises(SnapshotError):
            NovelState.from_dict(payload)

    def test_record_parsers_reject_non_mappings(self):
        with pytest.raises(SnapshotError):
            Character.from_dict("Mei Lin")


class TestFieldCoercion:

    @pytest.mark.parametrize("value,expected", [
        (3, 3), ("3", 3), (" 4 ", 4), ("-1", -1), (2.0, 2),
        (2.5, None), (True, None), ("x", None), (None, None),
        ("--5", None), ("\u00b2", None), ("1-2", None), ("", None),
    ])
    def test_int_field(self, value, expected):
        assert int_field(value) == expected

    def test_text_field(self):
        assert text_field(None) == ""
        assert text_field(5) == "5"

    def test_malformed_chapter_number_falls_back(self):
        novel = NovelState.from_dict({"chapters": [
            {"id": "c1", "number": "--5", "content": "Mei Lin waited."},
            {"id": "c2", "number": "\u00b2", "content": "Bo Wen waited."},
        ]})
        assert [c.number for c in novel.chapters] == [0, 0]


class TestExtractionParsing:

    def test_camel_case_payload(self):
        extraction = Extraction.from_dict({
            "characterUpserts": [{"name": "Bo Wen", "isNew": True, "set": {"age": "19"}}],
            "itemUpdates": [{"name": "Iron Token", "characterName": "Bo Wen"}],
            "techniqueUpdates": [{"name": "Step", "masteryLevel": "novice"}],
            "antagonistUpdates": [{"name": "Black Crow", "threatLevel": "high"}],
            "scenes": [{"number": "2", "contentExcerpt": "Steel rang."}],
            "worldEntryUpserts": "bad",
        })
        upsert = extraction.character_upserts[0]
        assert upsert.is_new is True
        assert upsert.updates == {"age": "19"}
        assert extraction.item_updates[0].character_name == "Bo Wen"
        assert extraction.technique_updates[0].mastery_level == "novice"
        assert extraction.antagonist_updates[0].threat_level == "high"
        assert extraction.scenes[0].number == 2
        assert extraction.scenes[0].content_excerpt == "Steel rang."
        assert extraction.world_entry_upserts == ()

    def test_coerce_passes_parsed_through(self):
        extraction = Extraction()
        assert Extraction.coerce(extraction) is extraction


class TestRecordBehaviour:

    def test_relationship_counts_from_either_side(self):
        mei = character("Mei Lin", related_to=("Bo Wen",))
        bo = character("Bo Wen")
        assert mei.is_related_to(bo)
        assert bo.is_related_to(mei)
        assert not bo.is_related_to(character("Old Chen"))

    def test_relationship_by_id_only(self):
        bo = Character(
            id="char_bo_wen",
            name="Bo Wen",
            relationships=(Relationship(character_id="char_mei_lin", type="rival"),),
        )
        assert bo.is_related_to(character("Mei Lin"))

    def test_chapter_text_falls_back_to_summary(self):
        assert Chapter(id="c", number=1, summary="Short.").text == "Short."
        assert Chapter(id="c", number=1, content="Long.", summary="Short.").text == "Long."

    def test_chapters_with_skips_known_numbers(self):
        novel = state(chapters=[chapter(1, "a")])
        combined = novel.chapters_with([chapter(1, "b"), chapter(2, "c")])
        assert [c.number for c in combined] == [1, 2]
        assert combined[0].content == "a"


class TestSerialization:

    def test_gap_analysis_to_json(self):
        analysis = analyze_gaps(state(characters=[character("Bo Wen")]), 1)
        payload = json.loads(to_json(analysis))
        assert payload["gaps"][0]["type"] == "missing-protagonist"
        assert payload["gaps"][0]["severity"] == "critical"
        assert payload["summary"]["total"] == 1

    def test_to_plain_connection(self):
        connection = Connection(
            type=ConnectionType.RELATIONSHIP, source_id="a", target_id="b",
            source_name="A", target_name="B", confidence=0.7, reason="r",
        )
        assert to_plain(connection)["type"] == "relationship"
        assert ConnectionType.CHARACTER_SCENE.label == "character scene"

    def test_sets_sorted(self):
        assert to_json({"b", "a"}) == '["a", "b"]'
        assert to_json("↔") == '"↔"'
