"""
Auto-Connection Proposer Tests
"""

import pytest

from storyweave.config import ConnectionConfig
from storyweave.contracts import ConnectionType
from storyweave.core.connections import (
    analyze_auto_connections, connect_antagonists_to_arc, connect_characters_to_arcs,
    connect_characters_to_scenes, connect_items_to_arc, connect_techniques_to_arc,
    detect_character_relationships, name_mention_confidence,
)
from tests.fixtures import (
    active_arc, antagonist, chapter, character, item, scene, state, technique,
)

MEI = character("Mei Lin", protagonist=True)
BO = character("Bo Wen")


class TestNameMentionConfidence:

    @pytest.mark.parametrize("text,expected", [
        ("Mei Lin ran.", 0.7),
        ("Mei Lin ran. Mei Lin fell.", 0.75),
        ("mei lin " * 10, 0.95),
        ("Lin saw Mei.", 0.6),
        ("Mei waited.", 0.4),
        ("Nobody waited.", 0.2),
    ])
    def test_levels(self, text, expected):
        assert name_mention_confidence("Mei Lin", text) == pytest.approx(expected)

    def test_metacharacters_in_name(self):
        assert name_mention_confidence("A.J. (Ace)", "A.J. (Ace) and A.J. (Ace)") == \
            pytest.approx(0.75)


class TestCharacterScene:

    def test_mentioned_character_linked(self):
        scenes = [scene("sc_1", "Mei Lin drew her sword.", title="Duel"),
                  scene("sc_2", "Bo Wen hid.", number=2)]
        connections = connect_characters_to_scenes([MEI, BO], scenes)
        pairs = [(c.source_name, c.target_name) for c in connections]
        assert pairs == [("Mei Lin", "Duel"), ("Bo Wen", "Scene 2")]
        assert connections[0].type is ConnectionType.CHARACTER_SCENE
        assert connections[0].confidence == pytest.approx(0.7)

    def test_empty_scene_skipped(self):
        assert connect_characters_to_scenes([MEI], [scene("sc_1")]) == []

    def test_three_mentions_reach_high_confidence(self):
        scenes = [scene("sc_1", "Mei Lin bowed. Mei Lin rose. Mei Lin left.")]
        confidence = connect_characters_to_scenes([MEI], scenes)[0].confidence
        assert confidence == 0.8
        assert confidence >= ConnectionConfig().high_confidence_threshold


class TestCharacterArc:

    def test_two_arc_chapters_qualify(self):
        chapters = [chapter(n, "Mei Lin trained.") for n in (1, 2, 3)]
        connections = connect_characters_to_arcs([MEI, BO], active_arc(start=1), chapters, 3)
        assert len(connections) == 1
        assert connections[0].source_id == MEI.id
        assert connections[0].confidence == pytest.approx(0.9)
        assert connections[0].reason == "Character appears in 3 chapters of this arc"

    def test_chapters_after_current_are_ignored(self):
        chapters = [chapter(n, "Mei Lin trained.") for n in (2, 5, 6)]
        assert connect_characters_to_arcs([MEI], active_arc(start=1), chapters, 3) == []

    def test_arc_not_started(self):
        chapters = [chapter(n, "Mei Lin trained.") for n in (1, 2)]
        assert connect_characters_to_arcs([MEI], active_arc(start=5), chapters, 2) == []
        assert connect_characters_to_arcs([MEI], None, chapters, 2) == []


class TestRegistryArc:

    def test_items_discovered_during_arc(self):
        items = [item("Jade Pendant", first=4), item("Old Key", first=1),
                 item("Lost Map"), item("Iron Token", first=2)]
        connections = connect_items_to_arc(items, active_arc(start=3), 2)
        assert [c.source_name for c in connections] == ["Jade Pendant", "Iron Token"]
        assert all(c.confidence == pytest.approx(0.85) for c in connections)

    def test_techniques_without_arc(self):
        assert connect_techniques_to_arc([technique("Step", first=1)], None, 1) == []

    def test_techniques_discovered_now(self):
        connections = connect_techniques_to_arc([technique("Falling Leaf Step", first=5)],
                                                active_arc(start=1), 5)
        assert connections[0].type is ConnectionType.TECHNIQUE_ARC
        assert connections[0].reason == "Technique learned during active arc"


class TestRelationships:

    def test_recent_co_appearances(self):
        chapters = [chapter(n, "Mei Lin and Bo Wen talked.") for n in (6, 7)]
        connections = detect_character_relationships([MEI, BO], chapters)
        assert len(connections) == 1
        assert connections[0].source_id == MEI.id
        assert connections[0].target_id == BO.id
        assert connections[0].confidence == pytest.approx(0.7)

    def test_only_recent_window_counts(self):
        chapters = [chapter(n, "Mei Lin and Bo Wen talked.") for n in (1, 2)]
        chapters += [chapter(n, "Rain fell.") for n in (3, 4, 5, 6, 7)]
        assert detect_character_relationships([MEI, BO], chapters) == []
        wide = ConnectionConfig(recent_chapter_window=10)
        assert len(detect_character_relationships([MEI, BO], chapters, wide)) == 1

    def test_existing_relationship_either_direction(self):
        chapters = [chapter(n, "Mei Lin and Bo Wen talked.") for n in (1, 2)]
        related_bo = character("Bo Wen", related_to=("mei lin ",))
        assert detect_character_relationships([MEI, related_bo], chapters) == []

    def test_input_order_untouched(self):
        chapters = [chapter(1, "a"), chapter(3, "b"), chapter(2, "c")]
        detect_character_relationships([MEI], chapters)
        assert [c.number for c in chapters] == [1, 3, 2]


class TestAntagonistArc:

    def test_first_appeared_during_arc(self):
        result = connect_antagonists_to_arc([antagonist("Master Gu", first=4)],
                                            active_arc(start=3), 5)
        assert result[0].confidence == pytest.approx(0.9)

    def test_appeared_in_current_chapter(self):
        result = connect_antagonists_to_arc([antagonist("Master Gu", first=1, last=5)],
                                            active_arc(start=3), 5)
        assert result[0].confidence == pytest.approx(0.75)

    def test_already_associated(self):
        villain = antagonist("Master Gu", first=4, arcs=("arc_1",))
        assert connect_antagonists_to_arc([villain], active_arc(start=3), 5) == []


class TestAnalyzeAutoConnections:

    def test_nothing_to_connect(self):
        result = analyze_auto_connections(state(), chapter(1, "Silence."))
        assert result.success is True
        assert result.connections == ()
        assert result.suggestions == (
            "No automatic connections detected. This may be normal for early chapters.",
        )
        assert result.warnings == ("No active arc. Arc connections were skipped.",)

    def test_new_chapter_joins_corpus(self):
        novel = state(
            characters=[MEI, BO],
            chapters=[chapter(1, "Mei Lin met Bo Wen.")],
            arcs=[active_arc(start=1)],
        )
        result = analyze_auto_connections(novel, chapter(2, "Mei Lin followed Bo Wen."))
        assert len(result.of_type(ConnectionType.RELATIONSHIP)) == 1
        assert len(result.of_type(ConnectionType.CHARACTER_ARC)) == 2
        assert result.warnings == ()

    def test_extracted_records_deduplicated(self):
        pendant = item("Jade Pendant", first=2)
        novel = state(characters=[MEI], arcs=[active_arc(start=1)], items=[pendant])
        result = analyze_auto_connections(
            novel, chapter(2, "Quiet."),
            extracted_items=[pendant, item("jade pendant", first=2), item("Iron Token", first=2)],
        )
        names = [c.source_name for c in result.of_type(ConnectionType.ITEM_ARC)]
        assert names == ["Jade Pendant", "Iron Token"]

    def test_suggestion_tally(self):
        novel = state(characters=[MEI], arcs=[active_arc(start=1)])
        result = analyze_auto_connections(
            novel, chapter(2, "Quiet."),
            extracted_scenes=[scene("sc_1", "Mei Lin waited.")],
            extracted_items=[item("Iron Token", first=2)],
        )
        assert result.suggestions == (
            "Found 2 potential connections to automate.",
            "- 1 character scene connection(s)",
            "- 1 item arc connection(s)",
            "1 high-confidence connection(s) recommended for automatic application.",
        )
