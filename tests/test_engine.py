"""
Engine Integration Tests
========================

The facade runs the full post-generation flow over a raw camelCase
snapshot, exactly as the calling layer hands it over.
"""

import logging

import pytest

from storyweave import (
    ConsistencyEngine, EngineConfig, SnapshotError, StoryweaveError, setup_logging,
)
from storyweave.config import ConnectionConfig, GapConfig, TransitionConfig
from storyweave.contracts import ConnectionType, GapType, PreviewAction
from tests.fixtures import FULL_CAST_PAYLOAD, chapter

CHAPTER_3 = chapter(3, "Mei Lin and Bo Wen climbed toward the gate together.")


@pytest.fixture
def engine():
    return ConsistencyEngine()


@pytest.fixture
def package_logger():
    yield
    logger = logging.getLogger("storyweave")
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logging.captureWarnings(False)


class TestReviewChapter:

    def test_full_cycle_without_extraction(self, engine):
        review = engine.review_chapter(FULL_CAST_PAYLOAD, CHAPTER_3)
        assert review.chapter_number == 3
        assert review.gaps.of_type(GapType.ANTAGONIST_WITHOUT_ARC)
        assert review.gaps.of_type(GapType.INCOMPLETE_WORLD_ENTRY)
        assert len(review.connections.of_type(ConnectionType.RELATIONSHIP)) == 1
        assert len(review.connections.of_type(ConnectionType.ANTAGONIST_ARC)) == 1
        assert review.preview is None
        assert review.trust is None
        assert review.trust_explanation == ()

    def test_previous_chapter_found_in_snapshot(self, engine):
        review = engine.review_chapter(FULL_CAST_PAYLOAD, CHAPTER_3)
        assert review.transition is not None
        assert 0 <= review.transition.score <= 100

    def test_with_extraction(self, engine):
        extraction = {"characterUpserts": [{"name": "Bo Wen", "set": {"personality": "Quiet"}}]}
        review = engine.review_chapter(FULL_CAST_PAYLOAD, CHAPTER_3, extraction=extraction)
        assert review.preview.characters[0].action is PreviewAction.UPDATE
        assert review.trust is not None
        assert len(review.trust_explanation) >= 1

    def test_no_previous_chapter(self, engine):
        review = engine.review_chapter(FULL_CAST_PAYLOAD, chapter(10, "Mei Lin rested."))
        assert review.transition is None
        assert review.transition_ok is True

    def test_explicit_previous_chapter(self, engine):
        previous = chapter(9, "Mei Lin drew her sword.")
        review = engine.review_chapter(FULL_CAST_PAYLOAD, chapter(10, "Mei Lin struck."),
                                       previous_chapter=previous)
        assert review.transition is not None

    def test_review_is_logged(self, engine, caplog):
        with caplog.at_level(logging.INFO, logger="storyweave.engine"):
            engine.review_chapter(FULL_CAST_PAYLOAD, CHAPTER_3)
        assert "Reviewed chapter 3" in caplog.text


class TestFacade:

    def test_check_transition_first_chapter(self, engine):
        assert engine.check_transition(None, CHAPTER_3) is True

    def test_preview_without_chapter_has_no_connections(self, engine):
        preview = engine.preview_extraction({"itemUpdates": [{"name": "Iron Token"}]},
                                            FULL_CAST_PAYLOAD)
        assert preview.connections == ()
        assert len(preview.items) == 1

    def test_score_extraction_returns_explanation(self, engine):
        preview = engine.preview_extraction({}, FULL_CAST_PAYLOAD)
        score, lines = engine.score_extraction(preview)
        assert score.overall == 65
        assert lines[0].startswith("Moderate")

    def test_pre_generation_suggestions(self, engine):
        lines = engine.pre_generation_suggestions(FULL_CAST_PAYLOAD, 3)
        assert lines[0] == "1 connection(s) can be automatically made:"

    @pytest.mark.parametrize("payload", [[], "snapshot", None])
    def test_non_mapping_snapshot(self, engine, payload):
        with pytest.raises(SnapshotError):
            engine.analyze_gaps(payload, 1)

    def test_snapshot_error_hierarchy(self):
        assert issubclass(SnapshotError, StoryweaveError)
        assert issubclass(SnapshotError, ValueError)


class TestConfiguration:

    def test_defaults_filled(self):
        config = EngineConfig()
        assert config.gaps == GapConfig()
        assert config.transitions.validity_threshold == 70
        assert config.trust.extraction_weight == pytest.approx(0.35)
        assert config.connections.recent_chapter_window == 5

    def test_connection_config_reaches_preview(self):
        engine = ConsistencyEngine(EngineConfig(
            connections=ConnectionConfig(recent_chapter_window=1)
        ))
        review = engine.review_chapter(FULL_CAST_PAYLOAD, CHAPTER_3, extraction={})
        assert review.connections.of_type(ConnectionType.RELATIONSHIP) == ()
        assert [p.connection for p in review.preview.connections] == \
            list(review.connections.connections)

    def test_config_threaded_through(self):
        engine = ConsistencyEngine(EngineConfig(transitions=TransitionConfig(high_penalty=50)))
        result = engine.validate_transition(
            chapter(1, "Mei Lin drew her sword."),
            chapter(2, "The next morning, Mei Lin woke up refreshed."),
        )
        assert result.score == 0


class TestLogging:

    def test_explicit_level(self, package_logger):
        logger = setup_logging("debug")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_repeat_setup_does_not_duplicate(self, package_logger):
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1

    def test_level_from_environment(self, package_logger, monkeypatch):
        monkeypatch.setenv("STORYWEAVE_LOG_LEVEL", "warning")
        assert setup_logging().level == logging.WARNING

    def test_continuity_break_logged(self, engine, caplog):
        opening = chapter(3, "The next morning, Mei Lin woke up refreshed.")
        with caplog.at_level(logging.WARNING, logger="storyweave.engine"):
            engine.review_chapter(FULL_CAST_PAYLOAD, opening)
        assert "Chapter 3 opening breaks continuity" in caplog.text
        assert "time_skip" in caplog.text

    def test_guarded_transition_logs_warning(self, engine, caplog):
        with caplog.at_level(logging.WARNING, logger="storyweave"):
            assert engine.check_transition(object(), CHAPTER_3) is True
        assert "Transition check failed" in caplog.text
