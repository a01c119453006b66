"""
Engine Orchestration Module

Single entry point composing every layer for one generation cycle.

DESIGN PRINCIPLES:
==================
1. Layers communicate ONLY through contracts
2. The engine threads configuration through, nothing else
3. No state is kept between calls; every call gets its own snapshot
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union
import logging

from .config import EngineConfig
from .contracts.extraction import ExistingRecords, Extraction, ExtractionPreview, TrustScore
from .contracts.findings import AutoConnectionResult, GapAnalysis, TransitionValidationResult
from .contracts.story import Chapter, Item, NovelState, Scene, Technique
from .core.connections import analyze_auto_connections
from .core.gaps import analyze_gaps, generate_pre_generation_suggestions
from .transitions.validator import has_good_transition, validate_chapter_transition
from .trust.preview import generate_extraction_preview
from .trust.scoring import calculate_trust_score, explain_trust_score

logger = logging.getLogger(__name__)

StateLike = Union[NovelState, Mapping[str, Any]]


@dataclass(frozen=True)
class ChapterReview:
    """Everything the engine has to say about one newly generated chapter."""
    chapter_number: int
    gaps: GapAnalysis
    connections: AutoConnectionResult
    preview: Optional[ExtractionPreview] = None
    trust: Optional[TrustScore] = None
    trust_explanation: Tuple[str, ...] = field(default_factory=tuple)
    transition: Optional[TransitionValidationResult] = None

    @property
    def transition_ok(self) -> bool:
        return self.transition is None or self.transition.is_valid


def _as_state(state: StateLike) -> NovelState:
    if isinstance(state, NovelState):
        return state
    return NovelState.from_dict(state)


class ConsistencyEngine:
    """
    Unified facade over the consistency layers.

    FLOW:
    =====
    1. Gaps: snapshot -> GapAnalysis
    2. Connections: snapshot + new chapter -> AutoConnectionResult
    3. Trust: extraction -> ExtractionPreview -> TrustScore
    4. Transitions: previous + new chapter -> TransitionValidationResult

    Snapshots may be passed as NovelState or as the raw camelCase mapping.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self._config = config or EngineConfig()

    @property
    def config(self) -> EngineConfig:
        return self._config

    # =========================================================================
    # SINGLE ANALYZERS
    # =========================================================================

    def analyze_gaps(self, state: StateLike, current_chapter_number: int) -> GapAnalysis:
        return analyze_gaps(_as_state(state), current_chapter_number, self._config.gaps)

    def pre_generation_suggestions(
        self,
        state: StateLike,
        current_chapter_number: int
    ) -> List[str]:
        return generate_pre_generation_suggestions(
            _as_state(state), current_chapter_number, self._config.gaps
        )

    def propose_connections(
        self,
        state: StateLike,
        new_chapter: Chapter,
        scenes: Sequence[Scene] = (),
        items: Sequence[Item] = (),
        techniques: Sequence[Technique] = ()
    ) -> AutoConnectionResult:
        return analyze_auto_connections(
            _as_state(state), new_chapter, scenes, items, techniques, self._config.connections
        )

    def preview_extraction(
        self,
        extraction: Union[Extraction, Mapping[str, Any]],
        state: StateLike,
        new_chapter: Optional[Chapter] = None,
        scenes: Sequence[Scene] = ()
    ) -> ExtractionPreview:
        snapshot = _as_state(state)
        return generate_extraction_preview(
            extraction,
            ExistingRecords.from_state(snapshot),
            novel_state=snapshot if new_chapter is not None else None,
            new_chapter=new_chapter,
            extracted_scenes=scenes,
            config=self._config.trust,
            connection_config=self._config.connections,
        )

    def score_extraction(self, preview: ExtractionPreview) -> Tuple[TrustScore, List[str]]:
        score = calculate_trust_score(preview, self._config.trust)
        return score, explain_trust_score(score)

    def validate_transition(
        self,
        previous_chapter: Optional[Chapter],
        new_chapter: Optional[Chapter]
    ) -> TransitionValidationResult:
        return validate_chapter_transition(
            previous_chapter, new_chapter, self._config.transitions
        )

    def check_transition(self, previous_chapter: Optional[Chapter], new_chapter: Chapter) -> bool:
        return has_good_transition(previous_chapter, new_chapter, self._config.transitions)

    # =========================================================================
    # FULL CYCLE
    # =========================================================================

    def review_chapter(
        self,
        state: StateLike,
        new_chapter: Chapter,
        extraction: Optional[Union[Extraction, Mapping[str, Any]]] = None,
        previous_chapter: Optional[Chapter] = None
    ) -> ChapterReview:
        """
        Run the whole post-generation flow once for ``new_chapter``.

        The previous chapter defaults to the snapshot's chapter numbered
        one below the new chapter, when there is one.
        """
        snapshot = _as_state(state)
        gaps = self.analyze_gaps(snapshot, new_chapter.number)
        scenes = new_chapter.scenes
        connections = self.propose_connections(snapshot, new_chapter, scenes)

        preview = trust = None
        explanation: List[str] = []
        if extraction is not None:
            preview = self.preview_extraction(extraction, snapshot, new_chapter, scenes)
            trust, explanation = self.score_extraction(preview)

        if previous_chapter is None:
            previous_chapter = snapshot.chapter_by_number(new_chapter.number - 1)
        transition = None
        if previous_chapter is not None:
            transition = self.validate_transition(previous_chapter, new_chapter)

        logger.info(
            "Reviewed chapter %d: %d gaps, %d connections, trust %s, transition %s",
            new_chapter.number,
            gaps.summary.total,
            len(connections.connections),
            trust.overall if trust else "n/a",
            transition.score if transition else "n/a",
        )
        if transition is not None and transition.high_severity_issues:
            logger.warning(
                "Chapter %d opening breaks continuity: %s",
                new_chapter.number,
                ", ".join(i.type.value for i in transition.high_severity_issues),
            )

        return ChapterReview(
            chapter_number=new_chapter.number,
            gaps=gaps,
            connections=connections,
            preview=preview,
            trust=trust,
            trust_explanation=tuple(explanation),
            transition=transition,
        )
