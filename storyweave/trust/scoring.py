"""
Trust Scoring

Aggregates an ExtractionPreview into a 0-100 TrustScore:

    overall = 0.35 * extraction_quality
            + 0.25 * connection_quality
            + 0.25 * data_completeness
            + 0.15 * consistency_score

Absence of connections is not penalized (connection quality 100).
Inconsistencies are the preview's top-level warnings; per-entry
warnings count as missing required fields.
"""

from __future__ import annotations
from typing import List, Optional
import logging
import math

from ..config import TrustConfig
from ..contracts.extraction import ExtractionPreview, TrustFactors, TrustScore

logger = logging.getLogger(__name__)


def _round(value: float) -> int:
    """Round half up, the way reported scores are rounded."""
    return int(math.floor(value + 0.5))


def calculate_trust_score(
    preview: ExtractionPreview,
    config: Optional[TrustConfig] = None
) -> TrustScore:
    config = config or TrustConfig()
    entries = preview.entries()

    extraction_quality = (
        sum(e.confidence for e in entries) / len(entries) * 100 if entries else 0.0
    )
    connection_quality = (
        sum(c.connection.confidence for c in preview.connections)
        / len(preview.connections) * 100
        if preview.connections else 100.0
    )

    total_warnings = sum(len(e.warnings) for e in entries)
    inconsistencies = len(preview.warnings)

    data_completeness = max(0, 100 - total_warnings * config.warning_penalty)
    consistency_score = max(
        0,
        100
        - inconsistencies * config.inconsistency_penalty
        - total_warnings * config.consistency_warning_penalty,
    )

    overall = (
        extraction_quality * config.extraction_weight
        + connection_quality * config.connection_weight
        + data_completeness * config.completeness_weight
        + consistency_score * config.consistency_weight
    )

    factors = TrustFactors(
        high_confidence_extractions=sum(
            1 for e in entries if e.confidence >= config.high_confidence_cutoff
        ),
        low_confidence_extractions=sum(
            1 for e in entries if e.confidence < config.low_confidence_cutoff
        ),
        missing_required_fields=total_warnings,
        inconsistencies=inconsistencies,
        warnings=len(preview.warnings),
    )

    score = TrustScore(
        overall=_round(overall),
        extraction_quality=_round(extraction_quality),
        connection_quality=_round(connection_quality),
        data_completeness=_round(data_completeness),
        consistency_score=_round(consistency_score),
        factors=factors,
    )
    logger.debug("Trust score %d over %d entries", score.overall, len(entries))
    return score


def explain_trust_score(score: TrustScore) -> List[str]:
    """Qualitative band plus one line per nonzero problem factor."""
    if score.overall >= 90:
        lines = ["Excellent: All extractions have high confidence and can be safely automated."]
    elif score.overall >= 75:
        lines = ["Good: Most extractions are reliable. Review low-confidence items."]
    elif score.overall >= 60:
        lines = ["Moderate: Some extractions need review. Check warnings before applying."]
    else:
        lines = ["Low: Many extractions need manual review. Check all warnings carefully."]

    factors = score.factors
    if factors.low_confidence_extractions > 0:
        lines.append(
            f"{factors.low_confidence_extractions} extraction(s) have low confidence "
            f"and should be reviewed."
        )
    if factors.missing_required_fields > 0:
        lines.append(
            f"{factors.missing_required_fields} field(s) are missing. "
            f"These should be filled before applying."
        )
    if factors.inconsistencies > 0:
        lines.append(
            f"{factors.inconsistencies} inconsistency(ies) detected. Review before proceeding."
        )
    return lines
