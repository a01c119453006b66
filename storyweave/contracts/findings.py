"""
Finding Contracts

Derived value objects produced by the analyzers: proposed connections,
structural gaps, opening analyses and transition validation results.
None of these are persisted by the engine; they are recomputed on
demand and owned by the caller.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


# =============================================================================
# CONNECTIONS
# =============================================================================

class ConnectionType(Enum):
    """Closed set of connection kinds the proposer can emit."""
    CHARACTER_SCENE = "character-scene"
    CHARACTER_ARC = "character-arc"
    ITEM_ARC = "item-arc"
    TECHNIQUE_ARC = "technique-arc"
    ANTAGONIST_ARC = "antagonist-arc"
    RELATIONSHIP = "relationship"
    WORLD_ENTRY_CHAPTER = "world-entry-chapter"

    @property
    def label(self) -> str:
        return self.value.replace('-', ' ')


@dataclass(frozen=True)
class Connection:
    """Proposed typed link between two entities. Confidence is in [0, 1]."""
    type: ConnectionType
    source_id: str
    target_id: str
    source_name: str
    target_name: str
    confidence: float
    reason: str


@dataclass(frozen=True)
class AutoConnectionResult:
    """Output of one auto-connection analysis pass."""
    success: bool
    connections: Tuple[Connection, ...] = field(default_factory=tuple)
    warnings: Tuple[str, ...] = field(default_factory=tuple)
    suggestions: Tuple[str, ...] = field(default_factory=tuple)

    def of_type(self, connection_type: ConnectionType) -> Tuple[Connection, ...]:
        return tuple(c for c in self.connections if c.type is connection_type)


# =============================================================================
# GAPS
# =============================================================================

class GapType(Enum):
    MISSING_PROTAGONIST = "missing-protagonist"
    ORPHANED_CHARACTER = "orphaned-character"
    MISSING_RELATIONSHIP = "missing-relationship"
    ORPHANED_ITEM = "orphaned-item"
    ORPHANED_TECHNIQUE = "orphaned-technique"
    CHARACTER_WITHOUT_ARC = "character-without-arc"
    ANTAGONIST_WITHOUT_ARC = "antagonist-without-arc"
    INCOMPLETE_WORLD_ENTRY = "incomplete-world-entry"
    ORPHANED_SCENE = "orphaned-scene"


class GapSeverity(Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class Gap:
    """A structural hole in the story graph."""
    type: GapType
    severity: GapSeverity
    entity_name: str
    entity_type: str
    message: str
    suggestion: str
    auto_fixable: bool
    confidence: float
    entity_id: Optional[str] = None


@dataclass(frozen=True)
class GapSummary:
    """Tallies of a gap list by severity."""
    total: int = 0
    critical: int = 0
    warnings: int = 0
    info: int = 0
    auto_fixable: int = 0


@dataclass(frozen=True)
class GapAnalysis:
    gaps: Tuple[Gap, ...]
    summary: GapSummary
    recommendations: Tuple[str, ...]

    def of_type(self, gap_type: GapType) -> Tuple[Gap, ...]:
        return tuple(g for g in self.gaps if g.type is gap_type)


# =============================================================================
# OPENING SENTENCES
# =============================================================================

class ClicheType(Enum):
    WEATHER = "weather"
    TIME_OF_DAY = "time_of_day"
    SETTING_DESCRIPTION = "setting_description"
    PASSIVE_OBSERVATION = "passive_observation"
    NONE = "none"


class ClicheSeverity(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


@dataclass(frozen=True)
class OpeningAnalysis:
    """Cliché analysis of a chapter's first sentences."""
    is_cliche: bool
    cliche_type: ClicheType
    severity: ClicheSeverity
    detected_patterns: Tuple[str, ...] = field(default_factory=tuple)
    suggestions: Tuple[str, ...] = field(default_factory=tuple)
    opening_sentences: Tuple[str, ...] = field(default_factory=tuple)


# =============================================================================
# TRANSITIONS
# =============================================================================

class IssueType(Enum):
    TIME_SKIP = "time_skip"
    LOCATION_JUMP = "location_jump"
    CHARACTER_STATE_MISMATCH = "character_state_mismatch"
    OPENING_CLICHE = "opening_cliche"
    DISCONNECTED = "disconnected"
    MISSING_REFERENCE = "missing_reference"


class IssueSeverity(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class IssueLocation(Enum):
    OPENING = "opening"
    FIRST_PARAGRAPH = "first_paragraph"
    TRANSITION = "transition"


@dataclass(frozen=True)
class TransitionIssue:
    type: IssueType
    severity: IssueSeverity
    description: str
    location: IssueLocation = IssueLocation.OPENING
    suggested_fix: Optional[str] = None


@dataclass(frozen=True)
class TransitionValidationResult:
    """Continuity verdict for one (previous, new) chapter pair. Score is 0-100."""
    is_valid: bool
    score: int
    issues: Tuple[TransitionIssue, ...] = field(default_factory=tuple)
    warnings: Tuple[str, ...] = field(default_factory=tuple)
    suggestions: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def high_severity_issues(self) -> Tuple[TransitionIssue, ...]:
        return tuple(i for i in self.issues if i.severity is IssueSeverity.HIGH)
