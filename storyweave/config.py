"""
Engine Configuration

One frozen config per layer, aggregated by EngineConfig. Defaults
reproduce the thresholds the analyzers were tuned with; callers override
a section by passing their own instance.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class GapConfig:
    """Thresholds for structural gap detection."""
    min_co_appearances: int = 2
    missing_relationship_threshold: int = 3
    min_world_entry_length: int = 50
    orphaned_scene_min_length: int = 100
    pre_generation_suggestion_limit: int = 5


@dataclass(frozen=True)
class ConnectionConfig:
    """Thresholds for auto-connection proposals."""
    recent_chapter_window: int = 5
    min_arc_appearances: int = 2
    min_relationship_co_appearances: int = 2
    high_confidence_threshold: float = 0.8


@dataclass(frozen=True)
class TrustConfig:
    """Weights and cut-offs for extraction trust scoring."""
    extraction_weight: float = 0.35
    connection_weight: float = 0.25
    completeness_weight: float = 0.25
    consistency_weight: float = 0.15
    connection_auto_apply_threshold: float = 0.8
    high_confidence_cutoff: float = 0.8
    low_confidence_cutoff: float = 0.6
    warning_penalty: int = 10
    inconsistency_penalty: int = 15
    consistency_warning_penalty: int = 5


@dataclass(frozen=True)
class TransitionConfig:
    """Excerpt sizes and scoring for chapter transition validation."""
    ending_word_count: int = 300
    opening_char_count: int = 500
    validity_threshold: int = 70
    high_penalty: int = 20
    medium_penalty: int = 10
    low_penalty: int = 3


@dataclass
class EngineConfig:
    """Unified configuration for every layer."""
    gaps: Optional[GapConfig] = None
    connections: Optional[ConnectionConfig] = None
    trust: Optional[TrustConfig] = None
    transitions: Optional[TransitionConfig] = None

    def __post_init__(self):
        self.gaps = self.gaps or GapConfig()
        self.connections = self.connections or ConnectionConfig()
        self.trust = self.trust or TrustConfig()
        self.transitions = self.transitions or TransitionConfig()
