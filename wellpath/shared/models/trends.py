"""Metric time-series, trend and insight domain models.

MetricSample is the uniform append-only observation type: questionnaire
totals and free-form intensity ratings (anxiety, stress, sleep quality,
pain) are all tracked as samples. TrendResult and Insight are transient,
recomputed from samples on demand and never persisted.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Tuple


class TrendDirection(Enum):
    """Raw direction of change. Carries no good/bad meaning on its own."""
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class Polarity(Enum):
    """Whether rising values of a metric are an improvement."""
    HIGHER_IS_BETTER = "higher_is_better"
    LOWER_IS_BETTER = "lower_is_better"


class TrendOutcome(Enum):
    """Direction interpreted through a metric's polarity."""
    IMPROVING = "improving"
    WORSENING = "worsening"
    STABLE = "stable"


class InsightCategory(Enum):
    POSITIVE = "positive"
    WARNING = "warning"
    INFO = "info"


class MetricFamily(Enum):
    """Metric families differ in how much change counts as noise."""
    INTENSITY = "intensity"   # 0-10 ratings and questionnaire totals
    FREQUENCY = "frequency"   # event counts per window


@dataclass(frozen=True)
class MetricSample:
    """One timestamped numeric observation owned by a subject."""
    subject_id: str
    metric_name: str
    value: float
    recorded_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject_id": self.subject_id,
            "metric_name": self.metric_name,
            "value": self.value,
            "recorded_at": self.recorded_at.isoformat(),
        }


@dataclass(frozen=True)
class MetricDefinition:
    """Declared attributes of a tracked metric.

    Polarity lives here, with the metric, so every consumer labels
    improvement the same way.
    """
    name: str
    label: str
    polarity: Polarity
    deadband_percent: float
    family: MetricFamily = MetricFamily.INTENSITY


@dataclass(frozen=True)
class TrendResult:
    """Period-over-period comparison of one metric.

    Averages and changes are kept unrounded so they survive serialization
    exactly. Polarity is only used by the outcome property; direction is
    computed from the numbers alone.
    """
    metric_name: str
    current_average: float
    previous_average: float
    absolute_change: float
    percent_change: float
    direction: TrendDirection
    polarity: Polarity
    current_count: int = 0
    previous_count: int = 0

    @property
    def outcome(self) -> TrendOutcome:
        if self.direction == TrendDirection.STABLE:
            return TrendOutcome.STABLE
        rising = self.direction == TrendDirection.UP
        if rising == (self.polarity == Polarity.HIGHER_IS_BETTER):
            return TrendOutcome.IMPROVING
        return TrendOutcome.WORSENING

    @property
    def is_empty(self) -> bool:
        """True when neither window held any samples."""
        return self.current_count == 0 and self.previous_count == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metric_name": self.metric_name,
            "current_average": self.current_average,
            "previous_average": self.previous_average,
            "absolute_change": self.absolute_change,
            "percent_change": self.percent_change,
            "direction": self.direction.value,
            "polarity": self.polarity.value,
            "outcome": self.outcome.value,
            "current_count": self.current_count,
            "previous_count": self.previous_count,
        }


@dataclass(frozen=True)
class Insight:
    """A rendered, human-readable observation about one or more trends."""
    category: InsightCategory
    message: str
    rule_id: str
    metrics: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "message": self.message,
            "rule_id": self.rule_id,
            "metrics": list(self.metrics),
        }
