"""Trend Service configuration and metric registry.

Each tracked metric declares its polarity and deadband once, here.
Intensity scores use a 5% deadband; event-frequency counts are noisier
and use 10%.
"""
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from wellpath.shared.models import MetricDefinition, MetricFamily, Polarity

INTENSITY_DEADBAND_PERCENT = 5.0
FREQUENCY_DEADBAND_PERCENT = 10.0

DEFAULT_WINDOW_DAYS = 30


def _intensity(name: str, label: str, polarity: Polarity) -> MetricDefinition:
    return MetricDefinition(
        name=name,
        label=label,
        polarity=polarity,
        deadband_percent=INTENSITY_DEADBAND_PERCENT,
        family=MetricFamily.INTENSITY,
    )


_DEFINITIONS: Tuple[MetricDefinition, ...] = (
    # Self-rated 0-10 symptom intensities
    _intensity("anxiety", "anxiety", Polarity.LOWER_IS_BETTER),
    _intensity("depression", "depression", Polarity.LOWER_IS_BETTER),
    _intensity("stress", "stress", Polarity.LOWER_IS_BETTER),
    _intensity("pain", "pain", Polarity.LOWER_IS_BETTER),
    _intensity("fatigue", "fatigue", Polarity.LOWER_IS_BETTER),
    _intensity("dissociation", "dissociation", Polarity.LOWER_IS_BETTER),
    _intensity("sleep", "sleep quality", Polarity.HIGHER_IS_BETTER),
    _intensity("energy", "energy", Polarity.HIGHER_IS_BETTER),

    # Questionnaire totals, keyed by instrument id
    _intensity("phq9", "PHQ-9 score", Polarity.LOWER_IS_BETTER),
    _intensity("gad7", "GAD-7 score", Polarity.LOWER_IS_BETTER),
    _intensity("pcl5", "PCL-5 score", Polarity.LOWER_IS_BETTER),
    _intensity("asrs", "ASRS score", Polarity.LOWER_IS_BETTER),
    _intensity("pss10", "PSS-10 score", Polarity.LOWER_IS_BETTER),
    _intensity("ybocs", "Y-BOCS score", Polarity.LOWER_IS_BETTER),
    _intensity("cesd", "CES-D score", Polarity.LOWER_IS_BETTER),

    # How often the subject logs entries
    MetricDefinition(
        name="entry_frequency",
        label="tracking frequency",
        polarity=Polarity.HIGHER_IS_BETTER,
        deadband_percent=FREQUENCY_DEADBAND_PERCENT,
        family=MetricFamily.FREQUENCY,
    ),
)

METRIC_DEFINITIONS: Dict[str, MetricDefinition] = {d.name: d for d in _DEFINITIONS}


def get_metric_definition(name: str) -> Optional[MetricDefinition]:
    """Registry lookup; None for metrics nobody declared."""
    return METRIC_DEFINITIONS.get(name)


@dataclass(frozen=True)
class TrendConfig:
    """Configuration for trend analysis."""

    # Length of each comparison window
    window_days: int = DEFAULT_WINDOW_DAYS

    # Used for metrics missing from the registry
    default_polarity: Polarity = Polarity.LOWER_IS_BETTER
    default_deadband_percent: float = INTENSITY_DEADBAND_PERCENT


@dataclass(frozen=True)
class InsightConfig:
    """Thresholds for the insight rules, in percent change."""

    improvement_threshold: float = 15.0
    worsening_threshold: float = 20.0
    frequency_change_threshold: float = 25.0

    # Metrics with single-metric threshold rules, in evaluation order
    tracked_metrics: Tuple[str, ...] = ("anxiety", "depression", "stress", "pain", "sleep")

    # How many tracked metrics must improve together for the overall insight
    aggregate_min_improving: int = 3
