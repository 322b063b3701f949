"""Metric trend analyzer - period-over-period comparison of a time series.

Compares the mean of the most recent window (now - N days, now] with the
window before it (now - 2N days, now - N days]. The clock is always passed
in, so the same inputs give the same result.

A metric with no samples in the previous window has no baseline: its
percent change is reported as exactly 0 and it reads as stable, however
large the current values are. Callers that need to surface "new" activity
should look at previous_count.
"""
import logging
import statistics
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from wellpath.shared.models import (
    MetricFamily,
    MetricSample,
    Polarity,
    Response,
    TrendDirection,
    TrendResult,
)
from wellpath.shared.utils import hash_pii
from .config import TrendConfig, get_metric_definition

logger = logging.getLogger(__name__)

ENTRY_FREQUENCY_METRIC = "entry_frequency"


def analyze_trend(
    samples: Sequence[MetricSample],
    window_days: float,
    deadband_percent: float,
    now: datetime,
    polarity: Optional[Polarity] = None,
    metric_name: Optional[str] = None,
) -> TrendResult:
    """Classify the trend of one subject's metric.

    Args:
        samples: Observations of a single metric; order does not matter
        window_days: Length N of each comparison window, in days
        deadband_percent: |percent change| below this is "stable"
        now: Reference time closing the current window
        polarity: Caller-supplied polarity, only used for labeling;
            defaults to the metric's registered polarity
        metric_name: Required when samples is empty

    Returns:
        TrendResult with window averages and direction

    Raises:
        ValueError: Non-positive window, negative deadband, mixed metric
            names, or no way to tell which metric this is
    """
    name = _resolve_metric_name(samples, metric_name)
    _check_parameters(window_days, deadband_percent)

    current, previous = split_windows(samples, window_days, now)
    current_average = _mean(s.value for s in current)
    previous_average = _mean(s.value for s in previous)

    return _compare(
        metric_name=name,
        current_value=current_average,
        previous_value=previous_average,
        current_count=len(current),
        previous_count=len(previous),
        deadband_percent=deadband_percent,
        polarity=polarity or _registered_polarity(name),
    )


def analyze_event_frequency(
    timestamps: Iterable[datetime],
    window_days: float,
    deadband_percent: float,
    now: datetime,
    metric_name: str = ENTRY_FREQUENCY_METRIC,
    polarity: Optional[Polarity] = None,
) -> TrendResult:
    """Compare how many events fell in each window.

    Same windows and classification as analyze_trend, but each window's
    value is its event count rather than a mean, so current_average and
    previous_average hold counts.
    """
    _check_parameters(window_days, deadband_percent)

    window = timedelta(days=window_days)
    current_start = now - window
    previous_start = now - 2 * window

    current_count = 0
    previous_count = 0
    for ts in timestamps:
        if current_start < ts <= now:
            current_count += 1
        elif previous_start < ts <= current_start:
            previous_count += 1

    return _compare(
        metric_name=metric_name,
        current_value=float(current_count),
        previous_value=float(previous_count),
        current_count=current_count,
        previous_count=previous_count,
        deadband_percent=deadband_percent,
        polarity=polarity or _registered_polarity(metric_name),
    )


def split_windows(
    samples: Iterable[MetricSample],
    window_days: float,
    now: datetime,
):
    """Partition samples into (current, previous) window lists.

    Samples after now or before the previous window are dropped.
    """
    window = timedelta(days=window_days)
    current_start = now - window
    previous_start = now - 2 * window

    current: List[MetricSample] = []
    previous: List[MetricSample] = []
    for sample in samples:
        if current_start < sample.recorded_at <= now:
            current.append(sample)
        elif previous_start < sample.recorded_at <= current_start:
            previous.append(sample)
    return current, previous


def classify_direction(
    absolute_change: float,
    percent_change: float,
    deadband_percent: float,
) -> TrendDirection:
    """Stable inside the deadband, otherwise the sign of the change."""
    if abs(percent_change) < deadband_percent:
        return TrendDirection.STABLE
    if absolute_change > 0:
        return TrendDirection.UP
    return TrendDirection.DOWN


def samples_from_responses(responses: Iterable[Response]) -> List[MetricSample]:
    """Turn stored questionnaire responses into metric samples.

    The metric name is the instrument id and the value is the total
    score, so questionnaire history trends like any other metric.
    """
    samples = [
        MetricSample(
            subject_id=r.subject_id,
            metric_name=r.instrument_id,
            value=float(r.total_score),
            recorded_at=r.completed_at,
        )
        for r in responses
    ]
    samples.sort(key=lambda s: s.recorded_at)
    return samples


class TrendAnalyzer:
    """Runs trend analysis with each metric's declared polarity and deadband."""

    def __init__(self, config: Optional[TrendConfig] = None):
        """Initialize analyzer.

        Args:
            config: Trend configuration
        """
        self.config = config or TrendConfig()

    def analyze_metric(
        self,
        metric_name: str,
        samples: Sequence[MetricSample],
        now: datetime,
        window_days: Optional[float] = None,
    ) -> TrendResult:
        """Analyze one metric using its registered definition.

        Frequency-family metrics are compared by sample count.

        Logs:
            - TREND_ANALYZED: After the result is computed
        """
        window = window_days or self.config.window_days
        definition = get_metric_definition(metric_name)
        if definition is not None:
            polarity = definition.polarity
            deadband = definition.deadband_percent
            family = definition.family
        else:
            polarity = self.config.default_polarity
            deadband = self.config.default_deadband_percent
            family = MetricFamily.INTENSITY

        if family == MetricFamily.FREQUENCY:
            _resolve_metric_name(samples, metric_name)
            result = analyze_event_frequency(
                (s.recorded_at for s in samples),
                window_days=window,
                deadband_percent=deadband,
                now=now,
                metric_name=metric_name,
                polarity=polarity,
            )
        else:
            result = analyze_trend(
                samples,
                window_days=window,
                deadband_percent=deadband,
                now=now,
                polarity=polarity,
                metric_name=metric_name,
            )

        logger.info(
            "TREND_ANALYZED",
            extra={
                "subject_id_hash": hash_pii(samples[0].subject_id) if samples else None,
                "metric_name": metric_name,
                "window_days": window,
                "current_count": result.current_count,
                "previous_count": result.previous_count,
                "percent_change": result.percent_change,
                "direction": result.direction.value,
                "registered": definition is not None,
            },
        )
        return result

    def analyze_all(
        self,
        samples: Iterable[MetricSample],
        now: datetime,
        window_days: Optional[float] = None,
    ) -> Dict[str, TrendResult]:
        """Group mixed samples by metric and analyze each group.

        Returns:
            metric name -> TrendResult, in order of first appearance
        """
        grouped: Dict[str, List[MetricSample]] = defaultdict(list)
        for sample in samples:
            grouped[sample.metric_name].append(sample)

        return {
            name: self.analyze_metric(name, group, now, window_days)
            for name, group in grouped.items()
        }


def _compare(
    metric_name: str,
    current_value: float,
    previous_value: float,
    current_count: int,
    previous_count: int,
    deadband_percent: float,
    polarity: Polarity,
) -> TrendResult:
    absolute_change = current_value - previous_value
    # No baseline: reported as 0 rather than infinite growth
    if previous_value > 0:
        percent_change = absolute_change / previous_value * 100
    else:
        percent_change = 0.0

    return TrendResult(
        metric_name=metric_name,
        current_average=current_value,
        previous_average=previous_value,
        absolute_change=absolute_change,
        percent_change=percent_change,
        direction=classify_direction(absolute_change, percent_change, deadband_percent),
        polarity=polarity,
        current_count=current_count,
        previous_count=previous_count,
    )


def _mean(values: Iterable[float]) -> float:
    values = list(values)
    if not values:
        return 0.0
    return float(statistics.mean(values))


def _registered_polarity(metric_name: str) -> Polarity:
    definition = get_metric_definition(metric_name)
    if definition is None:
        return TrendConfig().default_polarity
    return definition.polarity


def _resolve_metric_name(
    samples: Sequence[MetricSample],
    metric_name: Optional[str],
) -> str:
    names = {s.metric_name for s in samples}
    if len(names) > 1:
        raise ValueError(f"Samples span several metrics: {sorted(names)}")
    if metric_name is not None:
        if names and metric_name not in names:
            raise ValueError(
                f"metric_name {metric_name!r} does not match samples ({names.pop()!r})"
            )
        return metric_name
    if not names:
        raise ValueError("metric_name is required when there are no samples")
    return names.pop()


def _check_parameters(window_days: float, deadband_percent: float) -> None:
    if window_days <= 0:
        raise ValueError(f"window_days must be positive, got {window_days}")
    if deadband_percent < 0:
        raise ValueError(f"deadband_percent must be non-negative, got {deadband_percent}")
