"""Trend Service: period-over-period trends and insights.

Compares the most recent window of a metric with the window before it,
labels the change through the metric's declared polarity, and renders
the results as an ordered list of human-readable insights.

Endpoints:
- POST /trends/analyze - Trend results for a batch of samples
- POST /insights - Trend results plus generated insights
- GET /health - Health check
"""

from .analyzer import (
    TrendAnalyzer,
    analyze_event_frequency,
    analyze_trend,
    samples_from_responses,
)
from .config import METRIC_DEFINITIONS, InsightConfig, TrendConfig, get_metric_definition
from .insights import InsightRuleEngine, generate_insights

__all__ = [
    "TrendAnalyzer",
    "analyze_event_frequency",
    "analyze_trend",
    "samples_from_responses",
    "METRIC_DEFINITIONS",
    "InsightConfig",
    "TrendConfig",
    "get_metric_definition",
    "InsightRuleEngine",
    "generate_insights",
]
