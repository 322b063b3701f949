"""Shared domain models for the Wellpath assessment engine."""
from .assessment import (
    UNSCORABLE_TOTAL,
    Role,
    InstrumentCategory,
    Option,
    Question,
    ScoreRange,
    ScoringSpec,
    Instrument,
    InstrumentSummary,
    ScoreResult,
    Response,
)
from .trends import (
    TrendDirection,
    Polarity,
    TrendOutcome,
    InsightCategory,
    MetricFamily,
    MetricSample,
    MetricDefinition,
    TrendResult,
    Insight,
)

__all__ = [
    "UNSCORABLE_TOTAL",
    "Role",
    "InstrumentCategory",
    "Option",
    "Question",
    "ScoreRange",
    "ScoringSpec",
    "Instrument",
    "InstrumentSummary",
    "ScoreResult",
    "Response",
    "TrendDirection",
    "Polarity",
    "TrendOutcome",
    "InsightCategory",
    "MetricFamily",
    "MetricSample",
    "MetricDefinition",
    "TrendResult",
    "Insight",
]
