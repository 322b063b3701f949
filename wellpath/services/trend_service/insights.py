"""Insight rule engine - turns trend results into readable observations.

Rules run in a fixed order and each adds at most one insight, so the
output order is the rule order. When nothing fires, a single "stable"
insight is returned; the list is never empty.
"""
import logging
from typing import Callable, List, Mapping, Optional

from wellpath.shared.models import (
    Insight,
    InsightCategory,
    TrendDirection,
    TrendOutcome,
    TrendResult,
)
from .config import InsightConfig, get_metric_definition

logger = logging.getLogger(__name__)

TrendResults = Mapping[str, Optional[TrendResult]]

STABLE_RULE_ID = "stable"
STABLE_MESSAGE = (
    "Your tracked metrics are holding steady compared with the previous period. "
    "Keep tracking to build a clearer picture."
)


def metric_label(metric_name: str) -> str:
    definition = get_metric_definition(metric_name)
    if definition is None:
        return metric_name.replace("_", " ")
    return definition.label


def _changed_by(result: TrendResult) -> str:
    verb = "increased" if result.direction == TrendDirection.UP else "decreased"
    return f"{verb} by {abs(result.percent_change):.0f}%"


class InsightRuleEngine:
    """Evaluates the ordered insight rules over a set of trend results."""

    def __init__(self, config: Optional[InsightConfig] = None):
        """Initialize engine.

        Args:
            config: Insight thresholds
        """
        self.config = config or InsightConfig()

        self._rules: List[Callable[[TrendResults], Optional[Insight]]] = []
        for metric_name in self.config.tracked_metrics:
            self._rules.append(self._improvement_rule(metric_name))
            self._rules.append(self._worsening_rule(metric_name))
        self._rules.extend([
            self._frequency_up,
            self._frequency_down,
            self._stress_up_sleep_down,
            self._sleep_up_stress_down,
            self._pain_up_sleep_down,
            self._broad_improvement,
        ])

    def generate(self, trend_results: TrendResults) -> List[Insight]:
        """Run every rule in order.

        Args:
            trend_results: metric name -> TrendResult; None entries are skipped

        Returns:
            Insights in rule order, never empty

        Logs:
            - INSIGHTS_GENERATED: With per-category counts
        """
        insights: List[Insight] = []
        for rule in self._rules:
            insight = rule(trend_results)
            if insight is not None:
                insights.append(insight)

        if not insights:
            insights.append(Insight(
                category=InsightCategory.INFO,
                message=STABLE_MESSAGE,
                rule_id=STABLE_RULE_ID,
            ))

        logger.info(
            "INSIGHTS_GENERATED",
            extra={
                "metric_count": sum(1 for r in trend_results.values() if r is not None),
                "insight_count": len(insights),
                "positive_count": sum(1 for i in insights if i.category == InsightCategory.POSITIVE),
                "warning_count": sum(1 for i in insights if i.category == InsightCategory.WARNING),
                "rule_ids": [i.rule_id for i in insights],
            },
        )
        return insights

    # Single-metric thresholds

    def _improvement_rule(self, metric_name: str):
        def rule(trends: TrendResults) -> Optional[Insight]:
            result = trends.get(metric_name)
            if result is None or result.outcome != TrendOutcome.IMPROVING:
                return None
            if abs(result.percent_change) < self.config.improvement_threshold:
                return None
            return Insight(
                category=InsightCategory.POSITIVE,
                message=(
                    f"Your {metric_label(metric_name)} has {_changed_by(result)} "
                    f"compared with the previous period. Keep up the good work."
                ),
                rule_id=f"{metric_name}_improved",
                metrics=(metric_name,),
            )
        return rule

    def _worsening_rule(self, metric_name: str):
        def rule(trends: TrendResults) -> Optional[Insight]:
            result = trends.get(metric_name)
            if result is None or result.outcome != TrendOutcome.WORSENING:
                return None
            if abs(result.percent_change) < self.config.worsening_threshold:
                return None
            return Insight(
                category=InsightCategory.WARNING,
                message=(
                    f"Your {metric_label(metric_name)} has {_changed_by(result)} "
                    f"compared with the previous period. Consider discussing this "
                    f"with your care team."
                ),
                rule_id=f"{metric_name}_worsened",
                metrics=(metric_name,),
            )
        return rule

    # Tracking frequency

    def _frequency_up(self, trends: TrendResults) -> Optional[Insight]:
        result = trends.get("entry_frequency")
        if result is None or result.direction != TrendDirection.UP:
            return None
        if abs(result.percent_change) < self.config.frequency_change_threshold:
            return None
        return Insight(
            category=InsightCategory.POSITIVE,
            message=(
                f"You're tracking more consistently: entries are up "
                f"{abs(result.percent_change):.0f}% from the previous period."
            ),
            rule_id="entry_frequency_up",
            metrics=("entry_frequency",),
        )

    def _frequency_down(self, trends: TrendResults) -> Optional[Insight]:
        result = trends.get("entry_frequency")
        if result is None or result.direction != TrendDirection.DOWN:
            return None
        if abs(result.percent_change) < self.config.frequency_change_threshold:
            return None
        return Insight(
            category=InsightCategory.INFO,
            message=(
                f"You've logged {abs(result.percent_change):.0f}% fewer entries than "
                f"in the previous period. Regular tracking makes trends more reliable."
            ),
            rule_id="entry_frequency_down",
            metrics=("entry_frequency",),
        )

    # Cross-metric correlations (direction only)

    def _stress_up_sleep_down(self, trends: TrendResults) -> Optional[Insight]:
        if not _moving(trends, "stress", TrendDirection.UP, "sleep", TrendDirection.DOWN):
            return None
        return Insight(
            category=InsightCategory.INFO,
            message="Rising stress has coincided with poorer sleep quality.",
            rule_id="stress_up_sleep_down",
            metrics=("stress", "sleep"),
        )

    def _sleep_up_stress_down(self, trends: TrendResults) -> Optional[Insight]:
        if not _moving(trends, "sleep", TrendDirection.UP, "stress", TrendDirection.DOWN):
            return None
        return Insight(
            category=InsightCategory.INFO,
            message="Sleep quality improvements correlate with reduced stress.",
            rule_id="sleep_up_stress_down",
            metrics=("sleep", "stress"),
        )

    def _pain_up_sleep_down(self, trends: TrendResults) -> Optional[Insight]:
        if not _moving(trends, "pain", TrendDirection.UP, "sleep", TrendDirection.DOWN):
            return None
        return Insight(
            category=InsightCategory.INFO,
            message="Higher pain levels have coincided with poorer sleep quality.",
            rule_id="pain_up_sleep_down",
            metrics=("pain", "sleep"),
        )

    # Aggregate

    def _broad_improvement(self, trends: TrendResults) -> Optional[Insight]:
        improving = [
            name for name in self.config.tracked_metrics
            if trends.get(name) is not None
            and trends[name].outcome == TrendOutcome.IMPROVING
        ]
        if len(improving) < self.config.aggregate_min_improving:
            return None

        labels = [metric_label(name) for name in improving]
        if len(labels) == 1:
            listed = labels[0]
        else:
            listed = ", ".join(labels[:-1]) + " and " + labels[-1]
        return Insight(
            category=InsightCategory.POSITIVE,
            message=f"Several areas are improving at the same time: {listed}.",
            rule_id="broad_improvement",
            metrics=tuple(improving),
        )


def _moving(
    trends: TrendResults,
    first: str,
    first_direction: TrendDirection,
    second: str,
    second_direction: TrendDirection,
) -> bool:
    a = trends.get(first)
    b = trends.get(second)
    if a is None or b is None:
        return False
    return a.direction == first_direction and b.direction == second_direction


def generate_insights(
    trend_results: TrendResults,
    config: Optional[InsightConfig] = None,
) -> List[Insight]:
    """Convenience wrapper around InsightRuleEngine.generate."""
    return InsightRuleEngine(config).generate(trend_results)
