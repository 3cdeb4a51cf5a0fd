"""InsightGenerator — ranked comparisons of categories against the global baseline."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from session_trust.aggregation.models import CategoryType, TrustAggregate, TrustMap
from session_trust.config import DEFAULT_CONFIG, EngineConfig
from session_trust.errors import InvalidInputError

_DIMENSION_LABELS: dict[CategoryType, str] = {
    CategoryType.AREA: "Area",
    CategoryType.TICKET_TYPE: "Ticket type",
    CategoryType.BRANCH_TYPE: "Branch type",
    CategoryType.LABEL: "Label",
    CategoryType.PROJECT: "Project",
}


class InsightMetric(str, Enum):
    """Aggregate metrics compared against the global baseline."""

    AVG_TRUST_SCORE = "avg_trust_score"
    AUTONOMOUS_RATE = "autonomous_rate"
    AVG_INTERVENTION_COUNT = "avg_intervention_count"
    REWORK_RATE = "rework_rate"

    @property
    def higher_is_better(self) -> bool:
        return self in (InsightMetric.AVG_TRUST_SCORE, InsightMetric.AUTONOMOUS_RATE)


_METRIC_LABELS: dict[InsightMetric, str] = {
    InsightMetric.AVG_TRUST_SCORE: "trust score",
    InsightMetric.AUTONOMOUS_RATE: "autonomous rate",
    InsightMetric.AVG_INTERVENTION_COUNT: "interventions",
    InsightMetric.REWORK_RATE: "rework rate",
}

# Rework is only reported once it exceeds this rate.
REWORK_ALERT_RATE = 0.3


@dataclass(frozen=True)
class Insight:
    """One category that deviates from the global baseline.

    ``delta`` is ``value - baseline``. Whether that is good news depends on
    the metric: a higher trust score or autonomous rate is favourable, a
    higher intervention count or rework rate is not. ``is_positive`` reads
    the delta in that light.
    """

    category: str
    category_type: CategoryType
    metric: InsightMetric
    delta: float
    value: float
    baseline: float
    sample_size: int
    message: str

    @property
    def is_positive(self) -> bool:
        if self.metric.higher_is_better:
            return self.delta > 0
        return self.delta < 0

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {
            "category": self.category,
            "category_type": self.category_type.value,
            "metric": self.metric.value,
            "delta": self.delta,
            "value": self.value,
            "baseline": self.baseline,
            "sample_size": self.sample_size,
            "is_positive": self.is_positive,
            "message": self.message,
        }


def _metric_value(agg: TrustAggregate, metric: InsightMetric) -> float:
    if metric is InsightMetric.AVG_TRUST_SCORE:
        return agg.avg_trust_score
    if metric is InsightMetric.AUTONOMOUS_RATE:
        return agg.autonomous_rate
    if metric is InsightMetric.AVG_INTERVENTION_COUNT:
        return agg.avg_intervention_count
    return agg.rework_rate


def _format_value(metric: InsightMetric, value: float) -> str:
    if metric in (InsightMetric.AUTONOMOUS_RATE, InsightMetric.REWORK_RATE):
        return f"{round(value * 100)}%"
    return f"{value:.2f}"


def _steering_multiplier(value: float, baseline: float) -> str:
    return f"{value / baseline:.1f}x" if baseline > 0 else "?x"


def _message(agg: TrustAggregate, metric: InsightMetric, value: float, baseline: float, delta: float) -> str:
    label = _DIMENSION_LABELS[agg.category_type]  # type: ignore[index]
    subject = f'{label} "{agg.category}"'
    if metric is InsightMetric.AVG_INTERVENTION_COUNT:
        comparison = "more steering than" if delta > 0 else "the steering of"
        return (
            f"{subject} needs {_steering_multiplier(value, baseline)} {comparison} average "
            f"({value:.1f} vs {baseline:.1f} interventions, {agg.total_sessions} sessions)"
        )
    if metric is InsightMetric.REWORK_RATE:
        return (
            f"{subject} has {_format_value(metric, value)} rework rate "
            f"({_format_value(metric, baseline)} overall, {agg.total_sessions} sessions)"
        )
    points = round(delta * 100)
    return (
        f"{subject}: {_METRIC_LABELS[metric]} "
        f"{_format_value(metric, value)} vs {_format_value(metric, baseline)} overall "
        f"({points:+d} pts, {agg.total_sessions} sessions)"
    )


def _reportable(metric: InsightMetric, value: float, delta: float) -> bool:
    if delta == 0:
        return False
    if metric is InsightMetric.REWORK_RATE:
        return delta > 0 and value > REWORK_ALERT_RATE
    return True


def _candidates(trust_map: TrustMap, min_sample_size: int) -> list[TrustAggregate]:
    return [
        agg
        for category_type in CategoryType
        for agg in trust_map.dimension(category_type)
        if agg.total_sessions >= min_sample_size
    ]


def generate_comparative_insights(
    trust_map: TrustMap,
    *,
    config: EngineConfig | None = None,
) -> list[Insight]:
    """Rank categories by how far they deviate from the global baseline.

    Parameters
    ----------
    trust_map:
        A computed trust map.
    config:
        Engine configuration. ``min_insight_sample_size`` excludes small
        categories; ``insight_top_n`` caps the insights per direction and
        metric.

    Returns
    -------
    list[Insight]
        For each metric (trust score, autonomous rate, intervention count,
        then rework rate): the favourable deviations, largest first,
        followed by the unfavourable ones, largest first. Categories equal
        to the baseline produce no insight, and rework is only reported for
        categories above :data:`REWORK_ALERT_RATE` that exceed the baseline.
        Empty when no category is large enough.

    Raises
    ------
    InvalidInputError
        If *trust_map* is not a :class:`TrustMap`.
    """
    if not isinstance(trust_map, TrustMap):
        raise InvalidInputError("a TrustMap", trust_map)
    cfg = config if config is not None else DEFAULT_CONFIG
    candidates = _candidates(trust_map, cfg.min_insight_sample_size)
    if not candidates:
        return []

    insights: list[Insight] = []
    for metric in InsightMetric:
        baseline = _metric_value(trust_map.global_aggregate, metric)
        scored: list[Insight] = []
        for agg in candidates:
            value = _metric_value(agg, metric)
            delta = round(value - baseline, 6)
            if not _reportable(metric, value, delta):
                continue
            scored.append(
                Insight(
                    category=agg.category,
                    category_type=agg.category_type,  # type: ignore[arg-type]
                    metric=metric,
                    delta=delta,
                    value=value,
                    baseline=baseline,
                    sample_size=agg.total_sessions,
                    message=_message(agg, metric, value, baseline, delta),
                )
            )

        def _tie(i: Insight) -> tuple[int, str, str]:
            return (-i.sample_size, i.category_type.value, i.category)

        positive = sorted(
            (i for i in scored if i.is_positive), key=lambda i: (-abs(i.delta), *_tie(i))
        )
        negative = sorted(
            (i for i in scored if not i.is_positive), key=lambda i: (-abs(i.delta), *_tie(i))
        )
        insights.extend(positive[: cfg.insight_top_n])
        insights.extend(negative[: cfg.insight_top_n])
    return insights


__all__ = ["REWORK_ALERT_RATE", "Insight", "InsightMetric", "generate_comparative_insights"]
