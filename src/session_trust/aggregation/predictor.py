"""TrustPredictor — expected trust for a task that has not run yet.

The task's characteristics are matched against the trust map from the most
specific dimension (codebase area) to the least specific (project). The
first dimension with a usable match supplies the prediction; without one,
the global baseline is used and the prediction says so.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from session_trust.aggregation.models import (
    GLOBAL_CATEGORY,
    CategoryType,
    TrustAggregate,
    TrustMap,
)
from session_trust.analysis.models import BranchType, TaskCharacteristics
from session_trust.config import DEFAULT_CONFIG, EngineConfig
from session_trust.errors import InvalidInputError

# Most specific first.
SPECIFICITY_ORDER: tuple[CategoryType, ...] = (
    CategoryType.AREA,
    CategoryType.TICKET_TYPE,
    CategoryType.BRANCH_TYPE,
    CategoryType.LABEL,
    CategoryType.PROJECT,
)

# Relative weight of a matching factor, scaled by the aggregate's confidence.
_DIMENSION_WEIGHTS: dict[CategoryType, float] = {
    CategoryType.AREA: 1.0,
    CategoryType.TICKET_TYPE: 0.8,
    CategoryType.BRANCH_TYPE: 0.6,
    CategoryType.LABEL: 0.5,
    CategoryType.PROJECT: 0.4,
}

_DIMENSION_NAMES: dict[CategoryType, str] = {
    CategoryType.AREA: "This area",
    CategoryType.TICKET_TYPE: "This ticket type",
    CategoryType.BRANCH_TYPE: "This branch type",
    CategoryType.LABEL: "This label",
    CategoryType.PROJECT: "This project",
}

HIGH_TRUST_THRESHOLD = 0.7
MEDIUM_TRUST_THRESHOLD = 0.4


class TrustLevel(str, Enum):
    """Qualitative band of a predicted trust score."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SuggestedApproach(str, Enum):
    """How closely a human should supervise the task."""

    AUTONOMOUS = "autonomous"
    LIGHT_MONITORING = "light_monitoring"
    ACTIVE_STEERING = "active_steering"
    DETAILED_BREAKDOWN = "detailed_breakdown"


@dataclass(frozen=True)
class TrustQuery:
    """Characteristics of a task to predict trust for. All fields are optional."""

    codebase_area: str | None = None
    ticket_type: str | None = None
    branch_type: str | None = None
    labels: tuple[str, ...] = ()
    project_path: str | None = None

    @classmethod
    def from_characteristics(cls, characteristics: TaskCharacteristics) -> "TrustQuery":
        branch_type = characteristics.branch_type
        return cls(
            codebase_area=characteristics.codebase_area or None,
            ticket_type=characteristics.ticket_type,
            branch_type=branch_type.value if branch_type is not None else None,
            labels=tuple(characteristics.ticket_labels),
            project_path=characteristics.project_path or None,
        )

    def values_for(self, category_type: CategoryType) -> tuple[str, ...]:
        """Return the query values matched against one dimension."""
        if category_type is CategoryType.LABEL:
            return tuple(label for label in self.labels if label)
        value = {
            CategoryType.AREA: self.codebase_area,
            CategoryType.TICKET_TYPE: self.ticket_type,
            CategoryType.BRANCH_TYPE: self.branch_type,
            CategoryType.PROJECT: self.project_path,
        }[category_type]
        if isinstance(value, BranchType):
            value = value.value
        return (value,) if value else ()


@dataclass(frozen=True)
class TrustFactor:
    """One matching aggregate that informed a prediction."""

    source: str
    category_type: CategoryType
    trust_score: float
    autonomous_rate: float
    weight: float
    sample_size: int
    insight: str

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {
            "source": self.source,
            "category_type": self.category_type.value,
            "trust_score": self.trust_score,
            "autonomous_rate": self.autonomous_rate,
            "weight": self.weight,
            "sample_size": self.sample_size,
            "insight": self.insight,
        }


@dataclass(frozen=True)
class TrustPrediction:
    """Predicted trust for a task.

    Parameters
    ----------
    trust_score / autonomous_rate:
        Values of the aggregate the prediction is based on.
    category / category_type:
        The matched category, or ``"global"`` / None on fallback.
    confidence:
        Confidence of the matched aggregate.
    sample_size:
        Sessions behind the matched aggregate.
    is_fallback:
        True when no usable category matched and the global baseline was used.
    level / suggested_approach / recommendation:
        Human-oriented reading of the prediction.
    factors:
        Every usable matching aggregate, heaviest first.
    """

    trust_score: float
    autonomous_rate: float
    category: str
    category_type: CategoryType | None
    confidence: float
    sample_size: int
    is_fallback: bool
    level: TrustLevel
    suggested_approach: SuggestedApproach
    recommendation: str
    factors: tuple[TrustFactor, ...] = field(default=())

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {
            "trust_score": self.trust_score,
            "autonomous_rate": self.autonomous_rate,
            "category": self.category,
            "category_type": self.category_type.value if self.category_type else None,
            "confidence": self.confidence,
            "sample_size": self.sample_size,
            "is_fallback": self.is_fallback,
            "level": self.level.value,
            "suggested_approach": self.suggested_approach.value,
            "recommendation": self.recommendation,
            "factors": [f.to_dict() for f in self.factors],
        }


def _pct(value: float) -> str:
    return f"{round(value * 100)}%"


def describe_aggregate(agg: TrustAggregate) -> str:
    """Return a one-line, human-readable reading of an aggregate."""
    prefix = _DIMENSION_NAMES[agg.category_type] if agg.category_type else "Overall"
    if agg.autonomous_rate >= 0.8:
        return (
            f"{prefix}: {_pct(agg.autonomous_rate)} unsteered completion rate "
            f"across {agg.total_sessions} sessions"
        )
    if agg.autonomous_rate <= 0.3:
        return (
            f"{prefix}: needs attention. Only {_pct(agg.autonomous_rate)} autonomous, "
            f"avg {agg.avg_intervention_count:.1f} interventions"
        )
    if agg.rework_rate > 0.3:
        return f"{prefix}: {_pct(agg.rework_rate)} rework rate. Extra review recommended"
    return f"{prefix}: {_pct(agg.autonomous_rate)} autonomous, {_pct(agg.commit_rate)} commit rate"


def classify_level(trust_score: float) -> TrustLevel:
    if trust_score >= HIGH_TRUST_THRESHOLD:
        return TrustLevel.HIGH
    if trust_score >= MEDIUM_TRUST_THRESHOLD:
        return TrustLevel.MEDIUM
    return TrustLevel.LOW


def _recommend(
    level: TrustLevel, basis: TrustAggregate, is_fallback: bool
) -> tuple[str, SuggestedApproach]:
    reading = describe_aggregate(basis)
    if level is TrustLevel.HIGH:
        if is_fallback:
            return (
                "Based on all past sessions, this should run smoothly with minimal oversight.",
                SuggestedApproach.AUTONOMOUS,
            )
        return f"High confidence. {reading}.", SuggestedApproach.AUTONOMOUS
    if level is TrustLevel.LOW:
        return (
            f"Proceed with caution. {reading}. Consider breaking into smaller subtasks.",
            SuggestedApproach.DETAILED_BREAKDOWN,
        )
    if basis.autonomous_rate <= 0.3:
        return f"Moderate confidence. {reading}.", SuggestedApproach.ACTIVE_STEERING
    return "Moderate confidence. Light monitoring recommended.", SuggestedApproach.LIGHT_MONITORING


def _matches(
    trust_map: TrustMap,
    query: TrustQuery,
    category_type: CategoryType,
    min_confidence: float,
) -> list[TrustAggregate]:
    wanted = set(query.values_for(category_type))
    if not wanted:
        return []
    return [
        agg
        for agg in trust_map.dimension(category_type)
        if agg.category in wanted and agg.confidence >= min_confidence and agg.total_sessions > 0
    ]


def predict_trust(
    trust_map: TrustMap,
    characteristics: TaskCharacteristics | TrustQuery,
    *,
    config: EngineConfig | None = None,
) -> TrustPrediction:
    """Predict trust for a task from its characteristics.

    Parameters
    ----------
    trust_map:
        A computed trust map. The caller must check that one exists.
    characteristics:
        The task's characteristics, either a full :class:`TaskCharacteristics`
        or a partial :class:`TrustQuery`.
    config:
        Engine configuration. Aggregates with confidence below
        ``config.min_prediction_confidence`` are ignored.

    Returns
    -------
    TrustPrediction
        Based on the most specific usable match. When several categories of
        the same dimension match (several labels), the one with the most
        sessions wins. Without a usable match, the global aggregate is used
        and ``category`` is ``"global"``.

    Raises
    ------
    InvalidInputError
        If *trust_map* is not a :class:`TrustMap` or *characteristics* is
        neither a :class:`TaskCharacteristics` nor a :class:`TrustQuery`.
    """
    if not isinstance(trust_map, TrustMap):
        raise InvalidInputError("a TrustMap", trust_map)
    if isinstance(characteristics, TaskCharacteristics):
        query = TrustQuery.from_characteristics(characteristics)
    elif isinstance(characteristics, TrustQuery):
        query = characteristics
    else:
        raise InvalidInputError("TaskCharacteristics or a TrustQuery", characteristics)
    cfg = config if config is not None else DEFAULT_CONFIG

    factors: list[TrustFactor] = []
    chosen: TrustAggregate | None = None
    for category_type in SPECIFICITY_ORDER:
        matches = _matches(trust_map, query, category_type, cfg.min_prediction_confidence)
        if not matches:
            continue
        if chosen is None:
            chosen = min(matches, key=lambda a: (-a.total_sessions, a.category))
        factors.extend(_factor(agg, category_type) for agg in matches)

    is_fallback = chosen is None
    basis = trust_map.global_aggregate if chosen is None else chosen
    level = classify_level(basis.avg_trust_score)
    recommendation, approach = _recommend(level, basis, is_fallback)

    return TrustPrediction(
        trust_score=basis.avg_trust_score,
        autonomous_rate=basis.autonomous_rate,
        category=GLOBAL_CATEGORY if chosen is None else chosen.category,
        category_type=basis.category_type,
        confidence=basis.confidence,
        sample_size=basis.total_sessions,
        is_fallback=is_fallback,
        level=level,
        suggested_approach=approach,
        recommendation=recommendation,
        factors=tuple(sorted(factors, key=lambda f: (-f.weight, f.source))),
    )


def _factor(agg: TrustAggregate, category_type: CategoryType) -> TrustFactor:
    return TrustFactor(
        source=f"{category_type.value}:{agg.category}",
        category_type=category_type,
        trust_score=agg.avg_trust_score,
        autonomous_rate=agg.autonomous_rate,
        weight=round(agg.confidence * _DIMENSION_WEIGHTS[category_type], 6),
        sample_size=agg.total_sessions,
        insight=describe_aggregate(agg),
    )


__all__ = [
    "SPECIFICITY_ORDER",
    "SuggestedApproach",
    "TrustFactor",
    "TrustLevel",
    "TrustPrediction",
    "TrustQuery",
    "classify_level",
    "describe_aggregate",
    "predict_trust",
]
