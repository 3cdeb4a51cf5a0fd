"""Cross-session aggregation: the trust map, predictions and insights."""
from __future__ import annotations

from session_trust.aggregation.aggregator import aggregate, build_trust_map, compute_confidence
from session_trust.aggregation.insights import (
    Insight,
    InsightMetric,
    generate_comparative_insights,
)
from session_trust.aggregation.models import (
    GLOBAL_CATEGORY,
    CategoryType,
    TrustAggregate,
    TrustMap,
)
from session_trust.aggregation.predictor import (
    SuggestedApproach,
    TrustFactor,
    TrustLevel,
    TrustPrediction,
    TrustQuery,
    predict_trust,
)

__all__ = [
    "CategoryType",
    "GLOBAL_CATEGORY",
    "Insight",
    "InsightMetric",
    "SuggestedApproach",
    "TrustAggregate",
    "TrustFactor",
    "TrustLevel",
    "TrustMap",
    "TrustPrediction",
    "TrustQuery",
    "aggregate",
    "build_trust_map",
    "compute_confidence",
    "generate_comparative_insights",
    "predict_trust",
]
