"""session-trust — trust analysis for AI-assisted coding sessions.

Scores how autonomously an assistant completed each session, aggregates
the scores into a category-grouped trust map, and predicts trust for
tasks that have not run yet.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import session_trust
>>> session_trust.__version__
'0.1.0'

Quick start
-----------
::

    from session_trust import (
        InMemoryTrustRepository, Session, TrustQuery, TrustService,
    )

    service = TrustService(InMemoryTrustRepository())
    result = service.compute(Session.from_dict(raw) for raw in records)
    prediction = service.predict(TrustQuery(codebase_area="src/auth"))
    print(prediction.level, prediction.recommendation)
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ------------------------------------------------------------------
# Configuration and errors
# ------------------------------------------------------------------
from session_trust.config import DEFAULT_CONFIG, EngineConfig, ScoringPolicy
from session_trust.errors import InvalidInputError, TrustMapNotComputedError

# ------------------------------------------------------------------
# Session records
# ------------------------------------------------------------------
from session_trust.session import (
    Annotation,
    AnnotationType,
    CommitRecord,
    Event,
    EventType,
    PushRecord,
    Session,
    SessionOutcomes,
    TicketInfo,
    TicketStateChange,
)

# ------------------------------------------------------------------
# Per-session analysis
# ------------------------------------------------------------------
from session_trust.analysis import (
    BranchType,
    OutcomeMetrics,
    SessionTrustAnalysis,
    SteeringMetrics,
    TaskCharacteristics,
    analyze_session_trust,
    analyze_sessions_trust,
    compute_trust_score,
    extract_outcome_metrics,
    extract_steering_metrics,
    extract_task_characteristics,
)

# ------------------------------------------------------------------
# Aggregation, prediction and insights
# ------------------------------------------------------------------
from session_trust.aggregation import (
    GLOBAL_CATEGORY,
    CategoryType,
    Insight,
    InsightMetric,
    SuggestedApproach,
    TrustAggregate,
    TrustFactor,
    TrustLevel,
    TrustMap,
    TrustPrediction,
    TrustQuery,
    build_trust_map,
    generate_comparative_insights,
    predict_trust,
)

# ------------------------------------------------------------------
# Caching and orchestration
# ------------------------------------------------------------------
from session_trust.repository import InMemoryTrustRepository, TrustRepository
from session_trust.service import ComputeResult, TrustService
from session_trust.staleness import is_stale

__all__ = [
    "__version__",
    # Configuration and errors
    "DEFAULT_CONFIG",
    "EngineConfig",
    "InvalidInputError",
    "ScoringPolicy",
    "TrustMapNotComputedError",
    # Session records
    "Annotation",
    "AnnotationType",
    "CommitRecord",
    "Event",
    "EventType",
    "PushRecord",
    "Session",
    "SessionOutcomes",
    "TicketInfo",
    "TicketStateChange",
    # Per-session analysis
    "BranchType",
    "OutcomeMetrics",
    "SessionTrustAnalysis",
    "SteeringMetrics",
    "TaskCharacteristics",
    "analyze_session_trust",
    "analyze_sessions_trust",
    "compute_trust_score",
    "extract_outcome_metrics",
    "extract_steering_metrics",
    "extract_task_characteristics",
    # Aggregation, prediction and insights
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
    "build_trust_map",
    "generate_comparative_insights",
    "predict_trust",
    # Caching and orchestration
    "ComputeResult",
    "InMemoryTrustRepository",
    "TrustRepository",
    "TrustService",
    "is_stale",
]
