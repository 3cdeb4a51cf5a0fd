"""Per-session trust analysis.

A session's steering (human interventions), outcome (commits, errors,
rework) and characteristics (area, branch, ticket) are extracted and
combined into a trust score between 0 and 1.
"""
from __future__ import annotations

from session_trust.analysis.analyzer import analyze_session_trust, analyze_sessions_trust
from session_trust.analysis.characteristics import (
    classify_branch_type,
    extract_task_characteristics,
)
from session_trust.analysis.models import (
    BranchType,
    OutcomeMetrics,
    SessionTrustAnalysis,
    SteeringMetrics,
    TaskCharacteristics,
)
from session_trust.analysis.outcome import count_commits, extract_outcome_metrics
from session_trust.analysis.scoring import compute_trust_score
from session_trust.analysis.steering import extract_steering_metrics

__all__ = [
    "BranchType",
    "OutcomeMetrics",
    "SessionTrustAnalysis",
    "SteeringMetrics",
    "TaskCharacteristics",
    "analyze_session_trust",
    "analyze_sessions_trust",
    "classify_branch_type",
    "compute_trust_score",
    "count_commits",
    "extract_outcome_metrics",
    "extract_steering_metrics",
    "extract_task_characteristics",
]
