"""Trust score computation from steering and outcome metrics.

The score starts from a neutral base and applies bounded bonuses and
penalties. Every adjustment moves in one direction for its input, so more
interventions, rework, blockers, goal shifts or errors can never raise the
score. The final value is clamped to [0, 1].

Characteristics never enter the score; they exist only for grouping.
"""
from __future__ import annotations

from session_trust.analysis.models import OutcomeMetrics, SteeringMetrics
from session_trust.config import ScoringPolicy


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def compute_trust_score(
    steering: SteeringMetrics,
    outcome: OutcomeMetrics,
    policy: ScoringPolicy | None = None,
) -> float:
    """Compute the trust score for a session.

    Parameters
    ----------
    steering:
        Human-intervention metrics of the session.
    outcome:
        Completion-quality metrics of the session.
    policy:
        Score weights. Defaults to :class:`ScoringPolicy` defaults.

    Returns
    -------
    float
        Score in [0, 1]; higher means more autonomous success.

    Notes
    -----
    A session with no events scores ``base + no_goal_shift_bonus +
    no_rework_bonus + clean_end_bonus`` (0.75 by default). With nothing to
    penalise the score leans positive, but it receives no commit reward.
    """
    p = policy if policy is not None else ScoringPolicy()
    score = p.base_score

    intervention_deduction = (
        steering.intervention_count * p.intervention_penalty
        + steering.intervention_density * p.intervention_density_penalty
    )
    score -= min(intervention_deduction, p.max_intervention_penalty)

    if steering.goal_shift_count == 0:
        score += p.no_goal_shift_bonus
    else:
        score -= min(steering.goal_shift_count * p.goal_shift_penalty, p.max_goal_shift_penalty)

    if outcome.has_commit and not outcome.ended_with_error:
        score += p.commit_bonus
    if outcome.has_push:
        score += p.push_bonus

    if outcome.rework_count == 0:
        score += p.no_rework_bonus
    else:
        score -= min(outcome.rework_count * p.rework_penalty, p.max_rework_penalty)

    score -= min(outcome.blocker_count * p.blocker_penalty, p.max_blocker_penalty)
    score -= _clamp(outcome.error_density) * p.error_density_penalty

    if outcome.ended_with_error:
        score -= p.ended_with_error_penalty
    else:
        score += p.clean_end_bonus

    return round(_clamp(score), 6)


__all__ = ["ScoringPolicy", "compute_trust_score"]
