"""Per-session analysis records.

All records are immutable. A ``SessionTrustAnalysis`` is never patched:
re-analysing a session produces a new record that replaces the old one.
"""
from __future__ import annotations

import datetime
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

from session_trust.session import parse_timestamp


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class BranchType(str, Enum):
    """Branch categories inferred from the branch-name prefix."""

    FEATURE = "feature"
    FIX = "fix"
    CHORE = "chore"
    OTHER = "other"


@dataclass(frozen=True)
class SteeringMetrics:
    """How much human steering a session needed.

    Parameters
    ----------
    intervention_count:
        User messages after the seed prompt.
    intervention_density:
        Interventions per 1k tokens (token count floored at 1k).
    first_intervention_progress:
        Fraction of the session elapsed before the first intervention, in
        [0, 1]. None when there was no intervention or the duration is unknown.
    goal_shift_count:
        ``goal_shift`` annotations.
    time_to_first_intervention:
        Milliseconds from session start to the first intervention, or None.
    """

    intervention_count: int = 0
    intervention_density: float = 0.0
    first_intervention_progress: float | None = None
    goal_shift_count: int = 0
    time_to_first_intervention: int | None = None

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {
            "intervention_count": self.intervention_count,
            "intervention_density": self.intervention_density,
            "first_intervention_progress": self.first_intervention_progress,
            "goal_shift_count": self.goal_shift_count,
            "time_to_first_intervention": self.time_to_first_intervention,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "SteeringMetrics":
        return cls(
            intervention_count=int(data.get("intervention_count", 0)),  # type: ignore[arg-type]
            intervention_density=float(data.get("intervention_density", 0.0)),  # type: ignore[arg-type]
            first_intervention_progress=data.get("first_intervention_progress"),  # type: ignore[arg-type]
            goal_shift_count=int(data.get("goal_shift_count", 0)),  # type: ignore[arg-type]
            time_to_first_intervention=data.get("time_to_first_intervention"),  # type: ignore[arg-type]
        )


@dataclass(frozen=True)
class TaskCharacteristics:
    """Categorical descriptors of the task a session worked on.

    These are used only for grouping and prediction, never for scoring.
    """

    codebase_area: str
    project_path: str
    branch_type: BranchType | None = None
    ticket_type: str | None = None
    ticket_labels: tuple[str, ...] = ()
    initial_prompt_tokens: int = 0
    subtask_count: int = 0
    tool_diversity: int = 0
    file_patterns: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {
            "codebase_area": self.codebase_area,
            "project_path": self.project_path,
            "branch_type": self.branch_type.value if self.branch_type is not None else None,
            "ticket_type": self.ticket_type,
            "ticket_labels": list(self.ticket_labels),
            "initial_prompt_tokens": self.initial_prompt_tokens,
            "subtask_count": self.subtask_count,
            "tool_diversity": self.tool_diversity,
            "file_patterns": list(self.file_patterns),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "TaskCharacteristics":
        branch_type = data.get("branch_type")
        return cls(
            codebase_area=str(data.get("codebase_area", "")),
            project_path=str(data.get("project_path", "")),
            branch_type=BranchType(branch_type) if branch_type else None,
            ticket_type=data.get("ticket_type"),  # type: ignore[arg-type]
            ticket_labels=tuple(data.get("ticket_labels") or ()),  # type: ignore[arg-type]
            initial_prompt_tokens=int(data.get("initial_prompt_tokens", 0)),  # type: ignore[arg-type]
            subtask_count=int(data.get("subtask_count", 0)),  # type: ignore[arg-type]
            tool_diversity=int(data.get("tool_diversity", 0)),  # type: ignore[arg-type]
            file_patterns=tuple(data.get("file_patterns") or ()),  # type: ignore[arg-type]
        )


@dataclass(frozen=True)
class OutcomeMetrics:
    """Completion quality of a session."""

    has_commit: bool = False
    commit_count: int = 0
    has_push: bool = False
    blocker_count: int = 0
    rework_count: int = 0
    decision_count: int = 0
    error_count: int = 0
    error_density: float = 0.0
    duration_ms: int = 0
    total_tokens: int = 0
    ended_with_error: bool = False

    @property
    def annotation_count(self) -> int:
        """Annotations reflected in the outcome counters."""
        return self.blocker_count + self.rework_count + self.decision_count

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {
            "has_commit": self.has_commit,
            "commit_count": self.commit_count,
            "has_push": self.has_push,
            "blocker_count": self.blocker_count,
            "rework_count": self.rework_count,
            "decision_count": self.decision_count,
            "error_count": self.error_count,
            "error_density": self.error_density,
            "duration_ms": self.duration_ms,
            "total_tokens": self.total_tokens,
            "ended_with_error": self.ended_with_error,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "OutcomeMetrics":
        defaults = cls()
        values = {
            name: data.get(name, getattr(defaults, name))
            for name in defaults.to_dict()
        }
        return cls(**values)  # type: ignore[arg-type]


@dataclass(frozen=True)
class SessionTrustAnalysis:
    """Complete trust analysis for a single session.

    Parameters
    ----------
    session_id:
        The analysed session.
    steering:
        Human-intervention metrics.
    characteristics:
        Task descriptors used for grouping.
    outcome:
        Completion-quality metrics.
    trust_score:
        Score in [0, 1], a pure function of ``steering`` and ``outcome``.
    autonomous:
        True when the session had no intervention and scored at or above
        the autonomy threshold.
    analyzed_at:
        UTC datetime of the analysis. Excluded from equality.
    """

    session_id: str
    steering: SteeringMetrics
    characteristics: TaskCharacteristics
    outcome: OutcomeMetrics
    trust_score: float
    autonomous: bool
    analyzed_at: datetime.datetime = field(default_factory=_utcnow, compare=False)

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {
            "session_id": self.session_id,
            "analyzed_at": self.analyzed_at.isoformat(),
            "steering": self.steering.to_dict(),
            "characteristics": self.characteristics.to_dict(),
            "outcome": self.outcome.to_dict(),
            "trust_score": self.trust_score,
            "autonomous": self.autonomous,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "SessionTrustAnalysis":
        """Restore an analysis previously exported with :meth:`to_dict`."""
        analyzed_at = parse_timestamp(data.get("analyzed_at"))
        return cls(
            session_id=str(data["session_id"]),
            steering=SteeringMetrics.from_dict(data.get("steering") or {}),  # type: ignore[arg-type]
            characteristics=TaskCharacteristics.from_dict(data.get("characteristics") or {}),  # type: ignore[arg-type]
            outcome=OutcomeMetrics.from_dict(data.get("outcome") or {}),  # type: ignore[arg-type]
            trust_score=float(data.get("trust_score", 0.0)),  # type: ignore[arg-type]
            autonomous=bool(data.get("autonomous", False)),
            analyzed_at=analyzed_at if analyzed_at is not None else _utcnow(),
        )


__all__ = [
    "BranchType",
    "OutcomeMetrics",
    "SessionTrustAnalysis",
    "SteeringMetrics",
    "TaskCharacteristics",
]
