"""Aggregate records: per-category statistics and the trust map."""
from __future__ import annotations

import datetime
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

from session_trust.session import parse_timestamp


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


GLOBAL_CATEGORY = "global"


class CategoryType(str, Enum):
    """Dimensions along which sessions are grouped."""

    AREA = "area"
    TICKET_TYPE = "ticketType"
    BRANCH_TYPE = "branchType"
    LABEL = "label"
    PROJECT = "project"


@dataclass(frozen=True)
class TrustAggregate:
    """Trust statistics for one category, or for all sessions.

    Parameters
    ----------
    category:
        The grouping key (e.g. ``"src/auth"``, ``"bug"``), or ``"global"``.
    category_type:
        Grouping dimension; None for the global aggregate.
    total_sessions / autonomous_sessions:
        Session counts.
    autonomous_rate:
        ``autonomous_sessions / total_sessions`` (0 for an empty group).
    avg_trust_score / avg_intervention_count / avg_intervention_density:
        Arithmetic means over the group.
    commit_rate / rework_rate / error_rate:
        Share of sessions with a commit, with rework, ending with an error.
    avg_first_intervention_progress:
        Mean over sessions that had an intervention; None if none did.
    confidence:
        Sample-size confidence in [0, 1], non-decreasing in ``total_sessions``.
    updated_at:
        UTC datetime of computation. Excluded from equality.
    """

    category: str
    category_type: CategoryType | None
    total_sessions: int = 0
    autonomous_sessions: int = 0
    autonomous_rate: float = 0.0
    avg_trust_score: float = 0.0
    avg_intervention_count: float = 0.0
    avg_intervention_density: float = 0.0
    commit_rate: float = 0.0
    rework_rate: float = 0.0
    error_rate: float = 0.0
    avg_first_intervention_progress: float | None = None
    confidence: float = 0.0
    updated_at: datetime.datetime = field(default_factory=_utcnow, compare=False)

    @property
    def is_global(self) -> bool:
        return self.category_type is None

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {
            "category": self.category,
            "category_type": self.category_type.value if self.category_type else None,
            "total_sessions": self.total_sessions,
            "autonomous_sessions": self.autonomous_sessions,
            "autonomous_rate": self.autonomous_rate,
            "avg_trust_score": self.avg_trust_score,
            "avg_intervention_count": self.avg_intervention_count,
            "avg_intervention_density": self.avg_intervention_density,
            "commit_rate": self.commit_rate,
            "rework_rate": self.rework_rate,
            "error_rate": self.error_rate,
            "avg_first_intervention_progress": self.avg_first_intervention_progress,
            "confidence": self.confidence,
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "TrustAggregate":
        """Restore an aggregate previously exported with :meth:`to_dict`."""
        category_type = data.get("category_type")
        updated_at = parse_timestamp(data.get("updated_at"))
        progress = data.get("avg_first_intervention_progress")
        return cls(
            category=str(data.get("category", GLOBAL_CATEGORY)),
            category_type=CategoryType(category_type) if category_type else None,
            total_sessions=int(data.get("total_sessions", 0)),  # type: ignore[arg-type]
            autonomous_sessions=int(data.get("autonomous_sessions", 0)),  # type: ignore[arg-type]
            autonomous_rate=float(data.get("autonomous_rate", 0.0)),  # type: ignore[arg-type]
            avg_trust_score=float(data.get("avg_trust_score", 0.0)),  # type: ignore[arg-type]
            avg_intervention_count=float(data.get("avg_intervention_count", 0.0)),  # type: ignore[arg-type]
            avg_intervention_density=float(data.get("avg_intervention_density", 0.0)),  # type: ignore[arg-type]
            commit_rate=float(data.get("commit_rate", 0.0)),  # type: ignore[arg-type]
            rework_rate=float(data.get("rework_rate", 0.0)),  # type: ignore[arg-type]
            error_rate=float(data.get("error_rate", 0.0)),  # type: ignore[arg-type]
            avg_first_intervention_progress=float(progress) if progress is not None else None,  # type: ignore[arg-type]
            confidence=float(data.get("confidence", 0.0)),  # type: ignore[arg-type]
            updated_at=updated_at if updated_at is not None else _utcnow(),
        )


@dataclass(frozen=True)
class TrustMap:
    """Category-grouped trust statistics over all analysed sessions.

    The map is always rebuilt from the full analysis set; it is never
    patched incrementally.
    """

    by_area: tuple[TrustAggregate, ...] = ()
    by_ticket_type: tuple[TrustAggregate, ...] = ()
    by_branch_type: tuple[TrustAggregate, ...] = ()
    by_label: tuple[TrustAggregate, ...] = ()
    by_project: tuple[TrustAggregate, ...] = ()
    global_aggregate: TrustAggregate = field(
        default_factory=lambda: TrustAggregate(category=GLOBAL_CATEGORY, category_type=None)
    )
    computed_at: datetime.datetime = field(default_factory=_utcnow, compare=False)

    def dimension(self, category_type: CategoryType) -> tuple[TrustAggregate, ...]:
        """Return the aggregates of one grouping dimension."""
        return {
            CategoryType.AREA: self.by_area,
            CategoryType.TICKET_TYPE: self.by_ticket_type,
            CategoryType.BRANCH_TYPE: self.by_branch_type,
            CategoryType.LABEL: self.by_label,
            CategoryType.PROJECT: self.by_project,
        }[category_type]

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {
            "by_area": [a.to_dict() for a in self.by_area],
            "by_ticket_type": [a.to_dict() for a in self.by_ticket_type],
            "by_branch_type": [a.to_dict() for a in self.by_branch_type],
            "by_label": [a.to_dict() for a in self.by_label],
            "by_project": [a.to_dict() for a in self.by_project],
            "global": self.global_aggregate.to_dict(),
            "computed_at": self.computed_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "TrustMap":
        """Restore a map previously exported with :meth:`to_dict`."""

        def _aggregates(key: str) -> tuple[TrustAggregate, ...]:
            return tuple(TrustAggregate.from_dict(item) for item in data.get(key) or ())  # type: ignore[union-attr]

        computed_at = parse_timestamp(data.get("computed_at"))
        global_data = data.get("global")
        return cls(
            by_area=_aggregates("by_area"),
            by_ticket_type=_aggregates("by_ticket_type"),
            by_branch_type=_aggregates("by_branch_type"),
            by_label=_aggregates("by_label"),
            by_project=_aggregates("by_project"),
            global_aggregate=(
                TrustAggregate.from_dict(global_data)  # type: ignore[arg-type]
                if isinstance(global_data, Mapping)
                else TrustAggregate(category=GLOBAL_CATEGORY, category_type=None)
            ),
            computed_at=computed_at if computed_at is not None else _utcnow(),
        )


__all__ = ["CategoryType", "GLOBAL_CATEGORY", "TrustAggregate", "TrustMap"]
