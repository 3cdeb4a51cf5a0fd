"""TrustAggregator — fold session analyses into the trust map.

Each grouping dimension gets its own explicit pass. Labels are
multi-valued, so one session contributes to every label it carries.
"""
from __future__ import annotations

import datetime
import logging
from collections import defaultdict
from collections.abc import Callable, Iterable, Mapping, Sequence

from session_trust.aggregation.models import (
    GLOBAL_CATEGORY,
    CategoryType,
    TrustAggregate,
    TrustMap,
)
from session_trust.analysis.models import SessionTrustAnalysis
from session_trust.config import DEFAULT_CONFIG, EngineConfig
from session_trust.errors import InvalidInputError

logger = logging.getLogger(__name__)

_Groups = dict[str, list[SessionTrustAnalysis]]


def compute_confidence(total_sessions: int, saturation_n: int) -> float:
    """Return ``min(1, total_sessions / saturation_n)``; 0 for no sessions."""
    if total_sessions <= 0:
        return 0.0
    return min(1.0, total_sessions / saturation_n)


def _mean(values: Sequence[float]) -> float | None:
    if not values:
        return None
    return round(sum(values) / len(values), 6)


def _rate(count: int, total: int) -> float:
    return round(count / total, 6) if total else 0.0


def aggregate(
    category: str,
    category_type: CategoryType | None,
    group: Sequence[SessionTrustAnalysis],
    *,
    saturation_n: int,
    now: datetime.datetime,
) -> TrustAggregate:
    """Compute the statistics for one group of analyses.

    Averages skip None values; a group whose values are all None yields None
    for that average.
    """
    total = len(group)
    autonomous = sum(1 for a in group if a.autonomous)
    progress = [
        a.steering.first_intervention_progress
        for a in group
        if a.steering.first_intervention_progress is not None
    ]

    return TrustAggregate(
        category=category,
        category_type=category_type,
        total_sessions=total,
        autonomous_sessions=autonomous,
        autonomous_rate=_rate(autonomous, total),
        avg_trust_score=_mean([a.trust_score for a in group]) or 0.0,
        avg_intervention_count=_mean([a.steering.intervention_count for a in group]) or 0.0,
        avg_intervention_density=_mean([a.steering.intervention_density for a in group]) or 0.0,
        commit_rate=_rate(sum(1 for a in group if a.outcome.has_commit), total),
        rework_rate=_rate(sum(1 for a in group if a.outcome.rework_count > 0), total),
        error_rate=_rate(sum(1 for a in group if a.outcome.ended_with_error), total),
        avg_first_intervention_progress=_mean(progress),  # type: ignore[arg-type]
        confidence=compute_confidence(total, saturation_n),
        updated_at=now,
    )


def _group_by_key(
    analyses: Iterable[SessionTrustAnalysis],
    key: Callable[[SessionTrustAnalysis], str | None],
) -> _Groups:
    groups: _Groups = defaultdict(list)
    for analysis in analyses:
        value = key(analysis)
        if value:
            groups[value].append(analysis)
    return groups


def _group_by_labels(analyses: Iterable[SessionTrustAnalysis]) -> _Groups:
    groups: _Groups = defaultdict(list)
    for analysis in analyses:
        # A label repeated on the same ticket still counts the session once.
        for label in dict.fromkeys(analysis.characteristics.ticket_labels):
            if label:
                groups[label].append(analysis)
    return groups


def _branch_key(analysis: SessionTrustAnalysis) -> str | None:
    branch_type = analysis.characteristics.branch_type
    return branch_type.value if branch_type is not None else None


def _aggregate_groups(
    groups: _Groups,
    category_type: CategoryType,
    *,
    saturation_n: int,
    now: datetime.datetime,
) -> tuple[TrustAggregate, ...]:
    aggregates = [
        aggregate(category, category_type, group, saturation_n=saturation_n, now=now)
        for category, group in groups.items()
    ]
    aggregates.sort(key=lambda a: (-a.total_sessions, a.category))
    return tuple(aggregates)


def build_trust_map(
    analyses: Iterable[SessionTrustAnalysis],
    *,
    config: EngineConfig | None = None,
    now: datetime.datetime | None = None,
) -> TrustMap:
    """Build the complete trust map from session analyses.

    Parameters
    ----------
    analyses:
        Every analysis to aggregate. The map is rebuilt from scratch.
    config:
        Engine configuration. Defaults to :data:`DEFAULT_CONFIG`.
    now:
        Timestamp for ``computed_at`` / ``updated_at``. Defaults to UTC now.

    Returns
    -------
    TrustMap
        For an empty input, a map with a zeroed global aggregate and empty
        category lists.

    Raises
    ------
    InvalidInputError
        If *analyses* is not iterable or one of its elements is not a
        :class:`SessionTrustAnalysis`.
    """
    cfg = config if config is not None else DEFAULT_CONFIG
    stamp = now if now is not None else datetime.datetime.now(datetime.timezone.utc)
    if analyses is None or isinstance(analyses, (str, bytes, Mapping)):
        raise InvalidInputError("an iterable of SessionTrustAnalysis", analyses)
    try:
        items = list(analyses)
    except TypeError:
        raise InvalidInputError("an iterable of SessionTrustAnalysis", analyses) from None
    for item in items:
        if not isinstance(item, SessionTrustAnalysis):
            raise InvalidInputError("a SessionTrustAnalysis", item)

    n = cfg.confidence_saturation_n
    passes: list[tuple[CategoryType, _Groups]] = [
        (CategoryType.AREA, _group_by_key(items, lambda a: a.characteristics.codebase_area)),
        (CategoryType.TICKET_TYPE, _group_by_key(items, lambda a: a.characteristics.ticket_type)),
        (CategoryType.BRANCH_TYPE, _group_by_key(items, _branch_key)),
        (CategoryType.LABEL, _group_by_labels(items)),
        (CategoryType.PROJECT, _group_by_key(items, lambda a: a.characteristics.project_path)),
    ]
    dimensions = {
        category_type: _aggregate_groups(groups, category_type, saturation_n=n, now=stamp)
        for category_type, groups in passes
    }

    trust_map = TrustMap(
        by_area=dimensions[CategoryType.AREA],
        by_ticket_type=dimensions[CategoryType.TICKET_TYPE],
        by_branch_type=dimensions[CategoryType.BRANCH_TYPE],
        by_label=dimensions[CategoryType.LABEL],
        by_project=dimensions[CategoryType.PROJECT],
        global_aggregate=aggregate(GLOBAL_CATEGORY, None, items, saturation_n=n, now=stamp),
        computed_at=stamp,
    )
    logger.info(
        "Built trust map from %d analyses (%d areas, %d ticket types, %d labels)",
        len(items),
        len(trust_map.by_area),
        len(trust_map.by_ticket_type),
        len(trust_map.by_label),
    )
    return trust_map


__all__ = ["aggregate", "build_trust_map", "compute_confidence"]
