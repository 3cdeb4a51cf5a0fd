"""Outcome extraction — did the session finish cleanly?

Commits and pushes come from the structured outcome record when upstream
extraction produced one; older sessions without it fall back to scanning
``git_op`` events for the commands themselves.
"""
from __future__ import annotations

import re

from session_trust.analysis.models import OutcomeMetrics
from session_trust.analysis.payload import shell_command
from session_trust.session import AnnotationType, Event, EventType, Session

_GIT_COMMIT = re.compile(r"\bgit\s+(?:-[^\s]+\s+)*commit\b", re.IGNORECASE)
_GIT_PUSH = re.compile(r"\bgit\s+(?:-[^\s]+\s+)*push\b", re.IGNORECASE)


def _git_command(event: Event) -> str | None:
    if event.type is not EventType.GIT_OP:
        return None
    return shell_command(event.payload)


def is_commit(event: Event) -> bool:
    """Return True if *event* is a git operation running ``git commit``."""
    command = _git_command(event)
    return command is not None and bool(_GIT_COMMIT.search(command))


def is_push(event: Event) -> bool:
    """Return True if *event* is a git operation running ``git push``."""
    command = _git_command(event)
    return command is not None and bool(_GIT_PUSH.search(command))


def count_commits(session: Session) -> int:
    """Count the commits of a session.

    Uses ``session.outcomes`` when present, otherwise scans ``git_op``
    events. The staleness policy relies on this matching the count stored
    in :class:`OutcomeMetrics`.
    """
    if session.outcomes is not None:
        return len(session.outcomes.commits)
    return sum(1 for e in session.events if is_commit(e))


def _has_push(session: Session) -> bool:
    if session.outcomes is not None:
        return len(session.outcomes.pushes) > 0
    return any(is_push(e) for e in session.events)


def extract_outcome_metrics(session: Session) -> OutcomeMetrics:
    """Derive completion-quality metrics from a session.

    Parameters
    ----------
    session:
        The session to inspect.

    Returns
    -------
    OutcomeMetrics
        Metrics for the session; all counts are zero for an empty session.
    """
    counts = {kind: 0 for kind in AnnotationType}
    for annotation in session.annotations:
        counts[annotation.type] += 1

    events = session.events
    error_count = sum(1 for e in events if e.type is EventType.ERROR)
    commit_count = count_commits(session)

    return OutcomeMetrics(
        has_commit=commit_count > 0,
        commit_count=commit_count,
        has_push=_has_push(session),
        blocker_count=counts[AnnotationType.BLOCKER],
        rework_count=counts[AnnotationType.REWORK],
        decision_count=counts[AnnotationType.DECISION],
        error_count=error_count,
        error_density=round(error_count / max(1, len(events)), 6),
        duration_ms=session.duration_ms,
        total_tokens=session.total_tokens,
        ended_with_error=bool(events) and events[-1].type is EventType.ERROR,
    )


__all__ = ["count_commits", "extract_outcome_metrics", "is_commit", "is_push"]
