"""StalenessPolicy — decide whether a cached session analysis must be recomputed."""
from __future__ import annotations

from session_trust.analysis.models import SessionTrustAnalysis
from session_trust.analysis.outcome import count_commits
from session_trust.errors import InvalidInputError
from session_trust.session import Session


def is_stale(session: Session, cached: SessionTrustAnalysis | None) -> bool:
    """Return True when *cached* no longer reflects *session*.

    A cached analysis is stale when:

    * there is none;
    * the session carries more annotations than the cached counters account
      for (new annotations were added since the analysis);
    * the session's commit count differs from the cached one (a re-parse
      changed the detected outcomes).

    Elapsed time alone never makes an analysis stale. The check compares
    counts, not content, so an edit that keeps both counts equal goes
    unnoticed.

    Raises
    ------
    InvalidInputError
        If *session* is not a :class:`Session` or *cached* is neither None
        nor a :class:`SessionTrustAnalysis`.
    """
    if not isinstance(session, Session):
        raise InvalidInputError("a Session", session)
    if cached is None:
        return True
    if not isinstance(cached, SessionTrustAnalysis):
        raise InvalidInputError("a SessionTrustAnalysis or None", cached)
    counted = cached.outcome.annotation_count + cached.steering.goal_shift_count
    if len(session.annotations) > counted:
        return True
    return count_commits(session) != cached.outcome.commit_count


__all__ = ["is_stale"]
