"""SessionTrustAnalyzer — one SessionTrustAnalysis per session.

Combines the steering, outcome and characteristics extractors with the
trust score. All functions are pure: sessions are analysed independently
and nothing is stored.
"""
from __future__ import annotations

import datetime
import logging
from collections.abc import Iterable, Mapping

from session_trust.analysis.characteristics import extract_task_characteristics
from session_trust.analysis.models import SessionTrustAnalysis
from session_trust.analysis.outcome import extract_outcome_metrics
from session_trust.analysis.scoring import compute_trust_score
from session_trust.analysis.steering import extract_steering_metrics
from session_trust.config import DEFAULT_CONFIG, EngineConfig
from session_trust.errors import InvalidInputError
from session_trust.session import Session, TicketInfo

logger = logging.getLogger(__name__)


def analyze_session_trust(
    session: Session,
    ticket_type: str | None = None,
    ticket_labels: Iterable[str] | None = None,
    *,
    config: EngineConfig | None = None,
    now: datetime.datetime | None = None,
) -> SessionTrustAnalysis:
    """Analyse a single session.

    Parameters
    ----------
    session:
        The session to analyse.
    ticket_type:
        Type of the linked ticket. Stored, not scored.
    ticket_labels:
        Labels of the linked ticket. Stored, not scored.
    config:
        Engine configuration. Defaults to :data:`DEFAULT_CONFIG`.
    now:
        Timestamp recorded as ``analyzed_at``. Defaults to UTC now.

    Returns
    -------
    SessionTrustAnalysis

    Raises
    ------
    InvalidInputError
        If *session* is not a :class:`Session`.
    """
    if not isinstance(session, Session):
        raise InvalidInputError("a Session", session)
    cfg = config if config is not None else DEFAULT_CONFIG

    steering = extract_steering_metrics(session)
    outcome = extract_outcome_metrics(session)
    characteristics = extract_task_characteristics(session, ticket_type, ticket_labels)
    trust_score = compute_trust_score(steering, outcome, cfg.scoring)
    autonomous = steering.intervention_count == 0 and trust_score >= cfg.autonomy_threshold

    return SessionTrustAnalysis(
        session_id=session.id,
        steering=steering,
        characteristics=characteristics,
        outcome=outcome,
        trust_score=trust_score,
        autonomous=autonomous,
        analyzed_at=now if now is not None else datetime.datetime.now(datetime.timezone.utc),
    )


def resolve_ticket(entry: object) -> TicketInfo | None:
    """Return *entry* as a :class:`TicketInfo`, accepting ``{"type", "labels"}`` mappings."""
    if entry is None or isinstance(entry, TicketInfo):
        return entry
    if isinstance(entry, Mapping):
        return TicketInfo.from_dict(entry)
    raise InvalidInputError("a TicketInfo or ticket mapping", entry)


def analyze_sessions_trust(
    sessions: Iterable[Session],
    ticket_map: Mapping[str, TicketInfo | Mapping[str, object]] | None = None,
    *,
    config: EngineConfig | None = None,
) -> list[SessionTrustAnalysis]:
    """Analyse a batch of sessions, resolving linked tickets through *ticket_map*.

    Sessions without a ticket id, or whose id is absent from *ticket_map*,
    are analysed with empty ticket fields. Ticket entries may be
    :class:`TicketInfo` records or ``{"type", "labels"}`` mappings.

    Raises
    ------
    InvalidInputError
        If *sessions* is not iterable, *ticket_map* is not a mapping, or an
        element or ticket entry has the wrong type.
    """
    if sessions is None or isinstance(sessions, (str, bytes, Mapping)):
        raise InvalidInputError("an iterable of Session", sessions)
    try:
        items = list(sessions)
    except TypeError:
        raise InvalidInputError("an iterable of Session", sessions) from None
    if ticket_map is not None and not isinstance(ticket_map, Mapping):
        raise InvalidInputError("a mapping of ticket id to ticket", ticket_map)
    tickets = ticket_map or {}
    now = datetime.datetime.now(datetime.timezone.utc)
    analyses: list[SessionTrustAnalysis] = []
    unresolved = 0

    for session in items:
        if not isinstance(session, Session):
            raise InvalidInputError("a Session", session)
        ticket_id = session.linear_ticket_id
        ticket = resolve_ticket(tickets.get(ticket_id)) if ticket_id else None
        if ticket_id and ticket is None:
            unresolved += 1
        analyses.append(
            analyze_session_trust(
                session,
                ticket.type if ticket is not None else None,
                ticket.labels if ticket is not None else None,
                config=config,
                now=now,
            )
        )

    logger.debug(
        "Analysed %d session(s); %d linked ticket(s) unresolved", len(analyses), unresolved
    )
    return analyses


__all__ = ["analyze_session_trust", "analyze_sessions_trust", "resolve_ticket"]
