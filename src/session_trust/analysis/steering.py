"""Steering extraction — how often and how early a human stepped in.

Every user message after the seed prompt is an intervention. The steering
log is the ground truth for trust: a session the human had to redirect is,
by definition, one the assistant could not finish alone.
"""
from __future__ import annotations

import datetime

from session_trust.analysis.models import SteeringMetrics
from session_trust.session import AnnotationType, Event, EventType, Session


def _ms_between(start: datetime.datetime, end: datetime.datetime) -> int:
    return int((end - start).total_seconds() * 1000)


def _session_start(session: Session) -> datetime.datetime | None:
    if session.start_time is not None:
        return session.start_time
    for event in session.events:
        if event.timestamp is not None:
            return event.timestamp
    return None


def _session_duration_ms(session: Session, start: datetime.datetime | None) -> int:
    if session.duration_ms > 0:
        return session.duration_ms
    end = session.end_time
    if end is None:
        stamped = [e.timestamp for e in session.events if e.timestamp is not None]
        end = stamped[-1] if stamped else None
    if start is None or end is None:
        return 0
    return max(0, _ms_between(start, end))


def interventions(session: Session) -> list[Event]:
    """Return the user messages that follow the seed prompt."""
    user_messages = [e for e in session.events if e.type is EventType.USER_MESSAGE]
    return user_messages[1:]


def extract_steering_metrics(session: Session) -> SteeringMetrics:
    """Derive human-intervention metrics from a session.

    Parameters
    ----------
    session:
        The session to inspect.

    Returns
    -------
    SteeringMetrics
        Zeroed metrics (with None timings) for sessions without
        interventions or events.
    """
    steering_events = interventions(session)
    intervention_count = len(steering_events)

    density = intervention_count / max(1.0, session.total_tokens / 1000)

    goal_shift_count = sum(
        1 for a in session.annotations if a.type is AnnotationType.GOAL_SHIFT
    )

    time_to_first: int | None = None
    progress: float | None = None
    if steering_events:
        start = _session_start(session)
        first = steering_events[0].timestamp
        if start is not None and first is not None:
            time_to_first = max(0, _ms_between(start, first))
            duration = _session_duration_ms(session, start)
            if duration > 0:
                progress = min(1.0, max(0.0, time_to_first / duration))

    return SteeringMetrics(
        intervention_count=intervention_count,
        intervention_density=round(density, 6),
        first_intervention_progress=progress,
        goal_shift_count=goal_shift_count,
        time_to_first_intervention=time_to_first,
    )


__all__ = ["extract_steering_metrics", "interventions"]
