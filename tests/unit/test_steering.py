"""Unit tests for session_trust.analysis.steering — SteeringExtractor."""
from __future__ import annotations

import datetime

import pytest

from session_trust.analysis.steering import extract_steering_metrics, interventions
from session_trust.session import Annotation, AnnotationType, Event, EventType, Session

T0 = datetime.datetime(2026, 3, 1, 9, 0, tzinfo=datetime.timezone.utc)


def _at(seconds: int) -> datetime.datetime:
    return T0 + datetime.timedelta(seconds=seconds)


def _user(seconds: int | None = None) -> Event:
    return Event(type=EventType.USER_MESSAGE, timestamp=_at(seconds) if seconds is not None else None)


def _assistant(seconds: int | None = None) -> Event:
    return Event(
        type=EventType.ASSISTANT_MESSAGE, timestamp=_at(seconds) if seconds is not None else None
    )


# ---------------------------------------------------------------------------
# Interventions
# ---------------------------------------------------------------------------


class TestInterventions:
    def test_seed_prompt_is_not_an_intervention(self) -> None:
        session = Session(id="s", events=(_user(0), _assistant(5)))
        assert interventions(session) == []

    def test_later_user_messages_are_interventions(self) -> None:
        session = Session(id="s", events=(_user(0), _assistant(5), _user(10), _user(20)))
        assert len(interventions(session)) == 2

    def test_other_event_types_never_count(self) -> None:
        events = tuple(
            Event(type=t) for t in EventType if t is not EventType.USER_MESSAGE
        )
        session = Session(id="s", events=(_user(0), *events))
        assert extract_steering_metrics(session).intervention_count == 0


# ---------------------------------------------------------------------------
# Density
# ---------------------------------------------------------------------------


class TestInterventionDensity:
    def test_density_per_thousand_tokens(self) -> None:
        session = Session(
            id="s", events=(_user(0), _user(1), _user(2)), total_tokens=4000
        )
        assert extract_steering_metrics(session).intervention_density == pytest.approx(0.5)

    def test_small_sessions_floor_tokens_at_one_thousand(self) -> None:
        session = Session(id="s", events=(_user(0), _user(1)), total_tokens=200)
        assert extract_steering_metrics(session).intervention_density == pytest.approx(1.0)


# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------


class TestFirstInterventionTiming:
    def test_progress_uses_duration_ms(self) -> None:
        session = Session(
            id="s",
            events=(_user(0), _assistant(10), _user(25)),
            start_time=T0,
            duration_ms=100_000,
        )
        metrics = extract_steering_metrics(session)
        assert metrics.time_to_first_intervention == 25_000
        assert metrics.first_intervention_progress == pytest.approx(0.25)

    def test_start_falls_back_to_first_event(self) -> None:
        session = Session(
            id="s", events=(_user(10), _user(30)), duration_ms=40_000
        )
        assert extract_steering_metrics(session).time_to_first_intervention == 20_000

    def test_duration_falls_back_to_end_time(self) -> None:
        session = Session(
            id="s",
            events=(_user(0), _user(30)),
            start_time=T0,
            end_time=_at(60),
        )
        assert extract_steering_metrics(session).first_intervention_progress == pytest.approx(0.5)

    def test_progress_is_clamped_to_one(self) -> None:
        session = Session(
            id="s", events=(_user(0), _user(90)), start_time=T0, duration_ms=60_000
        )
        assert extract_steering_metrics(session).first_intervention_progress == 1.0

    def test_no_intervention_gives_none_timings(self) -> None:
        metrics = extract_steering_metrics(Session(id="s", events=(_user(0),), duration_ms=1000))
        assert metrics.time_to_first_intervention is None
        assert metrics.first_intervention_progress is None

    def test_missing_timestamps_give_none(self) -> None:
        metrics = extract_steering_metrics(Session(id="s", events=(_user(), _user())))
        assert metrics.intervention_count == 1
        assert metrics.time_to_first_intervention is None
        assert metrics.first_intervention_progress is None


# ---------------------------------------------------------------------------
# Goal shifts and empty input
# ---------------------------------------------------------------------------


class TestGoalShiftsAndEmptySessions:
    def test_goal_shift_annotations_are_counted(self) -> None:
        session = Session(
            id="s",
            annotations=(
                Annotation(type=AnnotationType.GOAL_SHIFT),
                Annotation(type=AnnotationType.GOAL_SHIFT),
                Annotation(type=AnnotationType.BLOCKER),
            ),
        )
        assert extract_steering_metrics(session).goal_shift_count == 2

    def test_empty_session_gives_zeroed_metrics(self) -> None:
        metrics = extract_steering_metrics(Session(id="empty"))
        assert metrics.intervention_count == 0
        assert metrics.intervention_density == 0.0
        assert metrics.goal_shift_count == 0


# ---------------------------------------------------------------------------
# Mixed naive and aware timestamps
# ---------------------------------------------------------------------------


class TestMixedTimezones:
    def test_naive_events_with_aware_start(self) -> None:
        session = Session(
            id="s",
            start_time=datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc),
            duration_ms=60_000,
            events=(
                Event(type=EventType.USER_MESSAGE, timestamp=datetime.datetime(2024, 1, 1)),
                Event(type=EventType.USER_MESSAGE, timestamp=datetime.datetime(2024, 1, 1, 0, 0, 30)),
            ),
        )
        metrics = extract_steering_metrics(session)
        assert metrics.time_to_first_intervention == 30_000
        assert metrics.first_intervention_progress == pytest.approx(0.5)

    def test_aware_events_with_naive_end(self) -> None:
        session = Session(
            id="s",
            events=(_user(0), _user(30)),
            start_time=T0,
            end_time=datetime.datetime(2026, 3, 1, 9, 1),
        )
        assert extract_steering_metrics(session).first_intervention_progress == pytest.approx(0.5)
