"""Unit tests for session_trust.staleness — StalenessPolicy."""
from __future__ import annotations

import dataclasses
import datetime

import pytest

from session_trust.analysis.analyzer import analyze_session_trust
from session_trust.errors import InvalidInputError
from session_trust.session import (
    Annotation,
    AnnotationType,
    CommitRecord,
    Event,
    EventType,
    Session,
    SessionOutcomes,
)
from session_trust.staleness import is_stale


@pytest.fixture()
def session() -> Session:
    return Session(
        id="s-1",
        events=(Event(type=EventType.USER_MESSAGE), Event(type=EventType.ASSISTANT_MESSAGE)),
        annotations=(
            Annotation(type=AnnotationType.DECISION),
            Annotation(type=AnnotationType.BLOCKER),
        ),
        outcomes=SessionOutcomes(commits=(CommitRecord(message="first"),)),
    )


class TestIsStale:
    def test_no_cache_is_stale(self, session: Session) -> None:
        assert is_stale(session, None) is True

    def test_unchanged_session_is_fresh(self, session: Session) -> None:
        assert is_stale(session, analyze_session_trust(session)) is False

    def test_new_annotation_makes_stale(self, session: Session) -> None:
        cached = analyze_session_trust(session)
        updated = dataclasses.replace(
            session, annotations=(*session.annotations, Annotation(type=AnnotationType.REWORK))
        )
        assert is_stale(updated, cached) is True

    def test_new_commit_makes_stale(self, session: Session) -> None:
        cached = analyze_session_trust(session)
        updated = dataclasses.replace(
            session,
            outcomes=SessionOutcomes(
                commits=(CommitRecord(message="first"), CommitRecord(message="second"))
            ),
        )
        assert is_stale(updated, cached) is True

    def test_removed_commit_makes_stale(self, session: Session) -> None:
        cached = analyze_session_trust(session)
        assert is_stale(dataclasses.replace(session, outcomes=SessionOutcomes()), cached) is True

    def test_goal_shift_sessions_do_not_stay_stale(self) -> None:
        session = Session(
            id="s-2",
            annotations=(
                Annotation(type=AnnotationType.GOAL_SHIFT),
                Annotation(type=AnnotationType.DECISION),
            ),
        )
        assert is_stale(session, analyze_session_trust(session)) is False

    def test_elapsed_time_alone_never_makes_stale(self, session: Session) -> None:
        old = analyze_session_trust(
            session, now=datetime.datetime(2000, 1, 1, tzinfo=datetime.timezone.utc)
        )
        assert is_stale(session, old) is False

    def test_edit_keeping_counts_goes_unnoticed(self, session: Session) -> None:
        cached = analyze_session_trust(session)
        edited = dataclasses.replace(
            session,
            annotations=(
                Annotation(type=AnnotationType.DECISION, summary="changed"),
                Annotation(type=AnnotationType.REWORK),
            ),
        )
        assert is_stale(edited, cached) is False


class TestIsStaleInputs:
    def test_cached_mapping_raises(self, session: Session) -> None:
        with pytest.raises(InvalidInputError):
            is_stale(session, {"outcome": {}})  # type: ignore[arg-type]

    def test_non_session_raises(self, session: Session) -> None:
        with pytest.raises(InvalidInputError):
            is_stale({"id": "s-1"}, analyze_session_trust(session))  # type: ignore[arg-type]
