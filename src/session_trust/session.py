"""Session records consumed by the trust analysis engine.

Sessions are produced upstream (log parsing, LLM annotation, outcome
extraction) and are read-only to the engine. Each record is closed and
explicitly typed; anything the upstream system attaches beyond the typed
fields is kept verbatim in a single opaque ``payload`` (events) or ``extra``
(sessions) mapping.
"""
from __future__ import annotations

import datetime
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

from session_trust.errors import InvalidInputError


class EventType(str, Enum):
    """Kinds of events recorded in a session."""

    USER_MESSAGE = "user_message"
    ASSISTANT_MESSAGE = "assistant_message"
    TOOL_CALL = "tool_call"
    GIT_OP = "git_op"
    ERROR = "error"
    PLANNING_MODE = "planning_mode"


class AnnotationType(str, Enum):
    """Kinds of LLM-produced annotations attached to a session."""

    DECISION = "decision"
    BLOCKER = "blocker"
    REWORK = "rework"
    GOAL_SHIFT = "goal_shift"


def parse_timestamp(value: object) -> datetime.datetime | None:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Returns None for empty or unparseable values. Naive timestamps are
    assumed to be UTC.
    """
    if isinstance(value, datetime.datetime):
        parsed = value
    elif isinstance(value, str) and value:
        text = value[:-1] + "+00:00" if value.endswith("Z") else value
        try:
            parsed = datetime.datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed


def _as_utc(value: datetime.datetime | None) -> datetime.datetime | None:
    if isinstance(value, datetime.datetime) and value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value


def _iso(value: datetime.datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _pick(data: Mapping[str, object], *keys: str, default: object = None) -> object:
    for key in keys:
        if key in data:
            return data[key]
    return default


def _as_int(value: object) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return int(value)
    return 0


def _enum_value(enum_cls: type[Enum], value: object, what: str) -> Enum:
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidInputError(what, value, detail=f"unknown value {value!r}") from None


@dataclass(frozen=True)
class Event:
    """A single typed event in a session.

    Parameters
    ----------
    type:
        Event kind.
    timestamp:
        UTC datetime of the event, or None when the source had none.
    token_count:
        Tokens consumed by the event.
    payload:
        The raw upstream log entry. Only the helpers in
        ``session_trust.analysis.payload`` look inside it.
    """

    type: EventType
    timestamp: datetime.datetime | None = None
    token_count: int = 0
    payload: Mapping[str, object] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        # Naive timestamps are UTC, as in parse_timestamp.
        object.__setattr__(self, "timestamp", _as_utc(self.timestamp))

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "Event":
        if not isinstance(data, Mapping):
            raise InvalidInputError("an event mapping", data)
        raw = _pick(data, "raw", "payload", default={})
        return cls(
            type=_enum_value(EventType, data.get("type"), "an EventType value"),  # type: ignore[arg-type]
            timestamp=parse_timestamp(data.get("timestamp")),
            token_count=_as_int(_pick(data, "tokenCount", "token_count", default=0)),
            payload=dict(raw) if isinstance(raw, Mapping) else {},
        )

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {
            "type": self.type.value,
            "timestamp": _iso(self.timestamp),
            "token_count": self.token_count,
            "payload": dict(self.payload),
        }


@dataclass(frozen=True)
class Annotation:
    """An LLM-produced annotation on a session.

    Parameters
    ----------
    type:
        Annotation kind.
    summary:
        Short human-readable description.
    confidence:
        Annotator confidence in [0, 1].
    event_index:
        Index of the event the annotation refers to, if any.
    """

    type: AnnotationType
    summary: str = ""
    confidence: float = 1.0
    event_index: int | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "Annotation":
        if not isinstance(data, Mapping):
            raise InvalidInputError("an annotation mapping", data)
        index = _pick(data, "eventIndex", "event_index")
        confidence = data.get("confidence", 1.0)
        return cls(
            type=_enum_value(AnnotationType, data.get("type"), "an AnnotationType value"),  # type: ignore[arg-type]
            summary=str(data.get("summary", "")),
            confidence=float(confidence) if isinstance(confidence, (int, float)) else 1.0,
            event_index=int(index) if isinstance(index, int) else None,
        )

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {
            "type": self.type.value,
            "summary": self.summary,
            "confidence": self.confidence,
            "event_index": self.event_index,
        }


@dataclass(frozen=True)
class CommitRecord:
    """A commit detected in a session."""

    message: str
    ticket_ids: tuple[str, ...] = ()
    timestamp: datetime.datetime | None = None
    event_index: int | None = None


@dataclass(frozen=True)
class PushRecord:
    """A push to a remote detected in a session."""

    remote: str
    branch: str
    timestamp: datetime.datetime | None = None
    event_index: int | None = None


@dataclass(frozen=True)
class TicketStateChange:
    """A ticket transition (e.g. to "done") performed during a session."""

    ticket_id: str
    new_state: str
    timestamp: datetime.datetime | None = None
    event_index: int | None = None


@dataclass(frozen=True)
class SessionOutcomes:
    """Structured outcomes extracted upstream from a session's events."""

    commits: tuple[CommitRecord, ...] = ()
    pushes: tuple[PushRecord, ...] = ()
    ticket_state_changes: tuple[TicketStateChange, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "SessionOutcomes":
        if not isinstance(data, Mapping):
            raise InvalidInputError("an outcomes mapping", data)

        def _items(*keys: str) -> list[Mapping[str, object]]:
            value = _pick(data, *keys, default=[])
            return [item for item in value if isinstance(item, Mapping)] if isinstance(value, list) else []

        def _index(item: Mapping[str, object]) -> int | None:
            value = _pick(item, "eventIndex", "event_index")
            return value if isinstance(value, int) else None

        return cls(
            commits=tuple(
                CommitRecord(
                    message=str(item.get("message", "")),
                    ticket_ids=tuple(str(t) for t in _pick(item, "ticketIds", "ticket_ids", default=()) or ()),  # type: ignore[union-attr]
                    timestamp=parse_timestamp(item.get("timestamp")),
                    event_index=_index(item),
                )
                for item in _items("commits")
            ),
            pushes=tuple(
                PushRecord(
                    remote=str(item.get("remote", "")),
                    branch=str(item.get("branch", "")),
                    timestamp=parse_timestamp(item.get("timestamp")),
                    event_index=_index(item),
                )
                for item in _items("pushes")
            ),
            ticket_state_changes=tuple(
                TicketStateChange(
                    ticket_id=str(_pick(item, "ticketId", "ticket_id", default="")),
                    new_state=str(_pick(item, "newState", "new_state", default="")),
                    timestamp=parse_timestamp(item.get("timestamp")),
                    event_index=_index(item),
                )
                for item in _items("ticketStateChanges", "ticket_state_changes")
            ),
        )

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {
            "commits": [
                {
                    "message": c.message,
                    "ticket_ids": list(c.ticket_ids),
                    "timestamp": _iso(c.timestamp),
                    "event_index": c.event_index,
                }
                for c in self.commits
            ],
            "pushes": [
                {
                    "remote": p.remote,
                    "branch": p.branch,
                    "timestamp": _iso(p.timestamp),
                    "event_index": p.event_index,
                }
                for p in self.pushes
            ],
            "ticket_state_changes": [
                {
                    "ticket_id": t.ticket_id,
                    "new_state": t.new_state,
                    "timestamp": _iso(t.timestamp),
                    "event_index": t.event_index,
                }
                for t in self.ticket_state_changes
            ],
        }


@dataclass(frozen=True)
class TicketInfo:
    """Ticket metadata resolved from a linked ticket id."""

    type: str | None = None
    labels: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "TicketInfo":
        if not isinstance(data, Mapping):
            raise InvalidInputError("a ticket mapping", data)
        ticket_type = data.get("type")
        labels = data.get("labels") or []
        return cls(
            type=str(ticket_type) if ticket_type else None,
            labels=tuple(str(label) for label in labels) if isinstance(labels, list) else (),
        )


_SESSION_KEYS = frozenset(
    {
        "id", "events", "annotations", "branch", "folder",
        "linearTicketId", "linear_ticket_id", "outcomes",
        "totalTokens", "total_tokens", "durationMs", "duration_ms",
        "startTime", "start_time", "endTime", "end_time", "analyzed",
    }
)


@dataclass(frozen=True)
class Session:
    """An AI-assisted coding session.

    Parameters
    ----------
    id:
        Unique session identifier.
    events:
        Ordered events of the session.
    annotations:
        Ordered annotations produced by the LLM annotator.
    branch:
        Git branch the session worked on, if known.
    folder:
        Project folder the session ran in.
    linear_ticket_id:
        Linked ticket identifier, if any.
    outcomes:
        Structured outcomes from upstream extraction. When None, commits
        and pushes are inferred from ``git_op`` events.
    total_tokens:
        Total tokens consumed by the session.
    duration_ms:
        Session duration in milliseconds.
    start_time / end_time:
        Session bounds (UTC), if known.
    analyzed:
        Whether the LLM annotator has processed this session.
    extra:
        Upstream fields outside the typed record, preserved verbatim.
    """

    id: str
    events: tuple[Event, ...] = ()
    annotations: tuple[Annotation, ...] = ()
    branch: str | None = None
    folder: str = ""
    linear_ticket_id: str | None = None
    outcomes: SessionOutcomes | None = None
    total_tokens: int = 0
    duration_ms: int = 0
    start_time: datetime.datetime | None = None
    end_time: datetime.datetime | None = None
    analyzed: bool = False
    extra: Mapping[str, object] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "start_time", _as_utc(self.start_time))
        object.__setattr__(self, "end_time", _as_utc(self.end_time))

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "Session":
        """Build a Session from its JSON shape (camelCase or snake_case keys).

        Raises
        ------
        InvalidInputError
            If *data* is not a mapping, lacks an ``id``, or contains an
            unknown event or annotation type.
        """
        if not isinstance(data, Mapping):
            raise InvalidInputError("a session mapping", data)
        session_id = data.get("id")
        if not isinstance(session_id, str) or not session_id:
            raise InvalidInputError("a non-empty session id", session_id)

        events = data.get("events") or []
        annotations = data.get("annotations") or []
        outcomes = data.get("outcomes")
        branch = data.get("branch")
        ticket_id = _pick(data, "linearTicketId", "linear_ticket_id")
        extra: dict[str, object] = {
            k: v for k, v in data.items() if k not in _SESSION_KEYS and k != "extra"
        }
        if isinstance(data.get("extra"), Mapping):
            extra.update(data["extra"])  # type: ignore[arg-type]

        return cls(
            id=session_id,
            events=tuple(Event.from_dict(e) for e in events),  # type: ignore[union-attr]
            annotations=tuple(Annotation.from_dict(a) for a in annotations),  # type: ignore[union-attr]
            branch=str(branch) if branch else None,
            folder=str(data.get("folder") or ""),
            linear_ticket_id=str(ticket_id) if ticket_id else None,
            outcomes=SessionOutcomes.from_dict(outcomes) if isinstance(outcomes, Mapping) else None,
            total_tokens=_as_int(_pick(data, "totalTokens", "total_tokens", default=0)),
            duration_ms=_as_int(_pick(data, "durationMs", "duration_ms", default=0)),
            start_time=parse_timestamp(_pick(data, "startTime", "start_time")),
            end_time=parse_timestamp(_pick(data, "endTime", "end_time")),
            analyzed=bool(data.get("analyzed", False)),
            extra=extra,
        )

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {
            "id": self.id,
            "events": [e.to_dict() for e in self.events],
            "annotations": [a.to_dict() for a in self.annotations],
            "branch": self.branch,
            "folder": self.folder,
            "linear_ticket_id": self.linear_ticket_id,
            "outcomes": self.outcomes.to_dict() if self.outcomes is not None else None,
            "total_tokens": self.total_tokens,
            "duration_ms": self.duration_ms,
            "start_time": _iso(self.start_time),
            "end_time": _iso(self.end_time),
            "analyzed": self.analyzed,
            "extra": dict(self.extra),
        }


__all__ = [
    "Annotation",
    "AnnotationType",
    "CommitRecord",
    "Event",
    "EventType",
    "PushRecord",
    "Session",
    "SessionOutcomes",
    "TicketInfo",
    "TicketStateChange",
    "parse_timestamp",
]
