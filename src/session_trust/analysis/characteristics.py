"""Task characteristics — categorical descriptors used to group sessions.

Codebase area, branch type, ticket metadata and complexity signals are
collected here. None of them influence the trust score; they decide which
aggregates a session contributes to.
"""
from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable, Sequence

from session_trust.analysis.models import BranchType, TaskCharacteristics
from session_trust.analysis.payload import text_content, tool_input, tool_name
from session_trust.session import Event, EventType, Session

_FILE_FIELDS = ("file_path", "path", "filePath", "filename")

# Area granularity: "src/auth/login.py" -> "src/auth".
_AREA_DEPTH = 2
_MAX_FILE_PATTERNS = 10

# Ordered: the first matching rule wins.
_BRANCH_RULES: tuple[tuple[re.Pattern[str], BranchType], ...] = (
    (re.compile(r"^(feature|feat)[/-]", re.IGNORECASE), BranchType.FEATURE),
    (re.compile(r"^(fix|bugfix|hotfix|bug)[/-]", re.IGNORECASE), BranchType.FIX),
    (re.compile(r"^(chore|refactor|docs?|test|ci|build)[/-]", re.IGNORECASE), BranchType.CHORE),
)

_STEP_PATTERNS = (
    re.compile(r"^\s*\d+\.", re.MULTILINE),
    re.compile(r"^\s*[-*]\s+", re.MULTILINE),
    re.compile(r"\bstep\s+\d+", re.IGNORECASE),
)


def classify_branch_type(branch: str | None) -> BranchType | None:
    """Map a branch name to a :class:`BranchType`.

    Returns None when there is no branch.
    """
    if not branch:
        return None
    for pattern, branch_type in _BRANCH_RULES:
        if pattern.match(branch):
            return branch_type
    return BranchType.OTHER


def _relative_segments(path: str, project_root: str) -> list[str]:
    relative = path
    root = project_root.rstrip("/")
    if root and (path == root or path.startswith(root + "/")):
        relative = path[len(root):]
    return [segment for segment in relative.split("/") if segment and segment != "."]


def touched_paths(events: Iterable[Event]) -> list[str]:
    """Collect the distinct file paths referenced by tool calls, in order."""
    seen: dict[str, None] = {}
    for event in events:
        if event.type not in (EventType.TOOL_CALL, EventType.GIT_OP):
            continue
        inputs = tool_input(event.payload)
        if inputs is None:
            continue
        for key in _FILE_FIELDS:
            value = inputs.get(key)
            if isinstance(value, str) and value:
                seen.setdefault(value, None)
        pattern = inputs.get("pattern")
        if isinstance(pattern, str):
            directory = pattern.split("*")[0].rstrip("/")
            if directory:
                seen.setdefault(directory, None)
    return list(seen)


def _directory_segments(path: str, project_root: str) -> list[str]:
    segments = _relative_segments(path, project_root)
    # Treat the last segment as a file name when it carries an extension.
    if segments and "." in segments[-1]:
        segments = segments[:-1]
    return segments


def _common_prefix(paths: Sequence[Sequence[str]]) -> list[str]:
    if not paths:
        return []
    prefix: list[str] = []
    for parts in zip(*paths):
        if any(part != parts[0] for part in parts):
            break
        prefix.append(parts[0])
    return prefix


def derive_codebase_area(paths: Sequence[str], folder: str) -> str:
    """Return the codebase area for a set of touched paths.

    The area is the longest common directory prefix (at most two segments).
    When the paths share nothing, the most frequent first segment is used;
    with no paths at all, the project folder.
    """
    segmented = [_directory_segments(p, folder) for p in paths]
    segmented = [s for s in segmented if s]
    if not segmented:
        return folder
    prefix = _common_prefix(segmented)[:_AREA_DEPTH]
    if prefix:
        return "/".join(prefix)
    first_segments = Counter(s[0] for s in segmented)
    return min(first_segments.items(), key=lambda kv: (-kv[1], kv[0]))[0]


def _file_patterns(paths: Sequence[str], folder: str) -> tuple[str, ...]:
    prefixes = {
        "/".join(_directory_segments(p, folder)[:_AREA_DEPTH])
        for p in paths
    }
    prefixes.discard("")
    return tuple(sorted(prefixes)[:_MAX_FILE_PATTERNS])


def count_subtasks(events: Iterable[Event]) -> int:
    """Count numbered, bulleted and "step N" items in planning events."""
    count = 0
    for event in events:
        if event.type is not EventType.PLANNING_MODE:
            continue
        content = text_content(event.payload)
        if not content:
            continue
        for pattern in _STEP_PATTERNS:
            count += len(pattern.findall(content))
    return count


def extract_task_characteristics(
    session: Session,
    ticket_type: str | None = None,
    ticket_labels: Iterable[str] | None = None,
) -> TaskCharacteristics:
    """Derive the categorical task descriptors of a session.

    Parameters
    ----------
    session:
        The session to inspect.
    ticket_type:
        Type of the linked ticket, if resolved.
    ticket_labels:
        Labels of the linked ticket, if resolved.

    Returns
    -------
    TaskCharacteristics
    """
    events = session.events
    paths = touched_paths(events)

    first_prompt = next((e for e in events if e.type is EventType.USER_MESSAGE), None)
    tools = {
        name
        for name in (tool_name(e.payload) for e in events if e.type is EventType.TOOL_CALL)
        if name
    }

    return TaskCharacteristics(
        codebase_area=derive_codebase_area(paths, session.folder),
        project_path=session.folder,
        branch_type=classify_branch_type(session.branch),
        ticket_type=ticket_type or None,
        ticket_labels=tuple(ticket_labels or ()),
        initial_prompt_tokens=first_prompt.token_count if first_prompt is not None else 0,
        subtask_count=count_subtasks(events),
        tool_diversity=len(tools),
        file_patterns=_file_patterns(paths, session.folder),
    )


__all__ = [
    "classify_branch_type",
    "count_subtasks",
    "derive_codebase_area",
    "extract_task_characteristics",
    "touched_paths",
]
