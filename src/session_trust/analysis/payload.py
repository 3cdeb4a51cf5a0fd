"""Helpers for reading the opaque raw payload of an event.

Upstream log entries put tool names, tool inputs and text in several
places: directly on the entry (``tool_name``, ``input``, ``content``) or
nested inside ``message.content`` as ``tool_use`` / ``text`` items. These
helpers return None when the value is absent instead of raising.
"""
from __future__ import annotations

from collections.abc import Iterator, Mapping


def _message_items(payload: Mapping[str, object]) -> Iterator[Mapping[str, object]]:
    message = payload.get("message")
    if not isinstance(message, Mapping):
        return
    content = message.get("content")
    if isinstance(content, list):
        for item in content:
            if isinstance(item, Mapping):
                yield item


def tool_name(payload: Mapping[str, object]) -> str | None:
    """Return the invoked tool's name, if the payload carries one."""
    for key in ("tool_name", "name"):
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
    for item in _message_items(payload):
        name = item.get("name")
        if item.get("type") == "tool_use" and isinstance(name, str) and name:
            return name
    return None


def tool_input(payload: Mapping[str, object]) -> Mapping[str, object] | None:
    """Return the tool input mapping, if the payload carries one."""
    value = payload.get("input")
    if isinstance(value, Mapping):
        return value
    for item in _message_items(payload):
        nested = item.get("input")
        if item.get("type") == "tool_use" and isinstance(nested, Mapping):
            return nested
    return None


def text_content(payload: Mapping[str, object]) -> str | None:
    """Return the textual content of the entry, joining text items."""
    content = payload.get("content")
    if isinstance(content, str):
        return content
    message = payload.get("message")
    if isinstance(message, Mapping):
        nested = message.get("content")
        if isinstance(nested, str):
            return nested
        if isinstance(nested, list):
            texts = [
                item["text"]
                for item in nested
                if isinstance(item, Mapping) and isinstance(item.get("text"), str)
            ]
            return "\n".join(texts)
    return None


def shell_command(payload: Mapping[str, object]) -> str | None:
    """Return the shell command of a Bash-style tool call.

    Falls back to the entry's text content, which is where tool results
    and plain-text git operations keep the command.
    """
    inputs = tool_input(payload)
    if inputs is not None:
        command = inputs.get("command")
        if isinstance(command, str):
            return command
    return text_content(payload)


__all__ = ["shell_command", "text_content", "tool_input", "tool_name"]
