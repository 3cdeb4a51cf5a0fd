"""Exceptions raised by the trust analysis engine and its service layer."""
from __future__ import annotations


class InvalidInputError(TypeError):
    """Raised when a caller passes data that does not conform to the engine's types.

    The engine degrades gracefully for well-typed but incomplete data (empty
    event lists, unknown tickets). This error is reserved for contract
    violations such as passing ``None`` where a ``TrustMap`` is required.
    """

    def __init__(self, expected: str, received: object, detail: str = "") -> None:
        message = f"Expected {expected}, got {type(received).__name__}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(f"{message}. The caller must supply well-typed records.")
        self.expected = expected


class TrustMapNotComputedError(LookupError):
    """Raised when a prediction is requested before any trust map was computed."""

    def __init__(self) -> None:
        super().__init__(
            "Trust map not computed. Run compute() over the session set first."
        )


__all__ = ["InvalidInputError", "TrustMapNotComputedError"]
