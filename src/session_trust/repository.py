"""Storage boundary for session analyses and the trust map.

The engine itself never stores anything. :class:`TrustService` reads and
writes through a :class:`TrustRepository`; :class:`InMemoryTrustRepository`
is the implementation used by the CLI and the tests.
"""
from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from session_trust.aggregation.models import TrustMap
from session_trust.analysis.models import SessionTrustAnalysis


@runtime_checkable
class TrustRepository(Protocol):
    """Persistence operations required by the service layer."""

    def upsert_analyses(self, analyses: Iterable[SessionTrustAnalysis]) -> None:
        """Insert or replace analyses keyed by session id."""
        ...

    def get_analysis(self, session_id: str) -> SessionTrustAnalysis | None:
        """Return the stored analysis for *session_id*, or None."""
        ...

    def all_analyses(self) -> list[SessionTrustAnalysis]:
        """Return every stored analysis."""
        ...

    def save_trust_map(self, trust_map: TrustMap) -> None:
        """Replace the stored trust map."""
        ...

    def get_trust_map(self) -> TrustMap | None:
        """Return the stored trust map, or None if none was saved."""
        ...

    def save_computation(
        self, analyses: Iterable[SessionTrustAnalysis], trust_map: TrustMap
    ) -> None:
        """Upsert *analyses* and replace the trust map as one write."""
        ...


class InMemoryTrustRepository:
    """Thread-safe in-memory repository.

    A batch upsert, and a computation (analyses plus map), is applied under
    a single lock acquisition, so readers observe either none or all of it.

    Example
    -------
    ::

        repo = InMemoryTrustRepository()
        repo.upsert_analyses(analyze_sessions_trust(sessions))
        print(len(repo))
    """

    def __init__(self) -> None:
        self._analyses: dict[str, SessionTrustAnalysis] = {}
        self._trust_map: TrustMap | None = None
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Analyses
    # ------------------------------------------------------------------

    def upsert_analyses(self, analyses: Iterable[SessionTrustAnalysis]) -> None:
        batch = {analysis.session_id: analysis for analysis in analyses}
        with self._lock:
            self._analyses.update(batch)

    def get_analysis(self, session_id: str) -> SessionTrustAnalysis | None:
        with self._lock:
            return self._analyses.get(session_id)

    def all_analyses(self) -> list[SessionTrustAnalysis]:
        with self._lock:
            return list(self._analyses.values())

    # ------------------------------------------------------------------
    # Trust map
    # ------------------------------------------------------------------

    def save_trust_map(self, trust_map: TrustMap) -> None:
        with self._lock:
            self._trust_map = trust_map

    def get_trust_map(self) -> TrustMap | None:
        with self._lock:
            return self._trust_map

    def save_computation(
        self, analyses: Iterable[SessionTrustAnalysis], trust_map: TrustMap
    ) -> None:
        batch = {analysis.session_id: analysis for analysis in analyses}
        with self._lock:
            self._analyses.update(batch)
            self._trust_map = trust_map

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        with self._lock:
            return len(self._analyses)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._analyses


__all__ = ["InMemoryTrustRepository", "TrustRepository"]
