"""Unit tests for session_trust.repository — InMemoryTrustRepository."""
from __future__ import annotations

import threading

import pytest

from session_trust.aggregation.aggregator import build_trust_map
from session_trust.analysis.models import (
    OutcomeMetrics,
    SessionTrustAnalysis,
    SteeringMetrics,
    TaskCharacteristics,
)
from session_trust.repository import InMemoryTrustRepository, TrustRepository


def _analysis(session_id: str, score: float = 0.8) -> SessionTrustAnalysis:
    return SessionTrustAnalysis(
        session_id=session_id,
        steering=SteeringMetrics(),
        characteristics=TaskCharacteristics(codebase_area="src", project_path="/repo"),
        outcome=OutcomeMetrics(),
        trust_score=score,
        autonomous=score >= 0.7,
    )


@pytest.fixture()
def repo() -> InMemoryTrustRepository:
    return InMemoryTrustRepository()


class TestAnalysisStorage:
    def test_satisfies_protocol(self, repo: InMemoryTrustRepository) -> None:
        assert isinstance(repo, TrustRepository)

    def test_upsert_and_get(self, repo: InMemoryTrustRepository) -> None:
        repo.upsert_analyses([_analysis("a"), _analysis("b")])
        assert repo.get_analysis("a") == _analysis("a")
        assert len(repo) == 2
        assert "b" in repo

    def test_upsert_replaces_by_session_id(self, repo: InMemoryTrustRepository) -> None:
        repo.upsert_analyses([_analysis("a", score=0.2)])
        repo.upsert_analyses([_analysis("a", score=0.9)])
        stored = repo.get_analysis("a")
        assert stored is not None
        assert stored.trust_score == pytest.approx(0.9)
        assert len(repo) == 1

    def test_missing_analysis_is_none(self, repo: InMemoryTrustRepository) -> None:
        assert repo.get_analysis("nope") is None

    def test_all_analyses_returns_copy(self, repo: InMemoryTrustRepository) -> None:
        repo.upsert_analyses([_analysis("a")])
        snapshot = repo.all_analyses()
        snapshot.clear()
        assert len(repo.all_analyses()) == 1

    def test_concurrent_upserts(self, repo: InMemoryTrustRepository) -> None:
        def worker(prefix: str) -> None:
            repo.upsert_analyses([_analysis(f"{prefix}-{i}") for i in range(50)])

        threads = [threading.Thread(target=worker, args=(str(n),)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert len(repo) == 400


class TestTrustMapStorage:
    def test_no_map_initially(self, repo: InMemoryTrustRepository) -> None:
        assert repo.get_trust_map() is None

    def test_save_and_get_map(self, repo: InMemoryTrustRepository) -> None:
        trust_map = build_trust_map([_analysis("a")])
        repo.save_trust_map(trust_map)
        assert repo.get_trust_map() is trust_map

    def test_save_computation_writes_analyses_and_map(self, repo: InMemoryTrustRepository) -> None:
        repo.upsert_analyses([_analysis("old")])
        trust_map = build_trust_map([_analysis("old"), _analysis("new")])
        repo.save_computation([_analysis("new")], trust_map)
        assert repo.get_trust_map() is trust_map
        assert {a.session_id for a in repo.all_analyses()} == {"old", "new"}
