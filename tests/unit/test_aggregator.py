"""Unit tests for session_trust.aggregation.aggregator — TrustAggregator."""
from __future__ import annotations

import datetime

import pytest

from session_trust.aggregation.aggregator import aggregate, build_trust_map, compute_confidence
from session_trust.aggregation.models import GLOBAL_CATEGORY, CategoryType, TrustMap
from session_trust.analysis.models import (
    BranchType,
    OutcomeMetrics,
    SessionTrustAnalysis,
    SteeringMetrics,
    TaskCharacteristics,
)
from session_trust.config import EngineConfig
from session_trust.errors import InvalidInputError

NOW = datetime.datetime(2026, 6, 1, tzinfo=datetime.timezone.utc)


def _analysis(
    session_id: str,
    *,
    area: str = "src/api",
    project: str = "/repo",
    branch_type: BranchType | None = BranchType.FEATURE,
    ticket_type: str | None = None,
    labels: tuple[str, ...] = (),
    score: float = 0.8,
    autonomous: bool = True,
    interventions: int = 0,
    progress: float | None = None,
    has_commit: bool = True,
    rework: int = 0,
) -> SessionTrustAnalysis:
    return SessionTrustAnalysis(
        session_id=session_id,
        steering=SteeringMetrics(
            intervention_count=interventions,
            intervention_density=float(interventions),
            first_intervention_progress=progress,
        ),
        characteristics=TaskCharacteristics(
            codebase_area=area,
            project_path=project,
            branch_type=branch_type,
            ticket_type=ticket_type,
            ticket_labels=labels,
        ),
        outcome=OutcomeMetrics(has_commit=has_commit, commit_count=int(has_commit), rework_count=rework),
        trust_score=score,
        autonomous=autonomous,
    )


# ---------------------------------------------------------------------------
# Confidence
# ---------------------------------------------------------------------------


class TestComputeConfidence:
    def test_zero_sessions_is_zero(self) -> None:
        assert compute_confidence(0, 20) == 0.0

    def test_linear_until_saturation(self) -> None:
        assert compute_confidence(5, 20) == pytest.approx(0.25)

    def test_saturates_at_one(self) -> None:
        assert compute_confidence(20, 20) == 1.0
        assert compute_confidence(500, 20) == 1.0

    def test_non_decreasing(self) -> None:
        values = [compute_confidence(n, 20) for n in range(0, 60)]
        assert values == sorted(values)


# ---------------------------------------------------------------------------
# Single aggregate
# ---------------------------------------------------------------------------


class TestAggregate:
    def test_rates_and_averages(self) -> None:
        group = [
            _analysis("a", score=0.9, autonomous=True),
            _analysis("b", score=0.5, autonomous=False, interventions=2, progress=0.4, rework=1),
            _analysis("c", score=0.4, autonomous=False, interventions=1, progress=0.2, has_commit=False),
            _analysis("d", score=0.6, autonomous=True),
        ]
        agg = aggregate("src/api", CategoryType.AREA, group, saturation_n=20, now=NOW)
        assert agg.total_sessions == 4
        assert agg.autonomous_sessions == 2
        assert agg.autonomous_rate == pytest.approx(0.5)
        assert agg.avg_trust_score == pytest.approx(0.6)
        assert agg.avg_intervention_count == pytest.approx(0.75)
        assert agg.commit_rate == pytest.approx(0.75)
        assert agg.rework_rate == pytest.approx(0.25)
        assert agg.confidence == pytest.approx(0.2)

    def test_progress_average_skips_none(self) -> None:
        group = [_analysis("a", progress=0.2), _analysis("b", progress=None), _analysis("c", progress=0.6)]
        agg = aggregate("x", CategoryType.AREA, group, saturation_n=20, now=NOW)
        assert agg.avg_first_intervention_progress == pytest.approx(0.4)

    def test_progress_average_none_when_all_none(self) -> None:
        agg = aggregate("x", CategoryType.AREA, [_analysis("a")], saturation_n=20, now=NOW)
        assert agg.avg_first_intervention_progress is None


# ---------------------------------------------------------------------------
# build_trust_map
# ---------------------------------------------------------------------------


class TestBuildTrustMap:
    def test_empty_input_gives_empty_map(self) -> None:
        trust_map = build_trust_map([])
        assert trust_map.global_aggregate.total_sessions == 0
        assert trust_map.global_aggregate.category == GLOBAL_CATEGORY
        assert trust_map.global_aggregate.autonomous_rate == 0.0
        assert trust_map.global_aggregate.confidence == 0.0
        assert trust_map.global_aggregate.avg_first_intervention_progress is None
        for category_type in CategoryType:
            assert trust_map.dimension(category_type) == ()

    def test_grouping_per_dimension(self) -> None:
        analyses = [
            _analysis("a", area="src/auth", ticket_type="bug", branch_type=BranchType.FIX),
            _analysis("b", area="src/auth", ticket_type="feature"),
            _analysis("c", area="src/api", ticket_type="bug", project="/other"),
        ]
        trust_map = build_trust_map(analyses, now=NOW)
        assert [(a.category, a.total_sessions) for a in trust_map.by_area] == [("src/auth", 2), ("src/api", 1)]
        assert {a.category for a in trust_map.by_ticket_type} == {"bug", "feature"}
        assert {a.category for a in trust_map.by_branch_type} == {"fix", "feature"}
        assert {a.category for a in trust_map.by_project} == {"/repo", "/other"}
        assert trust_map.global_aggregate.total_sessions == 3

    def test_labels_count_session_in_each_label(self) -> None:
        analyses = [
            _analysis("a", labels=("auth", "urgent")),
            _analysis("b", labels=("auth",)),
            _analysis("c", labels=("urgent", "urgent")),
        ]
        by_label = {a.category: a.total_sessions for a in build_trust_map(analyses).by_label}
        assert by_label == {"auth": 2, "urgent": 2}

    def test_missing_keys_are_not_grouped(self) -> None:
        analyses = [_analysis("a", ticket_type=None, branch_type=None, area="")]
        trust_map = build_trust_map(analyses)
        assert trust_map.by_ticket_type == ()
        assert trust_map.by_branch_type == ()
        assert trust_map.by_area == ()
        assert trust_map.global_aggregate.total_sessions == 1

    def test_ordering_by_total_then_name(self) -> None:
        analyses = [
            _analysis("a", area="zeta"),
            _analysis("b", area="alpha"),
            _analysis("c", area="mid"),
            _analysis("d", area="mid"),
        ]
        assert [a.category for a in build_trust_map(analyses).by_area] == ["mid", "alpha", "zeta"]

    def test_saturation_from_config(self) -> None:
        analyses = [_analysis(str(i)) for i in range(4)]
        trust_map = build_trust_map(analyses, config=EngineConfig(confidence_saturation_n=4))
        assert trust_map.global_aggregate.confidence == 1.0

    def test_build_is_idempotent(self) -> None:
        analyses = [
            _analysis("a", labels=("x",), score=0.3, autonomous=False, interventions=1, progress=0.5),
            _analysis("b", labels=("y", "x"), ticket_type="bug"),
        ]
        assert build_trust_map(analyses) == build_trust_map(analyses)

    def test_input_order_does_not_matter(self) -> None:
        analyses = [_analysis("a", area="one"), _analysis("b", area="two"), _analysis("c", area="one")]
        assert build_trust_map(analyses) == build_trust_map(list(reversed(analyses)))

    def test_non_analysis_element_raises(self) -> None:
        with pytest.raises(InvalidInputError):
            build_trust_map([{"session_id": "a"}])  # type: ignore[list-item]

    @pytest.mark.parametrize("analyses", [None, 7, {"a": 1}])
    def test_non_iterable_input_raises(self, analyses: object) -> None:
        with pytest.raises(InvalidInputError):
            build_trust_map(analyses)  # type: ignore[arg-type]

    def test_computed_at_is_recorded(self) -> None:
        assert build_trust_map([], now=NOW).computed_at == NOW


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


class TestTrustMapSerialization:
    def test_to_dict_uses_global_key(self) -> None:
        data = build_trust_map([_analysis("a")], now=NOW).to_dict()
        assert data["global"]["total_sessions"] == 1  # type: ignore[index]
        assert data["computed_at"] == NOW.isoformat()

    def test_from_dict_restores_map(self) -> None:
        trust_map = build_trust_map(
            [_analysis("a", labels=("x",), ticket_type="bug"), _analysis("b", progress=0.3)], now=NOW
        )
        restored = TrustMap.from_dict(trust_map.to_dict())
        assert restored == trust_map
        assert restored.computed_at == NOW
