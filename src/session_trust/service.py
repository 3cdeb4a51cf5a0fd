"""TrustService — orchestrates analysis, aggregation, caching and prediction.

The service owns no state of its own: analyses and the trust map live in an
injected :class:`~session_trust.repository.TrustRepository`.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from session_trust.aggregation.aggregator import build_trust_map
from session_trust.aggregation.insights import Insight, generate_comparative_insights
from session_trust.aggregation.models import TrustMap
from session_trust.aggregation.predictor import TrustPrediction, TrustQuery, predict_trust
from session_trust.analysis.analyzer import (
    analyze_session_trust,
    analyze_sessions_trust,
    resolve_ticket,
)
from session_trust.analysis.models import SessionTrustAnalysis, TaskCharacteristics
from session_trust.config import DEFAULT_CONFIG, EngineConfig
from session_trust.errors import InvalidInputError, TrustMapNotComputedError
from session_trust.repository import TrustRepository
from session_trust.session import Session, TicketInfo
from session_trust.staleness import is_stale

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComputeResult:
    """Outcome of a full recomputation."""

    sessions_analyzed: int
    trust_map: TrustMap
    insights: tuple[Insight, ...] = field(default=())

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {
            "sessions_analyzed": self.sessions_analyzed,
            "trust_map": self.trust_map.to_dict(),
            "insights": [i.to_dict() for i in self.insights],
        }


class TrustService:
    """Service-layer entry point for the trust engine.

    Parameters
    ----------
    trust_repo:
        Storage for analyses and the trust map.
    ticket_lookup:
        Optional ``ticket_id -> TicketInfo`` table used to enrich sessions.
    config:
        Engine configuration. Defaults to :data:`DEFAULT_CONFIG`.
    """

    def __init__(
        self,
        trust_repo: TrustRepository,
        ticket_lookup: Mapping[str, TicketInfo | Mapping[str, object]] | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        self._repo = trust_repo
        self._tickets: Mapping[str, TicketInfo | Mapping[str, object]] = ticket_lookup or {}
        self._config = config if config is not None else DEFAULT_CONFIG

    @property
    def config(self) -> EngineConfig:
        return self._config

    # ------------------------------------------------------------------
    # Computation
    # ------------------------------------------------------------------

    def compute(self, sessions: Iterable[Session]) -> ComputeResult:
        """Analyse every session, store the results and rebuild the trust map.

        The map is rebuilt from the stored analyses merged with the new ones,
        then both are written to the repository together.
        """
        analyses = analyze_sessions_trust(sessions, self._tickets, config=self._config)
        merged = {a.session_id: a for a in self._repo.all_analyses()}
        merged.update((a.session_id, a) for a in analyses)
        trust_map = build_trust_map(merged.values(), config=self._config)
        self._repo.save_computation(analyses, trust_map)
        insights = generate_comparative_insights(trust_map, config=self._config)
        logger.info(
            "Computed trust for %d session(s); map covers %d",
            len(analyses),
            trust_map.global_aggregate.total_sessions,
        )
        return ComputeResult(
            sessions_analyzed=len(analyses),
            trust_map=trust_map,
            insights=tuple(insights),
        )

    def get_or_compute_map(self, sessions: Iterable[Session]) -> TrustMap:
        """Return the stored trust map, computing it from *sessions* if absent."""
        trust_map = self._repo.get_trust_map()
        if trust_map is not None:
            return trust_map
        return self.compute(sessions).trust_map

    def session_analysis(self, session: Session) -> SessionTrustAnalysis:
        """Return the analysis of *session*, recomputing it only when stale."""
        if not isinstance(session, Session):
            raise InvalidInputError("a Session", session)
        cached = self._repo.get_analysis(session.id)
        if cached is not None and not is_stale(session, cached):
            return cached

        logger.debug("Analysis of session %s is stale; recomputing", session.id)
        ticket = (
            resolve_ticket(self._tickets.get(session.linear_ticket_id))
            if session.linear_ticket_id
            else None
        )
        analysis = analyze_session_trust(
            session,
            ticket.type if ticket is not None else None,
            ticket.labels if ticket is not None else None,
            config=self._config,
        )
        self._repo.upsert_analyses([analysis])
        return analysis

    # ------------------------------------------------------------------
    # Reading the map
    # ------------------------------------------------------------------

    def predict(self, query: TaskCharacteristics | TrustQuery) -> TrustPrediction:
        """Predict trust for a task from the stored map.

        Raises
        ------
        TrustMapNotComputedError
            If no trust map has been computed yet.
        """
        trust_map = self._repo.get_trust_map()
        if trust_map is None:
            raise TrustMapNotComputedError()
        return predict_trust(trust_map, query, config=self._config)

    def insights(self) -> list[Insight]:
        """Return comparative insights from the stored map; empty when there is none."""
        trust_map = self._repo.get_trust_map()
        if trust_map is None:
            return []
        return generate_comparative_insights(trust_map, config=self._config)


__all__ = ["ComputeResult", "TrustService"]
