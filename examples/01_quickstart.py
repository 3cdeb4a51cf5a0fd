#!/usr/bin/env python3
"""Example: Quickstart

Scores a handful of coding sessions, builds the trust map and asks for a
prediction for a new task.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install session-trust
"""
from __future__ import annotations

import session_trust
from session_trust import InMemoryTrustRepository, Session, TrustQuery, TrustService


def _record(session_id: str, area: str, steered: bool) -> dict[str, object]:
    events: list[dict[str, object]] = [
        {"type": "user_message", "tokenCount": 60},
        {"type": "tool_call", "raw": {"tool_name": "Edit", "input": {"file_path": f"{area}/main.py"}}},
    ]
    if steered:
        events.append({"type": "user_message"})
    events.append({"type": "git_op", "raw": {"input": {"command": "git commit -m 'wip'"}}})
    return {"id": session_id, "branch": "feature/demo", "folder": "/repo", "events": events}


def main() -> None:
    print(f"session-trust version: {session_trust.__version__}")

    # Step 1: Load sessions from their JSON shape
    records = [_record(f"api-{i}", "src/api", steered=False) for i in range(5)]
    records += [_record(f"db-{i}", "src/db", steered=True) for i in range(5)]
    sessions = [Session.from_dict(r) for r in records]

    # Step 2: Analyse and aggregate
    service = TrustService(InMemoryTrustRepository())
    result = service.compute(sessions)
    overall = result.trust_map.global_aggregate
    print(f"Analysed {result.sessions_analyzed} sessions, autonomous rate {overall.autonomous_rate:.0%}")

    # Step 3: Predict trust for a new task
    for area in ("src/api", "src/db", "src/new"):
        prediction = service.predict(TrustQuery(codebase_area=area))
        print(f"{area}: {prediction.level.value} ({prediction.suggested_approach.value}) from {prediction.category}")

    # Step 4: Comparative insights
    for insight in result.insights:
        print(f"  {insight.message}")

    print("\nQuickstart complete.")


if __name__ == "__main__":
    main()
