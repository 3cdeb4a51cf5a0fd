"""Tests for session_trust.cli.main — CLI commands via Click test runner."""
from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from session_trust.cli.main import cli


def _raw_session(session_id: str, area: str, *, steered: bool) -> dict[str, object]:
    events: list[dict[str, object]] = [
        {"type": "user_message", "tokenCount": 50},
        {"type": "tool_call", "raw": {"tool_name": "Edit", "input": {"file_path": f"{area}/x.py"}}},
    ]
    if steered:
        events.append({"type": "user_message"})
    events.append(
        {"type": "git_op", "raw": {"tool_name": "Bash", "input": {"command": "git commit -m 'x'"}}}
    )
    return {
        "id": session_id,
        "branch": "fix/thing" if steered else "feature/thing",
        "folder": "/repo",
        "linearTicketId": "ENG-1" if steered else None,
        "events": events,
    }


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def sessions_file(tmp_path: Path) -> Path:
    records = [
        *(_raw_session(f"auth-{i}", "src/auth", steered=True) for i in range(6)),
        *(_raw_session(f"ui-{i}", "src/ui", steered=False) for i in range(6)),
    ]
    path = tmp_path / "sessions.json"
    path.write_text(json.dumps(records), encoding="utf-8")
    return path


@pytest.fixture()
def tickets_file(tmp_path: Path) -> Path:
    path = tmp_path / "tickets.json"
    path.write_text(json.dumps({"ENG-1": {"type": "bug", "labels": ["auth"]}}), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Root CLI
# ---------------------------------------------------------------------------


class TestRootCLI:
    def test_help_exits_zero(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "analyze" in result.output

    def test_version_command(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert "session-trust" in result.output.lower()

    def test_invalid_config_file_exits_nonzero(self, runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"autonomy_threshold": 7}), encoding="utf-8")
        result = runner.invoke(cli, ["--config", str(config), "version"])
        assert result.exit_code == 1
        assert "config" in result.output.lower()


# ---------------------------------------------------------------------------
# analyze
# ---------------------------------------------------------------------------


class TestAnalyzeCommand:
    def test_analyze_lists_sessions(self, runner: CliRunner, sessions_file: Path) -> None:
        result = runner.invoke(cli, ["analyze", str(sessions_file)])
        assert result.exit_code == 0
        assert "auth-0" in result.output
        assert "ui-5" in result.output

    def test_analyze_writes_output(self, runner: CliRunner, sessions_file: Path, tmp_path: Path) -> None:
        output = tmp_path / "analyses.json"
        result = runner.invoke(cli, ["analyze", str(sessions_file), "--output", str(output)])
        assert result.exit_code == 0
        data = json.loads(output.read_text(encoding="utf-8"))
        assert len(data) == 12
        by_id = {entry["session_id"]: entry for entry in data}
        assert by_id["ui-0"]["autonomous"] is True
        assert by_id["auth-0"]["steering"]["intervention_count"] == 1

    def test_malformed_entries_are_skipped(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "sessions.json"
        path.write_text(
            json.dumps([{"id": "good"}, {"events": []}, {"id": "bad", "events": [{"type": "nope"}]}]),
            encoding="utf-8",
        )
        output = tmp_path / "out.json"
        result = runner.invoke(cli, ["analyze", str(path), "--output", str(output)])
        assert result.exit_code == 0
        assert "Skipping" in result.output
        assert [e["session_id"] for e in json.loads(output.read_text(encoding="utf-8"))] == ["good"]

    def test_non_array_sessions_file_exits_nonzero(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "sessions.json"
        path.write_text(json.dumps({"id": "x"}), encoding="utf-8")
        result = runner.invoke(cli, ["analyze", str(path)])
        assert result.exit_code == 1

    def test_invalid_json_exits_nonzero(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "sessions.json"
        path.write_text("{not json", encoding="utf-8")
        result = runner.invoke(cli, ["analyze", str(path)])
        assert result.exit_code == 1

    def test_missing_file_is_usage_error(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["analyze", str(tmp_path / "absent.json")])
        assert result.exit_code != 0


# ---------------------------------------------------------------------------
# map
# ---------------------------------------------------------------------------


class TestMapCommand:
    def test_map_default_dimension(self, runner: CliRunner, sessions_file: Path) -> None:
        result = runner.invoke(cli, ["map", str(sessions_file)])
        assert result.exit_code == 0
        assert "src/auth" in result.output
        assert "global" in result.output

    def test_map_label_dimension_uses_tickets(
        self, runner: CliRunner, sessions_file: Path, tickets_file: Path
    ) -> None:
        result = runner.invoke(
            cli, ["map", str(sessions_file), "--tickets", str(tickets_file), "--dimension", "label"]
        )
        assert result.exit_code == 0
        assert "auth" in result.output

    def test_map_writes_output(self, runner: CliRunner, sessions_file: Path, tmp_path: Path) -> None:
        output = tmp_path / "map.json"
        result = runner.invoke(cli, ["map", str(sessions_file), "-o", str(output)])
        assert result.exit_code == 0
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["global"]["total_sessions"] == 12
        assert {a["category"] for a in data["by_branch_type"]} == {"fix", "feature"}

    def test_unknown_dimension_rejected(self, runner: CliRunner, sessions_file: Path) -> None:
        result = runner.invoke(cli, ["map", str(sessions_file), "--dimension", "colour"])
        assert result.exit_code != 0


# ---------------------------------------------------------------------------
# predict
# ---------------------------------------------------------------------------


class TestPredictCommand:
    def test_predict_matching_area(self, runner: CliRunner, sessions_file: Path) -> None:
        result = runner.invoke(cli, ["predict", str(sessions_file), "--area", "src/ui"])
        assert result.exit_code == 0
        assert "src/ui" in result.output
        assert "autonomous" in result.output

    def test_predict_json_fallback(self, runner: CliRunner, sessions_file: Path) -> None:
        result = runner.invoke(
            cli, ["predict", str(sessions_file), "--area", "src/unknown", "--json"]
        )
        assert result.exit_code == 0
        assert '"category": "global"' in result.output
        assert '"is_fallback": true' in result.output

    def test_predict_by_ticket_type(
        self, runner: CliRunner, sessions_file: Path, tickets_file: Path
    ) -> None:
        result = runner.invoke(
            cli,
            ["predict", str(sessions_file), "--tickets", str(tickets_file), "--ticket-type", "bug", "--json"],
        )
        assert result.exit_code == 0
        assert '"category": "bug"' in result.output


# ---------------------------------------------------------------------------
# insights
# ---------------------------------------------------------------------------


class TestInsightsCommand:
    def test_insights_listed(self, runner: CliRunner, sessions_file: Path) -> None:
        result = runner.invoke(cli, ["insights", str(sessions_file)])
        assert result.exit_code == 0
        assert "src/auth" in result.output
        assert "src/ui" in result.output

    def test_no_insights_message(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "sessions.json"
        path.write_text(json.dumps([{"id": "only"}]), encoding="utf-8")
        result = runner.invoke(cli, ["insights", str(path)])
        assert result.exit_code == 0
        assert "No insights" in result.output
