"""CLI entry point for session-trust.

Invoked as::

    session-trust [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m session_trust.cli.main

Commands
--------
analyze    Score each session in a sessions file
map        Build the trust map and show one dimension
predict    Predict trust for a task from its characteristics
insights   List categories that deviate most from the overall baseline
version    Show version information
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from session_trust.aggregation.models import CategoryType, TrustAggregate
from session_trust.aggregation.predictor import TrustQuery
from session_trust.config import DEFAULT_CONFIG, EngineConfig
from session_trust.errors import InvalidInputError
from session_trust.repository import InMemoryTrustRepository
from session_trust.service import TrustService
from session_trust.session import Session, TicketInfo

console = Console()
logger = logging.getLogger(__name__)

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


# ------------------------------------------------------------------
# Root group
# ------------------------------------------------------------------


@click.group()
@click.version_option(package_name="session-trust")
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON file overriding engine thresholds and score weights.",
)
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity.",
)
@click.pass_context
def cli(ctx: click.Context, config_file: str | None, log_level: str) -> None:
    """Trust analysis for AI-assisted coding sessions"""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = _load_config(config_file)


# ------------------------------------------------------------------
# version
# ------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from session_trust import __version__

    console.print(f"[bold]session-trust[/bold] v{__version__}")


# ------------------------------------------------------------------
# analyze
# ------------------------------------------------------------------


@cli.command(name="analyze")
@click.argument("sessions_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--tickets",
    "tickets_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON object mapping ticket ids to {type, labels}.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the analyses as JSON to this file.",
)
@click.pass_obj
def analyze_command(
    config: EngineConfig,
    sessions_file: str,
    tickets_file: str | None,
    output: str | None,
) -> None:
    """Score every session in SESSIONS_FILE."""
    service = _build_service(config, tickets_file)
    sessions = _load_sessions(sessions_file)
    analyses = [service.session_analysis(session) for session in sessions]

    table = Table(title="Session Trust", show_header=True)
    table.add_column("Session", style="cyan")
    table.add_column("Area")
    table.add_column("Branch")
    table.add_column("Interventions", justify="right")
    table.add_column("Commit", justify="center")
    table.add_column("Score", justify="right")
    table.add_column("Autonomous", justify="center")

    for analysis in analyses:
        branch_type = analysis.characteristics.branch_type
        table.add_row(
            analysis.session_id,
            analysis.characteristics.codebase_area or "-",
            branch_type.value if branch_type is not None else "-",
            str(analysis.steering.intervention_count),
            "yes" if analysis.outcome.has_commit else "no",
            _score_markup(analysis.trust_score),
            "[green]yes[/green]" if analysis.autonomous else "[dim]no[/dim]",
        )

    console.print(table)
    if output:
        _write_json(output, [analysis.to_dict() for analysis in analyses])


# ------------------------------------------------------------------
# map
# ------------------------------------------------------------------


@cli.command(name="map")
@click.argument("sessions_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--tickets",
    "tickets_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON object mapping ticket ids to {type, labels}.",
)
@click.option(
    "--dimension",
    "-d",
    type=click.Choice([c.value for c in CategoryType]),
    default=CategoryType.AREA.value,
    show_default=True,
    help="Grouping dimension to display.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the full trust map as JSON to this file.",
)
@click.pass_obj
def map_command(
    config: EngineConfig,
    sessions_file: str,
    tickets_file: str | None,
    dimension: str,
    output: str | None,
) -> None:
    """Build the trust map from SESSIONS_FILE and show one dimension."""
    service = _build_service(config, tickets_file)
    result = service.compute(_load_sessions(sessions_file))
    trust_map = result.trust_map
    category_type = CategoryType(dimension)

    table = Table(title=f"Trust Map — {category_type.value}", show_header=True)
    table.add_column("Category", style="cyan")
    table.add_column("Sessions", justify="right")
    table.add_column("Autonomous", justify="right")
    table.add_column("Avg Score", justify="right")
    table.add_column("Commit", justify="right")
    table.add_column("Rework", justify="right")
    table.add_column("Confidence", justify="right")

    for agg in (*trust_map.dimension(category_type), trust_map.global_aggregate):
        _add_aggregate_row(table, agg)

    console.print(table)
    if output:
        _write_json(output, trust_map.to_dict())


# ------------------------------------------------------------------
# predict
# ------------------------------------------------------------------


@cli.command(name="predict")
@click.argument("sessions_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--tickets",
    "tickets_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON object mapping ticket ids to {type, labels}.",
)
@click.option("--area", default=None, help="Codebase area of the task (e.g. src/auth).")
@click.option("--ticket-type", default=None, help="Ticket type (e.g. bug).")
@click.option(
    "--branch-type",
    type=click.Choice(["feature", "fix", "chore", "other"]),
    default=None,
    help="Branch type of the task.",
)
@click.option("--label", "-l", multiple=True, help="Ticket label (repeatable).")
@click.option("--project", default=None, help="Project path of the task.")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the prediction as JSON.")
@click.pass_obj
def predict_command(
    config: EngineConfig,
    sessions_file: str,
    tickets_file: str | None,
    area: str | None,
    ticket_type: str | None,
    branch_type: str | None,
    label: tuple[str, ...],
    project: str | None,
    as_json: bool,
) -> None:
    """Predict trust for a task, learning from the sessions in SESSIONS_FILE."""
    service = _build_service(config, tickets_file)
    service.compute(_load_sessions(sessions_file))
    prediction = service.predict(
        TrustQuery(
            codebase_area=area,
            ticket_type=ticket_type,
            branch_type=branch_type,
            labels=label,
            project_path=project,
        )
    )

    if as_json:
        console.print_json(data=prediction.to_dict())
        return

    if prediction.is_fallback or prediction.category_type is None:
        source = "global baseline"
    else:
        source = f"{prediction.category_type.value} [bold]{prediction.category}[/bold]"
    console.print(f"[bold]Prediction[/bold] from {source}")
    console.print(f"  Trust score:     {_score_markup(prediction.trust_score)}")
    console.print(f"  Autonomous rate: {prediction.autonomous_rate:.0%}")
    console.print(f"  Level:           {prediction.level.value}")
    console.print(f"  Approach:        {prediction.suggested_approach.value}")
    console.print(f"  Confidence:      {prediction.confidence:.2f} ({prediction.sample_size} sessions)")
    console.print(f"  {prediction.recommendation}")

    if prediction.factors:
        table = Table(title="Factors", show_header=True)
        table.add_column("Source", style="cyan")
        table.add_column("Weight", justify="right")
        table.add_column("Insight")
        for factor in prediction.factors:
            table.add_row(factor.source, f"{factor.weight:.2f}", factor.insight)
        console.print(table)


# ------------------------------------------------------------------
# insights
# ------------------------------------------------------------------


@cli.command(name="insights")
@click.argument("sessions_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--tickets",
    "tickets_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON object mapping ticket ids to {type, labels}.",
)
@click.pass_obj
def insights_command(config: EngineConfig, sessions_file: str, tickets_file: str | None) -> None:
    """List categories that deviate most from the overall baseline."""
    service = _build_service(config, tickets_file)
    result = service.compute(_load_sessions(sessions_file))

    if not result.insights:
        console.print(
            "[yellow]No insights.[/yellow] No category has at least "
            f"{config.min_insight_sample_size} sessions or differs from the baseline."
        )
        return

    for insight in result.insights:
        colour = "green" if insight.is_positive else "red"
        console.print(f"[{colour}]{'▲' if insight.is_positive else '▼'}[/{colour}] {insight.message}")


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _score_markup(score: float) -> str:
    colour = "green" if score >= 0.7 else "yellow" if score >= 0.4 else "red"
    return f"[{colour}]{score:.2f}[/{colour}]"


def _add_aggregate_row(table: Table, agg: TrustAggregate) -> None:
    table.add_row(
        f"[bold]{agg.category}[/bold]" if agg.is_global else agg.category,
        str(agg.total_sessions),
        f"{agg.autonomous_rate:.0%}",
        _score_markup(agg.avg_trust_score),
        f"{agg.commit_rate:.0%}",
        f"{agg.rework_rate:.0%}",
        f"{agg.confidence:.2f}",
    )


def _load_config(config_file: str | None) -> EngineConfig:
    """Return the engine config, from *config_file* when given."""
    if not config_file:
        return DEFAULT_CONFIG
    try:
        return EngineConfig.from_file(config_file)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        console.print(f"[red]Error:[/red] Could not load config file: {escape(str(exc))}")
        sys.exit(1)


def _read_json(path: str, what: str) -> object:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        console.print(f"[red]Error:[/red] Could not read {what} file: {escape(str(exc))}")
        sys.exit(1)


def _load_sessions(sessions_file: str) -> list[Session]:
    """Return the sessions in *sessions_file*, skipping malformed entries."""
    data = _read_json(sessions_file, "sessions")
    if not isinstance(data, list):
        console.print("[red]Error:[/red] Sessions file must contain a JSON array.")
        sys.exit(1)

    sessions: list[Session] = []
    for position, entry in enumerate(data):
        try:
            sessions.append(Session.from_dict(entry))
        except InvalidInputError as exc:
            logger.warning("Skipping session entry %d: %s", position, exc)
            console.print(f"[yellow]Warning:[/yellow] Skipping session entry {position}: {escape(str(exc))}")
    return sessions


def _load_tickets(tickets_file: str | None) -> dict[str, TicketInfo]:
    """Return the ticket lookup table, empty when no file is given."""
    if not tickets_file:
        return {}
    data = _read_json(tickets_file, "tickets")
    if not isinstance(data, dict):
        console.print("[red]Error:[/red] Tickets file must contain a JSON object.")
        sys.exit(1)

    tickets: dict[str, TicketInfo] = {}
    for ticket_id, entry in data.items():
        try:
            tickets[str(ticket_id)] = TicketInfo.from_dict(entry)
        except InvalidInputError as exc:
            logger.warning("Skipping ticket %s: %s", ticket_id, exc)
    return tickets


def _build_service(config: EngineConfig, tickets_file: str | None) -> TrustService:
    return TrustService(
        InMemoryTrustRepository(),
        ticket_lookup=_load_tickets(tickets_file),
        config=config,
    )


def _write_json(path: str, payload: object) -> None:
    Path(path).write_text(json.dumps(payload, indent=2), encoding="utf-8")
    console.print(f"[green]Wrote[/green] {path}")


if __name__ == "__main__":
    cli()
