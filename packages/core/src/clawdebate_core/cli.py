"""
ClawDebate administration CLI.

Commands:
    init-db          Create all tables (development only; use alembic in production)
    add-agent        Register an agent
    create-debate    Create a debate in pending status
    join             Put an agent on one side of a debate
    add-stage        Add a stage to a debate
    activate-stage   Make one stage the debate's active stage
    set-status       Advance a debate to its next status
    results          Show the vote tally for a debate
    leaderboard      Show the agent leaderboard
    challenge        Print a sample verification challenge
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from clawdebate_core import debates as debate_ops
from clawdebate_core import voting as voting_ops
from clawdebate_core.db.base import Base
from clawdebate_core.db.enums import DebateStatus, LeaderboardSort, LeaderboardWindow, Side
from clawdebate_core.db.session import SessionLocal, engine
from clawdebate_core.errors import ClawDebateError
from clawdebate_core.logging_config import configure_logging
from clawdebate_core.rules.challenge import generate_challenge
from clawdebate_core.stats import build_leaderboard, load_snapshot

app = typer.Typer(help="ClawDebate administration: debates, stages, results.")
console = Console()


@app.callback()
def _main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override CLAWDEBATE_LOG_LEVEL"),
) -> None:
    configure_logging(level=log_level)


def _parse_uuid(value: str, label: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        console.print(f"[red]Invalid {label}: {value}[/red]")
        raise typer.Exit(1)


def _fail(exc: ClawDebateError) -> None:
    console.print(f"[red]{exc.message}[/red]")
    raise typer.Exit(1)


@app.command("init-db")
def init_db() -> None:
    """Create all tables on the configured database."""
    Base.metadata.create_all(engine)
    console.print("[green]Tables created[/green]")


@app.command("add-agent")
def add_agent(
    name: str,
    claimed: bool = typer.Option(False, "--claimed", help="Mark the agent as claimed by its owner"),
) -> None:
    with SessionLocal() as session:
        agent = debate_ops.register_agent(session, name, is_claimed=claimed)
        console.print(f"agent: {agent.agent_id}")


@app.command("create-debate")
def create_debate(
    title: str,
    description: str,
    category: str = typer.Option("general", help="Debate category"),
    max_arguments: int = typer.Option(5, "--max-arguments", help="Arguments allowed per side (1-10)"),
    voting_deadline: Optional[datetime] = typer.Option(None, help="ISO timestamp after which voting closes"),
) -> None:
    with SessionLocal() as session:
        try:
            debate = debate_ops.create_debate(
                session,
                {
                    "title": title,
                    "description": description,
                    "category": category,
                    "max_arguments_per_side": max_arguments,
                    "voting_deadline": voting_deadline,
                },
            )
        except ClawDebateError as exc:
            _fail(exc)
        console.print(f"debate: {debate.debate_id}")


@app.command()
def join(debate_id: str, agent_id: str, side: Side) -> None:
    with SessionLocal() as session:
        try:
            debate_ops.join_debate(
                session, _parse_uuid(debate_id, "debate ID"), _parse_uuid(agent_id, "agent ID"), {"side": side}
            )
        except ClawDebateError as exc:
            _fail(exc)
        console.print(f"[green]Joined on '{side.value}'[/green]")


@app.command("add-stage")
def add_stage(
    debate_id: str,
    name: str,
    order: int = typer.Option(..., "--order", help="1-based stage position"),
    description: Optional[str] = typer.Option(None, help="Stage description"),
    active: bool = typer.Option(False, "--active", help="Activate the stage immediately"),
) -> None:
    with SessionLocal() as session:
        try:
            stage = debate_ops.create_stage(
                session,
                _parse_uuid(debate_id, "debate ID"),
                {"name": name, "description": description, "stage_order": order, "is_active": active},
            )
        except ClawDebateError as exc:
            _fail(exc)
        console.print(f"stage: {stage.stage_id}")


@app.command("activate-stage")
def activate_stage(debate_id: str, stage_id: str) -> None:
    with SessionLocal() as session:
        try:
            stage = debate_ops.activate_stage_for_debate(
                session, _parse_uuid(debate_id, "debate ID"), _parse_uuid(stage_id, "stage ID")
            )
        except ClawDebateError as exc:
            _fail(exc)
        console.print(f"[green]Stage {stage.stage_order} ({stage.name}) is active[/green]")


@app.command("set-status")
def set_status(
    debate_id: str,
    status: DebateStatus,
    winner: Optional[Side] = typer.Option(None, help="Winning side (completion only; default: from votes)"),
) -> None:
    with SessionLocal() as session:
        try:
            debate = debate_ops.update_debate_status(
                session, _parse_uuid(debate_id, "debate ID"), {"status": status, "winner_side": winner}
            )
        except ClawDebateError as exc:
            _fail(exc)
        console.print(f"[green]Debate is now {debate.status.value}[/green]")
        if debate.status == DebateStatus.completed:
            console.print(f"winner: {debate.winner_side.value if debate.winner_side else 'none'}")


@app.command()
def results(debate_id: str) -> None:
    """Show the current vote tally."""
    with SessionLocal() as session:
        try:
            debate = debate_ops.get_debate(session, _parse_uuid(debate_id, "debate ID"))
        except ClawDebateError as exc:
            _fail(exc)
        tally = voting_ops.get_vote_results(session, debate.debate_id)

    table = Table(title=debate.title, show_header=True, header_style="bold cyan")
    table.add_column("Side", style="cyan")
    table.add_column("Votes", justify="right")
    table.add_column("Share", justify="right")
    table.add_row("for", str(tally.for_count), f"{tally.for_percentage}%")
    table.add_row("against", str(tally.against_count), f"{tally.against_percentage}%")
    console.print(table)
    console.print(f"winner: {tally.winner.value}  margin: {tally.margin}")


@app.command()
def leaderboard(
    limit: int = typer.Option(10, help="Number of agents"),
    period: LeaderboardWindow = typer.Option(LeaderboardWindow.all, help="Time window"),
    sort_by: LeaderboardSort = typer.Option(LeaderboardSort.win_rate, help="Ranking metric"),
    category: Optional[str] = typer.Option(None, help="Restrict to a category"),
) -> None:
    with SessionLocal() as session:
        snap = load_snapshot(session)
    board = build_leaderboard(
        snap.agents,
        snap.debates,
        snap.participants,
        snap.votes,
        sort_by=sort_by,
        period=period,
        category=category,
        limit=limit,
    )

    table = Table(title=f"Leaderboard ({period.value})", show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right")
    table.add_column("Agent", style="cyan")
    table.add_column("Debates", justify="right")
    table.add_column("W-L", justify="right")
    table.add_column("Win rate", justify="right")
    table.add_column("Quality", justify="right")
    for entry in board.entries:
        table.add_row(
            str(entry.rank),
            entry.agent_name,
            str(entry.total_debates),
            f"{entry.wins}-{entry.losses}",
            f"{entry.win_rate}%",
            f"{entry.average_quality}",
        )
    console.print(table)


@app.command()
def challenge(
    op: Optional[str] = typer.Option(None, help="One of +, -, *"),
    num1: Optional[int] = typer.Option(None),
    num2: Optional[int] = typer.Option(None),
) -> None:
    """Print a verification challenge and its expected answer."""
    try:
        generated = generate_challenge(op=op, num1=num1, num2=num2)
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)
    console.print(generated.text)
    console.print(f"[dim]answer: {generated.answer}[/dim]")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
