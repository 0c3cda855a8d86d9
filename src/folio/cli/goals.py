"""
Folio CLI - Accountability goal commands.

Reads and writes the same key-value collections the HTTP API serves.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from folio.cli.errors import ExitCode, print_error
from folio.core.accountability import AccountabilityStore, Goal, GoalStatus, KVAccountabilityBackend
from folio.core.config import load_config
from folio.core.exceptions import FolioError, GoalNotFoundError
from folio.core.kv import UpstashRedisStore, create_kv_store

console = Console()
app = typer.Typer(
    name="goals",
    help="Inspect and edit accountability goals",
    no_args_is_help=True,
)

T = TypeVar("T")

PRIORITY_STYLES = {
    "critical": "red",
    "high": "yellow",
    "medium": "cyan",
    "low": "dim",
}


def _with_store(action: Callable[[AccountabilityStore], Awaitable[T]]) -> T:
    """Load the store, run ``action`` against it, and close the connection."""
    config = load_config()
    kv = create_kv_store(config.kv.url, config.kv.token)

    async def run() -> T:
        store = AccountabilityStore(KVAccountabilityBackend(kv))
        try:
            await store.initialize()
            return await action(store)
        finally:
            if isinstance(kv, UpstashRedisStore):
                await kv.aclose()

    return asyncio.run(run())


def _print_goals(goals: list[Goal]) -> None:
    table = Table(title="Goals")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Status")
    table.add_column("Priority")
    table.add_column("Deadline")
    for goal in goals:
        style = PRIORITY_STYLES.get(goal.priority.value, "")
        table.add_row(
            goal.id[:8],
            goal.title,
            goal.status.value,
            f"[{style}]{goal.priority.value}[/{style}]" if style else goal.priority.value,
            goal.deadline.date().isoformat() if goal.deadline else "",
        )
    console.print(table)


@app.command(name="list")
def list_goals(
    status: GoalStatus | None = typer.Option(
        None,
        "--status",
        "-s",
        help="Only show goals with this status",
    ),
) -> None:
    """
    List goals.

    Examples:
        folio goals list
        folio goals list --status active
    """

    async def load(store: AccountabilityStore) -> list[Goal]:
        return store.get_goals_by_status(status) if status else store.goals

    goals = _with_store(load)
    if not goals:
        console.print("[dim]No goals found[/dim]")
        return
    _print_goals(goals)


@app.command(name="add")
def add_goal(
    title: str = typer.Argument(..., help="Goal title"),
    priority: str = typer.Option("medium", "--priority", "-p", help="low, medium, high or critical"),
    category: str | None = typer.Option(None, "--category", "-c", help="Free-form category"),
) -> None:
    """Create an active goal."""

    async def add(store: AccountabilityStore) -> Goal:
        return await store.add_goal({"title": title, "priority": priority, "category": category})

    try:
        goal = _with_store(add)
    except ValidationError as e:
        print_error("Invalid goal", reason=str(e))
        raise typer.Exit(ExitCode.USER_ERROR)
    except FolioError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    console.print(f"[green]✓[/green] Added goal {goal.id[:8]}: {goal.title}")


@app.command(name="move")
def move_goal(
    goal_id: str = typer.Argument(..., help="Full goal id or unique prefix"),
    status: GoalStatus = typer.Argument(..., help="New status"),
) -> None:
    """Change a goal's status; completing it stamps the completion time."""

    async def move(store: AccountabilityStore) -> Goal:
        matches = [g.id for g in store.goals if g.id.startswith(goal_id)]
        if len(matches) != 1:
            raise GoalNotFoundError(goal_id)
        return await store.move_goal(matches[0], status)

    try:
        goal = _with_store(move)
    except GoalNotFoundError as e:
        print_error(str(e), solution="folio goals list")
        raise typer.Exit(ExitCode.USER_ERROR)
    except FolioError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    console.print(f"[green]✓[/green] {goal.title} is now {goal.status.value}")
