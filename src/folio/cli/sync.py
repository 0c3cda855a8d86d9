"""
Folio CLI - GitHub project sync commands.

Runs the same sync service the HTTP routes use, against the local
projects file.
"""

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from folio.cli.errors import (
    ExitCode,
    print_error,
    print_github_token_hint,
    print_invalid_github_url_error,
)
from folio.core.config import FolioConfig, load_config
from folio.core.exceptions import ProjectNotFoundError
from folio.core.github import parse_repository_url
from folio.core.projects import JsonProjectStore
from folio.core.sync import ProjectSyncService, SyncReport
from folio.core.sync.service import RATE_LIMIT_TOO_LOW

console = Console()
app = typer.Typer(
    name="sync",
    help="Sync project records from GitHub",
    no_args_is_help=True,
)


def _service(config: FolioConfig) -> ProjectSyncService:
    return ProjectSyncService(JsonProjectStore(Path(config.projects_file)), config)


def _print_report(report: SyncReport) -> None:
    if report.results:
        table = Table(title="GitHub sync")
        table.add_column("Project", style="cyan")
        table.add_column("Status")
        table.add_column("Stars", justify="right")
        table.add_column("Commits", justify="right")
        table.add_column("Release")
        for result in report.results:
            status = "[green]✓[/green]" if result.success else f"[red]✗ {result.error}[/red]"
            table.add_row(
                result.project_title or result.project_id or "?",
                status,
                str(result.stars) if result.stars is not None else "",
                str(result.total_commits) if result.total_commits is not None else "",
                result.latest_release or "",
            )
        console.print(table)

    if report.success:
        console.print(f"[green]✓[/green] {report.summary()}")
    else:
        console.print(f"[red]Error:[/red] {report.summary()}")


@app.command(name="all")
def sync_all(
    rate_limit: bool = typer.Option(
        False,
        "--rate-limit",
        help="Also report the remaining GitHub quota",
    ),
) -> None:
    """
    Sync every project that has a GitHub URL.

    Examples:
        folio sync all
        folio sync all --rate-limit
    """
    config = load_config()

    async def run() -> SyncReport:
        async with _service(config) as service:
            return await service.sync_all(include_rate_limit=rate_limit)

    report = asyncio.run(run())
    _print_report(report)
    if report.rate_limit is not None:
        console.print(f"[dim]Rate limit: {report.rate_limit.remaining} remaining[/dim]")
    if report.total_errors:
        raise typer.Exit(ExitCode.GENERAL_ERROR)


@app.command(name="project")
def sync_project(
    project_id: str = typer.Argument(..., help="Project id to sync"),
) -> None:
    """Sync one project by id (ignores the freshness window and quota)."""
    config = load_config()

    async def run():
        async with _service(config) as service:
            return await service.sync_project_by_id(project_id)

    try:
        result = asyncio.run(run())
    except ProjectNotFoundError as e:
        print_error(str(e), solution=f"check the ids in {config.projects_file}")
        raise typer.Exit(ExitCode.USER_ERROR)

    if not result.success:
        console.print(f"[red]Error:[/red] {result.error}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    console.print(
        f"[green]✓[/green] Synced {result.project_title or project_id}: "
        f"{result.stars} stars, {result.forks} forks"
    )


@app.command(name="preview")
def preview(
    url: str = typer.Argument(..., help="GitHub repository URL"),
) -> None:
    """Fetch a repository without writing anything."""
    if parse_repository_url(url) is None:
        print_invalid_github_url_error(url)
        raise typer.Exit(ExitCode.USER_ERROR)

    config = load_config()

    async def run():
        async with _service(config) as service:
            return await service.preview(url)

    data = asyncio.run(run())
    if data is None:
        console.print("[red]Error:[/red] Failed to fetch GitHub data")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    console.print(f"[bold]{data.full_name}[/bold]")
    if data.description:
        console.print(data.description)
    console.print(f"Stars: {data.stars}  Forks: {data.forks}  Commits: {data.total_commits}")
    if data.languages:
        console.print(f"Languages: {', '.join(data.languages)}")
    if data.latest_release:
        console.print(f"Latest release: {data.latest_release}")


@app.command(name="scheduled")
def scheduled() -> None:
    """
    Run the scheduled sync once (freshness window and quota gate apply).

    Same behavior as GET /api/cron/sync-github.
    """
    config = load_config()

    async def run() -> SyncReport:
        async with _service(config) as service:
            return await service.run_scheduled()

    report = asyncio.run(run())
    _print_report(report)
    if not report.success:
        if report.error == RATE_LIMIT_TOO_LOW and not config.github.token:
            print_github_token_hint()
        raise typer.Exit(ExitCode.GENERAL_ERROR)


@app.command(name="rate-limit")
def rate_limit() -> None:
    """Show the remaining GitHub API quota."""
    config = load_config()

    async def run():
        async with _service(config) as service:
            return await service.check_rate_budget()

    budget = asyncio.run(run())
    if budget is None:
        console.print("[red]Error:[/red] Could not read the GitHub rate limit")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    reset = budget.reset_time.isoformat() if budget.reset_time else "unknown"
    console.print(f"Remaining: {budget.remaining}/{budget.limit}")
    console.print(f"[dim]Resets at {reset}[/dim]")
    if budget.is_below(config.sync.rate_limit_threshold):
        console.print(
            f"[yellow]⚠[/yellow]  Below the scheduled-sync threshold "
            f"({config.sync.rate_limit_threshold})"
        )
