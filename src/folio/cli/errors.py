"""
Standardized error handling and exit codes for the folio CLI.

This module provides consistent error messaging with actionable guidance
and standardized exit codes across all CLI commands.
"""

from enum import IntEnum

from rich.console import Console

console = Console()


class ExitCode(IntEnum):
    """Standard exit codes for folio CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Generic error, including upstream and storage failures."""

    USER_ERROR = 2
    """User configuration or input error (actionable by user)."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
    doc_url: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it
        doc_url: Optional documentation URL for more help

    Example:
        >>> print_error(
        ...     "Project p1 not found",
        ...     solution="folio sync all",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")

    if doc_url:
        console.print(f"[dim]Docs: {doc_url}[/dim]")


def print_invalid_github_url_error(url: str) -> None:
    """Print error when a repository URL cannot be parsed."""
    print_error(
        f"Invalid GitHub URL: {url}",
        reason="Expected a URL like https://github.com/<owner>/<repo>",
    )


def print_github_token_hint() -> None:
    """Print a hint when GitHub quota is tight and no token is configured."""
    print_error(
        "GitHub API rate limit too low",
        reason="Unauthenticated requests share a small hourly quota",
        solution="export GITHUB_TOKEN=<personal access token>",
        doc_url="https://docs.github.com/en/rest/overview/rate-limits-for-the-rest-api",
    )
