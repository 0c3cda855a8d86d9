"""
Folio CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging

import typer
from rich.console import Console

from folio import __version__
from folio.cli import goals, serve, sync
from folio.core.config.env import load_layered_env

app = typer.Typer(
    name="folio",
    help="Portfolio back end: GitHub project sync and accountability tracking",
    no_args_is_help=False,
    invoke_without_command=True,
    add_completion=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()
logger = logging.getLogger(__name__)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
) -> None:
    """
    Folio - portfolio back end.

    Common Workflows:
        folio serve                  # Run the HTTP API
        folio sync scheduled         # What the cron job runs
        folio sync preview <url>     # Look at a repository without saving
        folio goals list             # Show accountability goals
    """
    if debug:
        logging.basicConfig(level=logging.DEBUG)

    # Precedence: OS env > project .env > user .env
    sources = load_layered_env()
    for key, source in sorted(sources.items()):
        logger.debug("%s from %s", key, source)

    # Store debug flag in context for subcommands
    ctx.obj = {"debug": debug}

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


app.command(name="serve")(serve.serve)
app.add_typer(sync.app, name="sync")
app.add_typer(goals.app, name="goals")


@app.command()
def version() -> None:
    """Show folio version and exit."""
    console.print(f"folio version {__version__}")
    raise typer.Exit(0)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
