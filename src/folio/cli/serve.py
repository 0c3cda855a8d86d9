"""
Folio CLI - Serve the HTTP API with uvicorn.
"""

import typer
from rich.console import Console

console = Console()


def serve(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to listen on"),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes"),
) -> None:
    """
    Run the folio API server.

    Examples:
        folio serve
        folio serve --host 0.0.0.0 --port 9000
    """
    import uvicorn

    debug = bool(ctx.obj and ctx.obj.get("debug"))
    console.print(f"[bold]Folio API[/bold] on http://{host}:{port}")
    console.print("\n[dim]Press Ctrl+C to stop[/dim]\n")

    try:
        uvicorn.run(
            "folio.api.app:app",
            host=host,
            port=port,
            reload=reload,
            log_level="info" if debug else "warning",
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]Server stopped[/yellow]")
        raise typer.Exit(0)
