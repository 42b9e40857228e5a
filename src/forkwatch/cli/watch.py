"""
forkwatch watch - run the synchronization engine and control plane.
"""

import logging
from pathlib import Path

import typer
from rich.console import Console

from forkwatch.cli.errors import ExitCode
from forkwatch.core.config.models import ForkwatchConfig

console = Console()
logger = logging.getLogger(__name__)


def apply_overrides(
    config: ForkwatchConfig,
    *,
    host: str | None = None,
    port: int | None = None,
    lazy: bool | None = None,
) -> ForkwatchConfig:
    """Return a copy of ``config`` with command-line options applied."""
    server_updates = {key: value for key, value in (("host", host), ("port", port)) if value is not None}
    watch_updates = {"lazy": lazy} if lazy is not None else {}
    return config.model_copy(
        update={
            "server": config.server.model_copy(update=server_updates),
            "watch": config.watch.model_copy(update=watch_updates),
        }
    )


def watch(
    ctx: typer.Context,
    directory: Path = typer.Argument(Path("."), help="Directory to watch"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port for the control plane"),
    host: str | None = typer.Option(None, "--host", help="Interface to bind"),
    lazy: bool | None = typer.Option(
        None, "--lazy/--no-lazy", help="Generate lazy-loading imports in manifests"
    ),
) -> None:
    """
    Discover versioned units, keep their manifests in sync, and serve the
    control plane.

    Examples:
        forkwatch watch
        forkwatch watch ./src
        forkwatch watch ./src --port 3002 --lazy
    """
    debug = ctx.obj.get("debug", False) if ctx.obj else False
    config = ctx.obj.get("config") if ctx.obj else None
    config = apply_overrides(config or ForkwatchConfig(), host=host, port=port, lazy=lazy)

    if not debug:
        logging.getLogger().setLevel(logging.INFO)

    root = directory.resolve()
    if not root.is_dir():
        console.print(f"[red]Error:[/red] Not a directory: {root}")
        raise typer.Exit(ExitCode.USER_ERROR)

    import uvicorn

    from forkwatch.core.control.app import create_app
    from forkwatch.core.sync.orchestrator import SyncOrchestrator

    orchestrator = SyncOrchestrator(root, config)
    fastapi_app = create_app(orchestrator, config)

    url = f"http://{config.server.host}:{config.server.port}"
    console.print(f"[bold cyan]Watching {root}[/bold cyan]")
    console.print(f"[dim]API: {url}/units[/dim]")
    console.print(f"[dim]Push channel: ws://{config.server.host}:{config.server.port}/ws[/dim]")
    console.print("\n[dim]Press Ctrl+C to stop[/dim]\n")

    try:
        uvicorn.run(
            fastapi_app,
            host=config.server.host,
            port=config.server.port,
            log_level="info" if debug else "warning",
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped[/yellow]")
        raise typer.Exit(ExitCode.SUCCESS)
