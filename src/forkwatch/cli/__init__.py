"""
forkwatch CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging
import sys

import typer
from rich.console import Console

from forkwatch import __version__
from forkwatch.cli import versions, watch
from forkwatch.core.config.loader import load_config, load_layered_env

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Help panel names for command grouping
PANEL_SERVER = "Run the Watcher"
PANEL_VERSIONS = "Manage Versions"

app = typer.Typer(
    name="forkwatch",
    help="Keep versioned UI units in sync with their manifests",
    no_args_is_help=True,
    add_completion=False,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"forkwatch version {__version__}")
        raise typer.Exit(0)


def setup_logging(debug: bool) -> None:
    """Log to stderr; DEBUG with --debug, WARNING otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """
    forkwatch - versioned UI units.

    Keep several implementations of a component side by side as
    <Unit>.v1.tsx, <Unit>.v2.tsx, ... while forkwatch maintains the
    generated <Unit>.manifest.ts that lists them.

    Quick Start:
        forkwatch watch ./src           # Sync manifests and serve the control plane
        forkwatch new Widget            # Add the next version
        forkwatch promote Widget v2     # Keep v2, drop versioning
    """
    # Precedence: OS env > project .env > user .env
    load_layered_env()
    setup_logging(debug)

    ctx.obj = {"debug": debug, "config": load_config()}


# =============================================================================
# Run the Watcher
# =============================================================================

app.command(name="watch", rich_help_panel=PANEL_SERVER)(watch.watch)


# =============================================================================
# Manage Versions
# =============================================================================

app.command(name="new", rich_help_panel=PANEL_VERSIONS)(versions.new)
app.command(name="create", hidden=True)(versions.new)
app.command(name="fork", rich_help_panel=PANEL_VERSIONS)(versions.fork)
app.command(name="duplicate", hidden=True)(versions.fork)
app.command(name="rename", rich_help_panel=PANEL_VERSIONS)(versions.rename)
app.command(name="delete", rich_help_panel=PANEL_VERSIONS)(versions.delete)
app.command(name="promote", rich_help_panel=PANEL_VERSIONS)(versions.promote)
app.command(name="list", rich_help_panel=PANEL_VERSIONS)(versions.list_units)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
