"""
forkwatch version commands.

One-shot mutations on a single unit: new, fork (duplicate), rename, delete,
promote, plus ``list`` for an overview. Each command resolves the unit from
a manifest path, directory, unit file or name, then calls the
VersionService.
"""

from collections.abc import Callable
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from forkwatch.cli.errors import ExitCode, print_forkwatch_error
from forkwatch.core.config.models import ForkwatchConfig
from forkwatch.core.errors import ForkwatchError
from forkwatch.core.services.versions import CommandResult, VersionService
from forkwatch.core.units.lookup import find_manifest, iter_manifests
from forkwatch.core.units.manager import UnitManager

console = Console()


def _config(ctx: typer.Context) -> ForkwatchConfig:
    config = ctx.obj.get("config") if ctx.obj else None
    return config or ForkwatchConfig()


def _manager(ctx: typer.Context, unit: str) -> UnitManager:
    config = _config(ctx)
    return UnitManager(
        find_manifest(unit, Path.cwd()),
        lazy=config.watch.lazy,
        extensions=tuple(config.watch.extensions),
    )


def _run(ctx: typer.Context, unit: str, action: Callable[[UnitManager], CommandResult]) -> CommandResult:
    try:
        result = action(_manager(ctx, unit))
    except ForkwatchError as e:
        raise typer.Exit(print_forkwatch_error(e))
    console.print(f"[green]✓[/green] {result.message}")
    if result.file_path:
        console.print(f"[dim]  File: {result.file_path}[/dim]")
    return result


def new(
    ctx: typer.Context,
    unit: str = typer.Argument(..., help="Unit name, manifest path, or directory"),
    version: str | None = typer.Argument(None, help="Version to create (default: next major)"),
) -> None:
    """
    Create a new version from a minimal template.

    Examples:
        forkwatch new Widget
        forkwatch new Widget v3
    """
    _run(ctx, unit, lambda manager: VersionService().new_version(manager, version))


def fork(
    ctx: typer.Context,
    unit: str = typer.Argument(..., help="Unit name, manifest path, or directory"),
    version: str = typer.Argument(..., help="Version to copy"),
    target: str | None = typer.Argument(None, help="Version to create (default: next major)"),
) -> None:
    """
    Fork (duplicate) a version byte for byte.

    Examples:
        forkwatch fork Widget v1
        forkwatch fork Widget v1 v1_2
    """
    _run(ctx, unit, lambda manager: VersionService().duplicate_version(manager, version, target))


def rename(
    ctx: typer.Context,
    unit: str = typer.Argument(..., help="Unit name, manifest path, or directory"),
    version: str = typer.Argument(..., help="Version to rename"),
    new_version: str = typer.Argument(..., help="New version key"),
) -> None:
    """
    Rename a version; its label follows it.

    Examples:
        forkwatch rename Widget v2 v1_2
    """
    _run(ctx, unit, lambda manager: VersionService().rename_version(manager, version, new_version))


def delete(
    ctx: typer.Context,
    unit: str = typer.Argument(..., help="Unit name, manifest path, or directory"),
    version: str = typer.Argument(..., help="Version to delete"),
) -> None:
    """
    Delete a version. The last remaining version cannot be deleted.

    Examples:
        forkwatch delete Widget v2
    """
    _run(ctx, unit, lambda manager: VersionService().delete_version(manager, version))


def promote(
    ctx: typer.Context,
    unit: str = typer.Argument(..., help="Unit name, manifest path, or directory"),
    version: str = typer.Argument(..., help="Version to keep"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """
    Promote a version to be the unit's only implementation.

    Writes the version to <Unit>.<ext> and removes every version file, the
    manifest and switcher files. This cannot be undone.

    Examples:
        forkwatch promote Widget v2
        forkwatch promote Widget v2 --yes
    """
    if not yes:
        confirm = typer.confirm(f"Promote {version} of {unit} and delete all other versions?")
        if not confirm:
            raise typer.Exit(ExitCode.SUCCESS)
    _run(ctx, unit, lambda manager: VersionService().promote_version(manager, version))


def list_units(
    ctx: typer.Context,
    directory: Path = typer.Argument(Path("."), help="Directory to search"),
) -> None:
    """
    List versioned units and their versions.

    Examples:
        forkwatch list
        forkwatch list src/components
    """
    config = _config(ctx)
    root = directory.resolve()
    managers = [
        UnitManager(path, extensions=tuple(config.watch.extensions))
        for path in iter_manifests(root, frozenset(config.watch.ignore_dirs))
    ]

    if not managers:
        console.print(f"[yellow]No versioned units found in {root}[/yellow]")
        return

    table = Table(title="Versioned units")
    table.add_column("Unit", style="cyan")
    table.add_column("Versions")
    table.add_column("Manifest", style="dim")

    for manager in managers:
        try:
            keys = manager.version_keys()
        except ForkwatchError as e:
            raise typer.Exit(print_forkwatch_error(e))
        try:
            location = str(manager.manifest_path.relative_to(root))
        except ValueError:
            location = str(manager.manifest_path)
        table.add_row(manager.name, ", ".join(keys) or "(none)", location)

    console.print(table)
