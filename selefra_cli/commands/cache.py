"""Cache management commands for the selefra CLI.

Remote module packages are unpacked under ~/.selefra/download/modules/ and
their versions recorded in ~/.selefra/.path/config.json.
"""

from __future__ import annotations

import contextlib
import sys
from pathlib import Path

import click
from rich.table import Table

from ..console import console
from ..paths import get_modules_cache_dir
from ..paths import get_selefra_home
from ..paths import get_version_ledger_path
from ..registry.fetcher import PackageCache
from ..utils.error_format import escape_markup
from ..utils.error_format import format_error_message


def _get_cache() -> PackageCache:
    home = get_selefra_home()
    return PackageCache(get_modules_cache_dir(home), get_version_ledger_path(home))


def _get_dir_size(path: Path) -> int:
    """Get total size of a directory in bytes."""
    total = 0
    with contextlib.suppress(OSError):
        for entry in path.rglob("*"):
            if entry.is_file():
                with contextlib.suppress(OSError):
                    total += entry.stat().st_size
    return total


def _format_size(size_bytes: int) -> str:
    """Format bytes as human-readable size."""
    size_float = float(size_bytes)
    for unit in ["B", "KB", "MB", "GB"]:
        if size_float < 1024:
            return f"{size_float:.1f} {unit}"
        size_float /= 1024
    return f"{size_float:.1f} TB"


@click.group(invoke_without_command=True)
@click.pass_context
def cache(ctx: click.Context):
    """Manage the module package cache."""
    if ctx.invoked_subcommand is None:
        click.echo("\n" + ctx.get_help())
        ctx.exit()


@cache.command(name="path")
def cache_path():
    """Show the cache directory path."""
    cache_dir = _get_cache().root
    console.print(f"[cyan]{cache_dir}[/cyan]")

    if cache_dir.exists():
        console.print("[dim]Status: exists[/dim]")
    else:
        console.print("[dim]Status: not created yet[/dim]")


@cache.command(name="list")
def cache_list():
    """List cached module packages with versions and sizes."""
    packages = _get_cache().list_packages()

    if not packages:
        console.print("[dim]No cached module packages found.[/dim]")
        return

    table = Table(title="Cached Module Packages")
    table.add_column("Package", style="cyan")
    table.add_column("Version", style="green")
    table.add_column("Size", justify="right")

    total_size = 0
    for package in packages:
        size = _get_dir_size(package.path)
        total_size += size
        table.add_row(package.name, package.version or "-", _format_size(size))

    console.print(table)
    console.print(f"\n[bold]Total:[/bold] {len(packages)} packages, {_format_size(total_size)}")


@cache.command(name="clear")
@click.argument("name", required=False)
@click.option("--force", "-f", is_flag=True, help="Skip confirmation prompt")
def cache_clear(name: str | None, force: bool):
    """Remove one cached package, or all of them.

    The next resolution re-downloads whatever was removed.
    """
    package_cache = _get_cache()

    if name:
        if package_cache.remove(name):
            console.print(f"[green]Removed cached package {name}[/green]")
        else:
            console.print(f"[dim]Package {name} is not cached.[/dim]")
        return

    packages = package_cache.list_packages()
    if not packages:
        console.print("[dim]No cached module packages found - nothing to clear.[/dim]")
        return

    if not force and not click.confirm(f"Remove {len(packages)} cached packages?"):
        console.print("[yellow]Aborted.[/yellow]")
        return

    removed = 0
    errors = 0
    for package in packages:
        try:
            package_cache.remove(package.name)
            removed += 1
        except OSError as e:
            console.print(f"[red]Error removing {package.name}:[/red] {escape_markup(format_error_message(e))}")
            errors += 1

    if errors == 0:
        console.print(f"[green]Removed {removed} cached packages[/green]")
    else:
        console.print(f"[yellow]Removed {removed} cached packages, {errors} errors[/yellow]")
        sys.exit(1)
