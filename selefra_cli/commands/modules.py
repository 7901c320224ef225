"""Module graph commands for the selefra CLI."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.table import Table
from rich.tree import Tree

from ..console import console
from ..console import err_console
from ..module_graph.errors import ModuleResolutionError
from ..module_graph.loader import OUTPUT_FORMATS
from ..module_graph.loader import ModuleResolution
from ..module_graph.loader import dump_modules
from ..module_graph.loader import resolve_modules
from ..module_graph.models import ResolvedGraph
from ..paths import create_reference_resolver
from ..paths import create_settings
from ..ui.error_display import display_resolution_error
from ..utils.error_format import escape_markup

logger = logging.getLogger(__name__)

workspace_option = click.option(
    "--workspace",
    "-w",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Workspace root directory",
)


def _resolve_or_exit(ctx: click.Context, workspace: Path) -> ModuleResolution:
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    settings = create_settings(workspace.resolve())
    try:
        return resolve_modules(workspace, create_reference_resolver(workspace, settings))
    except ModuleResolutionError as e:
        logger.error(f"Module resolution failed: {e.message}", extra={"event": "modules:error", "kind": e.kind})
        display_resolution_error(err_console, e, verbose=verbose)
        sys.exit(1)


@click.group(invoke_without_command=True)
@click.pass_context
def modules(ctx: click.Context):
    """Resolve and inspect module declarations.

    Collects every 'modules' section in the workspace, follows 'uses'
    references (local files, directories and registry packages) and
    flattens nested documents into qualified module names.
    """
    if ctx.invoked_subcommand is None:
        click.echo("\n" + ctx.get_help())
        ctx.exit()


@modules.command(name="show")
@workspace_option
@click.option(
    "--format",
    "output_format",
    type=click.Choice(OUTPUT_FORMATS),
    default="yaml",
    show_default=True,
    help="Output format",
)
@click.pass_context
def modules_show(ctx: click.Context, workspace: Path, output_format: str):
    """Print the flattened module list."""
    resolution = _resolve_or_exit(ctx, workspace)
    click.echo(dump_modules(resolution.modules, output_format), nl=False)


def _add_document(tree: Tree, graph: ResolvedGraph, path: Path) -> None:
    document = graph.documents[path]
    for declaration in document.declarations:
        branch = tree.add(f"[bold cyan]{escape_markup(declaration.name)}[/bold cyan]")
        for ref in declaration.references:
            if ref.target in graph:
                child = branch.add(f"[green]{escape_markup(graph.display_path(ref.target))}[/green]")
                _add_document(child, graph, ref.target)
            else:
                branch.add(f"[dim]{escape_markup(ref.emitted)}[/dim]")


@modules.command(name="graph")
@workspace_option
@click.pass_context
def modules_graph(ctx: click.Context, workspace: Path):
    """Show how module documents reference each other."""
    resolution = _resolve_or_exit(ctx, workspace)
    graph = resolution.graph

    if not graph.documents:
        console.print("[dim]No module documents found.[/dim]")
        return

    tree = Tree(f"[bold]{escape_markup(graph.workspace)}[/bold]")
    for root in graph.get_roots():
        node = tree.add(f"[green]{escape_markup(graph.display_path(root))}[/green]")
        _add_document(node, graph, root)
    console.print(tree)


@modules.command(name="check")
@workspace_option
@click.pass_context
def modules_check(ctx: click.Context, workspace: Path):
    """Validate module declarations without printing them."""
    resolution = _resolve_or_exit(ctx, workspace)
    graph = resolution.graph

    table = Table(title="Module Configuration", show_header=False)
    table.add_column("Item", style="dim")
    table.add_column("Value", style="cyan", justify="right")
    table.add_row("Documents", str(len(graph)))
    table.add_row("Root documents", str(len(graph.get_roots())))
    table.add_row("References between documents", str(sum(1 for _ in graph.iter_edges())))
    table.add_row("Modules", str(len(resolution.modules)))

    console.print(table)
    console.print("[green]✓ Module configuration is valid[/green]")
