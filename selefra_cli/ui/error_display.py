"""Clean error display for module resolution failures."""

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from ..module_graph.errors import CircularReferenceError
from ..module_graph.errors import DuplicateModuleNameError
from ..module_graph.errors import FetchFailedError
from ..module_graph.errors import MalformedDocumentError
from ..module_graph.errors import ModuleResolutionError
from ..module_graph.errors import ReferenceMalformedError
from ..module_graph.errors import ReferenceNotFoundError
from ..module_graph.errors import UnauthenticatedError

_TITLES = {
    ReferenceMalformedError: "Malformed Module Reference",
    ReferenceNotFoundError: "Module Not Found",
    FetchFailedError: "Module Download Failed",
    UnauthenticatedError: "Login Required",
    MalformedDocumentError: "Invalid Module Document",
    CircularReferenceError: "Circular Module References",
    DuplicateModuleNameError: "Duplicate Module Name",
}


def _get_actionable_tip(error: ModuleResolutionError) -> str:
    """Return an actionable tip based on the error type."""
    if isinstance(error, ReferenceMalformedError):
        return "Use a relative path, 'selefra/<name>[@version]' or '<host>/<org>/<name>[@version]'."
    if isinstance(error, ReferenceNotFoundError):
        return "Check the path is relative to the document that declares it."
    if isinstance(error, FetchFailedError):
        return "Check your network connection and that the package and version exist in the registry."
    if isinstance(error, UnauthenticatedError):
        return "Set SELEFRA_TOKEN or log in so credentials.json holds a token."
    if isinstance(error, MalformedDocumentError):
        return "Module entries accept only 'name', 'uses' and 'input'."
    if isinstance(error, CircularReferenceError):
        return "Remove one of the references in the chain above."
    if isinstance(error, DuplicateModuleNameError):
        return "Rename one of the modules so every qualified name is unique."
    return "Review the module configuration."


def display_resolution_error(console: Console, error: Exception, verbose: bool = False) -> bool:
    """Display a ModuleResolutionError with clean Rich formatting.

    Args:
        console: Rich console for output
        error: The error to display
        verbose: If True, also print traceback

    Returns:
        True if error was handled, False if not (caller should handle)
    """
    if not isinstance(error, ModuleResolutionError):
        return False

    title = next((t for cls, t in _TITLES.items() if isinstance(error, cls)), "Module Resolution Failed")

    content = Text()
    content.append(error.message, style="white")
    content.append("\n")

    if isinstance(error, CircularReferenceError):
        content.append("\n")
        for index, step in enumerate(error.display_chain):
            prefix = "  " if index == 0 else "  -> "
            content.append(f"{prefix}{step}\n", style="yellow")

    if error.reference is not None:
        content.append("\n")
        content.append("Reference: ", style="dim")
        content.append(error.reference, style="bold cyan")
    if error.document is not None:
        content.append("\n")
        content.append("Declared in: ", style="dim")
        content.append(str(error.document), style="cyan")

    console.print()
    console.print(
        Panel(
            content,
            title=f"[bold red]{title}[/bold red]",
            subtitle=f"[dim]{error.kind}[/dim]",
            border_style="red",
            padding=(1, 2),
        )
    )
    console.print(f"[dim]Tip: {_get_actionable_tip(error)}[/dim]")
    console.print()

    if verbose:
        console.print("[dim]─── Traceback ───[/dim]")
        console.print_exception()

    return True
