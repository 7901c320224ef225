"""Graph flattening - nested module documents become one qualified list.

Root documents (referenced by nobody) contribute the top-level entries.
Every reference from a declaration to another document is replaced by that
document's declarations, renamed ``<parent>.<child>``, recursively. Each
inlining site builds fresh entries, so a document used under two parents
yields two independent copies.

Duplicate policy: entries coming from clones of one declaration (a
directory reference expanded into several files) share a name by
construction and are coalesced into one entry, placed where the last clone
would have been so it still follows all of its children. Any other name
collision raises DuplicateModuleNameError.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .errors import DuplicateModuleNameError
from .models import DeclarationOrigin
from .models import MergedModule
from .models import ResolvedDeclaration
from .models import ResolvedGraph


@dataclass(frozen=True)
class _Entry:
    module: MergedModule
    origin: DeclarationOrigin


def _inline(
    graph: ResolvedGraph,
    used: set[Path],
    declaration: ResolvedDeclaration,
    qualified_name: str,
) -> list[_Entry]:
    output: list[_Entry] = []
    remaining: list[str] = []
    inlined: set[Path] = set()

    for ref in declaration.references:
        if ref.target not in used:
            remaining.append(ref.emitted)
            continue
        if ref.target in inlined:
            continue
        inlined.add(ref.target)
        child = graph.documents[ref.target]
        for child_declaration in child.declarations:
            output.extend(_inline(graph, used, child_declaration, f"{qualified_name}.{child_declaration.name}"))

    output.append(_Entry(MergedModule(name=qualified_name, uses=remaining), declaration.origin))
    return output


def _merge_entries(entries: list[_Entry]) -> list[MergedModule]:
    # Insertion order of ``seen`` is the output order
    seen: dict[str, _Entry] = {}

    for entry in entries:
        name = entry.module.name
        existing = seen.get(name)
        if existing is None:
            seen[name] = entry
            continue
        if existing.origin != entry.origin:
            raise DuplicateModuleNameError(name, existing.origin.document, entry.origin.document)
        for use in entry.module.uses:
            if use not in existing.module.uses:
                existing.module.uses.append(use)
        # A coalesced parent follows the children of every clone
        del seen[name]
        seen[name] = existing

    return [entry.module for entry in seen.values()]


def flatten_graph(graph: ResolvedGraph) -> list[MergedModule]:
    """Flatten an acyclic document graph into the final module list.

    Args:
        graph: Discovered graph; must have passed cycle detection

    Returns:
        Modules in root-document order, children before their parent

    Raises:
        DuplicateModuleNameError: Two distinct declarations share a qualified name
    """
    used = graph.get_used()
    entries: list[_Entry] = []
    for path in graph.get_roots(used):
        for declaration in graph.documents[path].declarations:
            entries.extend(_inline(graph, used, declaration, declaration.name))
    return _merge_entries(entries)
