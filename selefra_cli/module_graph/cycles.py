"""Cycle detection over the discovered document graph.

Only edges between discovered documents count; references to rule files or
unexpanded directories are leaves. Flattening inlines documents recursively
and would not terminate on a cycle, so this check must pass first.
"""

from __future__ import annotations

from pathlib import Path

from .errors import CircularReferenceError
from .models import ResolvedGraph


def find_cycle(graph: ResolvedGraph) -> list[Path] | None:
    """Find the first reference cycle in document order.

    Depth-first search from each document, keeping the current path. Reaching
    a document already on the path closes a cycle.

    Returns:
        The chain (first element repeated at the end), or None if acyclic
    """
    finished: set[Path] = set()
    path: list[Path] = []
    on_path: set[Path] = set()

    def visit(node: Path) -> list[Path] | None:
        path.append(node)
        on_path.add(node)
        for target in graph.get_targets(node):
            if target in on_path:
                return path[path.index(target) :] + [target]
            if target in finished:
                continue
            if cycle := visit(target):
                return cycle
        path.pop()
        on_path.discard(node)
        finished.add(node)
        return None

    for start in graph.documents:
        if start in finished:
            continue
        if cycle := visit(start):
            return cycle
    return None


def detect_cycles(graph: ResolvedGraph) -> None:
    """Verify the document graph is acyclic.

    Raises:
        CircularReferenceError: With the full chain, e.g. ``a -> b -> a``
    """
    cycle = find_cycle(graph)
    if cycle is not None:
        raise CircularReferenceError(cycle, [graph.display_path(p) for p in cycle])
