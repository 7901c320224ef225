"""Graph discovery - transitive closure over module references.

Starting from the documents found in the workspace, every reference is
resolved (and directory references expanded). Each referenced file that is
itself a module document is loaded and processed in turn, until no new
documents appear. A visited set guarantees termination when documents
reference each other in a loop; reporting the loop is the cycle detector's
job, not discovery's.
"""

from __future__ import annotations

import logging
from collections import deque
from pathlib import Path

from .expander import expand_declaration
from .models import ModuleDocument
from .models import ResolvedDeclaration
from .models import ResolvedDocument
from .models import ResolvedGraph
from .resolver import ReferenceResolver
from .scanner import is_config_file
from .scanner import load_document
from .scanner import scan_workspace

logger = logging.getLogger(__name__)


def resolve_document(document: ModuleDocument, resolver: ReferenceResolver) -> ResolvedDocument:
    """Resolve and expand every declaration of a document.

    Raises:
        ModuleResolutionError: Any reference fails to resolve
    """
    declarations: list[ResolvedDeclaration] = []
    for declaration in document.declarations:
        references = tuple(
            resolver.resolve_reference(resolver.classify(raw, document.path), document.path)
            for raw in declaration.uses
        )
        resolved = ResolvedDeclaration(
            name=declaration.name,
            references=references,
            origin=declaration.origin,
            input=declaration.input,
        )
        declarations.extend(expand_declaration(resolved, document.path))
    return ResolvedDocument(path=document.path, declarations=tuple(declarations))


def discover_graph(
    workspace: Path,
    resolver: ReferenceResolver,
    seeds: list[ModuleDocument] | None = None,
) -> ResolvedGraph:
    """Discover every in-scope document reachable from the workspace.

    Args:
        workspace: Workspace root directory
        resolver: Reference resolver for this run
        seeds: Starting documents (default: scan the workspace)

    Returns:
        ResolvedGraph with documents in discovery order

    Raises:
        ModuleResolutionError: A reference fails to resolve, or a referenced
            document is malformed
    """
    workspace = workspace.resolve()
    if seeds is None:
        seeds = scan_workspace(workspace)

    graph = ResolvedGraph(workspace=workspace)
    queue: deque[ModuleDocument] = deque()
    visited: set[Path] = set()

    for document in seeds:
        if document.path not in visited:
            visited.add(document.path)
            queue.append(document)

    while queue:
        document = queue.popleft()
        resolved = resolve_document(document, resolver)
        graph.add(resolved)

        for declaration in resolved.declarations:
            for ref in declaration.references:
                target = ref.target
                if target in visited or not target.is_file():
                    continue
                visited.add(target)

                if not is_config_file(target):
                    logger.debug(f"[modules:discover] {target} is not a config file, leaving as leaf")
                    continue

                child = load_document(target)
                if child is None:
                    logger.debug(f"[modules:discover] {target} has no modules section, leaving as leaf")
                    continue

                logger.debug(f"[modules:discover] {document.path} -> {target}")
                queue.append(child)

    logger.info(f"Discovered {len(graph)} module documents")
    return graph
