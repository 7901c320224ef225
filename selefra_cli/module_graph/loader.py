"""Module graph resolution entry point.

Runs the full pipeline for a workspace:

    scan -> discover (resolve + expand) -> detect cycles -> flatten

and renders the flattened list as the ``modules:`` document consumed by the
rest of the CLI.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from ..paths import create_reference_resolver
from .cycles import detect_cycles
from .discovery import discover_graph
from .flattener import flatten_graph
from .models import MergedModule
from .models import ResolvedGraph
from .resolver import ReferenceResolver

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("yaml", "json")


@dataclass
class ModuleResolution:
    """Result of one resolution run."""

    graph: ResolvedGraph
    modules: list[MergedModule]

    def to_document(self) -> dict[str, Any]:
        return {"modules": [module.to_dict() for module in self.modules]}


def resolve_modules(workspace: Path, resolver: ReferenceResolver | None = None) -> ModuleResolution:
    """Resolve every module declaration under a workspace.

    Args:
        workspace: Workspace root directory
        resolver: Reference resolver (default: HTTP registry and home cache)

    Returns:
        ModuleResolution holding the document graph and the flattened modules

    Raises:
        ModuleResolutionError: Any stage fails; nothing partial is returned
    """
    workspace = workspace.resolve()
    if resolver is None:
        resolver = create_reference_resolver(workspace)

    graph = discover_graph(workspace, resolver)
    detect_cycles(graph)
    modules = flatten_graph(graph)

    logger.info(f"Resolved {len(modules)} modules from {len(graph)} documents")
    return ModuleResolution(graph=graph, modules=modules)


def dump_modules(modules: list[MergedModule], output_format: str = "yaml") -> str:
    """Render flattened modules as a ``modules:`` document.

    Args:
        modules: Flattened modules
        output_format: "yaml" or "json"

    Returns:
        Serialized document text
    """
    document = {"modules": [module.to_dict() for module in modules]}
    if output_format == "json":
        return json.dumps(document, indent=2) + "\n"
    if output_format == "yaml":
        return yaml.safe_dump(document, sort_keys=False, default_flow_style=False)
    raise ValueError(f"Unknown output format: {output_format}")
