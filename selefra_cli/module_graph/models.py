"""Data model for the module declaration graph.

Types:
- ReferenceKind / Reference: a classified ``uses`` entry
- ModuleDeclaration: one ``modules:`` entry as written in a document
- ModuleDocument: a parsed document and its declarations
- ResolvedReference / ResolvedDeclaration / ResolvedDocument: the same after
  every reference has been resolved to a filesystem path
- ResolvedGraph: all in-scope documents plus the adjacency relation
- MergedModule: one entry of the flattened output
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from pathlib import Path
from typing import Any


class ReferenceKind(str, Enum):
    """Grammar a reference string was written in."""

    LOCAL = "local"
    HOME_PACKAGE = "home_package"
    ORG_PACKAGE = "org_package"


@dataclass(frozen=True)
class Reference:
    """A ``uses`` entry classified once, up front.

    Attributes:
        raw: The string exactly as written in the document
        kind: Which grammar the string matched
        path: Filesystem path for LOCAL, sub-path inside the package otherwise
        name: Package name (packages only)
        org: Organization (ORG_PACKAGE only)
        version: Requested version, None when not pinned
    """

    raw: str
    kind: ReferenceKind
    path: str = ""
    name: str | None = None
    org: str | None = None
    version: str | None = None

    @property
    def is_package(self) -> bool:
        return self.kind is not ReferenceKind.LOCAL


@dataclass(frozen=True)
class DeclarationOrigin:
    """Where a declaration was written (document and index in ``modules``)."""

    document: Path
    index: int


@dataclass(frozen=True)
class ModuleDeclaration:
    """One entry of a document's ``modules`` section."""

    name: str
    uses: tuple[str, ...]
    origin: DeclarationOrigin
    input: dict[str, Any] | None = None


@dataclass(frozen=True)
class ModuleDocument:
    """A configuration file that carries a ``modules`` section."""

    path: Path
    declarations: tuple[ModuleDeclaration, ...]


@dataclass(frozen=True)
class ResolvedReference:
    """A reference together with the path it resolved to.

    ``emitted`` is the string written to the flattened output when the
    reference is not inlined.
    """

    reference: Reference
    target: Path
    emitted: str


@dataclass(frozen=True)
class ResolvedDeclaration:
    """A declaration whose references all resolved (and were expanded)."""

    name: str
    references: tuple[ResolvedReference, ...]
    origin: DeclarationOrigin
    input: dict[str, Any] | None = None


@dataclass(frozen=True)
class ResolvedDocument:
    path: Path
    declarations: tuple[ResolvedDeclaration, ...]


@dataclass
class ResolvedGraph:
    """All in-scope documents keyed by canonical path, in discovery order.

    Document A has an edge to document B iff some declaration of A holds a
    reference whose target is B. Targets that are not documents (rule files,
    unexpanded directories) are leaves and never become edges.
    """

    workspace: Path
    documents: dict[Path, ResolvedDocument] = field(default_factory=dict)

    def add(self, document: ResolvedDocument) -> None:
        self.documents[document.path] = document

    def get_targets(self, path: Path) -> list[Path]:
        """Documents referenced by ``path``, in first-reference order, without repeats."""
        document = self.documents.get(path)
        if document is None:
            return []
        # dict keys keep first-reference order
        targets: dict[Path, None] = {}
        for declaration in document.declarations:
            for ref in declaration.references:
                if ref.target in self.documents:
                    targets.setdefault(ref.target, None)
        return list(targets)

    def iter_edges(self) -> Iterator[tuple[Path, Path]]:
        """Iterate over all edges as (source, target) tuples."""
        for source in self.documents:
            for target in self.get_targets(source):
                yield source, target

    def get_used(self) -> set[Path]:
        """Documents referenced by at least one other document."""
        return {target for _source, target in self.iter_edges()}

    def get_roots(self, used: set[Path] | None = None) -> list[Path]:
        """Documents no other document references, in discovery order.

        Args:
            used: Result of ``get_used()`` when the caller already has it
        """
        if used is None:
            used = self.get_used()
        return [path for path in self.documents if path not in used]

    def display_path(self, path: Path) -> str:
        """Path relative to the workspace when inside it, absolute otherwise."""
        try:
            return str(path.relative_to(self.workspace))
        except ValueError:
            return str(path)

    def __len__(self) -> int:
        return len(self.documents)

    def __contains__(self, path: Path) -> bool:
        return path in self.documents

    def __repr__(self) -> str:
        edge_count = sum(1 for _ in self.iter_edges())
        return f"ResolvedGraph(documents={len(self.documents)}, edges={edge_count})"


@dataclass
class MergedModule:
    """One entry of the flattened ``modules:`` output."""

    name: str
    uses: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "uses": list(self.uses)}
