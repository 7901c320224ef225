"""Errors raised while resolving the module declaration graph.

Every error aborts the resolution run. Each carries enough context (the
offending reference, the declaring document and, for cycles, the chain) for
the user to fix the configuration.
"""

from __future__ import annotations

from pathlib import Path


class ModuleResolutionError(Exception):
    """Base class for module graph resolution failures."""

    kind = "ModuleResolutionError"

    def __init__(self, message: str, *, reference: str | None = None, document: Path | None = None):
        self.message = message
        self.reference = reference
        self.document = document
        super().__init__(self._format())

    def _format(self) -> str:
        parts = [self.message]
        if self.reference is not None:
            parts.append(f"reference: {self.reference}")
        if self.document is not None:
            parts.append(f"declared in: {self.document}")
        return "\n  ".join(parts)


class ReferenceMalformedError(ModuleResolutionError):
    """A ``uses`` entry does not match any reference grammar."""

    kind = "ReferenceMalformed"


class ReferenceNotFoundError(ModuleResolutionError):
    """A reference resolved to a path that does not exist."""

    kind = "NotFound"


class FetchFailedError(ModuleResolutionError):
    """Downloading or unpacking a remote module package failed."""

    kind = "FetchFailed"


class UnauthenticatedError(ModuleResolutionError):
    """An organization package was referenced without a login token."""

    kind = "Unauthenticated"


class MalformedDocumentError(ModuleResolutionError):
    """A referenced document could not be parsed or failed validation."""

    kind = "MalformedDocument"

    def __init__(self, message: str, *, document: Path | None = None, location: str | None = None):
        self.location = location
        if location:
            message = f"{message} (at {location})"
        super().__init__(message, document=document)


class CircularReferenceError(ModuleResolutionError):
    """Documents reference each other in a loop."""

    kind = "CircularReference"

    def __init__(self, chain: list[Path], display_chain: list[str] | None = None):
        self.chain = chain
        self.display_chain = display_chain or [str(p) for p in chain]
        super().__init__(
            "Modules have circular references: " + " -> ".join(self.display_chain),
            document=chain[0] if chain else None,
        )


class DuplicateModuleNameError(ModuleResolutionError):
    """Two distinct declarations flattened to the same qualified name."""

    kind = "DuplicateModuleName"

    def __init__(self, name: str, first: Path, second: Path):
        self.name = name
        self.first = first
        self.second = second
        super().__init__(
            f"Module name '{name}' is declared more than once (first in {first})",
            document=second,
        )
