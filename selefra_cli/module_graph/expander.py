"""Directory expansion.

A declaration whose single reference resolves to a directory stands for
every config file directly inside that directory. It is replaced by one
clone per file, each clone referencing exactly that file.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path

from ..utils.error_format import format_error_message
from .errors import ReferenceNotFoundError
from .models import Reference
from .models import ReferenceKind
from .models import ResolvedDeclaration
from .models import ResolvedReference
from .scanner import is_config_file
from .scanner import list_directory

logger = logging.getLogger(__name__)


def list_directory_documents(directory: Path, exclude: Path | None = None) -> list[Path]:
    """Config files directly inside ``directory`` (non-recursive), in listing order.

    Args:
        directory: Directory to list
        exclude: Canonical path to leave out (the referencing document)

    Returns:
        Canonical file paths
    """
    files: list[Path] = []
    for entry in list_directory(directory):
        if not entry.is_file() or not is_config_file(entry):
            continue
        path = entry.resolve()
        if path == exclude:
            continue
        files.append(path)
    return files


def expand_declaration(declaration: ResolvedDeclaration, declared_in: Path) -> list[ResolvedDeclaration]:
    """Expand a directory reference into one declaration per contained file.

    Only declarations with exactly one reference whose target is a directory
    are expanded; everything else is returned unchanged. An empty directory
    also leaves the declaration unchanged.

    Args:
        declaration: Declaration with resolved references
        declared_in: Canonical path of the declaring document

    Returns:
        The expanded clones, or ``[declaration]``

    Raises:
        ReferenceNotFoundError: If the directory cannot be listed
    """
    if len(declaration.references) != 1:
        return [declaration]

    directory = declaration.references[0].target
    if not directory.is_dir():
        return [declaration]

    try:
        files = list_directory_documents(directory, exclude=declared_in)
    except OSError as e:
        raise ReferenceNotFoundError(
            f"Cannot list module directory {directory}: {format_error_message(e)}",
            reference=declaration.references[0].reference.raw,
            document=declared_in,
        ) from e
    if not files:
        logger.debug(f"[modules:expand] {directory} has no config files, keeping '{declaration.name}' as-is")
        return [declaration]

    logger.debug(f"[modules:expand] '{declaration.name}' -> {len(files)} files in {directory}")
    return [
        replace(
            declaration,
            references=(
                ResolvedReference(
                    reference=Reference(raw=str(path), kind=ReferenceKind.LOCAL, path=str(path)),
                    target=path,
                    emitted=str(path),
                ),
            ),
        )
        for path in files
    ]
