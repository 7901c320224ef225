"""Workspace scanning and document loading.

Walks the workspace in directory-listing order (entries sorted by name, the
way ``os.ReadDir`` lists them), parses every ``.yaml`` file and keeps the ones
whose top-level mapping contains a ``modules`` section.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..utils.error_format import format_error_message
from .errors import MalformedDocumentError
from .models import DeclarationOrigin
from .models import ModuleDeclaration
from .models import ModuleDocument
from .schema import ModulesSection

logger = logging.getLogger(__name__)

CONFIG_EXTENSIONS = (".yaml",)
MODULES_SECTION = "modules"
EXCLUDE_DIRS = {".git", ".hg", ".svn", ".selefra", "node_modules", "__pycache__"}


def is_config_file(path: Path) -> bool:
    """Check if a path has the recognized config extension."""
    return path.suffix in CONFIG_EXTENSIONS


def list_directory(directory: Path) -> list[Path]:
    """List a directory in stable name order."""
    return sorted(directory.iterdir(), key=lambda entry: entry.name)


def iter_config_files(root: Path) -> Iterator[Path]:
    """Recursively yield config files under ``root`` in listing order.

    Symlinked directories are not descended into; a link pointing back up
    the tree would otherwise be walked without end.
    """
    try:
        entries = list_directory(root)
    except OSError as e:
        logger.warning(f"Cannot list {root}: {format_error_message(e)}")
        return

    for entry in entries:
        if entry.is_dir():
            if entry.name in EXCLUDE_DIRS:
                continue
            if entry.is_symlink():
                logger.debug(f"[modules:scan] not following directory symlink {entry}")
                continue
            yield from iter_config_files(entry)
        elif entry.is_file() and is_config_file(entry):
            yield entry


def _format_location(error: dict) -> str:
    parts: list[str] = []
    for item in error["loc"]:
        if isinstance(item, int):
            parts.append(f"[{item}]")
        else:
            parts.append(f".{item}" if parts else str(item))
    return "".join(parts)


def load_document(path: Path) -> ModuleDocument | None:
    """Parse a config file into a ModuleDocument.

    Args:
        path: Canonical path of the file

    Returns:
        ModuleDocument, or None when the file has no ``modules`` section

    Raises:
        MalformedDocumentError: File unreadable, not valid YAML, or the
            ``modules`` section fails validation
    """
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise MalformedDocumentError(f"Cannot read document: {format_error_message(e)}", document=path) from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise MalformedDocumentError(f"Invalid YAML: {e}", document=path) from e

    if not isinstance(data, dict) or MODULES_SECTION not in data:
        return None

    try:
        section = ModulesSection.model_validate({MODULES_SECTION: data[MODULES_SECTION]})
    except ValidationError as e:
        first = e.errors()[0]
        raise MalformedDocumentError(
            f"Illegal module configuration: {first['msg']}",
            document=path,
            location=_format_location(first),
        ) from e

    declarations = tuple(
        ModuleDeclaration(
            name=entry.name,
            uses=tuple(entry.uses),
            origin=DeclarationOrigin(document=path, index=index),
            input=entry.input,
        )
        for index, entry in enumerate(section.modules)
    )
    return ModuleDocument(path=path, declarations=declarations)


def scan_workspace(root: Path) -> list[ModuleDocument]:
    """Find every module document under the workspace root.

    A file that fails to parse is logged and skipped; the scan never aborts
    because of one bad file.

    Args:
        root: Workspace root directory

    Returns:
        Documents in directory-listing order
    """
    root = root.resolve()
    documents: list[ModuleDocument] = []
    seen: set[Path] = set()

    for path in iter_config_files(root):
        # Symlinked files may point at a document already found
        path = path.resolve()
        if path in seen:
            continue
        seen.add(path)
        try:
            document = load_document(path)
        except MalformedDocumentError as e:
            logger.warning(f"Skipping unparsable document {path}: {e.message}")
            continue
        if document is None:
            continue
        logger.debug(f"[modules:scan] {path} ({len(document.declarations)} declarations)")
        documents.append(document)

    logger.info(f"Found {len(documents)} module documents under {root}")
    return documents
