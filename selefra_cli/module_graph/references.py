"""Reference classification.

Reference grammars:
- ``selefra/<name>[@version][/<subpath>]`` -> HOME_PACKAGE (public registry)
- ``<registryHost>/<org>/<name>[@version][/<subpath>]`` -> ORG_PACKAGE
- anything else -> LOCAL filesystem path (relative or absolute)
"""

from __future__ import annotations

from pathlib import Path

from .errors import ReferenceMalformedError
from .models import Reference
from .models import ReferenceKind

HOME_PACKAGE_PREFIX = "selefra/"
DEFAULT_REGISTRY_HOST = "app.selefra.io"
LATEST = "latest"


def _split_version(segment: str, raw: str, document: Path | None) -> tuple[str, str | None]:
    name, sep, version = segment.partition("@")
    if not name:
        raise ReferenceMalformedError("Package reference is missing a package name", reference=raw, document=document)
    if sep and not version:
        raise ReferenceMalformedError("Package reference has an empty version after '@'", reference=raw, document=document)
    return name, (version if sep else None)


def parse_reference(
    raw: str,
    *,
    registry_host: str = DEFAULT_REGISTRY_HOST,
    document: Path | None = None,
) -> Reference:
    """Classify a raw ``uses`` string into a Reference.

    Args:
        raw: Reference string as written in the document
        registry_host: Host prefix that marks organization packages
        document: Declaring document (for error context)

    Returns:
        Reference tagged with its kind and parsed parts

    Raises:
        ReferenceMalformedError: Empty reference or incomplete package reference
    """
    value = raw.strip() if isinstance(raw, str) else ""
    if not value:
        raise ReferenceMalformedError("Empty module reference", reference=str(raw), document=document)

    if value.startswith(HOME_PACKAGE_PREFIX):
        segments = value[len(HOME_PACKAGE_PREFIX) :].split("/")
        name, version = _split_version(segments[0], value, document)
        return Reference(
            raw=value,
            kind=ReferenceKind.HOME_PACKAGE,
            path="/".join(s for s in segments[1:] if s),
            name=name,
            version=version,
        )

    org_prefix = registry_host.rstrip("/") + "/"
    if value.startswith(org_prefix):
        segments = value[len(org_prefix) :].split("/")
        if len(segments) < 2 or not segments[0]:
            raise ReferenceMalformedError(
                f"Organization reference must look like {org_prefix}<org>/<name>",
                reference=value,
                document=document,
            )
        name, version = _split_version(segments[1], value, document)
        return Reference(
            raw=value,
            kind=ReferenceKind.ORG_PACKAGE,
            path="/".join(s for s in segments[2:] if s),
            name=name,
            org=segments[0],
            version=version,
        )

    return Reference(raw=value, kind=ReferenceKind.LOCAL, path=value)
