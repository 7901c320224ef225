"""Reference resolution - turns a ``uses`` string into a filesystem path.

Resolution policy per reference kind:
- LOCAL: absolute paths as-is, relative paths joined to the declaring
  document's directory. Never touches the network.
- HOME_PACKAGE: ``<home>/download/modules/<name>``. Fetched only when the
  cache is missing or its recorded version differs from the wanted one
  (the pinned version, or the registry's latest, looked up once per run).
- ORG_PACKAGE: same cache location, but always re-fetched after deleting
  the cached copy. Requires a login token.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Protocol

from ..registry.client import RegistryError
from ..registry.fetcher import PackageCache
from ..registry.fetcher import PackageFetcher
from ..registry.fetcher import PackageFetchError
from .errors import FetchFailedError
from .errors import ReferenceNotFoundError
from .errors import UnauthenticatedError
from .models import Reference
from .models import ReferenceKind
from .models import ResolvedReference
from .references import DEFAULT_REGISTRY_HOST
from .references import LATEST
from .references import parse_reference

logger = logging.getLogger(__name__)


class LatestVersionLookup(Protocol):
    def get_latest_version(self, name: str) -> str: ...


@dataclass
class ResolutionContext:
    """State scoped to a single resolution run.

    Attributes:
        workspace: Canonical workspace root
        cache: Package cache (read for recorded versions)
        fetcher: Fetch collaborator
        registry: Latest-version lookup
        token_provider: Returns the login token, or None
        registry_host: Prefix of organization package references
        latest_versions: Per-run memo of latest-version lookups
    """

    workspace: Path
    cache: PackageCache
    fetcher: PackageFetcher
    registry: LatestVersionLookup
    token_provider: Callable[[], str | None]
    registry_host: str = DEFAULT_REGISTRY_HOST
    latest_versions: dict[str, str] = field(default_factory=dict)

    def latest_version(self, name: str) -> str:
        """Latest registry version of a package, looked up at most once per run."""
        if name not in self.latest_versions:
            self.latest_versions[name] = self.registry.get_latest_version(name)
            logger.debug(f"[modules:resolve] latest version of {name} is {self.latest_versions[name]}")
        return self.latest_versions[name]


class ReferenceResolver:
    """Resolves references declared in workspace documents."""

    def __init__(self, context: ResolutionContext):
        self.context = context

    @property
    def workspace(self) -> Path:
        return self.context.workspace

    def classify(self, raw: str, declared_in: Path | None = None) -> Reference:
        return parse_reference(raw, registry_host=self.context.registry_host, document=declared_in)

    def resolve(self, raw: str, declared_in: Path | None = None) -> Path:
        """Resolve a raw reference string to a file or directory path.

        Args:
            raw: Reference as written in the document
            declared_in: Path of the declaring document (None: workspace root)

        Returns:
            Canonical absolute path of the referenced file or directory

        Raises:
            ReferenceMalformedError: Reference matches no grammar
            ReferenceNotFoundError: Resolved path does not exist
            FetchFailedError: Package download failed
            UnauthenticatedError: Organization package without a token
        """
        return self.resolve_reference(self.classify(raw, declared_in), declared_in).target

    def resolve_reference(self, reference: Reference, declared_in: Path | None = None) -> ResolvedReference:
        """Resolve a classified reference and compute its output form."""
        if reference.kind is ReferenceKind.LOCAL:
            target = self._resolve_local(reference, declared_in)
        elif reference.kind is ReferenceKind.HOME_PACKAGE:
            target = self._resolve_home_package(reference, declared_in)
        else:
            target = self._resolve_org_package(reference, declared_in)

        logger.debug(f"[modules:resolve] {reference.raw} -> {target}")
        return ResolvedReference(reference=reference, target=target, emitted=self._emitted(reference, target, declared_in))

    def _base_dir(self, declared_in: Path | None) -> Path:
        return declared_in.parent if declared_in is not None else self.workspace

    def _emitted(self, reference: Reference, target: Path, declared_in: Path | None) -> str:
        # Downstream consumers resolve relative strings against the workspace,
        # so only strings that already mean the same thing there stay verbatim
        if reference.kind is ReferenceKind.LOCAL:
            if Path(reference.path).is_absolute() or self._base_dir(declared_in) == self.workspace:
                return reference.raw
        return str(target)

    def _existing(self, path: Path, reference: Reference, declared_in: Path | None) -> Path:
        if not path.exists():
            raise ReferenceNotFoundError(
                f"Module file does not exist: {path}", reference=reference.raw, document=declared_in
            )
        return path.resolve()

    def _resolve_local(self, reference: Reference, declared_in: Path | None) -> Path:
        path = Path(reference.path)
        if not path.is_absolute():
            path = self._base_dir(declared_in) / path
        return self._existing(path, reference, declared_in)

    def _package_target(self, reference: Reference, package_dir: Path, declared_in: Path | None) -> Path:
        path = package_dir / reference.path if reference.path else package_dir
        return self._existing(path, reference, declared_in)

    def _fetch(self, reference: Reference, version: str | None, declared_in: Path | None) -> Path:
        try:
            return self.context.fetcher.fetch(reference.kind, reference.name, reference.org, version)
        except PackageFetchError as e:
            raise FetchFailedError(str(e), reference=reference.raw, document=declared_in) from e

    def _resolve_home_package(self, reference: Reference, declared_in: Path | None) -> Path:
        cache = self.context.cache
        name = reference.name
        recorded = cache.recorded_version(name)

        if reference.version and reference.version != LATEST:
            wanted = reference.version
        else:
            try:
                wanted = self.context.latest_version(name)
            except RegistryError as e:
                raise FetchFailedError(
                    f"Cannot look up latest version of '{name}': {e}", reference=reference.raw, document=declared_in
                ) from e

        if recorded == wanted and cache.is_cached(name):
            logger.debug(f"[modules:resolve] using cached {name}@{wanted}")
            package_dir = cache.package_dir(name)
        else:
            logger.info(f"Fetching module package {name}@{wanted} (cached: {recorded or 'none'})")
            package_dir = self._fetch(reference, wanted, declared_in)

        return self._package_target(reference, package_dir, declared_in)

    def _resolve_org_package(self, reference: Reference, declared_in: Path | None) -> Path:
        if not self.context.token_provider():
            raise UnauthenticatedError(
                f"Organization module '{reference.org}/{reference.name}' requires login",
                reference=reference.raw,
                document=declared_in,
            )
        # Organization packages are always re-fetched; no version check
        logger.info(f"Fetching organization module package {reference.org}/{reference.name}")
        package_dir = self._fetch(reference, reference.version, declared_in)
        return self._package_target(reference, package_dir, declared_in)
