"""Remote module package fetching and the on-disk package cache.

Public packages (``selefra/<name>``) are downloaded from the release archive
named by the registry supplement; the fetched version is recorded in the
version ledger so later runs can skip the download. Organization packages
(``<host>/<org>/<name>``) are downloaded from the cloud server with the
login token and are never version-tracked.
"""

from __future__ import annotations

import json
import logging
import shutil
import tempfile
import zipfile
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import httpx

from ..module_graph.models import ReferenceKind
from ..utils.error_format import format_error_message
from .client import RegistryClient
from .client import RegistryError

logger = logging.getLogger(__name__)


class PackageFetchError(Exception):
    """Raised when a package cannot be downloaded or unpacked."""


class PackageFetcher(Protocol):
    """Fetch collaborator used by the reference resolver."""

    def fetch(self, kind: ReferenceKind, name: str, org: str | None, version: str | None) -> Path:
        """Download and unpack a package into the cache, returning its directory."""
        ...


@dataclass
class CachedPackage:
    """A package present in the cache."""

    name: str
    version: str | None
    path: Path


class PackageCache:
    """Package cache directory plus the version ledger.

    The ledger is a flat JSON object keyed ``modules/<name>``.
    """

    def __init__(self, root: Path, ledger_path: Path):
        self.root = root
        self.ledger_path = ledger_path

    def package_dir(self, name: str) -> Path:
        return self.root / name

    def is_cached(self, name: str) -> bool:
        return self.package_dir(name).is_dir()

    def _read_ledger(self) -> dict[str, str]:
        if not self.ledger_path.exists():
            return {}
        try:
            data = json.loads(self.ledger_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(
                f"Version ledger {self.ledger_path} unreadable, treating as empty: {format_error_message(e)}"
            )
            return {}
        return data if isinstance(data, dict) else {}

    def _write_ledger(self, ledger: dict[str, str]) -> None:
        self.ledger_path.parent.mkdir(parents=True, exist_ok=True)
        self.ledger_path.write_text(json.dumps(ledger, indent=2, sort_keys=True), encoding="utf-8")

    def recorded_version(self, name: str) -> str | None:
        """Version recorded for a cached public package, if any."""
        return self._read_ledger().get(f"modules/{name}")

    def record_version(self, name: str, version: str) -> None:
        ledger = self._read_ledger()
        ledger[f"modules/{name}"] = version
        self._write_ledger(ledger)

    def forget_version(self, name: str) -> None:
        ledger = self._read_ledger()
        if ledger.pop(f"modules/{name}", None) is not None:
            self._write_ledger(ledger)

    def remove(self, name: str) -> bool:
        """Delete a cached package and its ledger entry. Returns True if it existed."""
        path = self.package_dir(name)
        existed = path.exists()
        if existed:
            logger.info(f"Removing cached package: {path}")
            shutil.rmtree(path)
        self.forget_version(name)
        return existed

    def list_packages(self) -> list[CachedPackage]:
        """All cached packages in name order."""
        if not self.root.is_dir():
            return []
        ledger = self._read_ledger()
        return [
            CachedPackage(name=entry.name, version=ledger.get(f"modules/{entry.name}"), path=entry)
            for entry in sorted(self.root.iterdir(), key=lambda p: p.name)
            if entry.is_dir()
        ]


class HttpPackageFetcher:
    """Downloads package archives over HTTP and unpacks them into the cache."""

    def __init__(
        self,
        cache: PackageCache,
        registry: RegistryClient,
        cloud_hostname: str,
        token_provider: Callable[[], str | None],
        client: httpx.Client | None = None,
        timeout: float = 60.0,
    ):
        self.cache = cache
        self.registry = registry
        self.cloud_hostname = cloud_hostname
        self.token_provider = token_provider
        self._client = client
        self.timeout = timeout

    def fetch(self, kind: ReferenceKind, name: str, org: str | None, version: str | None) -> Path:
        """Download and unpack a package, replacing any cached copy.

        Args:
            kind: HOME_PACKAGE or ORG_PACKAGE
            name: Package name
            org: Organization (ORG_PACKAGE only)
            version: Version to fetch (HOME_PACKAGE only)

        Returns:
            Cache directory of the package

        Raises:
            PackageFetchError: Download, registry lookup or unpacking failed
        """
        if kind is ReferenceKind.ORG_PACKAGE:
            token = self.token_provider()
            if not token or not org:
                raise PackageFetchError(f"Cannot download organization package '{name}' without org and token")
            url = f"https://{self.cloud_hostname}/cli/download/{org}/{token}/{name}.zip"
            display_url = url.replace(token, "***")
            self.cache.remove(name)
            self._download_and_unpack(url, display_url, name)
            return self.cache.package_dir(name)

        if kind is ReferenceKind.HOME_PACKAGE:
            if not version:
                raise PackageFetchError(f"No version given for package '{name}'")
            try:
                supplement = self.registry.get_supplement(name, version)
            except RegistryError as e:
                raise PackageFetchError(str(e)) from e
            url = supplement.archive_url(name, version)
            self.cache.remove(name)
            self._download_and_unpack(url, url, name)
            self.cache.record_version(name, version)
            return self.cache.package_dir(name)

        raise PackageFetchError(f"Local references are not fetchable: {name}")

    def _download_and_unpack(self, url: str, display_url: str, name: str) -> None:
        logger.info(f"Downloading module package {name} from {display_url}")
        self.cache.root.mkdir(parents=True, exist_ok=True)

        with tempfile.TemporaryDirectory(dir=self.cache.root, prefix=f".{name}-") as tmp:
            tmp_path = Path(tmp)
            archive = tmp_path / f"{name}.zip"
            try:
                self._download(url, archive)
            except httpx.HTTPError as e:
                raise PackageFetchError(f"Failed to download {display_url}: {format_error_message(e)}") from e

            extracted = tmp_path / "extracted"
            try:
                self._unpack(archive, extracted)
            except (zipfile.BadZipFile, OSError) as e:
                raise PackageFetchError(f"Failed to unpack {display_url}: {format_error_message(e)}") from e

            # Archives either wrap their content in a single top-level directory or not
            entries = list(extracted.iterdir())
            content_root = entries[0] if len(entries) == 1 and entries[0].is_dir() else extracted
            shutil.move(str(content_root), str(self.cache.package_dir(name)))

        logger.debug(f"Unpacked {name} into {self.cache.package_dir(name)}")

    def _download(self, url: str, target: Path) -> None:
        client = self._client or httpx.Client(timeout=self.timeout, follow_redirects=True)
        try:
            with client.stream("GET", url) as response:
                response.raise_for_status()
                with target.open("wb") as f:
                    for chunk in response.iter_bytes():
                        f.write(chunk)
        finally:
            if self._client is None:
                client.close()

    @staticmethod
    def _unpack(archive: Path, target: Path) -> None:
        target.mkdir(parents=True, exist_ok=True)
        root = target.resolve()
        with zipfile.ZipFile(archive) as zf:
            for member in zf.namelist():
                destination = (target / member).resolve()
                if destination != root and root not in destination.parents:
                    raise PackageFetchError(f"Archive member escapes package directory: {member}")
            zf.extractall(target)
