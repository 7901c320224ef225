"""CLI path policy and dependency injection helpers.

This module centralizes the on-disk layout of the selefra home directory.
Libraries receive paths via injection; this module provides the CLI's choices.

Layout (``~/.selefra`` unless ``SELEFRA_HOME`` is set):
- download/modules/<name>  remote module package cache
- .path/config.json        recorded versions of cached packages
- credentials.json         login token
- settings.yaml            global settings
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .module_graph.resolver import ReferenceResolver
    from .settings import SelefraSettings


def get_selefra_home() -> Path:
    """Get the selefra home directory (``SELEFRA_HOME`` overrides ``~/.selefra``)."""
    if override := os.environ.get("SELEFRA_HOME"):
        return Path(override).expanduser()
    return Path.home() / ".selefra"


def get_modules_cache_dir(home: Path | None = None) -> Path:
    """Directory remote module packages are unpacked into."""
    return (home or get_selefra_home()) / "download" / "modules"


def get_version_ledger_path(home: Path | None = None) -> Path:
    """JSON file mapping ``modules/<name>`` to the cached version."""
    return (home or get_selefra_home()) / ".path" / "config.json"


def get_credentials_path(home: Path | None = None) -> Path:
    return (home or get_selefra_home()) / "credentials.json"


def get_global_settings_path(home: Path | None = None) -> Path:
    return (home or get_selefra_home()) / "settings.yaml"


def get_project_settings_path(workspace: Path) -> Path:
    return workspace / ".selefra" / "settings.yaml"


# ===== FACTORY FUNCTIONS =====


def create_settings(workspace: Path | None = None) -> SelefraSettings:
    """Create settings scoped to the given workspace."""
    from .settings import SelefraSettings
    from .settings import SettingsPaths

    return SelefraSettings(SettingsPaths.default(workspace))


def create_reference_resolver(workspace: Path, settings: SelefraSettings | None = None) -> ReferenceResolver:
    """Create a ReferenceResolver wired to the HTTP registry and package cache.

    Args:
        workspace: Workspace root directory
        settings: Settings to use (default: settings for this workspace)

    Returns:
        ReferenceResolver with a fresh, run-scoped ResolutionContext
    """
    from .module_graph.resolver import ReferenceResolver
    from .module_graph.resolver import ResolutionContext
    from .registry.client import RegistryClient
    from .registry.fetcher import HttpPackageFetcher
    from .registry.fetcher import PackageCache

    settings = settings or create_settings(workspace)
    home = get_selefra_home()
    cache = PackageCache(get_modules_cache_dir(home), get_version_ledger_path(home))
    registry = RegistryClient(base_url=settings.get_registry_metadata_url())
    fetcher = HttpPackageFetcher(
        cache=cache,
        registry=registry,
        cloud_hostname=settings.get_cloud_hostname(),
        token_provider=settings.get_token,
    )
    context = ResolutionContext(
        workspace=workspace.resolve(),
        cache=cache,
        fetcher=fetcher,
        registry=registry,
        token_provider=settings.get_token,
        registry_host=settings.get_registry_host(),
    )
    return ReferenceResolver(context)
