"""Shared fixtures for selefra CLI tests."""

from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
import yaml

from selefra_cli.module_graph.resolver import ReferenceResolver
from selefra_cli.module_graph.resolver import ResolutionContext
from selefra_cli.registry.fetcher import PackageCache


@pytest.fixture
def selefra_home(tmp_path, monkeypatch) -> Path:
    """Isolated selefra home directory with no login token."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("SELEFRA_HOME", str(home))
    monkeypatch.delenv("SELEFRA_TOKEN", raising=False)
    return home


@pytest.fixture
def workspace(tmp_path) -> Path:
    ws = tmp_path / "ws"
    ws.mkdir()
    return ws.resolve()


@pytest.fixture
def write_yaml(workspace) -> Callable[[str, Any], Path]:
    """Write a YAML document relative to the workspace and return its canonical path."""

    def _write(relative: str, data: Any) -> Path:
        path = workspace / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return path.resolve()

    return _write


@pytest.fixture
def package_cache(selefra_home) -> PackageCache:
    return PackageCache(selefra_home / "download" / "modules", selefra_home / ".path" / "config.json")


@pytest.fixture
def make_resolver(workspace, package_cache) -> Callable[..., ReferenceResolver]:
    """Build a resolver whose fetcher and registry are mocks."""

    def _make(fetcher=None, registry=None, token: str | None = None) -> ReferenceResolver:
        context = ResolutionContext(
            workspace=workspace,
            cache=package_cache,
            fetcher=fetcher or MagicMock(),
            registry=registry or MagicMock(),
            token_provider=lambda: token,
        )
        return ReferenceResolver(context)

    return _make
