"""Settings management for selefra-cli.

Scope priority (most specific wins):
1. project (<workspace>/.selefra/settings.yaml) - committed, team-shared
2. global (~/.selefra/settings.yaml) - user defaults

Recognized keys::

    registry:
      host: app.selefra.io            # prefix of organization package references
      metadata_url: https://raw.githubusercontent.com/selefra/registry
    cloud:
      hostname: main-api.selefra.io   # organization package download server
    log_level: INFO
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .paths import get_credentials_path
from .paths import get_global_settings_path
from .paths import get_project_settings_path
from .utils.error_format import format_error_message

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_HOST = "app.selefra.io"
DEFAULT_REGISTRY_METADATA_URL = "https://raw.githubusercontent.com/selefra/registry"
DEFAULT_CLOUD_HOSTNAME = "main-api.selefra.io"
TOKEN_ENV = "SELEFRA_TOKEN"


@dataclass
class SettingsPaths:
    """Standard paths for settings files."""

    global_settings: Path
    project_settings: Path | None
    credentials: Path

    @classmethod
    def default(cls, workspace: Path | None = None) -> SettingsPaths:
        """Create default paths for the standard selefra layout."""
        return cls(
            global_settings=get_global_settings_path(),
            project_settings=get_project_settings_path(workspace) if workspace else None,
            credentials=get_credentials_path(),
        )


class SelefraSettings:
    """Scope-aware settings with typed accessors.

    Usage:
        settings = SelefraSettings()
        host = settings.get_registry_host()
    """

    def __init__(self, paths: SettingsPaths | None = None) -> None:
        self.paths = paths or SettingsPaths.default()

    def get_merged_settings(self) -> dict[str, Any]:
        """Load and merge settings from all scopes."""
        result: dict[str, Any] = {}
        for path in [self.paths.global_settings, self.paths.project_settings]:
            if path is None or not path.exists():
                continue
            try:
                with open(path, encoding="utf-8") as f:
                    content = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Ignoring malformed settings file {path}: {format_error_message(e)}")
                continue
            if not isinstance(content, dict):
                logger.warning(f"Ignoring settings file {path}: top level is not a mapping")
                continue
            result = self._deep_merge(result, content)
        return result

    def _get_section_value(self, section: str, key: str, default: str) -> str:
        value = self.get_merged_settings().get(section) or {}
        if not isinstance(value, dict):
            return default
        return str(value.get(key) or default)

    # ----- Registry settings -----

    def get_registry_host(self) -> str:
        """Host prefix of organization package references."""
        return self._get_section_value("registry", "host", DEFAULT_REGISTRY_HOST)

    def get_registry_metadata_url(self) -> str:
        """Base URL of the public registry metadata tree."""
        return self._get_section_value("registry", "metadata_url", DEFAULT_REGISTRY_METADATA_URL).rstrip("/")

    def get_cloud_hostname(self) -> str:
        """Server organization packages are downloaded from."""
        return self._get_section_value("cloud", "hostname", DEFAULT_CLOUD_HOSTNAME)

    def get_log_level(self) -> str | None:
        level = self.get_merged_settings().get("log_level")
        return str(level).upper() if level else None

    # ----- Credentials -----

    def get_token(self) -> str | None:
        """Login token: ``SELEFRA_TOKEN`` wins over credentials.json."""
        if token := os.environ.get(TOKEN_ENV):
            return token

        path = self.paths.credentials
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Cannot read credentials from {path}: {format_error_message(e)}")
            return None
        if not isinstance(data, dict):
            return None
        return data.get("token") or None

    def _deep_merge(self, base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dicts, overlay wins."""
        result = base.copy()
        for key, value in overlay.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result
