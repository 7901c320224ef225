"""Registry client for public module package metadata.

The public registry is a static tree of YAML files::

    {base_url}/main/module/{name}/metadata.yaml              -> latest-version
    {base_url}/main/module/{name}/{version}/supplement.yaml  -> source repository
"""

from __future__ import annotations

import logging

import httpx
import yaml
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import ValidationError

from ..utils.error_format import format_error_message

logger = logging.getLogger(__name__)


class RegistryError(Exception):
    """Raised when registry metadata cannot be fetched or parsed."""


class ModuleMetadata(BaseModel):
    """Registry metadata for a module package."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    latest_version: str = Field(..., alias="latest-version")
    latest_update: str | None = Field(None, alias="latest-update")
    introduction: str | None = None
    versions: list[str] = Field(default_factory=list)


class ModuleSupplement(BaseModel):
    """Download details for one released version of a module package."""

    model_config = ConfigDict(populate_by_name=True)

    package_name: str | None = Field(None, alias="package-name")
    source: str
    checksums: str | None = None

    def archive_url(self, name: str, version: str) -> str:
        return f"{self.source.rstrip('/')}/releases/download/{version}/{name}.zip"


class RegistryClient:
    """Client for the public module registry.

    Discovery only - downloading archives is the fetcher's job.
    """

    def __init__(self, base_url: str, client: httpx.Client | None = None, timeout: float = 10.0):
        """Initialize registry client.

        Args:
            base_url: Registry raw content base URL
            client: Optional preconfigured httpx client (tests inject a mock transport)
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self._client = client
        self.timeout = timeout

    def _get_yaml(self, url: str) -> dict:
        logger.debug(f"Fetching registry document {url}")
        try:
            if self._client is not None:
                response = self._client.get(url, timeout=self.timeout, follow_redirects=True)
            else:
                response = httpx.get(url, timeout=self.timeout, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise RegistryError(f"Failed to fetch {url}: {format_error_message(e)}") from e

        try:
            data = yaml.safe_load(response.text)
        except yaml.YAMLError as e:
            raise RegistryError(f"Invalid registry document {url}: {e}") from e
        if not isinstance(data, dict):
            raise RegistryError(f"Invalid registry document {url}: expected a mapping")
        return data

    def get_metadata(self, name: str) -> ModuleMetadata:
        """Fetch package metadata.

        Raises:
            RegistryError: Network failure or malformed metadata
        """
        url = f"{self.base_url}/main/module/{name}/metadata.yaml"
        try:
            return ModuleMetadata.model_validate(self._get_yaml(url))
        except ValidationError as e:
            raise RegistryError(f"Invalid metadata for module '{name}': {e}") from e

    def get_latest_version(self, name: str) -> str:
        """Latest released version of a package."""
        return self.get_metadata(name).latest_version

    def get_supplement(self, name: str, version: str) -> ModuleSupplement:
        """Fetch download details for one version.

        Raises:
            RegistryError: Network failure or malformed supplement
        """
        url = f"{self.base_url}/main/module/{name}/{version}/supplement.yaml"
        try:
            return ModuleSupplement.model_validate(self._get_yaml(url))
        except ValidationError as e:
            raise RegistryError(f"Invalid supplement for module '{name}@{version}': {e}") from e
