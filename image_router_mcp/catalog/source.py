from __future__ import annotations

from typing import Any, Protocol

import httpx
from loguru import logger

from ..exceptions import CatalogFetchError, ConfigurationError
from ..settings import get_settings, Settings


class CatalogSource(Protocol):
    """Anything that can list raw model records for a named collection."""

    async def fetch_collection(self, slug: str) -> list[dict[str, Any]]:  # pragma: no cover - interface
        ...


class ReplicateCatalogSource:
    """Reads model collections and READMEs from the Replicate HTTP API."""

    def __init__(
        self,
        api_token: str | None,
        *,
        base_url: str,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_token = api_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> ReplicateCatalogSource:
        settings = settings or get_settings()
        return cls(
            settings.replicate_api_token,
            base_url=settings.replicate_base_url,
            timeout=settings.catalog_timeout_seconds,
        )

    def _client(self) -> httpx.AsyncClient:
        if not self.api_token:
            raise ConfigurationError("REPLICATE_API_TOKEN environment variable must be set to fetch the model catalog")
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {self.api_token}"},
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    async def fetch_collection(self, slug: str) -> list[dict[str, Any]]:
        """Return the raw model records of a collection.

        Raises:
            ConfigurationError: If no API token is configured.
            CatalogFetchError: On network errors, non-2xx responses or malformed bodies.
        """
        logger.info(f"Fetching '{slug}' collection from Replicate")
        try:
            async with self._client() as client:
                response = await client.get(f"/collections/{slug}")
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as e:
            raise CatalogFetchError(f"Replicate returned {e.response.status_code} for collection '{slug}'", status_code=e.response.status_code) from e
        except (httpx.HTTPError, ValueError) as e:
            raise CatalogFetchError(f"Failed to fetch collection '{slug}': {e}") from e

        if not isinstance(body, dict):
            raise CatalogFetchError(f"Malformed collection response for '{slug}': expected an object")
        models = body.get("models") or body.get("results") or []
        if not isinstance(models, list):
            raise CatalogFetchError(f"Malformed collection response for '{slug}': 'models' is not a list")
        return [m for m in models if isinstance(m, dict)]

    async def fetch_readme(self, owner: str, name: str) -> str:
        """Return a model's README markdown, or an empty string when unavailable."""
        try:
            async with self._client() as client:
                response = await client.get(f"/models/{owner}/{name}/readme")
        except httpx.HTTPError as e:
            logger.warning(f"README fetch for {owner}/{name} failed: {e}")
            return ""
        if response.is_success:
            return response.text
        logger.warning(f"README fetch for {owner}/{name} failed with status {response.status_code}")
        return ""


__all__ = ["CatalogSource", "ReplicateCatalogSource"]
