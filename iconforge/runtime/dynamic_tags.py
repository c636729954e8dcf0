"""Dynamic tag resolver — semantic content tags -> asset URLs.

The tag manifest is maintained by an external content system and published
independently of any icon build.  It is cached for a bounded freshness
window and can be refreshed explicitly.  A failed fetch degrades to an
empty mapping: every lookup returns ``None`` until the next refresh, and the
caller is never blocked or interrupted.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence

import httpx
from pydantic import ValidationError as PydanticValidationError

from iconforge.config import IconforgeConfig
from iconforge.models.manifest import DynamicTagManifest

logger = logging.getLogger(__name__)


class DynamicFetchError(RuntimeError):
    """The dynamic tag manifest could not be fetched or parsed."""


class DynamicTagResolver:
    """Resolves ordered candidate tags within a category.

    Parameters
    ----------
    url:
        Endpoint serving the dynamic tag manifest.
    ttl_seconds:
        Freshness window of the cached manifest.
    client:
        Shared ``httpx.AsyncClient``.  Created when not provided.
    clock:
        Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        url: str,
        *,
        ttl_seconds: float = 300.0,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._url = url
        self._ttl = ttl_seconds
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout
        self._clock = clock
        self._manifest: DynamicTagManifest | None = None
        self._fetched_at = 0.0
        self._lock = asyncio.Lock()
        self.last_error: DynamicFetchError | None = None

    @classmethod
    def from_config(
        cls, config: IconforgeConfig, *, client: httpx.AsyncClient | None = None
    ) -> DynamicTagResolver:
        return cls(
            config.dynamic_manifest_url,
            ttl_seconds=config.dynamic_ttl_seconds,
            client=client,
            timeout=config.http_timeout_seconds,
        )

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def _is_fresh(self) -> bool:
        return self._manifest is not None and self._clock() - self._fetched_at < self._ttl

    async def _fetch(self) -> DynamicTagManifest:
        if not self._url:
            raise DynamicFetchError("no dynamic tag manifest URL configured")
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        try:
            response = await self._client.get(self._url)
            response.raise_for_status()
            return DynamicTagManifest.model_validate_json(response.content)
        except (httpx.HTTPError, httpx.InvalidURL, PydanticValidationError) as exc:
            raise DynamicFetchError(f"{self._url}: {exc}") from exc

    async def refresh(self) -> DynamicTagManifest:
        """Fetch the manifest now, degrading to an empty mapping on failure."""
        async with self._lock:
            try:
                manifest = await self._fetch()
                self.last_error = None
            except DynamicFetchError as exc:
                logger.warning("Dynamic tag manifest unavailable, using empty mapping: %s", exc)
                self.last_error = exc
                manifest = DynamicTagManifest()
            self._manifest = manifest
            self._fetched_at = self._clock()
            return manifest

    async def mapping(self) -> DynamicTagManifest:
        """The cached manifest, refreshed when the freshness window lapsed."""
        if self._is_fresh():
            return self._manifest
        return await self.refresh()

    async def resolve(self, tags: Sequence[str], category: str) -> str | None:
        """URL of the first of *tags* present in *category*, else ``None``."""
        manifest = await self.mapping()
        for tag in tags:
            url = manifest.lookup(category, tag)
            if url:
                return url
        return None
