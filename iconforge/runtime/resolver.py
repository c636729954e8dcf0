"""Runtime icon resolver — (section, name) -> sprite reference.

Runs inside an event-driven client.  The published manifest is fetched once
per process lifetime: the first lookup starts the fetch and every lookup
that arrives while it is in flight awaits the same task.  After that, all
lookups are served from memory.  A failed fetch is kept as well: every
later lookup is a miss without touching the network until the owner calls
``reload()``.  There is never more than one fetch in flight.

Unknown sections and names resolve to ``ResolutionMiss``, never raise.
Critical icons are a caller error: they are embedded at authoring time and
never resolved here.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from iconforge.config import IconforgeConfig
from iconforge.core.critical import CriticalIconRegistry
from iconforge.models.manifest import Manifest
from iconforge.models.resolution import ResolutionMiss, SpriteRef

logger = logging.getLogger(__name__)


class CriticalIconResolutionError(RuntimeError):
    """Raised when a critical icon is requested from the runtime resolver."""


class LoadedSectionsCache:
    """Sections whose bundle has been prefetched in this session.

    Written at most once per section.  Owned by whoever builds the resolver;
    ``reset()`` starts a new session and ``close()`` ends it.
    """

    def __init__(self) -> None:
        self._sections: set[str] = set()
        self._closed = False

    def mark(self, section: str) -> bool:
        """Record *section*; True if it had not been recorded before."""
        if self._closed:
            raise RuntimeError("LoadedSectionsCache is closed")
        if section in self._sections:
            return False
        self._sections.add(section)
        return True

    def __contains__(self, section: object) -> bool:
        return section in self._sections

    def __len__(self) -> int:
        return len(self._sections)

    @property
    def closed(self) -> bool:
        return self._closed

    def reset(self) -> None:
        self._sections.clear()
        self._closed = False

    def close(self) -> None:
        self._sections.clear()
        self._closed = True


class RuntimeIconResolver:
    """Resolves non-critical icons against the published manifest.

    Parameters
    ----------
    manifest_url:
        Absolute URL of the published ``manifest.json``.
    registry:
        Critical icon names, which this resolver refuses.
    bundle_base_url:
        Base URL bundles are served from.  Defaults to the manifest's
        directory.
    loaded_sections:
        Session cache for bundle prefetching.
    client:
        Shared ``httpx.AsyncClient``.  Created (and closed by ``aclose``)
        when not provided.
    """

    def __init__(
        self,
        manifest_url: str,
        registry: CriticalIconRegistry,
        *,
        bundle_base_url: str | None = None,
        loaded_sections: LoadedSectionsCache | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._manifest_url = manifest_url
        self._registry = registry
        self._base_url = (bundle_base_url or manifest_url.rsplit("/", 1)[0]).rstrip("/")
        self._loaded = loaded_sections if loaded_sections is not None else LoadedSectionsCache()
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout
        self._fetch_task: asyncio.Task[Manifest | None] | None = None
        self.fetch_count = 0

    @classmethod
    def from_config(
        cls,
        config: IconforgeConfig,
        registry: CriticalIconRegistry,
        *,
        loaded_sections: LoadedSectionsCache | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> RuntimeIconResolver:
        return cls(
            config.manifest_url,
            registry,
            bundle_base_url=config.cdn_base_url,
            loaded_sections=loaded_sections,
            client=client,
            timeout=config.http_timeout_seconds,
        )

    async def __aenter__(self) -> RuntimeIconResolver:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    def bundle_url(self, file_name: str) -> str:
        return f"{self._base_url}/{file_name}"

    # ------------------------------------------------------------------
    # Manifest loading
    # ------------------------------------------------------------------

    async def _fetch_manifest(self) -> Manifest | None:
        self.fetch_count += 1
        try:
            response = await self._http().get(self._manifest_url)
            response.raise_for_status()
            return Manifest.from_json_bytes(response.content)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            logger.warning("Could not load icon manifest from %s: %s", self._manifest_url, exc)
            return None

    async def manifest(self) -> Manifest | None:
        """The loaded manifest, fetching it on first use.

        Returns ``None`` when the one fetch failed.
        """
        if self._fetch_task is None:
            self._fetch_task = asyncio.ensure_future(self._fetch_manifest())
        return await asyncio.shield(self._fetch_task)

    async def reload(self) -> Manifest | None:
        """Drop the loaded (or failed) manifest and fetch it again."""
        if self._fetch_task is not None and not self._fetch_task.done():
            return await asyncio.shield(self._fetch_task)
        self._fetch_task = None
        return await self.manifest()

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def resolve(self, section: str, name: str) -> SpriteRef | ResolutionMiss:
        """Resolve *name* in *section* to a sprite reference or a miss."""
        if name in self._registry:
            raise CriticalIconResolutionError(
                f"{name!r} is a critical icon; embed it inline instead of resolving it"
            )

        manifest = await self.manifest()
        if manifest is None:
            return ResolutionMiss(section=section, name=name, reason="manifest unavailable")

        entry = manifest.sections.get(section)
        if entry is None:
            return ResolutionMiss(section=section, name=name, reason="unknown section")
        if name not in entry.icons:
            return ResolutionMiss(section=section, name=name, reason="unknown icon")

        return SpriteRef(
            section=section,
            name=name,
            url=self.bundle_url(entry.file_name),
            symbol_id=f"icon-{name}",
        )

    async def prefetch(self, section: str) -> bool:
        """Warm the bundle for *section*, at most once per session.

        Returns True if a request was issued.
        """
        if section in self._loaded:
            return False
        manifest = await self.manifest()
        entry = manifest.sections.get(section) if manifest else None
        if entry is None:
            return False
        if not self._loaded.mark(section):
            return False
        url = self.bundle_url(entry.file_name)
        try:
            response = await self._http().get(url)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Prefetch of %s failed: %s", url, exc)
        return True
