"""Distribution engine — publish bundles, then commit the manifest.

Ordering guarantees:

1. Every dirty bundle is uploaded as identity, gzip and Brotli objects,
   concurrently, each upload retried with exponential backoff.
2. Every bundle the candidate manifest references is confirmed present
   with ``head``.  Anything missing aborts the run before the manifest is
   touched.
3. The manifest is written to its well-known key (retried).  This write is
   the commit point; until it succeeds the previous manifest stays current.
4. Invalidation of exactly the written paths is submitted.  Failure is
   logged and recorded, never fatal.
5. A DeploymentRecord and the new manifest are appended to the ledger.

Bundles uploaded by a run that later fails are harmless orphans: nothing
references them.
"""

from __future__ import annotations

import gzip
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

import brotli
from tenacity import Retrying, before_sleep_log, stop_after_attempt, wait_exponential

from iconforge.core.deploy_ledger import DeployLedger
from iconforge.core.edge_cache import EdgeCache
from iconforge.core.object_store import ObjectStore
from iconforge.models.deployment import DeployAction, DeploymentRecord
from iconforge.models.icons import Bundle
from iconforge.models.manifest import Manifest, ManifestDiff

if TYPE_CHECKING:
    from iconforge.config import IconforgeConfig

logger = logging.getLogger(__name__)

SVG_CONTENT_TYPE = "image/svg+xml"
MANIFEST_CONTENT_TYPE = "application/json"


class UploadError(RuntimeError):
    """Raised when bundle uploads fail after exhausting retries.

    The manifest is not published; the previous manifest stays current.
    """

    def __init__(self, message: str, failures: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.failures = dict(failures or {})


class ManifestPublishError(RuntimeError):
    """Raised when the manifest write fails after exhausting retries."""


class ManifestConflictError(RuntimeError):
    """Raised when a newer manifest was published concurrently.

    Last writer wins only if it is also the newest: a candidate whose
    version is not strictly newer than the published one is refused.
    """


def encode_variants(content: bytes) -> list[tuple[str, str | None, bytes]]:
    """Return ``(key suffix, content encoding, body)`` for every variant.

    gzip is written with ``mtime=0`` so identical bundles always produce
    identical compressed bytes.
    """
    return [
        ("", None, content),
        (".gz", "gzip", gzip.compress(content, compresslevel=9, mtime=0)),
        (".br", "br", brotli.compress(content, quality=11)),
    ]


class DistributionEngine:
    """Publishes bundles and manifests to an object store.

    Parameters
    ----------
    store:
        Object store receiving bundles and the manifest.
    edge_cache:
        CDN invalidation collaborator (best-effort).
    ledger:
        Deploy ledger receiving DeploymentRecords and VersionHistory.
    environment:
        Environment name recorded on every record.
    """

    def __init__(
        self,
        store: ObjectStore,
        edge_cache: EdgeCache,
        ledger: DeployLedger,
        *,
        environment: str = "development",
        manifest_key: str = "manifest.json",
        bundle_cache_max_age: int = 31_536_000,
        manifest_cache_max_age: int = 60,
        upload_max_attempts: int = 3,
        upload_backoff_seconds: float = 0.5,
        publish_max_attempts: int = 3,
        max_workers: int = 8,
    ) -> None:
        self._store = store
        self._edge_cache = edge_cache
        self._ledger = ledger
        self._environment = environment
        self._manifest_key = manifest_key
        self._bundle_cache = f"public, max-age={bundle_cache_max_age}, immutable"
        self._manifest_cache = f"public, max-age={manifest_cache_max_age}"
        self._upload_attempts = max(1, upload_max_attempts)
        self._publish_attempts = max(1, publish_max_attempts)
        self._backoff = max(0.0, upload_backoff_seconds)
        self._max_workers = max(1, max_workers)

    @classmethod
    def from_config(
        cls,
        config: IconforgeConfig,
        store: ObjectStore,
        edge_cache: EdgeCache,
        ledger: DeployLedger,
    ) -> DistributionEngine:
        return cls(
            store,
            edge_cache,
            ledger,
            environment=config.environment,
            manifest_key=config.manifest_key,
            bundle_cache_max_age=config.bundle_cache_max_age,
            manifest_cache_max_age=config.manifest_cache_max_age,
            upload_max_attempts=config.upload_max_attempts,
            upload_backoff_seconds=config.upload_backoff_seconds,
            publish_max_attempts=config.publish_max_attempts,
            max_workers=config.max_workers,
        )

    @property
    def environment(self) -> str:
        return self._environment

    @property
    def manifest_key(self) -> str:
        return self._manifest_key

    def _retrying(self, attempts: int) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=self._backoff, max=30),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    # ------------------------------------------------------------------
    # Manifest reads
    # ------------------------------------------------------------------

    def current_manifest(self) -> Manifest | None:
        """The currently published manifest, or ``None`` if there is none.

        An unreadable manifest is treated as absent (every section becomes
        dirty), which is safe because bundles are content addressed.
        """
        data = self._store.get(self._manifest_key)
        if data is None:
            return None
        try:
            return Manifest.from_json_bytes(data)
        except ValueError as exc:
            logger.warning("Published manifest is unreadable, ignoring it: %s", exc)
            return None

    # ------------------------------------------------------------------
    # Bundle uploads
    # ------------------------------------------------------------------

    def _put_with_retry(self, key: str, body: bytes, encoding: str | None) -> None:
        for attempt in self._retrying(self._upload_attempts):
            with attempt:
                self._store.put(
                    key,
                    body,
                    content_type=SVG_CONTENT_TYPE,
                    cache_control=self._bundle_cache,
                    content_encoding=encoding,
                )

    def upload_bundles(self, bundles: list[Bundle]) -> dict[str, str]:
        """Upload every variant of *bundles* concurrently.

        Returns ``{object key: content encoding}`` (``identity`` for the
        uncompressed object).  Raises ``UploadError`` listing every key
        that still failed after retries.
        """
        jobs = [
            (f"{bundle.file_name}{suffix}", body, encoding)
            for bundle in bundles
            for suffix, encoding, body in encode_variants(bundle.content)
        ]
        if not jobs:
            return {}

        failures: dict[str, str] = {}
        workers = min(self._max_workers, len(jobs))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="upload") as pool:
            futures = {
                key: pool.submit(self._put_with_retry, key, body, encoding)
                for key, body, encoding in jobs
            }
            for key, future in futures.items():
                try:
                    future.result()
                except Exception as exc:
                    logger.error("Upload of %s failed: %s", key, exc)
                    failures[key] = str(exc)

        if failures:
            raise UploadError(
                f"{len(failures)} of {len(jobs)} uploads failed; manifest not published",
                failures,
            )

        uploaded = {key: encoding or "identity" for key, _, encoding in jobs}
        logger.info("Uploaded %d objects for %d bundles", len(uploaded), len(bundles))
        return uploaded

    def missing_bundles(self, manifest: Manifest) -> list[str]:
        """Bundle files referenced by *manifest* that the store lacks."""
        return [key for key in manifest.referenced_files() if self._store.head(key) is None]

    # ------------------------------------------------------------------
    # Manifest publish (the commit point)
    # ------------------------------------------------------------------

    def publish_manifest(self, manifest: Manifest) -> None:
        """Write *manifest* to the well-known key.

        Refuses (``UploadError``) if any referenced bundle is missing and
        (``ManifestConflictError``) if the published manifest is already at
        the same or a newer version.  Raises ``ManifestPublishError`` when
        the write itself keeps failing; the previous manifest then remains
        current.
        """
        missing = self.missing_bundles(manifest)
        if missing:
            raise UploadError(
                f"Manifest {manifest.version} references missing bundles: {', '.join(missing)}",
                {key: "missing" for key in missing},
            )

        current = self.current_manifest()
        if current is not None and current.version >= manifest.version:
            raise ManifestConflictError(
                f"Published manifest {current.version} is not older than "
                f"candidate {manifest.version}; refusing to overwrite"
            )

        body = manifest.to_json_bytes()
        try:
            for attempt in self._retrying(self._publish_attempts):
                with attempt:
                    self._store.put(
                        self._manifest_key,
                        body,
                        content_type=MANIFEST_CONTENT_TYPE,
                        cache_control=self._manifest_cache,
                    )
        except Exception as exc:
            raise ManifestPublishError(
                f"Could not publish manifest {manifest.version}: {exc}"
            ) from exc
        logger.info("Published manifest %s to %s", manifest.version, self._manifest_key)

    def invalidate(self, paths: list[str]) -> str:
        """Submit an invalidation; return an error message or ``""``."""
        try:
            self._edge_cache.invalidate(paths)
        except Exception as exc:
            logger.warning(
                "Edge-cache invalidation failed for %d paths (manifest TTL bounds staleness): %s",
                len(paths),
                exc,
            )
            return str(exc)
        return ""

    # ------------------------------------------------------------------
    # Full runs
    # ------------------------------------------------------------------

    def deploy(self, diff: ManifestDiff, bundles: dict[str, Bundle]) -> DeploymentRecord:
        """Upload the dirty set, commit the candidate manifest, invalidate."""
        dirty_bundles = [bundles[section] for section in diff.dirty]
        variants = self.upload_bundles(dirty_bundles)

        self.publish_manifest(diff.candidate)

        paths = [*variants, self._manifest_key]
        invalidation_error = self.invalidate(paths)

        record = DeploymentRecord(
            environment=self._environment,
            action=DeployAction.DEPLOY,
            manifest_version=diff.candidate.version,
            previous_version=diff.previous_version or "",
            uploaded=list(variants),
            skipped=list(diff.unchanged),
            removed=list(diff.removed),
            variants=variants,
            invalidation_paths=paths,
            invalidation_error=invalidation_error,
        )
        return self._ledger.commit(record, diff.candidate)

    def republish(
        self,
        manifest: Manifest,
        *,
        previous_version: str = "",
        action: DeployAction = DeployAction.ROLLBACK,
    ) -> DeploymentRecord:
        """Make an existing section mapping current without touching bundles."""
        self.publish_manifest(manifest)
        paths = [self._manifest_key]
        invalidation_error = self.invalidate(paths)
        record = DeploymentRecord(
            environment=self._environment,
            action=action,
            manifest_version=manifest.version,
            previous_version=previous_version,
            skipped=sorted(manifest.sections),
            invalidation_paths=paths,
            invalidation_error=invalidation_error,
        )
        return self._ledger.commit(record, manifest)
