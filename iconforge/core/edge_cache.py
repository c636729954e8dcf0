"""Edge-cache invalidation boundary.

Invalidation is best-effort: content-hashed bundles never go stale and the
manifest carries a short TTL, so a failed invalidation only delays clients
by at most that TTL.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class InvalidationError(RuntimeError):
    """Raised when the CDN rejects or fails an invalidation request."""


@runtime_checkable
class EdgeCache(Protocol):
    """Submits path-scoped invalidations.  Returns a request id."""

    def invalidate(self, paths: list[str]) -> str: ...


class NullEdgeCache:
    """No CDN in front of the store (local development)."""

    def invalidate(self, paths: list[str]) -> str:
        logger.info("No edge cache configured; skipping invalidation of %d paths", len(paths))
        return ""


class CloudFrontEdgeCache:
    """CloudFront invalidation via boto3.

    Parameters
    ----------
    distribution_id:
        The CloudFront distribution serving the store.
    path_prefix:
        Prefix between the distribution root and object keys (e.g. the S3
        key prefix when the origin is the bucket root).
    client:
        Pre-built boto3 CloudFront client.
    """

    def __init__(
        self,
        distribution_id: str,
        *,
        path_prefix: str = "",
        client: Any = None,
    ) -> None:
        if not distribution_id:
            raise ValueError("CloudFront distribution id is not set")
        self._distribution_id = distribution_id
        self._prefix = path_prefix.strip("/")
        if client is None:
            import boto3

            client = boto3.client("cloudfront")
        self._client = client

    def _path(self, key: str) -> str:
        return f"/{self._prefix}/{key}" if self._prefix else f"/{key}"

    def invalidate(self, paths: list[str]) -> str:
        items = [self._path(p) for p in paths]
        try:
            response = self._client.create_invalidation(
                DistributionId=self._distribution_id,
                InvalidationBatch={
                    "Paths": {"Quantity": len(items), "Items": items},
                    "CallerReference": f"iconforge-{uuid.uuid4().hex}",
                },
            )
        except Exception as exc:
            raise InvalidationError(f"CloudFront invalidation failed: {exc}") from exc
        invalidation_id = response.get("Invalidation", {}).get("Id", "")
        logger.info("Submitted CloudFront invalidation %s for %d paths", invalidation_id, len(items))
        return invalidation_id
