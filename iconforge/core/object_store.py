"""Object store boundary for published bundles and the manifest.

The distribution engine needs only ``put``/``head`` semantics (plus ``get``
to read back the currently published manifest).  Two back ends:

- ``LocalObjectStore`` — a directory tree with JSON metadata sidecars, used
  for development, tests and static hosting.
- ``S3ObjectStore`` — AWS S3 (or any S3-compatible API) via boto3.

Writes are whole-object replacements: a reader sees either the old or the
new object, never a partial one.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from iconforge.core.hasher import sha256_hex

logger = logging.getLogger(__name__)


class ObjectHead(BaseModel):
    """Metadata of a stored object."""

    model_config = ConfigDict(frozen=True)

    key: str
    size: int
    content_type: str
    cache_control: str = ""
    content_encoding: str | None = None
    etag: str = ""


@runtime_checkable
class ObjectStore(Protocol):
    """Minimal object store interface."""

    def put(
        self,
        key: str,
        body: bytes,
        *,
        content_type: str,
        cache_control: str,
        content_encoding: str | None = None,
    ) -> ObjectHead: ...

    def head(self, key: str) -> ObjectHead | None: ...

    def get(self, key: str) -> bytes | None: ...


# ---------------------------------------------------------------------------
# Local directory store
# ---------------------------------------------------------------------------


class LocalObjectStore:
    """Directory-backed object store.

    Layout: ``{base}/{key}`` for bodies, ``{base}/.meta/{key}.json`` for
    metadata.  Each file is written to a temporary sibling and moved into
    place with ``os.replace``.

    Parameters
    ----------
    base_path:
        Root directory of the store.  Created if missing.
    """

    def __init__(self, base_path: Path) -> None:
        self._base = Path(base_path)
        self._base.mkdir(parents=True, exist_ok=True)

    @property
    def base_path(self) -> Path:
        return self._base

    @staticmethod
    def _inside(root: Path, relative: str, key: str) -> Path:
        path = (root / relative).resolve()
        if root.resolve() not in path.parents:
            raise ValueError(f"Object key escapes the store: {key!r}")
        return path

    def _body_path(self, key: str) -> Path:
        return self._inside(self._base, key, key)

    def _meta_path(self, key: str) -> Path:
        return self._inside(self._base / ".meta", f"{key}.json", key)

    @staticmethod
    def _atomic_write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def put(
        self,
        key: str,
        body: bytes,
        *,
        content_type: str,
        cache_control: str,
        content_encoding: str | None = None,
    ) -> ObjectHead:
        body_path = self._body_path(key)
        meta_path = self._meta_path(key)
        head = ObjectHead(
            key=key,
            size=len(body),
            content_type=content_type,
            cache_control=cache_control,
            content_encoding=content_encoding,
            etag=sha256_hex(body)[:32],
        )
        # Metadata first: a body without metadata is never visible as present.
        self._atomic_write(meta_path, json.dumps(head.model_dump()).encode("utf-8"))
        self._atomic_write(body_path, body)
        logger.debug("Stored %s (%d bytes)", key, len(body))
        return head

    def head(self, key: str) -> ObjectHead | None:
        body_path = self._body_path(key)
        meta_path = self._meta_path(key)
        if not body_path.is_file() or not meta_path.is_file():
            return None
        return ObjectHead.model_validate_json(meta_path.read_bytes())

    def get(self, key: str) -> bytes | None:
        body_path = self._body_path(key)
        if not body_path.is_file():
            return None
        return body_path.read_bytes()

    def keys(self) -> list[str]:
        """Every stored key, sorted (metadata sidecars excluded)."""
        return sorted(
            p.relative_to(self._base).as_posix()
            for p in self._base.rglob("*")
            if p.is_file()
            and ".meta" not in p.relative_to(self._base).parts
            and not p.name.startswith(".")
        )


# ---------------------------------------------------------------------------
# S3 store
# ---------------------------------------------------------------------------


class S3ObjectStore:
    """S3-backed object store.

    Parameters
    ----------
    bucket:
        Target bucket.
    prefix:
        Optional key prefix (a trailing ``/`` is added if missing).
    region:
        AWS region for the client.
    client:
        Pre-built boto3 S3 client (tests, custom endpoints).
    """

    def __init__(
        self,
        bucket: str,
        *,
        prefix: str = "",
        region: str = "us-east-1",
        client: Any = None,
    ) -> None:
        if not bucket:
            raise ValueError("S3 bucket is not set")
        if prefix and not prefix.endswith("/"):
            prefix = prefix + "/"
        self._bucket = bucket
        self._prefix = prefix
        if client is None:
            import boto3

            client = boto3.client("s3", region_name=region)
        self._client = client

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    @staticmethod
    def _is_not_found(exc: Exception) -> bool:
        response = getattr(exc, "response", None) or {}
        code = str(response.get("Error", {}).get("Code", ""))
        return code in ("404", "NoSuchKey", "NotFound")

    def put(
        self,
        key: str,
        body: bytes,
        *,
        content_type: str,
        cache_control: str,
        content_encoding: str | None = None,
    ) -> ObjectHead:
        kwargs: dict[str, Any] = {
            "Bucket": self._bucket,
            "Key": self._key(key),
            "Body": body,
            "ContentType": content_type,
            "CacheControl": cache_control,
        }
        if content_encoding:
            kwargs["ContentEncoding"] = content_encoding
        response = self._client.put_object(**kwargs)
        return ObjectHead(
            key=key,
            size=len(body),
            content_type=content_type,
            cache_control=cache_control,
            content_encoding=content_encoding,
            etag=str(response.get("ETag", "")).strip('"'),
        )

    def head(self, key: str) -> ObjectHead | None:
        from botocore.exceptions import ClientError

        try:
            response = self._client.head_object(Bucket=self._bucket, Key=self._key(key))
        except ClientError as exc:
            if self._is_not_found(exc):
                return None
            raise
        return ObjectHead(
            key=key,
            size=int(response.get("ContentLength", 0)),
            content_type=response.get("ContentType", ""),
            cache_control=response.get("CacheControl", ""),
            content_encoding=response.get("ContentEncoding"),
            etag=str(response.get("ETag", "")).strip('"'),
        )

    def get(self, key: str) -> bytes | None:
        from botocore.exceptions import ClientError

        try:
            response = self._client.get_object(Bucket=self._bucket, Key=self._key(key))
        except ClientError as exc:
            if self._is_not_found(exc):
                return None
            raise
        return response["Body"].read()
