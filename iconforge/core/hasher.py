"""Canonical hashing helpers for content addressing and the deploy ledger.

Bundles are addressed by the SHA-256 of their normalized bytes.  Ledger
entries are hashed over canonical JSON so the same logical content always
yields the same digest.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes — deterministic, sorted, compact.

    - sorted keys
    - no whitespace separators (",", ":")
    - ensure_ascii=True
    - UTF-8 encoding
    """
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def bundle_file_name(section: str, content_hash: str, hash_length: int = 8) -> str:
    """Derive the immutable sprite file name for a section bundle."""
    return f"sprite-{section}-{content_hash[:hash_length]}"


def compute_entry_hash(entry_dict: dict[str, Any]) -> str:
    """SHA-256 of a ledger entry (excluding the entry_hash field itself).

    This is the seal that makes each entry tamper-evident.
    """
    d = {k: v for k, v in entry_dict.items() if k != "entry_hash"}
    return sha256_hex(canonical_json_bytes(d))
