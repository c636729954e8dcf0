"""Published manifest models.

The manifest is the single mutable pointer in the system: it maps each
section to the immutable bundle currently served for it.  On the wire it is
a flat JSON object::

    {"version": "...", "lastUpdate": "...",
     "<section>": {"fileName": "...", "hash": "...", "icons": [...],
                   "size": 0, "deployedAt": "...", "environment": "..."}}
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Top-level manifest keys that are not section names.
RESERVED_MANIFEST_KEYS = frozenset({"version", "lastUpdate"})


def _as_utc(value: datetime) -> datetime:
    """Timestamps without an offset are read as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ManifestEntry(BaseModel):
    """Bundle metadata recorded for one section."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    file_name: str = Field(alias="fileName")
    hash: str
    icons: list[str]
    size: int
    deployed_at: datetime = Field(alias="deployedAt")
    environment: str

    @field_validator("deployed_at")
    @classmethod
    def deployed_at_as_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @property
    def symbol_ids(self) -> list[str]:
        return [f"icon-{name}" for name in self.icons]


class Manifest(BaseModel):
    """A complete, versioned section -> bundle mapping."""

    model_config = ConfigDict(frozen=True)

    version: str
    last_update: datetime
    sections: dict[str, ManifestEntry] = {}

    @field_validator("last_update")
    @classmethod
    def last_update_as_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    def referenced_files(self) -> list[str]:
        """Bundle file names referenced by this manifest, sorted."""
        return sorted(entry.file_name for entry in self.sections.values())

    def same_mapping(self, other: Manifest) -> bool:
        """True when both manifests point every section at the same bundle."""
        mine = {s: (e.file_name, e.hash) for s, e in self.sections.items()}
        theirs = {s: (e.file_name, e.hash) for s, e in other.sections.items()}
        return mine == theirs

    # ------------------------------------------------------------------
    # Wire format
    # ------------------------------------------------------------------

    def to_wire(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "version": self.version,
            "lastUpdate": self.last_update.isoformat(),
        }
        for section in sorted(self.sections):
            doc[section] = self.sections[section].model_dump(
                mode="json", by_alias=True
            )
        return doc

    def to_json_bytes(self) -> bytes:
        return json.dumps(self.to_wire(), indent=2, sort_keys=False).encode("utf-8")

    @classmethod
    def from_wire(cls, doc: dict[str, Any]) -> Manifest:
        missing = RESERVED_MANIFEST_KEYS - set(doc)
        if missing:
            raise ValueError(f"manifest is missing {', '.join(sorted(missing))}")
        sections = {
            key: ManifestEntry.model_validate(value)
            for key, value in doc.items()
            if key not in RESERVED_MANIFEST_KEYS
        }
        return cls(
            version=doc["version"],
            last_update=doc["lastUpdate"],
            sections=sections,
        )

    @classmethod
    def from_json_bytes(cls, data: bytes) -> Manifest:
        doc = json.loads(data.decode("utf-8"))
        if not isinstance(doc, dict):
            raise ValueError("manifest document is not a JSON object")
        return cls.from_wire(doc)


class ManifestDiff(BaseModel):
    """Output of the manifest builder: the candidate plus what changed."""

    model_config = ConfigDict(frozen=True)

    candidate: Manifest
    previous_version: str | None = None
    dirty: list[str] = []
    unchanged: list[str] = []
    removed: list[str] = []

    @property
    def has_changes(self) -> bool:
        return bool(self.dirty or self.removed)


class DynamicTagManifest(BaseModel):
    """Tag -> URL mapping maintained by an external content system."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    version: str = ""
    last_update: datetime | None = Field(default=None, alias="lastUpdate")
    categories: dict[str, dict[str, str]] = {}

    def lookup(self, category: str, tag: str) -> str | None:
        return self.categories.get(category, {}).get(tag)
