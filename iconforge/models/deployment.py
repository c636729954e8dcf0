"""Deploy ledger models (append-only, hash-chained).

Every deploy or rollback that makes a manifest current produces one
``DeploymentRecord`` and one ``HistoryEntry``.  Neither is ever updated or
deleted by the pipeline.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class DeployAction(str, Enum):
    """What made a manifest current."""

    DEPLOY = "deploy"
    ROLLBACK = "rollback"


class DeploymentRecord(BaseModel):
    """Audit entry for one committed deploy or rollback."""

    model_config = ConfigDict(frozen=True)

    deployment_id: str = Field(default_factory=lambda: f"dep-{uuid.uuid4().hex[:12]}")
    environment: str
    action: DeployAction = DeployAction.DEPLOY
    manifest_version: str
    previous_version: str = ""
    uploaded: list[str] = []  # object keys written this run
    skipped: list[str] = []  # sections carried forward unchanged
    removed: list[str] = []  # sections dropped from the manifest
    variants: dict[str, str] = {}  # object key -> content encoding
    invalidation_paths: list[str] = []
    invalidation_error: str = ""
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    previous_entry_hash: str = ""
    entry_hash: str = ""


class HistoryEntry(BaseModel):
    """A manifest that was current at some point (VersionHistory)."""

    model_config = ConfigDict(frozen=True)

    version: str
    environment: str
    action: DeployAction
    published_at: datetime
    manifest_json: str = Field(repr=False)
