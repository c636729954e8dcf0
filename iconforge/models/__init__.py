"""Iconforge data models — all Pydantic v2, all frozen (immutable)."""

from iconforge.models.deployment import DeployAction, DeploymentRecord, HistoryEntry
from iconforge.models.icons import Bundle, IconSource
from iconforge.models.manifest import (
    DynamicTagManifest,
    Manifest,
    ManifestDiff,
    ManifestEntry,
)
from iconforge.models.reports import (
    HealthReport,
    HealthStatus,
    ProbeResult,
    SizeWarning,
    ValidationReport,
    Violation,
)
from iconforge.models.resolution import (
    DynamicTagRef,
    IconUse,
    InlineIcon,
    ResolutionMiss,
    SpriteRef,
)

__all__ = [
    # icons
    "IconSource",
    "Bundle",
    # manifest
    "Manifest",
    "ManifestEntry",
    "ManifestDiff",
    "DynamicTagManifest",
    # deployment
    "DeployAction",
    "DeploymentRecord",
    "HistoryEntry",
    # reports
    "Violation",
    "SizeWarning",
    "ValidationReport",
    "HealthStatus",
    "ProbeResult",
    "HealthReport",
    # resolution
    "InlineIcon",
    "SpriteRef",
    "DynamicTagRef",
    "ResolutionMiss",
    "IconUse",
]
