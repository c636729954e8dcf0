"""Validation and health report models."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class Violation(BaseModel):
    """A fatal validation finding.  Any violation blocks the build."""

    model_config = ConfigDict(frozen=True)

    code: str  # "reserved-name", "bad-name", "bad-section", "duplicate-name", "bad-svg"
    section: str
    name: str = ""
    message: str

    def __str__(self) -> str:
        where = f"{self.section}/{self.name}" if self.name else self.section
        return f"[{self.code}] {where}: {self.message}"


class SizeWarning(BaseModel):
    """A non-fatal size budget finding.  Surfaced, never blocking."""

    model_config = ConfigDict(frozen=True)

    section: str
    name: str = ""  # empty for bundle-level warnings
    byte_size: int
    limit: int
    message: str


class ValidationReport(BaseModel):
    """Outcome of validating a full source set."""

    model_config = ConfigDict(frozen=True)

    violations: list[Violation] = []
    warnings: list[SizeWarning] = []

    @property
    def ok(self) -> bool:
        return not self.violations

    def merge(self, other: ValidationReport) -> ValidationReport:
        return ValidationReport(
            violations=[*self.violations, *other.violations],
            warnings=[*self.warnings, *other.warnings],
        )

    def raise_for_violations(self) -> None:
        """Raise ``ValidationError`` if any fatal violation was found."""
        if self.violations:
            from iconforge.core.validator import ValidationError

            raise ValidationError(self.violations)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthStatus(str, Enum):
    OK = "ok"
    WARNING = "warning"
    CRITICAL = "critical"


_SEVERITY = {HealthStatus.OK: 0, HealthStatus.WARNING: 1, HealthStatus.CRITICAL: 2}


def worst_status(statuses: list[HealthStatus]) -> HealthStatus:
    """Return the most severe status in *statuses* (OK when empty)."""
    return max(statuses, key=_SEVERITY.__getitem__, default=HealthStatus.OK)


class ProbeResult(BaseModel):
    """Result of probing one published artifact."""

    model_config = ConfigDict(frozen=True)

    target: str  # "manifest" or a section name
    url: str
    status: HealthStatus
    http_status: int | None = None
    latency_ms: float = 0.0
    messages: list[str] = []


class HealthReport(BaseModel):
    """A full health check pass over the manifest and every bundle."""

    model_config = ConfigDict(frozen=True)

    status: HealthStatus
    manifest_version: str = ""
    probes: list[ProbeResult] = []
    checked_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def critical_probes(self) -> list[ProbeResult]:
        return [p for p in self.probes if p.status == HealthStatus.CRITICAL]

    @property
    def warning_probes(self) -> list[ProbeResult]:
        return [p for p in self.probes if p.status == HealthStatus.WARNING]
