"""Rollback — make a previously current manifest current again.

Bundles are immutable and content addressed, so a rollback never touches
them: it republishes the target version's section mapping through the same
manifest publish step as a deploy.  The republished manifest gets a fresh,
newer ``version`` (versions stay monotonic and clients see a change) while
every section entry is the target's, byte for byte.

If the write fails, the previous manifest simply remains current.
"""

from __future__ import annotations

import logging
from datetime import datetime

from iconforge.core.deploy_ledger import DeployLedger
from iconforge.core.distribution import DistributionEngine
from iconforge.core.manifest_builder import ManifestBuilder
from iconforge.models.deployment import DeployAction, DeploymentRecord, HistoryEntry

logger = logging.getLogger(__name__)


class UnknownVersionError(LookupError):
    """Raised when the requested version is not in the version history."""


class RollbackError(RuntimeError):
    """Raised when a rollback target cannot be safely republished."""


class RollbackManager:
    """Restores prior manifest versions from the deploy ledger.

    Parameters
    ----------
    engine:
        Distribution engine used for the manifest publish step.
    ledger:
        Deploy ledger holding the version history.
    """

    def __init__(self, engine: DistributionEngine, ledger: DeployLedger) -> None:
        self._engine = engine
        self._ledger = ledger

    def history(self) -> list[HistoryEntry]:
        """Version history for the engine's environment, oldest first."""
        return self._ledger.list_versions(self._engine.environment)

    def rollback(self, version: str, *, now: datetime | None = None) -> DeploymentRecord:
        """Republish the section mapping recorded for *version*.

        Raises
        ------
        UnknownVersionError
            *version* was never current in this environment.
        RollbackError
            A bundle referenced by *version* is no longer in the store.
        """
        environment = self._engine.environment
        target = self._ledger.get_manifest(environment, version)
        if target is None:
            raise UnknownVersionError(
                f"Version {version!r} is not in the {environment} version history"
            )

        missing = self._engine.missing_bundles(target)
        if missing:
            raise RollbackError(
                f"Cannot roll back to {version}: missing bundles {', '.join(missing)}"
            )

        current = self._engine.current_manifest()
        manifest = ManifestBuilder.republish(target, current, now=now)
        logger.info(
            "Rolling back %s from %s to %s (republished as %s)",
            environment,
            current.version if current else "<none>",
            version,
            manifest.version,
        )
        return self._engine.republish(
            manifest,
            previous_version=current.version if current else "",
            action=DeployAction.ROLLBACK,
        )
