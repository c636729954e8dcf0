"""Pipeline orchestrator — the central coordinator for icon builds and deploys.

``IconPipeline`` wires together the source loader, Validator,
SpriteCompiler, ManifestBuilder, DistributionEngine, RollbackManager and
DeployLedger.  Validation is fail-closed: any fatal violation aborts the run
before compilation, with no side effects on the object store.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from iconforge.config import IconforgeConfig
from iconforge.core.critical import CriticalIconRegistry
from iconforge.core.deploy_ledger import DeployLedger
from iconforge.core.distribution import DistributionEngine
from iconforge.core.edge_cache import CloudFrontEdgeCache, EdgeCache, NullEdgeCache
from iconforge.core.manifest_builder import ManifestBuilder
from iconforge.core.object_store import LocalObjectStore, ObjectStore, S3ObjectStore
from iconforge.core.production_guard import enforce_production_constraints
from iconforge.core.rollback import RollbackManager
from iconforge.core.sources import CRITICAL_DIR_NAME, load_sources
from iconforge.core.sprite_compiler import SpriteCompiler
from iconforge.core.validator import Validator
from iconforge.models.deployment import DeploymentRecord
from iconforge.models.icons import Bundle, IconSource
from iconforge.models.manifest import ManifestDiff
from iconforge.models.reports import ValidationReport

logger = logging.getLogger(__name__)


class BuildResult(BaseModel):
    """Everything a build produced, before anything is published."""

    model_config = ConfigDict(frozen=True)

    report: ValidationReport
    bundles: dict[str, Bundle]
    diff: ManifestDiff


class DeployResult(BaseModel):
    """A committed deploy: the build plus its ledger record."""

    model_config = ConfigDict(frozen=True)

    build: BuildResult
    record: DeploymentRecord


# ---------------------------------------------------------------------------
# Collaborator factories
# ---------------------------------------------------------------------------


def build_object_store(config: IconforgeConfig) -> ObjectStore:
    if config.store_backend == "s3":
        return S3ObjectStore(config.s3_bucket, prefix=config.s3_prefix, region=config.aws_region)
    if config.store_backend == "local":
        return LocalObjectStore(config.local_store_path)
    raise ValueError(f"Unknown store backend: {config.store_backend!r}")


def build_edge_cache(config: IconforgeConfig) -> EdgeCache:
    if config.cloudfront_distribution_id:
        return CloudFrontEdgeCache(
            config.cloudfront_distribution_id, path_prefix=config.s3_prefix
        )
    return NullEdgeCache()


def build_registry(config: IconforgeConfig) -> CriticalIconRegistry:
    critical_dir = config.critical_dir or Path(config.source_root) / CRITICAL_DIR_NAME
    if Path(critical_dir).is_dir():
        return CriticalIconRegistry.from_directory(critical_dir, config.critical_icons)
    return CriticalIconRegistry(config.critical_icons)


class IconPipeline:
    """Central pipeline coordinator.

    Parameters
    ----------
    config:
        Pipeline configuration.  Uses environment-driven defaults if not
        provided.
    store, edge_cache, ledger, registry:
        Override the collaborators otherwise built from *config*.
    """

    def __init__(
        self,
        config: IconforgeConfig | None = None,
        *,
        store: ObjectStore | None = None,
        edge_cache: EdgeCache | None = None,
        ledger: DeployLedger | None = None,
        registry: CriticalIconRegistry | None = None,
    ) -> None:
        self.config = config or IconforgeConfig()

        # Fails hard if production constraints are violated
        enforce_production_constraints(self.config)

        self.registry = registry or build_registry(self.config)
        self.store = store or build_object_store(self.config)
        self.edge_cache = edge_cache or build_edge_cache(self.config)
        self.ledger = ledger or DeployLedger(self.config.ledger_path)

        self.validator = Validator(
            self.registry,
            max_name_length=self.config.max_name_length,
            max_icon_bytes=self.config.max_icon_bytes,
            max_bundle_bytes=self.config.max_bundle_bytes,
        )
        self.compiler = SpriteCompiler(
            hash_length=self.config.hash_length,
            max_workers=self.config.max_workers,
        )
        self.builder = ManifestBuilder(self.config.environment)
        self.engine = DistributionEngine.from_config(
            self.config, self.store, self.edge_cache, self.ledger
        )
        self.rollback_manager = RollbackManager(self.engine, self.ledger)

    # ------------------------------------------------------------------
    # Build (no side effects)
    # ------------------------------------------------------------------

    def load(self) -> dict[str, list[IconSource]]:
        return load_sources(self.config.source_root)

    def validate(self, tree: dict[str, list[IconSource]] | None = None) -> ValidationReport:
        return self.validator.validate(tree if tree is not None else self.load())

    def build(self, tree: dict[str, list[IconSource]] | None = None) -> BuildResult:
        """Validate, compile and diff against the published manifest.

        Raises ``ValidationError`` before compiling anything if the source
        set has any fatal violation.
        """
        tree = tree if tree is not None else self.load()
        report = self.validator.validate(tree)
        report.raise_for_violations()

        bundles = self.compiler.compile_all(tree)
        report = report.merge(self.validator.check_bundles(bundles.values()))

        diff = self.builder.build(bundles, self.engine.current_manifest())
        return BuildResult(report=report, bundles=bundles, diff=diff)

    # ------------------------------------------------------------------
    # Deploy and rollback
    # ------------------------------------------------------------------

    def deploy(self, tree: dict[str, list[IconSource]] | None = None) -> DeployResult:
        """Build and publish.  All-or-nothing at the manifest commit."""
        build = self.build(tree)
        record = self.engine.deploy(build.diff, build.bundles)
        logger.info(
            "Deployed manifest %s to %s (%d objects uploaded, %d sections unchanged)",
            record.manifest_version,
            record.environment,
            len(record.uploaded),
            len(record.skipped),
        )
        return DeployResult(build=build, record=record)

    def rollback(self, version: str) -> DeploymentRecord:
        return self.rollback_manager.rollback(version)
