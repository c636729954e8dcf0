"""Pipeline configuration — env-driven.

Centralized config using pydantic-settings.  Reads from a .env file and
ICONFORGE_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class IconforgeConfig(BaseSettings):
    """Pipeline configuration with environment variable overrides.

    All settings can be overridden via ICONFORGE_* environment variables
    or a .env file in the project root.

    Examples
    --------
    Override via environment::

        export ICONFORGE_ENVIRONMENT=staging
        export ICONFORGE_STORE_BACKEND=s3
        export ICONFORGE_S3_BUCKET=static-assets
        export ICONFORGE_CDN_BASE_URL=https://cdn.example.com/icons

    Or via .env file::

        ICONFORGE_ENVIRONMENT=production
        ICONFORGE_CLOUDFRONT_DISTRIBUTION_ID=E2ABCDEF123
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ICONFORGE_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # Sources
    source_root: Path = Path("icons")
    critical_icons: list[str] = []
    critical_dir: Path | None = None

    # Deploy ledger (DeploymentRecords + VersionHistory)
    ledger_path: Path = Path(".iconforge/ledger.db")

    # Object store
    store_backend: str = "local"  # "local" or "s3"
    local_store_path: Path = Path(".iconforge/public")
    s3_bucket: str = ""
    s3_prefix: str = ""
    aws_region: str = "us-east-1"
    cloudfront_distribution_id: str = ""
    cdn_base_url: str = "http://localhost:8000"
    manifest_key: str = "manifest.json"

    # Cache directives (seconds)
    bundle_cache_max_age: int = 31_536_000
    manifest_cache_max_age: int = 60

    # Compiler and validator
    hash_length: int = 8
    max_name_length: int = 50
    max_icon_bytes: int = 5 * 1024
    max_bundle_bytes: int = 100 * 1024
    max_workers: int = 8

    # Distribution retries
    upload_max_attempts: int = 3
    upload_backoff_seconds: float = 0.5
    publish_max_attempts: int = 3

    # Runtime resolvers
    dynamic_manifest_url: str = ""
    dynamic_ttl_seconds: float = 300.0
    http_timeout_seconds: float = 10.0

    # Health monitor
    health_interval_seconds: float = 300.0
    health_slow_ms: float = 1000.0
    health_max_manifest_age_hours: float = 24.0 * 30

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"

    @property
    def manifest_url(self) -> str:
        return f"{self.cdn_base_url.rstrip('/')}/{self.manifest_key}"

    def bundle_url(self, file_name: str) -> str:
        return f"{self.cdn_base_url.rstrip('/')}/{file_name}"
