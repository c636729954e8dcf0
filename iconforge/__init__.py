"""Iconforge: build-time SVG sprite bundling and runtime icon resolution.

  - Validation of icon names, markup and sizes (fail-closed)
  - Deterministic, content-addressed per-section sprite bundles
  - Atomic manifest publication with gzip/brotli variants and
    long-lived immutable caching
  - Hash-chained deploy ledger with version history and rollback
  - Runtime resolver with one-time manifest fetch and section prefetch
  - Dynamic tag resolution for content-system assets
  - Health monitoring of the published manifest and bundles
"""

__version__ = "0.1.0"
__description__ = "Build-time SVG sprite bundling and runtime icon resolution"

from iconforge.core.pipeline import IconPipeline
from iconforge.monitor.health import HealthMonitor
from iconforge.runtime.resolver import RuntimeIconResolver
from iconforge.cli.app import app as cli

__all__ = ["IconPipeline", "HealthMonitor", "RuntimeIconResolver", "cli", "__version__"]
