"""Production configuration guard — enforces hard constraints in production.

The guard validates that production-critical settings are correctly
configured before anything is published.  It fails hard (raises
``ProductionConfigError``) if any constraint is violated.

Other code should not scatter ``if is_production`` checks; the guard
checks the system once at startup.
"""

from __future__ import annotations

import logging

from iconforge.config import IconforgeConfig

logger = logging.getLogger(__name__)


class ProductionConfigError(RuntimeError):
    """Raised when production configuration constraints are violated.

    The pipeline cannot safely publish to production with the current
    configuration.  It must not be caught and ignored.
    """


def enforce_production_constraints(config: IconforgeConfig) -> None:
    """Validate all production-critical configuration constraints.

    Constraints enforced
    --------------------
    1. Debug mode must be disabled.
    2. Bundles must be published to S3, not the local directory store.
    3. A CloudFront distribution must be configured for invalidation.
    4. The CDN base URL must be HTTPS.

    Raises
    ------
    ProductionConfigError
        If any production constraint is violated.
    """
    if not config.is_production:
        return

    violations: list[str] = []

    if config.debug:
        violations.append(
            "debug=True is not allowed in production. Set ICONFORGE_DEBUG=false."
        )

    if config.store_backend != "s3":
        violations.append(
            f"store_backend={config.store_backend!r} is not allowed in production. "
            "Set ICONFORGE_STORE_BACKEND=s3."
        )
    elif not config.s3_bucket:
        violations.append("s3_bucket is empty. Set ICONFORGE_S3_BUCKET.")

    if not config.cloudfront_distribution_id:
        violations.append(
            "cloudfront_distribution_id is empty. "
            "Set ICONFORGE_CLOUDFRONT_DISTRIBUTION_ID."
        )

    if not config.cdn_base_url.startswith("https://"):
        violations.append(
            f"cdn_base_url={config.cdn_base_url!r} must use https in production."
        )

    if violations:
        msg = "Production constraints violated:\n" + "\n".join(
            f"  - {v}" for v in violations
        )
        logger.error(msg)
        raise ProductionConfigError(msg)

    logger.info("Production constraints satisfied for environment %r.", config.environment)
