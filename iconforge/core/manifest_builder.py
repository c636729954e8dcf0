"""Manifest builder — diff fresh bundles against the published manifest.

Sections whose hash is unchanged carry their old entry forward untouched
(including ``deployedAt``); changed or new sections are staged with fresh
metadata and form the dirty set, which is the only thing the distribution
engine uploads.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from iconforge.models.icons import Bundle
from iconforge.models.manifest import Manifest, ManifestDiff, ManifestEntry

logger = logging.getLogger(__name__)

_VERSION_FORMAT = "v%Y%m%d%H%M%S%f"


def version_for(moment: datetime) -> str:
    """Timestamp-derived manifest version, e.g. ``v20261018120000123456``."""
    return moment.astimezone(timezone.utc).strftime(_VERSION_FORMAT)


def next_version(now: datetime, previous: str | None) -> tuple[str, datetime]:
    """Return a version strictly newer than *previous* and its timestamp.

    Versions are fixed-width, so string order equals time order.  If the
    clock has not advanced past *previous* the new version is bumped one
    microsecond beyond it.
    """
    now = now.astimezone(timezone.utc)
    if previous:
        try:
            prev_moment = datetime.strptime(previous, _VERSION_FORMAT).replace(
                tzinfo=timezone.utc
            )
        except ValueError:
            logger.warning("Previous manifest version %r is not timestamp-derived", previous)
        else:
            if now <= prev_moment:
                now = prev_moment + timedelta(microseconds=1)
    return version_for(now), now


class ManifestBuilder:
    """Builds candidate manifests for one environment."""

    def __init__(self, environment: str) -> None:
        self._environment = environment

    def _entry_for(self, bundle: Bundle, deployed_at: datetime) -> ManifestEntry:
        return ManifestEntry(
            file_name=bundle.file_name,
            hash=bundle.content_hash,
            icons=list(bundle.icon_names),
            size=bundle.byte_size,
            deployed_at=deployed_at,
            environment=self._environment,
        )

    def build(
        self,
        bundles: dict[str, Bundle],
        previous: Manifest | None,
        *,
        now: datetime | None = None,
    ) -> ManifestDiff:
        """Compute the candidate manifest and the dirty set."""
        now = now or datetime.now(timezone.utc)
        version, stamped = next_version(now, previous.version if previous else None)
        old_sections = previous.sections if previous else {}

        sections: dict[str, ManifestEntry] = {}
        dirty: list[str] = []
        unchanged: list[str] = []

        for section in sorted(bundles):
            bundle = bundles[section]
            old = old_sections.get(section)
            if old is not None and old.hash == bundle.content_hash:
                sections[section] = old
                unchanged.append(section)
            else:
                sections[section] = self._entry_for(bundle, stamped)
                dirty.append(section)

        removed = sorted(set(old_sections) - set(bundles))
        if removed:
            logger.warning("Sections no longer in the source tree: %s", ", ".join(removed))

        candidate = Manifest(version=version, last_update=stamped, sections=sections)
        logger.info(
            "Candidate manifest %s: %d dirty, %d unchanged, %d removed",
            version,
            len(dirty),
            len(unchanged),
            len(removed),
        )
        return ManifestDiff(
            candidate=candidate,
            previous_version=previous.version if previous else None,
            dirty=dirty,
            unchanged=unchanged,
            removed=removed,
        )

    @staticmethod
    def republish(target: Manifest, current: Manifest | None, *, now: datetime | None = None) -> Manifest:
        """A copy of *target*'s section mapping under a fresh, newer version."""
        now = now or datetime.now(timezone.utc)
        floor = max(
            (v for v in (target.version, current.version if current else None) if v),
            default=None,
        )
        version, stamped = next_version(now, floor)
        return Manifest(version=version, last_update=stamped, sections=dict(target.sections))
