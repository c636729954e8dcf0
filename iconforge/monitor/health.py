"""Health monitor — periodic probes of the published manifest and bundles.

Classification
--------------
- CRITICAL : manifest or a bundle unreachable, non-200, unparseable or empty
- WARNING  : stale ``lastUpdate``, slow response, a ``.gz``/``.br`` variant
             missing or served without its ``Content-Encoding``
- OK       : everything else

CRITICAL reports raise an alert through the injected callback.  The monitor
only reads; it never touches pipeline state.  Each probe is bounded by the
HTTP timeout and nothing is retried, so a slow pass cannot pile up behind
the next one.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import httpx

from iconforge.config import IconforgeConfig
from iconforge.models.manifest import Manifest
from iconforge.models.reports import HealthReport, HealthStatus, ProbeResult, worst_status

logger = logging.getLogger(__name__)

AlertSink = Callable[[HealthReport], None]

# Compressed variants published next to every bundle.
VARIANT_ENCODINGS = ((".gz", "gzip"), (".br", "br"))


class HealthMonitor:
    """Probes published artifacts the way a client would.

    Parameters
    ----------
    manifest_url:
        Absolute URL of the published manifest.
    bundle_base_url:
        Base URL bundles are served from.  Defaults to the manifest's
        directory.
    client:
        ``httpx.Client`` used for probes.  Created when not provided.
    slow_ms:
        Latency above which a probe is a WARNING.
    max_manifest_age:
        Age of ``lastUpdate`` above which the manifest is a WARNING.
    alert:
        Called with every CRITICAL report.
    """

    def __init__(
        self,
        manifest_url: str,
        *,
        bundle_base_url: str | None = None,
        client: httpx.Client | None = None,
        timeout: float = 10.0,
        slow_ms: float = 1000.0,
        max_manifest_age: timedelta = timedelta(days=30),
        alert: AlertSink | None = None,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._manifest_url = manifest_url
        self._base_url = (bundle_base_url or manifest_url.rsplit("/", 1)[0]).rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)
        self._slow_ms = slow_ms
        self._max_age = max_manifest_age
        self._alert = alert
        self._now = now

    @classmethod
    def from_config(
        cls,
        config: IconforgeConfig,
        *,
        client: httpx.Client | None = None,
        alert: AlertSink | None = None,
    ) -> HealthMonitor:
        return cls(
            config.manifest_url,
            bundle_base_url=config.cdn_base_url,
            client=client,
            timeout=config.http_timeout_seconds,
            slow_ms=config.health_slow_ms,
            max_manifest_age=timedelta(hours=config.health_max_manifest_age_hours),
            alert=alert,
        )

    def close(self) -> None:
        self._client.close()

    def _get(
        self, url: str, headers: dict[str, str] | None = None
    ) -> tuple[httpx.Response | None, float, str]:
        start = time.perf_counter()
        try:
            response = self._client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            return None, (time.perf_counter() - start) * 1000.0, str(exc) or type(exc).__name__
        return response, (time.perf_counter() - start) * 1000.0, ""

    def _latency_messages(self, latency_ms: float) -> list[str]:
        if latency_ms > self._slow_ms:
            return [f"slow response: {latency_ms:.0f} ms > {self._slow_ms:.0f} ms"]
        return []

    # ------------------------------------------------------------------
    # Probes
    # ------------------------------------------------------------------

    def probe_manifest(self) -> tuple[ProbeResult, Manifest | None]:
        url = self._manifest_url
        response, latency, error = self._get(url)
        if response is None:
            return ProbeResult(
                target="manifest", url=url, status=HealthStatus.CRITICAL,
                latency_ms=latency, messages=[f"unreachable: {error}"],
            ), None
        if response.status_code != 200:
            return ProbeResult(
                target="manifest", url=url, status=HealthStatus.CRITICAL,
                http_status=response.status_code, latency_ms=latency,
                messages=[f"HTTP {response.status_code}"],
            ), None
        try:
            manifest = Manifest.from_json_bytes(response.content)
        except ValueError as exc:
            return ProbeResult(
                target="manifest", url=url, status=HealthStatus.CRITICAL,
                http_status=response.status_code, latency_ms=latency,
                messages=[f"unparseable manifest: {exc}"],
            ), None

        messages = self._latency_messages(latency)
        age = self._now() - manifest.last_update
        if age > self._max_age:
            messages.append(f"stale manifest: lastUpdate is {age} old")
        status = HealthStatus.WARNING if messages else HealthStatus.OK
        return ProbeResult(
            target="manifest", url=url, status=status,
            http_status=response.status_code, latency_ms=latency, messages=messages,
        ), manifest

    def _check_variant(self, url: str, suffix: str, encoding: str) -> tuple[list[str], float]:
        response, latency, error = self._get(f"{url}{suffix}", headers={"Accept-Encoding": encoding})
        if response is None:
            return [f"{suffix} variant unreachable: {error}"], latency
        if response.status_code != 200:
            return [f"{suffix} variant HTTP {response.status_code}"], latency
        served = response.headers.get("content-encoding", "")
        if served != encoding:
            return [
                f"{suffix} variant served with Content-Encoding "
                f"{served or 'none'!r}, expected {encoding!r}"
            ], latency
        return [], latency

    def probe_bundle(self, section: str, file_name: str) -> ProbeResult:
        """Probe a bundle and its compressed variants.

        A missing or empty identity object is CRITICAL.  Compression is
        checked on the ``.gz`` and ``.br`` variants, which must be served
        with the matching ``Content-Encoding``; anything else is a WARNING.
        """
        url = f"{self._base_url}/{file_name}"
        response, latency, error = self._get(url, headers={"Accept-Encoding": "br, gzip"})
        if response is None:
            return ProbeResult(
                target=section, url=url, status=HealthStatus.CRITICAL,
                latency_ms=latency, messages=[f"unreachable: {error}"],
            )
        if response.status_code != 200:
            return ProbeResult(
                target=section, url=url, status=HealthStatus.CRITICAL,
                http_status=response.status_code, latency_ms=latency,
                messages=[f"HTTP {response.status_code}"],
            )
        if not response.content:
            return ProbeResult(
                target=section, url=url, status=HealthStatus.CRITICAL,
                http_status=response.status_code, latency_ms=latency,
                messages=["empty bundle"],
            )

        problems: list[str] = []
        for suffix, encoding in VARIANT_ENCODINGS:
            found, variant_latency = self._check_variant(url, suffix, encoding)
            problems.extend(found)
            latency = max(latency, variant_latency)

        messages = self._latency_messages(latency) + problems
        status = HealthStatus.WARNING if messages else HealthStatus.OK
        return ProbeResult(
            target=section, url=url, status=status,
            http_status=response.status_code, latency_ms=latency, messages=messages,
        )

    # ------------------------------------------------------------------
    # Full pass and loop
    # ------------------------------------------------------------------

    def check(self) -> HealthReport:
        """Probe the manifest and every bundle it references."""
        manifest_probe, manifest = self.probe_manifest()
        probes = [manifest_probe]
        if manifest is not None:
            for section in sorted(manifest.sections):
                probes.append(self.probe_bundle(section, manifest.sections[section].file_name))

        report = HealthReport(
            status=worst_status([p.status for p in probes]),
            manifest_version=manifest.version if manifest else "",
            probes=probes,
        )

        if report.status == HealthStatus.CRITICAL:
            for probe in report.critical_probes:
                logger.error("CRITICAL %s (%s): %s", probe.target, probe.url, "; ".join(probe.messages))
            if self._alert is not None:
                self._alert(report)
        elif report.status == HealthStatus.WARNING:
            for probe in report.warning_probes:
                logger.warning("WARNING %s (%s): %s", probe.target, probe.url, "; ".join(probe.messages))
        else:
            logger.info("Health OK for manifest %s (%d probes)", report.manifest_version, len(probes))
        return report

    def run(
        self,
        interval: float,
        *,
        iterations: int | None = None,
        on_report: Callable[[HealthReport], None] | None = None,
        sleep: Callable[[float], None] = time.sleep,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> HealthReport | None:
        """Probe every *interval* seconds; ``iterations=None`` runs forever.

        Ticks missed while a probe overran are skipped, not queued.
        Returns the last report.
        """
        if interval <= 0:
            raise ValueError("interval must be positive")
        last: HealthReport | None = None
        count = 0
        next_tick = monotonic()
        while iterations is None or count < iterations:
            last = self.check()
            count += 1
            if on_report is not None:
                on_report(last)
            if iterations is not None and count >= iterations:
                break
            next_tick += interval
            now = monotonic()
            if now > next_tick:
                skipped = int((now - next_tick) // interval) + 1
                logger.warning("Health probe overran; skipping %d tick(s)", skipped)
                next_tick += skipped * interval
            sleep(max(0.0, next_tick - now))
        return last
