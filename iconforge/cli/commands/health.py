"""``iconforge health`` — probe the published manifest and bundles.

Single-shot by default.  ``--watch`` keeps probing on the configured
interval until interrupted.  Exits 2 on a CRITICAL result in single-shot
mode.
"""

from __future__ import annotations

import typer
from rich.console import Console

from iconforge.cli.options import load_config
from iconforge.models.reports import HealthReport, HealthStatus
from iconforge.monitor.health import HealthMonitor
from iconforge.monitor.renderer import ReportRenderer

console = Console()


def health_cmd(
    cdn_base_url: str = typer.Option(
        None,
        "--cdn",
        help="Base URL serving the manifest and bundles.",
    ),
    watch: bool = typer.Option(
        False,
        "--watch",
        "-w",
        help="Keep probing on an interval (Ctrl+C to exit).",
    ),
    interval: float = typer.Option(
        None,
        "--interval",
        "-i",
        help="Seconds between probes in watch mode.",
    ),
) -> None:
    """Check that the manifest and every bundle are served correctly."""
    config = load_config(cdn_base_url=cdn_base_url)
    renderer = ReportRenderer(console=console)

    def _alert(report: HealthReport) -> None:
        console.print(
            f"[bold red]ALERT:[/bold red] {len(report.critical_probes)} critical probe(s) "
            f"for manifest {report.manifest_version or '<unavailable>'}"
        )

    monitor = HealthMonitor.from_config(config, alert=_alert)
    try:
        if watch:
            seconds = interval if interval is not None else config.health_interval_seconds
            console.print(f"[dim]Probing every {seconds:g}s. Press Ctrl+C to exit.[/dim]")
            try:
                monitor.run(seconds, on_report=renderer.print_health)
            except KeyboardInterrupt:
                console.print("[dim]Stopped.[/dim]")
            return

        report = monitor.check()
        renderer.print_health(report)
    finally:
        monitor.close()

    if report.status == HealthStatus.CRITICAL:
        raise typer.Exit(code=2)
