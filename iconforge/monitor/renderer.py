"""Rich terminal renderer for Iconforge reports.

Turns health reports, build results, deployment records and the version
history into Rich renderables.

Color scheme
------------
- green     : OK, unchanged
- yellow    : WARNING, dirty
- bold red  : CRITICAL, violations
- magenta   : rollback
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from iconforge.models.deployment import DeployAction
from iconforge.models.reports import HealthStatus

if TYPE_CHECKING:
    from iconforge.core.pipeline import BuildResult
    from iconforge.models.deployment import DeploymentRecord, HistoryEntry
    from iconforge.models.reports import HealthReport, ValidationReport


_STATUS_MARKUP: dict[HealthStatus, str] = {
    HealthStatus.OK: "[green]OK[/green]",
    HealthStatus.WARNING: "[yellow]WARNING[/yellow]",
    HealthStatus.CRITICAL: "[bold red]CRITICAL[/bold red]",
}

_STATUS_BORDER: dict[HealthStatus, str] = {
    HealthStatus.OK: "green",
    HealthStatus.WARNING: "yellow",
    HealthStatus.CRITICAL: "red",
}


class ReportRenderer:
    """Renders Iconforge reports as Rich terminal output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Validation and build
    # ------------------------------------------------------------------

    def render_validation(self, report: ValidationReport) -> Table:
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("Severity", width=10)
        table.add_column("Where", min_width=20)
        table.add_column("Finding")

        for v in report.violations:
            where = f"{v.section}/{v.name}" if v.name else v.section
            table.add_row("[bold red]ERROR[/bold red]", where, escape(f"[{v.code}] {v.message}"))
        for w in report.warnings:
            where = f"{w.section}/{w.name}" if w.name else w.section
            table.add_row("[yellow]WARN[/yellow]", where, escape(w.message))
        if not report.violations and not report.warnings:
            table.add_row("[green]OK[/green]", "-", "[dim]no findings[/dim]")
        return table

    def render_build(self, result: BuildResult) -> Panel:
        diff = result.diff
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("Section", min_width=12)
        table.add_column("Bundle", min_width=24)
        table.add_column("Icons", justify="right", width=7)
        table.add_column("Bytes", justify="right", width=9)
        table.add_column("Change", justify="center", width=11)

        dirty = set(diff.dirty)
        for section, entry in sorted(diff.candidate.sections.items()):
            change = "[yellow]changed[/yellow]" if section in dirty else "[green]unchanged[/green]"
            table.add_row(section, entry.file_name, str(len(entry.icons)), str(entry.size), change)
        for section in diff.removed:
            table.add_row(f"[dim]{section}[/dim]", "[dim]-[/dim]", "", "", "[red]removed[/red]")

        summary = (
            f"[bold]Version:[/bold] {diff.candidate.version}  |  "
            f"[bold]Previous:[/bold] {diff.previous_version or '-'}  |  "
            f"[bold]Dirty:[/bold] {len(diff.dirty)}  |  "
            f"[bold]Warnings:[/bold] {len(result.report.warnings)}"
        )
        return Panel(
            Group(table, Text(""), Text.from_markup(summary)),
            title="[bold]Iconforge Build[/bold]",
            border_style="blue",
            padding=(1, 2),
        )

    # ------------------------------------------------------------------
    # Deployments
    # ------------------------------------------------------------------

    def render_deployment(self, record: DeploymentRecord) -> Panel:
        lines = [
            f"[bold]Deployment:[/bold] {record.deployment_id}",
            f"[bold]Action:[/bold]     {record.action.value}",
            f"[bold]Version:[/bold]    {record.manifest_version}",
            f"[bold]Previous:[/bold]   {record.previous_version or '-'}",
            f"[bold]Uploaded:[/bold]   {len(record.uploaded)} objects",
            f"[bold]Unchanged:[/bold]  {', '.join(record.skipped) or '-'}",
            f"[bold]Invalidated:[/bold] {', '.join(record.invalidation_paths) or '-'}",
        ]
        if record.removed:
            lines.append(f"[bold]Removed:[/bold]    {', '.join(record.removed)}")
        if record.invalidation_error:
            lines.append(
                f"[yellow]Invalidation failed (manifest TTL bounds staleness): "
                f"{escape(record.invalidation_error)}[/yellow]"
            )
        border = "magenta" if record.action == DeployAction.ROLLBACK else "green"
        return Panel(
            "\n".join(lines),
            title=f"[bold]{record.environment}[/bold]",
            border_style=border,
            padding=(1, 2),
        )

    def render_history(self, entries: list[HistoryEntry], current: str | None = None) -> Table:
        table = Table(title="Manifest Version History", header_style="bold cyan", expand=True)
        table.add_column("Version", style="cyan")
        table.add_column("Action")
        table.add_column("Published")
        table.add_column("Current", justify="center", width=8)
        for entry in entries:
            action = (
                "[magenta]rollback[/magenta]"
                if entry.action == DeployAction.ROLLBACK
                else "deploy"
            )
            marker = "[green]*[/green]" if entry.version == current else ""
            table.add_row(
                entry.version,
                action,
                entry.published_at.strftime("%Y-%m-%d %H:%M:%S UTC"),
                marker,
            )
        return table

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def render_health(self, report: HealthReport) -> Panel:
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("Target", min_width=12)
        table.add_column("Status", justify="center", width=10)
        table.add_column("HTTP", justify="right", width=5)
        table.add_column("Latency", justify="right", width=10)
        table.add_column("Details")
        for probe in report.probes:
            table.add_row(
                probe.target,
                _STATUS_MARKUP[probe.status],
                str(probe.http_status) if probe.http_status is not None else "[dim]-[/dim]",
                f"{probe.latency_ms:.0f} ms",
                escape("; ".join(probe.messages)) or "[dim]-[/dim]",
            )
        return Panel(
            table,
            title=f"[bold]Icon Health: {_STATUS_MARKUP[report.status]}[/bold]",
            subtitle=f"Checked: {report.checked_at.strftime('%Y-%m-%d %H:%M:%S UTC')}",
            border_style=_STATUS_BORDER[report.status],
            padding=(1, 2),
        )

    # ------------------------------------------------------------------
    # Standalone print
    # ------------------------------------------------------------------

    def print_validation(self, report: ValidationReport) -> None:
        self.console.print(self.render_validation(report))

    def print_build(self, result: BuildResult) -> None:
        self.console.print(self.render_build(result))

    def print_deployment(self, record: DeploymentRecord) -> None:
        self.console.print(self.render_deployment(record))

    def print_history(self, entries: list[HistoryEntry], current: str | None = None) -> None:
        self.console.print(self.render_history(entries, current))

    def print_health(self, report: HealthReport) -> None:
        self.console.print(self.render_health(report))
