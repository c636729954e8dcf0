"""``iconforge rollback VERSION`` and ``iconforge history``.

Rollback republishes a previously current manifest.  Bundles are never
touched: they are immutable and still in the store.
"""

from __future__ import annotations

import typer
from rich.console import Console

from iconforge.cli.options import load_config
from iconforge.core.distribution import ManifestConflictError, ManifestPublishError
from iconforge.core.pipeline import IconPipeline
from iconforge.core.production_guard import ProductionConfigError
from iconforge.core.rollback import RollbackError, UnknownVersionError
from iconforge.monitor.renderer import ReportRenderer

console = Console()


def _pipeline(environment: str | None) -> IconPipeline:
    try:
        return IconPipeline(load_config(environment=environment))
    except ProductionConfigError as exc:
        console.print(f"[bold red]Configuration rejected:[/bold red] {exc}")
        raise typer.Exit(code=1)


def rollback_cmd(
    version: str = typer.Argument(
        ...,
        help="Manifest version to make current again.",
    ),
    environment: str = typer.Option(
        None,
        "--env",
        "-e",
        help="Target environment (defaults to ICONFORGE_ENVIRONMENT).",
    ),
) -> None:
    """Republish a previously current manifest version."""
    pipeline = _pipeline(environment)
    renderer = ReportRenderer(console=console)
    try:
        record = pipeline.rollback(version)
    except UnknownVersionError as exc:
        console.print(f"[bold red]Unknown version:[/bold red] {exc}")
        entries = pipeline.rollback_manager.history()
        if entries:
            console.print("\n[bold]Known versions:[/bold]")
            for entry in entries[-10:]:
                console.print(f"  [cyan]{entry.version}[/cyan]")
        raise typer.Exit(code=1)
    except (RollbackError, ManifestConflictError, ManifestPublishError) as exc:
        console.print(f"[bold red]Rollback failed:[/bold red] {exc}")
        console.print("[dim]The previous manifest remains current.[/dim]")
        raise typer.Exit(code=1)

    renderer.print_deployment(record)


def history_cmd(
    environment: str = typer.Option(
        None,
        "--env",
        "-e",
        help="Target environment (defaults to ICONFORGE_ENVIRONMENT).",
    ),
    verify_chain: bool = typer.Option(
        False,
        "--verify-chain",
        "-V",
        help="Verify the deploy ledger hash chain.",
    ),
) -> None:
    """Show the manifest version history."""
    pipeline = _pipeline(environment)
    env = pipeline.engine.environment
    entries = pipeline.rollback_manager.history()
    if not entries:
        console.print(f"[dim]No manifest versions recorded for {env}.[/dim]")
        return

    current = pipeline.engine.current_manifest()
    ReportRenderer(console=console).print_history(
        entries, current.version if current else None
    )

    if verify_chain:
        if pipeline.ledger.verify_chain(env):
            console.print("[bold green]Ledger chain: VALID[/bold green]")
        else:
            console.print("[bold red]Ledger chain: BROKEN[/bold red]")
            raise typer.Exit(code=1)
