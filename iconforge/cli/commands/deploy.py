"""``iconforge deploy`` — build and publish icon bundles.

Uploads changed bundles (with gzip and brotli variants), publishes the new
manifest atomically, invalidates the edge cache and records the deployment
in the ledger.  Any failure before the manifest write leaves the live
manifest untouched.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from iconforge.cli.options import load_config
from iconforge.core.distribution import (
    ManifestConflictError,
    ManifestPublishError,
    UploadError,
)
from iconforge.core.pipeline import IconPipeline
from iconforge.core.production_guard import ProductionConfigError
from iconforge.core.validator import ValidationError
from iconforge.monitor.renderer import ReportRenderer

console = Console()


def deploy_cmd(
    source: Path = typer.Option(
        None,
        "--source",
        "-s",
        help="Icon source root (one sub-directory per section).",
    ),
    environment: str = typer.Option(
        None,
        "--env",
        "-e",
        help="Target environment (defaults to ICONFORGE_ENVIRONMENT).",
    ),
) -> None:
    """Build and publish icon bundles to the configured environment."""
    config = load_config(source_root=source, environment=environment)
    renderer = ReportRenderer(console=console)
    try:
        pipeline = IconPipeline(config)
        result = pipeline.deploy()
    except ProductionConfigError as exc:
        console.print(f"[bold red]Configuration rejected:[/bold red] {exc}")
        raise typer.Exit(code=1)
    except FileNotFoundError as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1)
    except ValidationError as exc:
        console.print("[bold red]Deploy aborted: validation failed.[/bold red]")
        for violation in exc.violations:
            console.print(f"  - {violation}", style="red", markup=False)
        raise typer.Exit(code=1)
    except UploadError as exc:
        console.print(f"[bold red]Deploy aborted: upload failed.[/bold red] {exc}")
        for key, reason in sorted(exc.failures.items()):
            console.print(f"  [red]- {key}: {reason}[/red]")
        console.print("[dim]The live manifest was not changed.[/dim]")
        raise typer.Exit(code=1)
    except ManifestConflictError as exc:
        console.print(f"[bold red]Deploy aborted: manifest conflict.[/bold red] {exc}")
        raise typer.Exit(code=1)
    except ManifestPublishError as exc:
        console.print(f"[bold red]Deploy failed at manifest publish:[/bold red] {exc}")
        console.print("[dim]The previous manifest remains current.[/dim]")
        raise typer.Exit(code=1)

    renderer.print_build(result.build)
    renderer.print_deployment(result.record)
