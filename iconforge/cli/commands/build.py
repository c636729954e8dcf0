"""``iconforge build`` — compile bundles and diff against the live manifest.

A dry run of ``deploy``: validates, compiles and builds the candidate
manifest, then reports which sections changed.  Nothing is uploaded.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from iconforge.cli.options import load_config
from iconforge.core.pipeline import IconPipeline
from iconforge.core.production_guard import ProductionConfigError
from iconforge.core.validator import ValidationError
from iconforge.monitor.renderer import ReportRenderer

console = Console()


def build_cmd(
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
    """Compile sprite bundles and show what a deploy would change."""
    config = load_config(source_root=source, environment=environment)
    renderer = ReportRenderer(console=console)
    try:
        pipeline = IconPipeline(config)
        result = pipeline.build()
    except ProductionConfigError as exc:
        console.print(f"[bold red]Configuration rejected:[/bold red] {exc}")
        raise typer.Exit(code=1)
    except FileNotFoundError as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1)
    except ValidationError as exc:
        console.print("[bold red]Build aborted: validation failed.[/bold red]")
        for violation in exc.violations:
            console.print(f"  - {violation}", style="red", markup=False)
        raise typer.Exit(code=1)

    if result.report.warnings:
        renderer.print_validation(result.report)
    renderer.print_build(result)
