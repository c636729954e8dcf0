"""``iconforge validate`` — check the icon source tree without building.

Runs every validation rule and prints the findings.  Nothing is compiled
and nothing is written.  Exits 1 when any fatal violation is found.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from iconforge.cli.options import load_config
from iconforge.core.pipeline import build_registry
from iconforge.core.sources import load_sources
from iconforge.core.validator import Validator
from iconforge.monitor.renderer import ReportRenderer

console = Console()


def validate_cmd(
    source: Path = typer.Option(
        None,
        "--source",
        "-s",
        help="Icon source root (one sub-directory per section).",
    ),
) -> None:
    """Validate icon names, markup and sizes."""
    config = load_config(source_root=source)
    try:
        tree = load_sources(config.source_root)
    except FileNotFoundError as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1)

    validator = Validator(
        build_registry(config),
        max_name_length=config.max_name_length,
        max_icon_bytes=config.max_icon_bytes,
        max_bundle_bytes=config.max_bundle_bytes,
    )
    report = validator.validate(tree)
    ReportRenderer(console=console).print_validation(report)

    icon_count = sum(len(sources) for sources in tree.values())
    if not report.ok:
        console.print(
            f"[bold red]{len(report.violations)} violation(s)[/bold red] "
            f"in {icon_count} icons across {len(tree)} sections."
        )
        raise typer.Exit(code=1)
    console.print(
        f"[bold green]Valid:[/bold green] {icon_count} icons across {len(tree)} sections "
        f"({len(report.warnings)} warning(s))."
    )
