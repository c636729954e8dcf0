"""Main Typer application — imports and registers all CLI commands.

Entry point: ``iconforge`` (configured via pyproject.toml project.scripts).

Commands: validate, build, deploy, rollback, history, health, resolve,
inline.
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from iconforge.cli.commands.build import build_cmd
from iconforge.cli.commands.deploy import deploy_cmd
from iconforge.cli.commands.health import health_cmd
from iconforge.cli.commands.resolve import inline_cmd, resolve_cmd
from iconforge.cli.commands.rollback import history_cmd, rollback_cmd
from iconforge.cli.commands.validate import validate_cmd
from iconforge.cli.options import load_config

app = typer.Typer(
    name="iconforge",
    help="Iconforge: validate, bundle and distribute SVG icon sprites.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="validate", help="Validate the icon source tree.")(validate_cmd)
app.command(name="build", help="Compile bundles and diff against the live manifest.")(build_cmd)
app.command(name="deploy", help="Build and publish bundles and the manifest.")(deploy_cmd)
app.command(name="rollback", help="Republish a previous manifest version.")(rollback_cmd)
app.command(name="history", help="Show the manifest version history.")(history_cmd)
app.command(name="health", help="Probe the published manifest and bundles.")(health_cmd)
app.command(name="resolve", help="Resolve an icon against the published manifest.")(resolve_cmd)
app.command(name="inline", help="Print inline markup for a critical icon.")(inline_cmd)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to ICONFORGE_LOG_LEVEL).",
    ),
) -> None:
    """Configure logging before any command runs."""
    level = (log_level or load_config().log_level).upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
