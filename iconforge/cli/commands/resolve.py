"""``iconforge resolve SECTION NAME`` and ``iconforge inline NAME``.

``resolve`` looks an icon up the way a client would, against the published
manifest.  ``inline`` prints the markup a page embeds for a critical icon.
"""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console

from iconforge.cli.options import load_config
from iconforge.core.pipeline import build_registry
from iconforge.models.resolution import ResolutionMiss
from iconforge.runtime.resolver import CriticalIconResolutionError, RuntimeIconResolver

console = Console()


def resolve_cmd(
    section: str = typer.Argument(..., help="Section the icon is published in."),
    name: str = typer.Argument(..., help="Icon name."),
    cdn_base_url: str = typer.Option(
        None,
        "--cdn",
        help="Base URL serving the manifest and bundles.",
    ),
) -> None:
    """Resolve an icon to its bundle URL and symbol id."""
    config = load_config(cdn_base_url=cdn_base_url)
    registry = build_registry(config)

    async def _resolve():
        async with RuntimeIconResolver.from_config(config, registry) as resolver:
            return await resolver.resolve(section, name)

    try:
        result = asyncio.run(_resolve())
    except CriticalIconResolutionError as exc:
        console.print(f"[bold yellow]{exc}[/bold yellow]")
        console.print(f"[dim]Use: iconforge inline {name}[/dim]")
        raise typer.Exit(code=1)

    if isinstance(result, ResolutionMiss):
        console.print(f"[bold red]Not found:[/bold red] {section}/{name} ({result.reason})")
        raise typer.Exit(code=1)
    console.print(result.href, soft_wrap=True, highlight=False)


def inline_cmd(
    name: str = typer.Argument(..., help="Critical icon name."),
) -> None:
    """Print the inline markup for a critical icon."""
    registry = build_registry(load_config())
    try:
        markup = registry.inline_markup(name)
    except KeyError:
        console.print(f"[bold red]{name!r} is not a critical icon with known markup.[/bold red]")
        raise typer.Exit(code=1)
    console.print(markup, markup=False, soft_wrap=True, highlight=False)
