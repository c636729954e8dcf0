"""Use-site dispatch over the closed icon variant.

Each use-site is classified once, at authoring time, as ``InlineIcon``,
``SpriteRef`` or ``DynamicTagRef``.  Nothing is inferred at run time: the
variant alone decides which path serves the icon.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, TypeAdapter

from iconforge.models.resolution import (
    DynamicTagRef,
    IconUse,
    InlineIcon,
    ResolutionMiss,
    SpriteRef,
)
from iconforge.runtime.dynamic_tags import DynamicTagResolver
from iconforge.runtime.resolver import RuntimeIconResolver

_USE_ADAPTER: TypeAdapter[IconUse] = TypeAdapter(IconUse)


class DynamicAsset(BaseModel):
    """A content-system asset picked through a dynamic tag."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["asset"] = "asset"
    category: str
    url: str


def parse_use(data: dict) -> InlineIcon | SpriteRef | DynamicTagRef:
    """Validate a serialized use-site (e.g. from a template) into its variant."""
    return _USE_ADAPTER.validate_python(data)


async def resolve_use(
    use: InlineIcon | SpriteRef | DynamicTagRef,
    *,
    runtime: RuntimeIconResolver | None = None,
    tags: DynamicTagResolver | None = None,
) -> InlineIcon | SpriteRef | DynamicAsset | ResolutionMiss:
    """Serve one use-site through the path its classification selects."""
    if isinstance(use, InlineIcon):
        return use

    if isinstance(use, SpriteRef):
        if runtime is None:
            raise ValueError("sprite use-sites need a RuntimeIconResolver")
        return await runtime.resolve(use.section, use.name)

    if isinstance(use, DynamicTagRef):
        if tags is None:
            raise ValueError("dynamic tag use-sites need a DynamicTagResolver")
        url = await tags.resolve(use.tags, use.category)
        if url is None:
            return ResolutionMiss(
                section=use.category, name=",".join(use.tags), reason="no matching tag"
            )
        return DynamicAsset(category=use.category, url=url)

    raise TypeError(f"Unknown icon use-site: {type(use).__name__}")
