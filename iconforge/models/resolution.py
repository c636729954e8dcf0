"""Icon use-site variants.

Whether an icon is embedded inline, referenced from a sprite, or looked up
through a dynamic tag is decided once per use-site at authoring time.  The
three cases form a closed union discriminated on ``kind``.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class InlineIcon(BaseModel):
    """A critical icon embedded directly in the page markup."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["inline"] = "inline"
    name: str
    markup: str


class SpriteRef(BaseModel):
    """A reference to a symbol inside a published section bundle.

    At a use-site only ``section`` and ``name`` are known; ``url`` and
    ``symbol_id`` are filled in by the runtime resolver.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["sprite"] = "sprite"
    section: str
    name: str
    url: str = ""
    symbol_id: str = ""

    @property
    def href(self) -> str:
        return f"{self.url}#{self.symbol_id}"

    @property
    def resolved(self) -> bool:
        return bool(self.url and self.symbol_id)


class DynamicTagRef(BaseModel):
    """An asset picked by the first matching tag in a content category."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["dynamic"] = "dynamic"
    category: str
    tags: list[str]


class ResolutionMiss(BaseModel):
    """Runtime "not found".  The caller renders a placeholder."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["miss"] = "miss"
    section: str
    name: str
    reason: str = "not found"


IconUse = Annotated[
    Union[InlineIcon, SpriteRef, DynamicTagRef],
    Field(discriminator="kind"),
]
