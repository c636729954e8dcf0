"""Icon source and compiled bundle models (bundles are immutable)."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class IconSource(BaseModel):
    """A single authored SVG icon.

    Read-only to the pipeline: sources are loaded, validated and compiled,
    never rewritten.
    """

    model_config = ConfigDict(frozen=True)

    section: str
    name: str
    raw_content: str
    byte_size: int
    path: Path | None = None
    # Set when the file was not valid UTF-8; raw_content is empty then.
    decode_error: str | None = None

    @classmethod
    def from_markup(cls, section: str, name: str, markup: str) -> IconSource:
        """Build a source from in-memory markup (tests, tooling)."""
        return cls(
            section=section,
            name=name,
            raw_content=markup,
            byte_size=len(markup.encode("utf-8")),
        )


class Bundle(BaseModel):
    """The compiled sprite for one section.

    ``content_hash`` is the SHA-256 of ``content``, which is the normalized
    sprite document.  Identical source sets always produce identical
    bundles; a source change produces a new bundle, never a mutated one.
    """

    model_config = ConfigDict(frozen=True)

    section: str
    content_hash: str
    file_name: str
    symbol_ids: list[str]
    icon_names: list[str]
    byte_size: int
    content: bytes = Field(repr=False)
