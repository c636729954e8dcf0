"""Sprite compiler — one content-addressed bundle per section.

A section's bundle is a pure function of its ``(name, raw_content)`` pairs
sorted by name: merge order, symbol ids and therefore the hash never depend
on filesystem iteration order.  Sections share no state, so they compile
in parallel and are joined before the manifest diff.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

from iconforge.core.hasher import bundle_file_name, sha256_hex
from iconforge.core.svg import parse_svg, sprite_document, symbol_markup
from iconforge.models.icons import Bundle, IconSource

logger = logging.getLogger(__name__)


class SpriteCompiler:
    """Compiles validated icon sources into section bundles.

    Parameters
    ----------
    hash_length:
        Number of hex digits of the content hash used in file names.
    max_workers:
        Upper bound on sections compiled concurrently.
    """

    def __init__(self, *, hash_length: int = 8, max_workers: int = 8) -> None:
        self._hash_length = hash_length
        self._max_workers = max(1, max_workers)

    def compile_section(self, section: str, sources: list[IconSource]) -> Bundle | None:
        """Compile one section.  Returns ``None`` for an empty section."""
        if not sources:
            logger.warning("Section %r has no icons; skipping", section)
            return None

        ordered = sorted(sources, key=lambda s: s.name)
        symbols = [symbol_markup(s.name, parse_svg(s.raw_content)) for s in ordered]
        content = sprite_document(symbols).encode("utf-8")
        content_hash = sha256_hex(content)

        bundle = Bundle(
            section=section,
            content_hash=content_hash,
            file_name=bundle_file_name(section, content_hash, self._hash_length),
            symbol_ids=[f"icon-{s.name}" for s in ordered],
            icon_names=[s.name for s in ordered],
            byte_size=len(content),
            content=content,
        )
        logger.debug(
            "Compiled %s: %d icons, %d bytes", bundle.file_name, len(ordered), bundle.byte_size
        )
        return bundle

    def compile_all(self, tree: dict[str, list[IconSource]]) -> dict[str, Bundle]:
        """Compile every section concurrently and join on all of them.

        Returns bundles keyed by section, in section order.  Empty sections
        are absent from the result.
        """
        sections = sorted(tree)
        if not sections:
            return {}

        workers = min(self._max_workers, len(sections))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="sprite") as pool:
            futures = {
                section: pool.submit(self.compile_section, section, tree[section])
                for section in sections
            }
            results = {section: future.result() for section, future in futures.items()}

        bundles = {section: b for section, b in results.items() if b is not None}
        logger.info("Compiled %d bundles from %d sections", len(bundles), len(sections))
        return bundles
