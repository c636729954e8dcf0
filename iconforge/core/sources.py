"""Icon source tree loading.

Layout::

    {root}/{section}/**/{name}.svg

Every direct subdirectory of *root* is a section.  Icons are collected
recursively so that nothing nested below a section escapes validation.
Directories starting with ``.`` or ``_`` are not sections; ``_critical``
conventionally holds the critical icons embedded at authoring time.
"""

from __future__ import annotations

import logging
from pathlib import Path

from iconforge.models.icons import IconSource

logger = logging.getLogger(__name__)

CRITICAL_DIR_NAME = "_critical"


def _is_section_dir(path: Path) -> bool:
    return path.is_dir() and not path.name.startswith((".", "_"))


def load_section(section_dir: Path) -> list[IconSource]:
    """Load every ``*.svg`` below *section_dir*, sorted by (name, path)."""
    section = section_dir.name
    sources: list[IconSource] = []
    for path in sorted(section_dir.rglob("*")):
        if not path.is_file():
            continue
        if path.suffix.lower() != ".svg":
            logger.debug("Ignoring non-SVG file %s", path)
            continue
        data = path.read_bytes()
        try:
            text, decode_error = data.decode("utf-8"), None
        except UnicodeDecodeError as exc:
            logger.warning("%s is not valid UTF-8: %s", path, exc)
            text, decode_error = "", f"not valid UTF-8: {exc.reason} at byte {exc.start}"
        sources.append(
            IconSource(
                section=section,
                name=path.stem,
                raw_content=text,
                byte_size=len(data),
                path=path,
                decode_error=decode_error,
            )
        )
    sources.sort(key=lambda s: (s.name, str(s.path)))
    return sources


def load_sources(root: Path) -> dict[str, list[IconSource]]:
    """Load the full source tree, grouped by section and sorted.

    Sections with no icons are kept (as empty lists) so the compiler can
    report them; the result never depends on filesystem iteration order.
    """
    root = Path(root)
    if not root.is_dir():
        raise FileNotFoundError(f"Icon source root not found: {root}")

    tree: dict[str, list[IconSource]] = {}
    for section_dir in sorted(root.iterdir()):
        if _is_section_dir(section_dir):
            tree[section_dir.name] = load_section(section_dir)

    logger.info(
        "Loaded %d icons across %d sections from %s",
        sum(len(v) for v in tree.values()),
        len(tree),
        root,
    )
    return tree
