"""Critical icon registry.

Critical icons are embedded directly in page markup at authoring time so
that above-the-fold content never waits on a sprite download.  Their names
are reserved: no section may contain them, and the runtime resolver
refuses to resolve them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from iconforge.core.svg import normalize_svg

logger = logging.getLogger(__name__)


class CriticalIconRegistry:
    """A fixed set of reserved icon names, optionally with their markup.

    Parameters
    ----------
    names:
        Reserved names.
    markup:
        Optional raw SVG per name, served normalized by ``inline_markup``.
    """

    def __init__(
        self,
        names: Iterable[str] = (),
        markup: dict[str, str] | None = None,
    ) -> None:
        self._markup = dict(markup or {})
        self._names = frozenset(names) | frozenset(self._markup)

    @classmethod
    def from_directory(
        cls, directory: Path, extra_names: Iterable[str] = ()
    ) -> CriticalIconRegistry:
        """Build a registry from a directory of ``{name}.svg`` files."""
        directory = Path(directory)
        markup: dict[str, str] = {}
        if directory.is_dir():
            for path in sorted(directory.glob("*.svg")):
                markup[path.stem] = path.read_text(encoding="utf-8")
        else:
            logger.warning("Critical icon directory %s does not exist", directory)
        return cls(extra_names, markup)

    @property
    def names(self) -> frozenset[str]:
        return self._names

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __len__(self) -> int:
        return len(self._names)

    def inline_markup(self, name: str) -> str:
        """Return normalized SVG for embedding *name* directly in markup."""
        if name not in self._names:
            raise KeyError(f"{name!r} is not a critical icon")
        if name not in self._markup:
            raise KeyError(f"No markup registered for critical icon {name!r}")
        return normalize_svg(self._markup[name])
