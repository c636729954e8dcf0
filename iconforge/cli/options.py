"""Shared option handling for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from iconforge.config import IconforgeConfig


def load_config(**overrides: Any) -> IconforgeConfig:
    """Build the config, letting explicit command-line options win.

    Options left at ``None`` fall through to ICONFORGE_* variables and the
    .env file.
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    if "source_root" in values:
        values["source_root"] = Path(values["source_root"])
    return IconforgeConfig(**values)
