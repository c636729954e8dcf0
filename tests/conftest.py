"""Shared test fixtures for Iconforge."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from iconforge.config import IconforgeConfig
from iconforge.core.critical import CriticalIconRegistry
from iconforge.core.deploy_ledger import DeployLedger
from iconforge.core.distribution import DistributionEngine
from iconforge.core.edge_cache import InvalidationError
from iconforge.core.object_store import LocalObjectStore, ObjectHead
from iconforge.core.pipeline import IconPipeline

SVG_NS = "http://www.w3.org/2000/svg"


def svg(d: str = "M0 0h24v24H0z", view_box: str = "0 0 24 24") -> str:
    """A minimal single-path icon."""
    return f'<svg xmlns="{SVG_NS}" viewBox="{view_box}"><path d="{d}"/></svg>'


# ---------------------------------------------------------------------------
# Collaborator doubles
# ---------------------------------------------------------------------------


class RecordingEdgeCache:
    """Edge cache that records every invalidation request."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []

    def invalidate(self, paths: list[str]) -> str:
        self.calls.append(list(paths))
        return f"inv-{len(self.calls)}"


class FailingEdgeCache:
    """Edge cache whose every invalidation fails."""

    def __init__(self) -> None:
        self.attempts = 0

    def invalidate(self, paths: list[str]) -> str:
        self.attempts += 1
        raise InvalidationError("distribution throttled")


class FlakyStore:
    """Wraps a store and fails ``put`` for keys matching *should_fail*.

    *times* bounds the number of failing attempts (``None`` fails forever).
    """

    def __init__(
        self,
        inner: LocalObjectStore,
        should_fail: Callable[[str], bool],
        times: int | None = None,
    ) -> None:
        self.inner = inner
        self._should_fail = should_fail
        self._remaining = times
        self.put_calls: list[str] = []

    def put(self, key, body, *, content_type, cache_control, content_encoding=None) -> ObjectHead:
        self.put_calls.append(key)
        if self._should_fail(key) and (self._remaining is None or self._remaining > 0):
            if self._remaining is not None:
                self._remaining -= 1
            raise OSError(f"simulated outage writing {key}")
        return self.inner.put(
            key,
            body,
            content_type=content_type,
            cache_control=cache_control,
            content_encoding=content_encoding,
        )

    def head(self, key: str) -> ObjectHead | None:
        return self.inner.head(key)

    def get(self, key: str) -> bytes | None:
        return self.inner.get(key)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def source_root(tmp_dir: Path) -> Path:
    root = tmp_dir / "icons"
    root.mkdir()
    return root


@pytest.fixture
def write_icons(source_root: Path) -> Callable[..., Path]:
    """Factory fixture: write ``{section: {name: markup}}`` under the source root."""

    def _write(tree: dict[str, dict[str, str]]) -> Path:
        for section, icons in tree.items():
            section_dir = source_root / section
            section_dir.mkdir(parents=True, exist_ok=True)
            for name, markup in icons.items():
                (section_dir / f"{name}.svg").write_text(markup, encoding="utf-8")
        return source_root

    return _write


@pytest.fixture
def registry() -> CriticalIconRegistry:
    """Critical icons ``logo`` and ``menu``, with markup for ``logo``."""
    return CriticalIconRegistry(["menu"], {"logo": svg("M12 2l10 20H2z")})


@pytest.fixture
def store(tmp_dir: Path) -> LocalObjectStore:
    """Provide a fresh LocalObjectStore in a temp directory."""
    return LocalObjectStore(tmp_dir / "public")


@pytest.fixture
def ledger(tmp_dir: Path) -> DeployLedger:
    """Provide a fresh DeployLedger backed by a temp SQLite database."""
    return DeployLedger(tmp_dir / "ledger.db")


@pytest.fixture
def edge_cache() -> RecordingEdgeCache:
    return RecordingEdgeCache()


@pytest.fixture
def engine(store, edge_cache, ledger) -> DistributionEngine:
    """DistributionEngine with no retry backoff."""
    return DistributionEngine(
        store,
        edge_cache,
        ledger,
        environment="test",
        upload_backoff_seconds=0,
    )


@pytest.fixture
def config(tmp_dir: Path, source_root: Path) -> IconforgeConfig:
    """Provide an IconforgeConfig pointing at temp paths (no .env file)."""
    return IconforgeConfig(
        _env_file=None,
        environment="test",
        source_root=source_root,
        ledger_path=tmp_dir / "ledger.db",
        local_store_path=tmp_dir / "public",
        critical_icons=["menu"],
        upload_backoff_seconds=0,
    )


@pytest.fixture
def pipeline(config, store, edge_cache, ledger, registry) -> IconPipeline:
    """IconPipeline wired to the shared store, ledger and edge cache."""
    return IconPipeline(
        config, store=store, edge_cache=edge_cache, ledger=ledger, registry=registry
    )


@pytest.fixture
def make_svg() -> Callable[..., str]:
    """Factory fixture: build minimal icon markup."""
    return svg


@pytest.fixture
def failing_edge_cache() -> FailingEdgeCache:
    return FailingEdgeCache()


@pytest.fixture
def flaky_store_cls() -> type[FlakyStore]:
    return FlakyStore
