"""Tests for the RollbackManager."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from iconforge.core.distribution import ManifestPublishError
from iconforge.core.manifest_builder import ManifestBuilder
from iconforge.core.rollback import RollbackError, RollbackManager, UnknownVersionError
from iconforge.core.sprite_compiler import SpriteCompiler
from iconforge.models.deployment import DeployAction
from iconforge.models.icons import IconSource

T0 = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


def _deploy(engine, make_svg, now, **sections):
    tree = {
        section: [IconSource.from_markup(section, name, make_svg(d)) for name, d in icons.items()]
        for section, icons in sections.items()
    }
    bundles = SpriteCompiler().compile_all(tree)
    diff = ManifestBuilder("test").build(bundles, engine.current_manifest(), now=now)
    return engine.deploy(diff, bundles)


@pytest.fixture
def manager(engine, ledger) -> RollbackManager:
    return RollbackManager(engine, ledger)


class TestRollback:
    def test_round_trip(self, engine, manager, store, edge_cache, make_svg):
        a = _deploy(engine, make_svg, T0, core={"cart": "M0 0"})
        manifest_a = engine.current_manifest()
        _deploy(engine, make_svg, T0 + timedelta(minutes=1), core={"cart": "M0 1"})
        keys_before = store.keys()

        record = manager.rollback(a.manifest_version, now=T0 + timedelta(minutes=2))

        current = engine.current_manifest()
        assert current.same_mapping(manifest_a)
        assert current.sections == manifest_a.sections
        assert current.version > record.previous_version
        assert record.action == DeployAction.ROLLBACK
        assert record.uploaded == []
        assert store.keys() == keys_before
        assert edge_cache.calls[-1] == ["manifest.json"]

    def test_history_lists_every_current_manifest(self, engine, manager, make_svg):
        a = _deploy(engine, make_svg, T0, core={"cart": "M0 0"})
        b = _deploy(engine, make_svg, T0 + timedelta(minutes=1), core={"cart": "M0 1"})
        r = manager.rollback(a.manifest_version, now=T0 + timedelta(minutes=2))
        history = manager.history()
        assert [h.version for h in history] == [a.manifest_version, b.manifest_version, r.manifest_version]
        assert history[-1].action == DeployAction.ROLLBACK

    def test_unknown_version(self, engine, manager, make_svg):
        _deploy(engine, make_svg, T0, core={"cart": "M0 0"})
        with pytest.raises(UnknownVersionError):
            manager.rollback("v19990101000000000000")

    def test_missing_bundle_refused(self, engine, manager, store, make_svg):
        a = _deploy(engine, make_svg, T0, core={"cart": "M0 0"})
        _deploy(engine, make_svg, T0 + timedelta(minutes=1), core={"cart": "M0 1"})
        (store.base_path / a.uploaded[0]).unlink()
        before = engine.current_manifest()

        with pytest.raises(RollbackError):
            manager.rollback(a.manifest_version)
        assert engine.current_manifest() == before

    def test_failed_write_keeps_current_manifest(
        self, store, ledger, edge_cache, flaky_store_cls, engine, make_svg
    ):
        from iconforge.core.distribution import DistributionEngine

        a = _deploy(engine, make_svg, T0, core={"cart": "M0 0"})
        _deploy(engine, make_svg, T0 + timedelta(minutes=1), core={"cart": "M0 1"})
        before = store.get("manifest.json")

        flaky = flaky_store_cls(store, lambda key: key == "manifest.json")
        broken = DistributionEngine(
            flaky, edge_cache, ledger, environment="test", upload_backoff_seconds=0
        )
        with pytest.raises(ManifestPublishError):
            RollbackManager(broken, ledger).rollback(a.manifest_version)
        assert store.get("manifest.json") == before
