"""Adversarial tests — broken source trees must never reach the store."""

from __future__ import annotations

import pytest

from iconforge.core.validator import ValidationError


class TestFailClosed:
    def test_nested_critical_icon_aborts_before_compile(
        self, pipeline, store, source_root, write_icons, make_svg
    ):
        write_icons({"core": {"cart": make_svg()}})
        hidden = source_root / "core" / "deep" / "deeper"
        hidden.mkdir(parents=True)
        (hidden / "logo.svg").write_text(make_svg(), encoding="utf-8")

        with pytest.raises(ValidationError) as excinfo:
            pipeline.deploy()
        assert [v.code for v in excinfo.value.violations] == ["reserved-name"]
        assert store.keys() == []

    def test_one_bad_section_blocks_every_section(self, pipeline, store, write_icons, make_svg):
        write_icons({
            "admin": {"gear": make_svg()},
            "core": {"Cart": make_svg()},
        })
        with pytest.raises(ValidationError):
            pipeline.deploy()
        assert store.keys() == []

    def test_malformed_markup_blocks_deploy(self, pipeline, store, write_icons, make_svg):
        write_icons({"core": {"cart": make_svg(), "user": "<svg><g></svg>"}})
        with pytest.raises(ValidationError):
            pipeline.build()
        assert store.keys() == []

    def test_failed_deploy_leaves_no_ledger_entry(self, pipeline, ledger, write_icons, make_svg):
        write_icons({"core": {"menu": make_svg()}})
        with pytest.raises(ValidationError):
            pipeline.deploy()
        assert ledger.list_versions("test") == []

    def test_undecodable_icon_blocks_deploy(
        self, pipeline, store, source_root, write_icons, make_svg
    ):
        write_icons({"core": {"user": make_svg()}})
        (source_root / "core" / "cart.svg").write_bytes(b"\xff\xfe" + make_svg().encode("utf-8"))
        with pytest.raises(ValidationError) as excinfo:
            pipeline.deploy()
        assert [(v.code, v.name) for v in excinfo.value.violations] == [("bad-svg", "cart")]
        assert store.keys() == []
