"""Tests for the Validator — fail-closed naming, placement and size checks."""

from __future__ import annotations

import pytest

from iconforge.core.critical import CriticalIconRegistry
from iconforge.core.sources import load_sources
from iconforge.core.validator import ValidationError, Validator
from iconforge.models.icons import IconSource


def _tree(make_svg, **sections):
    return {
        section: [IconSource.from_markup(section, name, make_svg()) for name in names]
        for section, names in sections.items()
    }


@pytest.fixture
def validator(registry: CriticalIconRegistry) -> Validator:
    return Validator(registry, max_name_length=20, max_icon_bytes=200, max_bundle_bytes=1000)


class TestValidator:
    def test_clean_tree_is_ok(self, validator, make_svg):
        report = validator.validate(_tree(make_svg, core=["cart", "user-2"]))
        assert report.ok
        assert report.violations == []

    def test_reserved_name_is_fatal(self, validator, make_svg):
        report = validator.validate(_tree(make_svg, core=["cart", "logo"]))
        assert [v.code for v in report.violations] == ["reserved-name"]
        assert report.violations[0].name == "logo"

    @pytest.mark.parametrize("name", ["Cart", "cart_icon", "cart icon", "x" * 21])
    def test_bad_names(self, validator, make_svg, name):
        report = validator.validate(_tree(make_svg, core=[name]))
        assert [v.code for v in report.violations] == ["bad-name"]

    def test_bad_section_name(self, validator, make_svg):
        report = validator.validate(_tree(make_svg, Core=["cart"]))
        assert "bad-section" in [v.code for v in report.violations]

    def test_reserved_manifest_key_as_section(self, validator, make_svg):
        report = validator.validate(_tree(make_svg, version=["cart"]))
        assert [v.code for v in report.violations] == ["bad-section"]

    def test_duplicate_name_in_section(self, validator, make_svg):
        report = validator.validate(_tree(make_svg, core=["cart", "cart"]))
        assert [v.code for v in report.violations] == ["duplicate-name"]

    def test_same_name_in_two_sections_is_fine(self, validator, make_svg):
        assert validator.validate(_tree(make_svg, core=["cart"], shop=["cart"])).ok

    def test_malformed_svg_is_fatal(self, validator):
        tree = {"core": [IconSource.from_markup("core", "cart", "<svg><path></svg>")]}
        assert [v.code for v in validator.validate(tree).violations] == ["bad-svg"]

    def test_undecodable_source_is_fatal(self, validator, source_root, make_svg):
        section = source_root / "core"
        section.mkdir()
        (section / "cart.svg").write_bytes(b"\xff\xfe" + make_svg().encode("utf-8"))
        (section / "user.svg").write_text(make_svg(), encoding="utf-8")
        report = validator.validate(load_sources(source_root))
        assert [(v.code, v.name) for v in report.violations] == [("bad-svg", "cart")]
        with pytest.raises(ValidationError):
            report.raise_for_violations()

    def test_every_violation_is_reported(self, validator, make_svg):
        tree = _tree(make_svg, core=["logo", "Bad"])
        tree["core"].append(IconSource.from_markup("core", "broken", "not xml"))
        codes = sorted(v.code for v in validator.validate(tree).violations)
        assert codes == ["bad-name", "bad-svg", "reserved-name"]

    def test_oversized_icon_is_warning_not_violation(self, validator, make_svg):
        big = make_svg("M0 0" + " L1 1" * 100)
        tree = {"core": [IconSource.from_markup("core", "big", big)]}
        report = validator.validate(tree)
        assert report.ok
        assert len(report.warnings) == 1
        assert report.warnings[0].limit == 200

    def test_raise_for_violations(self, validator, make_svg):
        report = validator.validate(_tree(make_svg, core=["logo"]))
        with pytest.raises(ValidationError) as excinfo:
            report.raise_for_violations()
        assert excinfo.value.violations[0].code == "reserved-name"

    def test_raise_for_violations_passes_clean_report(self, validator, make_svg):
        validator.validate(_tree(make_svg, core=["cart"])).raise_for_violations()


class TestBundleBudget:
    def test_oversized_bundle_warns(self, validator, make_svg):
        from iconforge.core.sprite_compiler import SpriteCompiler

        sources = [
            IconSource.from_markup("core", f"i{n}", make_svg(f"M{n} {n}" + " L2 2" * 20))
            for n in range(10)
        ]
        bundle = SpriteCompiler().compile_section("core", sources)
        report = validator.check_bundles([bundle])
        assert report.ok
        assert len(report.warnings) == 1
        assert report.warnings[0].section == "core"
        assert report.warnings[0].name == ""
