"""Tests for the SpriteCompiler — determinism and content addressing."""

from __future__ import annotations

import random

from iconforge.core.hasher import sha256_hex
from iconforge.core.sprite_compiler import SpriteCompiler
from iconforge.models.icons import IconSource


def _sources(section: str, icons: dict[str, str]) -> list[IconSource]:
    return [IconSource.from_markup(section, name, markup) for name, markup in icons.items()]


class TestCompileSection:
    def test_bundle_shape(self, make_svg):
        bundle = SpriteCompiler().compile_section(
            "core", _sources("core", {"user": make_svg(), "cart": make_svg("M1 1")})
        )
        assert bundle.symbol_ids == ["icon-cart", "icon-user"]
        assert bundle.icon_names == ["cart", "user"]
        assert bundle.file_name == f"sprite-core-{bundle.content_hash[:8]}"
        assert bundle.content_hash == sha256_hex(bundle.content)
        assert bundle.byte_size == len(bundle.content)
        assert b'id="icon-cart"' in bundle.content

    def test_hash_length_is_configurable(self, make_svg):
        bundle = SpriteCompiler(hash_length=12).compile_section(
            "core", _sources("core", {"cart": make_svg()})
        )
        assert bundle.file_name == f"sprite-core-{bundle.content_hash[:12]}"

    def test_deterministic_across_runs_and_input_order(self, make_svg):
        icons = {f"icon-{n}": make_svg(f"M{n} 0") for n in range(12)}
        sources = _sources("core", icons)
        shuffled = list(sources)
        random.Random(7).shuffle(shuffled)

        compiler = SpriteCompiler()
        first = compiler.compile_section("core", sources)
        second = compiler.compile_section("core", shuffled)
        assert first.content_hash == second.content_hash
        assert first.file_name == second.file_name
        assert first.content == second.content

    def test_formatting_only_edit_keeps_hash(self, make_svg):
        compiler = SpriteCompiler()
        a = compiler.compile_section("core", _sources("core", {"cart": make_svg()}))
        reformatted = make_svg().replace("><path", ">\n  <!-- body -->\n  <path").replace(
            "/></svg>", " />\n</svg>\n"
        )
        b = compiler.compile_section("core", _sources("core", {"cart": reformatted}))
        assert a.content_hash == b.content_hash

    def test_content_change_changes_hash(self, make_svg):
        compiler = SpriteCompiler()
        a = compiler.compile_section("core", _sources("core", {"cart": make_svg("M0 0")}))
        b = compiler.compile_section("core", _sources("core", {"cart": make_svg("M0 1")}))
        assert a.content_hash != b.content_hash
        assert a.file_name != b.file_name

    def test_empty_section_is_skipped(self):
        assert SpriteCompiler().compile_section("empty", []) is None


class TestCompileAll:
    def test_one_bundle_per_non_empty_section(self, make_svg):
        tree = {
            "core": _sources("core", {"cart": make_svg()}),
            "admin": _sources("admin", {"gear": make_svg("M2 2")}),
            "empty": [],
        }
        bundles = SpriteCompiler(max_workers=4).compile_all(tree)
        assert list(bundles) == ["admin", "core"]

    def test_changing_one_section_leaves_others_untouched(self, make_svg):
        compiler = SpriteCompiler()
        base = {
            "core": {"cart": make_svg(), "user": make_svg("M1 1")},
            "admin": {"gear": make_svg("M2 2")},
        }
        before = compiler.compile_all({s: _sources(s, i) for s, i in base.items()})

        base["core"]["user"] = make_svg("M9 9")
        after = compiler.compile_all({s: _sources(s, i) for s, i in base.items()})

        assert before["core"].content_hash != after["core"].content_hash
        assert before["admin"].content_hash == after["admin"].content_hash

    def test_empty_tree(self):
        assert SpriteCompiler().compile_all({}) == {}
