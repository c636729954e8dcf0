"""Tests for SVG parsing and normalization."""

from __future__ import annotations

import pytest

from iconforge.core.svg import (
    SPRITE_OPEN,
    SvgStructureError,
    normalize_svg,
    parse_svg,
    sprite_document,
    symbol_markup,
)

NS = 'xmlns="http://www.w3.org/2000/svg"'


class TestParse:
    def test_accepts_svg_root(self):
        root = parse_svg(f'<svg {NS} viewBox="0 0 24 24"><path d="M0 0"/></svg>')
        assert root.tag.endswith("svg")

    def test_accepts_svg_without_namespace(self):
        parse_svg('<svg viewBox="0 0 24 24"><path d="M0 0"/></svg>')

    def test_rejects_malformed_xml(self):
        with pytest.raises(SvgStructureError, match="well-formed"):
            parse_svg("<svg><path></svg>")

    def test_rejects_non_svg_root(self):
        with pytest.raises(SvgStructureError, match="expected <svg>"):
            parse_svg("<html><body/></html>")


class TestSymbolMarkup:
    def test_symbol_id_and_view_box(self):
        root = parse_svg(f'<svg {NS} width="24" height="24" viewBox="0 0 24 24"><path d="M0 0"/></svg>')
        out = symbol_markup("cart", root)
        assert out == '<symbol id="icon-cart" viewBox="0 0 24 24"><path d="M0 0"/></symbol>'

    def test_view_box_derived_from_size(self):
        root = parse_svg(f'<svg {NS} width="16px" height="16px"><path d="M0 0"/></svg>')
        assert 'viewBox="0 0 16 16"' in symbol_markup("dot", root)

    def test_strips_metadata_comments_and_editor_attrs(self):
        markup = (
            '<?xml version="1.0"?>\n'
            '<!-- exported by an editor -->\n'
            f'<svg {NS} xmlns:inkscape="http://www.inkscape.org/namespaces/inkscape" '
            'viewBox="0 0 24 24" inkscape:version="1.2" data-name="Layer 1">\n'
            "  <title>Cart</title>\n"
            "  <metadata>stuff</metadata>\n"
            '  <path d="M0 0" inkscape:label="body"/>\n'
            "</svg>\n"
        )
        out = symbol_markup("cart", parse_svg(markup))
        assert out == '<symbol id="icon-cart" viewBox="0 0 24 24"><path d="M0 0"/></symbol>'

    def test_formatting_only_changes_do_not_change_output(self):
        a = f'<svg {NS} viewBox="0 0 24 24"><path fill="none" d="M0 0"/></svg>'
        b = (
            f'<svg   viewBox="0  0 24 24"\n   {NS}>\n'
            '    <path d="M0 0"   fill="none" />\n'
            "</svg>"
        )
        assert symbol_markup("x", parse_svg(a)) == symbol_markup("x", parse_svg(b))

    def test_structural_change_changes_output(self):
        a = f'<svg {NS} viewBox="0 0 24 24"><path d="M0 0"/></svg>'
        b = f'<svg {NS} viewBox="0 0 24 24"><path d="M0 1"/></svg>'
        assert symbol_markup("x", parse_svg(a)) != symbol_markup("x", parse_svg(b))

    def test_xlink_attributes_kept(self):
        markup = (
            f'<svg {NS} xmlns:xlink="http://www.w3.org/1999/xlink" viewBox="0 0 8 8">'
            '<use xlink:href="#a"/></svg>'
        )
        assert '<use xlink:href="#a"/>' in symbol_markup("x", parse_svg(markup))

    def test_attribute_values_escaped(self):
        markup = f'<svg {NS} viewBox="0 0 8 8"><text font-family="&quot;A&quot; &amp; B">x &lt; y</text></svg>'
        out = symbol_markup("x", parse_svg(markup))
        assert 'font-family="&quot;A&quot; &amp; B"' in out
        assert "x &lt; y" in out


class TestDocuments:
    def test_sprite_document_wraps_symbols_in_order(self):
        doc = sprite_document(["<symbol id=\"icon-a\"/>", "<symbol id=\"icon-b\"/>"])
        assert doc.startswith(SPRITE_OPEN)
        assert doc.index("icon-a") < doc.index("icon-b")
        assert doc.endswith("</svg>")

    def test_normalize_svg_is_standalone(self):
        out = normalize_svg(f'<svg {NS} width="24" height="24"><title>x</title><path d="M0 0"/></svg>')
        assert out == f'<svg viewBox="0 0 24 24" {NS}><path d="M0 0"/></svg>'

    def test_normalize_svg_declares_xlink_when_used(self):
        markup = (
            f'<svg {NS} xmlns:xlink="http://www.w3.org/1999/xlink" viewBox="0 0 8 8">'
            '<use xlink:href="#a"/></svg>'
        )
        assert 'xmlns:xlink="http://www.w3.org/1999/xlink"' in normalize_svg(markup)
