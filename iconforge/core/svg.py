"""SVG parsing and normalization.

Normalization removes everything that does not affect rendering (comments,
editor metadata, insignificant whitespace, attribute order) so that
formatting-only edits leave a bundle's hash unchanged while any structural
or visual change alters it.

The serializer is hand-written rather than ``ElementTree.tostring`` because
the output must be byte-stable: attributes are emitted sorted, namespaces
are collapsed to plain SVG names, and empty elements always self-close.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from xml.sax.saxutils import escape

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"

SPRITE_OPEN = (
    f'<svg xmlns="{SVG_NS}" xmlns:xlink="{XLINK_NS}" style="display:none">'
)
SPRITE_CLOSE = "</svg>"

# Elements that carry no rendering information.
_STRIP_ELEMENTS = frozenset({"metadata", "title", "desc"})

# Root attributes that a <symbol> does not need (sizing comes from viewBox).
_STRIP_ROOT_ATTRS = frozenset(
    {"width", "height", "version", "id", "x", "y", "baseProfile", "enable-background"}
)

_ATTR_ENTITIES = {'"': "&quot;"}

_NUMBER = re.compile(r"^\s*([0-9]*\.?[0-9]+)")


class SvgStructureError(ValueError):
    """Raised when markup is not well-formed XML with an ``<svg>`` root."""


def _split(tag: str) -> tuple[str, str]:
    """Split an ElementTree ``{ns}local`` name into (ns, local)."""
    if tag.startswith("{"):
        ns, _, local = tag[1:].partition("}")
        return ns, local
    return "", tag


def parse_svg(markup: str) -> ET.Element:
    """Parse *markup* and return its ``<svg>`` root element."""
    try:
        root = ET.fromstring(markup.encode("utf-8"))
    except ET.ParseError as exc:
        raise SvgStructureError(f"not well-formed XML: {exc}") from exc
    ns, local = _split(root.tag)
    if local != "svg" or ns not in ("", SVG_NS):
        raise SvgStructureError(f"root element is <{local}>, expected <svg>")
    return root


def _clean_attrs(elem: ET.Element, *, is_root: bool) -> dict[str, str]:
    attrs: dict[str, str] = {}
    for key, value in elem.attrib.items():
        ns, local = _split(key)
        if ns == XLINK_NS:
            attrs[f"xlink:{local}"] = value
            continue
        if ns:
            # xml:space, inkscape:*, sodipodi:* and friends
            continue
        if local.startswith("data-"):
            continue
        if is_root and local in _STRIP_ROOT_ATTRS:
            continue
        attrs[local] = " ".join(value.split())
    return attrs


def _collapse(text: str | None) -> str:
    if not text or not text.strip():
        return ""
    return escape(" ".join(text.split()))


def _format_attrs(attrs: dict[str, str]) -> str:
    return "".join(
        f' {key}="{escape(attrs[key], _ATTR_ENTITIES)}"' for key in sorted(attrs)
    )


def _serialize_children(elem: ET.Element, out: list[str]) -> None:
    text = _collapse(elem.text)
    if text:
        out.append(text)
    for child in elem:
        _serialize(child, out)


def _serialize(elem: ET.Element, out: list[str]) -> None:
    ns, local = _split(elem.tag)
    tail = _collapse(elem.tail)
    if (ns and ns != SVG_NS) or local in _STRIP_ELEMENTS:
        if tail:
            out.append(tail)
        return

    attrs = _format_attrs(_clean_attrs(elem, is_root=False))
    inner: list[str] = []
    _serialize_children(elem, inner)
    if inner:
        out.append(f"<{local}{attrs}>{''.join(inner)}</{local}>")
    else:
        out.append(f"<{local}{attrs}/>")
    if tail:
        out.append(tail)


def _view_box(root: ET.Element) -> str | None:
    view_box = root.get("viewBox")
    if view_box:
        return " ".join(view_box.replace(",", " ").split())
    width, height = root.get("width"), root.get("height")
    if width and height:
        w, h = _NUMBER.match(width), _NUMBER.match(height)
        if w and h:
            return f"0 0 {w.group(1)} {h.group(1)}"
    return None


def _root_parts(root: ET.Element) -> tuple[dict[str, str], str]:
    attrs = _clean_attrs(root, is_root=True)
    attrs.pop("viewBox", None)
    view_box = _view_box(root)
    if view_box:
        attrs["viewBox"] = view_box
    body: list[str] = []
    _serialize_children(root, body)
    return attrs, "".join(body)


def symbol_markup(name: str, root: ET.Element) -> str:
    """Render a parsed icon as a ``<symbol id="icon-{name}">`` element."""
    attrs, body = _root_parts(root)
    attrs["id"] = f"icon-{name}"
    return f"<symbol{_format_attrs(attrs)}>{body}</symbol>"


def normalize_svg(markup: str) -> str:
    """Return a normalized standalone ``<svg>`` for inline embedding."""
    attrs, body = _root_parts(parse_svg(markup))
    attrs["xmlns"] = SVG_NS
    if "xlink:" in body:
        attrs["xmlns:xlink"] = XLINK_NS
    return f"<svg{_format_attrs(attrs)}>{body}</svg>"


def sprite_document(symbols: list[str]) -> str:
    """Wrap pre-ordered symbol elements in the sprite container."""
    return SPRITE_OPEN + "".join(symbols) + SPRITE_CLOSE
