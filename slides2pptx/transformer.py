#!/usr/bin/env python3
"""
DOM transformer that prepares a slide document for printing.

Three independent passes run over a freshly parsed copy of the document:

1. embedded ``<style>`` rules targeting ``i`` elements also target ``svg``;
2. Font Awesome ``<i>`` glyphs are replaced by inline SVG from the
   :class:`~slides2pptx.icon_catalog.IconCatalog`;
3. a print-safety style block is appended to ``<head>``.

The transform is deterministic and only walks the tree in document order.
"""
import logging
from typing import List, Optional

from bs4 import BeautifulSoup, Doctype, Tag

from .css_utils import PRINT_SAFETY_CSS, rewrite_glyph_selectors
from .icon_catalog import DEFAULT_STYLE_FAMILY, IconCatalog
from .models import IconGlyphMatch, VectorGlyph

logger = logging.getLogger(__name__)

GLYPH_PREFIX = "fa-"
PRINT_SAFETY_MARKER = "print-safety"

# Font Awesome style marker classes, checked brand first
_BRAND_MARKERS = {"fab", "fa-brands"}
_REGULAR_MARKERS = {"far", "fa-regular"}
_STYLE_CLASSES = {"fa", "fas", "far", "fab", "fa-solid", "fa-regular", "fa-brands"}

# Sizing / animation helpers that carry the fa- prefix but are not glyphs
_MODIFIER_CLASSES = {
    "fa-fw", "fa-xs", "fa-sm", "fa-lg", "fa-xl", "fa-2xs", "fa-2xl",
    "fa-border", "fa-pull-left", "fa-pull-right", "fa-li", "fa-ul",
    "fa-inverse", "fa-stack", "fa-stack-1x", "fa-stack-2x",
    "fa-spin", "fa-spin-pulse", "fa-spin-reverse", "fa-pulse", "fa-beat",
    "fa-beat-fade", "fa-bounce", "fa-fade", "fa-flip", "fa-shake",
    "fa-flip-horizontal", "fa-flip-vertical", "fa-flip-both",
    "fa-rotate-90", "fa-rotate-180", "fa-rotate-270", "fa-rotate-by",
    "fa-width-auto",
}
_MODIFIER_CLASSES.update(f"fa-{n}x" for n in range(1, 11))

SVG_BASE_STYLE = "height: 1em; width: {width}em; vertical-align: -0.125em; overflow: visible"


def find_glyph_class(classes: List[str]) -> Optional[str]:
    """Return the class naming the glyph (``fa-house``), if any."""
    for cls in classes:
        if not cls.startswith(GLYPH_PREFIX):
            continue
        if cls in _STYLE_CLASSES or cls in _MODIFIER_CLASSES:
            continue
        return cls
    return None


def style_family_for(classes: List[str]) -> str:
    class_set = set(classes)
    if class_set & _BRAND_MARKERS:
        return "brand"
    if class_set & _REGULAR_MARKERS:
        return "regular"
    return DEFAULT_STYLE_FAMILY


def match_glyph(element: Tag) -> Optional[IconGlyphMatch]:
    """Describe an ``<i>`` element as an icon glyph, or ``None``."""
    classes = list(element.get("class") or [])
    glyph_class = find_glyph_class(classes)
    if glyph_class is None:
        return None
    attributes = tuple(
        (name, value) for name, value in element.attrs.items()
        if name not in ("class", "style")
    )
    return IconGlyphMatch(
        style_family=style_family_for(classes),
        glyph_key=glyph_class[len(GLYPH_PREFIX):],
        carried_classes=tuple(classes),
        carried_attributes=attributes,
        carried_style=(element.get("style") or "").strip(),
    )


def _prefix_for(style_family: str) -> str:
    return {"solid": "fas", "regular": "far", "brand": "fab"}[style_family]


def _format_width(glyph: VectorGlyph) -> str:
    return f"{glyph.aspect_ratio:.4f}".rstrip("0").rstrip(".")


class DocumentTransformer:
    """Rewrite slide HTML so icon glyphs print as vectors."""

    def __init__(self, catalog: IconCatalog, debug: bool = False):
        self.catalog = catalog
        self.debug = debug

    def transform(self, source_document: str) -> str:
        """
        Return the rewritten document, starting with ``<!DOCTYPE html>``.

        Args:
            source_document: Raw HTML of one slide

        Returns:
            Rewritten HTML. Applying the transform to its own output changes
            nothing visible.
        """
        soup = BeautifulSoup(source_document, "html.parser")

        rules = self.rewrite_styles(soup)
        replaced, skipped = self.replace_glyphs(soup)
        self.inject_print_safety(soup)

        if self.debug:
            logger.debug(
                "🎨 %d style block(s) rewritten, %d icon(s) vectorized, %d left as-is",
                rules, replaced, skipped,
            )

        for node in list(soup.contents):
            if isinstance(node, Doctype):
                node.extract()
        return "<!DOCTYPE html>\n" + str(soup).lstrip()

    def rewrite_styles(self, soup: BeautifulSoup) -> int:
        updated = 0
        for style in soup.find_all("style"):
            css = style.string
            if css is None:
                continue
            rewritten = rewrite_glyph_selectors(str(css))
            if rewritten != css:
                style.string = rewritten
                updated += 1
        return updated

    def replace_glyphs(self, soup: BeautifulSoup):
        replaced = skipped = 0
        for element in soup.find_all("i", class_=True):
            match = match_glyph(element)
            if match is None:
                continue
            glyph = self.catalog.resolve(match.glyph_key, match.style_family)
            if glyph is None:
                skipped += 1
                if self.debug:
                    logger.debug(
                        "Unknown icon %s (%s), leaving element untouched",
                        match.glyph_key, match.style_family,
                    )
                continue
            element.replace_with(self.build_svg(soup, match, glyph))
            replaced += 1
        return replaced, skipped

    def build_svg(self, soup: BeautifulSoup, match: IconGlyphMatch, glyph: VectorGlyph) -> Tag:
        """Create the inline ``<svg>`` standing in for ``match``."""
        default_classes = ["svg-inline--fa", f"fa-{glyph.glyph_key}"]
        style = SVG_BASE_STYLE.format(width=_format_width(glyph))
        if match.carried_style:
            style = f"{style}; {match.carried_style}"

        attrs = {
            "class": " ".join(default_classes + list(match.carried_classes)),
            "aria-hidden": "true",
            "focusable": "false",
            "data-prefix": _prefix_for(glyph.style_family),
            "data-icon": glyph.glyph_key,
            "role": "img",
            "xmlns": "http://www.w3.org/2000/svg",
            "viewBox": glyph.view_box,
            "style": style,
        }
        for name, value in match.carried_attributes:
            attrs[name] = value

        svg = soup.new_tag("svg", attrs=attrs)
        for d in glyph.paths:
            svg.append(soup.new_tag("path", attrs={"fill": "currentColor", "d": d}))
        return svg

    def inject_print_safety(self, soup: BeautifulSoup) -> bool:
        """Append the print-safety block once. Returns True if added."""
        if soup.find("style", attrs={"data-slides2pptx": PRINT_SAFETY_MARKER}):
            return False

        head = soup.find("head")
        if head is None:
            head = soup.new_tag("head")
            html = soup.find("html")
            if html is not None:
                html.insert(0, head)
            else:
                soup.insert(0, head)

        style = soup.new_tag("style", attrs={"data-slides2pptx": PRINT_SAFETY_MARKER})
        style.string = PRINT_SAFETY_CSS
        head.append(style)
        return True
