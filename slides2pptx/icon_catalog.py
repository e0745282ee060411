"""
Font Awesome icon catalog.

Maps a glyph name and style family to SVG path data. The catalog is read from
the Font Awesome free SVG tree (``svgs/solid``, ``svgs/regular``,
``svgs/brands``) once per run and is read-only afterwards.
"""
import json
import logging
import os
import re
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from .models import VectorGlyph

logger = logging.getLogger(__name__)

__all__ = ["IconCatalog", "STYLE_FAMILIES", "DEFAULT_STYLE_FAMILY"]

# style family -> directory name in the Font Awesome SVG tree
STYLE_FAMILIES = {
    "solid": "solid",
    "regular": "regular",
    "brand": "brands",
}
DEFAULT_STYLE_FAMILY = "solid"

_VIEWBOX_RE = re.compile(r'viewBox\s*=\s*"([^"]+)"', re.IGNORECASE)
_PATH_RE = re.compile(r'<path\b[^>]*?\sd\s*=\s*"([^"]+)"', re.IGNORECASE | re.DOTALL)


def _parse_svg(svg_text: str) -> Optional[Tuple[int, int, Tuple[str, ...]]]:
    """Return (width, height, paths) from a Font Awesome SVG file, or None."""
    viewbox = _VIEWBOX_RE.search(svg_text)
    paths = tuple(_PATH_RE.findall(svg_text))
    if not viewbox or not paths:
        return None
    parts = viewbox.group(1).replace(",", " ").split()
    if len(parts) != 4:
        return None
    try:
        width, height = (int(float(p)) for p in parts[2:])
    except ValueError:
        return None
    return width, height, paths


class IconCatalog:
    """Immutable lookup table of vector glyphs."""

    def __init__(self, glyphs: Mapping[Tuple[str, str], VectorGlyph]):
        self._glyphs = MappingProxyType(dict(glyphs))

    def __len__(self) -> int:
        return len(self._glyphs)

    def __contains__(self, key) -> bool:
        return key in self._glyphs

    def resolve(self, glyph_key: str, style_family: str = DEFAULT_STYLE_FAMILY) -> Optional[VectorGlyph]:
        """Look up a glyph. ``None`` means the element should be left alone."""
        return self._glyphs.get((style_family, glyph_key))

    @classmethod
    def from_directory(cls, root) -> "IconCatalog":
        """
        Build a catalog from a directory laid out like Font Awesome's ``svgs``.

        Alias names from ``metadata/icons.json`` next to that directory are
        registered when the file exists.
        """
        root = Path(root)
        glyphs: Dict[Tuple[str, str], VectorGlyph] = {}

        for family, dirname in STYLE_FAMILIES.items():
            style_dir = root / dirname
            if not style_dir.is_dir():
                logger.debug("No %s icons under %s", family, style_dir)
                continue
            for svg_path in sorted(style_dir.glob("*.svg")):
                try:
                    parsed = _parse_svg(svg_path.read_text(encoding="utf-8"))
                except (OSError, UnicodeDecodeError) as e:
                    logger.debug("Skipping unreadable icon %s: %s", svg_path, e)
                    continue
                if parsed is None:
                    logger.debug("Skipping malformed icon %s", svg_path)
                    continue
                width, height, paths = parsed
                key = svg_path.stem
                glyphs[(family, key)] = VectorGlyph(key, family, width, height, paths)

        aliases = _load_aliases(root.parent / "metadata" / "icons.json")
        for canonical, names in aliases.items():
            for family in STYLE_FAMILIES:
                glyph = glyphs.get((family, canonical))
                if glyph is None:
                    continue
                for name in names:
                    glyphs.setdefault(
                        (family, name),
                        VectorGlyph(name, family, glyph.width, glyph.height, glyph.paths),
                    )

        logger.debug("Loaded %d icon glyphs from %s", len(glyphs), root)
        return cls(glyphs)

    @classmethod
    def default(cls) -> "IconCatalog":
        """
        Load the catalog from ``SLIDES_ICON_DIR`` or from the SVGs shipped with
        the ``fontawesomefree`` distribution.
        """
        override = os.getenv("SLIDES_ICON_DIR")
        if override:
            return cls.from_directory(override)

        import fontawesomefree

        package_dir = Path(fontawesomefree.__file__).resolve().parent
        return cls.from_directory(package_dir / "static" / "fontawesomefree" / "svgs")


def _load_aliases(metadata_path: Path) -> Dict[str, Tuple[str, ...]]:
    if not metadata_path.is_file():
        return {}
    try:
        with open(metadata_path, "r", encoding="utf-8") as f:
            metadata = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("⚠️ Could not read icon metadata %s: %s", metadata_path, e)
        return {}

    aliases = {}
    for name, entry in metadata.items():
        names = ((entry or {}).get("aliases") or {}).get("names") or []
        if names:
            aliases[name] = tuple(names)
    return aliases
