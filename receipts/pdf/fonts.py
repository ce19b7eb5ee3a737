from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from reportlab.lib.fonts import tt2ps
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont, TTFError

from receipts.core.settings import FontSpec

logger = logging.getLogger(__name__)

BASE_FONT_SIZE = 8


@dataclass(frozen=True)
class FontSet:
    family: str
    regular: str
    bold: str
    italic: str
    bold_italic: str


HELVETICA = FontSet("Helvetica", "Helvetica", "Helvetica-Bold", "Helvetica-Oblique", "Helvetica-BoldOblique")


def _register_ttf_family(paths: Mapping[str, str]) -> FontSet:
    normal = paths.get("normal") or paths.get("regular")
    if not normal:
        raise ValueError("Font mapping needs a 'normal' TTF path")
    family = Path(normal).stem
    names = {}
    for style in ("normal", "bold", "italic", "bold_italic"):
        path = paths.get(style) or normal
        name = family if style == "normal" else f"{family}-{style}"
        if name not in pdfmetrics.getRegisteredFontNames():
            pdfmetrics.registerFont(TTFont(name, str(path)))
        names[style] = name
    pdfmetrics.registerFontFamily(
        family,
        normal=names["normal"],
        bold=names["bold"],
        italic=names["italic"],
        boldItalic=names["bold_italic"],
    )
    return FontSet(family, names["normal"], names["bold"], names["italic"], names["bold_italic"])


def _named_family(name: str) -> FontSet:
    # Registered family (standard 14 or registerFontFamily); single fonts map every style to themselves
    try:
        return FontSet(name, tt2ps(name, 0, 0), tt2ps(name, 1, 0), tt2ps(name, 0, 1), tt2ps(name, 1, 1))
    except ValueError:
        pdfmetrics.getFont(name)  # raises KeyError for unknown fonts
        return FontSet(name, name, name, name, name)


def resolve_fonts(spec: Optional[FontSpec]) -> FontSet:
    """Return the font family for a document. Falls back to Helvetica when the custom font cannot be loaded."""
    if not spec:
        return HELVETICA
    try:
        if isinstance(spec, Mapping):
            return _register_ttf_family(spec)
        return _named_family(str(spec))
    except (TTFError, OSError, KeyError, ValueError) as e:
        logger.warning("Could not use font %r, falling back to Helvetica: %s", spec, e)
        return HELVETICA
