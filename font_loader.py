"""
font_loader.py - Locate a Japanese-capable system font and describe it for rendering.

fontTools is used to look inside candidate files: TrueType collections are
searched for a face reportlab can embed (TrueType outlines), and the face's
PostScript name is kept for logging. CFF-flavoured faces are skipped.

The result is a FontConfig value that is handed to every render call.
"""
import logging
import os
import sys
from dataclasses import dataclass
from typing import Optional

from fontTools.ttLib import TTCollection, TTFont
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont as ReportLabTTFont

import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FontConfig:
    """Fonts used by the layout engine for body text and code."""
    default_font: str = config.DEFAULT_FONT
    code_font: str = config.DEFAULT_CODE_FONT
    path: Optional[str] = None
    subfont_index: int = 0
    postscript_name: Optional[str] = None

    @property
    def is_custom(self) -> bool:
        return self.path is not None


@dataclass(frozen=True)
class FontCandidate:
    name: str
    paths: tuple


_HOME = os.path.expanduser("~")

_FONT_CANDIDATES = {
    "windows": [
        FontCandidate("YuGothic", (
            "C:\\Windows\\Fonts\\YuGothR.ttf",
            "C:\\Windows\\Fonts\\yugothic.ttf",
        )),
        FontCandidate("Meiryo", ("C:\\Windows\\Fonts\\meiryo.ttf",)),
        FontCandidate("MSGothic", ("C:\\Windows\\Fonts\\msgothic.ttf",)),
    ],
    "macos": [
        FontCandidate("HiraginoKakuGothic", (
            "/System/Library/Fonts/ヒラギノ角ゴシック W6.ttc",
            "/System/Library/Fonts/ヒラギノ角ゴシック W3.ttc",
        )),
        FontCandidate("BIZUDPGothic", (
            os.path.join(_HOME, "Library/Fonts/BIZUDPGothic-Regular.ttf"),
            "/Library/Fonts/BIZUDPGothic-Regular.ttf",
        )),
    ],
    "linux": [
        FontCandidate("NotoSansCJKJP", (
            "/usr/share/fonts/opentype/noto/NotoSansCJK-Regular.ttc",
            "/usr/share/fonts/noto-cjk/NotoSansCJK-Regular.ttc",
            "/usr/share/fonts/google-noto-cjk/NotoSansCJK-Regular.ttc",
            "/usr/share/fonts/truetype/noto/NotoSansCJK-Regular.ttc",
            "/usr/share/fonts/OTF/NotoSansCJK-Regular.ttc",
        )),
        FontCandidate("IPAGothic", (
            "/usr/share/fonts/ipa-gothic/ipag.ttf",
            "/usr/share/fonts/truetype/ipa-gothic/ipag.ttf",
            "/usr/share/fonts/opentype/ipafont-gothic/ipag.ttf",
        )),
    ],
    "unknown": [],
}


def detect_os() -> str:
    if sys.platform.startswith("win"):
        return "windows"
    if sys.platform == "darwin":
        return "macos"
    if sys.platform.startswith("linux"):
        return "linux"
    return "unknown"


def find_font(os_name: Optional[str] = None, candidates: Optional[dict] = None) -> FontConfig:
    """Return the first usable candidate font, or the Helvetica fallback."""
    os_name = os_name or detect_os()
    table = candidates if candidates is not None else _FONT_CANDIDATES

    for candidate in table.get(os_name, []):
        for path in candidate.paths:
            if not os.path.exists(path):
                continue
            face = _select_face(path)
            if face is None:
                logger.debug("No embeddable face in %s", path)
                continue
            index, ps_name = face
            logger.info("Using font %s from %s (face %d, PostScript: %s)",
                        candidate.name, path, index, ps_name)
            return FontConfig(
                default_font=candidate.name,
                code_font=candidate.name,
                path=path,
                subfont_index=index,
                postscript_name=ps_name,
            )

    logger.info("No Japanese font found on %s, using %s", os_name, config.DEFAULT_FONT)
    return FontConfig()


def _select_face(path: str):
    """(face index, PostScript name) of the first TrueType-outline face."""
    try:
        if path.lower().endswith(".ttc"):
            ttc = TTCollection(path, lazy=True)
            try:
                for index, face in enumerate(ttc.fonts):
                    if "glyf" in face:
                        return index, _postscript_name(face)
            finally:
                ttc.close()
            return None

        tt = TTFont(path, lazy=True)
        try:
            if "glyf" not in tt:
                return None
            return 0, _postscript_name(tt)
        finally:
            tt.close()
    except Exception as e:
        logger.warning("Could not read font file '%s': %s", path, e)
        return None


def _postscript_name(tt) -> Optional[str]:
    if "name" not in tt:
        return None
    return tt["name"].getDebugName(6)


def register_fonts(fonts: FontConfig) -> None:
    """Make the configured fonts known to reportlab.

    Safe to call before every render; the standard faces need nothing.
    """
    if not fonts.is_custom:
        return
    if fonts.default_font not in pdfmetrics.getRegisteredFontNames():
        pdfmetrics.registerFont(
            ReportLabTTFont(fonts.default_font, fonts.path, subfontIndex=fonts.subfont_index)
        )
    # One face stands in for every style
    pdfmetrics.registerFontFamily(
        fonts.default_font,
        normal=fonts.default_font,
        bold=fonts.default_font,
        italic=fonts.default_font,
        boldItalic=fonts.default_font,
    )
