"""
PDF: text extraction with pypdf, output laid out with reportlab.

The output is a plain re-typeset document: translated text wrapped to the
page width in a single font chosen by target language and glyph coverage.
"""
from __future__ import annotations

import io
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional

import structlog
from pypdf import PdfReader
from reportlab.lib.pagesizes import letter
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.pdfbase.ttfonts import TTFError, TTFont
from reportlab.pdfgen import canvas

from ..exceptions import ReconstructionFailure
from ..fonts import CID_FONTS, SYSTEM_FONT_FILES, font_file_for
from .base import DocumentKind, TextDocumentHandler, TranslationContext

logger = structlog.get_logger()

FONT_SIZE = 11
MARGIN = 50
LINE_HEIGHT = FONT_SIZE * 1.5
FALLBACK_FONT = "Helvetica"
STANDARD_FONT_ENCODING = "cp1252"
MISSING_PREVIEW_CHARS = 10

# resolved font file path -> registered reportlab name
_ttf_names: Dict[str, str] = {}


def extract_pdf_text(data: bytes) -> str:
    """Concatenate the text of every page, pages separated by a blank line."""
    reader = PdfReader(io.BytesIO(data))
    return "\n\n".join(page.extract_text() or "" for page in reader.pages)


def wrap_text(text: str, max_width: float, measure: Callable[[str], float]) -> List[str]:
    """
    Greedy word wrap.

    Words are added to the current line while its measured width stays under
    ``max_width``. A newline in the source always ends the current line.
    """
    words = text.replace("\n", " \n ").split(" ")
    lines: List[str] = []
    current = ""

    for word in words:
        if word == "\n":
            lines.append(current)
            current = ""
            continue

        candidate = word if current == "" else f"{current} {word}"
        if current and measure(candidate) >= max_width:
            lines.append(current)
            current = word
        else:
            current = candidate

    lines.append(current)
    return lines


def _register_ttf(path: Path) -> Optional[str]:
    """Register a TTF once per file and return its reportlab name, or None if unusable."""
    key = str(path.resolve())
    if key in _ttf_names:
        return _ttf_names[key]
    if not path.is_file():
        return None

    font_name = path.stem
    if font_name in pdfmetrics.getRegisteredFontNames():
        font_name = f"{font_name}-{len(_ttf_names)}"
    try:
        pdfmetrics.registerFont(TTFont(font_name, key))
    except (TTFError, OSError) as e:
        logger.warning("Unreadable font file", font_path=key, error=str(e))
        return None

    _ttf_names[key] = font_name
    return font_name


def _register_cid(font_name: str) -> str:
    if font_name not in pdfmetrics.getRegisteredFontNames():
        pdfmetrics.registerFont(UnicodeCIDFont(font_name))
    return font_name


def _candidate_fonts(target_language: str, fonts_dir: str) -> Iterator[str]:
    mapped = Path(fonts_dir) / font_file_for(target_language)
    if not mapped.is_file():
        logger.warning(
            "Font file not found, trying fallback fonts",
            font_path=str(mapped),
            target_language=target_language,
        )

    for path in (mapped, *map(Path, SYSTEM_FONT_FILES)):
        font_name = _register_ttf(path)
        if font_name:
            yield font_name

    cid_font = CID_FONTS.get(target_language)
    if cid_font:
        yield _register_cid(cid_font)

    yield FALLBACK_FONT


def unsupported_characters(text: str, font_name: str) -> List[str]:
    """Distinct characters of ``text`` the registered font has no glyph for."""
    font = pdfmetrics.getFont(font_name)
    chars = dict.fromkeys(ch for ch in text if ch.isprintable() and not ch.isspace())

    if isinstance(font, TTFont):
        covered = font.face.charToGlyph
        return [ch for ch in chars if ord(ch) not in covered]
    if isinstance(font, UnicodeCIDFont):
        return []

    # standard Type 1 fonts are written with WinAnsiEncoding
    missing = []
    for ch in chars:
        try:
            ch.encode(STANDARD_FONT_ENCODING)
        except UnicodeEncodeError:
            missing.append(ch)
    return missing


def select_font(text: str, target_language: str, fonts_dir: str) -> str:
    """
    Pick the first font that can draw every character of ``text``.

    Order: the language's TTF from ``fonts_dir``, host Unicode TTFs, the
    built-in CID font for CJK languages, then Helvetica. Raises
    ReconstructionFailure rather than writing a PDF with missing glyphs.
    """
    missing: List[str] = []
    for font_name in _candidate_fonts(target_language, fonts_dir):
        missing = unsupported_characters(text, font_name)
        if not missing:
            return font_name
        logger.info(
            "Font cannot render text, trying next",
            font=font_name,
            missing="".join(missing[:MISSING_PREVIEW_CHARS]),
        )

    raise ReconstructionFailure(
        f"No available font can render {target_language} text "
        f"(missing glyphs: {''.join(missing[:MISSING_PREVIEW_CHARS])}); "
        f"install {font_file_for(target_language)} in the fonts directory"
    )


def build_pdf(text: str, target_language: str, fonts_dir: str) -> bytes:
    font_name = select_font(text, target_language, fonts_dir)
    width, height = letter

    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=letter)
    pdf.setFont(font_name, FONT_SIZE)
    y = height - MARGIN

    lines = wrap_text(
        text,
        width - MARGIN * 2,
        lambda s: pdfmetrics.stringWidth(s, font_name, FONT_SIZE),
    )
    for line in lines:
        if y < MARGIN:
            pdf.showPage()
            pdf.setFont(font_name, FONT_SIZE)
            y = height - MARGIN
        pdf.drawString(MARGIN, y, line)
        y -= LINE_HEIGHT

    pdf.save()
    return buffer.getvalue()


class PdfHandler(TextDocumentHandler):
    kind = DocumentKind.PDF

    def extract_text(self, data: bytes) -> str:
        return extract_pdf_text(data)

    def build(self, translated: str, ctx: TranslationContext) -> bytes:
        return build_pdf(translated, ctx.target_language, ctx.fonts_dir)
