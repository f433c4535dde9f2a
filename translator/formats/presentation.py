"""
PPTX: per-slide text from the raw slide XML, rebuilt as a plain deck.

Each slide part's text runs are joined into one string and translated on its
own; slides are processed concurrently under the job's slide cap. The output
deck has one slide per input slide part, in slide-number order.
"""
from __future__ import annotations

import asyncio
import io
import re
import zipfile
from html import unescape
from typing import List, Tuple

import structlog
from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.text import MSO_ANCHOR, PP_ALIGN
from pptx.util import Inches, Pt

from ..concurrency import BoundedRunner
from .base import DocumentKind, FormatHandler, TranslationContext

logger = structlog.get_logger()

SLIDE_PART = re.compile(r"^ppt/slides/slide(\d+)\.xml$")
TEXT_RUN = re.compile(r"<a:t(?:\s[^>]*)?>(.*?)</a:t>", re.DOTALL)

BLANK_LAYOUT = 6
BODY_FONT_SIZE = Pt(18)
LABEL_FONT_SIZE = Pt(12)
LABEL_COLOR = RGBColor(0x99, 0x99, 0x99)
EMPTY_SLIDE_TEXT = "(Empty Slide)"
NO_CONTENT_TEXT = "No content translated."


def slide_parts(archive: zipfile.ZipFile) -> List[str]:
    """Slide part names ordered by their slide number."""
    numbered: List[Tuple[int, str]] = []
    for name in archive.namelist():
        match = SLIDE_PART.match(name)
        if match:
            numbered.append((int(match.group(1)), name))
    return [name for _, name in sorted(numbered)]


def extract_slide_texts(data: bytes) -> List[str]:
    texts = []
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        for name in slide_parts(archive):
            xml = archive.read(name).decode("utf-8", errors="replace")
            runs = [unescape(run) for run in TEXT_RUN.findall(xml)]
            texts.append(" ".join(runs).strip())
    return texts


def _add_text_box(slide, left, top, width, height, text, size, color=None, align=PP_ALIGN.LEFT):
    frame = slide.shapes.add_textbox(left, top, width, height).text_frame
    frame.word_wrap = True
    frame.vertical_anchor = MSO_ANCHOR.TOP
    frame.text = text
    for paragraph in frame.paragraphs:
        paragraph.alignment = align
        paragraph.font.size = size
        if color is not None:
            paragraph.font.color.rgb = color


def build_presentation(slide_texts: List[str]) -> bytes:
    deck = Presentation()
    layout = deck.slide_layouts[BLANK_LAYOUT]

    if not slide_texts:
        slide = deck.slides.add_slide(layout)
        _add_text_box(
            slide, Inches(0.5), Inches(0.5), Inches(9), Inches(1), NO_CONTENT_TEXT, BODY_FONT_SIZE
        )

    for number, text in enumerate(slide_texts, start=1):
        slide = deck.slides.add_slide(layout)
        _add_text_box(
            slide,
            Inches(0.5),
            Inches(0.5),
            Inches(9),
            Inches(6.2),
            text or EMPTY_SLIDE_TEXT,
            BODY_FONT_SIZE,
        )
        _add_text_box(
            slide,
            Inches(8.0),
            Inches(6.8),
            Inches(1.5),
            Inches(0.4),
            f"Slide {number}",
            LABEL_FONT_SIZE,
            color=LABEL_COLOR,
            align=PP_ALIGN.RIGHT,
        )

    buffer = io.BytesIO()
    deck.save(buffer)
    return buffer.getvalue()


class PresentationHandler(FormatHandler):
    kind = DocumentKind.PRESENTATION

    async def translate(self, data: bytes, ctx: TranslationContext) -> bytes:
        slide_texts = await asyncio.to_thread(extract_slide_texts, data)
        logger.info("Extracted slides", job_id=ctx.job_id, slides=len(slide_texts))

        async def translate_slide(item: Tuple[int, str]) -> str:
            number, text = item
            if not text:
                return ""
            return await ctx.chunker.translate_text(
                text, ctx.target_language, f"{ctx.job_id}:slide-{number}"
            )

        runner = BoundedRunner(ctx.slide_concurrency)
        translated = await runner.map(translate_slide, list(enumerate(slide_texts, start=1)))
        return await asyncio.to_thread(build_presentation, translated)
