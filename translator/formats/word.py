"""DOCX: raw paragraph text in, one paragraph per translated block out."""
from __future__ import annotations

import io
from typing import Iterator

from docx import Document
from docx.table import Table

from .base import DocumentKind, TextDocumentHandler, TranslationContext

PARAGRAPH_SEPARATOR = "\n\n"


def _iter_block_texts(document) -> Iterator[str]:
    # Body order: paragraphs and tables interleaved as they appear.
    for block in document.iter_inner_content():
        if isinstance(block, Table):
            for row in block.rows:
                for cell in row.cells:
                    for paragraph in cell.paragraphs:
                        yield paragraph.text
        else:
            yield block.text


def extract_docx_text(data: bytes) -> str:
    document = Document(io.BytesIO(data))
    return PARAGRAPH_SEPARATOR.join(_iter_block_texts(document))


def build_docx(text: str) -> bytes:
    document = Document()
    for block in text.split(PARAGRAPH_SEPARATOR):
        document.add_paragraph(block)

    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


class WordHandler(TextDocumentHandler):
    kind = DocumentKind.WORD

    def extract_text(self, data: bytes) -> str:
        return extract_docx_text(data)

    def build(self, translated: str, ctx: TranslationContext) -> bytes:
        return build_docx(translated)
