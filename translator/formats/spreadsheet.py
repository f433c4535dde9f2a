"""
XLSX: translate cell text in place with openpyxl.

Only cells whose text is non-blank are touched. Identical texts across the
workbook are translated once and written back to every cell holding them.
Rich-text cells are collapsed into a single run that keeps the first run's
font.
"""
from __future__ import annotations

import asyncio
import io
from dataclasses import dataclass
from typing import Any, List, Optional

import structlog
from openpyxl import load_workbook
from openpyxl.cell.cell import Cell
from openpyxl.cell.rich_text import CellRichText, TextBlock

from .base import DocumentKind, FormatHandler, TranslationContext

logger = structlog.get_logger()


@dataclass
class CellEntry:
    cell: Cell
    text: str
    rich: bool


def cell_text(value: Any) -> str:
    """Text content of a cell value; empty for formulas, dates and other non-text values."""
    if isinstance(value, CellRichText):
        return "".join(
            block.text if isinstance(block, TextBlock) else str(block) for block in value
        )
    if isinstance(value, bool):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (str, int, float)):
        return str(value)
    return ""


def collect_cells(workbook) -> List[CellEntry]:
    entries: List[CellEntry] = []
    for sheet in workbook.worksheets:
        for row in sheet.iter_rows():
            for cell in row:
                if cell.value is None or cell.data_type == "f":
                    continue
                text = cell_text(cell.value)
                if text.strip():
                    entries.append(
                        CellEntry(cell=cell, text=text, rich=isinstance(cell.value, CellRichText))
                    )
    return entries


def _first_run_font(value: CellRichText) -> Optional[Any]:
    for block in value:
        return block.font if isinstance(block, TextBlock) else None
    return None


def write_translation(entry: CellEntry, translated: str) -> None:
    if not entry.rich:
        entry.cell.value = translated
        return

    font = _first_run_font(entry.cell.value)
    if font is None:
        entry.cell.value = CellRichText([translated])
    else:
        entry.cell.value = CellRichText([TextBlock(font, translated)])


class SpreadsheetHandler(FormatHandler):
    kind = DocumentKind.SPREADSHEET

    async def translate(self, data: bytes, ctx: TranslationContext) -> bytes:
        workbook = await asyncio.to_thread(
            load_workbook, io.BytesIO(data), rich_text=True
        )
        entries = collect_cells(workbook)
        if not entries:
            logger.info("No translatable cells found", job_id=ctx.job_id)
            return data

        unique_texts = list(dict.fromkeys(entry.text for entry in entries))
        logger.info(
            "Translating spreadsheet cells",
            job_id=ctx.job_id,
            cells=len(entries),
            unique_texts=len(unique_texts),
        )
        translated = await ctx.chunker.translate_each(
            unique_texts, ctx.target_language, ctx.job_id
        )
        translations = dict(zip(unique_texts, translated))

        for entry in entries:
            write_translation(entry, translations[entry.text])

        buffer = io.BytesIO()
        await asyncio.to_thread(workbook.save, buffer)
        return buffer.getvalue()
