"""
CSV: rows flattened to delimited lines for translation, then parsed back.

Cells within a line are joined with ``|||`` and lines (header first) are
separated by blank lines, so the model sees one record per paragraph.
"""
from __future__ import annotations

import csv
import io
from typing import List

from .base import DocumentKind, TextDocumentHandler, TranslationContext

FIELD_DELIMITER = "|||"
RECORD_SEPARATOR = "\n\n"


def extract_csv_text(data: bytes) -> str:
    text = data.decode("utf-8-sig", errors="replace")
    rows = [row for row in csv.reader(io.StringIO(text)) if row]
    if not rows:
        return ""

    header, records = rows[0], rows[1:]
    lines = [FIELD_DELIMITER.join(header)]
    for record in records:
        # Records are keyed by the header: extra cells are dropped, missing ones blank.
        values = [record[i] if i < len(record) else "" for i in range(len(header))]
        lines.append(FIELD_DELIMITER.join(values))
    return RECORD_SEPARATOR.join(lines)


def _split_fields(line: str) -> List[str]:
    return [value.strip() for value in line.split(FIELD_DELIMITER)]


def build_csv(text: str) -> bytes:
    blocks = [block for block in text.split(RECORD_SEPARATOR) if block.strip()]
    if not blocks:
        return b""

    header = _split_fields(blocks[0])
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    for block in blocks[1:]:
        values = _split_fields(block)
        writer.writerow([values[i] if i < len(values) else "" for i in range(len(header))])
    return buffer.getvalue().encode("utf-8")


class CsvHandler(TextDocumentHandler):
    kind = DocumentKind.CSV

    def extract_text(self, data: bytes) -> str:
        return extract_csv_text(data)

    def build(self, translated: str, ctx: TranslationContext) -> bytes:
        return build_csv(translated)
