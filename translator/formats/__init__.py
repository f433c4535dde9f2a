"""
Document format handlers.

``default_handlers()`` returns one handler per DocumentKind; the pipeline
rejects any handler map that leaves a kind uncovered.
"""

from typing import Dict, List, Mapping

from .base import DocumentKind, FormatHandler, TextDocumentHandler, TranslationContext
from .csv_format import CsvHandler
from .pdf import PdfHandler
from .presentation import PresentationHandler
from .spreadsheet import SpreadsheetHandler
from .text import TextHandler
from .word import WordHandler

HANDLER_CLASSES = (
    PdfHandler,
    WordHandler,
    SpreadsheetHandler,
    PresentationHandler,
    CsvHandler,
    TextHandler,
)


def default_handlers() -> Dict[DocumentKind, FormatHandler]:
    return {cls.kind: cls() for cls in HANDLER_CLASSES}


def missing_kinds(handlers: Mapping[DocumentKind, FormatHandler]) -> List[DocumentKind]:
    return [kind for kind in DocumentKind if kind not in handlers]


__all__ = [
    "DocumentKind",
    "FormatHandler",
    "TextDocumentHandler",
    "TranslationContext",
    "default_handlers",
    "missing_kinds",
]
