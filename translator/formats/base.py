"""
Format handler interface and the closed set of supported document kinds.

Every DocumentKind has exactly one FormatHandler. A handler turns the input
bytes into translated output bytes of the same kind.
"""

from __future__ import annotations

import asyncio
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from ..chunker import ChunkTranslator
from ..exceptions import UnsupportedFileType


class DocumentKind(str, Enum):
    """Document formats the worker can translate, keyed by file extension."""

    PDF = ".pdf"
    WORD = ".docx"
    SPREADSHEET = ".xlsx"
    PRESENTATION = ".pptx"
    CSV = ".csv"
    TEXT = ".txt"

    @property
    def extension(self) -> str:
        return self.value

    @classmethod
    def from_filename(cls, filename: str) -> "DocumentKind":
        """Resolve the kind from the filename's extension (case-insensitive)."""
        extension = os.path.splitext(filename or "")[1].lower()
        for kind in cls:
            if kind.extension == extension:
                return kind
        raise UnsupportedFileType(extension)


@dataclass
class TranslationContext:
    """Per-job state handed to a format handler."""

    job_id: str
    target_language: str
    chunker: ChunkTranslator
    slide_concurrency: int = 5
    fonts_dir: str = "assets/fonts"


class FormatHandler(ABC):
    """Interface for document format handlers."""

    kind: DocumentKind

    @abstractmethod
    async def translate(self, data: bytes, ctx: TranslationContext) -> bytes:
        """Return the translated document as bytes of the same format."""
        pass


class TextDocumentHandler(FormatHandler):
    """Handler for formats translated as one text blob: extract, chunk-translate, rebuild."""

    @abstractmethod
    def extract_text(self, data: bytes) -> str:
        pass

    @abstractmethod
    def build(self, translated: str, ctx: TranslationContext) -> bytes:
        pass

    async def translate(self, data: bytes, ctx: TranslationContext) -> bytes:
        text = await asyncio.to_thread(self.extract_text, data)
        translated = await ctx.chunker.translate_text(text, ctx.target_language, ctx.job_id)
        return await asyncio.to_thread(self.build, translated, ctx)
