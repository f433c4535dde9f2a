"""
Chunking: split document text into overlapping chunks and translate them
concurrently, one remote call per chunk.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import structlog
from langchain_text_splitters import RecursiveCharacterTextSplitter

from shared.telemetry import TranslationMetrics

from .client import TranslationClient
from .concurrency import BoundedRunner

logger = structlog.get_logger()

CHUNK_SEPARATOR = "\n\n"
PLACEHOLDER_PREVIEW_CHARS = 50


@dataclass(frozen=True)
class Chunk:
    index: int
    text: str


@dataclass(frozen=True)
class ChunkResult:
    """Outcome of translating one chunk; ``text`` is a placeholder when ``ok`` is False."""
    index: int
    text: str
    ok: bool = True
    error: Optional[str] = None


def placeholder_for(text: str) -> str:
    return f"[Error translating this chunk: {text[:PLACEHOLDER_PREVIEW_CHARS]}...]"


class ChunkTranslator:
    """Splits text and fans translation out under a per-job concurrency cap."""

    def __init__(
        self,
        client: TranslationClient,
        chunk_size: int = 4000,
        chunk_overlap: int = 200,
        concurrency: int = 10,
    ):
        self.client = client
        self.runner = BoundedRunner(concurrency)
        self.text_splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            length_function=len,
        )
        self.metrics = TranslationMetrics()

    def split(self, text: str) -> List[Chunk]:
        if not text or not text.strip():
            return []
        return [Chunk(index=i, text=t) for i, t in enumerate(self.text_splitter.split_text(text))]

    async def translate_chunk(self, chunk: Chunk, target_language: str) -> ChunkResult:
        try:
            translated = await self.client.translate(chunk.text, target_language)
        except Exception as e:
            # a failed chunk becomes a placeholder, never a failed job
            logger.error("Error translating chunk", chunk_index=chunk.index, error=str(e))
            return ChunkResult(
                index=chunk.index,
                text=placeholder_for(chunk.text),
                ok=False,
                error=str(e),
            )
        return ChunkResult(index=chunk.index, text=translated)

    async def translate_chunks(
        self, chunks: Sequence[Chunk], target_language: str, job_id: str
    ) -> List[ChunkResult]:
        results = await self.runner.map(
            lambda chunk: self.translate_chunk(chunk, target_language), chunks
        )
        results.sort(key=lambda r: r.index)
        failed = sum(1 for r in results if not r.ok)
        self.metrics.record_chunks(len(results), failed)
        logger.info(
            "Translated chunks",
            job_id=job_id,
            chunks=len(results),
            failed=failed,
        )
        return results

    async def translate_text(self, text: str, target_language: str, job_id: str) -> str:
        """Chunk, translate and reassemble ``text`` in chunk order."""
        results = await self.translate_chunks(self.split(text), target_language, job_id)
        return CHUNK_SEPARATOR.join(r.text for r in results)

    async def translate_each(
        self, texts: Sequence[str], target_language: str, job_id: str
    ) -> List[str]:
        """Translate every text as a single chunk; output aligns with ``texts``."""
        chunks = [Chunk(index=i, text=t) for i, t in enumerate(texts)]
        return [r.text for r in await self.translate_chunks(chunks, target_language, job_id)]
