"""
Document translation pipeline: dispatch by file type, translate, store, notify.
"""
from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, Mapping, Optional, Tuple

import structlog

from shared.config import Settings
from shared.schemas import NotificationEvent, TranslationJob, TranslationJobStatus
from shared.telemetry import TranslationMetrics, get_tracer

from .chunker import ChunkTranslator
from .client import TranslationClient
from .exceptions import ReconstructionFailure
from .formats import (
    DocumentKind,
    FormatHandler,
    TranslationContext,
    default_handlers,
    missing_kinds,
)
from .notifier import Notifier
from .storage import OutputStorage

logger = structlog.get_logger()


class TranslationPipeline:
    """
    Runs one document translation job end to end.

    Every DocumentKind must have a handler; construction fails otherwise.
    """

    def __init__(
        self,
        chunker: ChunkTranslator,
        storage: OutputStorage,
        notifier: Notifier,
        slide_concurrency: int = 5,
        fonts_dir: str = "assets/fonts",
        handlers: Optional[Mapping[DocumentKind, FormatHandler]] = None,
    ):
        self.handlers: Dict[DocumentKind, FormatHandler] = (
            dict(handlers) if handlers is not None else default_handlers()
        )
        missing = missing_kinds(self.handlers)
        if missing:
            raise ValueError(
                "No format handler registered for: " + ", ".join(k.extension for k in missing)
            )

        self.chunker = chunker
        self.storage = storage
        self.notifier = notifier
        self.slide_concurrency = slide_concurrency
        self.fonts_dir = fonts_dir
        self.tracer = get_tracer()
        self.metrics = TranslationMetrics()

    @classmethod
    def from_settings(
        cls, settings: Settings, client: TranslationClient, notifier: Notifier
    ) -> "TranslationPipeline":
        chunker = ChunkTranslator(
            client,
            chunk_size=settings.CHUNK_SIZE,
            chunk_overlap=settings.CHUNK_OVERLAP,
            concurrency=settings.CHUNK_CONCURRENCY,
        )
        return cls(
            chunker,
            OutputStorage(settings.OUTPUT_DIR),
            notifier,
            slide_concurrency=settings.SLIDE_CONCURRENCY,
            fonts_dir=settings.FONTS_DIR,
        )

    async def translate_document(
        self, data: bytes, filename: str, target_language: str, job_id: str
    ) -> Tuple[bytes, DocumentKind]:
        """Translate a document's bytes; the output has the same kind as the input."""
        kind = DocumentKind.from_filename(filename)
        handler = self.handlers[kind]
        logger.info(
            "Translating document",
            job_id=job_id,
            kind=kind.name,
            target_language=target_language,
        )

        ctx = TranslationContext(
            job_id=job_id,
            target_language=target_language,
            chunker=self.chunker,
            slide_concurrency=self.slide_concurrency,
            fonts_dir=self.fonts_dir,
        )
        output = await handler.translate(data, ctx)
        if output is None:
            raise ReconstructionFailure(f"No output buffer was generated for {kind.extension}.")
        return output, kind

    async def handle_translation(self, job: TranslationJob) -> Dict[str, Any]:
        """
        Process one job and return the arq result.

        Emits a completion or failure notification for the job's handle.
        Failures are re-raised after notifying.
        """
        started = time.monotonic()

        with self.tracer.start_as_current_span("process_translation_job") as span:
            span.set_attribute("job_id", job.job_id)
            span.set_attribute("filename", job.original_filename)
            span.set_attribute("target_language", job.target_language)

            try:
                output, kind = await self.translate_document(
                    job.file_bytes, job.original_filename, job.target_language, job.job_id
                )
                file_name = await asyncio.to_thread(
                    self.storage.write, job.job_id, kind.extension, output
                )
            except Exception as e:
                logger.error("Translation job failed", job_id=job.job_id, error=str(e))
                span.record_exception(e)
                self.metrics.record_job_failed(type(e).__name__)
                await self.notifier.notify(
                    job.notification_handle,
                    NotificationEvent.TRANSLATION_FAILED,
                    {
                        "jobId": job.job_id,
                        "status": TranslationJobStatus.FAILED.value,
                        "reason": str(e),
                    },
                )
                raise

            span.set_attribute("translated_file_name", file_name)
            duration_ms = (time.monotonic() - started) * 1000
            self.metrics.record_job_completed(kind.name.lower(), duration_ms)
            logger.info(
                "Translation job completed",
                job_id=job.job_id,
                file_name=file_name,
                duration_ms=round(duration_ms),
            )

            await self.notifier.notify(
                job.notification_handle,
                NotificationEvent.TRANSLATION_COMPLETE,
                {
                    "jobId": job.job_id,
                    "status": TranslationJobStatus.COMPLETED.value,
                    "fileName": file_name,
                },
            )
            return {"translated_file_name": file_name}
