"""
Translation Worker - ARQ worker for document translation jobs.
"""

import logging
from typing import Optional

import httpx
import redis.asyncio as redis
from pydantic import ValidationError

from shared.config import get_settings
from shared.schemas import NotificationEvent, TranslationJob, TranslationJobStatus
from shared.telemetry import setup_telemetry

from .client import TranslationClient
from .exceptions import InvalidInput
from .job_queue import DEFAULT_QUEUE_NAME, redis_settings_from
from .notifier import RedisNotifier
from .pipeline import TranslationPipeline

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def process_translation_job(
    ctx: dict,
    file_bytes: bytes,
    original_filename: str,
    target_language: Optional[str] = None,
    notification_handle: Optional[str] = None,
    is_premium: bool = False,
):
    """
    Translate one uploaded document.

    Returns ``{"translated_file_name": ...}``; failures are re-raised so ARQ
    records the job as failed.
    """
    job_id = str(ctx.get("job_id", ""))
    try:
        job = TranslationJob(
            job_id=job_id,
            file_bytes=file_bytes,
            original_filename=original_filename,
            target_language=target_language,
            notification_handle=notification_handle,
            is_premium=is_premium,
        )
    except ValidationError as e:
        reason = f"Invalid translation job: {e.error_count()} invalid field(s)"
        logger.error(f"Job {job_id} rejected: {e}")
        await ctx["notifier"].notify(
            notification_handle,
            NotificationEvent.TRANSLATION_FAILED,
            {"jobId": job_id, "status": TranslationJobStatus.FAILED.value, "reason": reason},
        )
        raise InvalidInput(reason) from e

    logger.info(f"Processing translation job {job_id} for {original_filename}")
    return await ctx["pipeline"].handle_translation(job)


async def startup(ctx: dict):
    """Worker startup handler."""
    logger.info("Starting Translation Worker...")

    setup_telemetry(settings, "1.0.0")

    ctx["redis"] = redis.from_url(settings.redis_url, decode_responses=True)
    ctx["http"] = httpx.AsyncClient(timeout=settings.REQUEST_TIMEOUT)
    ctx["notifier"] = RedisNotifier(ctx["redis"], settings.NOTIFICATION_CHANNEL_PREFIX)
    ctx["pipeline"] = TranslationPipeline.from_settings(
        settings,
        TranslationClient(settings, ctx["http"]),
        ctx["notifier"],
    )

    logger.info(f"Connected to Redis at {settings.REDIS_HOST}:{settings.REDIS_PORT}")


async def shutdown(ctx: dict):
    """Worker shutdown handler."""
    logger.info("Shutting down Translation Worker...")
    await ctx["http"].aclose()
    await ctx["redis"].close()


class WorkerSettings:
    """ARQ worker settings."""

    redis_settings = redis_settings_from(settings)

    queue_name = DEFAULT_QUEUE_NAME
    functions = [process_translation_job]

    on_startup = startup
    on_shutdown = shutdown

    # Worker configuration
    max_jobs = settings.WORKER_CONCURRENCY
    job_timeout = settings.JOB_TIMEOUT

    # Failed jobs are reported to the client, never retried
    max_tries = 1

    # Health check
    health_check_interval = 30


if __name__ == "__main__":
    from arq import run_worker

    run_worker(WorkerSettings)
