"""ARQ client for enqueueing translation jobs and reading their status."""

from typing import Optional

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from arq.jobs import Job, JobStatus

from shared.config import Settings
from shared.schemas import JobStatusResponse, TranslationJobStatus

# Queue the translation worker listens on.
DEFAULT_QUEUE_NAME = "arq:translation"

JOB_FUNCTION = "process_translation_job"


def redis_settings_from(settings: Settings) -> RedisSettings:
    return RedisSettings.from_dsn(settings.redis_url)


async def get_arq_pool(settings: Settings) -> ArqRedis:
    """Create an ARQ connection pool bound to the translation queue."""
    return await create_pool(
        redis_settings_from(settings),
        default_queue_name=DEFAULT_QUEUE_NAME,
    )


async def start_translation_job(
    pool: ArqRedis,
    file_bytes: bytes,
    original_filename: str,
    target_language: Optional[str] = None,
    notification_handle: Optional[str] = None,
    is_premium: bool = False,
    job_id: Optional[str] = None,
) -> Optional[Job]:
    """
    Enqueue a document for translation.

    Returns None when a job with the same ``job_id`` already exists.
    """
    return await pool.enqueue_job(
        JOB_FUNCTION,
        file_bytes,
        original_filename,
        target_language,
        notification_handle,
        is_premium,
        _job_id=job_id,
        _queue_name=DEFAULT_QUEUE_NAME,
    )


async def get_job_status(pool: ArqRedis, job_id: str) -> JobStatusResponse:
    job = Job(job_id, redis=pool, _queue_name=DEFAULT_QUEUE_NAME)
    status = await job.status()

    if status == JobStatus.not_found:
        return JobStatusResponse(status=TranslationJobStatus.NOT_FOUND)

    if status == JobStatus.complete:
        info = await job.result_info()
        if info is None:
            return JobStatusResponse(status=TranslationJobStatus.NOT_FOUND)
        if info.success:
            return JobStatusResponse(status=TranslationJobStatus.COMPLETED, result=info.result)
        return JobStatusResponse(status=TranslationJobStatus.FAILED, reason=str(info.result))

    if status == JobStatus.in_progress:
        return JobStatusResponse(status=TranslationJobStatus.PROCESSING)

    return JobStatusResponse(status=TranslationJobStatus.QUEUED)
