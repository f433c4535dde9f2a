"""
Shared schemas for the translation worker and the processes that enqueue jobs.
"""
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_TARGET_LANGUAGE = "Vietnamese"


class TranslationJobStatus(str, Enum):
    """Status of a document translation job."""
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    NOT_FOUND = "not_found"


class NotificationEvent(str, Enum):
    """Events pushed to the client that submitted a job."""
    TRANSLATION_COMPLETE = "translationComplete"
    TRANSLATION_FAILED = "translationFailed"


class TranslationJob(BaseModel):
    """One unit of document translation work, as claimed by a worker."""
    job_id: str = Field(..., min_length=1)
    file_bytes: bytes
    original_filename: str = Field(..., min_length=1)
    target_language: str = DEFAULT_TARGET_LANGUAGE
    notification_handle: Optional[str] = None
    is_premium: bool = False

    @field_validator("target_language", mode="before")
    @classmethod
    def _default_language(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_TARGET_LANGUAGE
        return value


class JobStatusResponse(BaseModel):
    """Job state as reported by the queue."""
    status: TranslationJobStatus
    result: Optional[dict] = None
    reason: Optional[str] = None


class Position(BaseModel):
    """Bounding box as percentages (0-100) of the image width/height."""
    x: float
    y: float
    width: float
    height: float


class Segment(BaseModel):
    """An OCR-detected text span with its box and translation."""
    position: Position
    original: str
    translated: str = ""


class AudioDetails(BaseModel):
    duration: Optional[float] = None
    detected_language: Optional[str] = None
    primary_language: str


class AudioTranslationResult(BaseModel):
    """Transcript of an audio clip and its translation."""
    success: bool
    original_text: str = ""
    translated_text: str = ""
    audio_details: Optional[AudioDetails] = None
    message: Optional[str] = None
