"""
Shared components for the translation worker and job producers.
"""
from .config import Settings, get_settings
from .schemas import (
    AudioDetails,
    AudioTranslationResult,
    JobStatusResponse,
    NotificationEvent,
    Position,
    Segment,
    TranslationJob,
    TranslationJobStatus,
)
from .telemetry import setup_telemetry, get_tracer, get_meter, TranslationMetrics

__all__ = [
    "Settings",
    "get_settings",
    "AudioDetails",
    "AudioTranslationResult",
    "JobStatusResponse",
    "NotificationEvent",
    "Position",
    "Segment",
    "TranslationJob",
    "TranslationJobStatus",
    "setup_telemetry",
    "get_tracer",
    "get_meter",
    "TranslationMetrics",
]
