"""
Audio translation: Google Cloud Speech transcription (REST) followed by a
single direct translation of the transcript.
"""
from __future__ import annotations

import base64
from typing import Any, Dict, List, Optional, Tuple

import httpx
import structlog

from shared.config import Settings
from shared.schemas import AudioDetails, AudioTranslationResult

from .client import TranslationClient
from .exceptions import AudioTranslationError, MalformedRemoteResponse, RemoteCallFailure

logger = structlog.get_logger()

DEFAULT_LANGUAGE_CODE = "en-US"
AUTO_LANGUAGE = "auto"
# Speech API limit on alternativeLanguageCodes.
MAX_ALTERNATIVE_LANGUAGES = 3

LANGUAGE_CODES = {
    "en": "en-US",
    "vi": "vi-VN",
    "ja": "ja-JP",
    "ko": "ko-KR",
    "zh": "zh-CN",
    "fr": "fr-FR",
    "de": "de-DE",
    "es": "es-ES",
    "th": "th-TH",
}

# mimetype -> (encoding, sample rate); None lets the service read it from the header
ENCODINGS: Dict[str, Tuple[str, Optional[int]]] = {
    "audio/wav": ("LINEAR16", None),
    "audio/x-wav": ("LINEAR16", None),
    "audio/wave": ("LINEAR16", None),
    "audio/vnd.wave": ("LINEAR16", None),
    "audio/flac": ("FLAC", None),
    "audio/x-flac": ("FLAC", None),
    "audio/ogg": ("OGG_OPUS", 48000),
    "audio/webm": ("WEBM_OPUS", 48000),
}
DEFAULT_ENCODING: Tuple[str, Optional[int]] = ("MP3", 16000)

NO_SPEECH_MESSAGE = "No speech detected in audio"


def select_encoding(mimetype: Optional[str]) -> Tuple[str, Optional[int]]:
    base = (mimetype or "").split(";", 1)[0].strip().lower()
    return ENCODINGS.get(base, DEFAULT_ENCODING)


def resolve_language(hint: Optional[str]) -> Tuple[str, List[str]]:
    """Primary recognition language and alternatives (only for ``auto``)."""
    normalized = (hint or AUTO_LANGUAGE).strip().lower()
    if normalized == AUTO_LANGUAGE:
        alternatives = [code for code in LANGUAGE_CODES.values() if code != DEFAULT_LANGUAGE_CODE]
        return DEFAULT_LANGUAGE_CODE, alternatives[:MAX_ALTERNATIVE_LANGUAGES]

    primary = LANGUAGE_CODES.get(normalized.split("-", 1)[0], DEFAULT_LANGUAGE_CODE)
    return primary, []


def parse_duration(value: Any) -> Optional[float]:
    """Speech API durations are strings like ``"12.5s"``."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).rstrip("s"))
    except ValueError:
        return None


class SpeechClient:
    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.api_url = settings.SPEECH_API_URL
        self.api_key = settings.GOOGLE_API_KEY
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=settings.REQUEST_TIMEOUT)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def recognize(self, audio_bytes: bytes, config: Dict[str, Any]) -> Dict[str, Any]:
        if not self.api_key:
            raise RemoteCallFailure("Google Speech API key is not configured")

        body = {
            "config": config,
            "audio": {"content": base64.b64encode(audio_bytes).decode("ascii")},
        }
        try:
            response = await self._http.post(self.api_url, params={"key": self.api_key}, json=body)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise RemoteCallFailure(
                f"Speech API returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise RemoteCallFailure(f"Speech API request failed: {e}") from e
        except ValueError as e:
            raise MalformedRemoteResponse("Speech API returned a non-JSON body") from e


def build_recognition_config(mimetype: Optional[str], source_language: Optional[str]) -> Dict[str, Any]:
    encoding, sample_rate = select_encoding(mimetype)
    primary, alternatives = resolve_language(source_language)

    config: Dict[str, Any] = {
        "encoding": encoding,
        "languageCode": primary,
        "enableAutomaticPunctuation": True,
        "audioChannelCount": 1,
        "model": "latest_long",
        "useEnhanced": True,
    }
    if sample_rate is not None:
        config["sampleRateHertz"] = sample_rate
    if alternatives:
        config["alternativeLanguageCodes"] = alternatives
    return config


class AudioTranslator:
    def __init__(self, client: TranslationClient, speech: SpeechClient):
        self.client = client
        self.speech = speech

    async def translate_audio(
        self,
        audio_bytes: bytes,
        mimetype: Optional[str],
        source_language: Optional[str],
        target_language: str,
    ) -> AudioTranslationResult:
        config = build_recognition_config(mimetype, source_language)
        primary = config["languageCode"]

        try:
            response = await self.speech.recognize(audio_bytes, config)
            results = response.get("results") or []
            if not results:
                logger.info("No speech detected", encoding=config["encoding"])
                return AudioTranslationResult(success=False, message=NO_SPEECH_MESSAGE)

            transcript = "\n".join(
                (result.get("alternatives") or [{}])[0].get("transcript", "") for result in results
            )
            translated = await self.client.translate_text_direct(transcript, target_language)
        except Exception as e:
            logger.error("Audio translation failed", error=str(e))
            raise AudioTranslationError(str(e)) from e

        duration = parse_duration(results[-1].get("resultEndTime"))
        if duration is None:
            duration = parse_duration(response.get("totalBilledTime"))
        detected = next(
            (result["languageCode"] for result in results if result.get("languageCode")),
            primary,
        )

        return AudioTranslationResult(
            success=True,
            original_text=transcript,
            translated_text=translated,
            audio_details=AudioDetails(
                duration=duration,
                detected_language=detected,
                primary_language=primary,
            ),
        )
