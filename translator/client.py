"""Client for the remote translation model (OpenAI-compatible chat completions)."""

from __future__ import annotations

import base64
from typing import Any, Optional, Union

import httpx
import structlog

from shared.config import Settings

from .exceptions import MalformedRemoteResponse, RemoteCallFailure

logger = structlog.get_logger()


def chunk_system_prompt(target_language: str) -> str:
    return " ".join(
        [
            "You are a professional translation engine.",
            f"Translate the user content to {target_language}.",
            "Preserve semantic meaning, line breaks, markdown, and basic formatting.",
            "Do not add commentary. Output only the translated content.",
        ]
    )


def direct_system_prompt(target_language: str) -> str:
    return " ".join(
        [
            "You are a professional translation engine.",
            f"Translate the user content into {target_language}.",
            "Preserve semantic meaning and formatting.",
            "Return only the translated text without comments.",
        ]
    )


def batch_lines_system_prompt(target_language: str) -> str:
    return " ".join(
        [
            "You are a professional translation engine.",
            f"Translate each line of the user content into {target_language} independently.",
            "Keep exactly the same number of lines in the same order, one translation per line.",
            "Do not merge, split or number lines and do not add commentary.",
            "Output only the translated lines.",
        ]
    )


def vision_system_prompt(target_language: str) -> str:
    return f"""You are a professional visual translation assistant.
Detect every region of text visible in the image and translate it into {target_language}.
For each region report its bounding box as percentages of the image size (0-100):
x and y for the top-left corner, width and height for the size.

Respond with a single JSON object and nothing else, in exactly this form:
{{"segments": [{{"position": {{"x": 0, "y": 0, "width": 0, "height": 0}}, "original": "detected text", "translated": "translated text"}}]}}

If the image contains no text, respond with {{"segments": []}}."""


def extract_message_content(data: Any) -> Optional[str]:
    """
    Pull the first choice's message content out of a chat completion body.

    Content may be a plain string or a list of parts, in which case the first
    part's text is used.
    """
    if not isinstance(data, dict):
        return None
    choices = data.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    if isinstance(content, str):
        return content
    if isinstance(content, list) and content:
        first = content[0]
        if isinstance(first, dict) and isinstance(first.get("text"), str):
            return first["text"]
    return None


class TranslationClient:
    """Sends translation requests to the configured chat completions endpoint."""

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.api_url = settings.OPENROUTER_BASE_URL
        self.model = settings.OPENROUTER_MODEL
        self._headers = {
            "Authorization": f"Bearer {settings.OPENROUTER_API_KEY}",
            "Content-Type": "application/json",
            "HTTP-Referer": settings.OPENROUTER_REFERER,
            "X-Title": settings.OPENROUTER_APP_NAME,
        }
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=settings.REQUEST_TIMEOUT)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def complete(
        self,
        system_prompt: str,
        user_content: Union[str, list],
        response_format: Optional[dict] = None,
    ) -> str:
        """Run one chat completion and return the message content."""
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            "temperature": 0,
        }
        if response_format is not None:
            payload["response_format"] = response_format

        try:
            response = await self._http.post(self.api_url, json=payload, headers=self._headers)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise RemoteCallFailure(
                f"Translation API returned HTTP {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise RemoteCallFailure(f"Translation API request failed: {e}") from e
        except ValueError as e:
            raise MalformedRemoteResponse("Translation API returned a non-JSON body") from e

        content = extract_message_content(data)
        if not content or not content.strip():
            raise MalformedRemoteResponse("Invalid API response structure: missing message content")
        return content

    async def translate(self, text: str, target_language: str) -> str:
        """Translate one chunk of a document."""
        return await self.complete(chunk_system_prompt(target_language), text)

    async def translate_text_direct(self, text: str, target_language: str) -> str:
        """Translate a short text in a single call."""
        translated = await self.complete(direct_system_prompt(target_language), text)
        return translated.strip()

    async def translate_batch_lines(self, text: str, target_language: str) -> str:
        """Translate newline-delimited lines, one output line per input line."""
        return await self.complete(batch_lines_system_prompt(target_language), text)

    async def translate_image(
        self, image_bytes: bytes, mimetype: str, target_language: str
    ) -> str:
        """Ask a vision-capable model to detect and translate text regions; returns raw JSON text."""
        encoded = base64.b64encode(image_bytes).decode("ascii")
        user_content = [
            {"type": "text", "text": "Detect and translate all text in this image:"},
            {"type": "image_url", "image_url": {"url": f"data:{mimetype};base64,{encoded}"}},
        ]
        logger.info(
            "Requesting vision translation",
            mimetype=mimetype,
            image_bytes=len(image_bytes),
            target_language=target_language,
        )
        return await self.complete(
            vision_system_prompt(target_language),
            user_content,
            response_format={"type": "json_object"},
        )
