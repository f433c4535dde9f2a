"""
Google Cloud Vision text detection over REST, and conversion of its
paragraph tree into position-tagged segments.
"""
from __future__ import annotations

import base64
from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx
import structlog

from shared.config import Settings
from shared.schemas import Position, Segment

from .exceptions import MalformedRemoteResponse, RemoteCallFailure

logger = structlog.get_logger()

HYPHEN_BREAK = "HYPHEN"


class VisionOcrClient:
    """Calls ``images:annotate`` with TEXT_DETECTION and returns the first response."""

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.api_url = settings.VISION_API_URL
        self.api_key = settings.GOOGLE_API_KEY
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=settings.REQUEST_TIMEOUT)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def detect_text(self, image_bytes: bytes) -> Dict[str, Any]:
        if not self.api_key:
            raise RemoteCallFailure("Google Vision API key is not configured")

        body = {
            "requests": [
                {
                    "image": {"content": base64.b64encode(image_bytes).decode("ascii")},
                    "features": [{"type": "TEXT_DETECTION"}],
                }
            ]
        }
        try:
            response = await self._http.post(
                self.api_url, params={"key": self.api_key}, json=body
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise RemoteCallFailure(
                f"Vision API returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise RemoteCallFailure(f"Vision API request failed: {e}") from e
        except ValueError as e:
            raise MalformedRemoteResponse("Vision API returned a non-JSON body") from e

        responses = data.get("responses") or [{}]
        annotation = responses[0]
        if annotation.get("error"):
            message = annotation["error"].get("message", "unknown error")
            raise RemoteCallFailure(f"Vision API error: {message}")
        return annotation


def word_text(word: Dict[str, Any]) -> str:
    return "".join(symbol.get("text", "") for symbol in word.get("symbols") or [])


def _break_after(word: Dict[str, Any]) -> Optional[str]:
    symbols = word.get("symbols") or []
    if not symbols:
        return None
    detected = (symbols[-1].get("property") or {}).get("detectedBreak") or {}
    return detected.get("type")


def paragraph_text(paragraph: Dict[str, Any]) -> str:
    """Join a paragraph's words: hyphen breaks join with '-', anything else with a space."""
    parts: List[str] = []
    words = paragraph.get("words") or []
    for i, word in enumerate(words):
        parts.append(word_text(word))
        if i < len(words) - 1:
            parts.append("-" if _break_after(word) == HYPHEN_BREAK else " ")
    return "".join(parts)


def _vertices(words: Iterable[Dict[str, Any]]) -> List[Tuple[float, float]]:
    # Vision omits zero-valued coordinates from the JSON.
    return [
        (vertex.get("x", 0), vertex.get("y", 0))
        for word in words
        for vertex in (word.get("boundingBox") or {}).get("vertices") or []
    ]


def _percent(value: float, total: float) -> float:
    return round(value / total * 100, 2)


def build_segments(annotation: Dict[str, Any]) -> List[Segment]:
    """One segment per non-blank paragraph, in detection order."""
    segments: List[Segment] = []
    full_text = annotation.get("fullTextAnnotation") or {}

    for page in full_text.get("pages") or []:
        paragraphs = [
            paragraph
            for block in page.get("blocks") or []
            for paragraph in block.get("paragraphs") or []
        ]
        page_points = [p for paragraph in paragraphs for p in _vertices(paragraph.get("words") or [])]
        page_width = page.get("width") or max((x for x, _ in page_points), default=0) or 1
        page_height = page.get("height") or max((y for _, y in page_points), default=0) or 1

        for paragraph in paragraphs:
            text = paragraph_text(paragraph).strip()
            if not text:
                continue
            points = _vertices(paragraph.get("words") or [])
            if points:
                xs = [x for x, _ in points]
                ys = [y for _, y in points]
                min_x, max_x, min_y, max_y = min(xs), max(xs), min(ys), max(ys)
            else:
                min_x = max_x = min_y = max_y = 0
            segments.append(
                Segment(
                    position=Position(
                        x=_percent(min_x, page_width),
                        y=_percent(min_y, page_height),
                        width=_percent(max_x - min_x, page_width),
                        height=_percent(max_y - min_y, page_height),
                    ),
                    original=text,
                )
            )
    return segments
