"""
Image translation: OCR segments translated in one batch call, with a
vision-model fallback when OCR or the batch translation is unusable.
"""
from __future__ import annotations

import json
import re
from typing import Any, Dict, List

import structlog

from .client import TranslationClient
from .exceptions import MalformedRemoteResponse, TranslatorError
from .ocr import VisionOcrClient, build_segments

logger = structlog.get_logger()

_CODE_FENCE = re.compile(r"^\s*```(?:json)?\s*|\s*```\s*$", re.IGNORECASE)


def strip_code_fences(content: str) -> str:
    return _CODE_FENCE.sub("", content).strip()


def parse_segments_json(content: str) -> List[Any]:
    try:
        payload = json.loads(strip_code_fences(content))
    except ValueError as e:
        raise MalformedRemoteResponse(f"Vision model returned invalid JSON: {e}") from e

    if not isinstance(payload, dict) or not isinstance(payload.get("segments"), list):
        raise MalformedRemoteResponse("Invalid response structure: missing segments array")
    return payload["segments"]


def split_translated_lines(content: str) -> List[str]:
    """
    One trimmed line per OCR segment, in order.

    Interior blank lines are kept so line ``i`` still belongs to segment ``i``;
    only trailing blank lines are dropped.
    """
    lines = [line.strip() for line in content.split("\n")]
    while lines and not lines[-1]:
        lines.pop()
    return lines


class ImageTranslator:
    def __init__(self, client: TranslationClient, ocr: VisionOcrClient):
        self.client = client
        self.ocr = ocr

    async def translate_image(
        self, image_bytes: bytes, mimetype: str, target_language: str
    ) -> Dict[str, List[Any]]:
        """
        Translate the text in an image.

        Returns ``{"segments": [...]}`` where each segment has ``position``
        (percent box), ``original`` and ``translated``.
        """
        try:
            annotation = await self.ocr.detect_text(image_bytes)
        except Exception as e:
            logger.warning("OCR failed, using vision model fallback", error=str(e))
            return await self.vision_fallback(image_bytes, mimetype, target_language)

        if not annotation.get("textAnnotations"):
            logger.info("No text detected in image")
            return {"segments": []}

        segments = build_segments(annotation)
        if not segments:
            return {"segments": []}

        batch = "\n".join(segment.original for segment in segments)
        try:
            content = await self.client.translate_batch_lines(batch, target_language)
        except TranslatorError as e:
            logger.warning("Batch translation failed, using vision model fallback", error=str(e))
            return await self.vision_fallback(image_bytes, mimetype, target_language)

        lines = split_translated_lines(content)
        if not lines:
            logger.warning("Batch translation returned no lines, using vision model fallback")
            return await self.vision_fallback(image_bytes, mimetype, target_language)

        for segment, line in zip(segments, lines):
            segment.translated = line

        logger.info(
            "Translated image segments",
            segments=len(segments),
            translated_lines=len(lines),
        )
        return {"segments": [segment.model_dump() for segment in segments]}

    async def vision_fallback(
        self, image_bytes: bytes, mimetype: str, target_language: str
    ) -> Dict[str, List[Any]]:
        content = await self.client.translate_image(image_bytes, mimetype, target_language)
        return {"segments": parse_segments_json(content)}
