"""
Translation CLI: python -m translator file|image|audio|text|enqueue|status [args...]
"""
from __future__ import annotations

import argparse
import asyncio
import json
import mimetypes
import sys
import uuid
from pathlib import Path


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Translation CLI: translate documents, images and audio locally, or use the job queue.",
    )
    parser.add_argument("--lang", "-l", default=None, help="Target language (default from settings).")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Task type")

    # file
    file_parser = subparsers.add_parser("file", help="Translate a document (PDF, DOCX, XLSX, PPTX, CSV, TXT)")
    file_parser.add_argument("file", type=Path, help="Path to document.")
    file_parser.add_argument("--out", "-o", type=Path, default=None, help="Output path (default: OUTPUT_DIR).")

    # image
    image_parser = subparsers.add_parser("image", help="Detect and translate text in an image")
    image_parser.add_argument("image", type=Path, help="Path to image.")

    # audio
    audio_parser = subparsers.add_parser("audio", help="Transcribe and translate an audio clip")
    audio_parser.add_argument("audio", type=Path, help="Path to audio file.")
    audio_parser.add_argument("--source", default="auto", help="Source language hint (e.g. en, vi, auto).")

    # text
    text_parser = subparsers.add_parser("text", help="Translate a short text in one call")
    text_parser.add_argument("text", help="Text to translate.")

    # enqueue
    enqueue_parser = subparsers.add_parser("enqueue", help="Submit a document to the worker queue")
    enqueue_parser.add_argument("file", type=Path, help="Path to document.")
    enqueue_parser.add_argument("--handle", default=None, help="Notification handle.")

    # status
    status_parser = subparsers.add_parser("status", help="Show a queued job's status")
    status_parser.add_argument("job_id", help="Job ID returned by enqueue.")

    args = parser.parse_args()

    from shared.config import get_settings

    settings = get_settings()
    args.lang = args.lang or settings.DEFAULT_TARGET_LANGUAGE

    for attr in ("file", "image", "audio"):
        path = getattr(args, attr, None)
        if path is not None and not path.exists():
            print(f"Error: file not found: {path}", file=sys.stderr)
            return 1

    runners = {
        "file": _run_file,
        "image": _run_image,
        "audio": _run_audio,
        "text": _run_text,
        "enqueue": _run_enqueue,
        "status": _run_status,
    }
    return asyncio.run(runners[args.command](args, settings))


async def _run_file(args, settings) -> int:
    from shared.schemas import TranslationJob

    from .client import TranslationClient
    from .notifier import LoggingNotifier
    from .pipeline import TranslationPipeline

    client = TranslationClient(settings)
    try:
        pipeline = TranslationPipeline.from_settings(settings, client, LoggingNotifier())
        if args.out is None:
            job = TranslationJob(
                job_id=f"cli-{uuid.uuid4().hex[:8]}",
                file_bytes=args.file.read_bytes(),
                original_filename=args.file.name,
                target_language=args.lang,
            )
            result = await pipeline.handle_translation(job)
            out_path = Path(settings.OUTPUT_DIR) / result["translated_file_name"]
        else:
            output, _ = await pipeline.translate_document(
                args.file.read_bytes(), args.file.name, args.lang, "cli"
            )
            args.out.parent.mkdir(parents=True, exist_ok=True)
            args.out.write_bytes(output)
            out_path = args.out
    finally:
        await client.aclose()

    print(f"Output: {out_path}")
    return 0


async def _run_image(args, settings) -> int:
    from .client import TranslationClient
    from .image import ImageTranslator
    from .ocr import VisionOcrClient

    client = TranslationClient(settings)
    ocr = VisionOcrClient(settings)
    try:
        mimetype = mimetypes.guess_type(args.image.name)[0] or "image/png"
        result = await ImageTranslator(client, ocr).translate_image(
            args.image.read_bytes(), mimetype, args.lang
        )
    finally:
        await ocr.aclose()
        await client.aclose()

    print(json.dumps(result, ensure_ascii=False, indent=2))
    return 0


async def _run_audio(args, settings) -> int:
    from .audio import AudioTranslator, SpeechClient
    from .client import TranslationClient

    client = TranslationClient(settings)
    speech = SpeechClient(settings)
    try:
        mimetype = mimetypes.guess_type(args.audio.name)[0] or "audio/mpeg"
        result = await AudioTranslator(client, speech).translate_audio(
            args.audio.read_bytes(), mimetype, args.source, args.lang
        )
    finally:
        await speech.aclose()
        await client.aclose()

    print(result.model_dump_json(indent=2))
    return 0 if result.success else 2


async def _run_text(args, settings) -> int:
    from .client import TranslationClient

    client = TranslationClient(settings)
    try:
        print(await client.translate_text_direct(args.text, args.lang))
    finally:
        await client.aclose()
    return 0


async def _run_enqueue(args, settings) -> int:
    from .job_queue import get_arq_pool, start_translation_job

    pool = await get_arq_pool(settings)
    try:
        job = await start_translation_job(
            pool,
            args.file.read_bytes(),
            args.file.name,
            target_language=args.lang,
            notification_handle=args.handle,
        )
    finally:
        await pool.close()

    if job is None:
        print("Error: job already exists", file=sys.stderr)
        return 1
    print(f"Job ID: {job.job_id}")
    return 0


async def _run_status(args, settings) -> int:
    from .job_queue import get_arq_pool, get_job_status

    pool = await get_arq_pool(settings)
    try:
        status = await get_job_status(pool, args.job_id)
    finally:
        await pool.close()

    print(status.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
