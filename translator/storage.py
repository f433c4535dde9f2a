"""
Output storage for translated documents.

Files are written under the output directory with a temporary name and then
renamed into place, so a reader never sees a partial file. Downloads stream
the file and delete it once the stream is closed.
"""
from __future__ import annotations

import os
import re
import tempfile
import time
from pathlib import Path
from typing import Iterator, Optional, Tuple

import structlog

from .exceptions import InvalidInput, ReconstructionFailure

logger = structlog.get_logger()

CONTENT_TYPES = {
    ".pdf": "application/pdf",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".csv": "text/csv",
    ".txt": "text/plain",
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
}

STREAM_CHUNK_SIZE = 64 * 1024

_UNSAFE_ID_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def build_output_name(job_id: str, extension: str, timestamp_ms: Optional[int] = None) -> str:
    """``translated-<jobId>-<epochMillis><ext>``"""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    safe_id = _UNSAFE_ID_CHARS.sub("_", job_id)
    return f"translated-{safe_id}-{timestamp_ms}{extension}"


class OutputStorage:
    def __init__(self, output_dir: str):
        self.output_dir = Path(output_dir)

    def write(self, job_id: str, extension: str, data: Optional[bytes]) -> str:
        """Persist one job's output and return its file name."""
        if data is None:
            raise ReconstructionFailure(f"No output buffer was generated for {extension}.")

        self.output_dir.mkdir(parents=True, exist_ok=True)
        file_name = build_output_name(job_id, extension)

        fd, tmp_path = tempfile.mkstemp(dir=self.output_dir, prefix=".", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_path, self.output_dir / file_name)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

        logger.info("Saved translated file", file_name=file_name, size=len(data))
        return file_name

    def resolve(self, file_name: str) -> Tuple[Path, str]:
        """Validate a download name and return its path and content type."""
        if not file_name or ".." in file_name or "/" in file_name or "\\" in file_name:
            raise InvalidInput("Invalid file name")

        extension = os.path.splitext(file_name)[1].lower()
        content_type = CONTENT_TYPES.get(extension)
        if content_type is None:
            raise InvalidInput(f"Unsupported file type: {extension or '(none)'}")

        path = self.output_dir / file_name
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {file_name}")
        return path, content_type

    def stream(self, file_name: str, chunk_size: int = STREAM_CHUNK_SIZE) -> Iterator[bytes]:
        """
        Yield the file in chunks, deleting it when the generator is closed.

        Validation happens on the first ``next()``; callers that need the
        content type up front should call ``resolve`` first.
        """
        path, _ = self.resolve(file_name)
        try:
            with open(path, "rb") as f:
                while True:
                    chunk = f.read(chunk_size)
                    if not chunk:
                        break
                    yield chunk
        finally:
            try:
                path.unlink()
                logger.info("Deleted downloaded file", file_name=file_name)
            except FileNotFoundError:
                pass
