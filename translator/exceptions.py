"""
Error types raised by the translation pipeline.

Chunk-level remote failures never surface as exceptions (they become
placeholder text); everything else propagates to the job worker.
"""


class TranslatorError(Exception):
    """Base class for translation pipeline errors."""


class UnsupportedFileType(TranslatorError):
    """Raised before extraction when the file extension has no handler."""

    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(f"Unsupported file type: {extension or '(none)'}")


class RemoteCallFailure(TranslatorError):
    """A remote translation, OCR or speech call failed."""


class MalformedRemoteResponse(TranslatorError):
    """A remote call returned empty content or content that could not be parsed."""


class ReconstructionFailure(TranslatorError):
    """No usable output document could be produced."""


class InvalidInput(TranslatorError):
    """Input rejected before entering the pipeline."""


class AudioTranslationError(RemoteCallFailure):
    """Transcription or transcript translation failed."""

    def __init__(self, reason: str):
        super().__init__(f"Audio translation failed: {reason}")
