from .base import DocumentKind, TextDocumentHandler, TranslationContext


class TextHandler(TextDocumentHandler):
    """Plain UTF-8 text."""

    kind = DocumentKind.TEXT

    def extract_text(self, data: bytes) -> str:
        return data.decode("utf-8", errors="replace")

    def build(self, translated: str, ctx: TranslationContext) -> bytes:
        return translated.encode("utf-8")
