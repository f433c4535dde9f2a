"""Test configuration and fakes for the translation worker tests."""

import asyncio
import os
import tempfile

# Set test environment variables before importing worker modules
os.environ.setdefault("OPENROUTER_BASE_URL", "https://openrouter.test/api/v1/chat/completions")
os.environ.setdefault("OPENROUTER_API_KEY", "test-openrouter-key")
os.environ.setdefault("OPENROUTER_MODEL", "test/translator-model")
os.environ.setdefault("GOOGLE_API_KEY", "test-google-key")
os.environ.setdefault("OUTPUT_DIR", tempfile.mkdtemp())
os.environ.setdefault("FONTS_DIR", tempfile.mkdtemp())

import pytest

from shared.config import Settings
from translator.chunker import ChunkTranslator
from translator.exceptions import MalformedRemoteResponse, RemoteCallFailure
from translator.formats import TranslationContext


class FakeTranslationClient:
    """
    Stand-in for TranslationClient.

    Chunk translations are ``"T:<text>"``. Texts containing a marker from
    ``fail_on`` raise RemoteCallFailure. Batch and image responses are
    scripted through ``batch_responses`` / ``image_responses`` (an Exception
    entry is raised instead of returned).
    """

    def __init__(self):
        self.calls = []
        self.fail_on = set()
        self.delay = 0.0
        self.in_flight = 0
        self.max_in_flight = 0
        self.batch_responses = []
        self.image_responses = []
        self.direct_response = None

    async def translate(self, text, target_language):
        self.calls.append(("translate", text, target_language))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if any(marker in text for marker in self.fail_on):
                raise RemoteCallFailure("Translation API returned HTTP 503: unavailable")
            return f"T:{text}"
        finally:
            self.in_flight -= 1

    async def translate_text_direct(self, text, target_language):
        self.calls.append(("direct", text, target_language))
        if isinstance(self.direct_response, Exception):
            raise self.direct_response
        if self.direct_response is not None:
            return self.direct_response
        return f"T:{text}"

    async def translate_batch_lines(self, text, target_language):
        self.calls.append(("batch", text, target_language))
        return self._next(self.batch_responses)

    async def translate_image(self, image_bytes, mimetype, target_language):
        self.calls.append(("image", mimetype, target_language))
        return self._next(self.image_responses)

    def _next(self, responses):
        if not responses:
            raise MalformedRemoteResponse("Invalid API response structure: missing message content")
        response = responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def calls_of(self, kind):
        return [call for call in self.calls if call[0] == kind]


class FakeNotifier:
    def __init__(self):
        self.events = []

    async def notify(self, handle, event, payload):
        self.events.append((handle, event, payload))


class FakeRedis:
    def __init__(self, fail=False):
        self.fail = fail
        self.published = []

    async def publish(self, channel, message):
        if self.fail:
            raise ConnectionError("redis unavailable")
        self.published.append((channel, message))
        return 1


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def fake_client():
    return FakeTranslationClient()


@pytest.fixture
def fake_notifier():
    return FakeNotifier()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def chunker(fake_client):
    return ChunkTranslator(fake_client, chunk_size=4000, chunk_overlap=200, concurrency=10)


@pytest.fixture
def make_context(chunker, tmp_path):
    def _make(target_language="Vietnamese", job_id="job-1", slide_concurrency=5):
        return TranslationContext(
            job_id=job_id,
            target_language=target_language,
            chunker=chunker,
            slide_concurrency=slide_concurrency,
            fonts_dir=str(tmp_path / "fonts"),
        )

    return _make
