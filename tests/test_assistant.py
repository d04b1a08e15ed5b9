from types import SimpleNamespace

import pytest
from google.genai import errors as genai_errors

from retail.config import Settings
from retail.services.assistant import (
    EMPTY_TEXT,
    FALLBACK_TEXT,
    FLASH_MODEL,
    MAPS_NOTE,
    NO_KEY_TEXT,
    build_context,
    chat_with_agent,
)


class FakeAPIError(genai_errors.APIError):
    def __init__(self, code, message="google_maps is not enabled for this model"):
        Exception.__init__(self, message)
        self.code = code
        self.status = None
        self.message = message
        self.details = {}
        self.response = None


def _response(text="Stock looks fine.", chunks=()):
    meta = SimpleNamespace(grounding_chunks=list(chunks))
    return SimpleNamespace(text=text, candidates=[SimpleNamespace(grounding_metadata=meta)])


class FakeClient:
    """Replays queued responses; queued exceptions are raised."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []
        self.models = self

    def generate_content(self, *, model, contents, config=None):
        self.calls.append({"model": model, "contents": contents, "config": config})
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def settings():
    return Settings(business_name="Hanuman Trader", assistant_model="gemini-2.5-pro")


def test_without_key_or_client(settings):
    reply = chat_with_agent("hello", "ctx", settings=settings)
    assert reply.text == NO_KEY_TEXT


def test_plain_question(settings):
    client = FakeClient(_response(chunks=["src"]))
    reply = chat_with_agent("How is stock?", "Low Stock Items: Sugar.", settings=settings, client=client)

    assert reply.text == "Stock looks fine."
    assert reply.grounding == ["src"]
    call = client.calls[0]
    assert call["model"] == "gemini-2.5-pro"
    assert call["config"] is None
    assert "Hanuman Trader" in call["contents"]
    assert "Low Stock Items: Sugar." in call["contents"]
    assert "How is stock?" in call["contents"]


def test_tools_use_flash_model(settings):
    client = FakeClient(_response())
    chat_with_agent("Market trends?", "ctx", settings=settings, use_search=True, client=client)

    call = client.calls[0]
    assert call["model"] == FLASH_MODEL
    assert call["config"] == {"tools": [{"google_search": {}}]}


def test_maps_rejection_retries_without_maps(settings):
    client = FakeClient(FakeAPIError(400), _response(text="Nearest supplier is in Pune."))
    reply = chat_with_agent("Where?", "ctx", settings=settings, use_search=True, use_maps=True, client=client)

    assert reply.text == "Nearest supplier is in Pune." + MAPS_NOTE
    assert len(client.calls) == 2
    assert client.calls[0]["config"] == {"tools": [{"google_search": {}, "google_maps": {}}]}
    assert client.calls[1]["config"] == {"tools": [{"google_search": {}}]}


def test_failed_retry_falls_back(settings):
    client = FakeClient(FakeAPIError(400), RuntimeError("network down"))
    reply = chat_with_agent("Where?", "ctx", settings=settings, use_maps=True, client=client)
    assert reply.text == FALLBACK_TEXT


def test_api_error_without_maps_falls_back(settings):
    client = FakeClient(FakeAPIError(500, "server error"))
    reply = chat_with_agent("hi", "ctx", settings=settings, client=client)
    assert reply.text == FALLBACK_TEXT
    assert len(client.calls) == 1


def test_unexpected_error_falls_back(settings):
    client = FakeClient(RuntimeError("boom"))
    assert chat_with_agent("hi", "ctx", settings=settings, client=client).text == FALLBACK_TEXT


def test_empty_reply(settings):
    client = FakeClient(_response(text=""))
    assert chat_with_agent("hi", "ctx", settings=settings, client=client).text == EMPTY_TEXT


def test_context_summarises_store(demo_store):
    ctx = build_context(demo_store, page="Inventory")
    assert ctx.startswith("Current Page: Inventory")
    assert "Main Warehouse" in ctx
    assert "Sugar (5kg)" in ctx
