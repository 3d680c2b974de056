"""
Shared pytest fixtures for chatmux tests.

Connectors are exercised against `httpx.MockTransport`; the turn router is
exercised with in-memory fakes for every network-facing collaborator.
"""

import json
from typing import Callable, Dict, List
from unittest.mock import MagicMock

import httpx
import pytest

from chatmux.config import ClientConfig
from chatmux.core.engine import TurnRouter
from chatmux.memory.conversation_manager import Conversation
from chatmux.retrieval.types import (
    DeepSearchResult,
    LiveSearchResult,
    RealtimeData,
    SearchResult,
    WeatherData,
)
from chatmux.retrieval.web.http_fetcher import JsonFetcher

# ===== CONFIG FIXTURES =====


@pytest.fixture
def config() -> ClientConfig:
    """Config with every key present and no retry delay."""
    return ClientConfig(
        chat_api_key="test-chat-key",
        chat_base_url="https://chat.test/v1",
        image_api_key="test-image-key",
        image_base_url="https://images.test/v1",
        vision_api_key="test-vision-key",
        vision_url="https://vision.test/generate",
        weather_api_key=None,
        http_retry_attempts=1,
        http_backoff_seconds=0,
    )


# ===== HTTP FIXTURES =====


def json_response(payload, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(payload).encode())


@pytest.fixture
def make_fetcher(config) -> Callable:
    """Factory building a `JsonFetcher` over a mock transport handler."""

    def factory(handler, **overrides) -> JsonFetcher:
        fetcher_config = config.with_overrides(**overrides) if overrides else config
        return JsonFetcher(fetcher_config, transport=httpx.MockTransport(handler))

    return factory


@pytest.fixture
def route_table() -> Callable:
    """Build a mock transport handler from `{url_prefix: payload_or_status}`.

    Integer values are returned as bare status codes; unmatched URLs get 404.
    """

    def factory(table: Dict[str, object]):
        def handler(request: httpx.Request) -> httpx.Response:
            url = str(request.url)
            for prefix, payload in table.items():
                if url.startswith(prefix):
                    if isinstance(payload, int):
                        return httpx.Response(payload)
                    if isinstance(payload, Exception):
                        raise payload
                    return json_response(payload)
            return httpx.Response(404)

        return handler

    return factory


# ===== ROUTER FAKES =====


class FakeDeepSearch:
    def __init__(self, error: Exception = None):
        self.queries: List[str] = []
        self.error = error

    async def perform_deep_search(self, query):
        self.queries.append(query)
        if self.error:
            raise self.error
        return DeepSearchResult(
            query=query,
            results=(SearchResult("Python", "https://python.org", "A language.", "Wikipedia"),),
            summary="summary",
            total_results=1,
            search_time_ms=5,
        )


class FakeLiveSearch:
    def __init__(self, error: Exception = None):
        self.queries: List[str] = []
        self.error = error

    async def perform_live_search(self, query):
        self.queries.append(query)
        if self.error:
            raise self.error
        return LiveSearchResult(
            query=query,
            web_results=(),
            summary="summary",
            search_time_ms=3,
            sources=("Web Search",),
        )


class FakeRealtime:
    def __init__(self, error: Exception = None):
        self.calls = 0
        self.error = error

    async def get_realtime_data(self):
        self.calls += 1
        if self.error:
            raise self.error
        return RealtimeData(
            current_time="10:00:00 AM",
            current_date="Monday, January 1, 2024",
            timezone="UTC",
            weather=WeatherData("New York", 22, "partly cloudy", 65, 8),
        )


@pytest.fixture
def completer() -> MagicMock:
    """Completion stand-in returning a fixed reply."""
    return MagicMock(return_value="assistant reply")


@pytest.fixture
def image_generator() -> MagicMock:
    return MagicMock(return_value=["https://images.test/1.png"])


@pytest.fixture
def fakes():
    return {
        "deep_search": FakeDeepSearch(),
        "live_search": FakeLiveSearch(),
        "realtime": FakeRealtime(),
    }


@pytest.fixture
def make_router(config, completer, image_generator, fakes) -> Callable:
    """Factory for a `TurnRouter` wired entirely to fakes."""

    def factory(**overrides) -> TurnRouter:
        kwargs = dict(
            conversation=Conversation(),
            deep_search=fakes["deep_search"],
            live_search=fakes["live_search"],
            realtime=fakes["realtime"],
            completer=completer,
            image_generator=image_generator,
            describe_image=MagicMock(return_value="a cat on a sofa"),
            classify_image=MagicMock(),
            explain_image=MagicMock(return_value="explanation"),
        )
        kwargs.update(overrides)
        return TurnRouter(config, **kwargs)

    return factory


@pytest.fixture
def data_url() -> str:
    return "data:image/png;base64,iVBORw0KGgo="
