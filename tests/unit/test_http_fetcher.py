"""
Tests for the retrying JSON fetcher.
"""

import asyncio

import httpx
import pytest


class TestJsonFetcher:

    def test_get_json_decodes_body_and_sends_headers(self, make_fetcher):
        seen = {}

        def handler(request):
            seen["user_agent"] = request.headers["User-Agent"]
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"ok": True})

        fetcher = make_fetcher(handler)
        data = asyncio.run(fetcher.get_json("https://api.test/x", params={"q": "cats"}))

        assert data == {"ok": True}
        assert seen["user_agent"] == "chatmux/0.1"
        assert seen["params"] == {"q": "cats"}

    def test_empty_body_is_none(self, make_fetcher):
        fetcher = make_fetcher(lambda request: httpx.Response(200, content=b""))
        assert asyncio.run(fetcher.get_json("https://api.test/x")) is None

    def test_retries_transient_status(self, make_fetcher):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) < 3:
                return httpx.Response(503)
            return httpx.Response(200, json=[1, 2])

        fetcher = make_fetcher(handler, http_retry_attempts=3)
        assert asyncio.run(fetcher.get_json("https://api.test/x")) == [1, 2]
        assert len(calls) == 3

    def test_retry_exhaustion_raises_runtime_error(self, make_fetcher):
        fetcher = make_fetcher(lambda request: httpx.Response(429), http_retry_attempts=2)
        with pytest.raises(RuntimeError, match="HTTP retry exhausted"):
            asyncio.run(fetcher.get_json("https://api.test/x"))

    def test_non_retryable_status_raises_immediately(self, make_fetcher):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(404)

        fetcher = make_fetcher(handler, http_retry_attempts=3)
        with pytest.raises(httpx.HTTPStatusError):
            asyncio.run(fetcher.get_json("https://api.test/x"))
        assert len(calls) == 1

    def test_transport_error_is_retried_then_raised(self, make_fetcher):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("unreachable", request=request)

        fetcher = make_fetcher(handler, http_retry_attempts=2)
        with pytest.raises(httpx.ConnectError):
            asyncio.run(fetcher.get_json("https://api.test/x"))
        assert len(calls) == 2

    def test_post_json(self, make_fetcher):
        def handler(request):
            assert request.method == "POST"
            return httpx.Response(200, content=request.content)

        fetcher = make_fetcher(handler)
        assert asyncio.run(fetcher.post_json("https://api.test/x", {"a": 1})) == {"a": 1}

    def test_backoff_is_exponential(self, make_fetcher):
        fetcher = make_fetcher(lambda request: httpx.Response(200), http_backoff_seconds=0.5)
        assert [fetcher._backoff(attempt) for attempt in range(3)] == [0.5, 1.0, 2.0]
