"""
Tests for the completion client and response-text extraction.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from chatmux.llm.client import CompletionError, send_request
from chatmux.llm.service import (
    FALLBACK_RESPONSE,
    build_payload,
    complete,
    extract_response_text,
)


def _response(payload=None, status_code=200, json_error=False):
    response = MagicMock()
    response.status_code = status_code
    response.reason = "Too Many Requests" if status_code == 429 else "OK"
    if json_error:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(response=response)
    return response


class TestExtraction:

    def test_direct_content(self):
        response = {"choices": [{"message": {"content": "hello"}}]}
        assert extract_response_text(response) == "hello"

    def test_reasoning_content_when_content_missing(self):
        response = {"choices": [{"message": {"content": "", "reasoning_content": "x"}}]}
        assert extract_response_text(response) == "x"

    def test_content_parts_list(self):
        response = {"choices": [{"message": {"content": [
            {"type": "text", "text": "a"},
            {"type": "image_url", "image_url": {}},
            {"type": "text", "text": "b"},
        ]}}]}
        assert extract_response_text(response) == "ab"

    def test_serialized_message(self):
        response = {"choices": [{"message": json.dumps({"text": "from json"})}]}
        assert extract_response_text(response) == "from json"

    def test_surrounding_whitespace_is_preserved(self):
        response = {"choices": [{"message": {"content": "  indented code\n"}}]}
        assert extract_response_text(response) == "  indented code\n"

    def test_whitespace_only_content_falls_through(self):
        response = {"choices": [{"message": {"content": "  \n", "text": "x"}}]}
        assert extract_response_text(response) == "x"

    def test_nothing_extractable(self):
        assert extract_response_text({"choices": [{"message": {}}]}) is None


class TestComplete:

    def test_returns_content(self, config):
        with patch("chatmux.llm.client.requests.post") as post:
            post.return_value = _response({"choices": [{"message": {"content": "hello"}}]})
            assert complete("system", "user", config) == "hello"

        sent = post.call_args.kwargs
        assert sent["headers"]["Authorization"] == "Bearer test-chat-key"
        assert sent["json"]["messages"][0] == {"role": "system", "content": "system"}
        assert post.call_args.args[0] == "https://chat.test/v1/chat/completions"

    def test_no_text_returns_fallback(self, config):
        with patch("chatmux.llm.client.requests.post") as post:
            post.return_value = _response({"choices": [{"message": {"content": None}}]})
            assert complete("system", "user", config) == FALLBACK_RESPONSE

    def test_overrides_in_payload(self, config):
        payload = build_payload("s", "u", config, temperature=0.3, max_tokens=2048)
        assert payload["temperature"] == 0.3
        assert payload["max_tokens"] == 2048
        assert build_payload("s", "u", config)["temperature"] == config.temperature


class TestSendRequestErrors:

    def test_missing_key(self, config):
        with pytest.raises(CompletionError, match="API key"):
            send_request({}, config.with_overrides(chat_api_key=None))

    def test_http_error_keeps_status(self, config):
        with patch("chatmux.llm.client.requests.post") as post:
            post.return_value = _response({"error": {"message": "quota exceeded"}}, status_code=429)
            with pytest.raises(CompletionError, match="429 quota exceeded"):
                send_request({}, config)

    def test_connection_error_is_network_error(self, config):
        with patch("chatmux.llm.client.requests.post") as post:
            post.side_effect = requests.exceptions.ConnectionError("refused")
            with pytest.raises(CompletionError, match="network error"):
                send_request({}, config)

    def test_invalid_json(self, config):
        with patch("chatmux.llm.client.requests.post") as post:
            post.return_value = _response(json_error=True)
            with pytest.raises(CompletionError, match="not valid JSON"):
                send_request({}, config)

    def test_missing_choices(self, config):
        with patch("chatmux.llm.client.requests.post") as post:
            post.return_value = _response({"id": "x"})
            with pytest.raises(CompletionError, match="Invalid API response structure"):
                send_request({}, config)
