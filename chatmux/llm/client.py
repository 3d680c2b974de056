"""Transport client for OpenAI-compatible chat completions.

Architectural role:
    Executes one HTTP request against the configured completion endpoint and
    returns the decoded JSON body. Response-text extraction lives in
    `chatmux.llm.service`.

Model invocation flow:
    `service.complete` -> `send_request(payload, config)` -> decoded response.

Retry behavior:
    No retry loop. Each call is attempted once with the configured timeout.

Failure handling model:
    Every transport-level failure (missing key, connection error, non-2xx
    status, undecodable body, missing `choices`) raises `CompletionError` with
    a message that keeps the HTTP status visible, so the turn router can
    categorize quota, key, and network failures.
"""

import logging

import requests

from chatmux.config import ClientConfig


logger = logging.getLogger(__name__)


class CompletionError(RuntimeError):
    """Completion request could not produce a usable response body."""


def _build_http_error_message(err: requests.exceptions.RequestException) -> str:
    """Build an error message that keeps status and provider detail.

    Args:
        err: Request exception instance.

    Returns:
        `"<status> <detail>"` when a response is attached, otherwise the
        exception text prefixed with "network error".
    """
    response = getattr(err, "response", None)
    if response is None:
        return f"network error: {err}"

    detail = response.reason or ""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            detail = error["message"]
        elif isinstance(error, str):
            detail = error
    return f"{response.status_code} {detail}".strip()


def send_request(payload: dict, config: ClientConfig) -> dict:
    """Send one chat-completion request and return the decoded body.

    Args:
        payload: OpenAI-compatible request body.
        config: Endpoint, key, and timeout settings.

    Returns:
        Response JSON object containing a non-empty `choices` list.

    Raises:
        CompletionError: For every transport or shape failure.
    """
    if not config.chat_api_key:
        raise CompletionError("Completion API key not configured")

    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {config.chat_api_key}",
    }

    try:
        response = requests.post(
            config.chat_completions_url,
            headers=headers,
            json=payload,
            timeout=config.completion_timeout_seconds,
        )
        response.raise_for_status()
    except requests.exceptions.RequestException as err:
        raise CompletionError(_build_http_error_message(err)) from err

    try:
        data = response.json()
    except ValueError as err:
        raise CompletionError("Completion response was not valid JSON") from err

    if config.debug:
        logger.debug("Completion response: %s", data)

    if not isinstance(data, dict) or not data.get("choices"):
        raise CompletionError("Invalid API response structure")

    return data
