"""Async JSON fetcher with retry/backoff for public data providers.

Architectural role:
    Shared transport for every `httpx`-based connector (deep search, live
    search, real-time data). Connectors build URLs and parse payloads; this
    module owns timeouts, headers, and retry policy.

Retry policy:
    Status codes `429,500,502,503,504` and transport errors are retried up to
    `http_retry_attempts` times with exponential backoff
    (`http_backoff_seconds * 2**attempt`). Other non-2xx statuses raise
    immediately.

Failure model:
    Errors are raised to the calling connector, which owns the fallback
    decision. Nothing here substitutes default values.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import httpx

from chatmux.config import ClientConfig


logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = (429, 500, 502, 503, 504)


class JsonFetcher:
    """HTTP GET/POST helper returning decoded JSON.

    Args:
        config: Source of timeout, retry, backoff, and user-agent settings.
        transport: Optional `httpx` transport; tests pass `httpx.MockTransport`.
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.transport = transport

    async def get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """GET `url` and decode the JSON body.

        Returns:
            Decoded JSON value (any JSON type), or `None` for an empty body.

        Raises:
            httpx.HTTPStatusError / httpx.RequestError: Unrecoverable failures.
            RuntimeError: Retry exhaustion on transient statuses.
            ValueError: Body is not valid JSON.
        """
        body = await self.request_text("GET", url, params=params, headers=headers)
        if not body.strip():
            return None
        return json.loads(body)

    async def post_json(
        self,
        url: str,
        json_body: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> Any:
        body = await self.request_text("POST", url, json_body=json_body, headers=headers)
        if not body.strip():
            return None
        return json.loads(body)

    async def request_text(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> str:
        """Execute an HTTP request with retry/backoff for transient failures.

        Returns:
            Response text of the first non-retryable successful response.
        """
        attempts = max(1, self.config.http_retry_attempts)
        request_headers = {**self._default_headers(), **(headers or {})}
        last_error: Exception | None = None

        for attempt in range(attempts):
            try:
                async with httpx.AsyncClient(
                    timeout=self.config.http_timeout_seconds,
                    follow_redirects=True,
                    headers=request_headers,
                    transport=self.transport,
                ) as client:
                    response = await client.request(
                        method,
                        url,
                        params=params,
                        json=json_body,
                    )

                if response.status_code in RETRYABLE_STATUS_CODES:
                    if attempt < attempts - 1:
                        logger.warning(
                            "Transient status %s from %s, retrying", response.status_code, url
                        )
                        await asyncio.sleep(self._backoff(attempt))
                        continue
                    raise RuntimeError(
                        f"HTTP retry exhausted: status={response.status_code} url={url}"
                    )

                response.raise_for_status()
                return response.text

            except httpx.RequestError as exc:
                last_error = exc
                if attempt < attempts - 1:
                    logger.warning("Request error for %s, retrying: %s", url, exc)
                    await asyncio.sleep(self._backoff(attempt))
                    continue
                raise

        if last_error is not None:
            raise last_error

        raise RuntimeError(f"Request failed without error details for url={url}")

    def _default_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json, text/plain;q=0.9,*/*;q=0.8",
            "User-Agent": self.config.http_user_agent,
        }

    def _backoff(self, attempt: int) -> float:
        """Compute exponential backoff delay for a retry attempt."""
        return self.config.http_backoff_seconds * (2 ** attempt)
