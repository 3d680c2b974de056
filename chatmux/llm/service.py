"""Prompt-to-payload adapter and response-text extraction.

Architectural role:
    Canonical text-generation entrypoint for the turn router. Builds the
    two-message payload, delegates transport to `chatmux.llm.client`, and
    extracts assistant text from provider responses of varying shape.

Response extraction:
    `RESPONSE_EXTRACTORS` is an ordered tuple of pure strategies
    `response -> str | None`, tried in order until one yields text:

    1. `choices[0].message.content` (string or list of text parts).
    2. Alternate message fields: `reasoning_content`, `text`, `response`.
    3. A message delivered as a serialized JSON string, parsed again and
       probed for `reasoning_content`, `content`, `text`.

    When no strategy yields text, `complete` returns `FALLBACK_RESPONSE`
    instead of raising.

Failure scenarios:
    Transport and shape failures raise `CompletionError` from the client and
    propagate; the turn router is the only catch site.
"""

import json
import logging

from chatmux.config import ClientConfig
from chatmux.llm.client import send_request


logger = logging.getLogger(__name__)

FALLBACK_RESPONSE = (
    "I received your message but had trouble generating a response. Please try again."
)


def _first_message(response: dict):
    choices = response.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        return None
    return choices[0].get("message")


def _non_empty(value) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def extract_direct_content(response: dict) -> str | None:
    message = _first_message(response)
    if not isinstance(message, dict):
        return None

    content = message.get("content")
    if isinstance(content, list):
        texts = [
            part.get("text", "")
            for part in content
            if isinstance(part, dict) and part.get("type", "text") == "text"
        ]
        return _non_empty("".join(texts))
    return _non_empty(content)


def extract_alternate_fields(response: dict) -> str | None:
    message = _first_message(response)
    if not isinstance(message, dict):
        return None

    for key in ("reasoning_content", "text", "response"):
        text = _non_empty(message.get(key))
        if text:
            return text
    return None


def extract_serialized_message(response: dict) -> str | None:
    message = _first_message(response)
    if not isinstance(message, str):
        return None

    try:
        parsed = json.loads(message)
    except ValueError:
        return None
    if not isinstance(parsed, dict):
        return None

    for key in ("reasoning_content", "content", "text"):
        text = _non_empty(parsed.get(key))
        if text:
            return text
    return None


RESPONSE_EXTRACTORS = (
    extract_direct_content,
    extract_alternate_fields,
    extract_serialized_message,
)


def extract_response_text(response: dict, extractors=RESPONSE_EXTRACTORS) -> str | None:
    """Apply extractor strategies in order and return the first text found."""
    for extractor in extractors:
        text = extractor(response)
        if text:
            return text
    return None


def build_payload(
    system_prompt: str,
    user_prompt,
    config: ClientConfig,
    temperature: float | None = None,
    max_tokens: int | None = None,
) -> dict:
    """Build the OpenAI-compatible request body.

    `user_prompt` may be a string or a list of provider content parts.
    """
    return {
        "model": config.chat_model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "temperature": config.temperature if temperature is None else temperature,
        "max_tokens": config.max_tokens if max_tokens is None else max_tokens,
    }


def complete(
    system_prompt: str,
    user_prompt,
    config: ClientConfig,
    temperature: float | None = None,
    max_tokens: int | None = None,
) -> str:
    """Run one completion and return the assistant text.

    Args:
        system_prompt: System instruction.
        user_prompt: User turn text (or provider content parts).
        config: Model, endpoint, and default sampling settings.
        temperature: Optional override of `config.temperature`.
        max_tokens: Optional override of `config.max_tokens`.

    Returns:
        Extracted assistant text, or `FALLBACK_RESPONSE` when the response
        carries choices but no recognizable text.

    Raises:
        CompletionError: Transport or response-structure failure.
    """
    payload = build_payload(system_prompt, user_prompt, config, temperature, max_tokens)
    response = send_request(payload, config)

    text = extract_response_text(response)
    if text is None:
        logger.warning("No content found in completion response; using fallback text")
        return FALLBACK_RESPONSE
    return text
