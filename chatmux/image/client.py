"""HTTP client for OpenAI-compatible image generation.

Processing flow:
    1. Resolve endpoint and key from `ClientConfig`.
    2. Submit the JSON payload to `<image_base_url>/images/generations`.
    3. Return the parsed JSON response or raise `ImageGenerationError`.

Error handling strategy:
    Missing key, transport errors, and non-2xx responses all raise
    `ImageGenerationError`. The message carries the provider's
    `error.message` when present, otherwise the HTTP reason.
"""

import requests

from chatmux.config import ClientConfig


class ImageGenerationError(RuntimeError):
    """Image generation failed; the message is safe to show to the user."""


def _provider_error_detail(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
    return response.reason or f"HTTP {response.status_code}"


def send_image_request(payload: dict, config: ClientConfig) -> dict:
    """Send one image-generation request.

    Args:
        payload: Provider JSON payload.
        config: Endpoint and credential settings.

    Returns:
        Parsed JSON response.

    Raises:
        ImageGenerationError: Missing key, transport failure, or non-2xx status.
    """
    if not config.image_api_key:
        raise ImageGenerationError("Image generation failed: API key not configured")

    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {config.image_api_key}",
    }

    try:
        response = requests.post(
            config.image_generations_url,
            json=payload,
            headers=headers,
            timeout=config.completion_timeout_seconds,
        )
    except requests.exceptions.RequestException as err:
        raise ImageGenerationError(f"Image generation failed: {err}") from err

    if not response.ok:
        raise ImageGenerationError(
            f"Image generation failed: {_provider_error_detail(response)}"
        )

    try:
        return response.json()
    except ValueError as err:
        raise ImageGenerationError("Image generation failed: invalid response body") from err
