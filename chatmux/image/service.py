"""Image generation service used by image-generation turns.

Role in pipeline:
    - Receives the cleaned image prompt from the turn router.
    - Builds the provider payload (`n=1`, configured size, URL response).
    - Returns the generated image URLs.

Error handling strategy:
    `ImageGenerationError` from the client propagates; an empty result also
    raises it. The turn router converts it into an assistant message.
"""

from chatmux.config import ClientConfig
from chatmux.image.client import ImageGenerationError, send_image_request


def generate_image(prompt: str, config: ClientConfig) -> list[str]:
    """Generate images for `prompt` and return their URLs.

    Raises:
        ImageGenerationError: Provider failure or no URLs in the response.
    """
    payload = {
        "model": config.image_model,
        "prompt": prompt,
        "n": 1,
        "size": config.image_size,
        "response_format": "url",
    }

    data = send_image_request(payload, config)

    urls = [
        item["url"]
        for item in (data.get("data") or [] if isinstance(data, dict) else [])
        if isinstance(item, dict) and item.get("url")
    ]
    if not urls:
        raise ImageGenerationError("No images were generated")
    return urls
