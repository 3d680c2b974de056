"""Client configuration for providers, connectors, and HTTP behavior.

Architectural role:
    Centralizes endpoint, model, credential, and network settings in one
    immutable `ClientConfig` value. The turn router and every connector receive
    the config explicitly; nothing reads provider settings from module globals.

Resolution:
    - `load_dotenv()` runs at import time so `.env` values are visible.
    - `ClientConfig.from_env()` reads environment variables once per call.
    - API keys resolve through `load_key`: environment override first, then the
      key file contents.

Failure behavior:
    Missing keys are represented as `None`. Connectors that need a key either
    degrade to their fallback value or raise their typed error.
"""

import os
from dataclasses import dataclass, replace

from dotenv import load_dotenv

load_dotenv()


DEFAULT_CHAT_BASE_URL = "https://api.a4f.co/v1"
DEFAULT_CHAT_MODEL = "provider-6/claude-3-7-sonnet-20250219-thinking"
DEFAULT_IMAGE_MODEL = "provider-1/FLUX.1-kontext-pro"
DEFAULT_VISION_URL = (
    "https://generativelanguage.googleapis.com/v1beta/models/"
    "gemini-1.5-flash:generateContent"
)

CHAT_KEY_FILE = "config/chat.key"
IMAGE_KEY_FILE = "config/image.key"
VISION_KEY_FILE = "config/vision.key"
WEATHER_KEY_FILE = "config/weather.key"


def load_key(path):
    """Load API key from environment override or key file.

    Resolution order:
        1. Environment variable inferred from file stem (for example
           `config/chat.key` -> `CHAT_API_KEY`).
        2. Raw file contents at `path`.

    Args:
        path: Key file path or `None`.

    Returns:
        Key string or `None` when not available.

    Edge cases:
        - `None` path returns `None`.
        - Missing or empty file returns `None`.
    """
    if not path:
        return None
    key_name = os.path.splitext(os.path.basename(path))[0].upper() + "_API_KEY"
    env_value = os.getenv(key_name)
    if env_value:
        return env_value.strip()
    if not os.path.exists(path):
        return None
    with open(path, "r") as f:
        return f.read().strip() or None


@dataclass(frozen=True)
class ClientConfig:
    """Immutable runtime configuration for one turn router.

    Relevant environment variables (see `from_env`):
        - `CHAT_BASE_URL`, `CHAT_MODEL`, `CHAT_TEMPERATURE`, `CHAT_MAX_TOKENS`
        - `IMAGE_BASE_URL`, `IMAGE_MODEL`, `IMAGE_SIZE`
        - `VISION_URL`
        - `WEATHER_LOCATION`
        - `HTTP_TIMEOUT_SECONDS`, `HTTP_RETRY_ATTEMPTS`, `HTTP_BACKOFF_SECONDS`,
          `HTTP_USER_AGENT`
        - `DEBUG`
        - `CHAT_API_KEY`, `IMAGE_API_KEY`, `VISION_API_KEY`, `WEATHER_API_KEY`
          (or the matching `config/*.key` files)
    """

    chat_api_key: str | None = None
    chat_base_url: str = DEFAULT_CHAT_BASE_URL
    chat_model: str = DEFAULT_CHAT_MODEL
    temperature: float = 0.7
    max_tokens: int = 1024
    completion_timeout_seconds: float = 120.0

    image_api_key: str | None = None
    image_base_url: str = DEFAULT_CHAT_BASE_URL
    image_model: str = DEFAULT_IMAGE_MODEL
    image_size: str = "1024x1024"

    vision_api_key: str | None = None
    vision_url: str = DEFAULT_VISION_URL

    weather_api_key: str | None = None
    weather_location: str = "New York"

    http_timeout_seconds: float = 12.0
    http_retry_attempts: int = 3
    http_backoff_seconds: float = 0.5
    http_user_agent: str = "chatmux/0.1"

    debug: bool = False

    @property
    def chat_completions_url(self) -> str:
        return self.chat_base_url.rstrip("/") + "/chat/completions"

    @property
    def image_generations_url(self) -> str:
        return self.image_base_url.rstrip("/") + "/images/generations"

    def with_overrides(self, **changes) -> "ClientConfig":
        """Return a copy with selected fields replaced."""
        return replace(self, **changes)

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Build configuration from the process environment and key files.

        Returns:
            `ClientConfig` with defaults for every unset variable.

        Raises:
            ValueError: When a numeric variable cannot be parsed.
        """
        chat_base_url = os.getenv("CHAT_BASE_URL", DEFAULT_CHAT_BASE_URL).strip()
        return cls(
            chat_api_key=load_key(CHAT_KEY_FILE),
            chat_base_url=chat_base_url,
            chat_model=os.getenv("CHAT_MODEL", DEFAULT_CHAT_MODEL).strip(),
            temperature=float(os.getenv("CHAT_TEMPERATURE", "0.7")),
            max_tokens=int(os.getenv("CHAT_MAX_TOKENS", "1024")),
            completion_timeout_seconds=float(os.getenv("CHAT_TIMEOUT_SECONDS", "120")),
            image_api_key=load_key(IMAGE_KEY_FILE) or load_key(CHAT_KEY_FILE),
            image_base_url=os.getenv("IMAGE_BASE_URL", chat_base_url).strip(),
            image_model=os.getenv("IMAGE_MODEL", DEFAULT_IMAGE_MODEL).strip(),
            image_size=os.getenv("IMAGE_SIZE", "1024x1024").strip(),
            vision_api_key=load_key(VISION_KEY_FILE),
            vision_url=os.getenv("VISION_URL", DEFAULT_VISION_URL).strip(),
            weather_api_key=load_key(WEATHER_KEY_FILE),
            weather_location=os.getenv("WEATHER_LOCATION", "New York").strip(),
            http_timeout_seconds=float(os.getenv("HTTP_TIMEOUT_SECONDS", "12")),
            http_retry_attempts=int(os.getenv("HTTP_RETRY_ATTEMPTS", "3")),
            http_backoff_seconds=float(os.getenv("HTTP_BACKOFF_SECONDS", "0.5")),
            http_user_agent=os.getenv("HTTP_USER_AGENT", "chatmux/0.1").strip(),
            debug=os.getenv("DEBUG") == "true",
        )
