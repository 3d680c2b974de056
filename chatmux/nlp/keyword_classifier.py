"""Rule-based keyword classifiers for turn routing.

Classification model:
    - Input text is lower-cased once.
    - A category matches when any of its trigger phrases is a substring.
    - No tokenization, stemming, or negation handling ("don't draw" still
      matches `draw`). Overlaps between categories are resolved only by the
      caller's evaluation order (see `chatmux.nlp.intent_router`).

Keyword tables:
    `KEYWORD_TABLES` is the single source of trigger phrases. Classifier
    functions are thin lookups over it, so tables can be extended or replaced
    without touching routing code.

Determinism:
    Pure functions. Same input, same output.
"""

from enum import Enum


class IntentCategory(str, Enum):
    IMAGE_GENERATION = "image_generation"
    REALTIME = "realtime"
    DEEP_SEARCH = "deep_search"
    LIVE_SEARCH = "live_search"


class ImageCategory(str, Enum):
    """Content class of an uploaded image for two-stage explanation."""

    MATH = "MATH"
    QUESTION = "QUESTION"
    IMAGE = "IMAGE"


# =========================================================
# KEYWORD TABLES
# =========================================================

KEYWORD_TABLES: dict[IntentCategory, tuple[str, ...]] = {
    IntentCategory.IMAGE_GENERATION: (
        "generate image",
        "create image",
        "draw",
        "sketch",
        "paint",
        "show me",
        "visualize",
        "picture of",
        "image of",
        "make an image",
        "create a picture",
        "generate a photo",
        "create a visual",
        "illustrate",
    ),
    IntentCategory.REALTIME: (
        "current time",
        "what time",
        "time now",
        "current date",
        "today date",
        "latest news",
        "recent news",
        "news today",
        "breaking news",
        "weather",
        "temperature",
        "weather today",
        "current weather",
        "crypto",
        "bitcoin",
        "cryptocurrency",
        "crypto prices",
        "btc price",
        "stock market",
        "stocks",
        "market update",
        "real time",
        "realtime",
        "live update",
        "current info",
        "latest update",
    ),
    IntentCategory.DEEP_SEARCH: (
        "search for",
        "find information about",
        "look up",
        "research",
        "what is the latest",
        "recent developments",
        "current status",
        "find articles about",
        "search the web",
        "deep search",
        "comprehensive information",
        "detailed research",
        "in-depth analysis",
        "latest news about",
        "recent studies",
        "current research",
        "find sources",
        "web search",
        "internet search",
        "online research",
    ),
    IntentCategory.LIVE_SEARCH: (
        "current",
        "latest",
        "recent",
        "today",
        "now",
        "live",
        "breaking",
        "real time",
        "real-time",
        "up to date",
        "fresh",
        "new",
        "happening",
        "trending",
        "viral",
        "popular",
        "hot",
        "active",
        "ongoing",
        "what's happening",
        "news about",
        "updates on",
        "status of",
        "live information",
        "current events",
        "recent developments",
    ),
}


def match_keyword(text: str, category: IntentCategory) -> str | None:
    """Return the first trigger phrase of `category` found in `text`.

    Args:
        text: Raw user text.
        category: Table to search.

    Returns:
        Matching phrase in table order, or `None`.
    """
    if not text:
        return None
    lowered = text.lower()
    for keyword in KEYWORD_TABLES[category]:
        if keyword in lowered:
            return keyword
    return None


def is_image_generation_request(text: str) -> bool:
    return match_keyword(text, IntentCategory.IMAGE_GENERATION) is not None


def is_realtime_request(text: str) -> bool:
    return match_keyword(text, IntentCategory.REALTIME) is not None


def is_deep_search_query(text: str) -> bool:
    return match_keyword(text, IntentCategory.DEEP_SEARCH) is not None


def is_live_search_query(text: str) -> bool:
    return match_keyword(text, IntentCategory.LIVE_SEARCH) is not None


def matching_categories(text: str) -> list[IntentCategory]:
    """Return every category whose table matches `text`, in table order."""
    return [
        category
        for category in KEYWORD_TABLES
        if match_keyword(text, category) is not None
    ]


def parse_image_category(reply: str | None) -> ImageCategory:
    """Map a vision model's one-word classification reply to `ImageCategory`.

    Edge cases:
        - Surrounding whitespace, punctuation, and case are ignored.
        - Empty or unknown replies map to `ImageCategory.IMAGE`.
    """
    if not reply:
        return ImageCategory.IMAGE
    word = reply.strip().upper().strip(".!:*` \n")
    if word.startswith("MATH"):
        return ImageCategory.MATH
    if word.startswith("QUESTION"):
        return ImageCategory.QUESTION
    return ImageCategory.IMAGE
