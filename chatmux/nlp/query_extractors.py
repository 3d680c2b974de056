"""Query cleanup for search-backed and image-generation turns.

Both extractors strip the conversational lead-in ("search for", "draw a
picture of") so connectors receive only the subject. When stripping would
leave nothing, the original text is returned unchanged.
"""

import re


SEARCH_PREFIXES = (
    "search for",
    "find information about",
    "look up",
    "research",
    "what is the latest",
    "find articles about",
    "search the web",
    "deep search",
    "find sources about",
    "web search for",
)

_TRAILING_PUNCTUATION = re.compile(r"[?!.]+$")

_IMAGE_LEAD_IN = re.compile(
    r"^(generate|create|draw|sketch|paint|show me|visualize|make|can you)"
    r"(\s+an?|\s+a)?\s+"
    r"(image|picture|drawing|sketch|visualization|illustration|photo|painting)"
    r"(\s+of)?",
    re.IGNORECASE,
)
_IMAGE_NOUN_LEAD_IN = re.compile(r"^(image|picture)(\s+of)?", re.IGNORECASE)


def extract_search_query(text: str) -> str:
    """Strip one known search prefix and trailing punctuation.

    The result is lower-cased, matching how prefixes are detected.

    Args:
        text: Raw user text.

    Returns:
        Cleaned query, or `text` when cleanup leaves nothing.
    """
    query = text.lower().strip()
    for prefix in SEARCH_PREFIXES:
        if query.startswith(prefix):
            query = query[len(prefix):].strip()
            break
    query = _TRAILING_PUNCTUATION.sub("", query).strip()
    return query or text


def extract_image_prompt(text: str) -> str:
    """Strip image-request lead-ins such as "create an image of".

    Args:
        text: Raw user text.

    Returns:
        Subject description, or `text` when cleanup leaves nothing.
    """
    prompt = _IMAGE_LEAD_IN.sub("", text.strip()).strip()
    prompt = _IMAGE_NOUN_LEAD_IN.sub("", prompt).strip()
    return prompt or text
