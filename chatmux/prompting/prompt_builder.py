"""Prompt assembly helpers used by the turn router.

This module only builds prompt strings from already routed inputs. Route
selection, connector calls, and model invocation happen elsewhere.

Design constraints:
    - Deterministic construction for identical inputs.
    - Fixed ordering of prompt components per route.
    - No I/O and no global state mutation.

Prompt composition order (text paths):
    1) `SYSTEM_PROMPT`
    2) PDF grounding block, when a PDF context is active
    3) Capability note for the connector used (or its failure note)
    User prompt: raw user text, then the connector's formatted context block.
"""


# =========================================================
# SYSTEM PROMPTS
# =========================================================

SYSTEM_PROMPT = (
    "You are a helpful AI assistant that can answer questions, provide information, "
    "and have engaging conversations. Be informative, helpful, and friendly in your "
    "responses."
)

IMAGE_ANALYSIS_SYSTEM_PROMPT = (
    "You are a helpful AI assistant. The user's message includes an automated analysis "
    "of an image they shared. Use that analysis to answer the user's question about the "
    "image clearly and accurately. Do not claim to see details the analysis does not "
    "mention."
)

PDF_ANALYSIS_SYSTEM_PROMPT = (
    "You are a helpful AI assistant that specializes in document analysis. Analyze the "
    "provided PDF content thoroughly and provide comprehensive insights."
)


# =========================================================
# CAPABILITY NOTES
# =========================================================
# Appended to the system prompt for the connector used on this turn.

REALTIME_NOTE = (
    " You have access to real-time information. Use the provided real-time data to "
    "answer the user's question accurately."
)
REALTIME_FAILURE_NOTE = (
    " Note: Real-time data lookup encountered an issue, provide the best answer you "
    "can with your existing knowledge."
)
DEEP_SEARCH_NOTE = (
    " You have access to web search results. Use the provided search information to "
    "give a comprehensive, well-researched answer. Always cite sources when possible "
    "and mention that the information comes from web search."
)
DEEP_SEARCH_FAILURE_NOTE = (
    " Note: Web search encountered an issue, provide the best answer you can with your "
    "existing knowledge."
)
LIVE_SEARCH_NOTE = (
    " You have access to live internet search results. Use the provided real-time "
    "information to give current, up-to-date answers. Always mention that this is "
    "live information from the internet and cite sources when possible."
)
LIVE_SEARCH_FAILURE_NOTE = (
    " Note: Live internet search encountered an issue, provide the best answer you can "
    "with your existing knowledge."
)


# =========================================================
# PDF GROUNDING
# =========================================================

def build_pdf_grounding(file_name: str, page_count: int, content: str) -> str:
    """Build the PDF block appended to the system prompt.

    The PDF content is injected verbatim; no truncation happens here.
    """
    return (
        f'\n\nIMPORTANT: The user has uploaded a PDF document titled "{file_name}" '
        f"({page_count} pages). You should PRIORITIZE answering questions based on this "
        "PDF content. When the user asks questions, first check if they can be answered "
        "using the PDF content. Only provide general knowledge if the question is clearly "
        "unrelated to the PDF.\n\n"
        "PDF CONTENT:\n"
        f"{content}\n\n"
        "INSTRUCTIONS:\n"
        "- Always check the PDF content first before giving general answers\n"
        "- If the question relates to the PDF, answer based on the PDF content\n"
        "- If you find relevant information in the PDF, cite it specifically\n"
        "- If the PDF doesn't contain relevant information, mention that and then "
        "provide general knowledge\n"
        "- Be specific about what section or page information comes from when possible"
    )


def build_pdf_analysis_prompt(
    file_name: str,
    page_count: int,
    size_label: str,
    content: str,
) -> str:
    """User prompt asking for an overview of a freshly uploaded PDF."""
    return f"""I've uploaded a PDF document titled "{file_name}". Please analyze this document and provide a comprehensive overview.

**Document Details:**
- File: {file_name}
- Pages: {page_count}
- Size: {size_label}

**Document Content:**
{content}

Please provide:
1. **Document Summary**: What is this document about?
2. **Key Topics**: Main themes and subjects covered
3. **Important Information**: Key facts, data, or insights
4. **Document Type**: What kind of document is this?
5. **Q&A Readiness**: Confirm you're ready to answer questions about this content

Be thorough but concise in your analysis."""


# =========================================================
# USER PROMPTS
# =========================================================

def build_image_analysis_prompt(text: str, description: str) -> str:
    """Combine user text with the vision model's description."""
    if not description:
        return text
    return f"{text}\n\nImage Analysis: {description}"


def build_realtime_prompt(text: str, formatted_data: str) -> str:
    return f"{text}\n\nReal-time data:\n{formatted_data}"


def build_search_prompt(text: str, formatted_results: str) -> str:
    """Append a formatted deep- or live-search block to the user text."""
    return f"{text}\n\n{formatted_results}"
