"""Deterministic aggregators for connector output.

Architectural role:
    Render connector results as (a) user-facing markdown summaries and (b)
    context blocks appended to the completion prompt.

Determinism:
    Every function here is pure. Timestamps are printed exactly as the
    connector recorded them; nothing is rendered relative to the wall clock,
    so identical inputs always give identical text.

Edge cases:
    - Empty result lists render a templated explanation naming the query,
      never an exception.
    - Optional real-time sections are emitted only when present.
"""

import re

from chatmux.retrieval.types import (
    DeepSearchResult,
    LiveSearchResult,
    LiveWebResult,
    RealtimeData,
    SearchResult,
)


SUMMARY_TOP_N = 5
SEARCH_SNIPPET_CHARS = 200
LIVE_SNIPPET_CHARS = 150
KEY_INSIGHT_COUNT = 3
KEY_INSIGHT_MIN_CHARS = 20
REALTIME_NEWS_TOP_N = 3

_SENTENCE_SPLIT = re.compile(r"[.!?]+")


def _truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def format_price(price: float) -> str:
    """Group thousands and keep at most three decimals (`45,000`, `0.85`)."""
    return f"{price:,.3f}".rstrip("0").rstrip(".")


# =========================================================
# DEEP SEARCH
# =========================================================

def no_results_summary(query: str) -> str:
    """Explanation used when a deep search produced nothing."""
    return (
        f'I couldn\'t find specific information about "{query}" through web search. '
        "This might be because:\n\n"
        "• The topic is very new or specialized\n"
        "• The search terms need to be more specific\n"
        "• The information might be behind paywalls or in private databases\n"
        "• Network connectivity issues\n\n"
        "Try rephrasing your query or asking about related topics."
    )


def search_failure_summary(query: str) -> str:
    """Explanation used when the deep search itself failed unexpectedly."""
    return (
        f'I encountered an issue while searching for "{query}". This could be due to '
        "network connectivity or search service limitations. Please try rephrasing "
        "your query or ask me to search for something else."
    )


def _key_insights(results) -> list[str]:
    all_text = " ".join(result.snippet for result in results)
    sentences = [
        sentence.strip()
        for sentence in _SENTENCE_SPLIT.split(all_text)
        if len(sentence.strip()) > KEY_INSIGHT_MIN_CHARS
    ]
    return sentences[:KEY_INSIGHT_COUNT]


def generate_search_summary(query: str, results: list[SearchResult]) -> str:
    """Build the user-facing summary of a deep search.

    Args:
        query: Query as searched.
        results: Results in arrival order (may be empty).

    Returns:
        Markdown text: header, top results with truncated snippets, a
        remainder line, and up to three key-insight sentences.
    """
    if not results:
        return no_results_summary(query)

    lines = [
        f'🔍 **Deep Search Results for "{query}"**',
        "",
        f"Found {len(results)} relevant sources:",
        "",
    ]

    for index, result in enumerate(results[:SUMMARY_TOP_N], start=1):
        lines.append(f"**{index}. {result.title}**")
        lines.append(_truncate(result.snippet, SEARCH_SNIPPET_CHARS))
        lines.append(f"*Source: {result.source}*")
        lines.append("")

    if len(results) > SUMMARY_TOP_N:
        lines.append(f"*...and {len(results) - SUMMARY_TOP_N} more sources*")
        lines.append("")

    lines.append("💡 **Key Insights:**")
    lines.append(f'Based on the search results, here\'s what I found about "{query}":')
    lines.append("")
    for insight in _key_insights(results):
        lines.append(f"• {insight}.")

    return "\n".join(lines)


def format_search_results_for_ai(result: DeepSearchResult) -> str:
    """Render a deep search as a numbered context block for the completion."""
    blocks = [f'DEEP SEARCH RESULTS for "{result.query}":\n']

    for index, item in enumerate(result.results, start=1):
        blocks.append(
            f"[{index}] {item.title}\n"
            f"Source: {item.source}\n"
            f"Content: {item.snippet}\n"
            f"URL: {item.url}\n"
        )

    blocks.append(
        f"Search completed in {result.search_time_ms}ms with "
        f"{result.total_results} total results.\n"
    )
    blocks.append(
        "INSTRUCTIONS: Use this search information to provide a comprehensive answer. "
        "Cite sources when possible and mention that this information comes from web search."
    )
    return "\n".join(blocks)


# =========================================================
# LIVE SEARCH
# =========================================================

def generate_live_summary(
    query: str,
    results: list[LiveWebResult],
    sources: list[str],
) -> str:
    """Build the user-facing summary of a live search.

    Args:
        query: Query as searched.
        results: Results already sorted by relevance.
        sources: Labels of the sources that answered.

    Returns:
        Markdown text. Timestamps are shown verbatim.
    """
    if not results:
        return (
            f'🔴 **Live Search Results for "{query}"**\n\n'
            "No current information found. This could be because:\n"
            "• The topic is very new or specialized\n"
            "• No recent updates are available\n"
            "• Network connectivity issues\n\n"
            "Try searching for related terms or check back later for updates."
        )

    lines = [
        f'🔴 **LIVE SEARCH RESULTS for "{query}"**',
        "",
        "📊 **Search Summary:**",
        f"• Found {len(results)} live results",
        f"• Sources: {', '.join(sources)}",
        "",
        "🔥 **Latest Information:**",
        "",
    ]

    for index, result in enumerate(results[:SUMMARY_TOP_N], start=1):
        lines.append(f"**{index}. {result.title}**")
        lines.append(_truncate(result.snippet, LIVE_SNIPPET_CHARS))
        lines.append(f"*Source: {result.source}*")
        if result.timestamp:
            lines.append(f"*Updated: {result.timestamp}*")
        lines.append("")

    if len(results) > SUMMARY_TOP_N:
        lines.append(f"*...and {len(results) - SUMMARY_TOP_N} more live results*")
        lines.append("")

    lines.append("⚡ **Real-Time Insights:**")
    lines.append(
        "This information was gathered from live sources and represents the most "
        f'current data available about "{query}". Results are sorted by relevance '
        "to provide you with the latest developments."
    )
    return "\n".join(lines)


def format_live_search_for_ai(result: LiveSearchResult) -> str:
    """Render a live search as a metadata header plus numbered results."""
    blocks = [
        f'LIVE INTERNET SEARCH RESULTS for "{result.query}":\n',
        "SEARCH METADATA:\n"
        f"- Query: {result.query}\n"
        f"- Sources: {', '.join(result.sources)}\n"
        f"- Results: {len(result.web_results)}\n"
        f"- Search Time: {result.search_time_ms}ms\n",
        "LIVE RESULTS:",
    ]

    for index, item in enumerate(result.web_results, start=1):
        entry = (
            f"[{index}] {item.title}\n"
            f"Source: {item.source}\n"
            f"Content: {item.snippet}\n"
            f"URL: {item.url}\n"
            f"Relevance: {item.relevance_score:g}\n"
        )
        if item.timestamp:
            entry += f"Updated: {item.timestamp}\n"
        blocks.append(entry)

    blocks.append(
        "INSTRUCTIONS: Use this live information to provide current, up-to-date answers. "
        "Always mention that this is live/current information from the internet and cite "
        "sources when possible."
    )
    return "\n".join(blocks)


# =========================================================
# REAL-TIME DATA
# =========================================================

def format_realtime_data_for_ai(data: RealtimeData) -> str:
    """Render a real-time snapshot as labeled sections.

    Time and date are always present. Weather, crypto, and news sections are
    emitted only when the snapshot carries them; no empty headers.
    """
    sections = [
        "🕐 **REAL-TIME INFORMATION UPDATE**",
        "**📅 Current Time & Date:**\n"
        f"• Time: {data.current_time}\n"
        f"• Date: {data.current_date}\n"
        f"• Timezone: {data.timezone}",
    ]

    if data.weather:
        weather = data.weather
        sections.append(
            f"**🌤️ Weather in {weather.location}:**\n"
            f"• Temperature: {weather.temperature:g}°C\n"
            f"• Condition: {weather.description}\n"
            f"• Humidity: {weather.humidity}%\n"
            f"• Wind Speed: {weather.wind_speed:g} m/s"
        )

    if data.crypto_prices:
        rows = ["**₿ Cryptocurrency Prices:**"]
        for crypto in data.crypto_prices:
            trend = "📈" if crypto.change_percent_24h >= 0 else "📉"
            sign = "+" if crypto.change_percent_24h >= 0 else ""
            rows.append(
                f"• {crypto.symbol}: ${format_price(crypto.price)} {trend} "
                f"{sign}{crypto.change_percent_24h:.2f}%"
            )
        sections.append("\n".join(rows))

    if data.news:
        rows = ["**📰 Latest News Headlines:**"]
        for index, item in enumerate(data.news[:REALTIME_NEWS_TOP_N], start=1):
            rows.append(f"{index}. **{item.title}**")
            rows.append(f"   Source: {item.source} | {item.published_at}")
        sections.append("\n".join(rows))

    sections.append(f"*Last updated: {data.current_time}*")
    return "\n\n".join(sections)
