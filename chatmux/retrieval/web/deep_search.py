"""Deep web search over keyless public JSON APIs.

Retrieval strategy:
    1. DuckDuckGo instant-answer API: abstract plus up to 5 related topics.
    2. When that yields fewer than 3 results, Wikipedia REST page summary for
       the query; when no such page exists, Wikipedia opensearch (up to 3).
    3. Keep up to 10 results in arrival order and record the pre-cap total.

Failure handling:
    Each provider call is isolated: a failing provider is logged and
    contributes no results. An unexpected error anywhere else returns the
    labeled fallback `DeepSearchResult` (no results, explanatory summary).
    Nothing raises to the caller.

Determinism:
    Deterministic for fixed provider responses; `search_time_ms` aside.
"""

from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import quote

import httpx

from chatmux.config import ClientConfig
from chatmux.retrieval.summaries import generate_search_summary, search_failure_summary
from chatmux.retrieval.types import DeepSearchResult, SearchResult
from chatmux.retrieval.web.http_fetcher import JsonFetcher


logger = logging.getLogger(__name__)

DUCKDUCKGO_URL = "https://api.duckduckgo.com/"
WIKIPEDIA_SUMMARY_URL = "https://en.wikipedia.org/api/rest_v1/page/summary/"
WIKIPEDIA_API_URL = "https://en.wikipedia.org/w/api.php"

MAX_RESULTS = 10
MIN_PRIMARY_RESULTS = 3
RELATED_TOPIC_LIMIT = 5
OPENSEARCH_LIMIT = 3


def topic_title(text: str) -> str:
    """Title of a DuckDuckGo related topic: text before the first " - "."""
    return text.split(" - ")[0] or text[:100]


def parse_duckduckgo(
    data: Any,
    query: str,
    related_limit: int = RELATED_TOPIC_LIMIT,
) -> list[SearchResult]:
    """Extract the abstract and related topics from an instant-answer payload."""
    if not isinstance(data, dict):
        return []

    results: list[SearchResult] = []

    abstract = data.get("Abstract") or ""
    if abstract:
        results.append(SearchResult(
            title=data.get("Heading") or query,
            url=data.get("AbstractURL") or "#",
            snippet=abstract,
            source=data.get("AbstractSource") or "DuckDuckGo",
        ))

    topics = data.get("RelatedTopics")
    if isinstance(topics, list):
        for topic in topics[:related_limit]:
            if not isinstance(topic, dict):
                continue
            text = topic.get("Text")
            url = topic.get("FirstURL")
            if text and url:
                results.append(SearchResult(
                    title=topic_title(text),
                    url=url,
                    snippet=text,
                    source="DuckDuckGo",
                ))

    return results


def parse_opensearch(data: Any, limit: int = OPENSEARCH_LIMIT) -> list[tuple[str, str, str]]:
    """Return `(title, description, url)` triples from an opensearch payload.

    Opensearch answers `[query, [titles], [descriptions], [urls]]`.
    """
    if not isinstance(data, list) or len(data) < 2 or not data[1]:
        return []

    titles = data[1]
    descriptions = data[2] if len(data) > 2 and isinstance(data[2], list) else []
    urls = data[3] if len(data) > 3 and isinstance(data[3], list) else []

    triples = []
    for index, title in enumerate(titles[:limit]):
        description = descriptions[index] if index < len(descriptions) else ""
        url = urls[index] if index < len(urls) else ""
        triples.append((title, description or "", url or "#"))
    return triples


class DeepSearch:
    """Multi-provider deep search connector.

    Args:
        config: Network settings for the shared fetcher.
        fetcher: Optional pre-built `JsonFetcher` (tests inject a mock transport).
    """

    def __init__(self, config: ClientConfig, fetcher: JsonFetcher | None = None) -> None:
        self.config = config
        self.fetcher = fetcher or JsonFetcher(config)

    async def perform_deep_search(self, query: str) -> DeepSearchResult:
        """Search, summarize, and time one query.

        Returns:
            `DeepSearchResult`; the fallback variant on unexpected failure.
        """
        started = time.perf_counter()
        try:
            results = await self.search_duckduckgo(query)

            if len(results) < MIN_PRIMARY_RESULTS:
                results.extend(await self.search_wikipedia(query))

            summary = generate_search_summary(query, results)
            return DeepSearchResult(
                query=query,
                results=tuple(results[:MAX_RESULTS]),
                summary=summary,
                total_results=len(results),
                search_time_ms=_elapsed_ms(started),
            )

        except Exception:
            logger.exception("Deep search failed for query=%r", query)
            return DeepSearchResult(
                query=query,
                results=(),
                summary=search_failure_summary(query),
                total_results=0,
                search_time_ms=_elapsed_ms(started),
            )

    async def search_duckduckgo(self, query: str) -> list[SearchResult]:
        params = {"q": query, "format": "json", "no_html": "1", "skip_disambig": "1"}
        try:
            data = await self.fetcher.get_json(DUCKDUCKGO_URL, params=params)
        except (httpx.HTTPError, RuntimeError, ValueError) as exc:
            logger.warning("DuckDuckGo search failed: %s", exc)
            return []
        return parse_duckduckgo(data, query)

    async def search_wikipedia(self, query: str) -> list[SearchResult]:
        """Wikipedia page summary, falling back to opensearch."""
        try:
            summary = await self.fetcher.get_json(WIKIPEDIA_SUMMARY_URL + quote(query, safe=""))
        except (httpx.HTTPError, RuntimeError, ValueError) as exc:
            logger.info("No Wikipedia summary page for %r: %s", query, exc)
            summary = None

        if isinstance(summary, dict) and summary.get("extract"):
            page_url = (
                (summary.get("content_urls") or {}).get("desktop", {}).get("page") or "#"
            )
            return [SearchResult(
                title=summary.get("title") or query,
                url=page_url,
                snippet=summary["extract"],
                source="Wikipedia",
            )]

        params = {
            "action": "opensearch",
            "search": query,
            "limit": str(OPENSEARCH_LIMIT),
            "format": "json",
        }
        try:
            data = await self.fetcher.get_json(WIKIPEDIA_API_URL, params=params)
        except (httpx.HTTPError, RuntimeError, ValueError) as exc:
            logger.warning("Wikipedia opensearch failed: %s", exc)
            return []

        return [
            SearchResult(title=title, url=url, snippet=description, source="Wikipedia")
            for title, description, url in parse_opensearch(data)
        ]


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
