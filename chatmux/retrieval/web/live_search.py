"""Live search across web, social, and news sources.

Retrieval strategy:
    Three labeled sources run concurrently through `gather_settled`:

    - `Web Search`: Wikipedia opensearch ("<query> current", first 2) and the
      DuckDuckGo instant answer ("<query> latest": abstract, 2 related topics).
    - `Social Media`: newest Reddit posts (3).
    - `News Feeds`: rss2json over BBC, CNN, and Reuters (2 items each), keeping
      items that mention the query.

Ranking logic and scoring:
    Each source assigns a fixed, position-decaying relevance score. Successful
    results are concatenated in source order, stable-sorted by score
    (descending), and capped at 10.

Failure handling:
    A source raises when it could not answer at all; that source is dropped
    from both results and `sources`, and the others still count. Composite
    sources fail only when every sub-request failed.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from chatmux.config import ClientConfig
from chatmux.retrieval.fanout import gather_settled
from chatmux.retrieval.summaries import generate_live_summary
from chatmux.retrieval.types import LiveSearchResult, LiveWebResult
from chatmux.retrieval.web.deep_search import (
    DUCKDUCKGO_URL,
    WIKIPEDIA_API_URL,
    parse_opensearch,
    topic_title,
)
from chatmux.retrieval.web.http_fetcher import JsonFetcher


logger = logging.getLogger(__name__)

MAX_LIVE_RESULTS = 10

REDDIT_SEARCH_URL = "https://www.reddit.com/search.json"
RSS2JSON_URL = "https://api.rss2json.com/v1/api.json"
NEWS_FEEDS = (
    "https://feeds.bbci.co.uk/news/rss.xml",
    "https://rss.cnn.com/rss/edition.rss",
    "https://feeds.reuters.com/reuters/topNews",
)

WEB_SOURCE_LABEL = "Web Search"
SOCIAL_SOURCE_LABEL = "Social Media"
NEWS_SOURCE_LABEL = "News Feeds"

_TAG_PATTERN = re.compile(r"<[^>]*>")


@dataclass(frozen=True)
class LiveSource:
    """One labeled live-search source.

    `search(query)` returns that source's results or raises when the source
    could not answer.
    """

    label: str
    search: Callable[[str], Awaitable[list[LiveWebResult]]]


def decayed_score(base: float, index: int) -> float:
    """Position-decayed relevance: `base - 0.1 * index`, clamped to [0, 1]."""
    return min(1.0, max(0.0, round(base - 0.1 * index, 2)))


def strip_tags(text: str) -> str:
    return _TAG_PATTERN.sub("", text)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _epoch_iso(seconds: Any) -> str | None:
    try:
        return datetime.fromtimestamp(float(seconds), tz=timezone.utc).isoformat()
    except (TypeError, ValueError, OverflowError):
        return None


class LiveSearch:
    """Concurrent multi-source live search connector.

    Args:
        config: Network settings for the default fetcher.
        fetcher: Optional pre-built `JsonFetcher`.
        sources: Optional source list replacing the default web/social/news
            trio; order defines tie-breaking and the `sources` label order.
    """

    def __init__(
        self,
        config: ClientConfig,
        fetcher: JsonFetcher | None = None,
        sources: list[LiveSource] | None = None,
    ) -> None:
        self.config = config
        self.fetcher = fetcher or JsonFetcher(config)
        if sources is None:
            sources = [
                LiveSource(WEB_SOURCE_LABEL, self.search_web_sources),
                LiveSource(SOCIAL_SOURCE_LABEL, self.search_social_media),
                LiveSource(NEWS_SOURCE_LABEL, self.search_news_feeds),
            ]
        self.sources = sources

    async def perform_live_search(self, query: str) -> LiveSearchResult:
        """Query every source concurrently and merge what succeeded.

        Returns:
            `LiveSearchResult` with at most 10 results sorted by relevance.
        """
        started = time.perf_counter()
        settled = await gather_settled(*(source.search(query) for source in self.sources))

        combined: list[LiveWebResult] = []
        answered: list[str] = []
        for source, outcome in zip(self.sources, settled):
            if outcome.ok:
                combined.extend(outcome.value or [])
                answered.append(source.label)
            else:
                logger.warning("Live source %s failed: %s", source.label, outcome.error)

        ranked = sorted(combined, key=lambda item: item.relevance_score, reverse=True)
        ranked = ranked[:MAX_LIVE_RESULTS]

        return LiveSearchResult(
            query=query,
            web_results=tuple(ranked),
            summary=generate_live_summary(query, ranked, answered),
            search_time_ms=int((time.perf_counter() - started) * 1000),
            sources=tuple(answered),
        )

    # =========================================================
    # WEB
    # =========================================================

    async def search_web_sources(self, query: str) -> list[LiveWebResult]:
        settled = await gather_settled(
            self._search_wikipedia_live(query),
            self._search_duckduckgo_live(query),
        )
        if not any(item.ok for item in settled):
            raise settled[0].error

        results: list[LiveWebResult] = []
        for item in settled:
            if item.ok:
                results.extend(item.value)
        return results

    async def _search_wikipedia_live(self, query: str) -> list[LiveWebResult]:
        params = {
            "action": "opensearch",
            "search": f"{query} current",
            "limit": "3",
            "format": "json",
        }
        data = await self.fetcher.get_json(WIKIPEDIA_API_URL, params=params)
        fetched_at = _now_iso()
        return [
            LiveWebResult(
                title=title,
                url=url,
                snippet=description,
                source="Wikipedia",
                relevance_score=decayed_score(0.8, index),
                timestamp=fetched_at,
            )
            for index, (title, description, url) in enumerate(parse_opensearch(data, limit=2))
        ]

    async def _search_duckduckgo_live(self, query: str) -> list[LiveWebResult]:
        params = {
            "q": f"{query} latest",
            "format": "json",
            "no_html": "1",
            "skip_disambig": "1",
        }
        data = await self.fetcher.get_json(DUCKDUCKGO_URL, params=params)
        if not isinstance(data, dict):
            return []

        fetched_at = _now_iso()
        results: list[LiveWebResult] = []

        abstract = data.get("Abstract") or ""
        if abstract:
            results.append(LiveWebResult(
                title=data.get("Heading") or query,
                url=data.get("AbstractURL") or "#",
                snippet=abstract,
                source=data.get("AbstractSource") or "DuckDuckGo",
                relevance_score=0.9,
                timestamp=fetched_at,
            ))

        topics = data.get("RelatedTopics")
        if isinstance(topics, list):
            for index, topic in enumerate(topics[:2]):
                if not isinstance(topic, dict):
                    continue
                text = topic.get("Text")
                url = topic.get("FirstURL")
                if text and url:
                    results.append(LiveWebResult(
                        title=topic_title(text),
                        url=url,
                        snippet=text,
                        source="DuckDuckGo",
                        relevance_score=decayed_score(0.7, index),
                        timestamp=fetched_at,
                    ))

        return results

    # =========================================================
    # SOCIAL
    # =========================================================

    async def search_social_media(self, query: str) -> list[LiveWebResult]:
        params = {"q": query, "sort": "new", "limit": "3"}
        data = await self.fetcher.get_json(REDDIT_SEARCH_URL, params=params)

        children = ((data or {}).get("data") or {}).get("children") or []
        results: list[LiveWebResult] = []
        for index, child in enumerate(children):
            post = child.get("data") if isinstance(child, dict) else None
            if not isinstance(post, dict):
                continue
            selftext = post.get("selftext") or ""
            results.append(LiveWebResult(
                title=post.get("title") or "Reddit discussion",
                url=f"https://reddit.com{post.get('permalink', '')}",
                snippet=(selftext[:200] + "...") if selftext else "Reddit discussion",
                source=f"r/{post.get('subreddit', 'reddit')}",
                relevance_score=decayed_score(0.6, index),
                timestamp=_epoch_iso(post.get("created_utc")),
            ))
        return results

    # =========================================================
    # NEWS
    # =========================================================

    async def search_news_feeds(self, query: str) -> list[LiveWebResult]:
        settled = await gather_settled(*(self._fetch_feed(feed) for feed in NEWS_FEEDS))
        if not any(item.ok for item in settled):
            raise settled[0].error

        needle = query.lower()
        results: list[LiveWebResult] = []
        for item in settled:
            if not item.ok:
                logger.warning("News feed failed: %s", item.error)
                continue
            feed_title, entries = item.value
            for index, entry in enumerate(entries):
                title = entry.get("title") or ""
                description = entry.get("description") or ""
                if needle not in title.lower() and needle not in description.lower():
                    continue
                results.append(LiveWebResult(
                    title=title,
                    url=entry.get("link") or "#",
                    snippet=(
                        strip_tags(description)[:200] + "..." if description else "Latest news"
                    ),
                    source=feed_title,
                    relevance_score=decayed_score(0.8, index),
                    timestamp=entry.get("pubDate"),
                ))
        return results

    async def _fetch_feed(self, feed_url: str) -> tuple[str, list[dict]]:
        """Return `(feed title, items)` for one RSS feed via rss2json.

        Raises:
            RuntimeError: When rss2json reports a non-ok status.
        """
        data = await self.fetcher.get_json(
            RSS2JSON_URL, params={"rss_url": feed_url, "count": "2"}
        )
        if not isinstance(data, dict) or data.get("status") != "ok":
            raise RuntimeError(f"rss2json returned no items for {feed_url}")
        feed_title = (data.get("feed") or {}).get("title") or "News Feed"
        items = [item for item in data.get("items") or [] if isinstance(item, dict)]
        return feed_title, items
