"""Real-time data connector: time, news, weather, and crypto prices.

Architectural role:
    Produces one fresh `RealtimeData` snapshot per call for real-time turns.
    Nothing is cached between calls.

Retrieval strategy:
    - Time, date, and timezone are read from the local clock.
    - News, weather, and crypto are fetched concurrently.
    - News itself fans out to Hacker News, Reddit r/worldnews, and BBC RSS
      (via rss2json), keeping whichever answered, capped at 5.

Failure handling:
    Every provider call has a hard-coded fallback (mock headlines, mock New
    York weather, mock prices), so the snapshot is always complete and this
    connector never raises.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable

from chatmux.config import ClientConfig
from chatmux.retrieval.fanout import gather_settled
from chatmux.retrieval.types import CryptoPrice, NewsItem, RealtimeData, WeatherData
from chatmux.retrieval.web.http_fetcher import JsonFetcher
from chatmux.retrieval.web.live_search import RSS2JSON_URL, strip_tags


logger = logging.getLogger(__name__)

MAX_NEWS_ITEMS = 5

HACKER_NEWS_TOP_URL = "https://hacker-news.firebaseio.com/v0/topstories.json"
HACKER_NEWS_ITEM_URL = "https://hacker-news.firebaseio.com/v0/item/{id}.json"
REDDIT_WORLDNEWS_URL = "https://www.reddit.com/r/worldnews/hot.json"
BBC_FEED_URL = "https://feeds.bbci.co.uk/news/rss.xml"
OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
COINGECKO_URL = "https://api.coingecko.com/api/v3/simple/price"

# CoinGecko id -> (symbol, display name), in display order.
CRYPTO_ASSETS = {
    "bitcoin": ("BTC", "Bitcoin"),
    "ethereum": ("ETH", "Ethereum"),
    "cardano": ("ADA", "Cardano"),
    "dogecoin": ("DOGE", "Dogecoin"),
    "solana": ("SOL", "Solana"),
}


# =========================================================
# FALLBACK VALUES
# =========================================================

MOCK_NEWS = (
    NewsItem(
        title="Technology Advances in AI Continue to Shape Industries",
        description="Latest developments in artificial intelligence are transforming various sectors...",
        url="#",
        published_at="",
        source="Tech News",
    ),
    NewsItem(
        title="Global Markets Show Mixed Results Today",
        description="Stock markets around the world display varied performance...",
        url="#",
        published_at="",
        source="Financial Times",
    ),
    NewsItem(
        title="Climate Change Summit Reaches New Agreements",
        description="World leaders announce new initiatives for environmental protection...",
        url="#",
        published_at="",
        source="World News",
    ),
)

MOCK_WEATHER = WeatherData(
    location="New York",
    temperature=22,
    description="partly cloudy",
    humidity=65,
    wind_speed=8,
)

MOCK_CRYPTO = (
    CryptoPrice(symbol="BTC", name="Bitcoin", price=45000, change_24h=1200, change_percent_24h=2.74),
    CryptoPrice(symbol="ETH", name="Ethereum", price=3200, change_24h=-45, change_percent_24h=-1.39),
    CryptoPrice(symbol="ADA", name="Cardano", price=0.85, change_24h=0.02, change_percent_24h=2.41),
    CryptoPrice(symbol="DOGE", name="Dogecoin", price=0.12, change_24h=0.008, change_percent_24h=7.14),
    CryptoPrice(symbol="SOL", name="Solana", price=95.50, change_24h=-2.30, change_percent_24h=-2.35),
)


def mock_news(now: datetime) -> tuple[NewsItem, ...]:
    """Fallback headlines stamped with the snapshot time."""
    stamp = format_timestamp(now)
    return tuple(
        NewsItem(item.title, item.description, item.url, stamp, item.source)
        for item in MOCK_NEWS
    )


def format_timestamp(moment: datetime) -> str:
    return moment.strftime("%m/%d/%Y, %I:%M:%S %p")


def current_time_data(now: datetime) -> tuple[str, str, str]:
    """Return `(time, date, timezone)` strings for a local datetime."""
    current_time = now.strftime("%I:%M:%S %p")
    current_date = f"{now:%A, %B} {now.day}, {now.year}"
    timezone_name = now.tzname() or "UTC"
    return current_time, current_date, timezone_name


class RealtimeDataConnector:
    """Fresh-snapshot connector for real-time turns.

    Args:
        config: Weather key/location and network settings.
        fetcher: Optional pre-built `JsonFetcher`.
        clock: Callable returning the current timezone-aware datetime.
    """

    def __init__(
        self,
        config: ClientConfig,
        fetcher: JsonFetcher | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config
        self.fetcher = fetcher or JsonFetcher(config)
        self.clock = clock or (lambda: datetime.now().astimezone())

    async def get_realtime_data(self) -> RealtimeData:
        now = self.clock()
        current_time, current_date, timezone_name = current_time_data(now)

        news, weather, crypto = await asyncio.gather(
            self.get_latest_news(now),
            self.get_weather_data(),
            self.get_crypto_prices(),
        )

        return RealtimeData(
            current_time=current_time,
            current_date=current_date,
            timezone=timezone_name,
            news=news,
            weather=weather,
            crypto_prices=crypto,
        )

    # =========================================================
    # NEWS
    # =========================================================

    async def get_latest_news(self, now: datetime | None = None) -> tuple[NewsItem, ...]:
        """Headlines from every answering news source, or the mock headlines."""
        now = now or self.clock()
        settled = await gather_settled(
            self._fetch_hacker_news(),
            self._fetch_reddit_news(),
            self._fetch_rss_news(),
        )

        collected: list[NewsItem] = []
        for outcome in settled:
            if outcome.ok:
                collected.extend(outcome.value)
            else:
                logger.warning("News source failed: %s", outcome.error)

        if not collected:
            return mock_news(now)
        return tuple(collected[:MAX_NEWS_ITEMS])

    async def _fetch_hacker_news(self) -> list[NewsItem]:
        story_ids = await self.fetcher.get_json(HACKER_NEWS_TOP_URL)
        stories = await asyncio.gather(*(
            self.fetcher.get_json(HACKER_NEWS_ITEM_URL.format(id=story_id))
            for story_id in (story_ids or [])[:3]
        ))

        items = []
        for story in stories:
            if not isinstance(story, dict):
                continue
            text = story.get("text") or ""
            items.append(NewsItem(
                title=story.get("title") or "Tech News",
                description=(text[:200] + "...") if text else "Latest technology news from Hacker News",
                url=story.get("url") or f"https://news.ycombinator.com/item?id={story.get('id')}",
                published_at=_epoch_label(story.get("time")),
                source="Hacker News",
            ))
        return items

    async def _fetch_reddit_news(self) -> list[NewsItem]:
        data = await self.fetcher.get_json(REDDIT_WORLDNEWS_URL, params={"limit": "3"})
        items = []
        for child in data["data"]["children"]:
            post = child["data"]
            selftext = post.get("selftext") or ""
            items.append(NewsItem(
                title=post["title"],
                description=(selftext[:200] + "...") if selftext else "Latest news from Reddit",
                url=post.get("url") or "#",
                published_at=_epoch_label(post.get("created_utc")),
                source="Reddit",
            ))
        return items

    async def _fetch_rss_news(self) -> list[NewsItem]:
        data = await self.fetcher.get_json(
            RSS2JSON_URL, params={"rss_url": BBC_FEED_URL, "count": "3"}
        )
        if not isinstance(data, dict) or data.get("status") != "ok":
            return []
        items = []
        for entry in data.get("items") or []:
            description = entry.get("description") or ""
            items.append(NewsItem(
                title=entry.get("title") or "",
                description=(strip_tags(description)[:200] + "...") if description else "Latest news",
                url=entry.get("link") or "#",
                published_at=entry.get("pubDate") or "",
                source="BBC News",
            ))
        return items

    # =========================================================
    # WEATHER
    # =========================================================

    async def get_weather_data(self) -> WeatherData:
        """Current weather for the configured location, or the mock."""
        if not self.config.weather_api_key:
            logger.info("Weather API key not configured, using fallback weather")
            return MOCK_WEATHER

        params = {
            "q": self.config.weather_location,
            "appid": self.config.weather_api_key,
            "units": "metric",
        }
        try:
            data = await self.fetcher.get_json(OPENWEATHER_URL, params=params)
            return WeatherData(
                location=data["name"],
                temperature=round(data["main"]["temp"]),
                description=data["weather"][0]["description"],
                humidity=data["main"]["humidity"],
                wind_speed=data["wind"]["speed"],
            )
        except Exception:
            logger.exception("Weather lookup failed, using fallback weather")
            return MOCK_WEATHER

    # =========================================================
    # CRYPTO
    # =========================================================

    async def get_crypto_prices(self) -> tuple[CryptoPrice, ...]:
        """USD prices with 24h change for the tracked assets, or the mock."""
        params = {
            "ids": ",".join(CRYPTO_ASSETS),
            "vs_currencies": "usd",
            "include_24hr_change": "true",
        }
        try:
            data = await self.fetcher.get_json(COINGECKO_URL, params=params)
        except Exception:
            logger.exception("Crypto price lookup failed, using fallback prices")
            return MOCK_CRYPTO

        if not isinstance(data, dict):
            return MOCK_CRYPTO

        prices = []
        for asset_id, (symbol, name) in CRYPTO_ASSETS.items():
            quote = data.get(asset_id)
            if not isinstance(quote, dict) or "usd" not in quote:
                continue
            change = quote.get("usd_24h_change") or 0
            prices.append(CryptoPrice(
                symbol=symbol,
                name=name,
                price=quote["usd"],
                change_24h=change,
                change_percent_24h=change,
            ))

        return tuple(prices) if prices else MOCK_CRYPTO


def _epoch_label(seconds) -> str:
    try:
        return format_timestamp(datetime.fromtimestamp(float(seconds)))
    except (TypeError, ValueError, OverflowError):
        return ""
