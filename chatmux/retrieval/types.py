"""Connector result data model.

All records are immutable snapshots produced by one connector call. Optional
provider fields are `None` when the provider omitted them.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SearchResult:
    title: str
    url: str
    snippet: str
    source: str


@dataclass(frozen=True)
class DeepSearchResult:
    """Outcome of one deep search.

    Attributes:
        query: Query as sent to the providers.
        results: Up to 10 results in arrival order.
        summary: User-facing summary (see `chatmux.retrieval.summaries`).
        total_results: Result count before the cap.
        search_time_ms: Wall-clock duration of the search.
    """

    query: str
    results: tuple[SearchResult, ...]
    summary: str
    total_results: int
    search_time_ms: int


@dataclass(frozen=True)
class LiveWebResult:
    """One live-search item.

    `relevance_score` lies in [0, 1] and is used only for ordering.
    """

    title: str
    url: str
    snippet: str
    source: str
    relevance_score: float
    timestamp: str | None = None


@dataclass(frozen=True)
class LiveSearchResult:
    query: str
    web_results: tuple[LiveWebResult, ...]
    summary: str
    search_time_ms: int
    sources: tuple[str, ...]


@dataclass(frozen=True)
class NewsItem:
    title: str
    description: str
    url: str
    published_at: str
    source: str


@dataclass(frozen=True)
class WeatherData:
    location: str
    temperature: float
    description: str
    humidity: int
    wind_speed: float


@dataclass(frozen=True)
class CryptoPrice:
    symbol: str
    name: str
    price: float
    change_24h: float
    change_percent_24h: float


@dataclass(frozen=True)
class RealtimeData:
    """Fresh snapshot of time, news, weather, and crypto prices.

    Time fields are always present. The optional sections are `None` only when
    a caller builds a partial snapshot; `get_realtime_data` always fills them,
    substituting fallback values for failed providers.
    """

    current_time: str
    current_date: str
    timezone: str
    news: tuple[NewsItem, ...] | None = None
    weather: WeatherData | None = None
    crypto_prices: tuple[CryptoPrice, ...] | None = None


@dataclass(frozen=True)
class PdfPage:
    page_number: int
    text: str
    word_count: int


@dataclass(frozen=True)
class PdfProcessingResult:
    """Extraction output for one PDF, real or fallback."""

    text: str
    page_count: int
    pages: tuple[PdfPage, ...]
    file_name: str
    file_size: int
    metadata: dict = field(default_factory=dict)
    extraction_succeeded: bool = True


@dataclass(frozen=True)
class PdfChunk:
    text: str
    start_page: int
    end_page: int
