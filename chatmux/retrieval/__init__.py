"""Retrieval package.

Architectural role:
    External data acquisition for search-backed and real-time turns, and the
    deterministic aggregators that render connector output as prompt text.

Scope:
    - `types`: connector result data model.
    - `fanout`: concurrent fan-out with per-branch settled outcomes.
    - `web`: HTTP fetcher, deep search, and live search connectors.
    - `realtime`: time, news, weather, and crypto snapshot connector.
    - `summaries`: user-facing summaries and AI context formatting.
"""
