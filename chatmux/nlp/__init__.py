"""Rule-based intent classification for turn routing.

Module scope:
- Keyword tables and classifiers (`keyword_classifier`).
- Search-query and image-prompt cleanup (`query_extractors`).
- Route selection with fixed precedence (`intent_router`).

Determinism profile:
- Fully deterministic; no model-backed scoring.
"""
