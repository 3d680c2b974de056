"""chatmux: turn routing and multi-source response aggregation for chat.

Package layout:
    - `config`: explicit client configuration and API-key resolution.
    - `core`: message model, routing types, and the turn router.
    - `nlp`: keyword classifiers, query extractors, and route decisions.
    - `retrieval`: search, live-search, and real-time data connectors plus
      deterministic aggregators.
    - `image`: image generation and vision connectors.
    - `llm`: completion transport and response-text extraction.
    - `documents`: PDF processing helpers (fallback, summary, chunking).
    - `memory`: in-memory conversation state.
    - `prompting`: system-prompt and context-block templates.
    - `api`: HTTP (FastAPI) and terminal adapters.
"""

__version__ = "0.1.0"
