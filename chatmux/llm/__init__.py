"""LLM access package.

Module split:
    - `client`: HTTP transport for OpenAI-compatible chat completions.
    - `service`: payload construction, response-text extraction, and fallback.
"""
