"""Conversation state package.

Holds the in-memory message list and optional PDF grounding context for one
conversation. Nothing here is persisted.
"""
