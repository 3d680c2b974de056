"""Prompting package.

Deterministic system-prompt and context-block construction used by the turn
router. No I/O and no model invocation.
"""
