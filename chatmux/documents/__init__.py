"""Document processing package.

Turns PDF extraction output into summaries, chunks, and grounding context,
with a well-formed fallback when extraction fails.
"""
