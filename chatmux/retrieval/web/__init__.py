"""Web search connectors backed by public JSON endpoints."""
