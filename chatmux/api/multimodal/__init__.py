"""File-input extraction collaborators used by API adapters."""
