"""Prompt catalog: the read-only prompt text the navigator moves through."""
