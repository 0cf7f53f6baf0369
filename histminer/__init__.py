"""histminer — local shell history pattern mining and relevance search."""

__version__ = "0.1.0"
