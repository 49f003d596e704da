"""Reconstruct the messages of a flattened plain-text email thread."""

__version__ = "0.1.0"
