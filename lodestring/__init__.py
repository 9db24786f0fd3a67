"""Localization adapters for chat-markup messages and delimited text tables."""

__version__ = "0.1.0"
