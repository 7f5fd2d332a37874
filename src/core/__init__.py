"""Core domain package for rewind.

Core holds content storage contracts, recall resolution, and retention
logic without any Telegram or SQLite-specific code.
"""
