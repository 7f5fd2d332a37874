"""Adapters binding the core to Telegram (Telethon) and SQLite."""
