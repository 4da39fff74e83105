"""Integration adapters for NAVER search, Telegram delivery, and SQLite state."""
