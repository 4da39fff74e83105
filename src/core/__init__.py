"""Core domain package for newsgate.

Core contains paging, filtering, deduplication, and send-gate logic without
any NAVER, Telegram, or storage-specific code, keeping the business logic
portable.
"""
