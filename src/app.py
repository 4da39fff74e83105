"""Application entry point for the newsgate poller.

Each command performs one invocation and exits; an external scheduler (cron,
a systemd timer, a CI schedule) is expected to fire ``run`` on a fixed cadence.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint

import settings
from adapters.naver_search import NaverNewsSearch
from adapters.sqlite_storage import SQLiteStateStore
from adapters.telegram_bot_notifier import TelegramBotNotifier
from core.processor import NewsRunner
from core.schedule import compute_slot, format_clock

NAME = "NEWSGATE"
FONT = "tarty-1"

SECRET_NAMES = (
    "NAVER_CLIENT_ID",
    "NAVER_CLIENT_SECRET",
    "TELEGRAM_BOT_TOKEN",
    "TELEGRAM_CHAT_ID",
    "ADMIN_CHAT_ID",
)


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", True):
        return []
    values = []
    for name in redact_cfg.get("patterns", list(SECRET_NAMES)):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", True):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/newsgate.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"{name} is required")
    return value


def _open_store() -> SQLiteStateStore:
    store = SQLiteStateStore(settings.DB_PATH)
    store.init_db()
    return store


def _build_runner() -> NewsRunner:
    # Fail fast on missing credentials rather than half-running a tick.
    search = NaverNewsSearch(
        client_id=_require_env("NAVER_CLIENT_ID"),
        client_secret=_require_env("NAVER_CLIENT_SECRET"),
    )
    notifier = TelegramBotNotifier(
        bot_token=_require_env("TELEGRAM_BOT_TOKEN"),
        primary_chat_id=_require_env("TELEGRAM_CHAT_ID"),
        admin_chat_id=_require_env("ADMIN_CHAT_ID"),
    )
    return NewsRunner(
        search=search,
        store=_open_store(),
        notifier=notifier,
        utc_offset_hours=settings.UTC_OFFSET_HOURS,
        app_name=settings.APP_NAME,
        defaults=settings.DEFAULTS,
    )


def _run() -> None:
    _configure_logging()
    logger = logging.getLogger(__name__)
    logger.info("Starting scheduled run")

    runner = _build_runner()
    outcome = asyncio.run(runner.run_scheduled_safely(datetime.now(timezone.utc)))
    if outcome is not None:
        logger.info("Run finished: %s", outcome.status)


def _preview() -> None:
    _configure_logging()
    runner = _build_runner()
    result = asyncio.run(runner.preview(datetime.now(timezone.utc)))
    print(json.dumps(result, ensure_ascii=False, indent=2))


def _status() -> None:
    _print_banner()
    now = datetime.now(timezone.utc)
    slot = compute_slot(now, settings.UTC_OFFSET_HOURS)
    print(f"{settings.APP_NAME} OK")
    print(f"NOW UTC: {format_clock(now)}")
    print(f"NEXT LOCAL: {format_clock(slot.local)}")
    print(f"NEXT UTC: {format_clock(slot.utc)}")


def _get(key: Optional[str]) -> None:
    store = _open_store()
    if key is None:
        for name in sorted(store.list_keys()):
            print(name)
        return
    value = store.get(key)
    print("" if value is None else value)


def _set(key: str, value: str) -> None:
    store = _open_store()
    store.put(key, value)
    print(f"{key} updated")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="newsgate")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Run one scheduled tick")
    subparsers.add_parser("preview", help="Run the pipeline without persisting state")
    subparsers.add_parser("status", help="Show the current time and next slot")
    get_parser = subparsers.add_parser("get", help="Print a state value (or all keys)")
    get_parser.add_argument("key", nargs="?")
    set_parser = subparsers.add_parser("set", help="Store a state value, e.g. cfg:APP")
    set_parser.add_argument("key")
    set_parser.add_argument("value")

    args = parser.parse_args(argv)
    if args.command == "preview":
        _preview()
        return
    if args.command == "status":
        _status()
        return
    if args.command == "get":
        _get(args.key)
        return
    if args.command == "set":
        _set(args.key, args.value)
        return
    _run()


if __name__ == "__main__":
    main()
