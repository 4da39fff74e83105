"""Telegram Bot API notification adapter.

Routes the primary digest and admin reports to two chats through one bot.
"""

from __future__ import annotations

import json
import logging
import re
import urllib.error
import urllib.request
from typing import List

from core.ports import ADMIN_CHANNEL, PRIMARY_CHANNEL

LOGGER = logging.getLogger(__name__)

# Bot API rejects texts above 4096 characters.
MAX_MESSAGE_CHARS = 4096

_TAG_RE = re.compile(r"<[^>]+>")


def split_message(text: str, limit: int = MAX_MESSAGE_CHARS) -> List[str]:
    """Split text on line boundaries into chunks no longer than ``limit``.

    A single line over the limit has its markup tags removed and is then cut
    between HTML entities, so every chunk stays valid in HTML parse mode.
    """

    chunks: List[str] = []
    current = ""
    for line in text.split("\n"):
        if len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            line = _TAG_RE.sub("", line)
            while len(line) > limit:
                cut = _safe_cut(line, limit)
                chunks.append(line[:cut])
                line = line[cut:]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks


def _safe_cut(line: str, limit: int) -> int:
    """Largest cut position <= limit that does not fall inside an entity."""

    amp = line.rfind("&", 0, limit)
    if amp > 0 and ";" not in line[amp:limit]:
        return amp
    return limit


class TelegramBotNotifier:
    """Notifier adapter that sends messages via the Telegram Bot API."""

    def __init__(self, bot_token: str, primary_chat_id: str, admin_chat_id: str) -> None:
        self._bot_token = bot_token
        self._chat_ids = {PRIMARY_CHANNEL: primary_chat_id, ADMIN_CHANNEL: admin_chat_id}

    def _endpoint(self) -> str:
        # The Bot API endpoint is deterministic and derived from the token.
        return f"https://api.telegram.org/bot{self._bot_token}/sendMessage"

    async def send(self, channel: str, text: str) -> None:
        """Send text to the chat bound to ``channel``; failures are logged."""

        chat_id = self._chat_ids.get(channel)
        if not chat_id:
            raise ValueError(f"Unknown notification channel: {channel}")

        for chunk in split_message(text):
            self._post(chat_id, chunk)

    def _post(self, chat_id: str, text: str) -> None:
        payload = {
            "chat_id": chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        data = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(self._endpoint(), data=data, method="POST")
        request.add_header("Content-Type", "application/json")
        # We use a blocking HTTP call; the adapter boundary makes it easy to
        # swap for an async client later.
        try:
            with urllib.request.urlopen(request, timeout=10):
                pass
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            LOGGER.error("Telegram send failed %s: %s", e.code, body)
        except (urllib.error.URLError, OSError) as e:
            LOGGER.error("Telegram send failed: %s", e)
