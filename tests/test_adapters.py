from __future__ import annotations

import asyncio
import http.client
import json
import urllib.request
from urllib.parse import parse_qs, urlsplit

import pytest

from adapters.naver_search import NEWS_ENDPOINT, NaverNewsSearch
from adapters.sqlite_storage import SQLiteStateStore
from adapters.telegram_bot_notifier import split_message
from core.config import AppConfig
from core.fetcher import collect_candidates
from core.ports import SearchError


class FakeResponse:
    def __init__(self, body: bytes = b"", error: Exception = None) -> None:
        self._body = body
        self._error = error

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc_info) -> None:
        return None

    def read(self) -> bytes:
        if self._error is not None:
            raise self._error
        return self._body


def _page(count: int) -> bytes:
    items = [
        {
            "title": f"FC Anyang {n}",
            "link": f"https://news.example.com/{n}",
            "pubDate": f"Mon, 19 Oct 2026 10:{59 - n:02d}:00 +0900",
        }
        for n in range(count)
    ]
    return json.dumps({"items": items}).encode("utf-8")


def test_sqlite_store_get_put(tmp_path) -> None:
    store = SQLiteStateStore(str(tmp_path / "state.db"))
    store.init_db()

    assert store.get("last_sent_target_iso") is None
    store.put("last_sent_target_iso", "2026-10-19T01:00:00.000Z")
    store.put("last_sent_target_iso", "2026-10-19T03:00:00.000Z")

    assert store.get("last_sent_target_iso") == "2026-10-19T03:00:00.000Z"
    assert store.list_keys() == {"last_sent_target_iso"}


def test_naver_url_encodes_query_and_paging() -> None:
    search = NaverNewsSearch("id", "secret")
    url = search.build_url("FC안양 K리그2", 30, 31)
    parts = urlsplit(url)
    params = parse_qs(parts.query)

    assert url.startswith(NEWS_ENDPOINT + "?")
    assert "%20" in parts.query
    assert params == {"query": ["FC안양 K리그2"], "display": ["30"], "start": ["31"], "sort": ["date"]}


def test_split_message_respects_limit_and_lines() -> None:
    text = "\n".join(["a" * 6, "b" * 6, "c" * 6])
    assert split_message(text, limit=13) == ["aaaaaa\nbbbbbb", "cccccc"]
    assert split_message("x" * 25, limit=10) == ["x" * 10, "x" * 10, "x" * 5]
    assert split_message("short") == ["short"]


def test_truncated_body_becomes_search_error(monkeypatch) -> None:
    truncated = http.client.IncompleteRead(b"{\"items\": [", 489)
    monkeypatch.setattr(urllib.request, "urlopen", lambda request, timeout: FakeResponse(error=truncated))

    with pytest.raises(SearchError):
        asyncio.run(NaverNewsSearch("id", "secret").fetch_page("FC Anyang", 10, 1))


def test_non_list_items_becomes_search_error(monkeypatch) -> None:
    monkeypatch.setattr(
        urllib.request, "urlopen", lambda request, timeout: FakeResponse(b'{"items": 5}')
    )

    with pytest.raises(SearchError):
        asyncio.run(NaverNewsSearch("id", "secret").fetch_page("FC Anyang", 10, 1))


def test_missing_items_is_an_empty_page(monkeypatch) -> None:
    monkeypatch.setattr(urllib.request, "urlopen", lambda request, timeout: FakeResponse(b"{}"))

    assert asyncio.run(NaverNewsSearch("id", "secret").fetch_page("FC Anyang", 10, 1)) == []


def test_truncated_second_page_keeps_first_page(monkeypatch) -> None:
    responses = [
        FakeResponse(_page(2)),
        FakeResponse(error=http.client.IncompleteRead(b"{", 499)),
    ]
    monkeypatch.setattr(urllib.request, "urlopen", lambda request, timeout: responses.pop(0))
    config = AppConfig(
        search_keywords=("FC Anyang",),
        include_keywords=(),
        exclude_keywords=(),
        display_per_call=2,
        max_loops=3,
        min_send_threshold=3,
        force_hours=frozenset({0}),
    )

    result = asyncio.run(collect_candidates(NaverNewsSearch("id", "secret"), config, None))

    assert result.aborted
    assert [a.title for a in result.candidates] == ["FC Anyang 0", "FC Anyang 1"]


def test_split_message_drops_markup_from_oversized_line() -> None:
    line = "1. <b>" + "A &amp; B " * 3 + "</b>"
    chunks = split_message(line, limit=12)

    assert all(len(chunk) <= 12 for chunk in chunks)
    assert all("<" not in chunk and ">" not in chunk for chunk in chunks)
    for chunk in chunks:
        # Every "&" starts a complete entity inside its own chunk.
        for index, char in enumerate(chunk):
            if char == "&":
                assert chunk[index:index + 5] == "&amp;"
    assert "".join(chunks) == "1. " + "A &amp; B " * 3
