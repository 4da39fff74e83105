"""NAVER news search adapter.

Implements the core SearchPort against the NAVER Open API news endpoint.
"""

from __future__ import annotations

import http.client
import json
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, List, Mapping

from core.ports import SearchError

NEWS_ENDPOINT = "https://openapi.naver.com/v1/search/news.json"
USER_AGENT = "Mozilla/5.0 (compatible; newsgate/1.0)"


class NaverNewsSearch:
    """Search adapter that pages through NAVER news results, newest first."""

    def __init__(self, client_id: str, client_secret: str, timeout: float = 10) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._timeout = timeout

    def build_url(self, query: str, display: int, start: int) -> str:
        params = urllib.parse.urlencode(
            {"query": query, "display": display, "start": start, "sort": "date"},
            quote_via=urllib.parse.quote,
        )
        return f"{NEWS_ENDPOINT}?{params}"

    async def fetch_page(self, query: str, display: int, start: int) -> List[Mapping[str, Any]]:
        """Fetch one page of results and return its ``items``."""

        request = urllib.request.Request(self.build_url(query, display, start), method="GET")
        request.add_header("X-Naver-Client-Id", self._client_id)
        request.add_header("X-Naver-Client-Secret", self._client_secret)
        request.add_header("User-Agent", USER_AGENT)
        # Blocking call: pages are fetched strictly one after another anyway.
        try:
            with urllib.request.urlopen(request, timeout=self._timeout) as response:
                body = response.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as e:
            try:
                detail = e.read().decode("utf-8", errors="replace")
            except (http.client.HTTPException, OSError):
                detail = ""
            raise SearchError(f"NAVER error {e.code}: {detail}") from e
        except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
            raise SearchError(f"NAVER request failed: {e}") from e

        try:
            payload = json.loads(body)
        except ValueError as e:
            raise SearchError("NAVER returned a non-JSON body") from e
        if not isinstance(payload, dict):
            raise SearchError("NAVER returned a non-object body")
        items = payload.get("items")
        if items is None:
            return []
        if not isinstance(items, list):
            raise SearchError(f"NAVER items is not a list: {type(items).__name__}")
        return [item for item in items if isinstance(item, dict)]
