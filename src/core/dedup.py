"""Link canonicalization and per-run deduplication (core domain)."""

from __future__ import annotations

from urllib.parse import unquote_plus, urlsplit, urlunsplit

TRACKING_PARAMS = frozenset(
    {
        "utm_source",
        "utm_medium",
        "utm_campaign",
        "utm_term",
        "utm_content",
        "utm_id",
        "fbclid",
        "gclid",
    }
)


def canonicalize_url(url: str) -> str:
    """Force https, lowercase the host, and drop tracking query parameters.

    Strings that do not parse as absolute URLs are only stripped. Other query
    parameters keep their original order and encoding, so applying this twice
    yields the same value.
    """

    raw = url.strip()
    try:
        parts = urlsplit(raw)
    except ValueError:
        return raw
    if not parts.scheme or not parts.netloc:
        return raw

    query = "&".join(
        segment
        for segment in parts.query.split("&")
        if unquote_plus(segment.split("=", 1)[0]) not in TRACKING_PARAMS
    )

    return urlunsplit(("https", parts.netloc.lower(), parts.path, query, parts.fragment))


class LinkDeduplicator:
    """Remembers canonical links accepted during a single run."""

    def __init__(self) -> None:
        self._seen: set[str] = set()

    def admit(self, canonical_link: str) -> bool:
        """Return True the first time a link is seen, False afterwards."""

        if canonical_link in self._seen:
            return False
        self._seen.add(canonical_link)
        return True

    def __len__(self) -> int:
        return len(self._seen)
