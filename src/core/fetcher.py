"""Paged collection of search results.

The paginator walks the newest-first result list one page at a time and runs
each item through the filters in a fixed order:
1) Parse the publish time (unparsable items are dropped silently)
2) Watermark check (an old item ends paging)
3) Keyword include/exclude rules
4) Per-run link deduplication

Pages are requested strictly in sequence because the stop decision depends on
what the current page contained.
"""

from __future__ import annotations

import html
import logging
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Mapping, Optional

from core.config import AppConfig
from core.dedup import LinkDeduplicator, canonicalize_url
from core.models import Article, FetchResult, LoopReport
from core.ports import SearchError, SearchPort
from core.rules_engine import EXCLUDE_HIT, INCLUDE_FAIL, KeywordRules, build_rules, match_title

LOGGER = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")


def clean_title(raw_title: str) -> str:
    """Strip inline markup (e.g. ``<b>`` highlights) and decode entities."""

    return html.unescape(_TAG_RE.sub("", raw_title)).strip()


def parse_published(raw: str) -> Optional[datetime]:
    """Parse an RFC 2822 ``pubDate`` into an aware UTC datetime.

    The embedded offset is honoured as-is. Values without an offset are
    taken to be UTC. Returns None when the value cannot be parsed.
    """

    if not raw or not raw.strip():
        return None
    try:
        parsed = parsedate_to_datetime(raw.strip())
    except (TypeError, ValueError, IndexError):
        try:
            parsed = datetime.fromisoformat(raw.strip())
        except ValueError:
            return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def passes_watermark(published_at: datetime, watermark: Optional[datetime]) -> bool:
    """True when an item is strictly newer than the watermark."""

    return watermark is None or published_at > watermark


def page_start(page: int, display: int) -> int:
    """1-based offset of a page."""

    return (page - 1) * display + 1


async def collect_candidates(
    search: SearchPort,
    config: AppConfig,
    watermark: Optional[datetime],
) -> FetchResult:
    """Page through search results and return filtered, deduplicated candidates."""

    rules = build_rules(config.include_keywords, config.exclude_keywords)
    dedup = LinkDeduplicator()
    result = FetchResult()
    query = config.query

    for page in range(1, config.max_loops + 1):
        start = page_start(page, config.display_per_call)
        try:
            items = await search.fetch_page(query, config.display_per_call, start)
        except SearchError as exc:
            # Partial success: keep what earlier pages produced.
            LOGGER.error("Search failed on page %s (start=%s): %s", page, start, exc)
            result.aborted = True
            break

        if not items:
            LOGGER.info("Search exhausted at page %s", page)
            break

        report = LoopReport(call_no=page, fetched=len(items))
        hit_old = _process_page(items, rules, dedup, watermark, report, result)
        result.loop_reports.append(report)
        LOGGER.info(
            "Page %s: fetched=%s time_filtered=%s include_fail=%s exclude_hit=%s",
            page,
            report.fetched,
            report.time_filtered,
            report.include_fail,
            report.exclude_hit,
        )

        if hit_old:
            LOGGER.info("Reached watermark on page %s, stopping", page)
            break
        if len(items) < config.display_per_call:
            break

    return result


def _process_page(
    items: list,
    rules: KeywordRules,
    dedup: LinkDeduplicator,
    watermark: Optional[datetime],
    report: LoopReport,
    result: FetchResult,
) -> bool:
    """Filter one page into ``result``; return True once an old item is seen."""

    for item in items:
        published_at = parse_published(str(_field(item, "pubDate")))
        if published_at is None:
            continue

        # Results are newest-first, so everything after this item is older.
        if not passes_watermark(published_at, watermark):
            return True

        report.time_filtered += 1
        if result.latest is None or published_at > result.latest:
            result.latest = published_at
        if result.earliest is None or published_at < result.earliest:
            result.earliest = published_at

        title = clean_title(str(_field(item, "title")))
        verdict = match_title(title, rules)
        if verdict == INCLUDE_FAIL:
            report.include_fail += 1
            continue
        if verdict == EXCLUDE_HIT:
            report.exclude_hit += 1
            continue

        link = canonicalize_url(str(_field(item, "link")))
        if not dedup.admit(link):
            LOGGER.debug("Dedup skip for %s", link)
            continue

        result.candidates.append(Article(title=title, link=link, published_at=published_at))
    return False


def _field(item: Mapping[str, Any], name: str) -> Any:
    value = item.get(name) if isinstance(item, Mapping) else None
    return "" if value is None else value
