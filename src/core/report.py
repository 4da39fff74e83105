"""Report aggregation and message composition.

Keeping formatting here prevents drift between the scheduled and preview
runs. Messages use the HTML-style markup mode of the delivery channel, where
only ``&``, ``<`` and ``>`` need escaping.
"""

from __future__ import annotations

import html
from datetime import datetime
from typing import Iterable, List, Sequence

from core.models import Article, FetchResult, LoopReport, ReportTotals
from core.schedule import format_clock, format_label

EMPTY_CANDIDATES = "(no candidates)"


def summarize(reports: Iterable[LoopReport]) -> ReportTotals:
    """Add up per-page counters."""

    time_filtered = excluded = include_passed = 0
    for report in reports:
        time_filtered += report.time_filtered
        excluded += report.exclude_hit
        include_passed += report.include_pass
    return ReportTotals(
        time_filtered=time_filtered,
        excluded=excluded,
        include_passed=include_passed,
    )


def escape_markup(value: str) -> str:
    return html.escape(value, quote=False)


def format_articles(articles: Sequence[Article]) -> str:
    """Numbered list of bold titles, each followed by its link."""

    return "\n".join(
        f"{index}. <b>{escape_markup(article.title)}</b>\n{escape_markup(article.link)}"
        for index, article in enumerate(articles, start=1)
    )


def _breakdown(fetch: FetchResult, offset_hours: float) -> List[str]:
    totals = summarize(fetch.loop_reports)
    lines = [
        f"(excluded {totals.excluded}) title pass {totals.include_passed} / new {totals.time_filtered}"
    ]
    for report in fetch.loop_reports:
        lines.append(f"(call {report.call_no}) new {report.time_filtered} / fetched {report.fetched}")
    if fetch.aborted:
        lines.append("(search aborted early, partial results)")
    lines.append(
        f"(range) {format_label(fetch.latest, offset_hours)} ~ {format_label(fetch.earliest, offset_hours)}"
    )
    return lines


def format_run_digest(
    fetch: FetchResult,
    sent: bool,
    now_local: datetime,
    offset_hours: float,
) -> str:
    """Admin digest for a scheduled run."""

    icon, status = ("✅", "sent") if sent else ("⏸️", "held")
    head = f"{icon} {status} [{len(fetch.candidates)}] ({format_clock(now_local)} local)"
    return "\n".join([head, *_breakdown(fetch, offset_hours)])


def format_preview_digest(
    fetch: FetchResult,
    should_send: bool,
    min_send_threshold: int,
    now_local: datetime,
    offset_hours: float,
) -> str:
    """Admin digest for a preview run, including the candidate list."""

    verdict = "would send (conditions met)" if should_send else "would hold (conditions not met)"
    head = "\n".join(
        [
            f"🧪 TEST PREVIEW [{len(fetch.candidates)}] ({format_clock(now_local)} local)",
            f"• policy: {verdict}",
            f"• min_send_threshold: {min_send_threshold}",
        ]
    )
    body = format_articles(fetch.candidates) or EMPTY_CANDIDATES
    return "\n".join([head, "\n".join(_breakdown(fetch, offset_hours)), body])


def format_error(app_name: str, error: BaseException) -> str:
    description = str(error) or error.__class__.__name__
    return f"❗️ {escape_markup(app_name)} error\n{escape_markup(description)}"
