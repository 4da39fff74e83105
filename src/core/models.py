"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class Article:
    """A search result that passed every filter in the current run."""

    title: str
    link: str
    published_at: datetime


@dataclass
class LoopReport:
    """Per-page counters collected while paging through search results."""

    call_no: int
    fetched: int = 0
    time_filtered: int = 0
    include_fail: int = 0
    exclude_hit: int = 0

    @property
    def include_pass(self) -> int:
        return max(0, self.time_filtered - self.include_fail)

    def as_dict(self) -> dict:
        return {
            "call_no": self.call_no,
            "fetched": self.fetched,
            "time_filtered": self.time_filtered,
            "include_fail": self.include_fail,
            "exclude_hit": self.exclude_hit,
            "include_pass": self.include_pass,
        }


@dataclass
class FetchResult:
    """Everything the paginator learned during one run."""

    candidates: List[Article] = field(default_factory=list)
    loop_reports: List[LoopReport] = field(default_factory=list)
    # Range of publish times that passed the watermark, for reporting.
    latest: Optional[datetime] = None
    earliest: Optional[datetime] = None
    aborted: bool = False

    @property
    def newest_candidate(self) -> Optional[datetime]:
        if not self.candidates:
            return None
        return max(article.published_at for article in self.candidates)


@dataclass(frozen=True)
class ReportTotals:
    """Aggregated counters across all pages of a run."""

    time_filtered: int
    excluded: int
    include_passed: int


@dataclass(frozen=True)
class RunOutcome:
    """Result of one scheduled or preview invocation."""

    status: str
    slot: Optional[datetime]
    sent: bool
    fetch: Optional[FetchResult] = None
