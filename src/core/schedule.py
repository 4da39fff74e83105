"""Wall-clock helpers: slot computation and the send gate.

Everything here is a pure function of an explicit instant and a fixed UTC
offset so callers (and tests) never depend on the real clock.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional


@dataclass(frozen=True)
class Slot:
    """A scheduling slot in both local civil time and UTC."""

    local: datetime
    utc: datetime

    @property
    def slot_id(self) -> str:
        return format_instant(self.utc)


def local_zone(offset_hours: float) -> timezone:
    return timezone(timedelta(hours=offset_hours))


def to_local(now: datetime, offset_hours: float) -> datetime:
    """Convert an aware instant to local civil time with a fixed offset."""

    return now.astimezone(local_zone(offset_hours))


def compute_slot(now: datetime, offset_hours: float) -> Slot:
    """Return the even-hour slot for ``now``.

    Local time is truncated to the hour; odd hours round up to the next even
    hour.
    """

    local = to_local(now, offset_hours).replace(minute=0, second=0, microsecond=0)
    if local.hour % 2:
        local += timedelta(hours=1)
    return Slot(local=local, utc=local.astimezone(timezone.utc))


def should_send(
    local_hour: int,
    candidate_count: int,
    min_send_threshold: int,
    force_hours: Iterable[int],
) -> bool:
    """Decide whether this run should notify.

    Force hours bypass the threshold so one candidate is enough; other hours
    require at least ``min_send_threshold`` candidates.
    """

    if candidate_count < 1:
        return False
    if local_hour in set(force_hours):
        return True
    return candidate_count >= min_send_threshold


def format_instant(moment: datetime) -> str:
    """ISO-8601 UTC string with millisecond precision, used as a state value."""

    utc = moment.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def parse_instant(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO instant; unreadable values are treated as missing."""

    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_clock(moment: datetime) -> str:
    """``YYYY-MM-DD HH:MM:SS`` in the instant's own offset."""

    return moment.strftime("%Y-%m-%d %H:%M:%S")


def format_label(moment: Optional[datetime], offset_hours: float) -> str:
    """Short ``MM-DD(HH:MM)`` local label, or ``N/A``."""

    if moment is None:
        return "N/A"
    return to_local(moment, offset_hours).strftime("%m-%d(%H:%M)")
