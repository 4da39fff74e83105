from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from core.schedule import compute_slot, format_instant, format_label, parse_instant, should_send

FORCE_HOURS = {0, 8, 10, 12, 14, 16, 18, 20, 22}


@pytest.mark.parametrize(
    ("now_utc", "expected_utc"),
    [
        # 10:20 KST -> 10:00 KST
        (datetime(2026, 10, 19, 1, 20, tzinfo=timezone.utc), datetime(2026, 10, 19, 1, 0, tzinfo=timezone.utc)),
        # 11:59 KST -> 12:00 KST
        (datetime(2026, 10, 19, 2, 59, tzinfo=timezone.utc), datetime(2026, 10, 19, 3, 0, tzinfo=timezone.utc)),
        # 23:05 KST -> 00:00 KST next day
        (datetime(2026, 10, 19, 14, 5, tzinfo=timezone.utc), datetime(2026, 10, 19, 15, 0, tzinfo=timezone.utc)),
    ],
)
def test_compute_slot_rounds_to_even_local_hour(now_utc: datetime, expected_utc: datetime) -> None:
    slot = compute_slot(now_utc, 9)
    assert slot.utc == expected_utc
    assert slot.local.hour % 2 == 0
    assert slot.local.minute == 0


def test_slot_id_matches_stored_format() -> None:
    slot = compute_slot(datetime(2026, 10, 19, 1, 20, tzinfo=timezone.utc), 9)
    assert slot.slot_id == "2026-10-19T01:00:00.000Z"


def test_force_hour_bypasses_threshold() -> None:
    assert should_send(10, 1, 5, FORCE_HOURS)


def test_threshold_applies_outside_force_hours() -> None:
    assert not should_send(11, 4, 5, FORCE_HOURS)
    assert should_send(11, 5, 5, FORCE_HOURS)


def test_nothing_to_send_never_fires() -> None:
    assert not should_send(10, 0, 0, FORCE_HOURS)
    assert not should_send(11, 0, 0, FORCE_HOURS)


def test_instant_round_trip_and_bad_values() -> None:
    moment = datetime(2026, 10, 19, 10, 0, 30, 123000, tzinfo=timezone(timedelta(hours=9)))
    stored = format_instant(moment)
    assert stored == "2026-10-19T01:00:30.123Z"
    assert parse_instant(stored) == moment
    assert parse_instant("garbage") is None
    assert parse_instant(None) is None


def test_format_label() -> None:
    moment = datetime(2026, 10, 19, 1, 5, tzinfo=timezone.utc)
    assert format_label(moment, 9) == "10-19(10:05)"
    assert format_label(None, 9) == "N/A"
