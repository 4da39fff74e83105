"""Core configuration dataclasses and resolution.

We keep config loading outside the core, but the dataclass here defines the
shape the core expects and the pure resolver turns an ordered list of raw
sources (consolidated record, discrete overrides, static defaults) into it.
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence

LOGGER = logging.getLogger(__name__)

# State store key holding the consolidated JSON record.
CONSOLIDATED_KEY = "cfg:APP"

# Discrete per-field override keys in the state store (and environment).
DISCRETE_KEYS = {
    "search_keywords": "SEARCH_KEYWORDS",
    "include_keywords": "INCLUDE_KEYWORDS",
    "exclude_keywords": "EXCLUDE_KEYWORDS",
    "display_per_call": "DISPLAY_PER_CALL",
    "max_loops": "MAX_LOOPS",
    "min_send_threshold": "MIN_SEND_THRESHOLD",
    "force_hours": "FORCE_HOURS",
}

LIST_FIELDS = ("search_keywords", "include_keywords", "exclude_keywords")

# field -> (default, minimum, maximum)
NUMBER_FIELDS = {
    "display_per_call": (30, 1, 100),
    "max_loops": (3, 1, 10),
    "min_send_threshold": (3, 0, 100),
}

DEFAULT_FORCE_HOURS = frozenset({0, 8, 10, 12, 14, 16, 18, 20, 22})

_LIST_SEPARATORS = re.compile(r"[;,，、]+")


@dataclass(frozen=True)
class AppConfig:
    """Resolved settings for one run."""

    search_keywords: tuple[str, ...]
    include_keywords: tuple[str, ...]
    exclude_keywords: tuple[str, ...]
    display_per_call: int
    max_loops: int
    min_send_threshold: int
    force_hours: frozenset[int]

    @property
    def query(self) -> str:
        return " ".join(self.search_keywords).strip()

    def as_dict(self) -> dict:
        return {
            "search_keywords": list(self.search_keywords),
            "include_keywords": list(self.include_keywords),
            "exclude_keywords": list(self.exclude_keywords),
            "display_per_call": self.display_per_call,
            "max_loops": self.max_loops,
            "min_send_threshold": self.min_send_threshold,
            "force_hours": sorted(self.force_hours),
        }


def parse_list_text(raw: Optional[str]) -> List[str]:
    """Split operator-friendly list text into clean entries.

    Entries may be separated by newlines, commas, semicolons, or CJK commas.
    Anything after ``#`` on a line is a comment, and wrapping quotes are
    dropped.
    """

    if not raw:
        return []
    lines = []
    for line in raw.replace("\r", "").split("\n"):
        line = line.split("#", 1)[0].strip()
        if line:
            lines.append(line)
    entries: List[str] = []
    for part in _LIST_SEPARATORS.split(",".join(lines)):
        part = part.strip()
        if len(part) >= 1 and part[0] in "'\"":
            part = part[1:]
        if len(part) >= 1 and part[-1] in "'\"":
            part = part[:-1]
        part = part.strip()
        if part:
            entries.append(part)
    return entries


def parse_number(value: Any) -> Optional[int]:
    """Return an integer for numeric-looking values, otherwise None."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return int(number)


def _clamp(value: int, minimum: int, maximum: int) -> int:
    return max(minimum, min(maximum, value))


def _coerce_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return parse_list_text(value)
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if item is not None and str(item).strip()]
    return []


def _coerce_hours(value: Any) -> List[int]:
    if isinstance(value, str):
        raw: Iterable[Any] = parse_list_text(value)
    elif isinstance(value, (list, tuple, set, frozenset)):
        raw = value
    else:
        return []
    hours = []
    for item in raw:
        hour = parse_number(item)
        if hour is not None and 0 <= hour <= 23:
            hours.append(hour)
    return hours


def _first(sources: Sequence[Optional[Mapping[str, Any]]], field: str, coerce):
    for source in sources:
        if not source:
            continue
        value = coerce(source.get(field))
        if value is not None and value != []:
            return value
    return None


def resolve_config(sources: Sequence[Optional[Mapping[str, Any]]]) -> AppConfig:
    """Resolve an AppConfig from sources ordered by priority.

    Each source maps field names to raw values (strings, lists or numbers).
    The first source yielding a non-empty value wins per field; fields with no
    usable value anywhere fall back to built-in defaults.
    """

    resolved: dict[str, Any] = {}
    for name in LIST_FIELDS:
        resolved[name] = tuple(_first(sources, name, _coerce_list) or ())

    for name, (default, minimum, maximum) in NUMBER_FIELDS.items():
        value = _first(sources, name, parse_number)
        resolved[name] = _clamp(default if value is None else value, minimum, maximum)

    hours = _first(sources, "force_hours", _coerce_hours)
    resolved["force_hours"] = frozenset(hours) if hours else DEFAULT_FORCE_HOURS

    return AppConfig(**resolved)


def load_consolidated(raw: Optional[str]) -> Optional[dict]:
    """Parse the consolidated JSON record, returning None when unusable."""

    if not raw:
        return None
    try:
        payload = json.loads(raw)
    except ValueError:
        LOGGER.warning("Ignoring malformed %s record", CONSOLIDATED_KEY, exc_info=True)
        return None
    if not isinstance(payload, dict):
        LOGGER.warning("Ignoring %s record: expected a JSON object", CONSOLIDATED_KEY)
        return None
    return payload


def config_sources_from_store(store, defaults: Optional[Mapping[str, Any]] = None) -> list:
    """Build the ordered source list from the state store plus static defaults."""

    consolidated = load_consolidated(store.get(CONSOLIDATED_KEY))
    overrides = {name: store.get(key) for name, key in DISCRETE_KEYS.items()}
    return [consolidated, overrides, defaults]
