"""Keyword rule compilation and title matching logic (core domain)."""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from typing import Iterable, Tuple

INCLUDE_FAIL = "include_fail"
EXCLUDE_HIT = "exclude_hit"
PASSED = "pass"


def normalize_text(text: str) -> str:
    """NFKC-normalize, case-fold, and collapse whitespace."""

    folded = unicodedata.normalize("NFKC", text).casefold()
    return re.sub(r"\s+", " ", folded).strip()


@dataclass(frozen=True)
class KeywordRules:
    """Normalized include/exclude terms used by the pipeline."""

    include: Tuple[str, ...]
    exclude: Tuple[str, ...]


def build_rules(include: Iterable[str], exclude: Iterable[str]) -> KeywordRules:
    """Normalize configured terms once so per-title matching stays cheap.

    Terms that normalize to an empty string are dropped, since an empty
    substring would match every title.
    """

    return KeywordRules(
        include=tuple(term for term in (normalize_text(k) for k in include) if term),
        exclude=tuple(term for term in (normalize_text(k) for k in exclude) if term),
    )


def match_title(title: str, rules: KeywordRules) -> str:
    """Return PASSED, INCLUDE_FAIL, or EXCLUDE_HIT for a title.

    Matching logic:
    - With include terms configured, at least one must appear in the title.
    - Any exclude term appearing in the title rejects it.
    - Containment is plain substring matching on normalized text.
    """

    normalized = normalize_text(title)
    if rules.include and not any(term in normalized for term in rules.include):
        return INCLUDE_FAIL
    if any(term in normalized for term in rules.exclude):
        return EXCLUDE_HIT
    return PASSED
