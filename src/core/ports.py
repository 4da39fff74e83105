"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for search, state, and notification
adapters so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Protocol

PRIMARY_CHANNEL = "primary"
ADMIN_CHANNEL = "admin"


class SearchError(RuntimeError):
    """Raised by search adapters when a page cannot be retrieved."""


class SearchPort(Protocol):
    """Paged, newest-first keyword search."""

    async def fetch_page(self, query: str, display: int, start: int) -> List[Mapping[str, Any]]:
        ...


class StateStorePort(Protocol):
    """Key-value persistence with no transactional guarantees across keys."""

    def get(self, key: str) -> Optional[str]:
        ...

    def put(self, key: str, value: str) -> None:
        ...


class NotifierPort(Protocol):
    """Notification operations required by the core pipeline."""

    async def send(self, channel: str, text: str) -> None:
        ...
