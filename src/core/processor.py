"""Core run orchestration.

This module is integration-agnostic. It only relies on ports for search,
state, and notifications, enabling other schedulers or adapters without
changes here.

A scheduled run follows a strict order:
1) Compute the slot and skip if it was already handled
2) Resolve config and read the watermark
3) Collect candidates page by page
4) Apply the send gate
5) Notify, then persist the slot id and the advanced watermark
6) Report to the admin channel
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional

from core.config import AppConfig, config_sources_from_store, resolve_config
from core.fetcher import collect_candidates
from core.models import RunOutcome
from core.ports import ADMIN_CHANNEL, PRIMARY_CHANNEL, NotifierPort, SearchPort, StateStorePort
from core.report import format_articles, format_error, format_preview_digest, format_run_digest
from core.schedule import compute_slot, format_instant, format_label, parse_instant, should_send, to_local

LOGGER = logging.getLogger(__name__)

LAST_SENT_KEY = "last_sent_target_iso"
LAST_CHECKED_KEY = "last_checked_time_iso"


class NewsRunner:
    """Orchestrates paging, filtering, the send gate, persistence, and reports."""

    def __init__(
        self,
        search: SearchPort,
        store: StateStorePort,
        notifier: NotifierPort,
        utc_offset_hours: float,
        app_name: str = "newsgate",
        defaults: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._search = search
        self._store = store
        self._notifier = notifier
        self._offset = utc_offset_hours
        self._app_name = app_name
        self._defaults = defaults or {}

    def load_config(self) -> AppConfig:
        """Re-resolve config from the store and static defaults."""

        return resolve_config(config_sources_from_store(self._store, self._defaults))

    async def run_scheduled(self, now: datetime) -> RunOutcome:
        """Run one gated tick. Repeated calls within the same slot are no-ops."""

        slot = compute_slot(now, self._offset)
        # Slot-level idempotency must run before anything with side effects.
        if self._store.get(LAST_SENT_KEY) == slot.slot_id:
            LOGGER.info("Skip: slot %s already sent", slot.slot_id)
            return RunOutcome(status="skipped", slot=slot.utc, sent=False)

        config = self.load_config()
        watermark = parse_instant(self._store.get(LAST_CHECKED_KEY))
        fetch = await collect_candidates(self._search, config, watermark)

        now_local = to_local(now, self._offset)
        send = should_send(
            now_local.hour,
            len(fetch.candidates),
            config.min_send_threshold,
            config.force_hours,
        )

        if send:
            await self._notifier.send(PRIMARY_CHANNEL, format_articles(fetch.candidates))
            # The two keys are written independently; if the watermark write
            # fails the slot stays marked and the next slot retries the items.
            self._store.put(LAST_SENT_KEY, slot.slot_id)
            newest = fetch.newest_candidate
            if newest is not None and (watermark is None or newest > watermark):
                self._store.put(LAST_CHECKED_KEY, format_instant(newest))
            LOGGER.info("Sent %s articles for slot %s", len(fetch.candidates), slot.slot_id)
        else:
            LOGGER.info(
                "Holding %s candidates (threshold=%s, hour=%s)",
                len(fetch.candidates),
                config.min_send_threshold,
                now_local.hour,
            )

        await self._notifier.send(
            ADMIN_CHANNEL,
            format_run_digest(fetch, send, now_local, self._offset),
        )
        return RunOutcome(
            status="sent" if send else "held",
            slot=slot.utc,
            sent=send,
            fetch=fetch,
        )

    async def run_scheduled_safely(self, now: datetime) -> Optional[RunOutcome]:
        """Error boundary around ``run_scheduled``.

        Any failure is logged and reported to the admin channel on a best
        effort basis, then swallowed so the next tick can retry from the last
        persisted state.
        """

        try:
            return await self.run_scheduled(now)
        except Exception as exc:
            LOGGER.exception("Scheduled run failed")
            try:
                await self._notifier.send(ADMIN_CHANNEL, format_error(self._app_name, exc))
            except Exception:
                LOGGER.exception("Failed to deliver error report")
            return None

    async def preview(self, now: datetime) -> dict:
        """Run the full pipeline without the slot check or any state writes."""

        config = self.load_config()
        watermark = parse_instant(self._store.get(LAST_CHECKED_KEY))
        fetch = await collect_candidates(self._search, config, watermark)

        now_local = to_local(now, self._offset)
        send = should_send(
            now_local.hour,
            len(fetch.candidates),
            config.min_send_threshold,
            config.force_hours,
        )
        await self._notifier.send(
            ADMIN_CHANNEL,
            format_preview_digest(fetch, send, config.min_send_threshold, now_local, self._offset),
        )
        return {
            "should_send": send,
            "min_send": config.min_send_threshold,
            "count": len(fetch.candidates),
            "items": [{"title": a.title, "link": a.link} for a in fetch.candidates],
            "loop_reports": [report.as_dict() for report in fetch.loop_reports],
            "latest": format_label(fetch.latest, self._offset),
            "earliest": format_label(fetch.earliest, self._offset),
            "config": config.as_dict(),
        }
