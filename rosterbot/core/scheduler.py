# rosterbot/core/scheduler.py
from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import timedelta
from enum import Enum
from typing import Dict, List, Optional

from rosterbot.core.clock import Clock, format_date
from rosterbot.core.errors import StoreError
from rosterbot.core.events import Event, EventSource
from rosterbot.core.ledger import SentKey, SentLedger
from rosterbot.core.logging_utils import kv
from rosterbot.core.windows import RELATIVE_DAY, TODAY, TOMORROW, WindowSpec

log = logging.getLogger("rosterbot.scheduler")


class SchedulerState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class NotificationScheduler:
    """
    One background task: sleep, run a pass, repeat.

    A pass fires every window whose hour is the current local hour, once per
    (window, game date, scope). A key is only remembered once somebody was
    actually notified, so a window with nobody to reach is retried on the next
    tick within the same hour.
    """

    def __init__(
        self,
        events: EventSource,
        dispatcher,
        clock: Clock,
        windows: List[WindowSpec],
        *,
        interval_s: float = 900,
        grace_s: float = 5,
        ledger: Optional[SentLedger] = None,
    ) -> None:
        self.events = events
        self.dispatcher = dispatcher
        self.clock = clock
        self.windows = list(windows)
        self.interval_s = interval_s
        self.grace_s = grace_s
        self.ledger = ledger or SentLedger()

        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._notified_in_pass = 0

    @property
    def state(self) -> SchedulerState:
        if self._task is not None and not self._task.done():
            return SchedulerState.RUNNING
        return SchedulerState.STOPPED

    # ---- lifecycle -------------------------------------------------------------------
    async def start(self) -> None:
        if self.state is SchedulerState.RUNNING:
            return
        self._stop = asyncio.Event()
        self._task = asyncio.create_task(self._loop(), name="rosterbot-scheduler")
        log.info(
            "scheduler.start "
            + kv(interval_s=self.interval_s, windows=[w.window.value for w in self.windows])
        )

    async def stop(self) -> None:
        task = self._task
        if task is None:
            return
        self._stop.set()
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=self.grace_s)
        except asyncio.TimeoutError:
            log.warning("scheduler.stop.forced " + kv(grace_s=self.grace_s))
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._task = None
        log.info("scheduler.stop")

    async def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval_s)
                break
            except asyncio.TimeoutError:
                pass
            try:
                await self.run_pass()
            except Exception:
                log.exception("scheduler.pass.error")

    # ---- one pass --------------------------------------------------------------------
    async def run_pass(self) -> int:
        """Returns the number of keys marked as sent during this pass."""
        now = self.clock.now()
        removed = self.ledger.cleanup(now)
        if removed:
            log.debug("ledger.cleanup " + kv(removed=removed, left=len(self.ledger)))

        today = format_date(now.date())
        tomorrow = format_date(now.date() + timedelta(days=1))
        try:
            found = await self.events.events_for(today, tomorrow)
        except StoreError as e:
            log.warning("scheduler.pass.skip " + kv(reason="store read failed", err=str(e)))
            return 0

        by_day: Dict[int, List[Event]] = {
            TODAY: [e for e in found if e.date == today],
            TOMORROW: [e for e in found if e.date == tomorrow],
        }
        if by_day[TODAY] and all(e.has_started(now) for e in by_day[TODAY]):
            log.debug("scheduler.pass.skip " + kv(reason="today's games started", date=today))
            return 0

        marked = 0
        self._notified_in_pass = 0
        for spec in self.windows:
            if not spec.is_due(now):
                continue
            if not spec.day_offsets:
                marked += await self._fire(spec, SentKey(spec.window.value, today), [], "")
                continue
            for offset in spec.day_offsets:
                relative_day = RELATIVE_DAY[offset]
                for event in by_day.get(offset, []):
                    if spec.requires_not_started and event.has_started(now):
                        continue
                    key = SentKey(
                        spec.window.value,
                        event.date,
                        "" if spec.is_broadcast else relative_day,
                    )
                    marked += await self._fire(spec, key, [event], relative_day)
        return marked

    async def _fire(
        self, spec: WindowSpec, key: SentKey, events: List[Event], relative_day: str
    ) -> int:
        if self.ledger.is_sent(key):
            return 0
        count = await self.dispatcher.dispatch(
            spec.window, events, relative_day, pace_first=self._notified_in_pass > 0
        )
        self._notified_in_pass += max(count, 0)
        if count <= 0:
            log.info("scheduler.window.empty " + kv(key=str(key)))
            return 0
        self.ledger.mark_sent(key, self.clock.now())
        log.info("scheduler.window.sent " + kv(key=str(key), notified=count))
        return 1
