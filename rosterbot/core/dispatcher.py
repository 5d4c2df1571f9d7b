# rosterbot/core/dispatcher.py
from __future__ import annotations

import asyncio
import html
import logging
import random
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple

from rosterbot.core import messaging
from rosterbot.core.attendance import AttendanceBook
from rosterbot.core.clock import Clock
from rosterbot.core.errors import StoreError
from rosterbot.core.events import Event, normalize_label
from rosterbot.core.logging_utils import kv
from rosterbot.core.participants import Participant, ParticipantDirectory
from rosterbot.core.status_codec import STATUS_EMOJI, AttendanceStatus
from rosterbot.core.windows import NotificationWindow

log = logging.getLogger("rosterbot.dispatcher")


class NotificationDispatcher:
    """
    Sends one window's notifications for the given events and reports how many
    recipients were actually reached. Knows nothing about the ledger: deciding
    whether a window is due (and remembering that it fired) is the scheduler's job.
    """

    def __init__(
        self,
        adapter: Any,
        directory: ParticipantDirectory,
        attendance: AttendanceBook,
        clock: Clock,
        config: Any,
        audit: Any | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.adapter = adapter
        self.directory = directory
        self.attendance = attendance
        self.clock = clock
        self.cfg = config
        self.audit = audit
        self._sleep = sleep
        self._rng = rng or random.Random()
        self.pacing: Tuple[float, float] = tuple(
            getattr(config, "PACING_DELAY_S", (0.8, 2.5))
        )

    async def dispatch(
        self,
        window: NotificationWindow,
        events: Iterable[Event],
        relative_day: str = "",
        *,
        pace_first: bool = False,
    ) -> int:
        """
        pace_first: something was already sent earlier in the same pass, so the
        first direct message of this call waits too.
        """
        window = NotificationWindow(window)
        sent_before = 1 if pace_first else 0
        if window is NotificationWindow.ADMIN_WEEKLY_REMINDER:
            return await self.send_admin_reminder(sent_before=sent_before)

        total = 0
        for event in events:
            if window is NotificationWindow.GROUP_EVENING:
                total += await self.send_group_summary(event, relative_day)
            else:
                total += await self._dispatch_personal(
                    window, event, relative_day, sent_before=sent_before + total
                )
        log.info(
            "dispatch.done " + kv(window=window.value, day=relative_day, notified=total)
        )
        return total

    # ---- per participant -------------------------------------------------------------
    def recipients(self, event: Event) -> List[Tuple[str, Participant]]:
        """(occupant label, participant) for each distinct, resolvable occupant."""
        seen: set[str] = set()
        result: List[Tuple[str, Participant]] = []
        for slot in event.occupied_slots():
            key = normalize_label(slot.occupant)
            if key in seen:
                continue
            seen.add(key)
            participant = self.directory.find_by_display_name(slot.occupant)
            if participant is None:
                log.info(
                    "dispatch.recipient.unresolved "
                    + kv(date=event.date, name=slot.occupant, col=slot.column_index)
                )
                continue
            if not participant.sheet_name:
                # matched by Telegram name only: a tap could not be written back
                log.info(
                    "dispatch.recipient.no_sheet_name "
                    + kv(date=event.date, name=slot.occupant, telegram_id=participant.telegram_id)
                )
                continue
            result.append((slot.occupant, participant))
        return result

    async def _dispatch_personal(
        self, window: NotificationWindow, event: Event, relative_day: str,
        sent_before: int = 0,
    ) -> int:
        notified = 0
        for name, participant in self.recipients(event):
            try:
                status = await self.attendance.read_status(event.date, name)
            except StoreError as e:
                log.warning(
                    "dispatch.status.fail "
                    + kv(date=event.date, name=name, err=str(e))
                )
                continue

            final = window is NotificationWindow.FINAL_REMINDER
            if status is AttendanceStatus.NO and not final:
                log.debug("dispatch.skip.declined " + kv(date=event.date, name=name))
                continue

            if final:
                text = messaging.final_reminder(event, self.clock.now())
                choices = None
            elif status.is_known:
                text, choices = messaging.reminder(event, relative_day, status)
            else:
                text, choices = messaging.invitation(event, relative_day)

            paced = sent_before + notified > 0
            if await self._send(participant.telegram_id, text, choices, pace=paced):
                notified += 1
                self._audit(
                    "notify",
                    participant,
                    event.date,
                    window=window.value,
                    status=status.value,
                )
        return notified

    async def send_test_prompt(
        self, participant: Participant, event: Event, relative_day: str
    ) -> bool:
        text, choices = messaging.test_invitation(event, relative_day, self.clock.now())
        ok = await self._send(participant.telegram_id, text, choices, pace=False)
        if ok:
            self._audit("test", participant, event.date)
        return ok

    # ---- broadcast -----------------------------------------------------------------
    async def collect_labels(self, event: Event) -> Dict[int, str]:
        """Column -> "<emoji> <mention>" for every occupied slot."""
        labels: Dict[int, str] = {}
        failed: List[int] = []
        last_err = ""
        for slot in event.occupied_slots():
            try:
                status = await self.attendance.read_cell_status(
                    event.row_index, slot.column_index
                )
            except StoreError as e:
                log.debug(
                    "summary.status.fail "
                    + kv(date=event.date, col=slot.column_index, err=str(e))
                )
                failed.append(slot.column_index)
                last_err = str(e)
                status = AttendanceStatus.UNKNOWN
            participant = self.directory.find_by_display_name(slot.occupant)
            if participant is not None and participant.username:
                mention = "@" + participant.username
            else:
                mention = slot.occupant
            labels[slot.column_index] = f"{STATUS_EMOJI[status]} {html.escape(mention)}"
        if failed:
            log.warning(
                "summary.status.unreadable "
                + kv(date=event.date, cols=failed, err=last_err)
            )
        return labels

    async def send_group_summary(self, event: Event, relative_day: str) -> int:
        chat_id = getattr(self.cfg, "GENERAL_CHAT_ID", None)
        if not chat_id:
            log.info("summary.skip " + kv(reason="no general chat", date=event.date))
            return 0
        if messaging.fully_cancelled(event):
            log.info("summary.skip " + kv(reason="all slots cancelled", date=event.date))
            return 0

        labels = await self.collect_labels(event)
        text = messaging.group_summary(
            event, relative_day, labels, getattr(self.cfg, "BOT_USERNAME", "")
        )
        try:
            await self.adapter.send_group_message(chat_id, text)
        except Exception as e:
            log.error("summary.send.fail " + kv(chat_id=chat_id, err=str(e)))
            return 0
        log.info("summary.sent " + kv(chat_id=chat_id, date=event.date))
        return 1

    async def send_admin_reminder(self, sent_before: int = 0) -> int:
        text = messaging.admin_reminder()
        notified = 0
        for admin_id in getattr(self.cfg, "ADMIN_IDS", []) or []:
            if await self._send(admin_id, text, None, pace=sent_before + notified > 0):
                notified += 1
        log.info("admin.reminder.done " + kv(notified=notified))
        return notified

    # ---- plumbing --------------------------------------------------------------------
    async def _pace(self) -> None:
        low, high = self.pacing
        await self._sleep(self._rng.uniform(low, high))

    async def _send(
        self,
        chat_id: int,
        text: str,
        choices: Optional[List[messaging.Choice]],
        *,
        pace: bool,
    ) -> bool:
        if pace:
            await self._pace()
        try:
            await self.adapter.send_direct(chat_id, text, choices)
        except Exception as e:
            log.error("dispatch.send.fail " + kv(chat_id=chat_id, err=str(e)))
            return False
        return True

    def _audit(self, kind: str, participant: Participant, date_str: str, **extra: Any) -> None:
        if self.audit is None:
            return
        self.audit.record(
            kind=kind,
            telegram_id=participant.telegram_id,
            name=participant.sheet_name or participant.display_name,
            date=date_str,
            **extra,
        )
