# rosterbot/core/engine.py
from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from rosterbot.core import messaging
from rosterbot.core.attendance import AttendanceBook
from rosterbot.core.booking import BookingResult, BookingService
from rosterbot.core.clock import Clock
from rosterbot.core.commands import CommandRouter, build_commands
from rosterbot.core.dispatcher import NotificationDispatcher
from rosterbot.core.errors import StoreError
from rosterbot.core.events import Event, EventSource, SheetLayout
from rosterbot.core.i18n import MESSAGES, fmt
from rosterbot.core.logging_utils import kv
from rosterbot.core.participants import Participant, ParticipantDirectory
from rosterbot.core.responses import ResponseHandler, ResponseOutcome
from rosterbot.core.scheduler import NotificationScheduler
from rosterbot.core.status_codec import StatusCodec, parse_status
from rosterbot.core.windows import build_windows


# -------------------------------------------------------------------------------------------------
# Public inbound message type
# -------------------------------------------------------------------------------------------------
@dataclass
class IncomingMessage:
    chat_id: int
    user_id: int
    text: str
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    sent_at_utc: Optional[datetime] = None


_BOOKING_REPLY = {
    BookingResult.BOOKED: "book_ok",
    BookingResult.RELEASED: "unbook_ok",
    BookingResult.NO_EVENT: "game_not_found",
    BookingResult.BAD_SLOT: "book_bad_slot",
    BookingResult.SLOT_TAKEN: "book_taken",
    BookingResult.ALREADY_BOOKED: "book_already",
    BookingResult.NOT_BOOKED: "unbook_missing",
    BookingResult.STORE_UNAVAILABLE: "store_unavailable",
    BookingResult.WRITE_FAILED: "write_failed",
}


class RosterEngine:
    """
    Owns the services and answers everything the adapter forwards:
    commands (returning reply text) and attendance button taps.
    The notification loop runs alongside, started and stopped from here.
    """

    def __init__(
        self,
        config: Any,
        store: Any,
        adapter: Any | None = None,
        *,
        clock: Optional[Clock] = None,
        directory: Optional[ParticipantDirectory] = None,
        audit: Any | None = None,
        dispatcher_kwargs: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.cfg = config
        self.store = store
        self.adapter = adapter
        self.clock = clock or Clock(config.TZ)
        self.log = logging.getLogger("rosterbot.engine")

        self.layout = SheetLayout.from_config(config)
        self.codec = StatusCodec(getattr(config, "COLOR_THRESHOLDS", None))
        self.directory = directory or ParticipantDirectory()
        self.events = EventSource(store, self.layout)
        self.attendance = AttendanceBook(store, self.layout, self.codec)

        self.dispatcher = NotificationDispatcher(
            adapter=adapter,
            directory=self.directory,
            attendance=self.attendance,
            clock=self.clock,
            config=config,
            audit=audit,
            **(dispatcher_kwargs or {}),
        )
        self.responses = ResponseHandler(self.directory, self.attendance, audit)
        self.booking = BookingService(store, self.events)
        self.scheduler = NotificationScheduler(
            self.events,
            self.dispatcher,
            self.clock,
            build_windows(config),
            interval_s=getattr(config, "CHECK_INTERVAL_S", 900),
            grace_s=getattr(config, "STOP_GRACE_S", 5),
        )
        self.router = CommandRouter(build_commands(self))

    def attach_adapter(self, adapter: Any) -> None:
        self.adapter = adapter
        self.dispatcher.adapter = adapter
        self.log.debug("engine.adapter.attached " + kv(kind=type(adapter).__name__))

    async def start(self) -> None:
        await self.scheduler.start()

    async def stop(self) -> None:
        await self.scheduler.stop()

    def is_admin(self, user_id: int) -> bool:
        return user_id in (getattr(self.cfg, "ADMIN_IDS", []) or [])

    # ---- incoming from adapter --------------------------------------------------------
    async def on_message(self, msg: IncomingMessage) -> Optional[str]:
        """Reply text for a command; None for anything that is not one."""
        text = (msg.text or "").strip()
        if not text.startswith("/"):
            return None

        self.log.info("msg.engine.in " + kv(chat_id=msg.chat_id, user_id=msg.user_id, text=text))
        routed = self.router.match(text)
        if routed is None:
            return MESSAGES["unknown_command"]

        cmd, args = routed
        if cmd.admin_only and not self.is_admin(msg.user_id):
            self.log.info("cmd.reject " + kv(cmd=cmd.name, user_id=msg.user_id, reason="not admin"))
            return MESSAGES["admin_only"]
        try:
            return await cmd.handler(msg, args)
        except Exception:
            self.log.exception("cmd.error " + kv(cmd=cmd.name, user_id=msg.user_id))
            return MESSAGES["internal_error"]

    async def on_attendance_callback(self, user_id: int, data: Optional[str]) -> ResponseOutcome:
        return await self.responses.handle(user_id, data)

    # ---- helpers ---------------------------------------------------------------------
    def _participant(self, msg: IncomingMessage) -> Optional[Participant]:
        return self.directory.find_by_id(msg.user_id)

    def _relative_day(self, date_str: str) -> str:
        if date_str == self.clock.today_str():
            return "today"
        if date_str == self.clock.tomorrow_str():
            return "tomorrow"
        return date_str

    # ---- commands --------------------------------------------------------------------
    def _register(self, msg: IncomingMessage) -> Participant:
        return self.directory.register(
            Participant(
                telegram_id=msg.user_id,
                username=msg.username,
                first_name=msg.first_name,
                last_name=msg.last_name,
            )
        )

    async def cmd_start(self, msg: IncomingMessage, args: Dict[str, str]) -> str:
        p = self._register(msg)
        return fmt(
            "help",
            name=html.escape(p.first_name or p.display_name),
            commands=html.escape(self.router.help_text(is_admin=self.is_admin(msg.user_id))),
        )

    async def cmd_myname(self, msg: IncomingMessage, args: Dict[str, str]) -> str:
        self._register(msg)
        name = args["name"]
        self.directory.map_sheet_name(name, msg.user_id)
        return fmt("myname_ok", sheet_name=html.escape(name))

    async def cmd_map(self, msg: IncomingMessage, args: Dict[str, str]) -> str:
        name, user = args["name"], args["user"]
        if user.isdigit():
            target = self.directory.find_by_id(int(user))
        elif user.startswith("@"):
            target = self.directory.find_by_handle(user)
        elif "@" in user:
            return MESSAGES["map_email_unsupported"]
        else:
            target = self.directory.find_by_handle(user)
        if target is None:
            return MESSAGES["map_user_not_found"]
        self.directory.map_sheet_name(name, target.telegram_id)
        return fmt(
            "map_ok",
            sheet_name=html.escape(name),
            user=html.escape(target.mention if target.username else target.display_name),
        )

    async def cmd_mappings(self, msg: IncomingMessage, args: Dict[str, str]) -> str:
        mapped = self.directory.mapped()
        if not mapped:
            return MESSAGES["mappings_empty"]
        lines = [
            fmt(
                "mappings_line",
                sheet_name=html.escape(p.sheet_name),
                user=html.escape(p.display_name),
                telegram_id=p.telegram_id,
            )
            for p in sorted(mapped, key=lambda x: x.sheet_name.lower())
        ]
        return MESSAGES["mappings_header"] + "\n".join(lines)

    async def cmd_test(self, msg: IncomingMessage, args: Dict[str, str]) -> str:
        p = self._participant(msg)
        if p is None:
            return MESSAGES["need_start"]
        if not p.sheet_name:
            return MESSAGES["need_sheet_name"]
        tomorrow = self.clock.tomorrow_str()
        try:
            event = await self.events.event_on(tomorrow)
        except StoreError as e:
            self.log.warning("cmd.test.read.fail " + kv(err=str(e)))
            event = None
        if event is None:
            # no game tomorrow: a placeholder with the default time and place
            event = Event(
                date=tomorrow,
                time=self.layout.default_time,
                place=self.layout.default_place,
                row_index=-1,
            )
        ok = await self.dispatcher.send_test_prompt(p, event, "tomorrow")
        return MESSAGES["test_sent"] if ok else MESSAGES["test_failed"]

    async def cmd_game(self, msg: IncomingMessage, args: Dict[str, str]) -> str:
        date_str = args.get("date") or self.clock.today_str()
        try:
            event = await self.events.event_on(date_str)
            if event is None:
                return fmt("game_not_found", date=date_str)
            labels = await self.dispatcher.collect_labels(event)
        except StoreError as e:
            self.log.warning("cmd.game.read.fail " + kv(date=date_str, err=str(e)))
            return MESSAGES["store_unavailable"]
        return messaging.group_summary(
            event, self._relative_day(date_str), labels, getattr(self.cfg, "BOT_USERNAME", "")
        )

    async def cmd_book(self, msg: IncomingMessage, args: Dict[str, str]) -> str:
        p = self._participant(msg)
        if p is None:
            return MESSAGES["need_start"]
        if not p.sheet_name:
            return MESSAGES["need_sheet_name"]
        date_str, slot = args["date"], int(args["slot"])
        result = await self.booking.book(p, date_str, slot)
        reply = fmt(_BOOKING_REPLY[result], date=date_str, slot=slot)
        if result is BookingResult.SLOT_TAKEN:
            reply += await self._free_seats_hint(date_str)
        return reply

    async def _free_seats_hint(self, date_str: str) -> str:
        try:
            event = await self.events.event_on(date_str)
        except StoreError as e:
            self.log.warning("cmd.book.free.fail " + kv(date=date_str, err=str(e)))
            return ""
        free = messaging.free_slot_numbers(event) if event is not None else []
        if not free:
            return "\n" + MESSAGES["book_no_free"]
        return "\n" + fmt("book_free", free=", ".join(str(n) for n in free))

    async def cmd_unbook(self, msg: IncomingMessage, args: Dict[str, str]) -> str:
        p = self._participant(msg)
        if p is None:
            return MESSAGES["need_start"]
        if not p.sheet_name:
            return MESSAGES["need_sheet_name"]
        date_str = args["date"]
        result = await self.booking.release(p, date_str)
        return fmt(_BOOKING_REPLY[result], date=date_str, slot="")

    async def cmd_mark(self, msg: IncomingMessage, args: Dict[str, str]) -> str:
        status = parse_status(args["status"])
        if status is None:
            return MESSAGES["mark_bad_status"]
        date_str, name = args["date"], args["name"]
        try:
            await self.attendance.write_status(date_str, name, status)
        except StoreError as e:
            self.log.warning("cmd.mark.fail " + kv(date=date_str, name=name, err=str(e)))
            return MESSAGES["write_failed"]
        self.log.info(
            "cmd.mark " + kv(by=msg.user_id, date=date_str, name=name, status=status.value)
        )
        return fmt(
            "mark_ok",
            name=html.escape(name),
            date=date_str,
            status=messaging.status_label(status),
        )


__all__ = ["IncomingMessage", "RosterEngine"]
