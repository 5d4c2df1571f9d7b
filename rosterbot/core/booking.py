# rosterbot/core/booking.py
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Optional, Tuple

from rosterbot.core import messaging
from rosterbot.core.errors import StoreError
from rosterbot.core.events import Event, EventSource, Slot
from rosterbot.core.logging_utils import kv
from rosterbot.core.participants import Participant

log = logging.getLogger("rosterbot.booking")


class BookingResult(str, Enum):
    BOOKED = "booked"
    RELEASED = "released"
    NO_EVENT = "no_event"
    BAD_SLOT = "bad_slot"
    SLOT_TAKEN = "slot_taken"
    ALREADY_BOOKED = "already_booked"
    NOT_BOOKED = "not_booked"
    STORE_UNAVAILABLE = "store_unavailable"
    WRITE_FAILED = "write_failed"


class BookingService:
    """
    Writes a participant's sheet name into a free seat, or clears it again.

    The sheet has no locking. Every attempt re-reads the row with the cache
    dropped and re-checks it right before writing; two people racing for the
    same seat still end up last-writer-wins.
    """

    def __init__(self, store: Any, events: EventSource) -> None:
        self.store = store
        self.events = events

    async def _fresh_event(self, date_str: str) -> Tuple[Optional[Event], Optional[BookingResult]]:
        try:
            event = await self.events.event_on(date_str, fresh=True)
        except StoreError as e:
            log.error("booking.read.fail " + kv(date=date_str, err=str(e)))
            return None, BookingResult.STORE_UNAVAILABLE
        if event is None:
            return None, BookingResult.NO_EVENT
        return event, None

    async def _write(
        self, event: Event, slot: Slot, text: str, date_str: str, name: str
    ) -> bool:
        """
        The cell value is the booking itself: once it is written the seat has
        changed hands. A stale status color left behind is only logged.
        """
        try:
            await self.store.set_cell_value(event.row_index, slot.column_index, text)
        except StoreError as e:
            log.error("booking.write.fail " + kv(date=date_str, name=name, err=str(e)))
            return False
        try:
            await self.store.set_cell_color(event.row_index, slot.column_index, None)
        except StoreError as e:
            log.warning(
                "booking.color.clear.fail "
                + kv(date=date_str, col=slot.column_index, err=str(e))
            )
        return True

    async def book(self, participant: Participant, date_str: str, number: int) -> BookingResult:
        name = participant.sheet_name
        event, failure = await self._fresh_event(date_str)
        if failure is not None:
            return failure

        if event.find_occupant(name) is not None:
            log.info("booking.reject " + kv(reason="already booked", date=date_str, name=name))
            return BookingResult.ALREADY_BOOKED

        slot = messaging.slot_by_number(event, number)
        if slot is None:
            return BookingResult.BAD_SLOT
        if not slot.is_free:
            log.info(
                "booking.reject "
                + kv(reason="slot not free", date=date_str, slot=number, occupant=slot.occupant)
            )
            return BookingResult.SLOT_TAKEN

        if not await self._write(event, slot, name, date_str, name):
            return BookingResult.WRITE_FAILED

        log.info("booking.booked " + kv(date=date_str, name=name, slot=number))
        return BookingResult.BOOKED

    async def release(self, participant: Participant, date_str: str) -> BookingResult:
        name = participant.sheet_name
        event, failure = await self._fresh_event(date_str)
        if failure is not None:
            return failure

        slot = event.find_occupant(name)
        if slot is None:
            return BookingResult.NOT_BOOKED

        if not await self._write(event, slot, "", date_str, name):
            return BookingResult.WRITE_FAILED

        log.info("booking.released " + kv(date=date_str, name=name))
        return BookingResult.RELEASED
