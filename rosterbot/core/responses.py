# rosterbot/core/responses.py
"""
Handles a tap on an attendance button.

Read-before-write: the current status is re-read from the sheet, and a tap that
repeats it (or an explicit "confirm" button) is a confirmation, which writes
nothing. Only a real change touches the sheet.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from rosterbot.core import messaging
from rosterbot.core.actions import InboundAction, parse_callback
from rosterbot.core.attendance import AttendanceBook
from rosterbot.core.errors import StoreError
from rosterbot.core.i18n import MESSAGES
from rosterbot.core.logging_utils import kv
from rosterbot.core.participants import ParticipantDirectory
from rosterbot.core.status_codec import AttendanceStatus

log = logging.getLogger("rosterbot.responses")


@dataclass
class ResponseOutcome:
    """What the transport should do after a tap."""

    cb_text: str  # callback toast
    show_alert: bool = False
    append_text: Optional[str] = None  # appended to the tapped message
    prompt_text: Optional[str] = None  # new message with buttons
    prompt_choices: Optional[List[messaging.Choice]] = None
    wrote: bool = False
    status: Optional[AttendanceStatus] = None


def _alert(key: str) -> ResponseOutcome:
    return ResponseOutcome(cb_text=MESSAGES[key], show_alert=True)


class ResponseHandler:
    def __init__(
        self,
        directory: ParticipantDirectory,
        attendance: AttendanceBook,
        audit: Any | None = None,
    ) -> None:
        self.directory = directory
        self.attendance = attendance
        self.audit = audit

    async def handle(self, user_id: int, data: Optional[str]) -> ResponseOutcome:
        cb = parse_callback(data)
        if cb is None:
            log.info("response.reject " + kv(user_id=user_id, data=data))
            return _alert("cb_invalid")

        if cb.action is InboundAction.RECONSIDER_DECLINE:
            text, choices = messaging.reconsider_prompt(cb.date)
            log.info("response.reconsider " + kv(user_id=user_id, date=cb.date))
            return ResponseOutcome(
                cb_text=MESSAGES["cb_reconsider"],
                prompt_text=text,
                prompt_choices=choices,
            )

        participant = self.directory.find_by_id(user_id)
        if participant is None:
            return _alert("cb_not_registered")
        if not participant.sheet_name:
            return _alert("cb_no_sheet_name")

        value = cb.action.status
        name = participant.sheet_name
        try:
            previous = await self.attendance.read_status(cb.date, name)
        except StoreError as e:
            log.error("response.read.fail " + kv(user_id=user_id, date=cb.date, err=str(e)))
            return _alert("cb_write_failed")

        is_confirmation = cb.action.is_explicit_confirmation or value == previous
        log.info(
            "response.in "
            + kv(
                user_id=user_id,
                date=cb.date,
                action=cb.action.value,
                previous=previous.value,
                confirmation=is_confirmation,
            )
        )

        if is_confirmation:
            self._audit(participant, cb.date, "confirm", value, previous)
            return ResponseOutcome(
                cb_text=MESSAGES["cb_accepted"],
                append_text=messaging.response_text("confirmed", value),
                status=value,
            )

        try:
            await self.attendance.write_status(cb.date, name, value)
        except StoreError as e:
            log.error(
                "response.write.fail "
                + kv(user_id=user_id, date=cb.date, name=name, err=str(e))
            )
            return _alert("cb_write_failed")

        kind = "registered" if previous is AttendanceStatus.UNKNOWN else "changed"
        self._audit(participant, cb.date, kind, value, previous)
        return ResponseOutcome(
            cb_text=MESSAGES["cb_accepted"],
            append_text=messaging.response_text(kind, value),
            wrote=True,
            status=value,
        )

    def _audit(self, participant, date_str, kind, value, previous) -> None:
        if self.audit is None:
            return
        self.audit.record(
            kind="response_" + kind,
            telegram_id=participant.telegram_id,
            name=participant.sheet_name,
            date=date_str,
            status=value.value,
            previous=previous.value,
        )
