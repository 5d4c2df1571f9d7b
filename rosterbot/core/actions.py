# rosterbot/core/actions.py
"""
Inline-button payloads: "attendance:<action>:<dd.mm.yyyy>".

Decoded once here into a closed set of actions; the rest of the code never
looks at raw callback strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from rosterbot.core.clock import parse_date
from rosterbot.core.status_codec import AttendanceStatus

PREFIX = "attendance"


class InboundAction(str, Enum):
    YES = "yes"
    NO = "no"
    MAYBE = "maybe"
    CONFIRM_YES = "confirm_yes"
    CONFIRM_NO = "confirm_no"
    CONFIRM_MAYBE = "confirm_maybe"
    RECONSIDER_DECLINE = "no_reask"

    @property
    def is_explicit_confirmation(self) -> bool:
        return self.value.startswith("confirm_")

    @property
    def status(self) -> Optional[AttendanceStatus]:
        """Status the tap stands for; None for RECONSIDER_DECLINE."""
        if self is InboundAction.RECONSIDER_DECLINE:
            return None
        return AttendanceStatus(self.value.removeprefix("confirm_"))


_CONFIRM_OF = {
    AttendanceStatus.YES: InboundAction.CONFIRM_YES,
    AttendanceStatus.NO: InboundAction.CONFIRM_NO,
    AttendanceStatus.MAYBE: InboundAction.CONFIRM_MAYBE,
}


def confirm_action_for(status: AttendanceStatus) -> InboundAction:
    """Action for "keep my current answer"; UNKNOWN falls back to a plain YES."""
    return _CONFIRM_OF.get(status, InboundAction.YES)


@dataclass(frozen=True)
class AttendanceCallback:
    action: InboundAction
    date: str

    def encode(self) -> str:
        return encode_callback(self.action, self.date)


def encode_callback(action: InboundAction, date_str: str) -> str:
    return f"{PREFIX}:{action.value}:{date_str}"


def parse_callback(data: Optional[str]) -> Optional[AttendanceCallback]:
    """None for anything that is not a well-formed attendance payload."""
    parts = (data or "").split(":")
    if len(parts) != 3 or parts[0] != PREFIX:
        return None
    _, raw_action, date_str = parts
    try:
        action = InboundAction(raw_action)
    except ValueError:
        return None
    if parse_date(date_str) is None:
        return None
    return AttendanceCallback(action=action, date=date_str)
