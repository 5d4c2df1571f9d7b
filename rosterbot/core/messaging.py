# rosterbot/core/messaging.py
"""
Text + button composition for everything the bot sends.

Choices are transport-neutral: a list of (label, callback_data) pairs that the
adapter renders as one row of inline buttons.
"""

from __future__ import annotations

import html
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from rosterbot.core.actions import InboundAction, confirm_action_for, encode_callback
from rosterbot.core.clock import greeting_by_hour
from rosterbot.core.events import Event, Slot, SlotKind
from rosterbot.core.i18n import MESSAGES, fmt
from rosterbot.core.status_codec import AttendanceStatus

Choice = Tuple[str, str]

_DAY_KEY = {"today": "day_today", "tomorrow": "day_tomorrow"}


def day_label(relative_day: str) -> str:
    key = _DAY_KEY.get(relative_day)
    return MESSAGES[key] if key else relative_day


def status_label(status: AttendanceStatus) -> str:
    return MESSAGES["status_" + AttendanceStatus(status).value]


def hours_word(n: int) -> str:
    n = abs(n)
    if n % 10 == 1 and n % 100 != 11:
        return "час"
    if 2 <= n % 10 <= 4 and not 12 <= n % 100 <= 14:
        return "часа"
    return "часов"


def game_details(event: Event) -> str:
    return fmt(
        "game_details",
        date=html.escape(event.date),
        time=html.escape(event.time),
        place=html.escape(event.place),
    )


# ---- choices ---------------------------------------------------------------------
def three_choices(date_str: str) -> List[Choice]:
    return [
        (MESSAGES["btn_yes"], encode_callback(InboundAction.YES, date_str)),
        (MESSAGES["btn_no"], encode_callback(InboundAction.NO, date_str)),
        (MESSAGES["btn_maybe"], encode_callback(InboundAction.MAYBE, date_str)),
    ]


def confirm_choices(date_str: str, status: AttendanceStatus) -> List[Choice]:
    return [
        (MESSAGES["btn_yes"], encode_callback(confirm_action_for(status), date_str)),
        (MESSAGES["btn_no"], encode_callback(InboundAction.RECONSIDER_DECLINE, date_str)),
    ]


# ---- personal messages -----------------------------------------------------------
def invitation(event: Event, relative_day: str) -> Tuple[str, List[Choice]]:
    text = fmt("invite", when=day_label(relative_day), details=game_details(event))
    return text, three_choices(event.date)


def reminder(
    event: Event, relative_day: str, status: AttendanceStatus
) -> Tuple[str, List[Choice]]:
    text = fmt(
        "reminder",
        when=day_label(relative_day),
        details=game_details(event),
        status_text=status_label(status),
    )
    return text, confirm_choices(event.date, status)


def hours_until(event: Event, now_local: datetime) -> int:
    """Hours left before the start, rounded half up (0 once started or unparsable)."""
    start = event.starts_at(now_local.tzinfo)
    if start is None:
        return 0
    seconds = (start - now_local).total_seconds()
    if seconds <= 0:
        return 0
    return int(seconds / 3600 + 0.5)


def final_reminder(event: Event, now_local: datetime) -> str:
    hours = hours_until(event, now_local)
    if hours == 0:
        time_text = MESSAGES["final_now"]
    elif hours == 1:
        time_text = MESSAGES["final_one_hour"]
    else:
        time_text = fmt("final_hours", hours=hours, unit=hours_word(hours))
    return fmt("final", time_text=time_text, details=game_details(event))


def test_invitation(
    event: Event, relative_day: str, now_local: datetime
) -> Tuple[str, List[Choice]]:
    text = fmt(
        "test_invite",
        greeting=greeting_by_hour(now_local.hour),
        when_cap=day_label(relative_day).capitalize(),
        time=html.escape(event.time),
        place=html.escape(event.place),
    )
    return text, three_choices(event.date)


def reconsider_prompt(date_str: str) -> Tuple[str, List[Choice]]:
    return fmt("reconsider", date=html.escape(date_str)), three_choices(date_str)


def response_text(kind: str, status: AttendanceStatus) -> str:
    """kind: 'confirmed' | 'registered' | 'changed'."""
    return MESSAGES[f"{kind}_{AttendanceStatus(status).value}"]


# ---- group summary ---------------------------------------------------------------
def block_cancelled(slots: List[Slot]) -> bool:
    return bool(slots) and all(s.cancelled for s in slots)


def summary_blocks(event: Event) -> Tuple[List[Slot], List[Slot]]:
    """(with trainer, without trainer + extra) in column order."""
    trainer = event.slots_of(SlotKind.TRAINER)
    rest = event.slots_of(SlotKind.SELF_SERVE) + event.slots_of(SlotKind.EXTRA)
    return trainer, rest


def fully_cancelled(event: Event) -> bool:
    trainer, rest = summary_blocks(event)
    return block_cancelled(trainer) and block_cancelled(rest)


def _render_block(slots: List[Slot], labels: Dict[int, str], start: int = 1) -> str:
    if block_cancelled(slots):
        return MESSAGES["group_all_cancelled"]
    lines = []
    # numbering continues across blocks so it matches /book slot numbers
    for idx, slot in enumerate(slots, start=start):
        if slot.cancelled:
            body = MESSAGES["group_slot_cancelled"]
        elif slot.is_free:
            body = MESSAGES["group_slot_free"]
        else:
            body = labels.get(slot.column_index) or html.escape(slot.occupant)
        lines.append(f"{idx}. {body}")
    return "\n".join(lines)


def group_summary(
    event: Event,
    relative_day: str,
    labels: Dict[int, str],
    bot_username: str,
) -> str:
    """
    labels: column index -> already escaped "<emoji> <mention>" for occupied slots.
    """
    trainer, rest = summary_blocks(event)
    has_free = any(s.is_free for s in trainer + rest)
    availability = fmt(
        "group_has_free" if has_free else "group_all_busy",
        bot=html.escape(bot_username),
    )
    return fmt(
        "group_summary",
        when_cap=day_label(relative_day).capitalize(),
        time=html.escape(event.time),
        place=html.escape(event.place),
        trainer=_render_block(trainer, labels),
        self_serve=_render_block(rest, labels, start=len(trainer) + 1),
        availability=availability,
    )


def admin_reminder() -> str:
    return MESSAGES["admin_weekly"]


def free_slot_numbers(event: Event) -> List[int]:
    """1-based slot numbers (trainer block first) as used by /book."""
    trainer, rest = summary_blocks(event)
    return [i for i, s in enumerate(trainer + rest, start=1) if s.is_free]


def slot_by_number(event: Event, number: int) -> Optional[Slot]:
    trainer, rest = summary_blocks(event)
    ordered = trainer + rest
    if 1 <= number <= len(ordered):
        return ordered[number - 1]
    return None
