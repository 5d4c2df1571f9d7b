# rosterbot/core/events.py
"""
Turns raw sheet rows into games (Event) with their seats (Slot).

Row layout (0-based columns, configurable via SheetLayout):
  0 date "dd.mm.yyyy" | 1 time | 2 place | 3..6 with trainer | 7..10 without trainer | 11.. extra

Events are never stored: every caller re-extracts from the (cached) grid.
Labels are free text typed by people, so comparisons are made on a normalized
form (trimmed, inner whitespace collapsed, lower-cased).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, List, Optional, Sequence

from rosterbot.core.clock import event_start, parse_date, parse_event_hour
from rosterbot.core.logging_utils import kv

log = logging.getLogger("rosterbot.events")

_DATE_RE = re.compile(r"^\d{2}\.\d{2}\.\d{4}$")


class SlotKind(str, Enum):
    TRAINER = "trainer"
    SELF_SERVE = "self_serve"
    EXTRA = "extra"


def normalize_label(value: Any) -> str:
    return " ".join(str(value or "").split()).lower()


@dataclass(frozen=True)
class SheetLayout:
    trainer_columns: Sequence[int] = (3, 4, 5, 6)
    self_serve_columns: Sequence[int] = (7, 8, 9, 10)
    extra_from_column: int = 11
    cancelled_labels: frozenset[str] = frozenset()
    ignored_labels: frozenset[str] = frozenset()
    note_markers: Sequence[str] = ()
    default_time: str = "22:00"
    default_place: str = "обычное место"

    @classmethod
    def from_config(cls, cfg: Any) -> "SheetLayout":
        cancelled = frozenset(normalize_label(x) for x in cfg.CANCELLED_LABELS)
        return cls(
            trainer_columns=tuple(cfg.TRAINER_COLUMNS),
            self_serve_columns=tuple(cfg.SELF_SERVE_COLUMNS),
            extra_from_column=int(cfg.EXTRA_FROM_COLUMN),
            cancelled_labels=cancelled,
            # cancelled labels are always administrative as well
            ignored_labels=cancelled
            | frozenset(normalize_label(x) for x in cfg.IGNORED_LABELS),
            note_markers=tuple(normalize_label(x) for x in cfg.NOTE_MARKERS),
            default_time=cfg.DEFAULT_EVENT_TIME,
            default_place=cfg.DEFAULT_EVENT_PLACE,
        )

    def is_cancelled(self, label: Any) -> bool:
        return normalize_label(label) in self.cancelled_labels

    def is_ignored(self, label: Any) -> bool:
        return normalize_label(label) in self.ignored_labels

    def is_note(self, label: Any) -> bool:
        low = normalize_label(label)
        return any(marker in low for marker in self.note_markers)


@dataclass(frozen=True)
class Slot:
    column_index: int
    occupant: str  # trimmed cell text, "" when empty
    kind: SlotKind
    cancelled: bool = False
    administrative: bool = False  # ignored label (placeholder or cancellation)

    @property
    def is_empty(self) -> bool:
        return self.occupant == ""

    @property
    def is_occupied(self) -> bool:
        return not self.is_empty and not self.administrative

    @property
    def is_free(self) -> bool:
        """Bookable: empty, or holding a non-cancelling placeholder."""
        return self.is_empty or (self.administrative and not self.cancelled)


@dataclass
class Event:
    date: str
    time: str
    place: str
    row_index: int
    slots: List[Slot] = field(default_factory=list)

    @property
    def start_hour(self) -> Optional[int]:
        return parse_event_hour(self.time)

    def has_started(self, now_local: datetime) -> bool:
        """True once the local hour reached the start hour on the event's own day."""
        hour = self.start_hour
        day = parse_date(self.date)
        if hour is None or day is None:
            return False
        if now_local.date() != day:
            return now_local.date() > day
        return now_local.hour >= hour

    def starts_at(self, tz) -> Optional[datetime]:
        return event_start(self.date, self.time, tz)

    def occupied_slots(self) -> List[Slot]:
        return [s for s in self.slots if s.is_occupied]

    def slots_of(self, kind: SlotKind) -> List[Slot]:
        return [s for s in self.slots if s.kind is kind]

    def find_occupant(self, name: str) -> Optional[Slot]:
        target = normalize_label(name)
        if not target:
            return None
        for s in self.slots:
            if s.is_occupied and normalize_label(s.occupant) == target:
                return s
        return None


def _cell(row: Sequence[Any], idx: int) -> str:
    if idx >= len(row) or row[idx] is None:
        return ""
    return str(row[idx]).strip()


def _make_slot(row: Sequence[Any], col: int, kind: SlotKind, layout: SheetLayout) -> Slot:
    text = _cell(row, col)
    return Slot(
        column_index=col,
        occupant=text,
        kind=kind,
        cancelled=layout.is_cancelled(text),
        administrative=layout.is_ignored(text),
    )


def build_event(row: Sequence[Any], row_index: int, layout: SheetLayout) -> Event:
    slots: List[Slot] = []
    for col in layout.trainer_columns:
        slots.append(_make_slot(row, col, SlotKind.TRAINER, layout))
    for col in layout.self_serve_columns:
        slots.append(_make_slot(row, col, SlotKind.SELF_SERVE, layout))
    for col in range(layout.extra_from_column, len(row)):
        slot = _make_slot(row, col, SlotKind.EXTRA, layout)
        if slot.is_occupied and not layout.is_note(slot.occupant):
            slots.append(slot)

    return Event(
        date=_cell(row, 0),
        time=_cell(row, 1) or layout.default_time,
        place=_cell(row, 2) or layout.default_place,
        row_index=row_index,
        slots=slots,
    )


def is_event_row(row: Sequence[Any]) -> bool:
    first = _cell(row, 0) if row else ""
    return bool(_DATE_RE.match(first)) and parse_date(first) is not None


def extract_events(
    rows: Iterable[Sequence[Any]],
    dates: Optional[Iterable[str]] = None,
    *,
    layout: SheetLayout,
) -> List[Event]:
    """
    Scan all rows; keep dated rows (optionally only the given dates).
    At most one Event per date: the first row wins, later duplicates are skipped.
    """
    wanted = {d.strip() for d in dates} if dates is not None else None
    seen: set[str] = set()
    events: List[Event] = []

    for idx, row in enumerate(rows):
        if not row or not is_event_row(row):
            continue
        date_str = _cell(row, 0)
        if wanted is not None and date_str not in wanted:
            continue
        if date_str in seen:
            log.warning("events.row.duplicate_date " + kv(date=date_str, row=idx + 1))
            continue
        seen.add(date_str)
        events.append(build_event(row, idx, layout))

    return events


class EventSource:
    """Reads events for a date from the store (through its cache)."""

    def __init__(self, store: Any, layout: SheetLayout) -> None:
        self.store = store
        self.layout = layout

    async def events_for(self, *date_strs: str) -> List[Event]:
        rows = await self.store.get_rows()
        return extract_events(rows, date_strs, layout=self.layout)

    async def event_on(self, date_str: str, *, fresh: bool = False) -> Optional[Event]:
        if fresh:
            self.store.invalidate_cache()
        events = await self.events_for(date_str)
        return events[0] if events else None


__all__ = [
    "Event",
    "EventSource",
    "SheetLayout",
    "Slot",
    "SlotKind",
    "build_event",
    "extract_events",
    "is_event_row",
    "normalize_label",
]
