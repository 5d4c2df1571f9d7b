# rosterbot/tests/fakes.py
from __future__ import annotations

from datetime import datetime, timedelta
from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo

from rosterbot.core.clock import Clock
from rosterbot.core.errors import StoreError
from rosterbot.core.status_codec import ColorSample

TZ = ZoneInfo("Asia/Yekaterinburg")


def make_cfg(**overrides: Any) -> SimpleNamespace:
    """Explicit test config: independent from the environment and .env files."""
    values = dict(
        BOT_USERNAME="tennis_test_bot",
        GENERAL_CHAT_ID=-100,
        ADMIN_IDS=[900],
        SPREADSHEET_ID="sheet-id",
        TIMEZONE="Asia/Yekaterinburg",
        TZ=TZ,
        CHECK_INTERVAL_S=900,
        STOP_GRACE_S=1,
        WINDOW_HOURS={
            "personal_afternoon": 13,
            "personal_evening": 18,
            "group_evening": 19,
            "final_reminder": 20,
            "admin_weekly_reminder": 12,
        },
        ADMIN_REMINDER_WEEKDAY=4,
        PACING_DELAY_S=(0.8, 2.5),
        DEFAULT_EVENT_TIME="22:00",
        DEFAULT_EVENT_PLACE="обычное место",
        TRAINER_COLUMNS=(3, 4, 5, 6),
        SELF_SERVE_COLUMNS=(7, 8, 9, 10),
        EXTRA_FROM_COLUMN=11,
        CANCELLED_LABELS=["отмена", "отменен", "cancelled"],
        IGNORED_LABELS=["резерв", "один корт"],
        NOTE_MARKERS=["забронен", "корт", "примечание"],
        COLOR_THRESHOLDS={"high": 0.8, "low": 0.3, "green_floor": 0.35, "blank": 0.1},
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def sample_rows() -> List[List[str]]:
    """Header, then Monday 01.05.2023 (today in tests) and Tuesday 02.05.2023."""
    return [
        ["Дата", "Время", "Место", "Тренер 1", "Тренер 2", "Тренер 3", "Тренер 4",
         "Сам 1", "Сам 2", "Сам 3", "Сам 4"],
        ["01.05.2023", "22:00", "Корт 1", "Alice", "", "", "Bob", "", "", "", ""],
        ["02.05.2023", "", "", "Carol", "резерв", "", "", "Dave", "", "", ""],
    ]


class FakeStore:
    """In-memory grid + per-cell text colors with the store's async API."""

    def __init__(
        self,
        rows: List[List[str]],
        colors: Optional[Dict[Tuple[int, int], ColorSample]] = None,
    ) -> None:
        self.rows = [list(r) for r in rows]
        self.colors: Dict[Tuple[int, int], ColorSample] = dict(colors or {})
        self.color_writes: List[Tuple[int, int, Optional[ColorSample]]] = []
        self.value_writes: List[Tuple[int, int, str]] = []
        self.row_reads = 0
        self.invalidations = 0
        self.fail_reads = False
        self.fail_color_reads = False
        self.fail_writes = False
        self.fail_color_writes = False

    async def get_rows(self) -> List[List[str]]:
        if self.fail_reads:
            raise StoreError("sheet unreachable")
        self.row_reads += 1
        return [list(r) for r in self.rows]

    def invalidate_cache(self) -> None:
        self.invalidations += 1

    async def get_cell_color(self, row: int, col: int) -> Optional[ColorSample]:
        if self.fail_color_reads:
            raise StoreError("sheet unreachable")
        return self.colors.get((row, col))

    async def set_cell_color(self, row: int, col: int, color: Optional[ColorSample]) -> None:
        if self.fail_writes or self.fail_color_writes:
            raise StoreError("write refused")
        self.color_writes.append((row, col, color))
        if color is None:
            self.colors.pop((row, col), None)
        else:
            self.colors[(row, col)] = color

    async def set_cell_value(self, row: int, col: int, text: str) -> None:
        if self.fail_writes:
            raise StoreError("write refused")
        line = self.rows[row]
        if len(line) <= col:
            line.extend([""] * (col + 1 - len(line)))
        line[col] = text
        self.value_writes.append((row, col, text))


class FakeAdapter:
    def __init__(self, fail_for: Tuple[int, ...] = ()) -> None:
        self.sent: List[tuple] = []  # ("direct"|"group", chat_id, text, choices)
        self.fail_for = set(fail_for)
        self._next_id = 100

    async def send_direct(self, chat_id, text, choices=None):
        if chat_id in self.fail_for:
            raise RuntimeError("Forbidden: bot was blocked by the user")
        self.sent.append(("direct", chat_id, text, choices))
        self._next_id += 1
        return self._next_id

    async def send_group_message(self, chat_id, text):
        self.sent.append(("group", chat_id, text, None))
        self._next_id += 1
        return self._next_id

    def direct_to(self, chat_id) -> List[tuple]:
        return [s for s in self.sent if s[0] == "direct" and s[1] == chat_id]


class FixedClock(Clock):
    """Clock frozen at a local wall time; advance() moves it forward."""

    def __init__(self, tz: ZoneInfo, *args: int) -> None:
        super().__init__(tz)
        self._now = datetime(*args, tzinfo=tz)

    def now(self) -> datetime:
        return self._now

    def set(self, *args: int) -> None:
        self._now = datetime(*args, tzinfo=self.tz)

    def advance(self, **delta: float) -> None:
        self._now = self._now + timedelta(**delta)


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
