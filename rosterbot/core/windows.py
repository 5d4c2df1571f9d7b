# rosterbot/core/windows.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class NotificationWindow(str, Enum):
    PERSONAL_AFTERNOON = "personal_afternoon"
    PERSONAL_EVENING = "personal_evening"
    GROUP_EVENING = "group_evening"
    FINAL_REMINDER = "final_reminder"
    ADMIN_WEEKLY_REMINDER = "admin_weekly_reminder"


class Scope(str, Enum):
    PER_PARTICIPANT = "per_participant"
    BROADCAST = "broadcast"


TODAY = 0
TOMORROW = 1

RELATIVE_DAY = {TODAY: "today", TOMORROW: "tomorrow"}


@dataclass(frozen=True)
class WindowSpec:
    window: NotificationWindow
    hour: int
    scope: Scope
    requires_not_started: bool
    day_offsets: Tuple[int, ...] = (TODAY,)
    weekday: Optional[int] = None  # only fire on this weekday (Monday=0)

    def is_due(self, now_local) -> bool:
        if now_local.hour != self.hour:
            return False
        return self.weekday is None or now_local.weekday() == self.weekday

    @property
    def is_broadcast(self) -> bool:
        return self.scope is Scope.BROADCAST


# window -> (scope, requires_not_started, day offsets)
_SHAPE: Dict[NotificationWindow, Tuple[Scope, bool, Tuple[int, ...]]] = {
    NotificationWindow.PERSONAL_AFTERNOON: (Scope.PER_PARTICIPANT, True, (TODAY, TOMORROW)),
    NotificationWindow.PERSONAL_EVENING: (Scope.PER_PARTICIPANT, True, (TODAY, TOMORROW)),
    NotificationWindow.GROUP_EVENING: (Scope.BROADCAST, True, (TOMORROW,)),
    NotificationWindow.FINAL_REMINDER: (Scope.PER_PARTICIPANT, True, (TODAY,)),
    NotificationWindow.ADMIN_WEEKLY_REMINDER: (Scope.BROADCAST, False, ()),
}


def build_windows(cfg: Any) -> List[WindowSpec]:
    """Window specs from cfg.WINDOW_HOURS; windows without an hour are disabled."""
    hours: Dict[str, Any] = getattr(cfg, "WINDOW_HOURS", {}) or {}
    specs: List[WindowSpec] = []
    for window, (scope, not_started, offsets) in _SHAPE.items():
        hour = hours.get(window.value)
        if hour is None:
            continue
        weekday = None
        if window is NotificationWindow.ADMIN_WEEKLY_REMINDER:
            weekday = int(getattr(cfg, "ADMIN_REMINDER_WEEKDAY", 4))
        specs.append(
            WindowSpec(
                window=window,
                hour=int(hour),
                scope=scope,
                requires_not_started=not_started,
                day_offsets=offsets,
                weekday=weekday,
            )
        )
    return specs
