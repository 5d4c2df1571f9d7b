# rosterbot/core/config_validation.py
from __future__ import annotations

import re
from typing import Any

from rosterbot.core.errors import ConfigError
from rosterbot.core.windows import NotificationWindow

_TIME_RE = re.compile(r"^\d{1,2}:\d{2}$")


def _is_valid_hhmm(s: Any) -> bool:
    if not isinstance(s, str) or not _TIME_RE.match(s):
        return False
    hh, mm = (int(x) for x in s.split(":", 1))
    return 0 <= hh <= 23 and 0 <= mm <= 59


def _is_int(x: Any) -> bool:
    return isinstance(x, int) and not isinstance(x, bool)


def validate_config(cfg: Any) -> None:
    """Validate runtime configuration before starting the bot (ConfigError is a ValueError)."""
    if not str(getattr(cfg, "SPREADSHEET_ID", "") or "").strip():
        raise ConfigError("SPREADSHEET_ID must be set (env GOOGLE_SHEET_ID)")

    # Windows
    hours = getattr(cfg, "WINDOW_HOURS", None)
    if not isinstance(hours, dict) or not hours:
        raise ConfigError("WINDOW_HOURS must be a non-empty dict")
    known = {w.value for w in NotificationWindow}
    for name, hour in hours.items():
        if name not in known:
            raise ConfigError(f"WINDOW_HOURS: unknown window '{name}'")
        if hour is not None and (not _is_int(hour) or not 0 <= hour <= 23):
            raise ConfigError(f"WINDOW_HOURS: hour for '{name}' must be 0..23, got {hour!r}")

    weekday = getattr(cfg, "ADMIN_REMINDER_WEEKDAY", 4)
    if not _is_int(weekday) or not 0 <= weekday <= 6:
        raise ConfigError("ADMIN_REMINDER_WEEKDAY must be 0 (Monday) .. 6 (Sunday)")

    interval = getattr(cfg, "CHECK_INTERVAL_S", None)
    if not isinstance(interval, (int, float)) or interval <= 0:
        raise ConfigError("CHECK_INTERVAL_S must be a positive number")
    grace = getattr(cfg, "STOP_GRACE_S", 0)
    if not isinstance(grace, (int, float)) or grace < 0:
        raise ConfigError("STOP_GRACE_S must be >= 0")

    pacing = getattr(cfg, "PACING_DELAY_S", None)
    if (
        not isinstance(pacing, (tuple, list))
        or len(pacing) != 2
        or not 0 <= pacing[0] <= pacing[1]
    ):
        raise ConfigError("PACING_DELAY_S must be (low, high) with 0 <= low <= high")

    # Sheet layout
    trainer = list(getattr(cfg, "TRAINER_COLUMNS", ()))
    self_serve = list(getattr(cfg, "SELF_SERVE_COLUMNS", ()))
    extra_from = getattr(cfg, "EXTRA_FROM_COLUMN", None)
    cols = trainer + self_serve
    if not cols or not all(_is_int(c) and c >= 3 for c in cols):
        raise ConfigError("slot columns must be integers >= 3 (0..2 are date, time, place)")
    if len(set(cols)) != len(cols):
        raise ConfigError("TRAINER_COLUMNS and SELF_SERVE_COLUMNS must not overlap")
    if not _is_int(extra_from) or extra_from <= max(cols):
        raise ConfigError("EXTRA_FROM_COLUMN must come after every slot column")

    if not _is_valid_hhmm(getattr(cfg, "DEFAULT_EVENT_TIME", None)):
        raise ConfigError("DEFAULT_EVENT_TIME must be HH:MM")

    # Codec
    t = getattr(cfg, "COLOR_THRESHOLDS", None)
    if not isinstance(t, dict):
        raise ConfigError("COLOR_THRESHOLDS must be a dict")
    for key in ("high", "low", "green_floor", "blank"):
        v = t.get(key)
        if not isinstance(v, (int, float)) or not 0 <= v <= 1:
            raise ConfigError(f"COLOR_THRESHOLDS['{key}'] must be within 0..1")
    if not t["low"] < t["high"]:
        raise ConfigError("COLOR_THRESHOLDS: 'low' must be below 'high'")

    admins = getattr(cfg, "ADMIN_IDS", [])
    if not isinstance(admins, list) or not all(_is_int(x) for x in admins):
        raise ConfigError("ADMIN_IDS must be a list of Telegram ids")
