"""
Runtime configuration for RosterBot.
All schedule decisions are made in the configured fixed timezone (TIMEZONE).
Values come from the environment; a local .env file is honoured.
"""

from __future__ import annotations

import os
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()


def _env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _env_int_list(key: str) -> list[int]:
    raw = os.getenv(key, "")
    return [int(x) for x in raw.replace(";", ",").split(",") if x.strip()]


def _env_optional_int(key: str) -> int | None:
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return None
    return int(raw)


# --------------------------------------------------------------------------------------
# Telegram
# --------------------------------------------------------------------------------------
# IMPORTANT: no hardcoded token in repo; provide via env
BOT_TOKEN: str | None = os.getenv("TELEGRAM_BOT_TOKEN")
BOT_USERNAME: str = os.getenv("TELEGRAM_BOT_USERNAME", "rosterbot")

# Broadcast targets
GENERAL_CHAT_ID: int | None = _env_optional_int("GENERAL_CHAT_ID")
ADMIN_IDS: list[int] = _env_int_list("ADMIN_TELEGRAM_IDS")

# --------------------------------------------------------------------------------------
# Google Sheets (service account)
# --------------------------------------------------------------------------------------
SPREADSHEET_ID: str = os.getenv("GOOGLE_SHEET_ID", "")
CREDENTIALS_PATH: str = os.getenv("GOOGLE_CREDENTIALS_PATH", "./credentials.json")
SHEET_NAME: str = os.getenv("DEFAULT_SHEET_NAME", "Лист1")
SHEET_RANGE = "A1:Z100"  # wide enough to cover every game row
SHEET_CACHE_TTL_S = _env_int("SHEET_CACHE_TTL", 300)

# --------------------------------------------------------------------------------------
# Time & scheduler
# --------------------------------------------------------------------------------------
TIMEZONE = os.getenv("TIMEZONE", "Asia/Yekaterinburg")
TZ = ZoneInfo(TIMEZONE)

CHECK_INTERVAL_S = _env_int("NOTIFICATION_CHECK_INTERVAL", 900)  # 15 min
STOP_GRACE_S = 5

# Trigger hours (local, 0..23) per notification window
WINDOW_HOURS: dict[str, int] = {
    "personal_afternoon": _env_int("PERSONAL_AFTERNOON_HOUR", 13),
    "personal_evening": _env_int("PERSONAL_EVENING_HOUR", 18),
    "group_evening": _env_int("GROUP_EVENING_HOUR", 19),
    "final_reminder": _env_int("FINAL_REMINDER_HOUR", 20),
    "admin_weekly_reminder": _env_int("ADMIN_REMINDER_HOUR", 12),
}
ADMIN_REMINDER_WEEKDAY = _env_int("ADMIN_REMINDER_WEEKDAY", 4)  # Monday=0 .. Friday=4

# Random pause between two personal messages of one dispatch (seconds)
PACING_DELAY_S: tuple[float, float] = (0.8, 2.5)

# --------------------------------------------------------------------------------------
# Sheet layout
# --------------------------------------------------------------------------------------
DEFAULT_EVENT_TIME: str = os.getenv("TENNIS_DEFAULT_TIME", "22:00")
DEFAULT_EVENT_PLACE = "обычное место"

# 0 = date, 1 = time, 2 = place
TRAINER_COLUMNS = (3, 4, 5, 6)
SELF_SERVE_COLUMNS = (7, 8, 9, 10)
EXTRA_FROM_COLUMN = 11

CANCELLED_LABELS: list[str] = [
    "отмена",
    "отменен",
    "отменён",
    "отменено",
    "отменить",
    "canceled",
    "cancelled",
    "cancel",
]
# Administrative placeholders; never treated as a participant
IGNORED_LABELS: list[str] = CANCELLED_LABELS + [
    "резерв",
    "reserve",
    "backup",
    "один корт",
    "два корта",
    "три корта",
    "четыре корта",
    "пять кортов",
    "шесть кортов",
    "грунт",
    "хард",
]
# Extra-block cells containing any of these are notes, not people
NOTE_MARKERS: list[str] = ["забронен", "корт", "примечание"]

# --------------------------------------------------------------------------------------
# Status colors (text color of the occupant cell, channels 0..1)
# --------------------------------------------------------------------------------------
COLOR_THRESHOLDS: dict[str, float] = {
    "high": 0.8,  # a channel counts as "on"
    "low": 0.3,  # a channel counts as "off"
    "green_floor": 0.35,  # minimal green for the "yes" bucket
    "blank": 0.1,  # all channels below => default (black) text
}

# --------------------------------------------------------------------------------------
# Participants & logging
# --------------------------------------------------------------------------------------
PARTICIPANTS_FILE: str = os.getenv("PARTICIPANTS_FILE", "data/participants.yaml")

LOG_FILE = "logs/rosterbot.log"
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
AUDIT_CSV_FILE = "logs/attendance.csv"


def get_bot_token() -> str:
    token = BOT_TOKEN or os.getenv("TELEGRAM_BOT_TOKEN")
    if not token:
        raise RuntimeError(
            "Bot token is not set. Set env var TELEGRAM_BOT_TOKEN or override BOT_TOKEN in config.py."
        )
    return token
