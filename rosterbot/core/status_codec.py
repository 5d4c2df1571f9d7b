# rosterbot/core/status_codec.py
"""
Attendance status <-> cell text color.

The sheet has no status column: a participant's answer is the text color of the
cell holding their name. This module is the only place that knows the palette;
everything else works with AttendanceStatus.

Google returns colors as floats per channel and omits zero channels entirely,
so decoding classifies by thresholds instead of comparing values.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from rosterbot.core.logging_utils import kv

log = logging.getLogger("rosterbot.codec")


class AttendanceStatus(str, Enum):
    UNKNOWN = "unknown"
    YES = "yes"
    NO = "no"
    MAYBE = "maybe"

    @property
    def is_known(self) -> bool:
        return self is not AttendanceStatus.UNKNOWN


class ColorBucket(str, Enum):
    NONE = "none"  # no formatting / default black text
    GREEN = "green"
    RED = "red"
    YELLOW = "yellow"
    OTHER = "other"  # some color outside the palette


@dataclass(frozen=True)
class ColorSample:
    red: float = 0.0
    green: float = 0.0
    blue: float = 0.0

    @classmethod
    def from_api(cls, payload: Optional[Mapping[str, Any]]) -> Optional["ColorSample"]:
        """Build from a Sheets API color dict ({'red': 1} etc.); empty -> None."""
        if not payload:
            return None
        return cls(
            red=float(payload.get("red", 0.0) or 0.0),
            green=float(payload.get("green", 0.0) or 0.0),
            blue=float(payload.get("blue", 0.0) or 0.0),
        )

    def to_api(self) -> dict[str, float]:
        return {"red": self.red, "green": self.green, "blue": self.blue}


PALETTE: dict[AttendanceStatus, ColorSample] = {
    AttendanceStatus.YES: ColorSample(0.0, 0.5, 0.0),
    AttendanceStatus.NO: ColorSample(1.0, 0.0, 0.0),
    AttendanceStatus.MAYBE: ColorSample(1.0, 0.5, 0.0),
}

_BUCKET_STATUS = {
    ColorBucket.GREEN: AttendanceStatus.YES,
    ColorBucket.RED: AttendanceStatus.NO,
    ColorBucket.YELLOW: AttendanceStatus.MAYBE,
}

STATUS_EMOJI = {
    AttendanceStatus.YES: "✅",
    AttendanceStatus.NO: "❌",
    AttendanceStatus.MAYBE: "🤔",
    AttendanceStatus.UNKNOWN: "⚪",
}

DEFAULT_THRESHOLDS = {"high": 0.8, "low": 0.3, "green_floor": 0.35, "blank": 0.1}


class StatusCodec:
    def __init__(self, thresholds: Optional[Mapping[str, float]] = None) -> None:
        t = dict(DEFAULT_THRESHOLDS)
        t.update(thresholds or {})
        self.high = t["high"]
        self.low = t["low"]
        self.green_floor = t["green_floor"]
        self.blank = t["blank"]

    def classify(self, color: Optional[ColorSample]) -> ColorBucket:
        if color is None:
            return ColorBucket.NONE
        r, g, b = color.red, color.green, color.blue
        if max(r, g, b) < self.blank:
            return ColorBucket.NONE
        if b < self.low:
            if r >= self.high and g < self.low:
                return ColorBucket.RED
            if r >= self.high and g >= self.low:
                return ColorBucket.YELLOW
            if r < self.low and g >= self.green_floor:
                return ColorBucket.GREEN
        return ColorBucket.OTHER

    def decode(self, color: Optional[ColorSample]) -> AttendanceStatus:
        bucket = self.classify(color)
        if bucket is ColorBucket.OTHER:
            log.info("codec.color.unrecognized " + kv(color=color))
        return _BUCKET_STATUS.get(bucket, AttendanceStatus.UNKNOWN)

    def palette_for(self, status: AttendanceStatus) -> Optional[ColorSample]:
        """Color to write for a status; UNKNOWN clears the annotation (None)."""
        return PALETTE.get(AttendanceStatus(status))


default_codec = StatusCodec()


def decode(color: Optional[ColorSample]) -> AttendanceStatus:
    return default_codec.decode(color)


def palette_for(status: AttendanceStatus) -> Optional[ColorSample]:
    return default_codec.palette_for(status)


def parse_status(value: str) -> Optional[AttendanceStatus]:
    """'yes' / ' NO ' -> status; 'clear' -> UNKNOWN; anything else -> None."""
    low = (value or "").strip().lower()
    if low == "clear":
        return AttendanceStatus.UNKNOWN
    try:
        return AttendanceStatus(low)
    except ValueError:
        return None


__all__ = [
    "AttendanceStatus",
    "ColorBucket",
    "ColorSample",
    "PALETTE",
    "STATUS_EMOJI",
    "StatusCodec",
    "decode",
    "palette_for",
    "parse_status",
]
