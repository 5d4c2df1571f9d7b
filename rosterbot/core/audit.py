# rosterbot/core/audit.py
from __future__ import annotations

import csv
import logging
import os
from datetime import datetime
from typing import Any, Optional

from rosterbot.core.logging_utils import kv

log = logging.getLogger("rosterbot.audit")

HEADER = [
    "date_time_local",
    "kind",
    "telegram_id",
    "name",
    "game_date",
    "window",
    "status",
    "previous",
    "detail",
]


class AuditLog:
    """
    Append-only CSV trail of notifications sent and answers handled.
    One row per fact, ';'-separated, header written when the file is created.
    """

    def __init__(self, path: str, tz: Any, datetime_fmt: str = "%Y-%m-%d %H:%M:%S") -> None:
        self.path = path
        self.tz = tz
        self.datetime_fmt = datetime_fmt

    def _now(self) -> str:
        return datetime.now(self.tz).strftime(self.datetime_fmt)

    def record(
        self,
        *,
        kind: str,
        telegram_id: int,
        name: Optional[str] = None,
        date: Optional[str] = None,
        window: Optional[str] = None,
        status: Optional[str] = None,
        previous: Optional[str] = None,
        detail: Optional[str] = None,
    ) -> None:
        folder = os.path.dirname(self.path)
        if folder:
            os.makedirs(folder, exist_ok=True)
        new_file = not os.path.exists(self.path)
        try:
            with open(self.path, "a", newline="", encoding="utf-8") as f:
                w = csv.writer(f, delimiter=";")
                if new_file:
                    w.writerow(HEADER)
                w.writerow(
                    [
                        self._now(),
                        kind,
                        telegram_id,
                        name or "",
                        date or "",
                        window or "",
                        status or "",
                        previous or "",
                        (detail or "").replace("\n", " ").strip(),
                    ]
                )
        except OSError as e:
            log.error("audit.append.fail " + kv(path=self.path, err=str(e)))
