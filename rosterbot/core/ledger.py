# rosterbot/core/ledger.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict

HORIZON = timedelta(hours=24)


@dataclass(frozen=True)
class SentKey:
    """Identity of one delivery: window (or kind), game date, and scope."""

    window: str
    event_date: str  # dd.mm.yyyy
    disambiguator: str = ""  # "" for broadcast windows

    def __str__(self) -> str:
        return f"{self.window}:{self.event_date}:{self.disambiguator}"


class SentLedger:
    """
    In-memory record of what has already been sent, expiring after 24h.
    Owned by the scheduler task only; nothing is persisted, so a restart re-arms
    every window for the current day.
    """

    def __init__(self, horizon: timedelta = HORIZON) -> None:
        self.horizon = horizon
        self._sent: Dict[SentKey, datetime] = {}

    def is_sent(self, key: SentKey) -> bool:
        return key in self._sent

    def mark_sent(self, key: SentKey, now: datetime) -> None:
        self._sent[key] = now

    def cleanup(self, now: datetime) -> int:
        """Drop entries older than the horizon; returns how many were removed."""
        cutoff = now - self.horizon
        stale = [k for k, ts in self._sent.items() if ts < cutoff]
        for k in stale:
            del self._sent[k]
        return len(stale)

    def __len__(self) -> int:
        return len(self._sent)

    def __contains__(self, key: object) -> bool:
        return key in self._sent
