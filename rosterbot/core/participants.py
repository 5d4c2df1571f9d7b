# rosterbot/core/participants.py
"""
Who is who: Telegram accounts and the names they use in the sheet.

Lookups accept the free-text name typed in a slot, a @handle, or a Telegram id.
The directory lives in memory; it can be pre-seeded from a YAML file but is
never written back.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import yaml

from rosterbot.core.events import normalize_label
from rosterbot.core.logging_utils import kv

log = logging.getLogger("rosterbot.participants")


@dataclass
class Participant:
    telegram_id: int
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    sheet_name: Optional[str] = None  # name as written in the slot cells

    @property
    def full_name(self) -> str:
        return " ".join(x for x in (self.first_name, self.last_name) if x)

    @property
    def display_name(self) -> str:
        if self.username:
            return self.username
        if self.full_name:
            return self.full_name
        return str(self.telegram_id)

    @property
    def mention(self) -> str:
        """@handle when known, else the sheet name (used in group summaries)."""
        if self.username:
            return f"@{self.username}"
        return self.sheet_name or self.display_name


def _strip_handle(handle: str) -> str:
    return (handle or "").strip().lstrip("@").lower()


class ParticipantDirectory:
    def __init__(self, participants: Iterable[Participant] = ()) -> None:
        self._by_id: Dict[int, Participant] = {}
        # normalized sheet name -> telegram id (explicit /map and /myname)
        self._name_mapping: Dict[str, int] = {}
        for p in participants:
            self.register(p)
            if p.sheet_name:
                self.map_sheet_name(p.sheet_name, p.telegram_id)

    # ---- mutation --------------------------------------------------------------
    def register(self, participant: Participant) -> Participant:
        """Add or refresh a participant; an existing sheet name is kept."""
        existing = self._by_id.get(participant.telegram_id)
        if existing is not None:
            existing.username = participant.username or existing.username
            existing.first_name = participant.first_name or existing.first_name
            existing.last_name = participant.last_name or existing.last_name
            return existing
        self._by_id[participant.telegram_id] = participant
        log.info(
            "participant.registered "
            + kv(telegram_id=participant.telegram_id, username=participant.username)
        )
        return participant

    def map_sheet_name(self, sheet_name: str, telegram_id: int) -> Optional[Participant]:
        name = sheet_name.strip()
        key = normalize_label(name)
        # a person has one sheet name: forget the previous mapping
        for k, tid in list(self._name_mapping.items()):
            if tid == telegram_id:
                del self._name_mapping[k]
        self._name_mapping[key] = telegram_id
        p = self._by_id.get(telegram_id)
        if p is not None:
            p.sheet_name = name
        log.info("participant.mapped " + kv(sheet_name=name, telegram_id=telegram_id))
        return p

    # ---- lookup ----------------------------------------------------------------
    def find_by_id(self, telegram_id: int) -> Optional[Participant]:
        try:
            return self._by_id.get(int(telegram_id))
        except (TypeError, ValueError):
            return None

    def find_by_handle(self, handle: str) -> Optional[Participant]:
        h = _strip_handle(handle)
        if not h:
            return None
        for p in self._by_id.values():
            if p.username and p.username.lower() == h:
                return p
        return None

    def find_by_sheet_name(self, sheet_name: str) -> Optional[Participant]:
        key = normalize_label(sheet_name)
        if not key:
            return None
        tid = self._name_mapping.get(key)
        if tid is not None:
            return self._by_id.get(tid)
        for p in self._by_id.values():
            if p.sheet_name and normalize_label(p.sheet_name) == key:
                return p
        return None

    def find_by_display_name(self, name: str) -> Optional[Participant]:
        """Sheet-name mapping first, then Telegram full name, first name, username."""
        p = self.find_by_sheet_name(name)
        if p is not None:
            return p
        key = normalize_label(name)
        if not key:
            return None
        for p in self._by_id.values():
            if (
                normalize_label(p.full_name) == key
                or normalize_label(p.first_name) == key
                or normalize_label(p.username) == key
            ):
                return p
        return None

    def mapped(self) -> List[Participant]:
        return [p for p in self._by_id.values() if p.sheet_name]

    def __len__(self) -> int:
        return len(self._by_id)


def load_participants(path: str) -> List[Participant]:
    """
    Optional YAML seed:

        participants:
          - telegram_id: 123
            username: alice
            first_name: Alice
            sheet_name: Алиса
    """
    if not path or not os.path.exists(path):
        log.info("participants.seed.missing " + kv(path=path))
        return []
    with open(path, "r", encoding="utf-8") as f:
        data: Any = yaml.safe_load(f) or {}

    result: List[Participant] = []
    for idx, item in enumerate(data.get("participants", []) or []):
        if not isinstance(item, dict) or "telegram_id" not in item:
            log.warning("participants.seed.skip " + kv(index=idx, reason="no telegram_id"))
            continue
        result.append(
            Participant(
                telegram_id=int(item["telegram_id"]),
                username=item.get("username"),
                first_name=item.get("first_name"),
                last_name=item.get("last_name"),
                sheet_name=item.get("sheet_name"),
            )
        )
    log.info("participants.seed.loaded " + kv(path=path, count=len(result)))
    return result
