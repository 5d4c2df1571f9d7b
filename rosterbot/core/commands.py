# rosterbot/core/commands.py
"""
Slash-command routing table.

The table is a tuple built once at startup and handed to the adapter as is;
routing never mutates it. Each pattern captures its arguments as named groups,
which are passed to the handler.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

Handler = Callable[[Any, Dict[str, str]], Awaitable[str]]

_BOT = r"(?:@\w+)?"  # "/cmd@botname" in group chats
_DATE = r"(?P<date>\d{2}\.\d{2}\.\d{4})"


@dataclass(frozen=True)
class Command:
    name: str
    pattern: re.Pattern
    handler: Handler
    description: str
    admin_only: bool = False


def _rx(body: str) -> re.Pattern:
    return re.compile(r"^" + body + r"\s*$", re.IGNORECASE | re.DOTALL)


def build_commands(engine: Any) -> Tuple[Command, ...]:
    return (
        Command("start", _rx(r"/start" + _BOT), engine.cmd_start,
                "/start - регистрация и справка"),
        Command("myname", _rx(r"/myname" + _BOT + r"\s+(?P<name>.+?)"), engine.cmd_myname,
                "/myname <Имя_в_таблице> - указать своё имя в таблице"),
        Command("map", _rx(r"/map" + _BOT + r"\s+(?P<name>.+?)\s+(?P<user>\S+)"), engine.cmd_map,
                "/map <Имя_в_таблице> <@username или ID> - сопоставить имя с пользователем",
                admin_only=True),
        Command("mappings", _rx(r"/mappings" + _BOT), engine.cmd_mappings,
                "/mappings - показать сопоставления имён"),
        Command("test", _rx(r"/test" + _BOT), engine.cmd_test,
                "/test - прислать себе тестовое уведомление"),
        Command("game", _rx(r"/game" + _BOT + r"(?:\s+" + _DATE + r")?"), engine.cmd_game,
                "/game [дд.мм.гггг] - состав на игру"),
        Command("book", _rx(r"/book" + _BOT + r"\s+" + _DATE + r"\s+(?P<slot>\d{1,2})"), engine.cmd_book,
                "/book <дд.мм.гггг> <номер места> - записаться на свободное место"),
        Command("unbook", _rx(r"/unbook" + _BOT + r"\s+" + _DATE), engine.cmd_unbook,
                "/unbook <дд.мм.гггг> - освободить своё место"),
        Command("mark", _rx(r"/mark" + _BOT + r"\s+" + _DATE + r"\s+(?P<name>.+?)\s+(?P<status>\S+)"),
                engine.cmd_mark,
                "/mark <дд.мм.гггг> <Имя> <yes|no|maybe|clear> - выставить статус",
                admin_only=True),
    )


class CommandRouter:
    def __init__(self, commands: Tuple[Command, ...]) -> None:
        self.commands = commands

    def match(self, text: str) -> Optional[Tuple[Command, Dict[str, str]]]:
        text = (text or "").strip()
        if not text.startswith("/"):
            return None
        for cmd in self.commands:
            m = cmd.pattern.match(text)
            if m:
                args = {k: v.strip() for k, v in m.groupdict().items() if v is not None}
                return cmd, args
        return None

    def help_text(self, *, is_admin: bool = False) -> str:
        return "\n".join(
            c.description for c in self.commands if is_admin or not c.admin_only
        )
