# rosterbot/adapters/telegram_adapter.py
from __future__ import annotations

import contextlib
import logging
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from aiogram import Bot, Dispatcher, F
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.types import (
    BotCommand,
    CallbackQuery,
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    Message,
)

from rosterbot.core.actions import PREFIX
from rosterbot.core.engine import IncomingMessage
from rosterbot.core.i18n import MESSAGES
from rosterbot.core.logging_utils import kv
from rosterbot.util.retry import with_retry


class TelegramAdapter:
    """
    Aiogram 3.x transport:

    • Commands go to the engine, which routes them through its command table.
    • Attendance taps ("attendance:<action>:<date>") go to the engine's response
      handler; the outcome is rendered here (toast, appended reply, new prompt).
    • Outbound sends for the dispatcher: direct messages with one row of inline
      buttons, and plain group messages. All texts are HTML.
    """

    def __init__(
        self, bot_token: str, engine: Any, commands: Iterable[Any] = ()
    ) -> None:
        self.bot = Bot(
            token=bot_token, default=DefaultBotProperties(parse_mode=ParseMode.HTML)
        )
        self.dp = Dispatcher()

        self.engine = engine
        # the engine's immutable command table (used for the Telegram command menu)
        self.commands = tuple(commands)

        self.log = logging.getLogger("rosterbot.adapter")

        # ---- Handlers (attendance taps first, then any other callback) ----
        self.dp.message.register(self.on_command, F.text.startswith("/"))
        self.dp.callback_query.register(
            self.on_callback, F.data.startswith(PREFIX + ":")
        )
        self.dp.callback_query.register(self.on_unknown_callback)

    # ------------------------------------------------------------------------------
    # Keyboards
    # ------------------------------------------------------------------------------
    @staticmethod
    def build_keyboard(
        choices: Optional[Sequence[Tuple[str, str]]],
    ) -> Optional[InlineKeyboardMarkup]:
        if not choices:
            return None
        row = [
            InlineKeyboardButton(text=label, callback_data=data)
            for label, data in choices
        ]
        return InlineKeyboardMarkup(inline_keyboard=[row])

    # ------------------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------------------
    async def on_command(self, message: Message) -> None:
        user = message.from_user
        incoming = IncomingMessage(
            chat_id=message.chat.id,
            user_id=user.id if user else 0,
            text=message.text or "",
            username=getattr(user, "username", None),
            first_name=getattr(user, "first_name", None),
            last_name=getattr(user, "last_name", None),
            sent_at_utc=getattr(message, "date", None),
        )
        self.log.info(
            "msg.in " + kv(chat_id=incoming.chat_id, user_id=incoming.user_id, text=incoming.text)
        )

        reply = await self.engine.on_message(incoming)
        if reply:
            await self.send_direct(incoming.chat_id, reply)

    async def on_callback(self, callback: CallbackQuery) -> None:
        """
        Attendance tap:
        - toast (or alert) with the outcome text, which also clears the spinner;
        - the reply is appended to the tapped message and its buttons removed;
        - "no" on a reminder posts a fresh 3-choice prompt instead.
        """
        user_id = callback.from_user.id if callback.from_user else 0
        message = callback.message
        chat_id = message.chat.id if message is not None else user_id
        data = callback.data or ""
        self.log.info("cb.in " + kv(chat_id=chat_id, user_id=user_id, data=data))

        outcome = await self.engine.on_attendance_callback(user_id, data)

        with contextlib.suppress(Exception):
            await callback.answer(outcome.cb_text, show_alert=outcome.show_alert)

        if outcome.append_text:
            original = getattr(message, "html_text", None) or getattr(message, "text", None)
            message_id = getattr(message, "message_id", None)
            edited = False
            if original and message_id:
                edited = await self.edit_message(
                    chat_id, message_id, f"{original}\n\n{outcome.append_text}"
                )
            if not edited:
                await self.send_direct(chat_id, outcome.append_text)

        if outcome.prompt_text:
            await self.send_direct(chat_id, outcome.prompt_text, outcome.prompt_choices)

    async def on_unknown_callback(self, callback: CallbackQuery) -> None:
        self.log.info("cb.ignored " + kv(data=callback.data))
        with contextlib.suppress(Exception):
            await callback.answer(MESSAGES["cb_invalid"], show_alert=False)

    # ------------------------------------------------------------------------------
    # Outbound messaging (used by the dispatcher)
    # ------------------------------------------------------------------------------
    async def send_direct(
        self,
        chat_id: int,
        text: str,
        choices: Optional[Sequence[Tuple[str, str]]] = None,
    ) -> int:
        self.log.info("msg.out.direct " + kv(chat_id=chat_id, text=text))
        msg = await with_retry(
            self.bot.send_message,
            chat_id=chat_id,
            text=text,
            reply_markup=self.build_keyboard(choices),
        )
        return msg.message_id

    async def send_group_message(self, group_id: int, text: str) -> int:
        self.log.info("msg.out.group " + kv(group_id=group_id, text=text))
        msg = await with_retry(self.bot.send_message, chat_id=group_id, text=text)
        return msg.message_id

    async def edit_message(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        choices: Optional[Sequence[Tuple[str, str]]] = None,
    ) -> bool:
        """Replace text (and buttons: none unless given). False when Telegram refuses."""
        try:
            await self.bot.edit_message_text(
                text=text,
                chat_id=chat_id,
                message_id=message_id,
                reply_markup=self.build_keyboard(choices),
            )
        except Exception as e:
            self.log.debug(
                "msg.edit.fail " + kv(chat_id=chat_id, message_id=message_id, err=str(e))
            )
            return False
        return True

    def bot_commands(self) -> List[BotCommand]:
        return [
            BotCommand(command=c.name, description=c.description.split(" - ", 1)[-1][:256])
            for c in self.commands
            if not getattr(c, "admin_only", False)
        ]

    async def run_polling(self) -> None:
        self.log.debug("polling.run")
        await self.bot.delete_webhook(drop_pending_updates=True)
        try:
            await self.bot.set_my_commands(self.bot_commands())
        except Exception as e:
            self.log.warning("commands.menu.fail " + kv(err=str(e)))
        await self.dp.start_polling(self.bot)


__all__ = [
    "TelegramAdapter",
    "IncomingMessage",
]
