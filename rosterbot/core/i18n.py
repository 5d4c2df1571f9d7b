from __future__ import annotations

"""
i18n catalog (ru). Messages are sent with HTML parse mode: values coming from
the sheet or from users must be escaped by the caller.
"""

MESSAGES = {
    # Buttons
    "btn_yes": "✅ Да",
    "btn_no": "❌ Нет",
    "btn_maybe": "🤔 Не уверен",
    # Relative day labels
    "day_today": "сегодня",
    "day_tomorrow": "завтра",
    # Current status, as shown to the participant
    "status_yes": "✅ Да (вы подтвердили участие)",
    "status_no": "❌ Нет (вы отказались)",
    "status_maybe": "🤔 Не уверен",
    "status_unknown": "⚪ Не указан",
    # Game details block
    "game_details": (
        "📅 Дата: <b>{date}</b>\n"
        "🕒 Время: <b>{time}</b>\n"
        "📍 Место: <b>{place}</b>"
    ),
    # Personal notifications
    "invite": (
        "🎾 <b>ПРИГЛАШЕНИЕ НА ТЕННИС</b> {when}\n\n"
        "{details}\n\n"
        "Планируете ли вы прийти?"
    ),
    "reminder": (
        "🎾 <b>НАПОМИНАНИЕ О ТЕННИСЕ</b> {when}\n\n"
        "{details}\n\n"
        "Ваш текущий статус: {status_text}\n"
        "Подтверждаете статус?"
    ),
    "final": "⏰ <b>НАПОМИНАНИЕ</b>: {time_text}\n\n{details}",
    "final_now": "Теннис начинается!",
    "final_one_hour": "Через час теннис!",
    "final_hours": "Через {hours} {unit} теннис!",
    "test_invite": (
        "🧪 ТЕСТОВОЕ УВЕДОМЛЕНИЕ 🧪\n\n"
        "{greeting}! {when_cap} у тебя теннис в {time}, место: {place}. Планируешь прийти?"
    ),
    "reconsider": (
        "🎾 <b>ИЗМЕНЕНИЕ СТАТУСА УЧАСТИЯ</b>\n\n"
        "📅 Дата: <b>{date}</b>\n\n"
        "Пожалуйста, выберите новый статус участия:"
    ),
    # Replies to a tap: confirmation of the current answer
    "confirmed_yes": "✅ Спасибо за подтверждение! Ждём вас на игре.",
    "confirmed_no": "❌ Вы подтвердили свой отказ от участия.",
    "confirmed_maybe": "🤔 Вы подтвердили свой статус 'Не уверен'.",
    # Replies to a tap: first answer
    "registered_yes": "✅ Отлично! Ваш ответ 'Да' зарегистрирован.",
    "registered_no": "❌ Жаль! Ваш ответ 'Нет' зарегистрирован.",
    "registered_maybe": "🤔 Понятно. Ваш ответ 'Не уверен' зарегистрирован.",
    # Replies to a tap: changed answer
    "changed_yes": "✅ Вы изменили свой ответ на 'Да'. Будем ждать вас на игре!",
    "changed_no": "❌ Вы изменили свой ответ на 'Нет'. Жаль, что не сможете прийти.",
    "changed_maybe": "🤔 Вы изменили свой ответ на 'Не уверен'. Надеемся на положительное решение!",
    # Callback toasts
    "cb_accepted": "Ваш ответ принят!",
    "cb_reconsider": "Выберите свой статус участия",
    "cb_invalid": "Эта кнопка устарела. Дождитесь нового уведомления.",
    "cb_not_registered": "Вы не зарегистрированы. Отправьте боту /start.",
    "cb_no_sheet_name": (
        "Ошибка: ваше имя не найдено в таблице. Укажите его через команду /myname."
    ),
    "cb_write_failed": (
        "Произошла ошибка при обновлении данных. "
        "Убедитесь, что ваше имя правильно указано в таблице."
    ),
    # Group chat summary
    "group_summary": (
        "📅 {when_cap} игра в теннис:\n"
        "🕒 Время: <b>{time}</b>\n"
        "📍 Место: <b>{place}</b>\n\n"
        "👥 <b>С тренером</b>:\n{trainer}\n\n"
        "👥 <b>Без тренера</b>:\n{self_serve}\n\n"
        "{availability}"
    ),
    "group_all_cancelled": "Все слоты отменены",
    "group_slot_free": "⚪ Свободно",
    "group_slot_cancelled": "🚫 Отменен",
    "group_has_free": "Есть свободные места!\nЗаписаться на игру можно через бота: @{bot}",
    "group_all_busy": "Все места заняты!\nИзменить статус участия можно через бота: @{bot}",
    # Admins
    "admin_weekly": (
        "⏰ Не забудьте забронировать корт и тренера на следующую неделю."
    ),
    # Commands
    "help": (
        "Привет, {name}! Я бот для уведомлений о теннисных играх.\n"
        "Вы успешно зарегистрированы!\n\n"
        "Доступные команды:\n{commands}"
    ),
    "unknown_command": "Неизвестная команда или неверный формат. Используйте /start для справки.",
    "internal_error": "❗ Произошла внутренняя ошибка при обработке вашего запроса.",
    "admin_only": "⚠️ Эта команда доступна только администраторам.",
    "need_start": "⚠️ Сначала зарегистрируйтесь командой /start.",
    "need_sheet_name": "⚠️ Сначала укажите своё имя в таблице командой /myname &lt;Имя_в_таблице&gt;",
    "myname_ok": "✅ Успешно! Ваше имя в таблице теперь установлено как <b>{sheet_name}</b>",
    "map_ok": "✅ Успешно! Имя <b>{sheet_name}</b> в таблице теперь сопоставлено с пользователем {user}",
    "map_user_not_found": (
        "⚠️ Пользователь не найден. Убедитесь, что он зарегистрирован в боте с помощью команды /start."
    ),
    "map_email_unsupported": "⚠️ Использование email не поддерживается. Используйте @username или ID пользователя.",
    "mappings_empty": "Нет сохраненных сопоставлений имен.",
    "mappings_header": "Текущие сопоставления имен:\n",
    "mappings_line": "<b>{sheet_name}</b> → {user} (ID: {telegram_id})",
    "test_sent": "✅ Тестовое уведомление отправлено!",
    "test_failed": "⚠️ Не удалось отправить тестовое уведомление.",
    "game_not_found": "На {date} игра не найдена.",
    "store_unavailable": "⚠️ Таблица временно недоступна. Попробуйте позже.",
    "book_ok": "✅ Вы записаны на {date}, место №{slot}.",
    "book_already": "⚠️ Вы уже записаны на {date}.",
    "book_taken": "⚠️ Место №{slot} на {date} уже занято.",
    "book_free": "Свободные места: {free}.",
    "book_no_free": "Свободных мест нет.",
    "book_bad_slot": "⚠️ На {date} нет свободного места с номером {slot}.",
    "unbook_ok": "✅ Запись на {date} отменена.",
    "unbook_missing": "⚠️ Вы не записаны на {date}.",
    "write_failed": "⚠️ Не удалось обновить таблицу. Убедитесь, что ваше имя правильно указано в таблице.",
    "mark_ok": "✅ Статус {name} на {date}: {status}.",
    "mark_bad_status": "⚠️ Статус должен быть одним из: yes, no, maybe, clear.",
}


def fmt(key: str, **kwargs) -> str:
    return MESSAGES[key].format(**kwargs)
