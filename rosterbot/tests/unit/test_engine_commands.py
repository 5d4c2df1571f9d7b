# rosterbot/tests/unit/test_engine_commands.py
import pytest

from rosterbot.core.engine import IncomingMessage, RosterEngine
from rosterbot.core.i18n import MESSAGES
from rosterbot.core.participants import Participant, ParticipantDirectory
from rosterbot.core.status_codec import PALETTE, AttendanceStatus
from rosterbot.tests.fakes import SleepRecorder

ADMIN = 900


@pytest.fixture
def engine(cfg, store, adapter, clock):
    directory = ParticipantDirectory(
        [Participant(telegram_id=1, username="alice", first_name="Alice", sheet_name="Alice")]
    )
    return RosterEngine(
        cfg,
        store,
        adapter,
        clock=clock,
        directory=directory,
        dispatcher_kwargs={"sleep": SleepRecorder()},
    )


def msg(text, user_id=5, username="erin", first_name="Erin"):
    return IncomingMessage(
        chat_id=user_id, user_id=user_id, text=text, username=username, first_name=first_name
    )


@pytest.mark.asyncio
async def test_plain_text_is_not_answered(engine):
    assert await engine.on_message(msg("hello")) is None


@pytest.mark.asyncio
async def test_unknown_command(engine):
    assert await engine.on_message(msg("/dance")) == MESSAGES["unknown_command"]
    assert await engine.on_message(msg("/book tomorrow")) == MESSAGES["unknown_command"]


@pytest.mark.asyncio
async def test_start_registers_and_lists_commands(engine):
    reply = await engine.on_message(msg("/start"))

    assert "Привет, Erin!" in reply
    assert "/book" in reply and "/mark" not in reply
    assert engine.directory.find_by_id(5).username == "erin"

    admin_reply = await engine.on_message(msg("/start", user_id=ADMIN, username="boss"))
    assert "/mark" in admin_reply


@pytest.mark.asyncio
async def test_myname_registers_a_newcomer(engine):
    reply = await engine.on_message(msg("/myname Erin"))
    assert "<b>Erin</b>" in reply
    erin = engine.directory.find_by_id(5)
    assert erin.username == "erin" and erin.sheet_name == "Erin"

    reply = await engine.on_message(msg("/myname Erin K."))
    assert "<b>Erin K.</b>" in reply
    assert engine.directory.find_by_sheet_name("erin k.").telegram_id == 5


@pytest.mark.asyncio
async def test_map_is_admin_only(engine):
    await engine.on_message(msg("/start"))

    assert await engine.on_message(msg("/map Erin @erin")) == MESSAGES["admin_only"]

    reply = await engine.on_message(msg("/map Erin @erin", user_id=ADMIN))
    assert "<b>Erin</b>" in reply and "@erin" in reply
    assert engine.directory.find_by_id(5).sheet_name == "Erin"

    assert await engine.on_message(msg("/map Zed 777", user_id=ADMIN)) == MESSAGES["map_user_not_found"]
    assert (
        await engine.on_message(msg("/map Zed zed@example.com", user_id=ADMIN))
        == MESSAGES["map_email_unsupported"]
    )


@pytest.mark.asyncio
async def test_mappings_lists_known_names(engine):
    reply = await engine.on_message(msg("/mappings"))
    assert reply.startswith(MESSAGES["mappings_header"])
    assert "<b>Alice</b> → alice (ID: 1)" in reply


@pytest.mark.asyncio
async def test_game_shows_todays_lineup(engine, store):
    store.colors[(1, 3)] = PALETTE[AttendanceStatus.YES]

    reply = await engine.on_message(msg("/game"))
    assert "✅ @alice" in reply
    assert "Bob" in reply

    assert await engine.on_message(msg("/game 09.09.2023")) == "На 09.09.2023 игра не найдена."

    store.fail_reads = True
    assert await engine.on_message(msg("/game 01.05.2023")) == MESSAGES["store_unavailable"]


@pytest.mark.asyncio
async def test_book_and_unbook_through_commands(engine, store):
    assert await engine.on_message(msg("/book 02.05.2023 3")) == MESSAGES["need_start"]
    await engine.on_message(msg("/start"))
    assert await engine.on_message(msg("/book 02.05.2023 3")) == MESSAGES["need_sheet_name"]

    await engine.on_message(msg("/myname Erin"))
    taken = await engine.on_message(msg("/book 02.05.2023 1"))
    assert "уже занято" in taken and "Свободные места: 2, 3, 4, 6, 7, 8." in taken
    assert "место №3" in await engine.on_message(msg("/book 02.05.2023 3"))
    assert store.rows[2][5] == "Erin"
    assert "уже записаны" in await engine.on_message(msg("/book 02.05.2023 6"))

    assert "отменена" in await engine.on_message(msg("/unbook 02.05.2023"))
    assert store.rows[2][5] == ""
    assert "не записаны" in await engine.on_message(msg("/unbook 02.05.2023"))


@pytest.mark.asyncio
async def test_mark_sets_status_for_a_name(engine, store):
    assert await engine.on_message(msg("/mark 01.05.2023 Bob no")) == MESSAGES["admin_only"]

    reply = await engine.on_message(msg("/mark 01.05.2023 Bob no", user_id=ADMIN))
    assert "Bob" in reply
    assert store.color_writes == [(1, 6, PALETTE[AttendanceStatus.NO])]

    assert (
        await engine.on_message(msg("/mark 01.05.2023 Bob later", user_id=ADMIN))
        == MESSAGES["mark_bad_status"]
    )
    assert (
        await engine.on_message(msg("/mark 01.05.2023 Nobody yes", user_id=ADMIN))
        == MESSAGES["write_failed"]
    )


@pytest.mark.asyncio
async def test_test_command_sends_prompt_to_caller(engine, adapter):
    assert await engine.on_message(msg("/test")) == MESSAGES["need_start"]
    await engine.on_message(msg("/start"))
    assert await engine.on_message(msg("/test")) == MESSAGES["need_sheet_name"]
    assert adapter.sent == []

    await engine.on_message(msg("/myname Erin"))
    assert await engine.on_message(msg("/test")) == MESSAGES["test_sent"]

    _, chat_id, text, choices = adapter.sent[-1]
    assert chat_id == 5 and "ТЕСТОВОЕ УВЕДОМЛЕНИЕ" in text
    assert choices[0][1] == "attendance:yes:02.05.2023"


@pytest.mark.asyncio
async def test_handler_crash_becomes_internal_error(engine, monkeypatch):
    async def boom(*a, **k):
        raise RuntimeError("bug")

    await engine.on_message(msg("/start"))
    await engine.on_message(msg("/myname Erin"))
    monkeypatch.setattr(engine.booking, "book", boom)

    assert await engine.on_message(msg("/book 02.05.2023 3")) == MESSAGES["internal_error"]
