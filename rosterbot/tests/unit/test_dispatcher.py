# rosterbot/tests/unit/test_dispatcher.py
import random

import pytest

from rosterbot.core.attendance import AttendanceBook
from rosterbot.core.dispatcher import NotificationDispatcher
from rosterbot.core.events import SheetLayout, extract_events
from rosterbot.core.participants import Participant, ParticipantDirectory
from rosterbot.core.status_codec import PALETTE, AttendanceStatus
from rosterbot.core.windows import NotificationWindow
from rosterbot.tests.fakes import FakeAdapter, FakeStore, SleepRecorder, sample_rows

ROW = 1  # grid row of 01.05.2023 in sample_rows()


def make_dispatcher(cfg, clock, store, adapter, participants=None, sleep=None):
    layout = SheetLayout.from_config(cfg)
    directory = ParticipantDirectory(
        participants
        if participants is not None
        else [
            Participant(telegram_id=1, username="alice", sheet_name="Alice"),
            Participant(telegram_id=2, sheet_name="Bob"),
        ]
    )
    return NotificationDispatcher(
        adapter=adapter,
        directory=directory,
        attendance=AttendanceBook(store, layout),
        clock=clock,
        config=cfg,
        sleep=sleep or SleepRecorder(),
        rng=random.Random(7),
    )


def monday_game(cfg, store_rows=None):
    layout = SheetLayout.from_config(cfg)
    return extract_events(store_rows or sample_rows(), ["01.05.2023"], layout=layout)[0]


@pytest.mark.asyncio
async def test_alice_invited_bob_declined_is_skipped(cfg, clock):
    store = FakeStore(sample_rows(), colors={(ROW, 6): PALETTE[AttendanceStatus.NO]})
    adapter = FakeAdapter()
    d = make_dispatcher(cfg, clock, store, adapter)

    n = await d.dispatch(NotificationWindow.PERSONAL_AFTERNOON, [monday_game(cfg)], "today")

    assert n == 1
    assert len(adapter.sent) == 1
    kind, chat_id, text, choices = adapter.sent[0]
    assert (kind, chat_id) == ("direct", 1)
    assert "ПРИГЛАШЕНИЕ" in text
    assert [data for _, data in choices] == [
        "attendance:yes:01.05.2023",
        "attendance:no:01.05.2023",
        "attendance:maybe:01.05.2023",
    ]


@pytest.mark.asyncio
async def test_known_status_gets_two_choice_reminder(cfg, clock):
    store = FakeStore(sample_rows(), colors={(ROW, 3): PALETTE[AttendanceStatus.YES]})
    adapter = FakeAdapter()
    d = make_dispatcher(cfg, clock, store, adapter)

    await d.dispatch(NotificationWindow.PERSONAL_EVENING, [monday_game(cfg)], "today")

    _, _, text, choices = adapter.direct_to(1)[0]
    assert "НАПОМИНАНИЕ О ТЕННИСЕ" in text and "вы подтвердили участие" in text
    assert [data for _, data in choices] == [
        "attendance:confirm_yes:01.05.2023",
        "attendance:no_reask:01.05.2023",
    ]


@pytest.mark.asyncio
async def test_final_reminder_reaches_decliners_without_buttons(cfg, clock):
    clock.set(2023, 5, 1, 20, 0)
    store = FakeStore(sample_rows(), colors={(ROW, 6): PALETTE[AttendanceStatus.NO]})
    adapter = FakeAdapter()
    d = make_dispatcher(cfg, clock, store, adapter)

    n = await d.dispatch(NotificationWindow.FINAL_REMINDER, [monday_game(cfg)], "today")

    assert n == 2
    for chat_id in (1, 2):
        _, _, text, choices = adapter.direct_to(chat_id)[0]
        assert "Через 2 часа теннис!" in text
        assert choices is None


@pytest.mark.asyncio
async def test_unresolved_and_duplicate_occupants(cfg, clock):
    rows = sample_rows()
    rows[ROW][4] = "Stranger"
    rows[ROW][7] = "alice"  # same person in a second seat
    store = FakeStore(rows)
    adapter = FakeAdapter()
    d = make_dispatcher(cfg, clock, store, adapter)

    n = await d.dispatch(NotificationWindow.PERSONAL_AFTERNOON, [monday_game(cfg, rows)], "today")

    assert n == 2
    assert len(adapter.direct_to(1)) == 1
    assert len(adapter.direct_to(2)) == 1


@pytest.mark.asyncio
async def test_transport_failure_is_per_recipient(cfg, clock):
    store = FakeStore(sample_rows())
    adapter = FakeAdapter(fail_for=(1,))
    d = make_dispatcher(cfg, clock, store, adapter)

    n = await d.dispatch(NotificationWindow.PERSONAL_AFTERNOON, [monday_game(cfg)], "today")

    assert n == 1
    assert [s[1] for s in adapter.sent] == [2]


@pytest.mark.asyncio
async def test_status_read_failure_skips_recipient(cfg, clock):
    store = FakeStore(sample_rows())
    store.fail_color_reads = True
    adapter = FakeAdapter()
    d = make_dispatcher(cfg, clock, store, adapter)

    n = await d.dispatch(NotificationWindow.PERSONAL_AFTERNOON, [monday_game(cfg)], "today")
    assert n == 0 and adapter.sent == []


@pytest.mark.asyncio
async def test_pacing_between_sends_only(cfg, clock):
    store = FakeStore(sample_rows())
    adapter = FakeAdapter()
    sleep = SleepRecorder()
    d = make_dispatcher(cfg, clock, store, adapter, sleep=sleep)

    await d.dispatch(NotificationWindow.PERSONAL_AFTERNOON, [monday_game(cfg)], "today")

    assert len(sleep.calls) == 1
    assert 0.8 <= sleep.calls[0] <= 2.5


@pytest.mark.asyncio
async def test_group_summary_to_general_chat(cfg, clock):
    store = FakeStore(sample_rows(), colors={(ROW, 3): PALETTE[AttendanceStatus.YES]})
    adapter = FakeAdapter()
    d = make_dispatcher(cfg, clock, store, adapter)

    n = await d.dispatch(NotificationWindow.GROUP_EVENING, [monday_game(cfg)], "tomorrow")

    assert n == 1
    kind, chat_id, text, _ = adapter.sent[0]
    assert (kind, chat_id) == ("group", -100)
    assert "1. ✅ @alice" in text
    assert "4. ⚪ Bob" in text
    assert "@tennis_test_bot" in text


@pytest.mark.asyncio
async def test_group_summary_skipped_without_chat_or_when_all_cancelled(cfg, clock):
    store = FakeStore(sample_rows())
    adapter = FakeAdapter()
    cfg.GENERAL_CHAT_ID = None
    d = make_dispatcher(cfg, clock, store, adapter)
    assert await d.dispatch(NotificationWindow.GROUP_EVENING, [monday_game(cfg)], "tomorrow") == 0

    cfg.GENERAL_CHAT_ID = -100
    rows = [["01.05.2023", "22:00", ""] + ["отмена"] * 8]
    store = FakeStore(rows)
    d = make_dispatcher(cfg, clock, store, adapter)
    assert await d.dispatch(NotificationWindow.GROUP_EVENING, [monday_game(cfg, rows)], "tomorrow") == 0
    assert adapter.sent == []


@pytest.mark.asyncio
async def test_admin_reminder_goes_to_every_admin(cfg, clock):
    cfg.ADMIN_IDS = [900, 901]
    adapter = FakeAdapter()
    d = make_dispatcher(cfg, clock, FakeStore(sample_rows()), adapter)

    n = await d.dispatch(NotificationWindow.ADMIN_WEEKLY_REMINDER, [], "")

    assert n == 2
    assert [s[1] for s in adapter.sent] == [900, 901]
    assert "забронировать корт" in adapter.sent[0][2]


@pytest.mark.asyncio
async def test_send_test_prompt(cfg, clock):
    adapter = FakeAdapter()
    d = make_dispatcher(cfg, clock, FakeStore(sample_rows()), adapter)
    alice = d.directory.find_by_id(1)

    assert await d.send_test_prompt(alice, monday_game(cfg), "today")
    _, chat_id, text, choices = adapter.sent[0]
    assert chat_id == 1 and "ТЕСТОВОЕ УВЕДОМЛЕНИЕ" in text and len(choices) == 3


@pytest.mark.asyncio
async def test_first_send_waits_when_the_pass_already_sent_something(cfg, clock):
    sleep = SleepRecorder()
    d = make_dispatcher(cfg, clock, FakeStore(sample_rows()), FakeAdapter(), sleep=sleep)

    await d.dispatch(
        NotificationWindow.PERSONAL_AFTERNOON, [monday_game(cfg)], "today", pace_first=True
    )
    assert len(sleep.calls) == 2


@pytest.mark.asyncio
async def test_participant_without_sheet_name_is_not_notified(cfg, clock):
    adapter = FakeAdapter()
    d = make_dispatcher(
        cfg, clock, FakeStore(sample_rows()), adapter,
        participants=[
            Participant(telegram_id=1, first_name="Alice"),
            Participant(telegram_id=2, sheet_name="Bob"),
        ],
    )

    n = await d.dispatch(NotificationWindow.PERSONAL_AFTERNOON, [monday_game(cfg)], "today")

    assert n == 1
    assert [s[1] for s in adapter.sent] == [2]


@pytest.mark.asyncio
async def test_unreadable_statuses_show_unknown_with_one_warning(cfg, clock, caplog):
    store = FakeStore(sample_rows())
    store.fail_color_reads = True
    d = make_dispatcher(cfg, clock, store, FakeAdapter())

    with caplog.at_level("WARNING", logger="rosterbot.dispatcher"):
        labels = await d.collect_labels(monday_game(cfg))

    assert labels and all(label.startswith("⚪") for label in labels.values())
    warnings = [r for r in caplog.records if "summary.status.unreadable" in r.getMessage()]
    assert len(warnings) == 1
