# rosterbot/tests/unit/test_events.py
from datetime import datetime

import pytest

from rosterbot.core.events import (
    EventSource,
    SheetLayout,
    SlotKind,
    extract_events,
    is_event_row,
    normalize_label,
)
from rosterbot.tests.fakes import TZ, FakeStore, make_cfg, sample_rows


@pytest.fixture
def layout():
    return SheetLayout.from_config(make_cfg())


def test_normalize_label_collapses_case_and_whitespace():
    assert normalize_label("  Иван   Петров ") == "иван петров"
    assert normalize_label(None) == ""


def test_extracts_dated_rows_only(layout):
    events = extract_events(sample_rows(), layout=layout)
    assert [e.date for e in events] == ["01.05.2023", "02.05.2023"]
    assert events[0].row_index == 1


@pytest.mark.parametrize("first", ["1.5.2023", "31.02.2023", "дата", "", "01-05-2023"])
def test_malformed_dates_are_skipped_silently(layout, first):
    rows = [[first, "22:00", "x", "Alice"]]
    assert not is_event_row(rows[0])
    assert extract_events(rows, layout=layout) == []


def test_date_filter(layout):
    events = extract_events(sample_rows(), ["02.05.2023"], layout=layout)
    assert len(events) == 1 and events[0].date == "02.05.2023"


def test_duplicate_date_first_row_wins(layout):
    rows = sample_rows() + [["01.05.2023", "09:00", "Другое", "Zed"]]
    events = extract_events(rows, ["01.05.2023"], layout=layout)
    assert len(events) == 1
    assert events[0].time == "22:00"
    assert events[0].find_occupant("zed") is None


def test_defaults_for_missing_time_and_place(layout):
    ev = extract_events(sample_rows(), ["02.05.2023"], layout=layout)[0]
    assert ev.time == "22:00"
    assert ev.place == "обычное место"


def test_slot_blocks_and_occupancy(layout):
    ev = extract_events(sample_rows(), ["01.05.2023"], layout=layout)[0]
    trainer = ev.slots_of(SlotKind.TRAINER)
    assert [s.occupant for s in trainer] == ["Alice", "", "", "Bob"]
    assert [s.column_index for s in trainer] == [3, 4, 5, 6]
    assert len(ev.slots_of(SlotKind.SELF_SERVE)) == 4
    assert [s.occupant for s in ev.occupied_slots()] == ["Alice", "Bob"]


def test_cancelled_placeholder_and_empty_are_distinct(layout):
    row = ["03.05.2023", "20:00", "", " ОТМЕНА ", "резерв", "", "Eve"]
    ev = extract_events([row], layout=layout)[0]
    cancelled, reserve, empty, eve = ev.slots_of(SlotKind.TRAINER)

    assert cancelled.cancelled and not cancelled.is_occupied and not cancelled.is_free
    assert reserve.administrative and not reserve.cancelled
    assert reserve.is_free and not reserve.is_occupied
    assert empty.is_empty and empty.is_free and not empty.cancelled
    assert eve.is_occupied


def test_extra_block_only_surfaces_people(layout):
    row = ["04.05.2023", "22:00", "", "", "", "", "", "", "", "", "",
           "Frank", "", "Корт забронен до 23", "примечание: мячи", "резерв"]
    ev = extract_events([row], layout=layout)[0]
    extras = ev.slots_of(SlotKind.EXTRA)
    assert [(s.column_index, s.occupant) for s in extras] == [(11, "Frank")]


def test_find_occupant_is_case_insensitive(layout):
    ev = extract_events(sample_rows(), ["01.05.2023"], layout=layout)[0]
    assert ev.find_occupant("  alice ").column_index == 3
    assert ev.find_occupant("") is None


def test_has_started_by_local_hour(layout):
    ev = extract_events(sample_rows(), ["01.05.2023"], layout=layout)[0]
    assert not ev.has_started(datetime(2023, 5, 1, 21, 59, tzinfo=TZ))
    assert ev.has_started(datetime(2023, 5, 1, 22, 0, tzinfo=TZ))
    assert ev.has_started(datetime(2023, 5, 2, 8, 0, tzinfo=TZ))
    assert not ev.has_started(datetime(2023, 4, 30, 23, 0, tzinfo=TZ))
    assert ev.starts_at(TZ) == datetime(2023, 5, 1, 22, 0, tzinfo=TZ)


@pytest.mark.asyncio
async def test_event_source_fresh_read_invalidates(layout):
    store = FakeStore(sample_rows())
    source = EventSource(store, layout)

    ev = await source.event_on("02.05.2023", fresh=True)
    assert ev is not None and ev.find_occupant("carol") is not None
    assert store.invalidations == 1
    assert await source.event_on("09.09.2023") is None
