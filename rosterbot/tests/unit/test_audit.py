# rosterbot/tests/unit/test_audit.py
import csv

from rosterbot.core.audit import HEADER, AuditLog
from rosterbot.tests.fakes import TZ


def read_rows(path):
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f, delimiter=";"))


def test_header_written_once_then_rows_appended(tmp_path):
    path = tmp_path / "logs" / "attendance.csv"
    audit = AuditLog(str(path), TZ)

    audit.record(kind="notify", telegram_id=1, name="Alice", date="01.05.2023", window="personal_afternoon")
    audit.record(kind="response_changed", telegram_id=1, name="Alice", date="01.05.2023",
                 status="no", previous="yes", detail="line one\nline two")

    rows = read_rows(path)
    assert rows[0] == HEADER
    assert len(rows) == 3
    assert rows[1][1:6] == ["notify", "1", "Alice", "01.05.2023", "personal_afternoon"]
    assert rows[2][6:] == ["no", "yes", "line one line two"]


def test_unwritable_path_is_logged_not_raised(tmp_path):
    blocker = tmp_path / "taken"
    blocker.mkdir()
    # the target path is a directory, so open() fails
    AuditLog(str(blocker), TZ).record(kind="notify", telegram_id=1)
