import sys
from pathlib import Path

# This file is at <project_root>/rosterbot/tests/conftest.py
# Project root is two levels up from here.
ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest  # noqa: E402

from rosterbot.tests.fakes import FakeAdapter, FakeStore, FixedClock, make_cfg, sample_rows  # noqa: E402


@pytest.fixture
def cfg():
    return make_cfg()


@pytest.fixture
def store():
    return FakeStore(sample_rows())


@pytest.fixture
def adapter():
    return FakeAdapter()


@pytest.fixture
def clock(cfg):
    # Monday 01.05.2023, 13:10 local: personal-afternoon hour, game at 22:00
    return FixedClock(cfg.TZ, 2023, 5, 1, 13, 10)
