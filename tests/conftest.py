import os
import sqlite3
import sys
from pathlib import Path

import pytest

# Kivy parses sys.argv on import unless told otherwise, which clashes with
# pytest's own command line options.
os.environ.setdefault("KIVY_NO_ARGS", "1")
os.environ.setdefault("KIVY_NO_CONSOLELOG", "1")
os.environ.setdefault("KIVY_NO_FILELOG", "1")

sys.path.append(str(Path(__file__).resolve().parents[1]))

from backend import settings
from backend.chains import ChainStore
from backend.db_io import init_database


class FakeWallClock:
    """Callable returning a controllable epoch time."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeClockEvent:
    def __init__(self, callback, interval):
        self.callback = callback
        self.interval = interval
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeClock:
    """Records interval schedules instead of running them."""

    def __init__(self):
        self.events: list[FakeClockEvent] = []

    def schedule_interval(self, callback, interval):
        event = FakeClockEvent(callback, interval)
        self.events.append(event)
        return event

    def active_events(self) -> list[FakeClockEvent]:
        return [e for e in self.events if not e.cancelled]


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep settings reads and writes inside the test's temp directory."""
    monkeypatch.setattr(settings, "SETTINGS_PATH", tmp_path / "settings.json")
    settings.clear_cache()
    yield
    settings.clear_cache()


@pytest.fixture
def wall_clock() -> FakeWallClock:
    return FakeWallClock()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sample_db(tmp_path: Path) -> Path:
    """Create a temporary database holding one three-step 'Brushing Teeth' chain."""
    db_path = init_database(tmp_path / "chains.db")

    conn = sqlite3.connect(db_path)
    conn.execute(
        """
        INSERT INTO chains
            (id, user_id, title, description, category, chaining_method,
             is_active, is_template, total_sessions, created_at, updated_at)
        VALUES ('chain-1', 'user-1', 'Brushing Teeth', 'Morning routine',
                'hygiene', 'forward', 1, 0, 0, 1.0, 1.0)
        """
    )
    conn.executemany(
        """
        INSERT INTO chain_steps
            (chain_id, id, title, description, position, is_completed,
             is_target, has_timer, created_at, updated_at)
        VALUES ('chain-1', ?, ?, '', ?, 0, ?, 0, 1.0, 1.0)
        """,
        [
            ("s1", "Get toothbrush", 1, 1),
            ("s2", "Apply toothpaste", 2, 0),
            ("s3", "Brush teeth", 3, 0),
        ],
    )
    conn.commit()
    conn.close()
    return db_path


@pytest.fixture
def store(sample_db: Path) -> ChainStore:
    return ChainStore(sample_db)


@pytest.fixture
def sample_chain(store: ChainStore) -> dict:
    return store.load_chain("chain-1")
