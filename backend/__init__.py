"""Shared constants for backend modules."""

from __future__ import annotations

from pathlib import Path

# Path to the SQLite database used when no explicit path is supplied
DEFAULT_DB_PATH = (
    Path(__file__).resolve().parent.parent / "data" / "chains.db"
)

# Schema applied by :func:`backend.db_io.init_database`
SCHEMA_PATH = Path(__file__).resolve().parent.parent / "data" / "chain_schema.sql"

CHAIN_CATEGORIES = (
    "daily-living",
    "hygiene",
    "dressing",
    "eating",
    "social-skills",
    "academic",
    "play",
    "communication",
    "custom",
)

CHAINING_METHODS = ("forward", "backward", "total-task")

# Every status accepted while recording a live session
STEP_STATUSES = ("independent", "prompted", "skipped", "not-attempted")

# Statuses written to ``session_step_results``.  ``skipped`` is stored as
# ``not-attempted``.
PERSISTED_STEP_STATUSES = ("independent", "prompted", "not-attempted")

# Number of sessions returned by ``get_chain_sessions`` by default
DEFAULT_SESSION_LIMIT = 50

# Seconds between timer ticks
TIMER_TICK_INTERVAL = 1.0

__all__ = [
    "DEFAULT_DB_PATH",
    "SCHEMA_PATH",
    "CHAIN_CATEGORIES",
    "CHAINING_METHODS",
    "STEP_STATUSES",
    "PERSISTED_STEP_STATUSES",
    "DEFAULT_SESSION_LIMIT",
    "TIMER_TICK_INTERVAL",
]
