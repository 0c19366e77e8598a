from __future__ import annotations

# Convenience imports so callers can use ``from core import ...`` for the
# public pieces of the chain tracker.

from backend import (
    CHAIN_CATEGORIES,
    CHAINING_METHODS,
    DEFAULT_DB_PATH,
    DEFAULT_SESSION_LIMIT,
    PERSISTED_STEP_STATUSES,
    SCHEMA_PATH,
    STEP_STATUSES,
    TIMER_TICK_INTERVAL,
)
from backend.chain_editor import ChainEditor
from backend.chaining import apply_target, chain_progress, select_target_step
from backend.chains import ChainStore
from backend.db_io import init_database
from backend.errors import (
    ChainNotFoundError,
    NotFoundError,
    StepNotFoundError,
    StoreError,
    TemplateNotFoundError,
    ValidationError,
)
from backend.steps import StepSequence
from backend.timer import SessionTimer
from backend.training_session import TrainingSessionRecorder, session_duration_minutes
from backend.utils import format_time, parse_time

__all__ = [
    "CHAIN_CATEGORIES",
    "CHAINING_METHODS",
    "DEFAULT_DB_PATH",
    "DEFAULT_SESSION_LIMIT",
    "PERSISTED_STEP_STATUSES",
    "SCHEMA_PATH",
    "STEP_STATUSES",
    "TIMER_TICK_INTERVAL",
    "ChainEditor",
    "ChainStore",
    "StepSequence",
    "SessionTimer",
    "TrainingSessionRecorder",
    "ChainNotFoundError",
    "NotFoundError",
    "StepNotFoundError",
    "StoreError",
    "TemplateNotFoundError",
    "ValidationError",
    "apply_target",
    "chain_progress",
    "select_target_step",
    "session_duration_minutes",
    "init_database",
    "format_time",
    "parse_time",
]
