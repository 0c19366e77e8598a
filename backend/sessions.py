"""Persistence helpers for finished training sessions.

Sessions are written once and never updated.  Step results reference
steps by id only, so editing or removing a step later leaves the history
intact.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from pathlib import Path

from backend import DEFAULT_DB_PATH, DEFAULT_SESSION_LIMIT, PERSISTED_STEP_STATUSES
from backend.errors import NotFoundError, ValidationError, store_errors
from backend.utils import new_id


def validate_session_record(record: dict) -> list[str]:
    """Return a list of validation errors for ``record``."""

    errors = []
    for key in ("chain_id", "user_id", "date"):
        if record.get(key) in (None, ""):
            errors.append(f"Session is missing '{key}'")
    duration = record.get("duration", 0)
    if isinstance(duration, bool) or not isinstance(duration, (int, float)):
        errors.append("Session duration must be a number")
    elif duration < 0:
        errors.append("Session duration cannot be negative")
    for result in record.get("step_results", []):
        if result.get("status") not in PERSISTED_STEP_STATUSES:
            errors.append(
                f"Step '{result.get('step_id')}' has invalid status '{result.get('status')}'"
            )
    return errors


def create_training_session(record: dict, db_path: Path = DEFAULT_DB_PATH) -> str:
    """Persist ``record`` and return the new session id.

    The owning chain's ``total_sessions`` counter is incremented in the
    same transaction.
    """

    errors = validate_session_record(record)
    if errors:
        raise ValidationError("; ".join(errors))

    session_id = new_id()
    with store_errors("create a training session"):
        with sqlite3.connect(str(db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO training_sessions
                    (id, chain_id, user_id, date, duration, notes, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    session_id,
                    record["chain_id"],
                    record["user_id"],
                    record["date"],
                    int(record.get("duration", 0)),
                    record.get("notes") or "",
                    time.time(),
                ),
            )
            cursor.executemany(
                """
                INSERT INTO session_step_results
                    (session_id, step_id, status, attempts, time_spent, notes, position)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        session_id,
                        result["step_id"],
                        result["status"],
                        int(result.get("attempts", 0)),
                        int(result.get("time_spent", 0)),
                        result.get("notes") or "",
                        pos,
                    )
                    for pos, result in enumerate(record.get("step_results", []), 1)
                ],
            )
            cursor.execute(
                "UPDATE chains SET total_sessions = total_sessions + 1 WHERE id = ?",
                (record["chain_id"],),
            )
    logging.info("Created training session %s for chain %s", session_id, record["chain_id"])
    return session_id


def _load_results(cursor: sqlite3.Cursor, session_id: str) -> list[dict]:
    cursor.execute(
        """
        SELECT step_id, status, attempts, time_spent, notes
          FROM session_step_results
         WHERE session_id = ?
         ORDER BY position
        """,
        (session_id,),
    )
    return [
        {
            "step_id": step_id,
            "status": status,
            "attempts": attempts,
            "time_spent": spent,
            "notes": notes,
        }
        for step_id, status, attempts, spent, notes in cursor.fetchall()
    ]


def _row_to_session(cursor: sqlite3.Cursor, row: tuple) -> dict:
    session_id, chain_id, user_id, date, duration, notes, created = row
    return {
        "id": session_id,
        "chain_id": chain_id,
        "user_id": user_id,
        "date": date,
        "step_results": _load_results(cursor, session_id),
        "duration": duration,
        "notes": notes,
        "created_at": created,
    }


_SESSION_COLUMNS = "id, chain_id, user_id, date, duration, notes, created_at"


def get_chain_sessions(
    chain_id: str,
    limit: int | None = DEFAULT_SESSION_LIMIT,
    db_path: Path = DEFAULT_DB_PATH,
) -> list[dict]:
    """Return sessions for ``chain_id``, most recent first."""

    with store_errors("load training sessions"):
        with sqlite3.connect(str(db_path)) as conn:
            cursor = conn.cursor()
            query = (
                f"SELECT {_SESSION_COLUMNS} FROM training_sessions "
                "WHERE chain_id = ? ORDER BY date DESC"
            )
            if limit is not None:
                cursor.execute(query + " LIMIT ?", (chain_id, limit))
            else:
                cursor.execute(query, (chain_id,))
            rows = cursor.fetchall()
            return [_row_to_session(cursor, row) for row in rows]


def get_session_details(session_id: str, db_path: Path = DEFAULT_DB_PATH) -> dict:
    """Return the stored session ``session_id`` with its step results."""

    with store_errors("load a training session"):
        with sqlite3.connect(str(db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_SESSION_COLUMNS} FROM training_sessions WHERE id = ?",
                (session_id,),
            )
            row = cursor.fetchone()
            if row is None:
                raise NotFoundError(f"Session '{session_id}' not found")
            return _row_to_session(cursor, row)
