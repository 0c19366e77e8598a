"""SQLite-backed store for chains, their steps and templates.

A :class:`ChainStore` is the persistence collaborator handed to the
editing and training code.  It carries its own database path and its own
change listeners, so several independent stores can coexist (one per
database or per test).
"""

from __future__ import annotations

import copy
import itertools
import logging
import sqlite3
import time
from pathlib import Path

from backend import CHAIN_CATEGORIES, CHAINING_METHODS, DEFAULT_DB_PATH, DEFAULT_SESSION_LIMIT
from backend import sessions
from backend.chaining import apply_target
from backend.errors import (
    ChainNotFoundError,
    TemplateNotFoundError,
    ValidationError,
    store_errors,
)
from backend.utils import new_id

# Chain fields that ``save_chain`` may update besides ``steps``
_CHAIN_FIELDS = (
    "title",
    "description",
    "category",
    "chaining_method",
    "is_active",
    "is_template",
    "total_sessions",
)
_BOOL_FIELDS = {"is_active", "is_template"}

_STEP_COLUMNS = (
    "id, title, description, position, is_completed, is_target, "
    "estimated_time, actual_time, has_timer, created_at, updated_at"
)
_CHAIN_COLUMNS = (
    "id, user_id, title, description, category, chaining_method, "
    "is_active, is_template, total_sessions, created_at, updated_at"
)


def _check_choice(field: str, value) -> None:
    if field == "category" and value not in CHAIN_CATEGORIES:
        raise ValidationError(f"Unknown category '{value}'")
    if field == "chaining_method" and value not in CHAINING_METHODS:
        raise ValidationError(f"Unknown chaining method '{value}'")


class ChainStore:
    """Load, save and watch chains stored in ``db_path``."""

    def __init__(self, db_path: Path = DEFAULT_DB_PATH):
        self.db_path = Path(db_path)
        self._tokens = itertools.count(1)
        self._user_listeners: dict[str, dict[int, object]] = {}
        self._chain_listeners: dict[str, dict[int, object]] = {}

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.db_path))

    # ------------------------------------------------------------------
    # Row helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _load_steps(cursor: sqlite3.Cursor, chain_id: str) -> list[dict]:
        cursor.execute(
            f"SELECT {_STEP_COLUMNS} FROM chain_steps WHERE chain_id = ? ORDER BY position",
            (chain_id,),
        )
        steps = []
        for (
            step_id,
            title,
            desc,
            position,
            completed,
            target,
            estimated,
            actual,
            has_timer,
            created,
            updated,
        ) in cursor.fetchall():
            steps.append(
                {
                    "id": step_id,
                    "title": title,
                    "description": desc,
                    "order": position,
                    "is_completed": bool(completed),
                    "is_target": bool(target),
                    "estimated_time": estimated,
                    "actual_time": actual,
                    "has_timer": bool(has_timer),
                    "created_at": created,
                    "updated_at": updated,
                }
            )
        return steps

    @staticmethod
    def _write_steps(cursor: sqlite3.Cursor, chain_id: str, steps: list[dict]) -> None:
        """Replace the stored steps of ``chain_id`` with ``steps``.

        Positions are assigned from the order of ``steps`` (sorted by their
        ``order`` key) so the stored sequence is always contiguous.
        """

        cursor.execute("DELETE FROM chain_steps WHERE chain_id = ?", (chain_id,))
        now = time.time()
        ordered = sorted(steps, key=lambda s: s.get("order", 0))
        cursor.executemany(
            f"INSERT INTO chain_steps ({_STEP_COLUMNS}, chain_id) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            [
                (
                    step.get("id") or new_id("step"),
                    step.get("title") or "",
                    step.get("description") or "",
                    pos,
                    int(bool(step.get("is_completed"))),
                    int(bool(step.get("is_target"))),
                    step.get("estimated_time"),
                    step.get("actual_time"),
                    int(bool(step.get("has_timer"))),
                    step.get("created_at") or now,
                    step.get("updated_at") or now,
                    chain_id,
                )
                for pos, step in enumerate(ordered, 1)
            ],
        )

    def _row_to_chain(self, cursor: sqlite3.Cursor, row: tuple) -> dict:
        (
            chain_id,
            user_id,
            title,
            desc,
            category,
            method,
            active,
            template,
            total,
            created,
            updated,
        ) = row
        return {
            "id": chain_id,
            "user_id": user_id,
            "title": title,
            "description": desc,
            "category": category,
            "chaining_method": method,
            "steps": self._load_steps(cursor, chain_id),
            "is_active": bool(active),
            "is_template": bool(template),
            "total_sessions": total,
            "created_at": created,
            "updated_at": updated,
        }

    # ------------------------------------------------------------------
    # Chains
    # ------------------------------------------------------------------
    def create_chain(self, user_id: str, chain_data: dict) -> str:
        """Store a new chain owned by ``user_id`` and return its id."""

        if not user_id:
            raise ValidationError("A chain needs an owner")
        if not str(chain_data.get("title") or "").strip():
            raise ValidationError("Chain title cannot be empty")
        category = chain_data.get("category", "custom")
        method = chain_data.get("chaining_method", "forward")
        _check_choice("category", category)
        _check_choice("chaining_method", method)

        chain_id = chain_data.get("id") or new_id()
        now = time.time()
        with store_errors("create a chain"):
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    f"INSERT INTO chains ({_CHAIN_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        chain_id,
                        user_id,
                        chain_data["title"],
                        chain_data.get("description") or "",
                        category,
                        method,
                        int(chain_data.get("is_active", True)),
                        int(chain_data.get("is_template", False)),
                        int(chain_data.get("total_sessions", 0)),
                        now,
                        now,
                    ),
                )
                self._write_steps(cursor, chain_id, chain_data.get("steps", []))
        logging.info("Created chain %s for user %s", chain_id, user_id)
        self._notify(user_id, chain_id)
        return chain_id

    def load_chain(self, chain_id: str) -> dict:
        """Return the chain ``chain_id`` with its steps in order."""

        with store_errors("load a chain"):
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    f"SELECT {_CHAIN_COLUMNS} FROM chains WHERE id = ?", (chain_id,)
                )
                row = cursor.fetchone()
                if row is None:
                    raise ChainNotFoundError(f"Chain '{chain_id}' not found")
                return self._row_to_chain(cursor, row)

    def save_chain(self, chain_id: str, updates: dict) -> None:
        """Apply the partial ``updates`` to ``chain_id``.

        Only the keys present are written.  A ``steps`` key replaces the
        whole step list.
        """

        for field in ("category", "chaining_method"):
            if field in updates:
                _check_choice(field, updates[field])
        if "title" in updates and not str(updates["title"] or "").strip():
            raise ValidationError("Chain title cannot be empty")

        columns = [f for f in _CHAIN_FIELDS if f in updates]
        values = [
            int(bool(updates[f])) if f in _BOOL_FIELDS else updates[f] for f in columns
        ]
        with store_errors("save a chain"):
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT user_id FROM chains WHERE id = ?", (chain_id,))
                row = cursor.fetchone()
                if row is None:
                    raise ChainNotFoundError(f"Chain '{chain_id}' not found")
                user_id = row[0]
                assignments = ", ".join(f"{c} = ?" for c in columns + ["updated_at"])
                cursor.execute(
                    f"UPDATE chains SET {assignments} WHERE id = ?",
                    (*values, time.time(), chain_id),
                )
                if "steps" in updates:
                    self._write_steps(cursor, chain_id, updates["steps"])
        logging.info("Saved chain %s (%s)", chain_id, ", ".join(sorted(updates)) or "touch")
        self._notify(user_id, chain_id)

    def delete_chain(self, chain_id: str) -> None:
        """Delete ``chain_id`` and its steps.  Past sessions are kept."""

        with store_errors("delete a chain"):
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT user_id FROM chains WHERE id = ?", (chain_id,))
                row = cursor.fetchone()
                if row is None:
                    raise ChainNotFoundError(f"Chain '{chain_id}' not found")
                cursor.execute("DELETE FROM chain_steps WHERE chain_id = ?", (chain_id,))
                cursor.execute("DELETE FROM chains WHERE id = ?", (chain_id,))
        logging.info("Deleted chain %s", chain_id)
        self._notify(row[0], chain_id)

    def get_user_chains(self, user_id: str) -> list[dict]:
        """Return every chain owned by ``user_id``, most recently updated first."""

        with store_errors("load chains"):
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    f"SELECT {_CHAIN_COLUMNS} FROM chains WHERE user_id = ? "
                    "ORDER BY updated_at DESC",
                    (user_id,),
                )
                rows = cursor.fetchall()
                return [self._row_to_chain(cursor, row) for row in rows]

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------
    def create_session(self, record: dict) -> str:
        """Persist a finalized session record and return its id."""

        session_id = sessions.create_training_session(record, db_path=self.db_path)
        self._notify(record["user_id"], record["chain_id"])
        return session_id

    def submit_session(self, recorder) -> str:
        """Finalize ``recorder``, store the result and drop its saved progress.

        A recorder can only be submitted once.
        """

        if recorder.submitted:
            raise ValidationError("This training session was already submitted")
        session_id = self.create_session(recorder.finalize())
        recorder.submitted = True
        recorder.clear_recovery_state(recorder.recovery_base)
        return session_id

    def get_chain_sessions(self, chain_id: str, limit: int | None = DEFAULT_SESSION_LIMIT) -> list[dict]:
        return sessions.get_chain_sessions(chain_id, limit=limit, db_path=self.db_path)

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------
    def get_chain_templates(self) -> list[dict]:
        """Return stored templates ordered by category."""

        with store_errors("load templates"):
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    SELECT id, title, description, category, age_range,
                           difficulty, estimated_time
                      FROM chain_templates
                     ORDER BY category, title
                    """
                )
                templates = []
                for tpl_id, title, desc, category, ages, difficulty, est in cursor.fetchall():
                    templates.append(
                        {
                            "id": tpl_id,
                            "title": title,
                            "description": desc,
                            "category": category,
                            "age_range": ages,
                            "difficulty": difficulty,
                            "estimated_time": est,
                            "steps": [],
                        }
                    )
                for tpl in templates:
                    cursor.execute(
                        """
                        SELECT title, description, position
                          FROM chain_template_steps
                         WHERE template_id = ?
                         ORDER BY position
                        """,
                        (tpl["id"],),
                    )
                    tpl["steps"] = [
                        {"title": t, "description": d, "order": p}
                        for t, d, p in cursor.fetchall()
                    ]
                return templates

    def create_chain_from_template(self, user_id: str, template_id: str, **customizations) -> str:
        """Create a chain for ``user_id`` copied from ``template_id``.

        ``customizations`` override any chain field.  The target flag is
        applied according to the resulting chaining method.
        """

        template = next(
            (t for t in self.get_chain_templates() if t["id"] == template_id), None
        )
        if template is None:
            raise TemplateNotFoundError(f"Template '{template_id}' not found")

        now = time.time()
        steps = [
            {
                "id": f"step_{idx}",
                "title": step["title"],
                "description": step["description"],
                "order": idx,
                "is_completed": False,
                "is_target": False,
                "estimated_time": None,
                "actual_time": None,
                "has_timer": False,
                "created_at": now,
                "updated_at": now,
            }
            for idx, step in enumerate(template["steps"], 1)
        ]
        chain_data = {
            "title": template["title"],
            "description": template["description"],
            "category": template["category"],
            "steps": steps,
            "chaining_method": "forward",
            "is_template": False,
            "is_active": True,
            "total_sessions": 0,
        }
        chain_data.update(customizations)
        _check_choice("chaining_method", chain_data["chaining_method"])
        apply_target(chain_data["steps"], chain_data["chaining_method"])
        return self.create_chain(user_id, chain_data)

    # ------------------------------------------------------------------
    # Change listeners
    # ------------------------------------------------------------------
    def subscribe_to_user_chains(self, user_id: str, callback):
        """Call ``callback(chains)`` now and after every change to ``user_id``'s chains.

        Returns a function that removes the listener.
        """

        token = next(self._tokens)
        self._user_listeners.setdefault(user_id, {})[token] = callback
        callback(self.get_user_chains(user_id))

        def unsubscribe() -> None:
            self._user_listeners.get(user_id, {}).pop(token, None)

        return unsubscribe

    def subscribe_to_chain(self, chain_id: str, callback):
        """Call ``callback(chain)`` now and after every change to ``chain_id``.

        ``callback`` receives ``None`` once the chain no longer exists.
        """

        token = next(self._tokens)
        self._chain_listeners.setdefault(chain_id, {})[token] = callback
        callback(self._load_or_none(chain_id))

        def unsubscribe() -> None:
            self._chain_listeners.get(chain_id, {}).pop(token, None)

        return unsubscribe

    def _load_or_none(self, chain_id: str) -> dict | None:
        try:
            return self.load_chain(chain_id)
        except ChainNotFoundError:
            return None

    def _notify(self, user_id: str, chain_id: str) -> None:
        user_listeners = list(self._user_listeners.get(user_id, {}).values())
        if user_listeners:
            chains = self.get_user_chains(user_id)
            for callback in user_listeners:
                callback(copy.deepcopy(chains))
        chain_listeners = list(self._chain_listeners.get(chain_id, {}).values())
        if chain_listeners:
            chain = self._load_or_none(chain_id)
            for callback in chain_listeners:
                callback(copy.deepcopy(chain))
