"""Setup, validation and export helpers for the chain database."""
from __future__ import annotations

from pathlib import Path
import json
import sqlite3
import time
import logging
from typing import Any, Dict, List, Tuple

from backend import DEFAULT_DB_PATH, SCHEMA_PATH
from backend.templates import DEFAULT_CHAIN_TEMPLATES

# Minimal set of tables expected to exist in any valid chain database.
REQUIRED_TABLES = [
    "chains",
    "chain_steps",
    "training_sessions",
    "session_step_results",
    "chain_templates",
]


def init_database(
    db_path: Path = DEFAULT_DB_PATH,
    *,
    schema_path: Path = SCHEMA_PATH,
    seed_templates: bool = True,
) -> Path:
    """Create the tables in ``db_path`` and seed the built-in templates.

    Safe to call on an existing database; tables and templates that are
    already present are left untouched.
    """

    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with open(schema_path, "r", encoding="utf-8") as fh:
        schema = fh.read()
    with sqlite3.connect(str(db_path)) as conn:
        conn.executescript(schema)
        if seed_templates:
            seed_chain_templates(conn)
    logging.info("Initialised chain database at %s", db_path)
    return db_path


def seed_chain_templates(conn: sqlite3.Connection, templates: list[dict] | None = None) -> int:
    """Insert ``templates`` that are not yet stored; return how many were added."""

    added = 0
    cursor = conn.cursor()
    for tpl in templates if templates is not None else DEFAULT_CHAIN_TEMPLATES:
        cursor.execute("SELECT 1 FROM chain_templates WHERE id = ?", (tpl["id"],))
        if cursor.fetchone():
            continue
        cursor.execute(
            """
            INSERT INTO chain_templates
                (id, title, description, category, age_range, difficulty, estimated_time)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                tpl["id"],
                tpl["title"],
                tpl.get("description", ""),
                tpl["category"],
                tpl.get("age_range", ""),
                tpl.get("difficulty", "beginner"),
                tpl.get("estimated_time", 0),
            ),
        )
        cursor.executemany(
            """
            INSERT INTO chain_template_steps (template_id, title, description, position)
            VALUES (?, ?, ?, ?)
            """,
            [
                (tpl["id"], step["title"], step.get("description", ""), pos)
                for pos, step in enumerate(
                    sorted(tpl["steps"], key=lambda s: s.get("order", 0)), 1
                )
            ],
        )
        added += 1
    return added


def sqlite_to_json(db_path: Path) -> Dict[str, List[Dict[str, Any]]]:
    """Return a JSON-serialisable representation of ``db_path``.

    Every user table is included, each row converted to a mapping of
    column names to values.
    """
    result: Dict[str, List[Dict[str, Any]]] = {}
    with sqlite3.connect(str(db_path)) as conn:
        conn.row_factory = sqlite3.Row
        cur = conn.cursor()
        cur.execute("""SELECT name FROM sqlite_master \
                       WHERE type='table' AND name NOT LIKE 'sqlite_%'""")
        tables = [r[0] for r in cur.fetchall()]
        for table in tables:
            cur.execute(f"SELECT * FROM {table}")
            rows = [dict(row) for row in cur.fetchall()]
            result[table] = rows
    return result


def export_database_json(db_path: Path, dest_dir: Path) -> Path:
    """Export ``db_path`` to ``dest_dir`` as a JSON file.

    Returns the absolute path to the exported document. File-system
    problems are logged and re-raised so the caller can report the
    specific failure.
    """

    data = sqlite_to_json(db_path)
    filename = f"chains_{int(time.time())}.json"
    dest = (Path(dest_dir) / filename).resolve()
    try:
        with dest.open("w", encoding="utf-8") as fh:
            json.dump(data, fh)
    except FileNotFoundError:
        logging.exception("Destination not found for JSON export: %s", dest)
        raise
    except PermissionError:
        logging.exception("Permission denied writing JSON export to %s", dest)
        raise
    except OSError:
        logging.exception("OS error exporting JSON database to %s", dest)
        raise
    logging.info("Exported database JSON to %s", dest)
    return dest


def validate_database(db_path: Path) -> Tuple[bool, List[str]]:
    """Run validation checks on ``db_path``.

    Ensures all tables listed in :data:`REQUIRED_TABLES` exist. The
    returned tuple holds a success flag and a list of error messages.
    """
    errors: List[str] = []
    try:
        with sqlite3.connect(str(db_path)) as conn:
            cur = conn.cursor()
            for table in REQUIRED_TABLES:
                cur.execute(
                    "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
                    (table,),
                )
                if not cur.fetchone():
                    errors.append(f"missing table: {table}")
    except sqlite3.Error as exc:
        errors.append(str(exc))
    return (len(errors) == 0, errors)
