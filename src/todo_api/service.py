from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from typing import List, Sequence

from .db import COLS, Database
from .errors import TodoNotFoundError
from .models import TodoEntity

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 5

_SELECT_COLS = (
    f"{COLS.id}, {COLS.subject}, {COLS.description}, {COLS.created_at}, {COLS.updated_at}"
)


def _parse_utc(value: str) -> datetime:
    # sqlite stores naive UTC text
    return datetime.fromisoformat(value).replace(tzinfo=timezone.utc)


# PUBLIC_INTERFACE
class TodoService:
    """
    CRUD operations on the todos table.

    All statements are parameterized; the only generated SQL fragment is the
    placeholder list of the IN clause used by `delete_todos`.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    def _row_to_entity(self, row: sqlite3.Row) -> TodoEntity:
        return {
            "id": int(row[COLS.id]),
            "subject": str(row[COLS.subject]),
            "description": str(row[COLS.description] or ""),
            "created_at": _parse_utc(row[COLS.created_at]),
            "updated_at": _parse_utc(row[COLS.updated_at]),
        }

    def _confirm(self, conn: sqlite3.Connection, todo_id: int) -> TodoEntity:
        row = conn.execute(
            f"SELECT {_SELECT_COLS} FROM {COLS.table} WHERE {COLS.id} = ?", (todo_id,)
        ).fetchone()
        if row is None:
            # Removed between the write and the confirm-read.
            raise TodoNotFoundError([todo_id])
        return self._row_to_entity(row)

    def create_todo(self, subject: str, description: str) -> TodoEntity:
        """Insert a todo and read it back to pick up the store-assigned fields."""
        with self._db.connect() as conn:
            cur = conn.execute(
                f"INSERT INTO {COLS.table} ({COLS.subject}, {COLS.description}) VALUES (?, ?)",
                (subject, description),
            )
            todo = self._confirm(conn, int(cur.lastrowid))
        logger.info("Created todo %d", todo["id"])
        return todo

    def read_todos(self, prev_id: int, size: int) -> List[TodoEntity]:
        """
        Return up to `size` todos, newest first.

        A `prev_id` of 0 starts from the newest row; otherwise only rows with an
        id strictly lower than `prev_id` are returned. A non-positive `size`
        falls back to DEFAULT_PAGE_SIZE.
        """
        if size <= 0:
            size = DEFAULT_PAGE_SIZE

        with self._db.connect() as conn:
            if prev_id == 0:
                rows = conn.execute(
                    f"""
                    SELECT {_SELECT_COLS} FROM {COLS.table}
                    ORDER BY {COLS.id} DESC
                    LIMIT ?
                    """,
                    (size,),
                ).fetchall()
            else:
                rows = conn.execute(
                    f"""
                    SELECT {_SELECT_COLS} FROM {COLS.table}
                    WHERE {COLS.id} < ?
                    ORDER BY {COLS.id} DESC
                    LIMIT ?
                    """,
                    (prev_id, size),
                ).fetchall()
            todos = [self._row_to_entity(r) for r in rows]
        logger.debug("Read %d todos (prev_id=%d, size=%d)", len(todos), prev_id, size)
        return todos

    def update_todo(self, todo_id: int, subject: str, description: str) -> TodoEntity:
        """
        Replace subject and description of an existing todo.

        Raises:
            TodoNotFoundError: no row has the given id.
        """
        with self._db.connect() as conn:
            cur = conn.execute(
                f"UPDATE {COLS.table} SET {COLS.subject} = ?, {COLS.description} = ? WHERE {COLS.id} = ?",
                (subject, description, todo_id),
            )
            if cur.rowcount == 0:
                raise TodoNotFoundError([todo_id])
            todo = self._confirm(conn, todo_id)
        logger.info("Updated todo %d", todo_id)
        return todo

    def delete_todos(self, ids: Sequence[int]) -> None:
        """
        Delete every todo whose id is in `ids` with a single statement.

        An empty `ids` is a no-op.

        Raises:
            TodoNotFoundError: none of the ids matched a row.
        """
        if not ids:
            return

        placeholders = ", ".join("?" for _ in ids)
        with self._db.connect() as conn:
            cur = conn.execute(
                f"DELETE FROM {COLS.table} WHERE {COLS.id} IN ({placeholders})",
                tuple(ids),
            )
            if cur.rowcount == 0:
                raise TodoNotFoundError(ids)
        logger.info("Deleted %d todos", cur.rowcount)
