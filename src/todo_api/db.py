from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Generator

from .errors import StoreError

logger = logging.getLogger(__name__)

# Millisecond resolution so that updated_at moves on quick successive writes.
_NOW_SQL = "(strftime('%Y-%m-%d %H:%M:%f', 'now'))"


@dataclass(frozen=True)
class _Cols:
    table: str = "todos"
    id: str = "id"
    subject: str = "subject"
    description: str = "description"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


COLS = _Cols()


# PUBLIC_INTERFACE
class Database:
    """
    Handle on the sqlite store holding the todos table.

    Each `connect()` opens a short-lived connection which is committed on
    success and always closed. Any sqlite3 failure, or an integer the driver
    cannot bind, surfaces as StoreError.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @property
    def path(self) -> str:
        return self._db_path

    @contextmanager
    def connect(self) -> Generator[sqlite3.Connection, None, None]:
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as exc:
            raise StoreError(f"unable to open store: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except (sqlite3.Error, OverflowError) as exc:
            raise StoreError(str(exc)) from exc
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self.connect() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {COLS.table} (
                    {COLS.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {COLS.subject} TEXT NOT NULL,
                    {COLS.description} TEXT NOT NULL DEFAULT '',
                    {COLS.created_at} TEXT NOT NULL DEFAULT {_NOW_SQL},
                    {COLS.updated_at} TEXT NOT NULL DEFAULT {_NOW_SQL}
                )
                """
            )
            conn.execute(
                f"""
                CREATE TRIGGER IF NOT EXISTS trg_{COLS.table}_{COLS.updated_at}
                AFTER UPDATE OF {COLS.subject}, {COLS.description} ON {COLS.table}
                BEGIN
                    UPDATE {COLS.table} SET {COLS.updated_at} = {_NOW_SQL}
                    WHERE {COLS.id} = NEW.{COLS.id};
                END
                """
            )
        logger.debug("Store ready at %s", self._db_path)
