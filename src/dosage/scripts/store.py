# File: dosage/scripts/store.py
"""Relational store used by the import and export paths.

``SqliteStore`` is the bundled implementation. sqlite has no stored
procedures, so named procedures are Python callables that receive the open
connection.
"""
from __future__ import annotations

import logging
import os
import sqlite3
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, Protocol, Sequence

import pandas as pd

from dosage.scripts import settings
from dosage.scripts.errors import StoreError

logger = logging.getLogger(__name__)

sqlite3.register_adapter(Decimal, str)

Procedure = Callable[[sqlite3.Connection], None]

# sqlite messages that mean the database could not be reached, not that the
# statement was wrong
_COMMUNICATION_HINTS = ("unable to open", "database is locked", "disk i/o error", "not a database")


class Store(Protocol):
    dialect: str

    def execute(self, sql: str) -> None: ...

    def bulk_load(self, table: str, frame: pd.DataFrame) -> int: ...

    def truncate(self, table: str) -> None: ...

    def call_procedure(self, name: str) -> None: ...

    def query(self, sql: str, params: Sequence = ()) -> pd.DataFrame: ...


def drop_biz_tables(conn: sqlite3.Connection) -> None:
    names = [r[0] for r in conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name LIKE ? ESCAPE '\\'",
        (settings.TABLE_PREFIX.replace("_", "\\_") + "%",),
    )]
    for name in names:
        conn.execute(f'DROP TABLE "{name}"')


def record_import_run(conn: sqlite3.Connection) -> None:
    conn.execute("CREATE TABLE IF NOT EXISTS ImportRun (Id INTEGER PRIMARY KEY AUTOINCREMENT, CompletedAt TEXT)")
    conn.execute("INSERT INTO ImportRun (CompletedAt) VALUES (?)", (datetime.now().isoformat(timespec="seconds"),))


DEFAULT_PROCEDURES: Dict[str, Procedure] = {
    settings.CLEAN_TEMP_PROCEDURE: drop_biz_tables,
    settings.POST_LOAD_PROCEDURE: record_import_run,
}


def _wrap(exc: Exception, action: str) -> StoreError:
    message = str(exc)
    communication = any(hint in message.lower() for hint in _COMMUNICATION_HINTS)
    return StoreError(f"{action} failed: {message}", communication=communication)


class SqliteStore:
    dialect = "sqlite"

    def __init__(self, path: str | None = None, procedures: Dict[str, Procedure] | None = None):
        self.path = path or settings.DB_PATH
        self.procedures = dict(DEFAULT_PROCEDURES)
        self.procedures.update(procedures or {})
        self._conn: sqlite3.Connection | None = None

    def __enter__(self) -> "SqliteStore":
        self.connect()
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def connect(self) -> sqlite3.Connection:
        if self._conn is None:
            if self.path != ":memory:":
                os.makedirs(os.path.dirname(os.path.abspath(self.path)), exist_ok=True)
            try:
                self._conn = sqlite3.connect(self.path)
            except sqlite3.Error as exc:
                raise _wrap(exc, "connect") from exc
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def execute(self, sql: str) -> None:
        conn = self.connect()
        try:
            conn.execute(sql)
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise _wrap(exc, "execute") from exc

    def bulk_load(self, table: str, frame: pd.DataFrame) -> int:
        conn = self.connect()
        try:
            frame.to_sql(table, conn, if_exists="append", index=False)
            conn.commit()
        except (sqlite3.Error, pd.errors.DatabaseError) as exc:
            conn.rollback()
            raise _wrap(exc, f"bulk load into {table}") from exc
        logger.info("Loaded %d rows into %s", len(frame), table)
        return len(frame)

    def truncate(self, table: str) -> None:
        self.execute(f'DELETE FROM "{table}"')

    def call_procedure(self, name: str) -> None:
        proc = self.procedures.get(name)
        if proc is None:
            raise StoreError(f"Could not find stored procedure '{name}'")
        logger.info("Calling procedure %s", name)
        conn = self.connect()
        try:
            proc(conn)
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise _wrap(exc, f"procedure {name}") from exc

    def query(self, sql: str, params: Sequence = ()) -> pd.DataFrame:
        conn = self.connect()
        try:
            return pd.read_sql_query(sql, conn, params=list(params))
        except (sqlite3.Error, pd.errors.DatabaseError) as exc:
            raise _wrap(exc, "query") from exc

    def table_exists(self, table: str) -> bool:
        row = self.connect().execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?", (table,)
        ).fetchone()
        return row is not None
