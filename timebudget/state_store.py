"""
State Store - the persistence boundary of the time budget engine.

All components read from and write to this single source of truth.
Nothing is cached in-process; every call goes to SQLite.

Two ways in:
- store.insert/get/update/delete/query/count run one statement each on
  their own autocommit connection.
- store.transaction() yields a Session inside BEGIN IMMEDIATE. The reserved
  lock is held until commit, so a read-validate-write sequence inside it
  cannot interleave with another writer.
"""

import json
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from timebudget import db as db_module
from timebudget import safe_sql

logger = logging.getLogger(__name__)


def _encode(value):
    return json.dumps(value) if isinstance(value, dict | list) else value


class Session:
    """CRUD helpers bound to one open connection."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def insert(self, table: str, data: dict) -> str:
        """Insert a row. Returns ID."""
        db_module.validate_identifier(table)
        columns = list(data.keys())
        for col in columns:
            db_module.validate_identifier(col)
        values = [_encode(v) for v in data.values()]

        self.conn.execute(safe_sql.insert(table, columns), values)
        return data.get("id", "")

    def upsert(self, table: str, data: dict, key: str) -> None:
        """Insert or update on conflict with *key*."""
        db_module.validate_identifier(table)
        columns = list(data.keys())
        for col in columns:
            db_module.validate_identifier(col)
        values = [_encode(v) for v in data.values()]

        self.conn.execute(safe_sql.upsert(table, columns, key), values)

    def get(self, table: str, id: str, id_column: str = "id") -> dict | None:
        """Get a single row by ID."""
        db_module.validate_identifier(table)
        db_module.validate_identifier(id_column)
        sql = safe_sql.select(table, where=f"{id_column} = ?")
        row = self.conn.execute(sql, [id]).fetchone()
        return dict(row) if row else None

    def update(self, table: str, id: str, data: dict) -> bool:
        """Update a row. Returns True if a row matched."""
        if not data:
            return False

        db_module.validate_identifier(table)
        for k in data:
            db_module.validate_identifier(k)
        values = [_encode(v) for v in data.values()]
        values.append(id)

        result = self.conn.execute(safe_sql.update(table, list(data.keys())), values)
        return result.rowcount > 0

    def delete(self, table: str, id: str) -> bool:
        """Delete a row. Returns True if a row was removed."""
        db_module.validate_identifier(table)
        result = self.conn.execute(safe_sql.delete(table), [id])
        return result.rowcount > 0

    def delete_where(self, table: str, where: str, params: list) -> int:
        """Delete all rows matching *where*. Returns count."""
        db_module.validate_identifier(table)
        result = self.conn.execute(safe_sql.delete(table, where=where), params)
        return result.rowcount

    def query(self, sql: str, params: list = None) -> list[dict]:
        """Execute raw query. Returns list of dicts."""
        rows = self.conn.execute(sql, params or []).fetchall()
        return [dict(row) for row in rows]

    def count(self, table: str, where: str = None, params: list = None) -> int:
        """Count rows."""
        db_module.validate_identifier(table)
        row = self.conn.execute(safe_sql.select_count(table, where=where), params or []).fetchone()
        return row["c"] if row else 0


class StateStore:
    """
    SQLite-backed store. Every component connects through here.
    """

    def __init__(self, db_path: str | Path | None = None):
        self.db_path = str(db_path) if db_path else db_module.get_db_path_str()

        logger.info("StateStore initializing with DB: %s", self.db_path)

        # Schema convergence — schema_engine creates/migrates all tables
        db_module.ensure_migrations(self.db_path)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Autocommit session: each statement is its own transaction."""
        conn = db_module.connect(self.db_path)
        try:
            yield Session(conn)
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Unit of work. Commits on clean exit, rolls back on any exception.

        BEGIN IMMEDIATE takes the write lock up front, so concurrent writers
        queue behind this one (up to the connection timeout) instead of
        racing between validation and write.
        """
        conn = db_module.connect(self.db_path)
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield Session(conn)
            except BaseException:
                # SQLite may already have rolled back on its own (e.g. SQLITE_FULL)
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            logger.error("Transaction failed on %s: %s", self.db_path, e)
            raise
        finally:
            conn.close()

    # ==================== CRUD Operations ====================

    def insert(self, table: str, data: dict) -> str:
        with self.session() as s:
            return s.insert(table, data)

    def get(self, table: str, id: str, id_column: str = "id") -> dict | None:
        with self.session() as s:
            return s.get(table, id, id_column)

    def update(self, table: str, id: str, data: dict) -> bool:
        with self.session() as s:
            return s.update(table, id, data)

    def delete(self, table: str, id: str) -> bool:
        with self.session() as s:
            return s.delete(table, id)

    def query(self, sql: str, params: list = None) -> list[dict]:
        with self.session() as s:
            return s.query(sql, params)

    def count(self, table: str, where: str = None, params: list = None) -> int:
        with self.session() as s:
            return s.count(table, where, params)


# Accessor
_store: StateStore | None = None


def get_store(db_path: str | Path | None = None) -> StateStore:
    """Get the process-wide store, creating it on first use."""
    global _store
    if _store is None or (db_path and str(db_path) != _store.db_path):
        _store = StateStore(db_path)
    return _store


def reset_store() -> None:
    """Drop the cached store (tests, or after TIMEBUDGET_DB changes)."""
    global _store
    _store = None
