"""
SQL text builders for the store and the schema engine.

SQLite cannot bind identifiers, so table, column and index names are
interpolated here after a whitelist check. Values always travel as ?
parameters. WHERE clauses passed in are written by this package, never
by callers outside it.
"""

# ruff: noqa: S608 (identifiers pass _ident() before interpolation)

from __future__ import annotations

import re

_IDENT_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


def _ident(name: str) -> str:
    if not _IDENT_RE.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


def _column_list(columns: list[str]) -> str:
    return ", ".join(_ident(c) for c in columns)


def _placeholders(count: int) -> str:
    return ", ".join("?" * count)


# ==================== Metadata ====================


def pragma_table_info(table: str) -> str:
    return f"PRAGMA table_info([{_ident(table)}])"


def pragma_user_version_set(version: int) -> str:
    if not isinstance(version, int) or version < 0:
        raise ValueError(f"Invalid schema version: {version!r}")
    return f"PRAGMA user_version = {version}"


# ==================== Rows ====================


def select(table: str, where: str | None = None) -> str:
    """SELECT * from one table; *where* uses ? for every value."""
    sql = f"SELECT * FROM {_ident(table)}"
    return f"{sql} WHERE {where}" if where else sql


def select_count(table: str, where: str | None = None) -> str:
    sql = f"SELECT COUNT(*) AS c FROM {_ident(table)}"
    return f"{sql} WHERE {where}" if where else sql


def insert(table: str, columns: list[str]) -> str:
    """Plain INSERT: a duplicate key is an error, never a silent replace."""
    return (
        f"INSERT INTO {_ident(table)} ({_column_list(columns)}) "
        f"VALUES ({_placeholders(len(columns))})"
    )


def upsert(table: str, columns: list[str], conflict_column: str) -> str:
    """INSERT that overwrites every non-key column when *conflict_column* collides."""
    key = _ident(conflict_column)
    assignments = ", ".join(f"{c} = excluded.{c}" for c in columns if c != key)
    return f"{insert(table, columns)} ON CONFLICT({key}) DO UPDATE SET {assignments}"


def update(table: str, set_columns: list[str], where: str = "id = ?") -> str:
    assignments = ", ".join(f"{_ident(c)} = ?" for c in set_columns)
    return f"UPDATE {_ident(table)} SET {assignments} WHERE {where}"


def delete(table: str, where: str = "id = ?") -> str:
    return f"DELETE FROM {_ident(table)} WHERE {where}"


def copy_column(table: str, target: str, source: str, where: str) -> str:
    """Backfill *target* from *source* for rows matching *where*."""
    return f"UPDATE [{_ident(table)}] SET [{_ident(target)}] = [{_ident(source)}] WHERE {where}"


# ==================== Schema ====================


def create_table(table: str, column_defs: list[tuple[str, str]]) -> str:
    """CREATE TABLE IF NOT EXISTS from (name, ddl) pairs; ddl comes from schema.py."""
    body = ",\n".join(f"    {_ident(name)} {ddl}" for name, ddl in column_defs)
    return f"CREATE TABLE IF NOT EXISTS [{_ident(table)}] (\n{body}\n)"


def alter_add_column(table: str, column: str, column_ddl: str) -> str:
    return f"ALTER TABLE [{_ident(table)}] ADD COLUMN [{_ident(column)}] {column_ddl}"


def drop_table(table: str) -> str:
    return f"DROP TABLE IF EXISTS [{_ident(table)}]"


def create_index(name: str, table: str, columns: str, where: str | None = None) -> str:
    """Partial index when *where* is given; *columns* comes from schema.py."""
    sql = f"CREATE INDEX IF NOT EXISTS [{_ident(name)}] ON [{_ident(table)}]({columns})"
    return f"{sql} WHERE {where}" if where else sql
