"""
Schema engine - bring a SQLite file in line with timebudget.schema.

  converge(conn)      additive: creates missing tables, columns and indexes,
                      backfills data, stamps PRAGMA user_version
  create_fresh(conn)  destructive: drops every table and rebuilds (tests only)

converge() never drops or narrows anything, so it is safe on a live DB and
safe to run on every startup.
"""

import logging
import re
import sqlite3

from timebudget import safe_sql, schema

logger = logging.getLogger(__name__)

# CREATE TABLE clauses that ALTER TABLE ADD COLUMN refuses
_NOT_ADDABLE = [
    re.compile(r"\bPRIMARY\s+KEY\b", re.IGNORECASE),
    re.compile(r"\bAUTOINCREMENT\b", re.IGNORECASE),
    re.compile(r"\bUNIQUE\b", re.IGNORECASE),
    re.compile(r"\bREFERENCES\s+\w+\s*\([^)]*\)", re.IGNORECASE),
    # one level of nesting covers CHECK (x IN (...))
    re.compile(r"\bCHECK\s*\((?:[^()]|\([^()]*\))*\)", re.IGNORECASE),
    # non-constant default such as (datetime('now'))
    re.compile(r"\bDEFAULT\s*\(.*\)", re.IGNORECASE),
]


def make_alter_safe(col_def: str) -> str:
    """
    Reduce a CREATE TABLE column definition to one ADD COLUMN accepts.

    A NOT NULL column left without a default gets DEFAULT '' so existing
    rows have a value.
    """
    ddl = col_def
    for pattern in _NOT_ADDABLE:
        ddl = pattern.sub("", ddl)
    ddl = " ".join(ddl.split())

    if re.search(r"\bNOT\s+NULL\b", ddl, re.IGNORECASE) and not re.search(
        r"\bDEFAULT\b", ddl, re.IGNORECASE
    ):
        ddl += " DEFAULT ''"
    return ddl


def _names(conn: sqlite3.Connection, kind: str) -> set[str]:
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type = ? AND name NOT LIKE 'sqlite_%'", (kind,)
    ).fetchall()
    return {row[0] for row in rows}


def _columns(conn: sqlite3.Connection, table: str) -> set[str]:
    return {row[1] for row in conn.execute(safe_sql.pragma_table_info(table)).fetchall()}


def _attempt(conn: sqlite3.Connection, sql: str, what: str, results: dict) -> bool:
    """Run one DDL/DML step; failures are collected, not raised."""
    try:
        conn.execute(sql)
    except sqlite3.OperationalError as e:
        results["errors"].append(f"{what}: {e}")
        logger.warning("schema_engine: %s failed: %s", what, e)
        return False
    return True


def _create_indexes(conn: sqlite3.Connection, results: dict) -> None:
    tables = _names(conn, "table")
    existing = _names(conn, "index")
    for name, table, columns, where in schema.INDEXES:
        if name in existing or table not in tables:
            continue
        if _attempt(conn, safe_sql.create_index(name, table, columns, where), name, results):
            results["indexes_created"].append(name)


def converge(conn: sqlite3.Connection) -> dict:
    """
    Add whatever schema.py declares that the DB lacks.

    Returns {tables_created, columns_added, indexes_created,
    data_migrations_run, errors, schema_version} for startup logging.
    """
    results = {
        "tables_created": [],
        "columns_added": [],
        "indexes_created": [],
        "data_migrations_run": [],
        "errors": [],
    }

    tables = _names(conn, "table")
    for table, table_def in schema.TABLES.items():
        if table not in tables:
            sql = safe_sql.create_table(table, table_def["columns"])
            if _attempt(conn, sql, f"create {table}", results):
                results["tables_created"].append(table)
                logger.info("schema_engine: created table %s", table)
            continue

        present = _columns(conn, table)
        for column, ddl in table_def["columns"]:
            if column in present:
                continue
            sql = safe_sql.alter_add_column(table, column, make_alter_safe(ddl))
            if _attempt(conn, sql, f"add {table}.{column}", results):
                results["columns_added"].append(f"{table}.{column}")
                logger.info("schema_engine: added column %s.%s", table, column)

    _create_indexes(conn, results)

    for table, target, source, where in schema.DATA_MIGRATIONS:
        if not {target, source} <= _columns(conn, table):
            continue
        cursor = conn.execute(safe_sql.copy_column(table, target, source, where))
        if cursor.rowcount > 0:
            results["data_migrations_run"].append(
                f"{table}.{target} <- {source} ({cursor.rowcount} rows)"
            )

    conn.execute(safe_sql.pragma_user_version_set(schema.SCHEMA_VERSION))
    results["schema_version"] = schema.SCHEMA_VERSION
    return results


def create_fresh(conn: sqlite3.Connection) -> dict:
    """Drop every table, then build the declared schema from nothing."""
    results = {"tables_created": [], "indexes_created": [], "errors": []}

    for table in _names(conn, "table"):
        conn.execute(safe_sql.drop_table(table))

    for table, table_def in schema.TABLES.items():
        sql = safe_sql.create_table(table, table_def["columns"])
        if _attempt(conn, sql, f"create {table}", results):
            results["tables_created"].append(table)

    _create_indexes(conn, results)

    conn.execute(safe_sql.pragma_user_version_set(schema.SCHEMA_VERSION))
    results["schema_version"] = schema.SCHEMA_VERSION
    return results
