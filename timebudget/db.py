"""
Centralized Database Access for the time budget engine.

Single source of truth for:
- DB path resolution
- Connection factory
- Schema convergence (delegated to schema_engine)
- Startup validation

ALL code must use this module for DB access. No direct sqlite3.connect() elsewhere.

Schema is declared in timebudget/schema. Convergence logic lives in
timebudget/schema_engine. This module wires them together.
"""

import logging
import re
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from timebudget import paths, safe_sql, schema, schema_engine

logger = logging.getLogger(__name__)

# ============================================================
# SQL IDENTIFIER VALIDATION
# ============================================================

_SAFE_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


def validate_identifier(name: str) -> str:
    """Validate that *name* is a safe SQL identifier (table or column name).

    Returns the name unchanged if valid; raises ``ValueError`` otherwise.
    """
    if not _SAFE_IDENTIFIER_RE.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


# ============================================================
# DB PATH RESOLUTION
# ============================================================


def get_db_path() -> Path:
    """
    Get the canonical DB path.

    Resolution order:
    1. TIMEBUDGET_DB env var (explicit override)
    2. ~/.timebudget/data/timebudget.db (default via paths.db_path())
    """
    return paths.db_path()


def get_db_path_str() -> str:
    """Get DB path as string for sqlite3.connect()."""
    return str(get_db_path())


# ============================================================
# CONNECTION FACTORY
# ============================================================


def connect(db_path: str | Path | None = None, timeout: float = 30.0) -> sqlite3.Connection:
    """Open a connection with row factory and FK enforcement.

    isolation_level=None puts the connection in autocommit mode so callers
    control transactions explicitly with BEGIN / COMMIT / ROLLBACK.
    """
    target = Path(db_path) if db_path else get_db_path()
    target.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(target), timeout=timeout, isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


@contextmanager
def get_connection(db_path: str | Path | None = None) -> Generator[sqlite3.Connection, None, None]:
    """
    Get a database connection with proper setup.

    Usage:
        with get_connection() as conn:
            conn.execute(...)
    """
    conn = connect(db_path)
    try:
        yield conn
    finally:
        conn.close()


# ============================================================
# SCHEMA INTROSPECTION
# ============================================================


def get_table_columns(conn: sqlite3.Connection, table: str) -> set[str]:
    """Get existing column names for a table."""
    validate_identifier(table)
    try:
        cursor = conn.execute(safe_sql.pragma_table_info(table))
        return {row[1] for row in cursor.fetchall()}
    except sqlite3.OperationalError:
        return set()


def table_exists(conn: sqlite3.Connection, table: str) -> bool:
    """Check if a table exists."""
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table' AND name=?", (table,))
    return cursor.fetchone() is not None


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Get current schema version from PRAGMA user_version."""
    cursor = conn.execute("PRAGMA user_version")
    return cursor.fetchone()[0]


# ============================================================
# SCHEMA CONVERGENCE — delegates to schema_engine
# ============================================================


def run_migrations(conn: sqlite3.Connection) -> dict:
    """
    Converge the database schema to match timebudget/schema declarations.

    Runs inside one transaction so a half-converged schema is never left behind.
    Returns a results dict for logging.
    """
    previous_version = get_schema_version(conn)
    conn.execute("BEGIN IMMEDIATE")
    try:
        results = schema_engine.converge(conn)
    except sqlite3.Error:
        conn.execute("ROLLBACK")
        raise
    conn.execute("COMMIT")
    results["previous_version"] = previous_version
    return results


# ============================================================
# STARTUP ENTRY POINT
# ============================================================

_converged: set[str] = set()

CRITICAL_TABLES = ("time_allocations", "user_preferences", "time_templates")


def run_startup_migrations(db_path: str | Path | None = None) -> dict:
    """
    Run schema convergence at startup. Safe to call multiple times.
    Logs comprehensive startup info.
    """
    target = Path(db_path) if db_path else get_db_path()
    key = str(target)

    logger.info("Time budget database startup: %s (exists=%s)", target, target.exists())
    logger.info("Target SCHEMA_VERSION: %s", schema.SCHEMA_VERSION)

    with get_connection(target) as conn:
        version_before = get_schema_version(conn)

        if version_before >= schema.SCHEMA_VERSION and key in _converged:
            logger.info("Schema already converged, skipping")
            return {"status": "skipped", "version": version_before}

        results = run_migrations(conn)

        if results.get("tables_created"):
            logger.info("Tables created: %s", results["tables_created"])
        if results.get("columns_added"):
            logger.info("Columns added: %s", results["columns_added"])
        if results.get("indexes_created"):
            logger.info("Indexes created: %d", len(results["indexes_created"]))
        if results.get("data_migrations_run"):
            logger.info("Data migrations: %s", results["data_migrations_run"])
        if results.get("errors"):
            logger.warning("Convergence errors: %s", results["errors"])

        for critical in CRITICAL_TABLES:
            if not table_exists(conn, critical):
                logger.error("MISSING %s", critical)

        logger.info(
            "Schema version %s -> %s", version_before, results.get("schema_version")
        )

    _converged.add(key)
    return results


def ensure_migrations(db_path: str | Path | None = None) -> None:
    """Ensure schema has converged. Called by StateStore and other entry points."""
    target = str(Path(db_path) if db_path else get_db_path())
    if target not in _converged:
        run_startup_migrations(target)


# ============================================================
# DEBUG INFO
# ============================================================


def get_db_info(db_path: str | Path | None = None) -> dict:
    """Get DB info for the health endpoint: path, size, version, table columns."""
    target = Path(db_path) if db_path else get_db_path()
    info = {
        "resolved_db_path": str(target),
        "exists": target.exists(),
        "file_size": None,
        "sqlite_version": sqlite3.sqlite_version,
        "user_version": None,
        "target_schema_version": schema.SCHEMA_VERSION,
        "tables": {},
    }

    if target.exists():
        info["file_size"] = target.stat().st_size

        with get_connection(target) as conn:
            info["user_version"] = get_schema_version(conn)
            for table in CRITICAL_TABLES:
                if table_exists(conn, table):
                    info["tables"][table] = sorted(get_table_columns(conn, table))
                else:
                    info["tables"][table] = None

    return info
