"""
Test configuration: repo root on sys.path, live-DB guard, temp DB per test.

Every test runs with TIMEBUDGET_HOME and TIMEBUDGET_DB pointing into its own
tmp_path, and with the cached store dropped, so nothing leaks between tests
or touches ~/.timebudget.
"""

import sqlite3
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from timebudget.state_store import StateStore, reset_store  # noqa: E402

# =============================================================================
# DETERMINISM GUARD: Block live database access
# =============================================================================

HOME_DB_ABSOLUTE = Path.home() / ".timebudget" / "data" / "timebudget.db"
_original_sqlite_connect = sqlite3.connect


def _guarded_sqlite_connect(database, *args, **kwargs):
    """Intercept sqlite3.connect to block the live DB."""
    if str(database) == str(HOME_DB_ABSOLUTE) or ".timebudget/data/timebudget.db" in str(
        database
    ):
        raise RuntimeError(
            f"DETERMINISM VIOLATION: Test attempted to access live DB at {database}.\n"
            "Use the `store` fixture or tests/fixtures/fixture_db.py."
        )
    return _original_sqlite_connect(database, *args, **kwargs)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point every path at tmp_path and guard the live DB."""
    monkeypatch.setattr(sqlite3, "connect", _guarded_sqlite_connect)
    monkeypatch.setenv("TIMEBUDGET_HOME", str(tmp_path / "home"))
    monkeypatch.setenv("TIMEBUDGET_DB", str(tmp_path / "test.db"))
    for var in ("TIMEBUDGET_DAY_START", "TIMEBUDGET_DAY_END"):
        monkeypatch.delenv(var, raising=False)
    reset_store()
    yield
    reset_store()


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "test.db"


@pytest.fixture
def store(db_path) -> StateStore:
    """Fresh, converged store on the per-test DB."""
    return StateStore(db_path)


@pytest.fixture
def allocations(store):
    from timebudget.budget import AllocationStore

    return AllocationStore(store)


@pytest.fixture
def preferences(store):
    from timebudget.budget import PreferenceManager

    return PreferenceManager(store)


@pytest.fixture
def templates(allocations):
    from timebudget.budget import TemplateManager

    return TemplateManager(allocations)


# =============================================================================
# FIXTURE DB FOR INTEGRATION TESTS
# =============================================================================


@pytest.fixture
def fixture_db_path(tmp_path):
    """Seeded DB (see tests/fixtures/fixture_db.py)."""
    from tests.fixtures.fixture_db import create_fixture_db

    path = tmp_path / "fixture_test.db"
    conn = create_fixture_db(path)
    conn.close()
    return path
