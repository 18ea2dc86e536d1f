from __future__ import annotations

import os
from pathlib import Path

APP_ENV_HOME = "TIMEBUDGET_HOME"
APP_ENV_DB = "TIMEBUDGET_DB"


def app_home() -> Path:
    """
    User-writable home for the time budget engine.
    Override with TIMEBUDGET_HOME.
    """
    if os.environ.get(APP_ENV_HOME):
        return Path(os.environ[APP_ENV_HOME]).expanduser().resolve()
    return (Path.home() / ".timebudget").resolve()


def data_dir() -> Path:
    d = app_home() / "data"
    d.mkdir(parents=True, exist_ok=True)
    return d


def db_path() -> Path:
    """
    Canonical DB path for timebudget.

    Resolution order:
    1. TIMEBUDGET_DB env var (explicit override)
    2. ~/.timebudget/data/timebudget.db (default)
    """
    if os.environ.get(APP_ENV_DB):
        return Path(os.environ[APP_ENV_DB]).expanduser().resolve()
    return data_dir() / "timebudget.db"


def settings_path() -> Path:
    """Optional YAML settings file (day window defaults)."""
    return app_home() / "config" / "budget.yaml"
