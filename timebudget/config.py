"""
Centralized configuration for the time budget engine.

All values that vary by deployment belong here.
Override via environment variables where marked. The day window defaults
can also come from the optional YAML settings file (see paths.settings_path);
environment variables win over the file.
"""

import logging
import os
from pathlib import Path

import yaml

from timebudget import paths

logger = logging.getLogger(__name__)

# ============================================================
# Day window defaults
# ============================================================

FALLBACK_DAY_START = "06:00"
FALLBACK_DAY_END = "23:00"

# ============================================================
# Logging
# ============================================================

LOG_LEVEL: str = os.environ.get("TIMEBUDGET_LOG_LEVEL", "INFO")
"""Root log level for the API server and CLI."""

LOG_JSON: str | None = os.environ.get("TIMEBUDGET_LOG_JSON")
"""'1' forces JSON logs, '0' forces human logs, unset auto-detects from the TTY."""

# ============================================================
# API
# ============================================================

CORS_ORIGINS: str = os.environ.get("CORS_ORIGINS", "*")
"""Comma-separated CORS origins, '*' in development."""

USER_HEADER: str = os.environ.get("TIMEBUDGET_USER_HEADER", "X-User-Id")
"""Header carrying the auth provider's user identifier."""

CLI_USER: str = os.environ.get("TIMEBUDGET_USER", "local")
"""User identifier the CLI acts as."""


def load_settings(path: str | None = None) -> dict:
    """
    Load the optional YAML settings file.

    Returns an empty dict when the file does not exist.

    Raises:
        yaml.YAMLError if the file is invalid YAML.
        ValueError if the top level is not a mapping.
    """
    settings_file = Path(path) if path else paths.settings_path()
    if not settings_file.exists():
        return {}

    with open(settings_file) as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{settings_file.name} must contain a mapping")
    return data


def default_day_window(path: str | None = None) -> tuple[str, str]:
    """
    Resolve the (start, end) used when a user has no preference row yet.

    Resolution order per bound:
    1. TIMEBUDGET_DAY_START / TIMEBUDGET_DAY_END env vars
    2. day_window.start / day_window.end in the YAML settings file
    3. 06:00 / 23:00
    """
    window = load_settings(path).get("day_window") or {}
    if not isinstance(window, dict):
        logger.warning("Ignoring invalid day_window setting: %r", window)
        window = {}

    start = (
        os.environ.get("TIMEBUDGET_DAY_START")
        or _yaml_time(window.get("start"))
        or FALLBACK_DAY_START
    )
    end = os.environ.get("TIMEBUDGET_DAY_END") or _yaml_time(window.get("end")) or FALLBACK_DAY_END
    return start, end


def _yaml_time(value) -> str | None:
    # YAML 1.1 reads an unquoted 21:30 as the base-60 integer 1290
    if value is None:
        return None
    if isinstance(value, int):
        return f"{value // 60 % 24:02d}:{value % 60:02d}"
    return str(value)
