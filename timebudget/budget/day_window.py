"""
Day Window Policy - the user's active-day bounds.

The window drives timeline rendering and the "total plannable minutes"
figure. One user_preferences row per user, created with defaults on first
access and never deleted by this module.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from timebudget import config
from timebudget.budget.clock import time_to_minutes
from timebudget.errors import PreferenceInvariantError
from timebudget.state_store import StateStore, get_store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DayWindow:
    day_start_time: str
    day_end_time: str

    @property
    def day_start_minutes(self) -> int:
        return time_to_minutes(self.day_start_time)

    @property
    def day_end_minutes(self) -> int:
        return time_to_minutes(self.day_end_time)

    @property
    def total_window_minutes(self) -> int:
        """Positive whenever the start < end invariant holds."""
        return self.day_end_minutes - self.day_start_minutes

    def contains(self, minutes: int) -> bool:
        return self.day_start_minutes <= minutes <= self.day_end_minutes

    @classmethod
    def validated(cls, day_start_time: str, day_end_time: str) -> "DayWindow":
        """
        Build a window, enforcing start < end.

        Raises:
            ValueError: malformed time
            PreferenceInvariantError: start >= end
        """
        if time_to_minutes(day_start_time) >= time_to_minutes(day_end_time):
            raise PreferenceInvariantError(day_start_time, day_end_time)
        return cls(day_start_time, day_end_time)


@dataclass
class UserDayPreferences:
    user_id: str
    day_start_time: str
    day_end_time: str
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def window(self) -> DayWindow:
        return DayWindow(self.day_start_time, self.day_end_time)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "day_start_time": self.day_start_time,
            "day_end_time": self.day_end_time,
            "total_window_minutes": self.window.total_window_minutes,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


def default_window() -> DayWindow:
    """Configured defaults, validated like any stored preference."""
    start, end = config.default_day_window()
    return DayWindow.validated(start, end)


class PreferenceManager:
    """Reads and writes user_preferences rows."""

    TABLE = "user_preferences"

    def __init__(self, store: StateStore | None = None):
        self.store = store or get_store()

    def get_day_preferences(self, user_id: str) -> UserDayPreferences:
        """Return the user's preferences, creating the default row on first access."""
        row = self.store.get(self.TABLE, user_id, id_column="user_id")
        if row:
            return self._row_to_prefs(row)

        window = default_window()
        now = datetime.now().isoformat()
        with self.store.transaction() as tx:
            # Another session may have created the row since the read above
            row = tx.get(self.TABLE, user_id, id_column="user_id")
            if row is None:
                row = {
                    "user_id": user_id,
                    "day_start_time": window.day_start_time,
                    "day_end_time": window.day_end_time,
                    "created_at": now,
                    "updated_at": now,
                }
                tx.insert(self.TABLE, row)
                logger.info(
                    "Created default day window %s-%s for user %s",
                    window.day_start_time,
                    window.day_end_time,
                    user_id,
                )
        return self._row_to_prefs(row)

    def set_day_preferences(
        self, user_id: str, day_start_time: str, day_end_time: str
    ) -> UserDayPreferences:
        """
        Store a new day window.

        Validates before writing; on failure the stored row is unchanged.

        Raises:
            ValueError: malformed time
            PreferenceInvariantError: start >= end
        """
        try:
            DayWindow.validated(day_start_time, day_end_time)
        except PreferenceInvariantError:
            logger.warning(
                "Rejected day window %s-%s for user %s", day_start_time, day_end_time, user_id
            )
            raise

        now = datetime.now().isoformat()
        with self.store.transaction() as tx:
            existing = tx.get(self.TABLE, user_id, id_column="user_id")
            tx.upsert(
                self.TABLE,
                {
                    "user_id": user_id,
                    "day_start_time": day_start_time,
                    "day_end_time": day_end_time,
                    "created_at": existing["created_at"] if existing else now,
                    "updated_at": now,
                },
                key="user_id",
            )
            row = tx.get(self.TABLE, user_id, id_column="user_id")

        logger.info("Day window for user %s set to %s-%s", user_id, day_start_time, day_end_time)
        return self._row_to_prefs(row)

    def get_day_window(self, user_id: str) -> DayWindow:
        return self.get_day_preferences(user_id).window

    def _row_to_prefs(self, row: dict) -> UserDayPreferences:
        return UserDayPreferences(
            user_id=row["user_id"],
            day_start_time=row["day_start_time"],
            day_end_time=row["day_end_time"],
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )
