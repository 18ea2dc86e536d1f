"""Tests for the day window policy and stored preferences."""

import pytest

from timebudget.budget.day_window import DayWindow, default_window
from timebudget.errors import PreferenceInvariantError


class TestDayWindow:
    def test_total_window_minutes(self):
        assert DayWindow("06:00", "23:00").total_window_minutes == 1020

    def test_contains_is_inclusive(self):
        window = DayWindow("06:00", "23:00")
        assert window.contains(360)
        assert window.contains(1380)
        assert not window.contains(359)
        assert not window.contains(1381)

    def test_validated_rejects_inverted(self):
        with pytest.raises(PreferenceInvariantError):
            DayWindow.validated("22:00", "08:00")
        with pytest.raises(PreferenceInvariantError):
            DayWindow.validated("08:00", "08:00")

    def test_validated_rejects_malformed(self):
        with pytest.raises(ValueError):
            DayWindow.validated("8am", "17:00")


def test_default_window_fallback():
    window = default_window()
    assert (window.day_start_time, window.day_end_time) == ("06:00", "23:00")


def test_default_window_from_env(monkeypatch):
    monkeypatch.setenv("TIMEBUDGET_DAY_START", "07:30")
    monkeypatch.setenv("TIMEBUDGET_DAY_END", "22:00")
    assert default_window() == DayWindow("07:30", "22:00")


class TestPreferenceManager:
    def test_first_access_creates_default_row(self, preferences, store):
        assert store.count("user_preferences") == 0
        prefs = preferences.get_day_preferences("u1")
        assert prefs.day_start_time == "06:00"
        assert prefs.day_end_time == "23:00"
        assert prefs.created_at is not None
        assert store.count("user_preferences") == 1

        preferences.get_day_preferences("u1")
        assert store.count("user_preferences") == 1

    def test_set_preferences(self, preferences):
        original = preferences.get_day_preferences("u1")
        updated = preferences.set_day_preferences("u1", "08:00", "18:00")
        assert (updated.day_start_time, updated.day_end_time) == ("08:00", "18:00")
        assert updated.created_at == original.created_at
        assert preferences.get_day_window("u1").total_window_minutes == 600

    def test_set_without_prior_row(self, preferences):
        prefs = preferences.set_day_preferences("fresh", "05:00", "21:00")
        assert prefs.window == DayWindow("05:00", "21:00")

    def test_invariant_violation_leaves_row_unchanged(self, preferences):
        preferences.set_day_preferences("u1", "08:00", "18:00")
        with pytest.raises(PreferenceInvariantError):
            preferences.set_day_preferences("u1", "22:00", "08:00")
        stored = preferences.get_day_preferences("u1")
        assert (stored.day_start_time, stored.day_end_time) == ("08:00", "18:00")

    def test_users_are_isolated(self, preferences):
        preferences.set_day_preferences("u1", "08:00", "18:00")
        assert preferences.get_day_preferences("u2").day_start_time == "06:00"

    def test_to_dict(self, preferences):
        data = preferences.get_day_preferences("u1").to_dict()
        assert data["total_window_minutes"] == 1020
        assert data["user_id"] == "u1"
