"""Tests for HH:MM clock helpers."""

import pytest

from timebudget.budget.clock import (
    duration,
    format_minutes,
    format_time_12h,
    is_valid_time,
    minutes_to_time,
    time_to_minutes,
)


class TestTimeToMinutes:
    def test_parses_wall_clock(self):
        assert time_to_minutes("00:00") == 0
        assert time_to_minutes("09:30") == 570
        assert time_to_minutes("23:59") == 1439

    @pytest.mark.parametrize("bad", ["9:00", "24:00", "12:60", "", "noon", "09:00:00", None, 540])
    def test_rejects_malformed(self, bad):
        with pytest.raises(ValueError):
            time_to_minutes(bad)

    def test_is_valid_time(self):
        assert is_valid_time("06:00")
        assert not is_valid_time("6am")


class TestMinutesToTime:
    def test_zero_padded(self):
        assert minutes_to_time(0) == "00:00"
        assert minutes_to_time(545) == "09:05"

    def test_wraps_at_midnight(self):
        assert minutes_to_time(1440) == "00:00"
        assert minutes_to_time(1500) == "01:00"


def test_duration_sign():
    assert duration("09:00", "10:30") == 90
    assert duration("10:00", "10:00") == 0
    assert duration("11:00", "10:00") == -60


class TestFormatting:
    def test_12h(self):
        assert format_time_12h("09:00") == "9 AM"
        assert format_time_12h("13:30") == "1:30 PM"
        assert format_time_12h("00:15") == "12:15 AM"
        assert format_time_12h("12:00") == "12 PM"
        assert format_time_12h(None) == ""

    def test_minutes(self):
        assert format_minutes(135) == "2h 15m"
        assert format_minutes(0) == "0h 0m"
