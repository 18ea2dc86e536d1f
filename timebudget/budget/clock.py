"""
Wall-clock helpers: "HH:MM" <-> minutes since midnight.

No timezone or DST handling; all times are local wall-clock at minute
granularity.
"""

import re

MINUTES_PER_DAY = 24 * 60

_HHMM_RE = re.compile(r"^(\d{2}):(\d{2})$")


def time_to_minutes(hhmm: str) -> int:
    """
    Parse "HH:MM" into minutes since midnight (0-1439).

    Raises:
        ValueError: malformed input. Sanitizing user widgets is the caller's job.
    """
    if not isinstance(hhmm, str):
        raise ValueError(f"Invalid time {hhmm!r} (use HH:MM)")
    match = _HHMM_RE.match(hhmm)
    if not match:
        raise ValueError(f"Invalid time {hhmm!r} (use HH:MM)")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid time {hhmm!r} (out of range)")
    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    """Inverse of time_to_minutes, wrapping at 24h."""
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def duration(start: str, end: str) -> int:
    """Minutes from start to end. Zero or negative for an inverted pair."""
    return time_to_minutes(end) - time_to_minutes(start)


def is_valid_time(value) -> bool:
    try:
        time_to_minutes(value)
    except ValueError:
        return False
    return True


def format_time_12h(hhmm: str | None) -> str:
    """'09:00' -> '9 AM', '13:30' -> '1:30 PM'. Empty input gives ''."""
    if not hhmm:
        return ""
    total = time_to_minutes(hhmm)
    hours, minutes = divmod(total, 60)
    ampm = "PM" if hours >= 12 else "AM"
    hour = hours % 12 or 12
    if minutes:
        return f"{hour}:{minutes:02d} {ampm}"
    return f"{hour} {ampm}"


def format_minutes(minutes: int) -> str:
    """135 -> '2h 15m'."""
    return f"{minutes // 60}h {minutes % 60}m"
