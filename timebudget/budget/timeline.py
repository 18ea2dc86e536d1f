"""
Timeline Presenter - render geometry for a horizontal day timeline.

Positions are percentages of the active-day window. Blocks that stick out
of the window are clipped; blocks entirely outside it are not drawn.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime

from timebudget.budget.allocation_store import TimeAllocation
from timebudget.budget.clock import format_time_12h, time_to_minutes
from timebudget.budget.day_window import DayWindow
from timebudget.budget.summary import remaining_minutes


@dataclass
class BlockGeometry:
    id: str
    left_pct: float
    width_pct: float
    color: str
    label: str
    category: str
    start_time: str
    end_time: str
    time_range: str
    clipped: bool = False


@dataclass
class HourMarker:
    left_pct: float
    label: str


@dataclass
class Timeline:
    day_start_time: str
    day_end_time: str
    blocks: list[BlockGeometry] = field(default_factory=list)
    hour_markers: list[HourMarker] = field(default_factory=list)
    now_pct: float | None = None
    allocated_minutes: int = 0
    remaining_minutes: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def _pct(minutes: int, window: DayWindow) -> float:
    return (minutes - window.day_start_minutes) / window.total_window_minutes * 100


def block_geometry(allocation: TimeAllocation, window: DayWindow) -> BlockGeometry | None:
    if not allocation.start_time or not allocation.end_time:
        return None

    start = time_to_minutes(allocation.start_time)
    end = time_to_minutes(allocation.end_time)
    if end <= window.day_start_minutes or start >= window.day_end_minutes:
        return None

    clipped_start = max(window.day_start_minutes, start)
    clipped_end = min(window.day_end_minutes, end)

    return BlockGeometry(
        id=allocation.id,
        left_pct=round(_pct(clipped_start, window), 4),
        width_pct=round((clipped_end - clipped_start) / window.total_window_minutes * 100, 4),
        color=allocation.color,
        label=allocation.display_label,
        category=allocation.category,
        start_time=allocation.start_time,
        end_time=allocation.end_time,
        time_range=(
            f"{format_time_12h(allocation.start_time)} - {format_time_12h(allocation.end_time)}"
        ),
        clipped=(clipped_start, clipped_end) != (start, end),
    )


def hour_markers(window: DayWindow) -> list[HourMarker]:
    """One marker per hour step from the window start through its end."""
    markers = []
    for minutes in range(window.day_start_minutes, window.day_end_minutes + 1, 60):
        hour = minutes // 60
        ampm = "PM" if hour >= 12 else "AM"
        markers.append(
            HourMarker(left_pct=round(_pct(minutes, window), 4), label=f"{hour % 12 or 12}{ampm}")
        )
    return markers


def current_time_marker(window: DayWindow, now: datetime) -> float | None:
    """Percent offset of a wall-clock time, or None outside the window."""
    minutes = now.hour * 60 + now.minute
    if not window.contains(minutes):
        return None
    return round(_pct(minutes, window), 4)


def build_timeline(
    allocations: list[TimeAllocation], window: DayWindow, now: datetime | None = None
) -> Timeline:
    blocks = [g for g in (block_geometry(a, window) for a in allocations) if g is not None]
    allocated = sum(a.duration_minutes for a in allocations)
    return Timeline(
        day_start_time=window.day_start_time,
        day_end_time=window.day_end_time,
        blocks=blocks,
        hour_markers=hour_markers(window),
        now_pct=current_time_marker(window, now) if now else None,
        allocated_minutes=allocated,
        remaining_minutes=remaining_minutes(window.total_window_minutes, allocated),
    )
