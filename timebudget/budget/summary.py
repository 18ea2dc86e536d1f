"""
Daily Summary Aggregator - per-category minutes for one day.

Pure function of the Allocation Store's current state; stores nothing.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date

from timebudget.budget.allocation_store import AllocationStore, TimeAllocation, normalize_date
from timebudget.budget.day_window import DayWindow, PreferenceManager
from timebudget.categories import CATEGORY_CONFIG, DEFAULT_CATEGORY


def remaining_minutes(total_window_minutes: int, allocated_minutes: int) -> int:
    """Unplanned buffer. Over-allocation is allowed but never reported as negative."""
    return max(0, total_window_minutes - allocated_minutes)


def aggregate(allocations: list[TimeAllocation]) -> dict[str, int]:
    """Sum minutes by category; sparse (zero categories omitted)."""
    totals: dict[str, int] = defaultdict(int)
    for alloc in allocations:
        category = alloc.category if alloc.category in CATEGORY_CONFIG else DEFAULT_CATEGORY.value
        totals[category] += alloc.duration_minutes
    return {category: minutes for category, minutes in totals.items() if minutes > 0}


@dataclass
class DailySummary:
    user_id: str
    allocation_date: str
    window: DayWindow
    by_category: dict[str, int] = field(default_factory=dict)
    block_count: int = 0

    @property
    def allocated_minutes(self) -> int:
        return sum(self.by_category.values())

    @property
    def total_window_minutes(self) -> int:
        return self.window.total_window_minutes

    @property
    def remaining_minutes(self) -> int:
        return remaining_minutes(self.total_window_minutes, self.allocated_minutes)

    def breakdown(self) -> list[dict]:
        """Dashboard rows in catalog order, with share of the allocated time."""
        allocated = self.allocated_minutes
        rows = []
        for category, info in CATEGORY_CONFIG.items():
            minutes = self.by_category.get(category)
            if not minutes:
                continue
            rows.append(
                {
                    "category": info.id,
                    "label": info.label,
                    "color": info.color,
                    "minutes": minutes,
                    "share": round(minutes / allocated, 4) if allocated else 0.0,
                }
            )
        return rows

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "allocation_date": self.allocation_date,
            "day_start_time": self.window.day_start_time,
            "day_end_time": self.window.day_end_time,
            "by_category": dict(self.by_category),
            "breakdown": self.breakdown(),
            "block_count": self.block_count,
            "allocated_minutes": self.allocated_minutes,
            "total_window_minutes": self.total_window_minutes,
            "remaining_minutes": self.remaining_minutes,
        }


class SummaryAggregator:
    def __init__(self, allocations: AllocationStore, preferences: PreferenceManager):
        self.allocations = allocations
        self.preferences = preferences

    def summarize(self, user_id: str, allocation_date: date | str) -> dict[str, int]:
        """{category: minutes} for the day, zero categories omitted."""
        return aggregate(self.allocations.list(user_id, allocation_date))

    def daily_summary(self, user_id: str, allocation_date: date | str) -> DailySummary:
        """summarize() plus the window totals the dashboard header shows."""
        allocations = self.allocations.list(user_id, allocation_date)
        window = self.preferences.get_day_window(user_id)
        return DailySummary(
            user_id=user_id,
            allocation_date=normalize_date(allocation_date),
            window=window,
            by_category=aggregate(allocations),
            block_count=len(allocations),
        )

