"""
Time Budget core.

Objects:
- TimeAllocation (one labeled block of a user's day)
- UserDayPreferences / DayWindow (active-day bounds)
- TimeTemplate (date-independent snapshot of a day)

Invariants:
- end_time is strictly after start_time
- duration_minutes == end_time - start_time, recomputed on every write
- Blocks of one (user, date) never overlap as half-open intervals
- day_start_time < day_end_time
- Template replay is all-or-nothing
"""

from .allocation_store import AllocationStore, TimeAllocation
from .brief import generate_day_brief
from .day_window import DayWindow, PreferenceManager, UserDayPreferences
from .summary import DailySummary, SummaryAggregator
from .templates import TemplateBlock, TemplateManager, TimeTemplate
from .timeline import Timeline, build_timeline

__all__ = [
    "AllocationStore",
    "DailySummary",
    "DayWindow",
    "PreferenceManager",
    "SummaryAggregator",
    "TemplateBlock",
    "TemplateManager",
    "TimeAllocation",
    "TimeTemplate",
    "Timeline",
    "UserDayPreferences",
    "build_timeline",
    "generate_day_brief",
]
