"""
Day Brief - plain-text rendering of one day's plan.

Used by the CLI `brief` command.
"""

import logging
from datetime import date

from timebudget.budget.allocation_store import AllocationStore, normalize_date
from timebudget.budget.clock import format_minutes, format_time_12h
from timebudget.budget.day_window import PreferenceManager
from timebudget.budget.summary import SummaryAggregator

logger = logging.getLogger(__name__)


def generate_day_brief(
    user_id: str,
    allocation_date: date | str,
    allocations: AllocationStore | None = None,
    preferences: PreferenceManager | None = None,
) -> str:
    allocations = allocations or AllocationStore()
    preferences = preferences or PreferenceManager(allocations.store)
    day = normalize_date(allocation_date)
    summary = SummaryAggregator(allocations, preferences).daily_summary(user_id, day)
    blocks = allocations.list(user_id, day)

    lines = [
        f"# Time Budget: {day}",
        "",
        f"Day window: {format_time_12h(summary.window.day_start_time)} - "
        f"{format_time_12h(summary.window.day_end_time)} "
        f"({format_minutes(summary.total_window_minutes)})",
        f"Planned: {format_minutes(summary.allocated_minutes)} · "
        f"Buffer: {format_minutes(summary.remaining_minutes)}",
        "",
        "## Blocks",
    ]

    if not blocks:
        lines.append("- (nothing planned)")
    for block in blocks:
        time_range = (
            f"{block.start_time}-{block.end_time}"
            if block.start_time and block.end_time
            else "(no time)"
        )
        lines.append(
            f"- {time_range} {block.display_label} "
            f"[{block.category}] {format_minutes(block.duration_minutes)}"
        )

    breakdown = summary.breakdown()
    if breakdown:
        lines.extend(["", "## By category"])
        for row in breakdown:
            lines.append(f"- {row['label']}: {format_minutes(row['minutes'])} ({row['share']:.0%})")

    conflicts = allocations.get_conflicts(user_id, day)
    if conflicts:
        logger.error("Day %s for %s has %d overlapping pair(s)", day, user_id, len(conflicts))
        lines.extend(["", "## Overlaps (data error)"])
        for c in conflicts:
            lines.append(
                f"- {c.allocation_a_id} / {c.allocation_b_id}: {c.overlap_start}-{c.overlap_end}"
            )

    return "\n".join(lines)
