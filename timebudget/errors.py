"""
Error taxonomy for the time budget engine.

Validation errors are raised before any write is attempted.
Persistence failures (sqlite3.Error) are not wrapped; they propagate unchanged.
"""


class TimeBudgetError(Exception):
    """Base class for domain errors raised by the budget core."""

    pass


class InvalidIntervalError(TimeBudgetError):
    """end_time is not strictly after start_time."""

    def __init__(self, start_time: str, end_time: str):
        self.start_time = start_time
        self.end_time = end_time
        super().__init__(f"End time must be after start time ({start_time}-{end_time})")


class OverlapError(TimeBudgetError):
    """A new or edited interval intersects an existing allocation on the same day."""

    def __init__(self, conflict_id: str, conflict_start: str, conflict_end: str):
        self.conflict_id = conflict_id
        self.conflict_start = conflict_start
        self.conflict_end = conflict_end
        super().__init__(
            f"Overlaps with existing block {conflict_id} ({conflict_start}-{conflict_end})"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.conflict_id,
            "start_time": self.conflict_start,
            "end_time": self.conflict_end,
        }


class NotFoundError(TimeBudgetError):
    """Allocation or template id does not exist (for this user)."""

    def __init__(self, kind: str, object_id: str):
        self.kind = kind
        self.object_id = object_id
        super().__init__(f"{kind} not found: {object_id}")


class PreferenceInvariantError(TimeBudgetError):
    """Attempt to store day_start_time >= day_end_time."""

    def __init__(self, day_start_time: str, day_end_time: str):
        self.day_start_time = day_start_time
        self.day_end_time = day_end_time
        super().__init__(
            f"Day start must be before day end ({day_start_time} >= {day_end_time})"
        )


class ReplayFailedError(TimeBudgetError):
    """
    A template replay failed after the clear step.

    The replay transaction has been rolled back; the target date still holds
    the allocations it had before the call. The cause is chained.
    """

    def __init__(self, template_id: str, target_date: str, block_index: int | None, reason: str):
        self.template_id = template_id
        self.target_date = target_date
        self.block_index = block_index
        self.reason = reason
        where = f" at block {block_index}" if block_index is not None else ""
        super().__init__(
            f"Replay of template {template_id} onto {target_date} failed{where}: {reason}"
        )
