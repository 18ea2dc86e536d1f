"""
Allocation Store - CRUD for the time blocks of one user's day.

Enforces invariants:
- end_time is strictly after start_time
- duration_minutes always equals end_time - start_time (never client input)
- No two allocations of the same (user, date) overlap as half-open intervals

The overlap check and the write share one BEGIN IMMEDIATE transaction, so two
sessions cannot both pass validation and then both insert.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import asdict, dataclass
from datetime import date, datetime

from timebudget.budget.clock import duration, minutes_to_time, time_to_minutes
from timebudget.categories import get_category, parse_category
from timebudget.errors import InvalidIntervalError, NotFoundError, OverlapError
from timebudget.state_store import Session, StateStore, get_store

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset(
    {"category", "label", "project_id", "start_time", "end_time", "allocation_date"}
)


@dataclass
class TimeAllocation:
    id: str
    user_id: str
    allocation_date: str
    start_time: str | None
    end_time: str | None
    duration_minutes: int
    category: str
    label: str | None = None
    project_id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def display_label(self) -> str:
        """The label override, or the category's catalog label."""
        return self.label or get_category(self.category).label

    @property
    def color(self) -> str:
        return get_category(self.category).color

    def overlaps(self, start_time: str, end_time: str) -> bool:
        """Half-open [start, end) intersection. Back-to-back blocks do not overlap."""
        if not self.start_time or not self.end_time:
            return False
        return time_to_minutes(start_time) < time_to_minutes(self.end_time) and time_to_minutes(
            end_time
        ) > time_to_minutes(self.start_time)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["display_label"] = self.display_label
        data["color"] = self.color
        return data


@dataclass
class Conflict:
    allocation_a_id: str
    allocation_b_id: str
    overlap_start: str
    overlap_end: str


def normalize_date(value: date | str) -> str:
    """Accept a date or 'YYYY-MM-DD'; return the canonical string form."""
    if isinstance(value, datetime):
        raise ValueError(f"Expected a calendar date without time, got {value!r}")
    if isinstance(value, date):
        return value.isoformat()
    try:
        return date.fromisoformat(value).isoformat()
    except (TypeError, ValueError):
        raise ValueError(f"Invalid date {value!r} (use YYYY-MM-DD)") from None


def validate_interval(start_time: str, end_time: str) -> int:
    """
    Check a candidate interval and return its duration in minutes.

    Raises:
        ValueError: malformed time
        InvalidIntervalError: end_time <= start_time
    """
    minutes = duration(start_time, end_time)
    if minutes <= 0:
        raise InvalidIntervalError(start_time, end_time)
    return minutes


class AllocationStore:
    """
    Persistence for TimeAllocation rows scoped to (user, date).

    Responsibilities:
    - List a day's blocks in start order
    - Create/update/delete blocks with interval and overlap validation
    - Clear a day (used by template replay)
    - Audit a day for overlaps that slipped in (should never find any)
    """

    TABLE = "time_allocations"

    def __init__(self, store: StateStore | None = None):
        self.store = store or get_store()

    # ==================== Reads ====================

    def list(self, user_id: str, allocation_date: date | str) -> list[TimeAllocation]:
        """All allocations for a day, by start_time; rows without a start sort last."""
        with self.store.session() as s:
            return self._list(s, user_id, normalize_date(allocation_date))

    def get(self, allocation_id: str, user_id: str | None = None) -> TimeAllocation:
        """
        Fetch one allocation.

        Raises:
            NotFoundError: unknown id, or owned by a different user
        """
        with self.store.session() as s:
            return self._get(s, allocation_id, user_id)

    # ==================== Writes ====================

    def create(
        self,
        user_id: str,
        allocation_date: date | str,
        category: str,
        start_time: str,
        end_time: str,
        label: str | None = None,
        project_id: str | None = None,
    ) -> TimeAllocation:
        """
        Create a block on a day.

        Raises:
            ValueError: malformed time/date or unknown category
            InvalidIntervalError: end_time <= start_time
            OverlapError: intersects an existing block of that day
        """
        with self.store.transaction() as tx:
            return self.create_in(
                tx,
                user_id,
                allocation_date,
                category,
                start_time,
                end_time,
                label=label,
                project_id=project_id,
            )

    def create_in(
        self,
        tx: Session,
        user_id: str,
        allocation_date: date | str,
        category: str,
        start_time: str,
        end_time: str,
        label: str | None = None,
        project_id: str | None = None,
    ) -> TimeAllocation:
        """create() inside a caller-owned transaction (template replay)."""
        if not user_id:
            raise ValueError("user_id is required")
        day = normalize_date(allocation_date)
        category = parse_category(category).value
        minutes = validate_interval(start_time, end_time)

        self._raise_on_overlap(tx, user_id, day, start_time, end_time)

        now = datetime.now().isoformat()
        allocation = TimeAllocation(
            id=f"alloc_{uuid.uuid4().hex[:12]}",
            user_id=user_id,
            allocation_date=day,
            start_time=start_time,
            end_time=end_time,
            duration_minutes=minutes,
            category=category,
            label=label or None,
            project_id=project_id or None,
            created_at=now,
            updated_at=now,
        )
        tx.insert(self.TABLE, asdict(allocation))

        logger.info(
            "Created allocation %s for %s on %s: %s-%s %s",
            allocation.id,
            user_id,
            day,
            start_time,
            end_time,
            category,
        )
        return allocation

    def update(self, allocation_id: str, user_id: str | None = None, **fields) -> TimeAllocation:
        """
        Change some fields of a block. Fields not supplied are left unchanged;
        passing label=None or project_id=None clears them.

        If a time or the date changes, duration is recomputed and the overlap
        check re-runs against the day's other blocks (this one excluded).

        Raises:
            ValueError: unknown/derived field, malformed value
            NotFoundError: unknown id, or owned by a different user
            InvalidIntervalError, OverlapError: as for create
        """
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

        with self.store.transaction() as tx:
            current = self._get(tx, allocation_id, user_id)
            changes: dict = {}

            if "category" in fields:
                changes["category"] = parse_category(fields["category"]).value
            if "label" in fields:
                changes["label"] = fields["label"] or None
            if "project_id" in fields:
                changes["project_id"] = fields["project_id"] or None

            start_time = fields.get("start_time", current.start_time)
            end_time = fields.get("end_time", current.end_time)
            day = (
                normalize_date(fields["allocation_date"])
                if "allocation_date" in fields
                else current.allocation_date
            )

            reschedule = (
                start_time != current.start_time
                or end_time != current.end_time
                or day != current.allocation_date
            )
            if reschedule:
                changes["duration_minutes"] = validate_interval(start_time, end_time)
                self._raise_on_overlap(
                    tx, current.user_id, day, start_time, end_time, exclude_id=allocation_id
                )
                changes["start_time"] = start_time
                changes["end_time"] = end_time
                changes["allocation_date"] = day

            if not changes:
                return current

            changes["updated_at"] = datetime.now().isoformat()
            tx.update(self.TABLE, allocation_id, changes)
            updated = self._get(tx, allocation_id)

        logger.info("Updated allocation %s: %s", allocation_id, sorted(changes))
        return updated

    def delete(self, allocation_id: str, user_id: str | None = None) -> None:
        """
        Remove a block.

        Raises:
            NotFoundError: unknown (or already deleted) id, or another user's block
        """
        with self.store.transaction() as tx:
            self._get(tx, allocation_id, user_id)
            tx.delete(self.TABLE, allocation_id)
        logger.info("Deleted allocation %s", allocation_id)

    def clear_date(self, user_id: str, allocation_date: date | str) -> int:
        """Delete every block of a day. Returns how many were removed."""
        with self.store.transaction() as tx:
            return self.clear_date_in(tx, user_id, allocation_date)

    def clear_date_in(self, tx: Session, user_id: str, allocation_date: date | str) -> int:
        day = normalize_date(allocation_date)
        removed = tx.delete_where(
            self.TABLE, "user_id = ? AND allocation_date = ?", [user_id, day]
        )
        logger.info("Cleared %d allocation(s) for %s on %s", removed, user_id, day)
        return removed

    # ==================== Audit ====================

    def get_conflicts(self, user_id: str, allocation_date: date | str) -> list[Conflict]:
        """
        Detect overlapping blocks (should never happen if invariants hold).

        Returns list of conflicts found.
        """
        blocks = [b for b in self.list(user_id, allocation_date) if b.start_time and b.end_time]
        conflicts = []

        for i, a in enumerate(blocks):
            for b in blocks[i + 1 :]:
                if a.overlaps(b.start_time, b.end_time):
                    overlap_start = max(time_to_minutes(a.start_time), time_to_minutes(b.start_time))
                    overlap_end = min(time_to_minutes(a.end_time), time_to_minutes(b.end_time))
                    conflicts.append(
                        Conflict(
                            allocation_a_id=a.id,
                            allocation_b_id=b.id,
                            overlap_start=minutes_to_time(overlap_start),
                            overlap_end=minutes_to_time(overlap_end),
                        )
                    )

        return conflicts

    # ==================== Internals ====================

    def _list(self, session: Session, user_id: str, day: str) -> list[TimeAllocation]:
        rows = session.query(
            """
            SELECT * FROM time_allocations
            WHERE user_id = ? AND allocation_date = ?
            ORDER BY start_time IS NULL, start_time, created_at
            """,
            [user_id, day],
        )
        return [self._row_to_allocation(row) for row in rows]

    def _get(self, session: Session, allocation_id: str, user_id: str | None = None) -> TimeAllocation:
        row = session.get(self.TABLE, allocation_id)
        if not row or (user_id is not None and row["user_id"] != user_id):
            raise NotFoundError("allocation", allocation_id)
        return self._row_to_allocation(row)

    def _raise_on_overlap(
        self,
        session: Session,
        user_id: str,
        day: str,
        start_time: str,
        end_time: str,
        exclude_id: str | None = None,
    ) -> None:
        """Linear scan of the day's persisted blocks; a day holds a few dozen at most."""
        for block in self._list(session, user_id, day):
            if block.id == exclude_id:
                continue
            if block.overlaps(start_time, end_time):
                logger.warning(
                    "Rejected %s-%s on %s for %s: overlaps %s (%s-%s)",
                    start_time,
                    end_time,
                    day,
                    user_id,
                    block.id,
                    block.start_time,
                    block.end_time,
                )
                raise OverlapError(block.id, block.start_time, block.end_time)

    def _row_to_allocation(self, row: dict) -> TimeAllocation:
        """Convert database row to TimeAllocation object."""
        return TimeAllocation(
            id=row["id"],
            user_id=row["user_id"],
            allocation_date=row["allocation_date"],
            start_time=row.get("start_time"),
            end_time=row.get("end_time"),
            duration_minutes=row["duration_minutes"],
            category=row.get("category") or "other",
            label=row.get("label"),
            project_id=row.get("project_id"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )
