"""
Template Manager - save a day's shape, replay it onto any date.

A template holds value copies of blocks, never allocation ids, so deleting
the source allocations leaves saved templates untouched and replay never
modifies the template.

Replay = clear the target date, then create each block in order. Both steps
run in one transaction: if any block fails, the clear is rolled back too and
the target date keeps what it had.

Stored blocks missing either time are dropped when a template is read,
so a hand-edited or legacy row still lists and replays.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from dataclasses import asdict, dataclass, field
from datetime import date, datetime

from timebudget.budget.allocation_store import AllocationStore, TimeAllocation, normalize_date
from timebudget.budget.clock import duration
from timebudget.categories import get_category
from timebudget.errors import NotFoundError, ReplayFailedError, TimeBudgetError
from timebudget.state_store import StateStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TemplateBlock:
    label: str
    category: str
    start_time: str
    end_time: str
    project_id: str | None = None

    @classmethod
    def from_allocation(cls, allocation: TimeAllocation) -> TemplateBlock:
        return cls(
            label=allocation.label or get_category(allocation.category).label,
            category=allocation.category,
            start_time=allocation.start_time,
            end_time=allocation.end_time,
            project_id=allocation.project_id,
        )

    @classmethod
    def from_dict(cls, data: dict) -> TemplateBlock:
        return cls(
            label=data.get("label") or "",
            category=data.get("category") or "other",
            start_time=data["start_time"],
            end_time=data["end_time"],
            project_id=data.get("project_id"),
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        if data["project_id"] is None:
            del data["project_id"]
        return data


@dataclass
class TimeTemplate:
    id: str
    user_id: str
    name: str
    blocks: list[TemplateBlock] = field(default_factory=list)
    created_at: str | None = None

    @property
    def total_minutes(self) -> int:
        return sum(duration(b.start_time, b.end_time) for b in self.blocks)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "blocks": [b.to_dict() for b in self.blocks],
            "total_minutes": self.total_minutes,
            "created_at": self.created_at,
        }


class TemplateManager:
    TABLE = "time_templates"

    def __init__(self, allocations: AllocationStore):
        self.allocations = allocations

    @property
    def store(self) -> StateStore:
        return self.allocations.store

    def save_as_template(self, user_id: str, name: str, allocation_date: date | str) -> TimeTemplate:
        """
        Capture every block of a day as a new template.

        Names are not unique; saving twice under one name gives two templates.
        Blocks without both times cannot be replayed and are left out.
        """
        name = (name or "").strip()
        if not name:
            raise ValueError("Template name is required")

        blocks = []
        for allocation in self.allocations.list(user_id, allocation_date):
            if not allocation.start_time or not allocation.end_time:
                logger.warning("Skipping allocation %s without times", allocation.id)
                continue
            blocks.append(TemplateBlock.from_allocation(allocation))

        template = TimeTemplate(
            id=f"tmpl_{uuid.uuid4().hex[:12]}",
            user_id=user_id,
            name=name,
            blocks=blocks,
            created_at=datetime.now().isoformat(),
        )
        self.store.insert(
            self.TABLE,
            {
                "id": template.id,
                "user_id": user_id,
                "name": name,
                "blocks": [b.to_dict() for b in blocks],
                "created_at": template.created_at,
            },
        )

        logger.info(
            "Saved template %s (%r) for %s from %s with %d block(s)",
            template.id,
            name,
            user_id,
            normalize_date(allocation_date),
            len(blocks),
        )
        return template

    def list_templates(self, user_id: str) -> list[TimeTemplate]:
        """Newest first."""
        rows = self.store.query(
            "SELECT * FROM time_templates WHERE user_id = ? ORDER BY created_at DESC, rowid DESC",
            [user_id],
        )
        return [self._row_to_template(row) for row in rows]

    def get_template(self, user_id: str, template_id: str) -> TimeTemplate:
        """
        Raises:
            NotFoundError: unknown id, or another user's template
        """
        row = self.store.get(self.TABLE, template_id)
        if not row or row["user_id"] != user_id:
            raise NotFoundError("template", template_id)
        return self._row_to_template(row)

    def delete_template(self, user_id: str, template_id: str) -> None:
        """
        Raises:
            NotFoundError: unknown id, or another user's template
        """
        self.get_template(user_id, template_id)
        self.store.delete(self.TABLE, template_id)
        logger.info("Deleted template %s", template_id)

    def load_template(
        self, user_id: str, template_id: str, target_date: date | str
    ) -> list[TimeAllocation]:
        """
        Replace the target date's blocks with the template's.

        Returns the new allocations in template order.

        Raises:
            NotFoundError: template does not exist for this user (nothing changed)
            ReplayFailedError: a step after the clear failed; rolled back, so the
                target date is exactly as it was before the call
        """
        template = self.get_template(user_id, template_id)
        day = normalize_date(target_date)

        created: list[TimeAllocation] = []
        index: int | None = None
        try:
            with self.store.transaction() as tx:
                removed = self.allocations.clear_date_in(tx, user_id, day)
                for index, block in enumerate(template.blocks):
                    created.append(
                        self.allocations.create_in(
                            tx,
                            user_id,
                            day,
                            block.category,
                            block.start_time,
                            block.end_time,
                            label=block.label,
                            project_id=block.project_id,
                        )
                    )
        except (TimeBudgetError, ValueError, sqlite3.Error) as e:
            logger.error(
                "Replay of template %s onto %s rolled back at block %s: %s",
                template_id,
                day,
                index,
                e,
            )
            raise ReplayFailedError(template_id, day, index, str(e)) from e

        logger.info(
            "Loaded template %s onto %s for %s: replaced %d block(s) with %d",
            template_id,
            day,
            user_id,
            removed,
            len(created),
        )
        return created

    def _row_to_template(self, row: dict) -> TimeTemplate:
        raw_blocks = row.get("blocks") or "[]"
        if isinstance(raw_blocks, str):
            raw_blocks = json.loads(raw_blocks)

        blocks = []
        for position, raw in enumerate(raw_blocks):
            if not raw.get("start_time") or not raw.get("end_time"):
                logger.warning(
                    "Template %s: skipping block %d without times", row["id"], position
                )
                continue
            blocks.append(TemplateBlock.from_dict(raw))

        return TimeTemplate(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            blocks=blocks,
            created_at=row.get("created_at"),
        )
