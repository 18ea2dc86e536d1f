"""
Budget category catalog.

One process-wide, read-only table: category id -> color, label, icon.
Configuration, not user data. Everything else refers to categories by id.
"""

from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType


class TimeCategory(StrEnum):
    WORK = "work"
    DEEP_WORK = "deep_work"
    HEALTH = "health"
    PERSONAL = "personal"
    LEARNING = "learning"
    ADMIN = "admin"
    SLEEP = "sleep"
    MEALS = "meals"
    COMMUTE = "commute"
    OTHER = "other"


@dataclass(frozen=True)
class CategoryInfo:
    id: str
    color: str
    label: str
    icon: str


CATEGORY_CONFIG: MappingProxyType = MappingProxyType(
    {
        TimeCategory.WORK: CategoryInfo("work", "#3b82f6", "Work", "Briefcase"),
        TimeCategory.DEEP_WORK: CategoryInfo("deep_work", "#6366f1", "Deep Work", "Zap"),
        TimeCategory.HEALTH: CategoryInfo("health", "#22c55e", "Health", "Heart"),
        TimeCategory.PERSONAL: CategoryInfo("personal", "#f59e0b", "Personal", "User"),
        TimeCategory.LEARNING: CategoryInfo("learning", "#8b5cf6", "Learning", "BookOpen"),
        TimeCategory.ADMIN: CategoryInfo("admin", "#64748b", "Admin", "Settings"),
        TimeCategory.SLEEP: CategoryInfo("sleep", "#1e293b", "Sleep", "Moon"),
        TimeCategory.MEALS: CategoryInfo("meals", "#f97316", "Meals", "Utensils"),
        TimeCategory.COMMUTE: CategoryInfo("commute", "#06b6d4", "Commute", "Car"),
        TimeCategory.OTHER: CategoryInfo("other", "#94a3b8", "Other", "Circle"),
    }
)

DEFAULT_CATEGORY = TimeCategory.OTHER


def parse_category(value: str) -> TimeCategory:
    """Strict parse for writes. Raises ValueError for ids outside the catalog."""
    try:
        return TimeCategory(value)
    except ValueError:
        raise ValueError(
            f"Unknown category {value!r} (expected one of: {', '.join(CATEGORY_CONFIG)})"
        ) from None


def get_category(value: str | None) -> CategoryInfo:
    """Lenient lookup for reads: missing or unknown ids fold into 'other'."""
    if value in CATEGORY_CONFIG:
        return CATEGORY_CONFIG[value]
    return CATEGORY_CONFIG[DEFAULT_CATEGORY]


def category_catalog() -> list[dict]:
    """Catalog as plain records, in display order."""
    return [
        {"id": info.id, "color": info.color, "label": info.label, "icon": info.icon}
        for info in CATEGORY_CONFIG.values()
    ]
