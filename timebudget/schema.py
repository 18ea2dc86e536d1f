"""
Declarative Schema Definition — THE single source of truth.

Every table, column, index, and data migration for the time budget engine
lives here. Nothing else defines schema. The schema_engine reads this and
converges any database to match.

Adding a column = add one line here. The engine handles the rest.

Column definitions use CREATE TABLE syntax. The schema_engine knows how
to derive ALTER TABLE ADD COLUMN DDL (strips PK, adjusts NOT NULL, etc.).
"""

from collections import OrderedDict

from timebudget.categories import CATEGORY_CONFIG

# =============================================================================
# Schema version — bump when you change this file
# =============================================================================
SCHEMA_VERSION = 3

_CATEGORY_CHECK = ", ".join(f"'{c}'" for c in CATEGORY_CONFIG)

# =============================================================================
# Table Definitions
#
# Format: TABLES[name] = {"columns": [(col_name, col_ddl), ...]}
# =============================================================================

TABLES: dict[str, dict] = OrderedDict()

# ---------------------------------------------------------------------------
# Allocations: one labeled block of a user's day
# ---------------------------------------------------------------------------
TABLES["time_allocations"] = {
    "columns": [
        ("id", "TEXT PRIMARY KEY"),
        ("user_id", "TEXT NOT NULL"),
        ("project_id", "TEXT"),
        ("label", "TEXT"),
        ("category", f"TEXT NOT NULL DEFAULT 'other' CHECK (category IN ({_CATEGORY_CHECK}))"),
        ("start_time", "TEXT"),
        ("end_time", "TEXT"),
        ("duration_minutes", "INTEGER NOT NULL CHECK (duration_minutes > 0)"),
        ("allocation_date", "TEXT NOT NULL"),
        # Timestamps
        ("created_at", "TEXT NOT NULL DEFAULT (datetime('now'))"),
        ("updated_at", "TEXT"),
    ],
}

# ---------------------------------------------------------------------------
# Day window preferences: one row per user
# ---------------------------------------------------------------------------
TABLES["user_preferences"] = {
    "columns": [
        ("user_id", "TEXT PRIMARY KEY"),
        ("day_start_time", "TEXT NOT NULL DEFAULT '06:00'"),
        ("day_end_time", "TEXT NOT NULL DEFAULT '23:00'"),
        ("created_at", "TEXT NOT NULL DEFAULT (datetime('now'))"),
        ("updated_at", "TEXT"),
    ],
}

# ---------------------------------------------------------------------------
# Templates: named, date-independent snapshots of a day (blocks as JSON)
# ---------------------------------------------------------------------------
TABLES["time_templates"] = {
    "columns": [
        ("id", "TEXT PRIMARY KEY"),
        ("user_id", "TEXT NOT NULL"),
        ("name", "TEXT NOT NULL"),
        ("blocks", "TEXT NOT NULL DEFAULT '[]'"),
        ("created_at", "TEXT NOT NULL DEFAULT (datetime('now'))"),
    ],
}

# =============================================================================
# Indexes
#
# Format: (index_name, table, columns, where_condition | None)
# =============================================================================

INDEXES: list[tuple[str, str, str, str | None]] = [
    ("idx_time_allocations_user_date", "time_allocations", "user_id, allocation_date", None),
    ("idx_time_allocations_project", "time_allocations", "project_id", "project_id IS NOT NULL"),
    ("idx_time_templates_user", "time_templates", "user_id, created_at", None),
]

# =============================================================================
# Data Migrations — Copy data between columns after schema convergence
#
# Format: (table, target_column, source_expression, where_condition)
# Executed as: UPDATE table SET target_column = source_expression WHERE condition
# Idempotent — only updates rows where target is NULL and source is NOT NULL.
# =============================================================================

DATA_MIGRATIONS: list[tuple[str, str, str, str]] = [
    # Rows written before updated_at existed
    ("time_allocations", "updated_at", "created_at", "updated_at IS NULL AND created_at IS NOT NULL"),
    ("user_preferences", "updated_at", "created_at", "updated_at IS NULL AND created_at IS NOT NULL"),
]
