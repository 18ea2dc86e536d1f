"""
Test fixtures for deterministic testing.

This module provides:
- fixture_db: temp SQLite databases built from the declarative schema,
  seeded with one known day
"""

from .fixture_db import SEED_DATE, SEED_USER, create_fixture_db, guard_no_live_db

__all__ = ["SEED_DATE", "SEED_USER", "create_fixture_db", "guard_no_live_db"]
