"""
Row-level triggers that keep ``users.daily_matched_jobs_count`` in step with
``job_matches``.

A match leaves the daily count when it is deleted while still unapplied, or
when ``applied`` flips from false to true. Both paths decrement the owner's
counter, floored at zero. The reset boundary is never touched here.

The statements are attached to ``metadata.create_all`` through DDL events
and reused by the Alembic migration, so PostgreSQL and SQLite databases get
the same behaviour.
"""

from __future__ import annotations

from typing import List

from sqlalchemy import DDL, Table, event


DELETE_TRIGGER = "sync_daily_count_on_delete"
UPDATE_TRIGGER = "sync_daily_count_on_update"
DELETE_FUNCTION = "decrement_daily_match_count"
UPDATE_FUNCTION = "update_daily_match_count"


_POSTGRES_CREATE = [
    f"""
    CREATE OR REPLACE FUNCTION {DELETE_FUNCTION}()
    RETURNS TRIGGER AS $$
    BEGIN
      IF OLD.applied = false THEN
        UPDATE users
        SET daily_matched_jobs_count = GREATEST(0, daily_matched_jobs_count - 1)
        WHERE id = OLD.user_id;
      END IF;
      RETURN OLD;
    END;
    $$ LANGUAGE plpgsql
    """,
    f"DROP TRIGGER IF EXISTS {DELETE_TRIGGER} ON job_matches",
    f"""
    CREATE TRIGGER {DELETE_TRIGGER}
      AFTER DELETE ON job_matches
      FOR EACH ROW
      EXECUTE FUNCTION {DELETE_FUNCTION}()
    """,
    f"""
    CREATE OR REPLACE FUNCTION {UPDATE_FUNCTION}()
    RETURNS TRIGGER AS $$
    BEGIN
      IF OLD.applied = false AND NEW.applied = true THEN
        UPDATE users
        SET daily_matched_jobs_count = GREATEST(0, daily_matched_jobs_count - 1)
        WHERE id = OLD.user_id;
      END IF;
      RETURN NEW;
    END;
    $$ LANGUAGE plpgsql
    """,
    f"DROP TRIGGER IF EXISTS {UPDATE_TRIGGER} ON job_matches",
    f"""
    CREATE TRIGGER {UPDATE_TRIGGER}
      AFTER UPDATE OF applied ON job_matches
      FOR EACH ROW
      EXECUTE FUNCTION {UPDATE_FUNCTION}()
    """,
]

_POSTGRES_DROP = [
    f"DROP TRIGGER IF EXISTS {UPDATE_TRIGGER} ON job_matches",
    f"DROP TRIGGER IF EXISTS {DELETE_TRIGGER} ON job_matches",
    f"DROP FUNCTION IF EXISTS {UPDATE_FUNCTION}()",
    f"DROP FUNCTION IF EXISTS {DELETE_FUNCTION}()",
]

_SQLITE_CREATE = [
    f"DROP TRIGGER IF EXISTS {DELETE_TRIGGER}",
    f"""
    CREATE TRIGGER {DELETE_TRIGGER}
      AFTER DELETE ON job_matches
      FOR EACH ROW
      WHEN OLD.applied = 0
    BEGIN
      UPDATE users
      SET daily_matched_jobs_count = MAX(0, daily_matched_jobs_count - 1)
      WHERE id = OLD.user_id;
    END
    """,
    f"DROP TRIGGER IF EXISTS {UPDATE_TRIGGER}",
    f"""
    CREATE TRIGGER {UPDATE_TRIGGER}
      AFTER UPDATE OF applied ON job_matches
      FOR EACH ROW
      WHEN OLD.applied = 0 AND NEW.applied = 1
    BEGIN
      UPDATE users
      SET daily_matched_jobs_count = MAX(0, daily_matched_jobs_count - 1)
      WHERE id = OLD.user_id;
    END
    """,
]

_SQLITE_DROP = [
    f"DROP TRIGGER IF EXISTS {UPDATE_TRIGGER}",
    f"DROP TRIGGER IF EXISTS {DELETE_TRIGGER}",
]


def create_statements(dialect_name: str) -> List[str]:
    if dialect_name == "postgresql":
        return list(_POSTGRES_CREATE)
    if dialect_name == "sqlite":
        return list(_SQLITE_CREATE)
    raise ValueError(f"Counter triggers are not available for {dialect_name!r}")


def drop_statements(dialect_name: str) -> List[str]:
    if dialect_name == "postgresql":
        return list(_POSTGRES_DROP)
    if dialect_name == "sqlite":
        return list(_SQLITE_DROP)
    raise ValueError(f"Counter triggers are not available for {dialect_name!r}")


def install_counter_triggers(table: Table) -> None:
    for dialect_name in ("postgresql", "sqlite"):
        for statement in create_statements(dialect_name):
            event.listen(
                table,
                "after_create",
                DDL(statement).execute_if(dialect=dialect_name),
            )
        for statement in drop_statements(dialect_name):
            event.listen(
                table,
                "before_drop",
                DDL(statement).execute_if(dialect=dialect_name),
            )


__all__ = [
    "DELETE_TRIGGER",
    "UPDATE_TRIGGER",
    "create_statements",
    "drop_statements",
    "install_counter_triggers",
]
