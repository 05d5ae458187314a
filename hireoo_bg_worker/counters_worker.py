from __future__ import annotations

from loguru import logger

from app.core.limits.services import sync_daily_counters
from app.database.session import SessionLocal
from hireoo_bg_worker.celery_app import celery_app


@celery_app.task(name="limits.sync_daily_counters")
def sync_daily_counters_task() -> dict:
    logger.info("Running sync_daily_counters task")
    db = SessionLocal()
    try:
        report = sync_daily_counters(db)
    except Exception as exc:
        logger.opt(exception=exc).error("Failed to sync daily counters")
        raise
    finally:
        db.close()

    logger.info(
        "Daily counters synced",
        checked=report.checked,
        fixed=report.fixed,
        skipped=report.skipped,
    )
    return {
        "checked": report.checked,
        "fixed": report.fixed,
        "skipped": report.skipped,
    }


__all__ = ["sync_daily_counters_task"]
