from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Tuple
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth.models import User
from app.core.billing.services import get_active_plan_name
from app.core.config import settings
from app.core.limits.errors import LimitExceededError, NotFoundError, StorageError
from app.core.matches.models import JobMatch


logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


class SubscriptionTier(str, Enum):
    FREE = "free"
    BASIC = "basic"
    PRO = "pro"


@dataclass(frozen=True)
class TierInfo:
    tier: SubscriptionTier
    name: str
    daily_limit: int


TIER_CATALOG: Dict[SubscriptionTier, TierInfo] = {
    SubscriptionTier.FREE: TierInfo(
        tier=SubscriptionTier.FREE,
        name="Free",
        daily_limit=10,
    ),
    SubscriptionTier.BASIC: TierInfo(
        tier=SubscriptionTier.BASIC,
        name="Premium Basic",
        daily_limit=25,
    ),
    SubscriptionTier.PRO: TierInfo(
        tier=SubscriptionTier.PRO,
        name="Premium Pro",
        daily_limit=50,
    ),
}

PLAN_TIERS: Dict[str, SubscriptionTier] = {
    "premium_basic": SubscriptionTier.BASIC,
    "premium_pro": SubscriptionTier.PRO,
    # legacy Stripe plans
    "pro_monthly": SubscriptionTier.BASIC,
    "pro_yearly": SubscriptionTier.PRO,
}


@dataclass
class DailyLimitInfo:
    current: int
    limit: int
    reset_at: datetime
    hours_until_reset: float
    can_accrue: bool
    percentage_used: int
    tier: TierInfo


@dataclass
class SyncReport:
    checked: int = 0
    fixed: int = 0
    skipped: int = 0


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo; they are stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _resolve_now(now: datetime | None) -> datetime:
    return _as_utc(now) if now is not None else _utc_now()


def _storage_failure(db: Session, action: str, exc: Exception) -> StorageError:
    db.rollback()
    logger.error("daily limit storage error during %s: %r", action, exc)
    return StorageError(f"Failed to {action}")


def calculate_reset_time(now: datetime | None = None) -> datetime:
    """
    Next midnight of the reference timezone, strictly after ``now``, in UTC.

    ``now`` is shifted by the fixed offset so its UTC fields read as the local
    wall clock, the next calendar day is built at 00:00 from those fields and
    the offset is subtracted again. Zone databases are not consulted.
    """
    current = _resolve_now(now)
    offset = timedelta(minutes=settings.daily_limit_utc_offset_minutes)

    local = current + offset
    next_local_midnight = datetime(
        local.year, local.month, local.day, tzinfo=timezone.utc
    ) + timedelta(days=1)

    return next_local_midnight - offset


def hours_until(reset_at: datetime, now: datetime) -> float:
    seconds = (_as_utc(reset_at) - _as_utc(now)).total_seconds()
    return max(0.0, round(seconds / 3600, 1))


def _user_exists(db: Session, user_id: UUID) -> bool:
    row = db.execute(select(User.id).where(User.id == user_id)).first()
    return row is not None


def _load_counter(
    db: Session,
    user_id: UUID,
) -> Tuple[int, datetime | None] | None:
    row = db.execute(
        select(User.daily_matched_jobs_count, User.daily_limit_reset_at)
        .where(User.id == user_id)
    ).first()
    if row is None:
        return None
    count, reset_at = row
    return count or 0, _as_utc(reset_at) if reset_at is not None else None


def _reset_if_stale(db: Session, user_id: UUID, now: datetime) -> bool:
    # Compare-and-swap on the stale boundary: once any request has moved the
    # boundary past ``now`` this matches nothing, so counts accrued in the
    # new window are never zeroed.
    next_reset = calculate_reset_time(now)
    result = db.execute(
        update(User)
        .where(
            User.id == user_id,
            or_(
                User.daily_limit_reset_at.is_(None),
                User.daily_limit_reset_at <= now,
            ),
        )
        .values(daily_matched_jobs_count=0, daily_limit_reset_at=next_reset)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount:
        logger.info(
            "daily limit reset (user_id=%s, next_reset=%s)",
            user_id,
            next_reset.isoformat(),
        )
        return True
    return False


def _try_increment(db: Session, user_id: UUID, limit: int, now: datetime) -> bool:
    result = db.execute(
        update(User)
        .where(
            User.id == user_id,
            User.daily_matched_jobs_count < limit,
            User.daily_limit_reset_at > now,
        )
        .values(
            daily_matched_jobs_count=User.daily_matched_jobs_count + 1,
            last_matched_job_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def get_subscription_tier(
    db: Session,
    user_id: UUID,
    *,
    now: datetime | None = None,
) -> TierInfo:
    try:
        exists = _user_exists(db, user_id)
        plan_name = get_active_plan_name(db, user_id, now=now) if exists else None
    except SQLAlchemyError as exc:
        raise _storage_failure(db, "resolve subscription tier", exc) from exc

    if plan_name is None:
        raise NotFoundError()

    tier = PLAN_TIERS.get(plan_name, SubscriptionTier.FREE)
    return TIER_CATALOG[tier]


def get_daily_limit_info(
    db: Session,
    user_id: UUID,
    *,
    now: datetime | None = None,
) -> DailyLimitInfo:
    """
    Current usage for the user, renewing the window first if it has lapsed.

    A lapsed window is reset and committed here; there is no scheduled reset.
    """
    now = _resolve_now(now)
    tier = get_subscription_tier(db, user_id, now=now)

    try:
        _reset_if_stale(db, user_id, now)
        db.commit()
        counter = _load_counter(db, user_id)
    except SQLAlchemyError as exc:
        raise _storage_failure(db, "read daily limit", exc) from exc

    if counter is None:
        raise NotFoundError()

    current, reset_at = counter
    if reset_at is None:
        reset_at = calculate_reset_time(now)

    limit = tier.daily_limit
    percentage_used = round(current / limit * 100) if limit else 100

    return DailyLimitInfo(
        current=current,
        limit=limit,
        reset_at=reset_at,
        hours_until_reset=hours_until(reset_at, now),
        can_accrue=current < limit,
        percentage_used=percentage_used,
        tier=tier,
    )


def can_accrue_match(
    db: Session,
    user_id: UUID,
    *,
    now: datetime | None = None,
) -> bool:
    try:
        info = get_daily_limit_info(db, user_id, now=now)
    except StorageError:
        logger.warning(
            "daily limit status unavailable, denying accrual (user_id=%s)",
            user_id,
        )
        return False
    return info.can_accrue


def record_match_created(
    db: Session,
    user_id: UUID,
    *,
    now: datetime | None = None,
) -> int:
    """
    Take one slot of the user's daily allowance and return the new count.

    Runs inside the caller's transaction; the caller commits it together
    with the match row it is creating.
    """
    now = _resolve_now(now)
    tier = get_subscription_tier(db, user_id, now=now)
    limit = tier.daily_limit

    try:
        accrued = _try_increment(db, user_id, limit, now)
        if not accrued:
            _reset_if_stale(db, user_id, now)
            accrued = _try_increment(db, user_id, limit, now)
        counter = _load_counter(db, user_id)
    except SQLAlchemyError as exc:
        raise _storage_failure(db, "record match", exc) from exc

    if counter is None:
        raise NotFoundError()

    current, reset_at = counter
    if not accrued:
        logger.info(
            "daily limit reached (user_id=%s, current=%s, limit=%s)",
            user_id,
            current,
            limit,
        )
        raise LimitExceededError(current=current, limit=limit, reset_at=reset_at)

    return current


def _count_open_matches(
    db: Session,
    user_id: UUID,
    window_start: datetime,
) -> int:
    return db.execute(
        select(func.count(JobMatch.id)).where(
            JobMatch.user_id == user_id,
            JobMatch.applied.is_(False),
            JobMatch.created_at >= window_start,
        )
    ).scalar_one()


def sync_daily_counters(
    db: Session,
    *,
    now: datetime | None = None,
) -> SyncReport:
    """
    Recompute every current-window counter from ``job_matches``.

    Users whose window has lapsed are left for the lazy reset. Each fix is
    conditional on the count read a moment earlier; rows that moved in
    between are counted as skipped.
    """
    now = _resolve_now(now)
    report = SyncReport()

    try:
        rows = db.execute(
            select(
                User.id,
                User.daily_matched_jobs_count,
                User.daily_limit_reset_at,
            ).where(User.daily_limit_reset_at > now)
        ).all()

        for user_id, stored, reset_at in rows:
            report.checked += 1
            window_start = _as_utc(reset_at) - timedelta(days=1)
            expected = _count_open_matches(db, user_id, window_start)
            if expected == stored:
                continue

            result = db.execute(
                update(User)
                .where(
                    User.id == user_id,
                    User.daily_matched_jobs_count == stored,
                )
                .values(daily_matched_jobs_count=expected)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount:
                report.fixed += 1
                logger.info(
                    "daily counter fixed (user_id=%s, stored=%s, actual=%s)",
                    user_id,
                    stored,
                    expected,
                )
            else:
                report.skipped += 1

        db.commit()
    except SQLAlchemyError as exc:
        raise _storage_failure(db, "sync daily counters", exc) from exc

    return report


def get_counter_diagnostics(
    db: Session,
    user_id: UUID,
    *,
    now: datetime | None = None,
) -> Dict[str, Any]:
    now = _resolve_now(now)

    try:
        user = db.get(User, user_id, populate_existing=True)
        if user is None:
            raise NotFoundError()

        reset_at = (
            _as_utc(user.daily_limit_reset_at)
            if user.daily_limit_reset_at is not None
            else None
        )
        window_current = reset_at is not None and reset_at > now
        window_start = reset_at - timedelta(days=1) if window_current else None

        total_matches = db.execute(
            select(func.count(JobMatch.id)).where(JobMatch.user_id == user_id)
        ).scalar_one()
        expected = (
            _count_open_matches(db, user_id, window_start)
            if window_start is not None
            else 0
        )
    except SQLAlchemyError as exc:
        raise _storage_failure(db, "diagnose daily counter", exc) from exc

    return {
        "user_id": str(user.id),
        "email": user.email,
        "stored_count": user.daily_matched_jobs_count,
        "expected_count": expected,
        "in_sync": expected == user.daily_matched_jobs_count,
        "reset_at": reset_at.isoformat() if reset_at else None,
        "window_current": window_current,
        "window_start": window_start.isoformat() if window_start else None,
        "hours_until_reset": hours_until(reset_at, now) if reset_at else None,
        "total_matches": total_matches,
        "last_matched_job_at": (
            _as_utc(user.last_matched_job_at).isoformat()
            if user.last_matched_job_at
            else None
        ),
    }


__all__ = [
    "SubscriptionTier",
    "TierInfo",
    "TIER_CATALOG",
    "DailyLimitInfo",
    "SyncReport",
    "calculate_reset_time",
    "hours_until",
    "get_subscription_tier",
    "get_daily_limit_info",
    "can_accrue_match",
    "record_match_created",
    "sync_daily_counters",
    "get_counter_diagnostics",
]
