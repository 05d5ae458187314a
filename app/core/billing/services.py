from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.billing.models import Subscription


logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

FREE_PLAN = "free"
ACTIVE_STATUS = "active"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def get_subscription(db: Session, user_id: UUID) -> Subscription | None:
    return (
        db.query(Subscription)
        .filter(Subscription.user_id == user_id)
        .first()
    )


def _is_active(subscription: Subscription, now: datetime) -> bool:
    if subscription.status != ACTIVE_STATUS:
        return False
    if subscription.current_period_end is None:
        return True
    return _as_utc(subscription.current_period_end) > now


def get_active_plan_name(
    db: Session,
    user_id: UUID,
    *,
    now: datetime | None = None,
) -> str:
    """
    Plan name the user is currently entitled to.

    Missing, inactive and lapsed subscriptions all fall back to the free plan.
    """
    subscription = get_subscription(db, user_id)
    if subscription is None:
        return FREE_PLAN

    if not _is_active(subscription, now or _utc_now()):
        logger.info(
            "subscription not active (user_id=%s, plan=%s, status=%s)",
            user_id,
            subscription.plan_name,
            subscription.status,
        )
        return FREE_PLAN

    return subscription.plan_name


__all__ = [
    "FREE_PLAN",
    "get_subscription",
    "get_active_plan_name",
]
