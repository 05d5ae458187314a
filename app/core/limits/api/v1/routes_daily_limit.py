from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth.models import User
from app.core.dependencies import get_current_user, get_db
from app.core.limits.schemas import DailyLimitPublic
from app.core.limits.services import get_daily_limit_info
from app.response import StandardResponse, make_success_response


logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)
router = APIRouter(prefix="/scraping", tags=["limits"])


@router.get(
    "/daily-limit",
    response_model=StandardResponse,
    summary="Daily match limit status",
)
def daily_limit_view(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> StandardResponse:
    """
    Current count, ceiling and reset boundary for the authenticated user.
    Drives the dashboard progress bar; a lapsed window is renewed on read.
    """
    info = get_daily_limit_info(db, user.id)
    logger.info(
        "daily limit read (user_id=%s, current=%s, limit=%s)",
        user.id,
        info.current,
        info.limit,
    )
    result = DailyLimitPublic(
        current=info.current,
        limit=info.limit,
        reset_at=info.reset_at,
        hours_until_reset=info.hours_until_reset,
        can_scrape=info.can_accrue,
        percentage_used=info.percentage_used,
        tier=info.tier.name,
    ).model_dump(mode="json", by_alias=True)
    return make_success_response(data=result)


__all__ = ["router"]
