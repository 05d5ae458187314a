from __future__ import annotations

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.auth.models import User
from app.core.dependencies import get_current_user, get_db
from app.core.limits.errors import LimitExceededError
from app.core.limits.services import can_accrue_match, get_daily_limit_info


def require_match_quota(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> User:
    """
    Early rejection for matching runs once the allowance is used up.

    Only a pre-check: each match still takes its slot through
    ``record_match_created``.
    """
    if not can_accrue_match(db, user.id):
        # Raises StorageError when the status is unreadable, so the run is
        # refused either way.
        info = get_daily_limit_info(db, user.id)
        raise LimitExceededError(
            current=info.current,
            limit=info.limit,
            reset_at=info.reset_at,
        )
    return user


__all__ = ["require_match_quota"]
