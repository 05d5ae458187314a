from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from app.response.response import APIError


class NotFoundError(APIError):
    def __init__(
        self,
        message: str = "User not found",
        *,
        code: str = "USER_NOT_FOUND",
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(code=code, http_code=404, message=message, details=details)


class LimitExceededError(APIError):
    """Accrual rejected because the user is at the tier ceiling."""

    def __init__(
        self,
        *,
        current: int,
        limit: int,
        reset_at: Optional[datetime],
    ) -> None:
        super().__init__(
            code="DAILY_LIMIT_EXCEEDED",
            http_code=429,
            message=f"Daily limit reached ({current}/{limit})",
            details={
                "current": current,
                "limit": limit,
                "resetAt": reset_at.isoformat() if reset_at else None,
            },
        )
        self.current = current
        self.limit = limit
        self.reset_at = reset_at


class StorageError(APIError):
    def __init__(self, message: str = "Failed to access usage counter") -> None:
        super().__init__(code="STORAGE_ERROR", http_code=500, message=message)


__all__ = ["NotFoundError", "LimitExceededError", "StorageError"]
