from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict


class DailyLimitPublic(BaseModel):
    current: int
    limit: int
    reset_at: datetime
    hours_until_reset: float
    can_scrape: bool
    percentage_used: int
    tier: str

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


__all__ = ["DailyLimitPublic"]
