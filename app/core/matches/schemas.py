from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class MatchCreate(BaseModel):
    post_id: str = Field(..., min_length=1, max_length=255)
    job_title: str | None = None
    company: str | None = None
    score: float | None = Field(default=None, ge=0, le=100)


class MatchBatchCreate(BaseModel):
    matches: list[MatchCreate] = Field(..., min_length=1, max_length=100)


class MatchPublic(BaseModel):
    id: uuid.UUID
    post_id: str
    job_title: str | None = None
    company: str | None = None
    score: float | None = None
    applied: bool
    applied_at: datetime | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MatchBatchResult(BaseModel):
    created: list[MatchPublic]
    duplicates: list[str]
    skipped: list[str]
    limit_reached: bool


__all__ = [
    "MatchCreate",
    "MatchBatchCreate",
    "MatchPublic",
    "MatchBatchResult",
]
