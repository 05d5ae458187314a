from __future__ import annotations

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Uuid,
    func,
)
from sqlalchemy.orm import relationship

from app.database.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    email = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=True)

    # Materialized count of unapplied matches created in the current window.
    # Mutated only by conditional updates in app.core.limits.services and by
    # the job_matches triggers in app.core.limits.triggers.
    daily_matched_jobs_count = Column(
        Integer, nullable=False, default=0, server_default="0"
    )
    daily_limit_reset_at = Column(DateTime(timezone=True), nullable=True)
    last_matched_job_at = Column(DateTime(timezone=True), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    subscription = relationship(
        "Subscription",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    job_matches = relationship(
        "JobMatch",
        back_populates="user",
        passive_deletes=True,
    )


__all__ = ["User"]
