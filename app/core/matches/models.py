from __future__ import annotations

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    String,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import relationship

from app.core.limits.triggers import install_counter_triggers
from app.database.base import Base


class JobMatch(Base):
    __tablename__ = "job_matches"
    __table_args__ = (
        UniqueConstraint("user_id", "post_id", name="uq_job_matches_user_post"),
    )

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    post_id = Column(String, nullable=False)
    job_title = Column(String, nullable=True)
    company = Column(String, nullable=True)
    score = Column(Float, nullable=True)

    applied = Column(Boolean, nullable=False, default=False, server_default="0")
    applied_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )

    user = relationship("User", back_populates="job_matches")


install_counter_triggers(JobMatch.__table__)


__all__ = ["JobMatch"]
