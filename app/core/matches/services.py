from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.limits.errors import LimitExceededError, NotFoundError, StorageError
from app.core.limits.services import record_match_created
from app.core.matches.models import JobMatch
from app.core.matches.schemas import MatchCreate
from app.response.response import APIError


logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


@dataclass
class BatchOutcome:
    created: List[JobMatch] = field(default_factory=list)
    duplicates: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    limit_reached: bool = False


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _get_owned_match(db: Session, user_id: UUID, match_id: UUID) -> JobMatch:
    match = (
        db.query(JobMatch)
        .filter(JobMatch.id == match_id, JobMatch.user_id == user_id)
        .first()
    )
    if match is None:
        raise NotFoundError("Match not found", code="MATCH_NOT_FOUND")
    return match


def create_match(
    db: Session,
    user_id: UUID,
    payload: MatchCreate,
    *,
    now: datetime | None = None,
) -> JobMatch:
    """
    Take a daily slot and store the match in the same transaction.

    A duplicate post rolls both back, so the slot is not consumed.
    """
    now = now or _utc_now()
    try:
        record_match_created(db, user_id, now=now)
    except LimitExceededError:
        db.rollback()
        raise

    match = JobMatch(
        user_id=user_id,
        post_id=payload.post_id,
        job_title=payload.job_title,
        company=payload.company,
        score=payload.score,
        applied=False,
        created_at=now,
    )
    db.add(match)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise APIError(
            code="MATCH_ALREADY_EXISTS",
            http_code=409,
            message="Post is already matched for this user",
            details={"post_id": payload.post_id},
        )
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("failed to store match (user_id=%s): %r", user_id, exc)
        raise StorageError("Failed to store match") from exc

    db.refresh(match)
    logger.info("match created (user_id=%s, match_id=%s)", user_id, match.id)
    return match


def create_matches_batch(
    db: Session,
    user_id: UUID,
    payloads: List[MatchCreate],
    *,
    now: datetime | None = None,
) -> BatchOutcome:
    outcome = BatchOutcome()

    for index, payload in enumerate(payloads):
        try:
            outcome.created.append(create_match(db, user_id, payload, now=now))
        except LimitExceededError:
            outcome.limit_reached = True
            outcome.skipped = [item.post_id for item in payloads[index:]]
            break
        except APIError as exc:
            if exc.code != "MATCH_ALREADY_EXISTS":
                raise
            outcome.duplicates.append(payload.post_id)

    if outcome.limit_reached:
        logger.info(
            "match batch stopped at daily limit (user_id=%s, created=%s, skipped=%s)",
            user_id,
            len(outcome.created),
            len(outcome.skipped),
        )
    return outcome


def list_matches(
    db: Session,
    user_id: UUID,
    *,
    applied: bool | None = None,
) -> List[JobMatch]:
    query = db.query(JobMatch).filter(JobMatch.user_id == user_id)
    if applied is not None:
        query = query.filter(JobMatch.applied.is_(applied))
    return query.order_by(JobMatch.created_at.desc()).all()


def delete_match(db: Session, user_id: UUID, match_id: UUID) -> None:
    # The delete trigger releases the daily slot of an unapplied match.
    match = _get_owned_match(db, user_id, match_id)
    db.delete(match)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("failed to delete match (match_id=%s): %r", match_id, exc)
        raise StorageError("Failed to delete match") from exc

    logger.info("match deleted (user_id=%s, match_id=%s)", user_id, match_id)


def mark_applied(
    db: Session,
    user_id: UUID,
    match_id: UUID,
    *,
    now: datetime | None = None,
) -> JobMatch:
    match = _get_owned_match(db, user_id, match_id)
    if match.applied:
        return match

    # false -> true fires the update trigger, which releases the daily slot
    match.applied = True
    match.applied_at = now or _utc_now()
    db.add(match)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("failed to mark match applied (match_id=%s): %r", match_id, exc)
        raise StorageError("Failed to update match") from exc

    db.refresh(match)
    logger.info("match applied (user_id=%s, match_id=%s)", user_id, match_id)
    return match


__all__ = [
    "BatchOutcome",
    "create_match",
    "create_matches_batch",
    "list_matches",
    "delete_match",
    "mark_applied",
]
