from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth.models import User
from app.core.dependencies import get_current_user, get_db
from app.core.limits.dependencies import require_match_quota
from app.core.matches.schemas import (
    MatchBatchCreate,
    MatchBatchResult,
    MatchCreate,
    MatchPublic,
)
from app.core.matches.services import (
    create_match,
    create_matches_batch,
    delete_match,
    list_matches,
    mark_applied,
)
from app.response import StandardResponse, make_success_response


router = APIRouter(prefix="/scraping/matches", tags=["matches"])


@router.get(
    "",
    response_model=StandardResponse,
    summary="List job matches",
)
def matches_list_view(
    applied: bool | None = Query(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> StandardResponse:
    matches = list_matches(db, user.id, applied=applied)
    result: List[dict] = [
        MatchPublic.model_validate(item).model_dump(mode="json")
        for item in matches
    ]
    return make_success_response(data=result)


@router.post(
    "",
    response_model=StandardResponse,
    status_code=201,
    summary="Create a job match",
)
def matches_create_view(
    payload: MatchCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> StandardResponse:
    match = create_match(db, user.id, payload)
    result = MatchPublic.model_validate(match).model_dump(mode="json")
    return make_success_response(data=result)


@router.post(
    "/batch",
    response_model=StandardResponse,
    summary="Create matches until the daily limit is reached",
)
def matches_batch_view(
    payload: MatchBatchCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_match_quota),
) -> StandardResponse:
    outcome = create_matches_batch(db, user.id, payload.matches)
    result = MatchBatchResult(
        created=[MatchPublic.model_validate(item) for item in outcome.created],
        duplicates=outcome.duplicates,
        skipped=outcome.skipped,
        limit_reached=outcome.limit_reached,
    ).model_dump(mode="json")
    return make_success_response(data=result)


@router.delete(
    "/{match_id}",
    response_model=StandardResponse,
    summary="Delete a job match",
)
def matches_delete_view(
    match_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> StandardResponse:
    delete_match(db, user.id, match_id)
    return make_success_response(data={"id": str(match_id), "deleted": True})


@router.post(
    "/{match_id}/apply",
    response_model=StandardResponse,
    summary="Mark a job match as applied",
)
def matches_apply_view(
    match_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> StandardResponse:
    match = mark_applied(db, user.id, match_id)
    result = MatchPublic.model_validate(match).model_dump(mode="json")
    return make_success_response(data=result)


__all__ = ["router"]
