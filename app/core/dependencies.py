from __future__ import annotations

import uuid
from typing import Generator

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from app.core.auth.models import User
from app.core.config import settings
from app.core.security import decode_token
from app.database.session import SessionLocal
from app.response.response import APIError


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _extract_token(request: Request, authorization: str | None) -> str:
    if authorization:
        try:
            scheme, token = authorization.split(" ", 1)
        except ValueError:
            raise APIError(
                code="AUTH_INVALID_AUTH_HEADER",
                http_code=401,
                message="Malformed Authorization header",
            )
        if scheme.lower() != "bearer":
            raise APIError(
                code="AUTH_INVALID_AUTH_SCHEME",
                http_code=401,
                message="Bearer authorization scheme expected",
            )
        return token

    # dashboard requests carry the token in a cookie instead of a header
    token = request.cookies.get(settings.access_token_cookie_name)
    if not token:
        raise APIError(
            code="AUTH_NOT_AUTHENTICATED",
            http_code=401,
            message="Unauthorized",
        )
    return token


def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db),
) -> User:
    token = _extract_token(request, authorization)

    try:
        payload = decode_token(token)
    except Exception:
        raise APIError(
            code="AUTH_INVALID_TOKEN",
            http_code=401,
            message="Invalid or expired access token",
        )

    # extension tokens carry the user id as "id" rather than "sub"
    user_id_str = payload.get("sub") or payload.get("id")
    try:
        user_id = uuid.UUID(str(user_id_str))
    except ValueError:
        raise APIError(
            code="AUTH_INVALID_TOKEN_PAYLOAD",
            http_code=401,
            message="Malformed token payload",
        )

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise APIError(
            code="AUTH_USER_NOT_FOUND",
            http_code=401,
            message="User not found",
        )

    if not user.is_active:
        raise APIError(
            code="AUTH_USER_INACTIVE",
            http_code=403,
            message="User is deactivated",
        )

    return user


__all__ = ["get_db", "get_current_user"]
