import os
import tempfile
import uuid
from datetime import datetime, timezone

_TMP_DIR = tempfile.mkdtemp(prefix="hireoo-tests-")
os.environ.setdefault(
    "DATABASE_URL", f"sqlite:///{os.path.join(_TMP_DIR, 'app.db')}"
)
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.auth.models import User
from app.core.billing.models import Subscription
from app.core.dependencies import get_db
from app.core.security import create_access_token
from app.database.base import Base
from app.main import app


# 15:30 in the reference timezone; next reset is 2026-10-19 18:30 UTC
NOW = datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        class_=Session,
    )


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


def _override_get_db(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    return override_get_db


@pytest.fixture
def client(session_factory):
    app.dependency_overrides[get_db] = _override_get_db(session_factory)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def lenient_client(session_factory):
    """Client that returns 500 responses instead of re-raising server errors."""
    app.dependency_overrides[get_db] = _override_get_db(session_factory)
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(
        *,
        count=0,
        reset_at=None,
        plan=None,
        status="active",
        current_period_end=None,
        email=None,
    ):
        user = User(
            email=email or f"{uuid.uuid4().hex}@example.com",
            daily_matched_jobs_count=count,
            daily_limit_reset_at=reset_at,
        )
        db.add(user)
        db.flush()
        if plan is not None:
            db.add(
                Subscription(
                    user_id=user.id,
                    plan_name=plan,
                    status=status,
                    current_period_end=current_period_end,
                )
            )
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        token = create_access_token(user_id=user.id)
        return {"Authorization": f"Bearer {token}"}

    return _headers


def stored_counter(db, user):
    db.expire_all()
    fresh = db.get(User, user.id)
    return fresh.daily_matched_jobs_count


def stored_reset_at(db, user):
    db.expire_all()
    fresh = db.get(User, user.id)
    value = fresh.daily_limit_reset_at
    if value is not None and value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value
