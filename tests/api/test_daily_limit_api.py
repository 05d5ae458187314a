from datetime import datetime, timedelta, timezone

from app.core.limits.api.v1 import routes_daily_limit
from app.core.limits.errors import StorageError


URL = "/api/scraping/daily-limit"


def test_requires_authentication(client):
    response = client.get(URL)

    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "AUTH_NOT_AUTHENTICATED"


def test_rejects_invalid_token(client):
    response = client.get(URL, headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTH_INVALID_TOKEN"


def test_returns_status_for_current_user(client, make_user, auth_headers):
    reset_at = datetime.now(timezone.utc) + timedelta(hours=2)
    user = make_user(plan="premium_pro", count=5, reset_at=reset_at)

    response = client.get(URL, headers=auth_headers(user))

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["current"] == 5
    assert data["limit"] == 50
    assert data["tier"] == "Premium Pro"
    assert data["canScrape"] is True
    assert data["percentageUsed"] == 10
    assert 1.9 <= data["hoursUntilReset"] <= 2.0
    assert data["resetAt"].startswith(reset_at.strftime("%Y-%m-%dT%H:%M"))


def test_stale_counter_reads_as_zero(client, make_user, auth_headers):
    user = make_user(
        count=7,
        reset_at=datetime.now(timezone.utc) - timedelta(hours=1),
    )

    data = client.get(URL, headers=auth_headers(user)).json()["data"]

    assert data["current"] == 0
    assert data["limit"] == 10
    assert 0 < data["hoursUntilReset"] <= 24


def test_cookie_authentication(client, make_user, auth_headers):
    user = make_user()
    token = auth_headers(user)["Authorization"].split(" ", 1)[1]
    client.cookies.set("access_token", token)

    response = client.get(URL)

    assert response.status_code == 200
    assert response.json()["data"]["tier"] == "Free"


def test_storage_error_maps_to_500(client, make_user, auth_headers, monkeypatch):
    user = make_user()

    def broken(*args, **kwargs):
        raise StorageError("Failed to read daily limit")

    monkeypatch.setattr(routes_daily_limit, "get_daily_limit_info", broken)

    response = client.get(URL, headers=auth_headers(user))

    assert response.status_code == 500
    error = response.json()["error"]
    assert error["code"] == "STORAGE_ERROR"
    assert error["message"] == "Failed to read daily limit"


def test_unexpected_error_carries_details(
    lenient_client, make_user, auth_headers, monkeypatch
):
    user = make_user()

    def broken(*args, **kwargs):
        raise RuntimeError("counter exploded")

    monkeypatch.setattr(routes_daily_limit, "get_daily_limit_info", broken)

    response = lenient_client.get(URL, headers=auth_headers(user))

    assert response.status_code == 500
    error = response.json()["error"]
    assert error["code"] == "INTERNAL_ERROR"
    assert error["details"] == "counter exploded"
