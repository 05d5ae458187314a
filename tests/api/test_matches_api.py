from datetime import datetime, timedelta, timezone

from app.core.matches.models import JobMatch
from tests.conftest import stored_counter


URL = "/api/scraping/matches"


def _open_window_user(make_user, **kwargs):
    return make_user(
        reset_at=datetime.now(timezone.utc) + timedelta(hours=3),
        **kwargs,
    )


def test_create_match_takes_a_slot(client, db, make_user, auth_headers):
    user = _open_window_user(make_user)

    response = client.post(
        URL,
        json={"post_id": "urn:li:activity:1", "job_title": "Data Engineer"},
        headers=auth_headers(user),
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["post_id"] == "urn:li:activity:1"
    assert data["applied"] is False
    assert stored_counter(db, user) == 1


def test_create_match_over_limit_is_429(client, db, make_user, auth_headers):
    user = _open_window_user(make_user, count=10)

    response = client.post(URL, json={"post_id": "p-1"}, headers=auth_headers(user))

    assert response.status_code == 429
    error = response.json()["error"]
    assert error["code"] == "DAILY_LIMIT_EXCEEDED"
    assert error["details"]["current"] == 10
    assert error["details"]["limit"] == 10
    assert db.query(JobMatch).count() == 0


def test_duplicate_post_does_not_consume_slot(client, db, make_user, auth_headers):
    user = _open_window_user(make_user)
    headers = auth_headers(user)

    client.post(URL, json={"post_id": "p-1"}, headers=headers)
    response = client.post(URL, json={"post_id": "p-1"}, headers=headers)

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "MATCH_ALREADY_EXISTS"
    assert stored_counter(db, user) == 1


def test_delete_and_apply_release_slots(client, db, make_user, auth_headers):
    user = _open_window_user(make_user)
    headers = auth_headers(user)
    first = client.post(URL, json={"post_id": "p-1"}, headers=headers).json()["data"]
    second = client.post(URL, json={"post_id": "p-2"}, headers=headers).json()["data"]
    assert stored_counter(db, user) == 2

    response = client.delete(f"{URL}/{first['id']}", headers=headers)
    assert response.status_code == 200
    assert stored_counter(db, user) == 1

    response = client.post(f"{URL}/{second['id']}/apply", headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["applied"] is True
    assert stored_counter(db, user) == 0

    status = client.get("/api/scraping/daily-limit", headers=headers).json()["data"]
    assert status["current"] == 0


def test_foreign_match_is_not_found(client, make_user, auth_headers):
    owner = _open_window_user(make_user)
    other = _open_window_user(make_user)
    match = client.post(
        URL, json={"post_id": "p-1"}, headers=auth_headers(owner)
    ).json()["data"]

    response = client.delete(f"{URL}/{match['id']}", headers=auth_headers(other))

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "MATCH_NOT_FOUND"


def test_list_filters_by_applied(client, make_user, auth_headers):
    user = _open_window_user(make_user)
    headers = auth_headers(user)
    first = client.post(URL, json={"post_id": "p-1"}, headers=headers).json()["data"]
    client.post(URL, json={"post_id": "p-2"}, headers=headers)
    client.post(f"{URL}/{first['id']}/apply", headers=headers)

    applied = client.get(URL, params={"applied": "true"}, headers=headers).json()["data"]
    pending = client.get(URL, params={"applied": "false"}, headers=headers).json()["data"]

    assert [item["post_id"] for item in applied] == ["p-1"]
    assert [item["post_id"] for item in pending] == ["p-2"]


def test_batch_stops_at_limit(client, db, make_user, auth_headers):
    user = _open_window_user(make_user, count=8)

    response = client.post(
        f"{URL}/batch",
        json={"matches": [{"post_id": f"p-{i}"} for i in range(4)]},
        headers=auth_headers(user),
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert [item["post_id"] for item in data["created"]] == ["p-0", "p-1"]
    assert data["skipped"] == ["p-2", "p-3"]
    assert data["limit_reached"] is True
    assert stored_counter(db, user) == 10


def test_batch_reports_duplicates(client, make_user, auth_headers):
    user = _open_window_user(make_user)
    headers = auth_headers(user)
    client.post(URL, json={"post_id": "p-0"}, headers=headers)

    data = client.post(
        f"{URL}/batch",
        json={"matches": [{"post_id": "p-0"}, {"post_id": "p-1"}]},
        headers=headers,
    ).json()["data"]

    assert data["duplicates"] == ["p-0"]
    assert [item["post_id"] for item in data["created"]] == ["p-1"]
    assert data["limit_reached"] is False


def test_batch_rejected_when_allowance_used_up(client, make_user, auth_headers):
    user = _open_window_user(make_user, count=10)

    response = client.post(
        f"{URL}/batch",
        json={"matches": [{"post_id": "p-0"}]},
        headers=auth_headers(user),
    )

    assert response.status_code == 429
    assert response.json()["error"]["code"] == "DAILY_LIMIT_EXCEEDED"
