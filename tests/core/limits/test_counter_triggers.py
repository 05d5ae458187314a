from datetime import timedelta

from sqlalchemy import delete, update

from app.core.auth.models import User
from app.core.matches.models import JobMatch
from app.core.matches.schemas import MatchCreate
from app.core.matches.services import create_match, delete_match, mark_applied
from tests.conftest import NOW, stored_counter, stored_reset_at


def _user_with_matches(db, make_user, count):
    user = make_user(reset_at=NOW + timedelta(hours=4))
    matches = [
        create_match(db, user.id, MatchCreate(post_id=f"post-{i}"), now=NOW)
        for i in range(count)
    ]
    return user, matches


def test_deleting_unapplied_match_releases_slot(db, make_user):
    user, matches = _user_with_matches(db, make_user, 3)
    assert stored_counter(db, user) == 3

    delete_match(db, user.id, matches[0].id)

    assert stored_counter(db, user) == 2


def test_deleting_applied_match_keeps_count(db, make_user):
    user, matches = _user_with_matches(db, make_user, 2)
    mark_applied(db, user.id, matches[0].id, now=NOW)
    assert stored_counter(db, user) == 1

    delete_match(db, user.id, matches[0].id)

    assert stored_counter(db, user) == 1


def test_marking_applied_releases_slot_once(db, make_user):
    user, matches = _user_with_matches(db, make_user, 2)

    mark_applied(db, user.id, matches[1].id, now=NOW)
    assert stored_counter(db, user) == 1

    mark_applied(db, user.id, matches[1].id, now=NOW)
    db.execute(
        update(JobMatch)
        .where(JobMatch.id == matches[1].id)
        .values(applied=True)
    )
    db.commit()

    assert stored_counter(db, user) == 1


def test_unrelated_updates_do_not_touch_counter(db, make_user):
    user, matches = _user_with_matches(db, make_user, 2)

    db.execute(
        update(JobMatch)
        .where(JobMatch.id == matches[0].id)
        .values(job_title="Backend Engineer", applied=False)
    )
    db.commit()

    assert stored_counter(db, user) == 2


def test_decrement_is_floored_at_zero(db, make_user):
    user, matches = _user_with_matches(db, make_user, 2)
    db.execute(
        update(User).where(User.id == user.id).values(daily_matched_jobs_count=0)
    )
    db.commit()

    delete_match(db, user.id, matches[0].id)
    mark_applied(db, user.id, matches[1].id, now=NOW)

    assert stored_counter(db, user) == 0


def test_bulk_delete_decrements_per_row(db, make_user):
    user, _ = _user_with_matches(db, make_user, 4)

    db.execute(delete(JobMatch).where(JobMatch.user_id == user.id))
    db.commit()

    assert stored_counter(db, user) == 0


def test_triggers_leave_reset_boundary_alone(db, make_user):
    user, matches = _user_with_matches(db, make_user, 1)
    before = stored_reset_at(db, user)

    delete_match(db, user.id, matches[0].id)

    assert stored_reset_at(db, user) == before


def test_counter_never_negative_across_mixed_operations(db, make_user):
    user, matches = _user_with_matches(db, make_user, 5)

    for match in matches[:3]:
        mark_applied(db, user.id, match.id, now=NOW)
    for match in matches:
        delete_match(db, user.id, match.id)
        assert stored_counter(db, user) >= 0

    assert stored_counter(db, user) == 0
