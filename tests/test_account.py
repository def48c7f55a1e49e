"""Citizen dashboard: profile, feedback history and notifications."""
import io
from datetime import date, datetime
from pathlib import Path

import pytest
from werkzeug.security import generate_password_hash

from app.portal.db import session_scope
from app.portal.models import User
from app.portal.modules.feedback.models import Feedback, FeedbackEvidence, FeedbackNotification
from app.portal.rbac import assign_role


@pytest.fixture()
def client(app):
    with session_scope(app) as s:
        citizen = User(email="citizen@example.com", password_hash=generate_password_hash("password1"), is_active=True)
        other = User(email="other@example.com", password_hash=generate_password_hash("password1"), is_active=True)
        mod = User(
            email="mod@example.com",
            password_hash=generate_password_hash("password1"),
            is_active=True,
            region="Dodoma",
            moderation_level=1,
        )
        s.add_all([citizen, other, mod])
        s.flush()
        assign_role(s, citizen, "user")
        assign_role(s, other, "user")
        assign_role(s, mod, "moderator")

        now = datetime.utcnow()
        mine = Feedback(
            tracking_id="MINE0001", user_id=citizen.id, status="pending", is_anonymous=False,
            region="Dodoma", category="water", description="Pending one", created_at=now, updated_at=now,
        )
        reviewed = Feedback(
            tracking_id="MINE0002", user_id=citizen.id, status="reviewing", is_anonymous=False,
            region="Dodoma", category="water", description="Under review", created_at=now, updated_at=now,
        )
        theirs = Feedback(
            tracking_id="THEIRS01", user_id=other.id, status="pending", is_anonymous=False,
            region="Dodoma", category="water", description="Someone else", created_at=now, updated_at=now,
        )
        s.add_all([mine, reviewed, theirs])
        s.flush()
        s.add_all(
            [
                FeedbackNotification(feedback_id=mine.id, user_id=citizen.id, message="First note"),
                FeedbackNotification(feedback_id=reviewed.id, user_id=citizen.id, message="Second note"),
                FeedbackNotification(feedback_id=theirs.id, user_id=other.id, message="Not yours"),
            ]
        )
    return app.test_client()


def _login(client, email="citizen@example.com"):
    client.post("/auth/login", data={"email": email, "password": "password1"}, follow_redirects=True)


def _csrf(client):
    client.get("/about")
    with client.session_transaction() as sess:
        return sess["csrf_token"]


def test_dashboard_requires_login(client):
    r = client.get("/account/")
    assert r.status_code == 302
    assert "/auth/login" in r.headers["Location"]


def test_history_lists_only_own_feedback(client):
    _login(client)
    r = client.get("/account/?tab=history")
    assert r.status_code == 200
    assert b"MINE0001" in r.data
    assert b"MINE0002" in r.data
    assert b"THEIRS01" not in r.data


def test_feedback_detail_owner_only(client):
    _login(client)
    assert client.get("/account/feedback/MINE0001").status_code == 200
    assert client.get("/account/feedback/THEIRS01").status_code == 404


def test_delete_pending_feedback(app, client):
    _login(client)
    r = client.post("/account/feedback/MINE0001/delete", data={"csrf_token": _csrf(client)}, follow_redirects=True)
    assert b"Feedback deleted." in r.data
    with session_scope(app) as s:
        assert s.query(Feedback).filter(Feedback.tracking_id == "MINE0001").one_or_none() is None
        # Notifications go with the feedback.
        assert s.query(FeedbackNotification).filter(FeedbackNotification.message == "First note").count() == 0


def test_delete_removes_evidence_objects(app, client):
    root = Path(app.config["STORAGE_ROOT"])
    key = "feedback/MINE0001/2024-01-01/photo.png"
    (root / key).parent.mkdir(parents=True, exist_ok=True)
    (root / key).write_bytes(b"png")
    with session_scope(app) as s:
        fb = s.query(Feedback).filter(Feedback.tracking_id == "MINE0001").one()
        s.add(
            FeedbackEvidence(
                feedback_id=fb.id, storage_key=key, original_filename="photo.png",
                content_type="image/png", sha256="0" * 64, size_bytes=3,
            )
        )

    _login(client)
    client.post("/account/feedback/MINE0001/delete", data={"csrf_token": _csrf(client)})
    assert not (root / key).exists()
    with session_scope(app) as s:
        assert s.query(FeedbackEvidence).count() == 0


def test_cannot_delete_reviewed_feedback(app, client):
    _login(client)
    r = client.post("/account/feedback/MINE0002/delete", data={"csrf_token": _csrf(client)}, follow_redirects=True)
    assert b"Only pending feedback can be deleted." in r.data
    with session_scope(app) as s:
        assert s.query(Feedback).filter(Feedback.tracking_id == "MINE0002").one_or_none() is not None


def test_cannot_delete_someone_elses_feedback(app, client):
    _login(client)
    r = client.post("/account/feedback/THEIRS01/delete", data={"csrf_token": _csrf(client)})
    assert r.status_code == 404
    with session_scope(app) as s:
        assert s.query(Feedback).filter(Feedback.tracking_id == "THEIRS01").one_or_none() is not None


def test_notifications_tab(client):
    _login(client)
    r = client.get("/account/?tab=notifications")
    assert b"First note" in r.data
    assert b"Second note" in r.data
    assert b"Not yours" not in r.data


def test_mark_one_notification_read(app, client):
    _login(client)
    with session_scope(app) as s:
        n_id = s.query(FeedbackNotification).filter(FeedbackNotification.message == "First note").one().id
        other_id = s.query(FeedbackNotification).filter(FeedbackNotification.message == "Not yours").one().id

    r = client.post(f"/account/notifications/{n_id}/read", data={"csrf_token": _csrf(client)})
    assert r.status_code == 302
    assert client.post(f"/account/notifications/{other_id}/read", data={"csrf_token": _csrf(client)}).status_code == 404

    with session_scope(app) as s:
        assert s.get(FeedbackNotification, n_id).is_read is True
        assert s.get(FeedbackNotification, other_id).is_read is False


def test_mark_all_notifications_read(app, client):
    _login(client)
    r = client.post("/account/notifications/read-all", data={"csrf_token": _csrf(client)}, follow_redirects=True)
    assert b"Marked 2 notifications as read." in r.data

    r = client.post("/account/notifications/read-all", data={"csrf_token": _csrf(client)}, follow_redirects=True)
    assert b"No unread notifications." in r.data

    with session_scope(app) as s:
        assert s.query(FeedbackNotification).filter(FeedbackNotification.message == "Not yours").one().is_read is False


def test_update_profile(app, client):
    _login(client)
    r = client.post(
        "/account/profile",
        data={
            "csrf_token": _csrf(client),
            "full_name": "Amina Juma",
            "phone_number": "+255700000001",
            "date_of_birth": "1990-05-17",
            "region": "Mwanza",
            "language": "sw",
        },
        follow_redirects=True,
    )
    assert b"Profile updated." in r.data
    with session_scope(app) as s:
        u = s.query(User).filter(User.email == "citizen@example.com").one()
        assert u.full_name == "Amina Juma"
        assert u.date_of_birth == date(1990, 5, 17)
        assert u.region == "Mwanza"
        assert u.language == "sw"
    with client.session_transaction() as sess:
        assert sess["language"] == "sw"


def test_update_profile_validation(app, client):
    _login(client)
    r = client.post(
        "/account/profile",
        data={"csrf_token": _csrf(client), "date_of_birth": "17/05/1990", "region": "Atlantis", "language": "fr"},
        follow_redirects=True,
    )
    assert b"Date of birth must be YYYY-MM-DD." in r.data
    assert b"Please select a valid region." in r.data
    assert b"Unsupported language." in r.data


def test_moderator_profile_keeps_assignment_region(app, client):
    _login(client, "mod@example.com")
    client.post(
        "/account/profile",
        data={"csrf_token": _csrf(client), "full_name": "Mod", "region": "Mwanza", "language": "en"},
    )
    with session_scope(app) as s:
        u = s.query(User).filter(User.email == "mod@example.com").one()
        assert u.full_name == "Mod"
        assert u.region == "Dodoma"


def test_avatar_upload_and_fetch(app, client):
    _login(client)
    png = b"\x89PNG\r\n\x1a\n" + b"\x02" * 16
    r = client.post(
        "/account/profile",
        data={"csrf_token": _csrf(client), "language": "en", "avatar": (io.BytesIO(png), "me.png", "image/png")},
        content_type="multipart/form-data",
        follow_redirects=True,
    )
    assert b"Profile updated." in r.data
    r = client.get("/account/avatar")
    assert r.status_code == 200
    assert r.data == png
    r.close()


def test_replacing_avatar_removes_old_object_after_save(app, client):
    _login(client)
    first = b"\x89PNG\r\n\x1a\n" + b"\x03" * 16
    second = b"\x89PNG\r\n\x1a\n" + b"\x04" * 16
    for payload, name in ((first, "me.png"), (second, "me-new.png")):
        client.post(
            "/account/profile",
            data={"csrf_token": _csrf(client), "language": "en", "avatar": (io.BytesIO(payload), name, "image/png")},
            content_type="multipart/form-data",
        )

    root = Path(app.config["STORAGE_ROOT"])
    with session_scope(app) as s:
        u = s.query(User).filter(User.email == "citizen@example.com").one()
        assert u.avatar_storage_key.endswith("me-new.png")
        assert not (root / f"avatars/{u.id}/me.png").exists()
    r = client.get("/account/avatar")
    assert r.data == second
    r.close()


def test_upload_avatar_leaves_previous_object_until_commit(app, client, tmp_path):
    from app.portal.modules.account.service import upload_avatar
    from app.portal.storage import LocalStorage

    storage = LocalStorage(root=tmp_path / "objects")
    with session_scope(app) as s:
        u = s.query(User).filter(User.email == "citizen@example.com").one()
        upload_avatar(s, u, storage, b"old", "old.png", "image/png")
        old_key = u.avatar_storage_key
        upload_avatar(s, u, storage, b"new", "new.png", "image/png")
        assert u.avatar_storage_key != old_key
        assert storage.read_bytes(old_key) == b"old"
        s.rollback()
