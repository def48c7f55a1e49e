"""
Unit tests for feedback service helpers.

Tests cover:
- Tracking ID generation and normalization
- Payload and evidence validation
- In-memory filtering and sorting for the moderator list
- Public tracking projection
- Submission, status change, response and deletion against a database
"""
import re
from datetime import date, datetime, timedelta
from types import SimpleNamespace

import pytest
from werkzeug.security import generate_password_hash

from app.portal.db import session_scope
from app.portal.models import AuditEvent, User
from app.portal.modules.feedback import service as feedback_service
from app.portal.modules.feedback.models import Feedback, FeedbackNotification
from app.portal.modules.feedback.service import (
    EvidenceFile,
    FeedbackError,
    add_response,
    build_evidence_storage_key,
    build_staging_key,
    delete_pending_feedback,
    file_digest_and_bytes,
    filter_and_sort,
    generate_tracking_id,
    new_tracking_id,
    normalize_tracking_id,
    public_tracking_view,
    status_info,
    submit_feedback,
    update_status,
    validate_details,
    validate_evidence,
    validate_feedback_payload,
    validate_location,
    validate_personal,
)
from app.portal.rbac import assign_role
from app.portal.storage import LocalStorage

MB = 1024 * 1024


class TestTrackingId:
    def test_format(self):
        for _ in range(50):
            assert re.fullmatch(r"[A-Z0-9]{8}", generate_tracking_id())

    def test_normalize(self):
        assert normalize_tracking_id("  ab12cd34 ") == "AB12CD34"
        assert normalize_tracking_id(None) == ""


class TestValidation:
    def test_personal_optional(self):
        assert validate_personal({}) == []

    def test_personal_bad_email(self):
        assert validate_personal({"email": "nope"}) == ["Invalid email format."]

    def test_personal_anonymous_skips_email(self):
        assert validate_personal({"is_anonymous": "1", "email": "nope"}) == []

    def test_location(self):
        assert validate_location({}) == ["Region is required."]
        assert validate_location({"region": "Atlantis"}) == ["Please select a valid region."]
        assert validate_location({"region": "Arusha", "district": "Ilala"}) == []

    def test_details(self):
        assert validate_details({}) == ["Category is required.", "Description is required."]
        assert validate_details({"category": "x", "description": "d"}, ["water"]) == ["Unknown category."]
        assert validate_details({"category": "water", "description": "d"}, ["water"]) == []

    def test_full_payload(self):
        errors = validate_feedback_payload({"email": "bad", "region": "", "category": "", "description": ""})
        assert errors == [
            "Invalid email format.",
            "Region is required.",
            "Category is required.",
            "Description is required.",
        ]


class TestEvidenceValidation:
    def test_accepts_png_and_jpg(self):
        assert validate_evidence("a.png", "image/png", 100, 5 * MB) == []
        assert validate_evidence("a.JPG", "image/jpeg", 100, 5 * MB) == []
        assert validate_evidence("a.jpeg", "image/jpeg", 100, 5 * MB) == []

    def test_rejects_other_types(self):
        assert validate_evidence("a.gif", "image/gif", 100, 5 * MB) == ["Only PNG and JPG images are allowed."]
        assert validate_evidence("a.png", "application/pdf", 100, 5 * MB) == ["Only PNG and JPG images are allowed."]
        assert validate_evidence("noext", "image/png", 100, 5 * MB) == ["Only PNG and JPG images are allowed."]

    def test_size_limits(self):
        assert validate_evidence("a.png", "image/png", 0, 5 * MB) == ["Uploaded file is empty."]
        assert validate_evidence("a.png", "image/png", 5 * MB + 1, 5 * MB) == ["Image must be smaller than 5MB."]
        assert validate_evidence("a.png", "image/png", 5 * MB, 5 * MB) == []


class TestStorageKeys:
    def test_evidence_key(self):
        key = build_evidence_storage_key("AB12CD34", "my photo.png", date(2024, 1, 2), token="0a1b2c3d")
        assert key == "feedback/AB12CD34/2024-01-02/0a1b2c3d_my_photo.png"

    def test_evidence_key_unsafe_name(self):
        key = build_evidence_storage_key("AB12CD34", "../../", date(2024, 1, 2), token="0a1b2c3d")
        assert key == "feedback/AB12CD34/2024-01-02/0a1b2c3d_evidence.jpg"

    def test_staging_key(self):
        assert build_staging_key("abc", "x.png", token="ffff0000") == "staging/abc/ffff0000_x.png"

    def test_same_filename_gets_distinct_keys(self):
        first = build_evidence_storage_key("AB12CD34", "photo.png", date(2024, 1, 2))
        second = build_evidence_storage_key("AB12CD34", "photo.png", date(2024, 1, 2))
        assert first != second
        assert first.endswith("_photo.png") and second.endswith("_photo.png")
        assert build_staging_key("abc", "bridge.png") != build_staging_key("abc", "bridge.png")

    def test_digest(self):
        digest, size = file_digest_and_bytes(b"abc")
        assert digest == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        assert size == 3


def _row(tid, status="pending", category="water", days_ago=0, **kw):
    return SimpleNamespace(
        tracking_id=tid,
        status=status,
        category=category,
        description=kw.get("description", ""),
        full_name=kw.get("full_name"),
        district=kw.get("district"),
        created_at=datetime(2024, 6, 15) - timedelta(days=days_ago),
    )


class TestFilterAndSort:
    @pytest.fixture()
    def rows(self):
        return [
            _row("AAA", "resolved", days_ago=0),
            _row("BBB", "pending", days_ago=3, description="Broken Pipe"),
            _row("CCC", "reviewing", "healthcare", days_ago=1, district="Ilala"),
            _row("DDD", "pending", days_ago=1, full_name="Neema Mushi"),
            _row("EEE", "rejected", days_ago=2),
        ]

    def _ids(self, rows):
        return [r.tracking_id for r in rows]

    def test_default_newest_first(self, rows):
        assert self._ids(filter_and_sort(rows)) == ["AAA", "CCC", "DDD", "EEE", "BBB"]

    def test_oldest_first(self, rows):
        assert self._ids(filter_and_sort(rows, sort="oldest"))[0] == "BBB"

    def test_priority(self, rows):
        assert self._ids(filter_and_sort(rows, sort="priority")) == ["DDD", "BBB", "CCC", "AAA", "EEE"]

    def test_status_filter(self, rows):
        assert self._ids(filter_and_sort(rows, status="pending")) == ["DDD", "BBB"]
        assert len(filter_and_sort(rows, status="all")) == 5

    def test_category_filter(self, rows):
        assert self._ids(filter_and_sort(rows, category="healthcare")) == ["CCC"]
        assert len(filter_and_sort(rows, category="all")) == 5

    def test_search_is_case_insensitive(self, rows):
        assert self._ids(filter_and_sort(rows, search="pipe")) == ["BBB"]
        assert self._ids(filter_and_sort(rows, search="NEEMA")) == ["DDD"]
        assert self._ids(filter_and_sort(rows, search="ilala")) == ["CCC"]
        assert self._ids(filter_and_sort(rows, search="aaa")) == ["AAA"]

    def test_search_matches_category_name(self, rows):
        names = {"healthcare": "Health", "water": "Water & Irrigation"}
        assert self._ids(filter_and_sort(rows, search="health", category_names=names)) == ["CCC"]


class TestStatusInfo:
    def test_english_and_swahili(self):
        assert status_info("resolved")[0] == "Resolved"
        assert status_info("resolved", "sw")[0] == "Imetatuliwa"

    def test_unknown_language_falls_back(self):
        assert status_info("pending", "fr")[0] == "Pending"

    def test_unknown_status(self):
        assert status_info("archived") == ("Archived", "")

    def test_public_view(self):
        fb = SimpleNamespace(
            tracking_id="AB12CD34",
            status="pending",
            category="water",
            created_at=datetime(2024, 1, 1),
            region="Dodoma",
            district=None,
            description="d",
            full_name="Hidden",
            email="hidden@example.com",
        )
        view = public_tracking_view(fb, "en", "Water & Irrigation")
        assert view["district"] == "N/A"
        assert view["category"] == "Water & Irrigation"
        assert view["status_label"] == "Pending"
        assert "full_name" not in view and "email" not in view


# ---------- Database-backed ----------
@pytest.fixture()
def db(app):
    with session_scope(app) as s:
        citizen = User(email="citizen@example.com", password_hash=generate_password_hash("pw"), is_active=True)
        mod = User(email="mod@example.com", password_hash=generate_password_hash("pw"), is_active=True)
        s.add_all([citizen, mod])
        s.flush()
        assign_role(s, citizen, "user")
        assign_role(s, mod, "moderator")
    return app


def _users(s):
    return (
        s.query(User).filter(User.email == "citizen@example.com").one(),
        s.query(User).filter(User.email == "mod@example.com").one(),
    )


def _payload(**kw):
    data = {"region": "Dodoma", "category": "water", "description": "Dry taps", "email": "A@B.com", "full_name": "Asha"}
    data.update(kw)
    return data


class TestSubmitFeedback:
    def test_submit_links_user_and_audits(self, db):
        with session_scope(db) as s:
            citizen, _ = _users(s)
            fb = submit_feedback(s, _payload(), citizen)
            assert fb.status == "pending"
            assert fb.user_id == citizen.id
            assert fb.email == "a@b.com"
            s.flush()
            ev = s.query(AuditEvent).filter(AuditEvent.action == "feedback.submit").one()
            assert ev.entity_id == fb.tracking_id

    def test_anonymous(self, db):
        with session_scope(db) as s:
            fb = submit_feedback(s, _payload(is_anonymous=True), None)
            assert (fb.full_name, fb.email, fb.phone_number) == (None, None, None)
            assert fb.user_id is None

    def test_requires_region(self, db):
        with session_scope(db) as s:
            with pytest.raises(FeedbackError):
                submit_feedback(s, _payload(region=""), None)

    def test_unknown_region(self, db):
        with session_scope(db) as s:
            with pytest.raises(FeedbackError):
                submit_feedback(s, _payload(region="Atlantis"), None)

    def test_evidence_requires_storage(self, db):
        with session_scope(db) as s:
            with pytest.raises(FeedbackError):
                submit_feedback(s, _payload(), None, evidence=[EvidenceFile("a.png", "image/png", data=b"x")])

    def test_evidence_stored(self, db, tmp_path):
        storage = LocalStorage(root=tmp_path / "objects")
        with session_scope(db) as s:
            fb = submit_feedback(
                s, _payload(), None, storage=storage, evidence=[EvidenceFile("a.png", "image/png", data=b"img")]
            )
            s.flush()
            s.refresh(fb)
            assert len(fb.evidence) == 1
            assert storage.read_bytes(fb.evidence[0].storage_key) == b"img"

    def test_same_named_evidence_kept_apart(self, db, tmp_path):
        storage = LocalStorage(root=tmp_path / "objects")
        evidence = [
            EvidenceFile("photo.png", "image/png", data=b"first"),
            EvidenceFile("photo.png", "image/png", data=b"second"),
        ]
        with session_scope(db) as s:
            fb = submit_feedback(s, _payload(), None, storage=storage, evidence=evidence)
            s.flush()
            s.refresh(fb)
            keys = [ev.storage_key for ev in fb.evidence]
            assert len(set(keys)) == 2
            assert sorted(storage.read_bytes(k) for k in keys) == [b"first", b"second"]

    def test_staged_evidence_left_for_caller(self, db, tmp_path):
        storage = LocalStorage(root=tmp_path / "objects")
        staged = build_staging_key("w1", "bridge.png")
        storage.put_bytes(staged, b"staged")
        with session_scope(db) as s:
            fb = submit_feedback(
                s,
                _payload(),
                None,
                storage=storage,
                evidence=[EvidenceFile("bridge.png", "image/png", staged_key=staged)],
            )
            s.flush()
            s.refresh(fb)
            assert storage.read_bytes(fb.evidence[0].storage_key) == b"staged"
        assert storage.exists(staged)


class TestTrackingIdCollision:
    def test_retries_until_free(self, db, monkeypatch):
        with session_scope(db) as s:
            taken = submit_feedback(s, _payload(), None).tracking_id
            s.flush()
            candidates = iter([taken, taken, "FRESH001"])
            monkeypatch.setattr(feedback_service, "generate_tracking_id", lambda: next(candidates))
            assert new_tracking_id(s) == "FRESH001"

    def test_gives_up_when_every_attempt_collides(self, db, monkeypatch):
        with session_scope(db) as s:
            taken = submit_feedback(s, _payload(), None).tracking_id
            s.flush()
            calls = []

            def _always_taken():
                calls.append(1)
                return taken

            monkeypatch.setattr(feedback_service, "generate_tracking_id", _always_taken)
            with pytest.raises(FeedbackError, match="Could not allocate a tracking ID"):
                new_tracking_id(s)
            assert len(calls) == feedback_service.TRACKING_ID_ATTEMPTS


class TestModeration:
    def test_update_status(self, db):
        with session_scope(db) as s:
            citizen, mod = _users(s)
            fb = submit_feedback(s, _payload(), citizen)
            assert update_status(s, fb, "Resolved", mod) is True
            assert fb.status == "resolved"
            assert update_status(s, fb, "resolved", mod) is False
            s.flush()
            messages = [n.message for n in s.query(FeedbackNotification).all()]
            assert messages == ["Your feedback has been resolved. Thank you for your contribution!"]

    def test_update_status_invalid(self, db):
        with session_scope(db) as s:
            citizen, mod = _users(s)
            fb = submit_feedback(s, _payload(), citizen)
            with pytest.raises(FeedbackError):
                update_status(s, fb, "closed", mod)

    def test_add_response(self, db):
        with session_scope(db) as s:
            citizen, mod = _users(s)
            fb = submit_feedback(s, _payload(), citizen)
            resp = add_response(s, fb, "  We are on it.  ", mod)
            assert resp.message == "We are on it."
            assert resp.responder_user_id == mod.id
            with pytest.raises(FeedbackError):
                add_response(s, fb, " ", mod)


class TestDeletePending:
    def test_owner_can_delete_pending(self, db, tmp_path):
        storage = LocalStorage(root=tmp_path / "objects")
        with session_scope(db) as s:
            citizen, _ = _users(s)
            fb = submit_feedback(s, _payload(), citizen)
            s.flush()
            delete_pending_feedback(s, fb, citizen, storage)
            s.flush()
            assert s.query(Feedback).count() == 0

    def test_not_owner(self, db, tmp_path):
        storage = LocalStorage(root=tmp_path / "objects")
        with session_scope(db) as s:
            citizen, mod = _users(s)
            fb = submit_feedback(s, _payload(), citizen)
            with pytest.raises(FeedbackError, match="You can only delete your own feedback."):
                delete_pending_feedback(s, fb, mod, storage)

    def test_not_pending(self, db, tmp_path):
        storage = LocalStorage(root=tmp_path / "objects")
        with session_scope(db) as s:
            citizen, mod = _users(s)
            fb = submit_feedback(s, _payload(), citizen)
            update_status(s, fb, "reviewing", mod)
            with pytest.raises(FeedbackError, match="Only pending feedback can be deleted."):
                delete_pending_feedback(s, fb, citizen, storage)
