"""Public tracking lookup by ID."""
from datetime import datetime

import pytest

from app.portal.db import session_scope
from app.portal.modules.feedback.models import Feedback


@pytest.fixture()
def client(app):
    with session_scope(app) as s:
        s.add_all(
            [
                Feedback(
                    tracking_id="TRK12345",
                    status="reviewing",
                    is_anonymous=False,
                    full_name="Secret Person",
                    phone_number="+255799999999",
                    email="secret@example.com",
                    region="Dodoma",
                    district=None,
                    category="water",
                    description="Broken pipe near the market.",
                    created_at=datetime(2024, 3, 5, 9, 30),
                    updated_at=datetime(2024, 3, 6, 9, 30),
                ),
            ]
        )
    return app.test_client()


def test_track_page_without_query(client):
    r = client.get("/feedback/track")
    assert r.status_code == 200
    assert b"Track Your Feedback" in r.data
    assert b"Please enter a tracking ID" not in r.data


def test_track_empty_id(client):
    r = client.get("/feedback/track?tracking_id=+")
    assert b"Please enter a tracking ID" in r.data


def test_track_unknown_id(client):
    r = client.get("/feedback/track?tracking_id=NOPE0000")
    assert b"No feedback found with this tracking ID" in r.data


def test_track_found_case_insensitive(client):
    r = client.get("/feedback/track?tracking_id=%20trk12345%20")
    assert r.status_code == 200
    assert b"Feedback TRK12345" in r.data
    assert b"Reviewing" in r.data
    assert b"Our team is currently reviewing your feedback" in r.data
    assert b"Water &amp; Irrigation" in r.data
    assert b"05 Mar 2024" in r.data
    assert b"Dodoma" in r.data
    assert b"N/A" in r.data
    assert b"Broken pipe near the market." in r.data


def test_track_hides_personal_details(client):
    r = client.get("/feedback/track?tracking_id=TRK12345")
    assert b"Secret Person" not in r.data
    assert b"secret@example.com" not in r.data
    assert b"+255799999999" not in r.data


def test_track_in_swahili(client):
    client.get("/language/sw")
    r = client.get("/feedback/track?tracking_id=TRK12345")
    assert b"Inakaguliwa" in r.data
