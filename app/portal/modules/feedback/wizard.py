"""
Four-step submission wizard kept in the Flask session.

Steps: 1 personal, 2 location, 3 details, 4 review. "Next" validates the current
step before advancing; "Previous" keeps what was typed without validating. A step
can be visited only once every step before it has passed validation.
"""
from __future__ import annotations

import uuid
from typing import Iterable

from flask import session

from app.portal.modules.feedback.service import validate_details, validate_location, validate_personal

SESSION_KEY = "feedback_wizard"

STEPS = (
    (1, "personal", "Personal Information"),
    (2, "location", "Location"),
    (3, "details", "Feedback Details"),
    (4, "review", "Review & Submit"),
)
FIRST_STEP = 1
LAST_STEP = 4

STEP_FIELDS = {
    1: ("is_anonymous", "full_name", "phone_number", "email"),
    2: ("region", "district", "ward", "village", "street"),
    3: ("category", "description"),
    4: (),
}


def _blank_state() -> dict:
    return {"id": uuid.uuid4().hex, "furthest": FIRST_STEP, "data": {}, "evidence": []}


def get_state() -> dict:
    state = session.get(SESSION_KEY)
    if not state:
        state = _blank_state()
        session[SESSION_KEY] = state
    return state


def _save(state: dict) -> None:
    session[SESSION_KEY] = state
    session.modified = True


def reset() -> dict:
    state = _blank_state()
    _save(state)
    return state


def clear() -> None:
    session.pop(SESSION_KEY, None)


def prefill(email: str | None, full_name: str | None = None, phone_number: str | None = None) -> None:
    """Seed step 1 for a signed-in user, without overwriting anything typed."""
    state = get_state()
    data = state["data"]
    for key, value in (("email", email), ("full_name", full_name), ("phone_number", phone_number)):
        if value and not data.get(key):
            data[key] = value
    _save(state)


def set_field(key: str, value) -> None:
    state = get_state()
    state["data"][key] = value
    _save(state)


def can_visit(step: int) -> bool:
    if step < FIRST_STEP or step > LAST_STEP:
        return False
    return step <= get_state()["furthest"]


def store_fields(step: int, form) -> dict:
    """Copy this step's fields from the submitted form into the session."""
    state = get_state()
    data = state["data"]
    for field in STEP_FIELDS.get(step, ()):
        if field == "is_anonymous":
            data[field] = bool(form.get(field))
        else:
            data[field] = (form.get(field) or "").strip()
    _save(state)
    return data


def validate_step(step: int, data: dict, category_ids: Iterable[str] | None = None) -> list[str]:
    if step == 1:
        return validate_personal(data)
    if step == 2:
        return validate_location(data)
    if step == 3:
        return validate_details(data, category_ids)
    return []


def advance(step: int) -> int:
    """Mark `step` as validated and return the next step."""
    state = get_state()
    nxt = min(step + 1, LAST_STEP)
    state["furthest"] = max(state["furthest"], nxt)
    _save(state)
    return nxt


def add_staged_evidence(item: dict) -> None:
    state = get_state()
    state["evidence"].append(item)
    _save(state)


def remove_staged_evidence(index: int) -> dict | None:
    state = get_state()
    if index < 0 or index >= len(state["evidence"]):
        return None
    item = state["evidence"].pop(index)
    _save(state)
    return item


def apply_location(loc) -> None:
    """Replace step 2 fields with their normalized values (invalid children cleared)."""
    state = get_state()
    state["data"].update({k: v or "" for k, v in loc.as_dict().items()})
    _save(state)
