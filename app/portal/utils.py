from __future__ import annotations

from datetime import date

from flask import current_app, session

from app.portal.constants import LANGUAGES


def current_language() -> str:
    lang = session.get("language") or "en"
    return lang if lang in LANGUAGES else "en"


def parse_date(s: str | None) -> date | None:
    """Parse YYYY-MM-DD date string."""
    if not s:
        return None
    s = s.strip()
    if not s:
        return None
    return date.fromisoformat(s)


def read_upload(file_storage) -> tuple[bytes, str, str] | None:
    """
    Read a werkzeug FileStorage into memory. Returns (bytes, filename, content_type),
    or None when no file was chosen.
    """
    if file_storage is None or not file_storage.filename:
        return None
    data = file_storage.read()
    return data, file_storage.filename, (file_storage.mimetype or "application/octet-stream")


def evidence_max_bytes() -> int:
    return int(current_app.config.get("EVIDENCE_MAX_BYTES") or 5 * 1024 * 1024)
