from __future__ import annotations

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

RESET_SALT = "password-reset-v1"


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret_key=current_app.config["SECRET_KEY"], salt=RESET_SALT)


def generate_reset_token(email: str, password_hash: str) -> str:
    """
    The token embeds a fragment of the current password hash, so it stops
    working as soon as the password changes (single use).
    """
    return _serializer().dumps({"e": email.lower(), "h": password_hash[-12:]})


def verify_reset_token(token: str, max_age_seconds: int | None = None) -> tuple[str, str] | None:
    """Returns (email, hash fragment) or None when invalid/expired."""
    if max_age_seconds is None:
        max_age_seconds = int(current_app.config.get("PASSWORD_RESET_MAX_AGE", 3600))
    try:
        data = _serializer().loads(token, max_age=max_age_seconds)
    except (BadSignature, SignatureExpired):
        return None
    if not isinstance(data, dict) or "e" not in data or "h" not in data:
        return None
    return data["e"], data["h"]
