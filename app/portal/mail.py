from __future__ import annotations

import json
import time
from typing import Any
from urllib.parse import urljoin

from flask import current_app, render_template
from flask_mail import Mail, Message

mail = Mail()


def absolute_url(path: str) -> str:
    base = current_app.config["APP_BASE_URL"].rstrip("/") + "/"
    return urljoin(base, path.lstrip("/"))


def send_email(to_email: str, subject: str, template: str, context: dict[str, Any] | None = None) -> bool:
    """
    Render templates/email/<template>.txt and send it.

    Returns False when mail is disabled or the send fails; callers treat email as
    best effort because the triggering change is already committed.
    """
    context = context or {}
    body = render_template(f"email/{template}.txt", **context)
    to_email = to_email.strip().lower()

    if not current_app.config.get("MAIL_ENABLED"):
        current_app.logger.info(
            json.dumps({"event": "mail_send", "template": template, "to": to_email, "outcome": "disabled"})
        )
        return False

    msg = Message(recipients=[to_email], subject=subject, body=body)
    start = time.perf_counter()
    try:
        mail.send(msg)
    except Exception as ex:
        current_app.logger.warning(
            json.dumps(
                {
                    "event": "mail_send",
                    "template": template,
                    "to": to_email,
                    "outcome": "failed",
                    "error": str(ex),
                    "latency_ms": int((time.perf_counter() - start) * 1000),
                }
            )
        )
        return False

    current_app.logger.info(
        json.dumps(
            {
                "event": "mail_send",
                "template": template,
                "to": to_email,
                "outcome": "sent",
                "latency_ms": int((time.perf_counter() - start) * 1000),
            }
        )
    )
    return True
