import logging
from logging.config import dictConfig

from flask import Flask


def init_logging(app: Flask) -> None:
    """Structured logs (JSON) in production; plain console logs elsewhere."""
    level = (app.config.get("LOG_LEVEL") or "INFO").upper()
    env = (app.config.get("ENV") or "").strip().lower()
    fmt = "%(asctime)s %(levelname)s %(name)s %(message)s"
    if env in ("prod", "production"):
        formatter = {"()": "pythonjsonlogger.json.JsonFormatter", "fmt": fmt}
    else:
        formatter = {"format": fmt}
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": formatter},
            "handlers": {"wsgi": {"class": "logging.StreamHandler", "formatter": "default"}},
            "root": {"level": level, "handlers": ["wsgi"]},
        }
    )
    app.logger.setLevel(getattr(logging, level, logging.INFO))
