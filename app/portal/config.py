import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str
    app_base_url: str
    log_level: str

    storage_backend: str
    s3_endpoint: str
    s3_region: str
    s3_bucket: str
    s3_access_key_id: str
    s3_secret_access_key: str

    mail_enabled: bool
    mail_server: str
    mail_port: int
    mail_use_tls: bool
    mail_username: str
    mail_password: str
    mail_default_sender: str

    password_reset_max_age: int
    evidence_max_bytes: int
    storage_root: str


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getenv_bool(name: str, default: bool = False) -> bool:
    raw = _getenv(name)
    if not raw:
        return default
    return raw.lower() in ("1", "true", "yes", "on")


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///portal.db"),
        app_base_url=_getenv("APP_BASE_URL", "http://localhost:5000"),
        log_level=_getenv("LOG_LEVEL", "INFO").upper(),
        storage_backend=_getenv("STORAGE_BACKEND", "local"),
        s3_endpoint=_getenv("S3_ENDPOINT", ""),
        s3_region=_getenv("S3_REGION", "nyc3"),
        s3_bucket=_getenv("S3_BUCKET", ""),
        s3_access_key_id=_getenv("S3_ACCESS_KEY_ID", ""),
        s3_secret_access_key=_getenv("S3_SECRET_ACCESS_KEY", ""),
        mail_enabled=_getenv_bool("MAIL_ENABLED", False),
        mail_server=_getenv("MAIL_SERVER", "localhost"),
        mail_port=_getenv_int("MAIL_PORT", 25),
        mail_use_tls=_getenv_bool("MAIL_USE_TLS", False),
        mail_username=_getenv("MAIL_USERNAME", ""),
        mail_password=_getenv("MAIL_PASSWORD", ""),
        mail_default_sender=_getenv("MAIL_DEFAULT_SENDER", "no-reply@feedback.go.tz"),
        password_reset_max_age=_getenv_int("PASSWORD_RESET_MAX_AGE", 3600),
        evidence_max_bytes=_getenv_int("EVIDENCE_MAX_BYTES", 5 * 1024 * 1024),
        storage_root=_getenv("STORAGE_ROOT", ""),
    )


def load_config() -> dict:
    s = load_settings()
    is_production = s.env in ("prod", "production")
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "APP_BASE_URL": s.app_base_url,
        "LOG_LEVEL": s.log_level,
        "STORAGE_BACKEND": s.storage_backend,
        "S3_ENDPOINT": s.s3_endpoint,
        "S3_REGION": s.s3_region,
        "S3_BUCKET": s.s3_bucket,
        "S3_ACCESS_KEY_ID": s.s3_access_key_id,
        "S3_SECRET_ACCESS_KEY": s.s3_secret_access_key,
        "STORAGE_ROOT": s.storage_root,
        # Flask-Mail
        "MAIL_ENABLED": s.mail_enabled,
        "MAIL_SUPPRESS_SEND": not s.mail_enabled,
        "MAIL_SERVER": s.mail_server,
        "MAIL_PORT": s.mail_port,
        "MAIL_USE_TLS": s.mail_use_tls,
        "MAIL_USERNAME": s.mail_username or None,
        "MAIL_PASSWORD": s.mail_password or None,
        "MAIL_DEFAULT_SENDER": s.mail_default_sender,
        "PASSWORD_RESET_MAX_AGE": s.password_reset_max_age,
        "EVIDENCE_MAX_BYTES": s.evidence_max_bytes,
        # security defaults
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": is_production,
        # whole-request limit; per-file evidence limit is EVIDENCE_MAX_BYTES
        "MAX_CONTENT_LENGTH": 10 * 1024 * 1024,
    }
