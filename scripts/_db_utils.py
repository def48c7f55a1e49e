from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy.orm import Session

from app.portal.db import build_engine, make_sessionmaker


@contextmanager
def script_session(db_url: str):
    """Standalone session for scripts (no Flask app); commits on success."""
    engine = build_engine(db_url)
    s: Session = make_sessionmaker(engine)()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
        engine.dispose()
