"""Engine and session factory.

Sessions keep attribute values after commit (expire_on_commit=False):
the order service maps rows to domain objects after committing and must
not trigger a reload per attribute.
"""

from contextlib import contextmanager
from typing import Any, Dict, Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from .config import get_settings


def _engine_options(url: str) -> Dict[str, Any]:
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True, "pool_size": 5, "max_overflow": 10}

    # SQLite is only used for tests and local experiments. An in-memory
    # database exists per connection, so all threads must share one.
    options: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in url:
        options["poolclass"] = StaticPool
    return options


DATABASE_URL = get_settings().DATABASE_URL

engine = create_engine(DATABASE_URL, **_engine_options(DATABASE_URL))

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Session for code running outside a request (Celery tasks, scripts).

    Commits when the block exits normally, rolls back if it raises.
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency: one session per request, closed afterwards.

    Commits are explicit (see infrastructure.repositories.unit_of_work).
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def dispose_engine() -> None:
    """Close pooled connections at shutdown.

    An in-memory SQLite database lives only in its single StaticPool
    connection, so that engine is left open for whoever still holds it.
    """
    if isinstance(engine.pool, StaticPool):
        return
    engine.dispose()
