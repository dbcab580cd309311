from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from config import get_settings
from problemqa.db.models import Base

_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def create_db_engine(url: str | None = None) -> Engine:
    """Create an engine for the given URL, defaulting to settings.database_url."""
    settings = get_settings()
    return create_engine(
        url or settings.database_url,
        echo=settings.log_level == "DEBUG",
        pool_pre_ping=True,
    )


def get_engine() -> Engine:
    """Get the shared database engine (lazy initialization)."""
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def _get_session_factory() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(bind=get_engine(), autocommit=False, autoflush=False)
    return _SessionLocal


def init_db(engine: Engine | None = None) -> None:
    """Initialize database tables."""
    Base.metadata.create_all(bind=engine or get_engine())
    logger.info("Database tables initialized")


@contextmanager
def session_scope(engine: Engine | None = None) -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""
    if engine is not None:
        session = Session(bind=engine, autoflush=False)
    else:
        session = _get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:  # Rollback on any error before re-raising
        session.rollback()
        raise
    finally:
        session.close()
