from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from agencyhub.core.config import get_settings

settings = get_settings()

engine = create_engine(
    str(settings.database_url),
    future=True,
    pool_pre_ping=True,
)

# Session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    future=True,
)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a DB session.

    Tenant isolation is not done here: every tenant-scoped table carries
    tenant_id and queries filter on it (see core/tenant_context.py).
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Transactional session for scripts and admin jobs.

    Usage:
        with session_scope() as db:
            seed_permission_catalog(db)
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
