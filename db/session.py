"""
SQLAlchemy session management.

The session factory must not call get_engine() at import time; the engine is
bound when the first session is created.
"""

from sqlalchemy.orm import Session, sessionmaker

from db.engine import get_engine

_SessionFactory = sessionmaker(autocommit=False, autoflush=False)


def SessionLocal() -> Session:
    """
    Lazy session factory that binds the engine on first use.

    Usage:
        session = SessionLocal()
        try:
            ...
        finally:
            session.close()
    """
    _SessionFactory.configure(bind=get_engine())
    return _SessionFactory()

