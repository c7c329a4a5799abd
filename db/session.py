"""
SQLAlchemy session management.

The session factory is unbound at import time; the engine is bound when the
first session is created, so importing the server does not require
DATABASE_URL.
"""

from sqlalchemy.orm import Session, sessionmaker

from db.engine import get_engine

_SessionFactory = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False)


def SessionLocal() -> Session:
    """
    Zero-argument session factory handed to the stores and services.

    Usage:
        session = SessionLocal()
        try:
            ...
        finally:
            session.close()
    """
    _SessionFactory.configure(bind=get_engine())
    return _SessionFactory()
