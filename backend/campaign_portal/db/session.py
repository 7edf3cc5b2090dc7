import logging
from contextlib import contextmanager
from typing import Callable, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from campaign_portal.core.config import settings
from campaign_portal.core.exceptions import PortalError, StoreFailure

logger = logging.getLogger(__name__)


def _connect_args(url: str) -> dict:
    # SQLite connections are shared between the request threadpool workers
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=_connect_args(settings.DATABASE_URL),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Dependency for getting database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(
    db: Session,
    on_integrity_error: Optional[Callable[[IntegrityError], PortalError]] = None,
):
    """
    Run a unit of work: commit on success, roll back on any failure.

    Uniqueness violations are handed to `on_integrity_error` so callers can
    report them as the conflict the constraint guards against. Any other
    database error becomes a StoreFailure.
    """
    try:
        yield db
        db.commit()
    except PortalError:
        db.rollback()
        raise
    except IntegrityError as e:
        db.rollback()
        if on_integrity_error is not None:
            raise on_integrity_error(e) from e
        logger.error(f"❌ Integrity error: {e.orig}")
        raise StoreFailure() from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Database error: {e}", exc_info=True)
        raise StoreFailure() from e
