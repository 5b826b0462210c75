"""
Database engine, session factory, and initialization utilities.

Usage:
    from eco_manager.data.database import get_session, init_db

    init_db()  # call once at application startup

    with get_session() as session:
        eco = session.get(ECO, "ECO-001")
"""

import json
import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from eco_manager.config.settings import settings
from eco_manager.data.models import Base, Part
from eco_manager.data.repositories import PartRepository

logger = logging.getLogger(__name__)

# Module-level engine singleton.
# check_same_thread=False required for SQLite: store calls run on QThread
# workers and on the part-lookup thread pool.
_engine = create_engine(
    f"sqlite:///{settings.db_path}",
    connect_args={"check_same_thread": False},
    echo=settings.db_echo,
)


@event.listens_for(_engine, "connect")
def _configure_sqlite(dbapi_connection, connection_record):
    """Enable WAL mode and enforce foreign key constraints on every connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


_SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)


def init_db() -> None:
    """
    Create all tables if they do not exist and seed the parts inventory.
    Safe to call multiple times (idempotent).
    """
    Base.metadata.create_all(_engine)
    _seed_parts()


def _seed_parts() -> None:
    """Populate the parts table from parts_catalog.json if the table is empty."""
    with get_session() as session:
        if session.query(Part).count() > 0:
            return  # already seeded

        catalog_path = settings.parts_catalog_path
        if not catalog_path.exists():
            logger.info("Parts catalog %s not found; inventory left empty", catalog_path)
            return

        data = json.loads(catalog_path.read_text(encoding="utf-8"))
        repo = PartRepository(session)
        for part_data in data.get("parts", []):
            repo.create(
                ipn=part_data["ipn"],
                description=part_data.get("description", ""),
                category=part_data.get("category"),
                manufacturer=part_data.get("manufacturer"),
                mpn=part_data.get("mpn"),
            )
        session.commit()
        logger.info("Seeded %d parts from %s", len(data.get("parts", [])), catalog_path)


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """
    Context manager providing a transactional database session.

    Automatically rolls back on exception and always closes the session.

    Usage:
        with get_session() as session:
            session.add(obj)
            session.commit()
    """
    session = _SessionFactory()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
