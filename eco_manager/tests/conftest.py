"""
pytest fixtures shared across all tests.

Uses an in-memory SQLite database for fast, isolated test runs.
Each test function gets a fresh database; seeded_session adds the
parts IPN-001..IPN-003.
"""

from contextlib import contextmanager
from unittest.mock import patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from eco_manager.data.models import Base, Part

SEED_PARTS = [
    ("IPN-001", "10k Resistor", "passive"),
    ("IPN-002", "100nF Capacitor", "passive"),
    ("IPN-003", "MCU STM32", "ic"),
]


@pytest.fixture(scope="function")
def db_engine():
    """In-memory SQLite engine, fresh per test function."""
    # StaticPool: every connection (including worker threads) sees the same DB
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Transactional session; rolls back after each test."""
    SessionFactory = sessionmaker(bind=db_engine)
    session = SessionFactory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(scope="function")
def seeded_session(db_session):
    """Session with the three seed parts pre-loaded."""
    for ipn, description, category in SEED_PARTS:
        db_session.add(Part(ipn=ipn, description=description, category=category))
    db_session.commit()
    yield db_session


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """sessionmaker bound to the test engine, with the seed parts loaded."""
    Factory = sessionmaker(bind=db_engine, expire_on_commit=False)
    with Factory() as s:
        for ipn, description, category in SEED_PARTS:
            s.add(Part(ipn=ipn, description=description, category=category))
        s.commit()
    return Factory


@pytest.fixture(scope="function")
def local_store(session_factory):
    """LocalECOStore wired to the in-memory DB via a patched get_session."""
    from eco_manager.core.local_store import LocalECOStore

    @contextmanager
    def _session():
        s = session_factory()
        try:
            yield s
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()

    with patch("eco_manager.core.local_store.get_session", _session):
        yield LocalECOStore()
