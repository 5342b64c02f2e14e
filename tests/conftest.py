"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from tests.factories import NOW
from xpcore.constants import LevelCurve
from xpcore.database.models import Base
from xpcore.services.achievement_service import AchievementEvaluator
from xpcore.services.ledger import AchievementLedger
from xpcore.services.stats_store import UserStatsStore
from xpcore.services.user_stats import UserStatisticsProvider
from xpcore.services.xp_service import XpLedger


def _sqlite_engine() -> Engine:
    """In-memory SQLite shared by every thread (``run_db`` uses threads)."""
    return create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite with xpcore tables *and* the host content tables."""
    engine = _sqlite_engine()
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def file_engine(tmp_path) -> Engine:
    """File-backed SQLite with a real connection pool.

    Each thread checks out its own connection, so writers genuinely
    contend for the database lock (the in-memory engine shares one).
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'xpcore.db'}",
        echo=False,
        connect_args={"check_same_thread": False, "timeout": 30},
        pool_size=16,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def broken_engine() -> Engine:
    """An engine whose database has no tables, so every query fails."""
    return _sqlite_engine()


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a session for seeding/inspecting rows."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


@pytest.fixture
def stats_store(db_engine):
    return UserStatsStore(db_engine)


@pytest.fixture
def ledger(db_engine):
    return AchievementLedger(db_engine)


@pytest.fixture
def statistics(db_engine):
    return UserStatisticsProvider(db_engine, clock=lambda: NOW)


@pytest.fixture
def evaluator(ledger):
    return AchievementEvaluator(ledger)


@pytest.fixture
def xp_ledger(stats_store, statistics, evaluator):
    return XpLedger(stats_store, statistics, evaluator, curve=LevelCurve())

