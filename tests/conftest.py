"""Shared pytest fixtures and configuration."""

import os

# Keep test runs off the default on-disk database and quiet on stdout
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("MONITORING_LOG_LEVEL", "WARNING")

import pytest

from loanguard.domain import LoanRecord
from loanguard.ledger import InMemoryLedgerStore, SqlLedgerStore, SqlLimitStore, StaticLimitStore
from loanguard.ledger.database import create_db_engine
from loanguard.risk_engine import LimitProvider


@pytest.fixture
def engine():
    """Fresh in-memory SQLite engine with tables created."""
    engine = create_db_engine("sqlite://")
    yield engine
    engine.dispose()


@pytest.fixture
def sql_ledger(engine):
    return SqlLedgerStore("sqlite://", engine=engine)


@pytest.fixture
def sql_limits(engine):
    return SqlLimitStore("sqlite://", engine=engine)


@pytest.fixture
def memory_ledger():
    return InMemoryLedgerStore()


@pytest.fixture
def static_limits():
    """Default 10%, SP 20%."""
    return StaticLimitStore(default=0.10, limits={"SP": 0.20})


@pytest.fixture
def limit_provider(static_limits):
    return LimitProvider(static_limits)


@pytest.fixture
def seeded_ledger():
    """Ledger holding 100000 cents: SP 15000, RJ 5000, MG 80000."""
    return InMemoryLedgerStore([
        LoanRecord.create(15000, "SP"),
        LoanRecord.create(5000, "RJ"),
        LoanRecord.create(80000, "MG"),
    ])
