"""
SQLAlchemy tables and engine setup for the ledger and limit configuration.
"""

from sqlalchemy import BigInteger, Column, DateTime, Float, Integer, String, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


class LoanRow(Base):
    """SQLAlchemy model for admitted loans."""
    __tablename__ = "loans"

    id = Column(String(36), primary_key=True)
    amount = Column(BigInteger, nullable=False)
    jurisdiction = Column(String(2), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)


class ConcentrationLimitRow(Base):
    """SQLAlchemy model for concentration limits. The default entry is keyed DEFAULT."""
    __tablename__ = "concentration_limits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    jurisdiction = Column(String(7), nullable=False, unique=True)
    threshold = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine; SQLite connections are shareable across worker threads."""
    kwargs = {"echo": echo, "pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # Keep a single connection so every session sees the same in-memory database
            kwargs["poolclass"] = StaticPool

    engine = create_engine(database_url, **kwargs)
    Base.metadata.create_all(engine)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False)
