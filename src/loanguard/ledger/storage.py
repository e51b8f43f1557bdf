"""
Ledger storage for admitted loan records.
"""

import asyncio
import uuid
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from loanguard.config import LedgerBackend, Settings
from loanguard.domain import LoanRecord
from loanguard.logging import get_logger

from .database import LoanRow, create_db_engine, create_session_factory

logger = get_logger(__name__)

# A plain SUM over BIGINT overflows once the ledger passes 2**63 - 1, so the
# database sums the upper and lower 32 bits of each amount separately
_HALF_WORD = 2 ** 32


def _split_sums():
    return (
        func.coalesce(func.sum(LoanRow.amount // _HALF_WORD), 0),
        func.coalesce(func.sum(LoanRow.amount % _HALF_WORD), 0),
    )


def _join_sums(high, low) -> int:
    return int(high) * _HALF_WORD + int(low)


class LedgerStore(ABC):
    """Abstract base class for the loan ledger."""

    @abstractmethod
    async def save(self, record: LoanRecord) -> LoanRecord:
        """Persist a record and return the stored copy with its id."""
        pass

    @abstractmethod
    async def total_amount(self) -> int:
        """Sum of all loan amounts, 0 when empty."""
        pass

    @abstractmethod
    async def amount_by_jurisdiction(self) -> Dict[str, int]:
        """Summed amount per jurisdiction, empty when the ledger is empty."""
        pass

    async def ping(self) -> bool:
        """Check the backend is reachable."""
        return True


class InMemoryLedgerStore(LedgerStore):
    """Process-local ledger, for development and tests."""

    def __init__(self, records: Optional[List[LoanRecord]] = None):
        self.records: List[LoanRecord] = []
        for record in records or []:
            self.records.append(record if record.is_persisted else record.with_identity(str(uuid.uuid4())))

    async def save(self, record: LoanRecord) -> LoanRecord:
        stored = record.with_identity(str(uuid.uuid4()))
        self.records.append(stored)
        logger.debug("Saved loan to memory ledger", loan_id=stored.id, jurisdiction=stored.jurisdiction)
        return stored

    async def total_amount(self) -> int:
        return sum(record.amount for record in self.records)

    async def amount_by_jurisdiction(self) -> Dict[str, int]:
        totals: Dict[str, int] = {}
        for record in self.records:
            totals[record.jurisdiction] = totals.get(record.jurisdiction, 0) + record.amount
        return totals


class SqlLedgerStore(LedgerStore):
    """SQLAlchemy-backed ledger. Queries run in a worker thread."""

    def __init__(self, database_url: str, echo: bool = False, engine: Optional[Engine] = None):
        self.engine = engine or create_db_engine(database_url, echo=echo)
        self.SessionLocal = create_session_factory(self.engine)

    async def save(self, record: LoanRecord) -> LoanRecord:
        """Insert the record. This is the only write the ledger accepts."""
        try:
            stored = await asyncio.to_thread(self._save, record)
        except SQLAlchemyError as e:
            logger.error(f"Failed to save loan to database: {e}")
            raise

        logger.info("Saved loan to database", loan_id=stored.id, jurisdiction=stored.jurisdiction, amount=stored.amount)
        return stored

    def _save(self, record: LoanRecord) -> LoanRecord:
        stored = record.with_identity(str(uuid.uuid4()))
        with self.SessionLocal() as session:
            session.add(LoanRow(
                id=stored.id,
                amount=stored.amount,
                jurisdiction=stored.jurisdiction,
                created_at=stored.created_at,
            ))
            session.commit()
        return stored

    async def total_amount(self) -> int:
        try:
            return await asyncio.to_thread(self._total_amount)
        except SQLAlchemyError as e:
            logger.error(f"Failed to read ledger total: {e}")
            raise

    def _total_amount(self) -> int:
        with self.SessionLocal() as session:
            high, low = session.execute(select(*_split_sums())).one()
        return _join_sums(high, low)

    async def amount_by_jurisdiction(self) -> Dict[str, int]:
        try:
            return await asyncio.to_thread(self._amount_by_jurisdiction)
        except SQLAlchemyError as e:
            logger.error(f"Failed to read ledger totals by jurisdiction: {e}")
            raise

    def _amount_by_jurisdiction(self) -> Dict[str, int]:
        with self.SessionLocal() as session:
            rows = session.execute(
                select(LoanRow.jurisdiction, *_split_sums()).group_by(LoanRow.jurisdiction)
            ).all()
        return {jurisdiction: _join_sums(high, low) for jurisdiction, high, low in rows}

    async def ping(self) -> bool:
        try:
            await asyncio.to_thread(self._total_amount)
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Ledger database ping failed: {e}")
            return False


def create_ledger_store(settings: Settings, engine: Optional[Engine] = None) -> LedgerStore:
    """Factory function to create the configured ledger backend."""
    backend = settings.admission.ledger_backend
    if backend == LedgerBackend.MEMORY:
        logger.warning("Using in-memory ledger; admitted loans are lost on restart")
        return InMemoryLedgerStore()
    elif backend == LedgerBackend.DATABASE:
        return SqlLedgerStore(settings.database.url, echo=settings.database.echo, engine=engine)
    else:
        raise ValueError(f"Unsupported ledger backend: {backend}")
