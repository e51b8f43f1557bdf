"""
Live portfolio totals computed from the ledger store.
"""

from typing import Dict

from loanguard.domain import PortfolioAggregate, normalize_code
from loanguard.logging import get_logger

from .storage import LedgerStore

logger = get_logger(__name__)


class LedgerAggregator:
    """Reads totals from the ledger on every call. Nothing is cached."""

    def __init__(self, store: LedgerStore):
        self.store = store

    async def total_amount(self) -> int:
        """Sum of all amounts; 0 for an empty ledger."""
        total = await self.store.total_amount()
        return int(total or 0)

    async def amount_by_jurisdiction(self) -> Dict[str, int]:
        """Summed amount per jurisdiction; empty for an empty ledger."""
        raw = await self.store.amount_by_jurisdiction()

        totals: Dict[str, int] = {}
        for code, amount in (raw or {}).items():
            if not amount:
                continue
            key = normalize_code(code)
            totals[key] = totals.get(key, 0) + int(amount)
        return totals

    async def snapshot(self) -> PortfolioAggregate:
        """
        Both totals as one aggregate.

        The two reads are separate queries, so a concurrent write can land
        between them and the aggregate may be inconsistent.
        """
        total = await self.total_amount()
        by_jurisdiction = await self.amount_by_jurisdiction()
        aggregate = PortfolioAggregate(total_amount=total, amount_by_jurisdiction=by_jurisdiction)

        if not aggregate.is_consistent:
            logger.warning(
                "Ledger totals disagree; a write landed between reads",
                total_amount=total,
                bucket_sum=sum(by_jurisdiction.values()),
            )
        return aggregate
