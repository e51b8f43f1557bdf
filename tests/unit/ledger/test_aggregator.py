"""
Unit tests for the ledger aggregator.
"""

import pytest
from unittest.mock import AsyncMock, Mock

from loanguard.domain import LoanRecord
from loanguard.ledger import LedgerAggregator, LedgerStore


class TestLedgerAggregator:
    """Test live aggregates over a ledger store."""

    @pytest.mark.asyncio
    async def test_empty_ledger(self, memory_ledger):
        aggregator = LedgerAggregator(memory_ledger)

        assert await aggregator.total_amount() == 0
        assert await aggregator.amount_by_jurisdiction() == {}

    @pytest.mark.asyncio
    async def test_totals(self, seeded_ledger):
        aggregator = LedgerAggregator(seeded_ledger)

        assert await aggregator.total_amount() == 100000
        assert await aggregator.amount_by_jurisdiction() == {"SP": 15000, "RJ": 5000, "MG": 80000}

    @pytest.mark.asyncio
    async def test_reads_are_not_cached(self, memory_ledger):
        aggregator = LedgerAggregator(memory_ledger)
        assert await aggregator.total_amount() == 0

        await memory_ledger.save(LoanRecord.create(700, "AM"))

        assert await aggregator.total_amount() == 700
        assert await aggregator.amount_by_jurisdiction() == {"AM": 700}

    @pytest.mark.asyncio
    async def test_null_total_reads_as_zero(self):
        store = Mock(spec=LedgerStore)
        store.total_amount = AsyncMock(return_value=None)
        store.amount_by_jurisdiction = AsyncMock(return_value=None)
        aggregator = LedgerAggregator(store)

        assert await aggregator.total_amount() == 0
        assert await aggregator.amount_by_jurisdiction() == {}

    @pytest.mark.asyncio
    async def test_keys_normalized_and_merged(self):
        store = Mock(spec=LedgerStore)
        store.amount_by_jurisdiction = AsyncMock(return_value={"sp": 100, "SP": 50, "rj": 0})

        assert await LedgerAggregator(store).amount_by_jurisdiction() == {"SP": 150}

    @pytest.mark.asyncio
    async def test_buckets_sum_to_total(self, sql_ledger):
        for amount, code in [(1200, "PE"), (300, "pe"), (99, "RS"), (10 ** 9, "SC")]:
            await sql_ledger.save(LoanRecord.create(amount, code))
        aggregator = LedgerAggregator(sql_ledger)

        by_jurisdiction = await aggregator.amount_by_jurisdiction()

        assert sum(by_jurisdiction.values()) == await aggregator.total_amount()
        assert by_jurisdiction["PE"] == 1500

    @pytest.mark.asyncio
    async def test_snapshot(self, seeded_ledger):
        aggregate = await LedgerAggregator(seeded_ledger).snapshot()

        assert aggregate.total_amount == 100000
        assert aggregate.is_consistent
        assert aggregate.share_of("SP") == pytest.approx(0.15)

    @pytest.mark.asyncio
    async def test_snapshot_inconsistent_reads(self):
        store = Mock(spec=LedgerStore)
        store.total_amount = AsyncMock(return_value=1000)
        store.amount_by_jurisdiction = AsyncMock(return_value={"SP": 1000, "RJ": 500})

        aggregate = await LedgerAggregator(store).snapshot()

        assert not aggregate.is_consistent
        assert aggregate.total_amount == 1000

    @pytest.mark.asyncio
    async def test_store_failure_propagates(self):
        store = Mock(spec=LedgerStore)
        store.total_amount = AsyncMock(side_effect=ConnectionError("ledger down"))

        with pytest.raises(ConnectionError):
            await LedgerAggregator(store).total_amount()
