"""
Unit tests for the admission orchestrator.
"""

import pytest
from unittest.mock import AsyncMock, Mock

from loguru import logger
from prometheus_client import REGISTRY

from loanguard.domain import (
    ConcentrationLimitExceededError,
    InvalidAmountError,
    InvalidJurisdictionError,
    LoanRecord,
)
from loanguard.ledger import InMemoryLedgerStore, LedgerStore, StaticLimitStore
from loanguard.admission import AdmissionOrchestrator
from loanguard.risk_engine import LimitProvider


def admissions(outcome):
    return REGISTRY.get_sample_value("loanguard_admissions_total", {"outcome": outcome}) or 0.0


@pytest.fixture
def orchestrator(seeded_ledger, limit_provider):
    return AdmissionOrchestrator(seeded_ledger, limit_provider)


class TestAdmission:
    """End-to-end admission against an in-memory ledger and static limits."""

    @pytest.mark.asyncio
    async def test_accepts_within_limit(self, orchestrator, seeded_ledger):
        # SP: 20000 / 105000 = 19.05% <= 20%
        stored = await orchestrator.admit(5000, "SP")

        assert stored.id is not None
        assert stored.amount == 5000
        assert stored.jurisdiction == "SP"
        assert await seeded_ledger.total_amount() == 105000

    @pytest.mark.asyncio
    async def test_rejects_over_jurisdiction_limit(self, orchestrator, seeded_ledger):
        # SP: 25000 / 110000 = 22.7% > 20%
        with pytest.raises(ConcentrationLimitExceededError) as exc_info:
            await orchestrator.admit(10000, "SP")

        assert exc_info.value.limit == 0.20
        assert await seeded_ledger.total_amount() == 100000
        assert len(seeded_ledger.records) == 3

    @pytest.mark.asyncio
    async def test_rejects_over_default_limit(self, orchestrator, seeded_ledger):
        # RJ: 11000 / 106000 = 10.38% > 10%
        with pytest.raises(ConcentrationLimitExceededError) as exc_info:
            await orchestrator.admit(6000, "RJ")

        assert exc_info.value.jurisdiction == "RJ"
        assert exc_info.value.limit == 0.10
        assert len(seeded_ledger.records) == 3

    @pytest.mark.asyncio
    async def test_lowercase_jurisdiction(self, orchestrator):
        stored = await orchestrator.admit(5000, "sp")
        assert stored.jurisdiction == "SP"

    @pytest.mark.asyncio
    async def test_first_loan_in_empty_ledger(self, limit_provider):
        ledger = InMemoryLedgerStore()
        orchestrator = AdmissionOrchestrator(ledger, limit_provider)

        stored = await orchestrator.admit(10 ** 9, "AC")

        assert stored.amount == 10 ** 9
        assert await ledger.total_amount() == 10 ** 9

    @pytest.mark.asyncio
    async def test_second_loan_measured_against_first(self, limit_provider):
        ledger = InMemoryLedgerStore()
        orchestrator = AdmissionOrchestrator(ledger, limit_provider)
        await orchestrator.admit(1000, "AC")

        # AC would be 100% of the portfolio
        with pytest.raises(ConcentrationLimitExceededError):
            await orchestrator.admit(1000, "AC")

        # BA: 1000 / 2000 = 50% > 10%
        with pytest.raises(ConcentrationLimitExceededError):
            await orchestrator.admit(1000, "BA")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -100, 10.5, "abc", None, True])
    async def test_invalid_amount_writes_nothing(self, orchestrator, seeded_ledger, amount):
        with pytest.raises(InvalidAmountError):
            await orchestrator.admit(amount, "SP")
        assert len(seeded_ledger.records) == 3

    @pytest.mark.asyncio
    async def test_invalid_jurisdiction_writes_nothing(self, orchestrator, seeded_ledger):
        with pytest.raises(InvalidJurisdictionError):
            await orchestrator.admit(1000, "XX")
        assert len(seeded_ledger.records) == 3

    @pytest.mark.asyncio
    async def test_outcome_metrics(self, orchestrator):
        accepted, rejected, invalid = admissions("accepted"), admissions("rejected"), admissions("invalid")

        await orchestrator.admit(5000, "SP")
        with pytest.raises(ConcentrationLimitExceededError):
            await orchestrator.admit(50000, "SP")
        with pytest.raises(InvalidAmountError):
            await orchestrator.admit(-1, "SP")

        assert admissions("accepted") == accepted + 1
        assert admissions("rejected") == rejected + 1
        assert admissions("invalid") == invalid + 1


class TestPipelineOrder:
    """Test the step ordering and write discipline with mocked collaborators."""

    @pytest.fixture
    def ledger(self):
        ledger = Mock(spec=LedgerStore)
        ledger.total_amount = AsyncMock(return_value=100000)
        ledger.amount_by_jurisdiction = AsyncMock(return_value={"SP": 15000})
        ledger.save = AsyncMock(side_effect=lambda record: record.with_identity("loan-1"))
        return ledger

    @pytest.fixture
    def provider(self):
        provider = Mock(spec=LimitProvider)
        provider.resolve = AsyncMock(return_value=0.20)
        return provider

    @pytest.fixture
    def manager(self, ledger, provider):
        manager = Mock()
        manager.attach_mock(ledger.total_amount, "read_total")
        manager.attach_mock(ledger.amount_by_jurisdiction, "read_by_jurisdiction")
        manager.attach_mock(provider.resolve, "resolve_limit")
        manager.attach_mock(ledger.save, "persist")
        return manager

    @pytest.mark.asyncio
    async def test_steps_run_in_order(self, ledger, provider, manager):
        stored = await AdmissionOrchestrator(ledger, provider).admit(5000, "SP")

        assert stored.id == "loan-1"
        assert [call[0] for call in manager.mock_calls] == [
            "read_total",
            "read_by_jurisdiction",
            "resolve_limit",
            "persist",
        ]
        provider.resolve.assert_awaited_once_with("SP")

    @pytest.mark.asyncio
    async def test_inconsistent_reads_logged(self, ledger, provider):
        # Buckets sum to 15000 while the total says 100000: a write landed between the reads
        messages = []
        handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="WARNING")
        try:
            await AdmissionOrchestrator(ledger, provider).admit(5000, "SP")
        finally:
            logger.remove(handler_id)

        assert "Ledger totals disagree; a write landed between reads" in messages

    @pytest.mark.asyncio
    async def test_consistent_reads_not_logged(self, seeded_ledger, limit_provider):
        messages = []
        handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="WARNING")
        try:
            await AdmissionOrchestrator(seeded_ledger, limit_provider).admit(5000, "SP")
        finally:
            logger.remove(handler_id)

        assert "Ledger totals disagree; a write landed between reads" not in messages

    @pytest.mark.asyncio
    async def test_invalid_input_does_no_io(self, ledger, provider, manager):
        with pytest.raises(InvalidJurisdictionError):
            await AdmissionOrchestrator(ledger, provider).admit(5000, "ZZ")

        assert manager.mock_calls == []

    @pytest.mark.asyncio
    async def test_rejection_skips_persist(self, ledger, provider, manager):
        with pytest.raises(ConcentrationLimitExceededError):
            await AdmissionOrchestrator(ledger, provider).admit(10000, "SP")

        ledger.save.assert_not_awaited()
        assert [call[0] for call in manager.mock_calls] == [
            "read_total",
            "read_by_jurisdiction",
            "resolve_limit",
        ]

    @pytest.mark.asyncio
    async def test_read_failure_propagates_without_write(self, ledger, provider):
        ledger.amount_by_jurisdiction.side_effect = ConnectionError("ledger down")

        with pytest.raises(ConnectionError):
            await AdmissionOrchestrator(ledger, provider).admit(5000, "SP")

        provider.resolve.assert_not_awaited()
        ledger.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_limit_failure_propagates_without_write(self, ledger, provider):
        provider.resolve.side_effect = ConnectionError("limits down")

        with pytest.raises(ConnectionError):
            await AdmissionOrchestrator(ledger, provider).admit(5000, "SP")

        ledger.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_persist_failure_propagates(self, ledger, provider):
        errors = admissions("error")
        ledger.save.side_effect = ConnectionError("write failed")

        with pytest.raises(ConnectionError):
            await AdmissionOrchestrator(ledger, provider).admit(5000, "SP")

        assert admissions("error") == errors + 1

    @pytest.mark.asyncio
    async def test_uses_live_totals(self, ledger, provider):
        orchestrator = AdmissionOrchestrator(ledger, provider)
        await orchestrator.admit(5000, "SP")

        # The ledger grew elsewhere; the next decision sees it
        ledger.total_amount.return_value = 200000
        ledger.amount_by_jurisdiction.return_value = {"SP": 15000}
        await orchestrator.admit(20000, "SP")

        assert ledger.total_amount.await_count == 2

    @pytest.mark.asyncio
    async def test_limit_change_applies_after_refresh(self, seeded_ledger):
        store = StaticLimitStore(default=0.10, limits={"SP": 0.20})
        provider = LimitProvider(store)
        orchestrator = AdmissionOrchestrator(seeded_ledger, provider)

        with pytest.raises(ConcentrationLimitExceededError):
            await orchestrator.admit(10000, "SP")

        provider.store = StaticLimitStore(default=0.10, limits={"SP": 0.30})
        await provider.refresh()

        stored = await orchestrator.admit(10000, "SP")
        assert isinstance(stored, LoanRecord)
