"""
Loan admission pipeline.

Steps run in a fixed order and each one can end the admission:

    build_record -> read_ledger (total, then per jurisdiction) -> resolve_limit
    -> validate -> persist

Nothing is written unless validate accepted this exact attempt.
"""

import time
from typing import Any, Optional

from loanguard.domain import (
    ConcentrationLimitExceededError,
    InvalidAmountError,
    InvalidJurisdictionError,
    LoanRecord,
    PortfolioAggregate,
)
from loanguard.ledger import LedgerAggregator, LedgerStore
from loanguard.logging import get_logger, trace_context
from loanguard.metrics import concentration_share, record_admission
from loanguard.risk_engine import ConcentrationAssessment, LimitProvider, validate_concentration

from .coordinator import AdmissionCoordinator

logger = get_logger(__name__)


class AdmissionOrchestrator:
    """Admits loans into the ledger under the concentration rule."""

    def __init__(
        self,
        ledger: LedgerStore,
        limit_provider: LimitProvider,
        aggregator: Optional[LedgerAggregator] = None,
        coordinator: Optional[AdmissionCoordinator] = None,
    ):
        self.ledger = ledger
        self.limit_provider = limit_provider
        self.aggregator = aggregator or LedgerAggregator(ledger)
        self.coordinator = coordinator or AdmissionCoordinator()

    async def admit(self, amount: Any, jurisdiction: Any, trace_id: Optional[str] = None) -> LoanRecord:
        """
        Validate, risk-check and persist one loan.

        Returns:
            LoanRecord: The stored record with its id and created_at

        Raises:
            InvalidAmountError: Amount is not a positive integer
            InvalidJurisdictionError: Jurisdiction is not in the enumerated set
            ConcentrationLimitExceededError: The loan would breach the limit
        """
        start_time = time.time()
        outcome = "error"

        with trace_context(trace_id):
            try:
                record = self.build_record(amount, jurisdiction)

                async with self.coordinator.guard(record.jurisdiction):
                    aggregate = await self.read_ledger()
                    limit = await self.resolve_limit(record.jurisdiction)
                    self.validate(record, aggregate, limit)
                    stored = await self.persist(record)

                outcome = "accepted"
                return stored

            except (InvalidAmountError, InvalidJurisdictionError) as e:
                outcome = "invalid"
                logger.info(f"Loan rejected at construction: {e.message}")
                raise
            except ConcentrationLimitExceededError as e:
                outcome = "rejected"
                logger.warning(
                    "Loan rejected by concentration limit",
                    jurisdiction=e.jurisdiction,
                    new_share=e.current_share,
                    limit=e.limit,
                )
                raise
            except Exception as e:
                logger.error(f"Loan admission failed: {e}")
                raise
            finally:
                record_admission(outcome, time.time() - start_time)

    def build_record(self, amount: Any, jurisdiction: Any) -> LoanRecord:
        """Step 1: construct and validate the record. No I/O."""
        return LoanRecord.create(amount, jurisdiction)

    async def read_ledger(self) -> PortfolioAggregate:
        """Steps 2 and 3: ledger total, then per-jurisdiction totals, before this loan."""
        return await self.aggregator.snapshot()

    async def resolve_limit(self, jurisdiction: str) -> float:
        """Step 4: jurisdiction-specific limit, else the default."""
        return await self.limit_provider.resolve(jurisdiction)

    def validate(self, record: LoanRecord, aggregate: PortfolioAggregate, limit: float) -> ConcentrationAssessment:
        """Step 5: raise ConcentrationLimitExceededError on rejection."""
        logger.debug(
            "Checking concentration",
            jurisdiction=record.jurisdiction,
            current_share=aggregate.share_of(record.jurisdiction),
            total_amount=aggregate.total_amount,
        )
        try:
            assessment = validate_concentration(
                aggregate.total_amount,
                aggregate.amount_by_jurisdiction,
                record.amount,
                record.jurisdiction,
                limit,
            )
        except ConcentrationLimitExceededError as e:
            concentration_share.labels(jurisdiction=e.jurisdiction).set(e.current_share)
            raise

        if assessment.new_share is not None:
            concentration_share.labels(jurisdiction=assessment.jurisdiction).set(assessment.new_share)

        logger.debug(
            "Concentration check passed",
            jurisdiction=assessment.jurisdiction,
            amount=record.amount,
            new_share=assessment.new_share,
            limit=limit,
            reason=assessment.reason,
        )
        return assessment

    async def persist(self, record: LoanRecord) -> LoanRecord:
        """Step 6: the single ledger write."""
        stored = await self.ledger.save(record)
        logger.info(
            "Loan admitted",
            loan_id=stored.id,
            jurisdiction=stored.jurisdiction,
            amount=stored.amount,
        )
        return stored
