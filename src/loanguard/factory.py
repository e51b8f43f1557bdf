"""
Wiring of stores, limit provider and admission pipeline from settings.
"""

from typing import Optional

from sqlalchemy.engine import Engine

from loanguard.admission import AdmissionCoordinator, AdmissionOrchestrator
from loanguard.config import LedgerBackend, LimitSource, Settings
from loanguard.health import HealthChecker, ping_check
from loanguard.ledger import LedgerAggregator, LedgerStore, LimitStore, create_ledger_store, create_limit_store
from loanguard.ledger.database import create_db_engine
from loanguard.logging import get_logger
from loanguard.risk_engine import LimitProvider

logger = get_logger(__name__)


class AdmissionService:
    """Holds the collaborators behind one admission pipeline."""

    def __init__(
        self,
        ledger: LedgerStore,
        limit_store: LimitStore,
        limit_provider: LimitProvider,
        orchestrator: AdmissionOrchestrator,
        health_checker: HealthChecker,
        engine: Optional[Engine] = None,
    ):
        self.ledger = ledger
        self.limit_store = limit_store
        self.limit_provider = limit_provider
        self.orchestrator = orchestrator
        self.health_checker = health_checker
        self.engine = engine

    async def close(self):
        """Release the limit store client and the database connection pool."""
        await self.limit_store.close()
        if self.engine is not None:
            self.engine.dispose()
        logger.info("Admission service closed")


def create_admission_service(settings: Settings, engine: Optional[Engine] = None) -> AdmissionService:
    """Build every collaborator the configured backends need."""
    uses_database = (
        settings.admission.ledger_backend == LedgerBackend.DATABASE
        or settings.limits.source == LimitSource.DATABASE
    )
    if engine is None and uses_database:
        # One engine shared by both SQL stores
        engine = create_db_engine(settings.database.url, echo=settings.database.echo)

    ledger = create_ledger_store(settings, engine=engine)
    limit_store = create_limit_store(settings, engine=engine)
    limit_provider = LimitProvider(
        limit_store,
        ttl_seconds=settings.limits.cache_ttl_seconds,
        fallback_default=settings.limits.fallback_default,
    )
    orchestrator = AdmissionOrchestrator(
        ledger=ledger,
        limit_provider=limit_provider,
        aggregator=LedgerAggregator(ledger),
        coordinator=AdmissionCoordinator(settings.admission.coordination),
    )

    health_checker = HealthChecker(settings.service_name)
    health_checker.register_check("ledger", ping_check("ledger", ledger.ping))
    health_checker.register_check("limits", ping_check("limits", limit_store.ping))

    logger.info(
        "Admission service created",
        ledger_backend=settings.admission.ledger_backend.value,
        limit_source=settings.limits.source.value,
        coordination=settings.admission.coordination.value,
    )
    return AdmissionService(ledger, limit_store, limit_provider, orchestrator, health_checker, engine=engine)
