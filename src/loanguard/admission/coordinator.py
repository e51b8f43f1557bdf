"""
Serialization of concurrent admissions.

Admission reads the ledger, decides, then writes. Without coordination two
admissions for the same jurisdiction can both pass against the same totals
and together breach the limit. The coordinator holds a lock around the
read-decide-write section.

Locks are process-local. Several processes writing one ledger still race.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from loanguard.config import AdmissionCoordination
from loanguard.logging import get_logger

logger = get_logger(__name__)


class AdmissionCoordinator:
    """Hands out the lock guarding one admission."""

    def __init__(self, strategy: AdmissionCoordination = AdmissionCoordination.JURISDICTION):
        self.strategy = AdmissionCoordination(strategy)
        self._global_lock = asyncio.Lock()
        self._locks: Dict[str, asyncio.Lock] = {}

        if self.strategy == AdmissionCoordination.NONE:
            logger.warning(
                "Admission coordination disabled; concurrent admissions for one "
                "jurisdiction can jointly exceed its concentration limit"
            )

    def _lock_for(self, jurisdiction: str) -> asyncio.Lock:
        # No await between lookup and insert, so this is safe on one event loop
        lock = self._locks.get(jurisdiction)
        if lock is None:
            lock = self._locks[jurisdiction] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def guard(self, jurisdiction: str) -> AsyncIterator[None]:
        """Hold the lock for this jurisdiction for the body of the block."""
        if self.strategy == AdmissionCoordination.NONE:
            yield
            return

        lock = self._global_lock if self.strategy == AdmissionCoordination.GLOBAL else self._lock_for(jurisdiction)
        async with lock:
            yield
