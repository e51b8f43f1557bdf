"""
Concentration limit resolution with a time-bounded snapshot cache.
"""

import time
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional

from loanguard.domain import DEFAULT_JURISDICTION_KEY, normalize_code
from loanguard.ledger.limit_storage import LimitStore
from loanguard.logging import get_logger
from loanguard.metrics import limit_cache_refreshes_total

logger = get_logger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 300.0
FALLBACK_DEFAULT_LIMIT = 0.10


class LimitProvider:
    """
    Resolves concentration limits from a snapshot of the limit store.

    The snapshot is reloaded lazily once it is older than the TTL, and on
    every lookup while it is empty. Concurrent
    callers may both reload; the last one wins. Each reload builds a new
    mapping and swaps it in whole, so readers never see a partial snapshot.
    """

    def __init__(
        self,
        store: LimitStore,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        fallback_default: float = FALLBACK_DEFAULT_LIMIT,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.fallback_default = fallback_default
        self.clock = clock
        self.snapshot: Mapping[str, float] = MappingProxyType({})
        self.last_refreshed_at: Optional[float] = None

    @property
    def is_stale(self) -> bool:
        # An empty store is re-read on every call so limits seeded after start-up apply at once
        if self.last_refreshed_at is None or not self.snapshot:
            return True
        return self.clock() - self.last_refreshed_at > self.ttl_seconds

    async def refresh(self) -> Mapping[str, float]:
        """Reload every limit from the store unconditionally."""
        limits = await self.store.list_limits()

        fresh: Dict[str, float] = {}
        for limit in limits:
            if limit.key in fresh:
                logger.warning(f"Duplicate concentration limit for {limit.key}; keeping the last one")
            fresh[limit.key] = limit.threshold

        self.snapshot = MappingProxyType(fresh)
        self.last_refreshed_at = self.clock()
        limit_cache_refreshes_total.inc()

        logger.info("Concentration limits refreshed", limits=dict(fresh))
        return self.snapshot

    async def _current(self) -> Mapping[str, float]:
        if self.is_stale:
            return await self.refresh()
        return self.snapshot

    async def limit_for(self, jurisdiction: str) -> Optional[float]:
        """Configured limit for one jurisdiction, or None."""
        snapshot = await self._current()
        code = normalize_code(jurisdiction)
        if code == DEFAULT_JURISDICTION_KEY:
            return None
        return snapshot.get(code)

    async def default_limit(self) -> float:
        """Configured default limit, or the fallback constant."""
        snapshot = await self._current()
        return snapshot.get(DEFAULT_JURISDICTION_KEY, self.fallback_default)

    async def resolve(self, jurisdiction: str) -> float:
        """Jurisdiction-specific limit if configured, else the default."""
        specific = await self.limit_for(jurisdiction)
        if specific is not None:
            return specific
        return await self.default_limit()
