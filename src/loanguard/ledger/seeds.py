"""
Seed the limit configuration store with the default concentration limits.
"""

import asyncio
from typing import List, Optional

from loanguard.config import LimitSource, Settings, settings as default_settings
from loanguard.domain import ConcentrationLimitConfig
from loanguard.logging import get_logger

from .limit_storage import LimitStore, create_limit_store

logger = get_logger(__name__)


def default_limits(settings: Settings) -> List[ConcentrationLimitConfig]:
    """Limits written on first start: the default entry plus the per-jurisdiction overrides."""
    limits = []
    if settings.limits.static_default is not None:
        limits.append(ConcentrationLimitConfig(jurisdiction=None, threshold=settings.limits.static_default))
    for code, threshold in settings.limits.static_limits.items():
        limits.append(ConcentrationLimitConfig(jurisdiction=code, threshold=threshold))
    return limits


async def seed_concentration_limits(store: LimitStore, limits: List[ConcentrationLimitConfig]) -> int:
    """Write limits only if the store holds none. Returns the number written."""
    if not await store.is_empty():
        logger.info("Concentration limits already seeded, skipping")
        return 0

    written = await store.add_limits(limits)
    for limit in limits:
        logger.info(f"Seeded concentration limit {limit.key}: {limit.threshold:.0%}")
    return written


def main(settings: Optional[Settings] = None):
    """Entry point for the loanguard-seed command."""
    settings = settings or default_settings

    if settings.limits.source == LimitSource.STATIC:
        logger.info("Limit source is static; nothing to seed")
        return

    store = create_limit_store(settings)
    try:
        asyncio.run(seed_concentration_limits(store, default_limits(settings)))
    except Exception:
        logger.exception("Error running seeds")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
