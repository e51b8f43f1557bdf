"""
Concentration limit configuration storage.
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

import redis.asyncio as aioredis
from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from loanguard.config import LimitSource, Settings
from loanguard.domain import ConcentrationLimitConfig
from loanguard.logging import get_logger

from .database import ConcentrationLimitRow, create_db_engine, create_session_factory

logger = get_logger(__name__)


class LimitStore(ABC):
    """Abstract base class for the limit configuration store."""

    @abstractmethod
    async def list_limits(self) -> List[ConcentrationLimitConfig]:
        """Every configured limit, including the default entry if present."""
        pass

    async def is_empty(self) -> bool:
        return not await self.list_limits()

    async def add_limits(self, limits: Iterable[ConcentrationLimitConfig]) -> int:
        """Insert limits; returns how many were written."""
        raise NotImplementedError(f"{type(self).__name__} is read-only")

    async def ping(self) -> bool:
        return True

    async def close(self):
        """Release connections held by the store."""
        pass


class StaticLimitStore(LimitStore):
    """Limits taken from settings."""

    def __init__(self, default: Optional[float] = None, limits: Optional[Dict[str, float]] = None):
        entries = []
        if default is not None:
            entries.append(ConcentrationLimitConfig(jurisdiction=None, threshold=default))
        for code, threshold in (limits or {}).items():
            entries.append(ConcentrationLimitConfig(jurisdiction=code, threshold=threshold))
        self._limits = tuple(entries)

    async def list_limits(self) -> List[ConcentrationLimitConfig]:
        return list(self._limits)


class SqlLimitStore(LimitStore):
    """SQLAlchemy-backed limit store."""

    def __init__(self, database_url: str, echo: bool = False, engine: Optional[Engine] = None):
        self.engine = engine or create_db_engine(database_url, echo=echo)
        self.SessionLocal = create_session_factory(self.engine)

    async def list_limits(self) -> List[ConcentrationLimitConfig]:
        try:
            rows = await asyncio.to_thread(self._fetch_rows)
        except SQLAlchemyError as e:
            logger.error(f"Failed to read concentration limits: {e}")
            raise

        limits = []
        for jurisdiction, threshold in rows:
            try:
                limits.append(ConcentrationLimitConfig(jurisdiction=jurisdiction, threshold=threshold))
            except ValidationError as e:
                logger.warning(f"Skipping invalid concentration limit row {jurisdiction!r}: {e}")
        return limits

    def _fetch_rows(self):
        with self.SessionLocal() as session:
            return session.execute(
                select(ConcentrationLimitRow.jurisdiction, ConcentrationLimitRow.threshold)
            ).all()

    async def is_empty(self) -> bool:
        return await asyncio.to_thread(self._count) == 0

    def _count(self) -> int:
        with self.SessionLocal() as session:
            return session.execute(select(func.count(ConcentrationLimitRow.id))).scalar_one()

    async def add_limits(self, limits: Iterable[ConcentrationLimitConfig]) -> int:
        return await asyncio.to_thread(self._insert, list(limits))

    def _insert(self, limits: List[ConcentrationLimitConfig]) -> int:
        now = datetime.now(timezone.utc)
        with self.SessionLocal() as session:
            for limit in limits:
                session.add(ConcentrationLimitRow(
                    jurisdiction=limit.key,
                    threshold=limit.threshold,
                    created_at=now,
                    updated_at=now,
                ))
            session.commit()
        return len(limits)

    async def ping(self) -> bool:
        try:
            await asyncio.to_thread(self._count)
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Limit database ping failed: {e}")
            return False


class RedisLimitStore(LimitStore):
    """Redis hash of jurisdiction -> threshold; the default entry is field DEFAULT."""

    def __init__(self, redis_url: str = "redis://localhost:6379/0", key: str = "concentration_limits"):
        self.redis_client = aioredis.from_url(redis_url, decode_responses=True)
        self.key = key

    async def list_limits(self) -> List[ConcentrationLimitConfig]:
        raw = await self.redis_client.hgetall(self.key)

        limits = []
        for field, value in raw.items():
            try:
                limits.append(ConcentrationLimitConfig(jurisdiction=field, threshold=float(value)))
            except (ValueError, ValidationError) as e:
                logger.warning(f"Skipping invalid concentration limit {field!r}={value!r}: {e}")
        return limits

    async def is_empty(self) -> bool:
        return await self.redis_client.hlen(self.key) == 0

    async def add_limits(self, limits: Iterable[ConcentrationLimitConfig]) -> int:
        mapping = {limit.key: str(limit.threshold) for limit in limits}
        if not mapping:
            return 0
        await self.redis_client.hset(self.key, mapping=mapping)
        return len(mapping)

    async def ping(self) -> bool:
        try:
            return bool(await self.redis_client.ping())
        except Exception as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    async def close(self):
        await self.redis_client.aclose()
        logger.info("Redis limit store connection closed")


def create_limit_store(settings: Settings, engine: Optional[Engine] = None) -> LimitStore:
    """Factory function to create the configured limit source."""
    source = settings.limits.source
    if source == LimitSource.STATIC:
        return StaticLimitStore(settings.limits.static_default, settings.limits.static_limits)
    elif source == LimitSource.REDIS:
        return RedisLimitStore(settings.redis.url, settings.redis.limits_key)
    elif source == LimitSource.DATABASE:
        return SqlLimitStore(settings.database.url, echo=settings.database.echo, engine=engine)
    else:
        raise ValueError(f"Unsupported limit source: {source}")
