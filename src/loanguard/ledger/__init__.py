"""Ledger persistence, limit configuration storage and live aggregates."""

from .aggregator import LedgerAggregator
from .limit_storage import (
    LimitStore,
    RedisLimitStore,
    SqlLimitStore,
    StaticLimitStore,
    create_limit_store,
)
from .storage import InMemoryLedgerStore, LedgerStore, SqlLedgerStore, create_ledger_store

__all__ = [
    "LedgerAggregator",
    "LedgerStore",
    "InMemoryLedgerStore",
    "SqlLedgerStore",
    "create_ledger_store",
    "LimitStore",
    "StaticLimitStore",
    "SqlLimitStore",
    "RedisLimitStore",
    "create_limit_store",
]
