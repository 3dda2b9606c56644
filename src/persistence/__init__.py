"""Persistence subsystem exports."""

from persistence.contracts import RunStore
from persistence.memory_store import MemoryStore
from persistence.models import RunSummaryRecord, StatisticsRecord
from persistence.sqlite_store import SqliteStore

__all__ = ["MemoryStore", "RunStore", "RunSummaryRecord", "SqliteStore", "StatisticsRecord"]
