"""
Usage record persistence.

The ledger reads and appends usage records through a ``UsageStore``. The
in-memory store serves tests and single-process deployments; the SQLite store
persists records across restarts.
"""

import asyncio
import sqlite3
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import date, datetime
from pathlib import Path
from typing import Dict, List

from ..models.routing import RoutingDecision
from ..models.usage import UsageRecord


class UsageStore(ABC):
    """Persistence hook for usage records. Append-only."""

    @abstractmethod
    async def append_usage_record(self, record: UsageRecord) -> None:
        """Persist one usage record."""
        pass

    @abstractmethod
    async def read_usage_records(self, tenant_id: str, start: date, end: date) -> List[UsageRecord]:
        """Return the tenant's records with ``start <= date <= end``, oldest first."""
        pass


class InMemoryUsageStore(UsageStore):
    """Process-local usage store."""

    def __init__(self):
        self._records: Dict[str, List[UsageRecord]] = defaultdict(list)
        self._lock = asyncio.Lock()

    async def append_usage_record(self, record: UsageRecord) -> None:
        async with self._lock:
            self._records[record.tenant_id].append(record)

    async def read_usage_records(self, tenant_id: str, start: date, end: date) -> List[UsageRecord]:
        async with self._lock:
            return [r for r in self._records.get(tenant_id, []) if start <= r.date <= end]

    def clear(self) -> None:
        self._records.clear()


CREATE_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS usage_record (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        tenant_id TEXT NOT NULL,
        date TEXT NOT NULL,
        request_type TEXT NOT NULL,
        model_id TEXT NOT NULL,
        cost_cents INTEGER NOT NULL,
        succeeded INTEGER NOT NULL,
        fallback_used INTEGER NOT NULL,
        cancelled INTEGER NOT NULL,
        request_id TEXT,
        created_at TEXT NOT NULL,
        decision TEXT
    )
"""
CREATE_INDEX_SQL = """
    CREATE INDEX IF NOT EXISTS idx_usage_record_tenant_date
    ON usage_record (tenant_id, date)
"""


class SQLiteUsageStore(UsageStore):
    """SQLite-backed usage store.

    Each call opens its own connection and runs in a worker thread, so the
    event loop never blocks on disk I/O.
    """

    def __init__(self, db_path: str = "matalino_usage.db"):
        """
        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(Path(self.db_path)))

    def _init_db(self) -> None:
        conn = self._connect()
        try:
            conn.execute(CREATE_TABLE_SQL)
            conn.execute(CREATE_INDEX_SQL)
            conn.commit()
        finally:
            conn.close()

    async def append_usage_record(self, record: UsageRecord) -> None:
        await asyncio.to_thread(self._insert, record)

    async def read_usage_records(self, tenant_id: str, start: date, end: date) -> List[UsageRecord]:
        return await asyncio.to_thread(self._select, tenant_id, start, end)

    def _insert(self, record: UsageRecord) -> None:
        conn = self._connect()
        try:
            conn.execute(
                """
                INSERT INTO usage_record (
                    tenant_id, date, request_type, model_id, cost_cents,
                    succeeded, fallback_used, cancelled, request_id, created_at, decision
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.tenant_id,
                    record.date.isoformat(),
                    record.request_type,
                    record.model_id,
                    record.cost_cents,
                    int(record.succeeded),
                    int(record.fallback_used),
                    int(record.cancelled),
                    record.request_id,
                    record.created_at.isoformat(),
                    record.decision.model_dump_json() if record.decision else None,
                ),
            )
            conn.commit()
        finally:
            conn.close()

    def _select(self, tenant_id: str, start: date, end: date) -> List[UsageRecord]:
        conn = self._connect()
        try:
            cursor = conn.execute(
                """
                SELECT tenant_id, date, request_type, model_id, cost_cents,
                       succeeded, fallback_used, cancelled, request_id, created_at, decision
                FROM usage_record
                WHERE tenant_id = ? AND date >= ? AND date <= ?
                ORDER BY id
                """,
                (tenant_id, start.isoformat(), end.isoformat()),
            )
            records = []
            for row in cursor.fetchall():
                records.append(UsageRecord(
                    tenant_id=row[0],
                    date=date.fromisoformat(row[1]),
                    request_type=row[2],
                    model_id=row[3],
                    cost_cents=row[4],
                    succeeded=bool(row[5]),
                    fallback_used=bool(row[6]),
                    cancelled=bool(row[7]),
                    request_id=row[8],
                    created_at=datetime.fromisoformat(row[9]),
                    decision=RoutingDecision.model_validate_json(row[10]) if row[10] else None,
                ))
            return records
        finally:
            conn.close()
