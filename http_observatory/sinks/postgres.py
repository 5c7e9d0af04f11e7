"""PostgreSQL sink for HTTP Observatory events."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

import asyncpg

from ..config import TelemetryConfig
from ..utils.time import utc_now
from .base import EventSink, Session


INSERT_SQL = """
INSERT INTO rum_events (
    event_type,
    payload,
    recorded_at
)
VALUES ($1, $2::jsonb, $3)
"""


class PostgresEventSink(EventSink):
    """Sink that buffers events and writes them to PostgreSQL using ``asyncpg``.

    ``record`` only appends to an in-memory buffer; ``flush`` performs the
    database round trip.
    """

    def __init__(
        self,
        dsn: Optional[str] = None,
        *,
        pool: Optional[asyncpg.Pool] = None,
        config: Optional[TelemetryConfig] = None,
        session: Optional[Session] = None,
        min_size: int = 1,
        max_size: int = 10,
    ) -> None:
        self.config = config or TelemetryConfig()
        self.session = session
        self._dsn = dsn
        self._pool = pool
        self._min_size = min_size
        self._max_size = max_size
        self._pending: List[Tuple[str, str, Any]] = []

    @property
    def pending(self) -> int:
        return len(self._pending)

    def record(self, event_type: str, payload: Dict[str, Any]) -> None:
        self._pending.append((event_type, json.dumps(payload, separators=(",", ":")), utc_now().replace(tzinfo=None)))

    def get_session(self) -> Optional[Session]:
        return self.session

    async def connect(self) -> None:
        """Initialize a connection pool if one was not supplied."""
        if self._pool is not None:
            return
        if not self._dsn:
            raise ValueError("Either `dsn` or `pool` must be provided for PostgresEventSink.")

        self._pool = await asyncpg.create_pool(
            dsn=self._dsn,
            min_size=self._min_size,
            max_size=self._max_size,
        )

    async def flush(self) -> int:
        """Insert buffered events; returns the number written."""
        if not self._pending:
            return 0
        if self._pool is None:
            await self.connect()

        assert self._pool is not None
        batch, self._pending = self._pending, []
        try:
            async with self._pool.acquire() as conn:
                await conn.executemany(INSERT_SQL, batch)
        except Exception:
            self._pending = batch + self._pending
            raise
        return len(batch)

    async def close(self) -> None:
        """Close the underlying pool if it exists."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
