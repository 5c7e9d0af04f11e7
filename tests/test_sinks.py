import asyncio
import json
from contextlib import asynccontextmanager

import pytest

from http_observatory.sinks import InMemoryEventSink, PostgresEventSink, Session
from http_observatory.sinks.postgres import INSERT_SQL


class FakeConnection:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.batches = []

    async def executemany(self, sql, rows):
        if self.fail:
            raise ConnectionError("database unavailable")
        self.batches.append((sql, list(rows)))


class FakePool:
    def __init__(self, conn: FakeConnection) -> None:
        self.conn = conn
        self.closed = False

    @asynccontextmanager
    async def acquire(self):
        yield self.conn

    async def close(self) -> None:
        self.closed = True


def test_in_memory_sink_keeps_events_in_order() -> None:
    sink = InMemoryEventSink()
    sink.record("a", {"n": 1})
    sink.record("b", {"n": 2})
    sink.record("a", {"n": 3})

    assert sink.get_session() is not None
    assert sink.of_type("a") == [{"n": 1}, {"n": 3}]
    sink.clear()
    assert sink.events == []


def test_in_memory_sink_without_session() -> None:
    assert InMemoryEventSink(with_session=False).get_session() is None


def test_postgres_sink_buffers_until_flush() -> None:
    conn = FakeConnection()
    pool = FakePool(conn)
    sink = PostgresEventSink(pool=pool, session=Session("s-1"))

    sink.record("com.amazon.rum.http_event", {"request": {"method": "GET"}})
    sink.record("com.amazon.rum.xray_trace_event", {"name": "svc"})
    assert sink.pending == 2
    assert conn.batches == []

    async def run() -> None:
        assert await sink.flush() == 2
        assert await sink.flush() == 0
        await sink.close()

    asyncio.run(run())

    sql, rows = conn.batches[0]
    assert sql == INSERT_SQL
    assert [row[0] for row in rows] == ["com.amazon.rum.http_event", "com.amazon.rum.xray_trace_event"]
    assert json.loads(rows[0][1]) == {"request": {"method": "GET"}}
    assert rows[0][2].tzinfo is None
    assert sink.pending == 0
    assert pool.closed is True
    assert sink.get_session().session_id == "s-1"


def test_postgres_sink_requeues_batch_on_failure() -> None:
    sink = PostgresEventSink(pool=FakePool(FakeConnection(fail=True)))
    sink.record("e", {"n": 1})

    with pytest.raises(ConnectionError):
        asyncio.run(sink.flush())

    assert sink.pending == 1


def test_postgres_sink_requires_dsn_or_pool() -> None:
    sink = PostgresEventSink()
    sink.record("e", {})

    with pytest.raises(ValueError, match="dsn"):
        asyncio.run(sink.flush())
