"""Shared test fixtures."""
from datetime import datetime

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

# Import all models so SQLModel.metadata knows about them
from steptrack.models.store import KeyValueEntry  # noqa: F401
from steptrack.storage.kv import SqlKeyValueStore


class FakeClock:
    """Epoch-milliseconds clock that only moves when told to."""

    def __init__(self, now_ms: int):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine. Tables recreated fresh for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="store")
def store_fixture(engine) -> SqlKeyValueStore:
    return SqlKeyValueStore(engine)


@pytest.fixture(name="clock")
def clock_fixture() -> FakeClock:
    """Starts at 09:00 local time on 2026-03-10 so clock-derived dates are stable."""
    return FakeClock(int(datetime(2026, 3, 10, 9, 0).timestamp() * 1000))
