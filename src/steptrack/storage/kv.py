"""
Durable key/value store.

The tracking and rewards code only needs two calls from its store:

    get(key) -> Optional[str]
    set(key, value) -> None

Values are UTF-8 JSON strings. SqlKeyValueStore keeps them in a single
SQLite table; anything else with the same two methods (e.g. a dict-backed
store in tests) can be passed instead.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from steptrack.errors import PersistenceWriteError
from steptrack.models.store import KeyValueEntry

logger = logging.getLogger(__name__)


class SqlKeyValueStore:
    """Key/value store backed by the KeyValueEntry table."""

    def __init__(self, engine):
        """
        Args:
            engine: SQLAlchemy engine (SQLModel create_engine result).
        """
        self.engine = engine

    def get(self, key: str) -> Optional[str]:
        with Session(self.engine) as s:
            entry = s.get(KeyValueEntry, key)
            return entry.value if entry else None

    def set(self, key: str, value: str) -> None:
        """
        Insert or replace the value stored under `key`.

        Raises:
            PersistenceWriteError: if the write could not be committed.
        """
        try:
            with Session(self.engine) as s:
                entry = s.get(KeyValueEntry, key)
                if entry:
                    entry.value = value
                    entry.updated_at = datetime.now(timezone.utc)
                else:
                    entry = KeyValueEntry(key=key, value=value)
                s.add(entry)
                s.commit()
        except SQLAlchemyError as exc:
            raise PersistenceWriteError(f"Failed to write {key!r}: {exc}") from exc


def write_best_effort(store, key: str, value: str) -> bool:
    """
    Write to the store without letting a failure escape.

    A failed write is logged and not retried. In-memory state stays
    authoritative; the next successful write carries the latest state.

    Returns:
        True if the write succeeded.
    """
    try:
        store.set(key, value)
        return True
    except PersistenceWriteError as exc:
        logger.error("Persistence write failed for %s: %s", key, exc)
        return False
