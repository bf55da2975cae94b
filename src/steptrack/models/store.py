"""Durable key/value table backing all persisted JSON documents."""
from datetime import datetime, timezone

from sqlmodel import Field, SQLModel


class KeyValueEntry(SQLModel, table=True):
    """One JSON document per key (achievements, streak, histories, goal)."""

    key: str = Field(primary_key=True)
    value: str  # UTF-8 JSON
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
