"""Tracking session models: location samples, route points, completed records."""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SessionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    PAUSED = "paused"
    STOPPED = "stopped"


class LocationSample(BaseModel):
    """One fix from the location provider. Immutable once recorded."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    timestamp_ms: int
    speed_mps: Optional[float] = None  # None when the provider has no speed


class RoutePoint(LocationSample):
    """A sample retained on a session's path. Route order is chronological."""

    @classmethod
    def from_sample(cls, sample: LocationSample) -> "RoutePoint":
        return cls(**sample.model_dump())


class TrackingStats(BaseModel):
    """Derived, display-ready snapshot of a running or finished session."""

    distance_meters: float = 0.0
    duration_ms: int = 0
    avg_speed_kmh: float = 0.0
    current_speed_kmh: float = 0.0


class CompletedSessionRecord(BaseModel):
    """
    Write-once record of a finished session.
    duration_ms is wall time minus every paused interval, never negative.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    start_timestamp_ms: int
    end_timestamp_ms: int
    route: List[RoutePoint]
    distance_meters: float = Field(ge=0.0)
    duration_ms: int = Field(ge=0)
    avg_speed_kmh: float = Field(ge=0.0)

    @model_validator(mode="after")
    def _duration_within_wall_time(self) -> "CompletedSessionRecord":
        if self.duration_ms > self.end_timestamp_ms - self.start_timestamp_ms:
            raise ValueError("duration_ms exceeds the session's wall-clock span")
        return self

    @property
    def total_paused_ms(self) -> int:
        return self.end_timestamp_ms - self.start_timestamp_ms - self.duration_ms
