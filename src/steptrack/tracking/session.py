"""
TrackingSession: lifecycle of one GPS-tracked walk or run.

States:

    idle ──start()──► active ◄──resume()── paused
                        │ └────pause()────►  │
                        └──────stop()──────► stopped ◄─┘

`stopped` is terminal for the session's data; start() again begins a new
session with fresh accumulators, and reset() returns to `idle`.

Location fixes arrive asynchronously from the provider. Each fix is handled
to completion against whatever state the session is in at that moment, so a
pause takes effect for every fix delivered after it and never retroactively.
Fixes delivered while paused only move `current_position`; they are not
added to the route and do not count towards distance.

Duration is wall time since start minus every paused interval. While paused
it is frozen at the moment pause() was called.
"""
import logging
import time
import uuid
from typing import Callable, List, Optional

from steptrack.analysis.geo import average_speed_kmh, haversine_m, speed_kmh_from_mps
from steptrack.errors import (
    DeviceUnsupportedError,
    InvalidStateTransitionError,
    LocationUnavailableError,
    PermissionDeniedError,
)
from steptrack.models.session import (
    CompletedSessionRecord,
    LocationSample,
    RoutePoint,
    SessionState,
    TrackingStats,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def _now_ms() -> int:
    return int(time.time() * 1000)


class TrackingSession:
    """
    Owns the route, distance and pause accounting of a single session.

    Usage:
        session = TrackingSession(provider, history=SessionHistory(store))
        await session.start()
        ...                       # provider delivers fixes
        session.pause(); session.resume()
        record = session.stop()   # CompletedSessionRecord or None
    """

    def __init__(
        self,
        provider,
        *,
        clock: Optional[Clock] = None,
        history=None,
        strict: bool = False,
    ):
        """
        Args:
            provider: LocationProvider implementation.
            clock: Returns the current time in epoch milliseconds.
            history: SessionHistory that receives completed records (optional).
            strict: Raise InvalidStateTransitionError instead of ignoring
                    operations that are not valid in the current state.
        """
        self.provider = provider
        self.clock = clock or _now_ms
        self.history = history
        self.strict = strict

        self.state = SessionState.IDLE
        self.route: List[RoutePoint] = []
        self.current_position: Optional[LocationSample] = None
        self.distance_meters = 0.0
        self.current_speed_kmh = 0.0
        self.start_timestamp_ms: Optional[int] = None
        self.end_timestamp_ms: Optional[int] = None
        self.accumulated_pause_ms = 0
        self.last_record: Optional[CompletedSessionRecord] = None

        self._pause_started_ms: Optional[int] = None
        self._final_duration_ms = 0
        self._subscription = None
        self._starting = False
        self._generation = 0

    # ─── Lifecycle ────────────────────────────────────────────────────────────

    async def start(self) -> bool:
        """
        Begin a new session from the provider's current fix.

        Returns:
            True if the session is now active, False if start() was not
            valid in the current state (non-strict mode).

        Raises:
            DeviceUnsupportedError: the device has no location service.
            PermissionDeniedError: the user refused location access.
            LocationUnavailableError: no initial fix could be obtained.
        """
        if self._starting or self.state not in (SessionState.IDLE, SessionState.STOPPED):
            return self._reject("start")

        self._starting = True
        try:
            if not self.provider.is_supported():
                raise DeviceUnsupportedError("Location tracking is not available on this device")
            if not await self.provider.request_permission():
                raise PermissionDeniedError("Location permission denied")
            try:
                fix = await self.provider.get_current_fix()
            except Exception as exc:
                raise LocationUnavailableError(f"Failed to get current position: {exc}") from exc
            if fix is None:
                raise LocationUnavailableError("Failed to get current position")

            self._begin(fix)
            generation = self._generation
            try:
                subscription = await self.provider.subscribe(
                    self.on_location_update, self.on_location_error
                )
            except Exception as exc:
                self._clear()
                self.state = SessionState.IDLE
                raise LocationUnavailableError(f"Failed to watch position: {exc}") from exc
        finally:
            self._starting = False

        if generation != self._generation or not self.is_tracking:
            # stop() ran while the subscription was being set up
            subscription.unsubscribe()
            return True

        self._subscription = subscription
        logger.info(
            "Tracking started at (%.5f, %.5f)", fix.latitude, fix.longitude
        )
        return True

    def pause(self) -> bool:
        if self.state is not SessionState.ACTIVE:
            return self._reject("pause")
        self._pause_started_ms = self.clock()
        self.state = SessionState.PAUSED
        logger.info("Tracking paused")
        return True

    def resume(self) -> bool:
        if self.state is not SessionState.PAUSED:
            return self._reject("resume")
        self.accumulated_pause_ms += max(0, self.clock() - self._pause_started_ms)
        self._pause_started_ms = None
        self.state = SessionState.ACTIVE
        logger.info("Tracking resumed")
        return True

    def stop(self) -> Optional[CompletedSessionRecord]:
        """
        End the session and stop location delivery before returning.

        Returns:
            The completed record if the route has more than one point,
            otherwise None (nothing worth keeping was tracked).
        """
        if self.state not in (SessionState.ACTIVE, SessionState.PAUSED):
            self._reject("stop")
            return None

        self._release_subscription()

        now = max(self.clock(), self.start_timestamp_ms)
        if self.state is SessionState.PAUSED:
            self.accumulated_pause_ms += max(0, now - self._pause_started_ms)
            self._pause_started_ms = None

        self.end_timestamp_ms = now
        self._final_duration_ms = max(0, now - self.start_timestamp_ms - self.accumulated_pause_ms)
        self.state = SessionState.STOPPED
        self._generation += 1

        avg_kmh = average_speed_kmh(self.distance_meters, self._final_duration_ms)
        logger.info(
            "Tracking stopped: %.0f m in %d ms (%.2f km/h, %d points)",
            self.distance_meters,
            self._final_duration_ms,
            avg_kmh,
            len(self.route),
        )

        if len(self.route) <= 1:
            return None

        record = CompletedSessionRecord(
            id=uuid.uuid4().hex,
            start_timestamp_ms=self.start_timestamp_ms,
            end_timestamp_ms=now,
            route=list(self.route),
            distance_meters=self.distance_meters,
            duration_ms=self._final_duration_ms,
            avg_speed_kmh=avg_kmh,
        )
        self.last_record = record
        if self.history is not None:
            self.history.append(record)
        return record

    def reset(self) -> None:
        """Stop if running, then clear the route and stats back to idle."""
        if self.state in (SessionState.ACTIVE, SessionState.PAUSED):
            self.stop()
        self._clear()
        self.state = SessionState.IDLE

    # ─── Location stream callbacks ────────────────────────────────────────────

    def on_location_update(self, sample: LocationSample) -> None:
        if self.state in (SessionState.IDLE, SessionState.STOPPED):
            return  # late delivery from a released subscription

        self.current_position = sample
        if self.state is SessionState.PAUSED:
            return

        last = self.route[-1]
        self.distance_meters += haversine_m(
            last.latitude, last.longitude, sample.latitude, sample.longitude
        )
        self.route.append(RoutePoint.from_sample(sample))
        self.current_speed_kmh = speed_kmh_from_mps(sample.speed_mps)

    def on_location_error(self, exc: Exception) -> None:
        logger.warning("Location fix failed, continuing with prior samples: %s", exc)

    # ─── Derived stats ────────────────────────────────────────────────────────

    def duration_ms(self) -> int:
        if self.state is SessionState.ACTIVE:
            return max(0, self.clock() - self.start_timestamp_ms - self.accumulated_pause_ms)
        if self.state is SessionState.PAUSED:
            return max(0, self._pause_started_ms - self.start_timestamp_ms - self.accumulated_pause_ms)
        if self.state is SessionState.STOPPED:
            return self._final_duration_ms
        return 0

    def stats(self) -> TrackingStats:
        duration = self.duration_ms()
        return TrackingStats(
            distance_meters=self.distance_meters,
            duration_ms=duration,
            avg_speed_kmh=average_speed_kmh(self.distance_meters, duration),
            current_speed_kmh=self.current_speed_kmh,
        )

    @property
    def is_tracking(self) -> bool:
        return self.state in (SessionState.ACTIVE, SessionState.PAUSED)

    # ─── Internal helpers ─────────────────────────────────────────────────────

    def _begin(self, fix: LocationSample) -> None:
        self._clear()
        self._generation += 1
        self.start_timestamp_ms = self.clock()
        self.current_position = fix
        self.route = [RoutePoint.from_sample(fix)]
        self.state = SessionState.ACTIVE

    def _clear(self) -> None:
        self.route = []
        self.current_position = None
        self.distance_meters = 0.0
        self.current_speed_kmh = 0.0
        self.start_timestamp_ms = None
        self.end_timestamp_ms = None
        self.accumulated_pause_ms = 0
        self._pause_started_ms = None
        self._final_duration_ms = 0

    def _release_subscription(self) -> None:
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.unsubscribe()

    def _reject(self, operation: str) -> bool:
        if self.strict:
            raise InvalidStateTransitionError(operation, self.state.value)
        logger.warning("Ignoring %s(): session is %s", operation, self.state.value)
        return False
