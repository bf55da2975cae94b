"""
Location provider interface.

The platform location service is an external collaborator. TrackingSession
talks to it only through this protocol, probing `is_supported()` instead of
special-casing platforms.

StaticLocationProvider is a scripted, in-process implementation used for
tests and for replaying a recorded route offline.
"""
from typing import Callable, List, Optional, Protocol

from steptrack.models.session import LocationSample

SampleCallback = Callable[[LocationSample], None]
ErrorCallback = Callable[[Exception], None]


class LocationSubscription(Protocol):
    def unsubscribe(self) -> None:
        ...


class LocationProvider(Protocol):
    def is_supported(self) -> bool:
        ...

    async def request_permission(self) -> bool:
        ...

    async def get_current_fix(self) -> Optional[LocationSample]:
        ...

    async def subscribe(
        self,
        on_sample: SampleCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> LocationSubscription:
        ...


class _StaticSubscription:
    def __init__(self, provider: "StaticLocationProvider", on_sample, on_error):
        self._provider = provider
        self.on_sample = on_sample
        self.on_error = on_error
        self.active = True

    def unsubscribe(self) -> None:
        self.active = False
        self._provider._drop(self)


class StaticLocationProvider:
    """
    Provider whose fixes are pushed by the caller.

    Usage:
        provider = StaticLocationProvider(initial_fix=sample)
        await session.start()
        provider.emit(next_sample)   # delivered to every live subscriber
    """

    def __init__(
        self,
        initial_fix: Optional[LocationSample] = None,
        *,
        supported: bool = True,
        permission_granted: bool = True,
    ):
        self.initial_fix = initial_fix
        self.supported = supported
        self.permission_granted = permission_granted
        self._subscriptions: List[_StaticSubscription] = []

    def is_supported(self) -> bool:
        return self.supported

    async def request_permission(self) -> bool:
        return self.permission_granted

    async def get_current_fix(self) -> Optional[LocationSample]:
        return self.initial_fix

    async def subscribe(self, on_sample, on_error=None) -> _StaticSubscription:
        sub = _StaticSubscription(self, on_sample, on_error)
        self._subscriptions.append(sub)
        return sub

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def emit(self, sample: LocationSample) -> None:
        for sub in list(self._subscriptions):
            sub.on_sample(sample)

    def emit_error(self, exc: Exception) -> None:
        for sub in list(self._subscriptions):
            if sub.on_error is not None:
                sub.on_error(exc)

    def replay(self, samples: List[LocationSample]) -> None:
        for sample in samples:
            self.emit(sample)

    def _drop(self, sub: _StaticSubscription) -> None:
        if sub in self._subscriptions:
            self._subscriptions.remove(sub)
