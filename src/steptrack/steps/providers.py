"""
Step counter provider interface.

The OS pedometer is an external collaborator offering a one-shot
"steps since midnight" query and a live stream of steps counted since the
subscription began. StepTracker adds the two together.
"""
from typing import Callable, List, Optional, Protocol

StepCallback = Callable[[int], None]


class StepSubscription(Protocol):
    def unsubscribe(self) -> None:
        ...


class StepCounterProvider(Protocol):
    def is_supported(self) -> bool:
        ...

    async def request_permission(self) -> bool:
        ...

    async def get_steps_since_midnight(self) -> int:
        ...

    async def subscribe(self, on_steps: StepCallback) -> StepSubscription:
        ...


class _StaticStepSubscription:
    def __init__(self, provider: "StaticStepProvider", on_steps: StepCallback):
        self._provider = provider
        self.on_steps = on_steps

    def unsubscribe(self) -> None:
        if self in self._provider._subscriptions:
            self._provider._subscriptions.remove(self)


class StaticStepProvider:
    """Pedometer whose readings are set by the caller (tests, offline replay)."""

    def __init__(
        self,
        steps_since_midnight: int = 0,
        *,
        supported: bool = True,
        permission_granted: bool = True,
    ):
        self.steps_since_midnight = steps_since_midnight
        self.supported = supported
        self.permission_granted = permission_granted
        self._subscriptions: List[_StaticStepSubscription] = []

    def is_supported(self) -> bool:
        return self.supported

    async def request_permission(self) -> bool:
        return self.permission_granted

    async def get_steps_since_midnight(self) -> int:
        return self.steps_since_midnight

    async def subscribe(self, on_steps: StepCallback) -> _StaticStepSubscription:
        sub = _StaticStepSubscription(self, on_steps)
        self._subscriptions.append(sub)
        return sub

    def emit(self, steps_since_subscribe: int, subscription: Optional[_StaticStepSubscription] = None) -> None:
        targets = [subscription] if subscription else list(self._subscriptions)
        for sub in targets:
            sub.on_steps(steps_since_subscribe)
