"""
Error taxonomy for tracking and rewards.

Nothing here is fatal to the process: each error degrades one feature
(GPS tracking, step counting, or reward persistence) and leaves the rest
usable. Callers surface the permission/support errors to the user; the
transient and persistence errors are logged where they occur.
"""


class SteptrackError(RuntimeError):
    """Base class for all steptrack errors."""


class PermissionDeniedError(SteptrackError):
    """Raised when location or step-count access is refused by the user."""


class DeviceUnsupportedError(SteptrackError):
    """Raised when the required sensor is absent on this device."""


class LocationUnavailableError(SteptrackError):
    """Raised when no initial fix could be obtained to start a session."""


class TransientLocationFailure(SteptrackError):
    """A single fix request failed. Tracking continues with prior samples."""


class PersistenceWriteError(SteptrackError):
    """Raised by a key/value store when a write could not be committed."""


class InvalidStateTransitionError(SteptrackError):
    """Raised (in strict mode) when an operation is not valid in the current state."""

    def __init__(self, operation: str, state: str):
        super().__init__(f"Cannot {operation} a session that is {state}")
        self.operation = operation
        self.state = state
