from typing import Optional

from dbctl.core.models import FailureKind


class ControllerError(Exception):
    """
    Base class for failures raised by lifecycle collaborators.

    The controller converts these into a terminal ``LifecycleOutcome``; they
    never escape a controller operation.
    """
    kind: FailureKind = FailureKind.OPERATION

    def __init__(self, message: str, detail: Optional[str] = None):
        self.message = message
        self.detail = detail
        super().__init__(message)


class PrerequisiteFailure(ControllerError):
    """A sanity check that must pass before start did not."""
    kind = FailureKind.PREREQUISITE


class TimeoutFailure(ControllerError):
    kind = FailureKind.TIMEOUT


class EscalationFailure(ControllerError):
    """Stop reached the kill stage and the service is still present."""
    kind = FailureKind.ESCALATION


class OperationFailure(ControllerError):
    """An administrative call or the launch itself failed."""
    kind = FailureKind.OPERATION


class ConfigurationError(Exception):
    """
    Raised when dbctl.yaml exists but cannot be read, parsed or validated.
    """
    def __init__(self, message: str, path: Optional[str] = None):
        self.message = message
        self.path = path
        ctx = f" in '{path}'" if path else ""
        super().__init__(f"Configuration Error{ctx}: {message}")
