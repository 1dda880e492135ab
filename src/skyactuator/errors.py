"""
Error kinds raised by the machine actuator and the termination handler.

Every wrapper keeps the underlying message text so upstream diagnostics stay
actionable; callers chain the underlying exception with ``raise ... from``.
"""

from enum import Enum


class ActuatorError(Exception):
    """Base class for every error raised by skyactuator."""


class MachineValidationError(ActuatorError):
    """The machine spec or labels are defective. No cloud call was made."""


class InvalidMachineConfiguration(ActuatorError):
    """
    A permanent configuration error. The caller must not retry blindly.
    """

    def __init__(self, message: str, code: int | None = None, prefix: str = ""):
        self.message = message
        self.code = code
        super().__init__(f"{prefix}{message}")


class FetchError(ActuatorError):
    """A named resource (e.g. an instance group) could not be fetched."""

    def __init__(self, resource: str, message: str, missing: bool = False):
        self.resource = resource
        self.missing = missing
        super().__init__(message)


class RequeueAfterError(ActuatorError):
    """Not a failure: the operation should be retried after a short delay."""

    def __init__(self, requeue_after: float):
        self.requeue_after = requeue_after
        super().__init__(f"requeue in: {requeue_after}s")


class ComputeErrorKind(str, Enum):
    TRANSIENT = "transient"
    PERMANENT = "permanent"
    NOT_FOUND = "not_found"


class ComputeError(ActuatorError):
    """A provider failure, classified once at the gateway boundary."""

    def __init__(
        self,
        kind: ComputeErrorKind,
        message: str,
        code: int | None = None,
        text: str | None = None,
    ):
        self.kind = kind
        # Provider message only; str(self) is the full error text
        self.message = message
        self.code = code
        super().__init__(text or message)

    @property
    def not_found(self) -> bool:
        return self.kind is ComputeErrorKind.NOT_FOUND

    @property
    def permanent(self) -> bool:
        return self.kind is not ComputeErrorKind.TRANSIENT


class TerminationError(ActuatorError):
    """The termination handler failed."""


class TerminationEndpointError(TerminationError):
    """Transport failure talking to the metadata server."""


class NodeMarkTimeoutError(TerminationError):
    """The node-marking retry budget was exhausted."""
