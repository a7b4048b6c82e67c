from __future__ import annotations


class ApprovalBridgeError(Exception):
    """Base class for all errors raised by the approval bridge."""


class DuplicateKey(ApprovalBridgeError):
    """A second waiter tried to register a key that is already pending."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Correlation already pending for key {key!r}")


class InvalidCursorMove(ApprovalBridgeError):
    """Cursor advance that is not strictly greater than the current position."""

    def __init__(self, current: int, requested: int):
        self.current = current
        self.requested = requested
        super().__init__(f"Cursor cannot move from {current} to {requested}")


class ChannelFetchError(ApprovalBridgeError):
    """Transient failure while fetching events from the external channel."""


class ChannelRequestError(ApprovalBridgeError):
    """A non-fetch call to the external channel failed (HTTP, transport or `ok: false`)."""

    def __init__(self, method: str, message: str, *, status_code: int | None = None):
        self.method = method
        self.status_code = status_code
        super().__init__(f"{method} failed: {message}")


class SequencerStepError(ApprovalBridgeError):
    """One acknowledgment step failed. Logged, never propagated to callers."""

    def __init__(self, step: str, key: str, cause: BaseException):
        self.step = step
        self.key = key
        self.cause = cause
        super().__init__(f"Step {step!r} failed for key {key!r}: {cause}")
