"""
Exceptions raised by the request gate.

Rejections are surfaced to the caller as a retryable "try again shortly"
response. They are never retried internally.
"""

from tryon_gateway.models.enums import RejectionReason


class RejectionError(Exception):
    """
    Base exception for a submission refused by the request gate.

    Attributes:
        reason: Which gate rule refused the submission
        caller_id: Caller whose submission was refused
        details: Extra context for logging and error responses
    """

    reason: RejectionReason

    def __init__(self, message: str, caller_id: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.caller_id = caller_id
        self.details = details or {}

    @classmethod
    def for_reason(
        cls, reason: RejectionReason, caller_id: str, details: dict | None = None
    ) -> "RejectionError":
        """Build the concrete subclass matching a rejection reason."""
        if reason is RejectionReason.DUPLICATE_IN_FLIGHT:
            return DuplicateInFlight(caller_id, details)
        return ResubmissionTooSoon(caller_id, details)


class DuplicateInFlight(RejectionError):
    """Raised when the exact same payload is already being processed."""

    reason = RejectionReason.DUPLICATE_IN_FLIGHT

    def __init__(self, caller_id: str, details: dict | None = None):
        super().__init__(
            "A request with these exact files is already being processed",
            caller_id,
            details,
        )


class ResubmissionTooSoon(RejectionError):
    """Raised when a caller resubmits inside the cooldown window."""

    reason = RejectionReason.RESUBMISSION_TOO_SOON

    def __init__(self, caller_id: str, details: dict | None = None):
        super().__init__(
            "Please wait before submitting another request",
            caller_id,
            details,
        )
