"""
Duplicate and overlapping-request suppression.

Components:
- RequestGate: in-memory tracker of in-flight submissions per caller
- payload_signature: caller-independent digest of a submission's payloads
- exceptions: rejection errors raised by RequestGate.admit
"""

from tryon_gateway.gate.exceptions import (
    DuplicateInFlight,
    RejectionError,
    ResubmissionTooSoon,
)
from tryon_gateway.gate.request_gate import (
    Accepted,
    PendingSubmission,
    Rejected,
    RequestGate,
    payload_signature,
)

__all__ = [
    "RequestGate",
    "Accepted",
    "Rejected",
    "PendingSubmission",
    "payload_signature",
    "RejectionError",
    "DuplicateInFlight",
    "ResubmissionTooSoon",
]
