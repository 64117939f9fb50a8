"""
Enumerations for Try-On Gateway data models.
"""

from enum import Enum


class RejectionReason(str, Enum):
    """
    Why the request gate refused a submission.

    Checked in declaration order: an exact duplicate wins over a rapid
    resubmission when both apply.
    """

    DUPLICATE_IN_FLIGHT = "duplicate files in flight"
    RESUBMISSION_TOO_SOON = "resubmission too soon"


class InputRole(str, Enum):
    """Payload roles accepted by the try-on procedure."""

    FRONT = "front"
    GARMENT = "garment"
