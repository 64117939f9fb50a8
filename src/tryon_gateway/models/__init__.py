"""
Pydantic data models for the Try-On Gateway.

Includes:
- Enums (RejectionReason, InputRole)
- Input models (InputImage, InferenceParams)
- Output models (NormalizedResult)
"""

from tryon_gateway.models.enums import InputRole, RejectionReason
from tryon_gateway.models.inputs import InferenceParams, InputImage
from tryon_gateway.models.outputs import NormalizedResult

__all__ = [
    # Enums
    "InputRole",
    "RejectionReason",
    # Input models
    "InputImage",
    "InferenceParams",
    # Output models
    "NormalizedResult",
]
