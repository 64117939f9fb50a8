"""
Input models handed from the HTTP layer to the inference core.

Payloads arrive already validated (MIME allow-list, size limit); these models
only carry them. Binary content never leaves the request scope.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class InputImage(BaseModel):
    """One raw binary payload for a role of the remote procedure."""

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(..., repr=False, description="Raw image bytes")
    mime_type: str = Field(..., description="Declared MIME type (e.g. 'image/png')")
    filename: Optional[str] = Field(default=None, description="Original filename, if any")

    @property
    def size(self) -> int:
        return len(self.data)


class InferenceParams(BaseModel):
    """
    Scalar parameters forwarded positionally to the try-on procedure.

    Unset numeric values fall back to the client's configured defaults.
    `denoising_steps` is clamped by the client before sending.
    """

    model_config = ConfigDict(frozen=True)

    garment_description: str = Field(default="", description="Free-text garment description")
    auto_mask: bool = Field(default=True, description="Let the remote generate the clothing mask")
    auto_crop: bool = Field(default=True, description="Let the remote crop and resize the subject")
    denoising_steps: Optional[int] = Field(default=None, ge=1, description="Denoising steps")
    seed: Optional[int] = Field(default=None, description="Random seed, -1 for random")
