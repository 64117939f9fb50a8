"""
Output models produced by the inference core.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NormalizedResult(BaseModel):
    """
    The single canonical output of the inference core.

    `image_base64` is always validated base64 (alphabet + padding only) before
    an instance is handed to the caller. The caller persists or streams it.
    """

    model_config = ConfigDict(frozen=True)

    image_base64: str = Field(..., repr=False, description="Base64-encoded image bytes")
    content_type: str = Field(default="image/png", description="MIME type of the decoded image")
    generated_at: datetime = Field(default_factory=_utcnow, description="Generation timestamp (UTC)")
    attempts: int = Field(default=1, ge=1, description="Attempt number that succeeded")

    def as_data_url(self) -> str:
        """Render as a `data:` URL suitable for direct display."""
        return f"data:{self.content_type};base64,{self.image_base64}"
