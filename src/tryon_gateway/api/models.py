"""
API-specific response models for FastAPI endpoints.

These wrap the core NormalizedResult with the fields the HTTP clients expect.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TryOnResponse(BaseModel):
    """Response for the synchronous try-on endpoint."""

    success: bool = Field(default=True, description="Request status")
    image_data: str = Field(description="Generated image as a data URL")
    content_type: str = Field(description="MIME type of the generated image", examples=["image/png"])
    generated_at: datetime = Field(description="Generation timestamp (UTC)")
    attempts: int = Field(description="Remote attempts used", ge=1)


class ClearRequestsResponse(BaseModel):
    """Response for the admin clear endpoint."""

    success: bool = True
    message: str
    cleared: int = Field(ge=0, description="Number of pending submissions dropped")
    cleared_at: datetime = Field(default_factory=_utcnow)


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    status: str = Field(
        description="Overall health status",
        examples=["healthy", "degraded"]
    )
    version: str = Field(description="Gateway version", examples=["0.1.0"])
    pending_submissions: int = Field(ge=0, description="Submissions tracked by the request gate")
    session_age_seconds: Optional[float] = Field(
        default=None,
        description="Age of the cached remote session, null when none is cached"
    )
    remote: str = Field(
        description="Remote service status",
        examples=["ok", "unreachable", "not_checked"]
    )
    timestamp: datetime = Field(default_factory=_utcnow)


class ErrorResponse(BaseModel):
    """Standard error response format."""

    success: bool = False
    error: str = Field(
        description="Error code or type",
        examples=["duplicate_in_flight", "exhausted_retries", "invalid_upload"]
    )
    message: str = Field(description="Human-readable error message")
    details: Optional[dict] = Field(default=None, description="Additional error details")
    timestamp: datetime = Field(default_factory=_utcnow)
