"""
Upload validation performed before a submission reaches the request gate.
"""

from typing import Optional

from tryon_gateway.config import Settings
from tryon_gateway.models.inputs import InputImage


class UploadValidationError(Exception):
    """Raised when an uploaded payload is missing, of a refused type or too large."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


def validate_image(image: InputImage, settings: Settings) -> None:
    """
    Check a payload against the MIME allow-list and the size limit.

    Raises:
        UploadValidationError: On the first violated rule
    """
    name = image.filename or "file"

    if image.size == 0:
        raise UploadValidationError(f"{name} is empty", details={"filename": image.filename})

    if image.mime_type not in settings.ALLOWED_MIME_TYPES:
        raise UploadValidationError(
            f"{name} must be a JPEG or PNG image",
            details={"filename": image.filename, "mime_type": image.mime_type},
        )

    check_size(image.filename, image.size, settings)


def check_size(filename: Optional[str], size: Optional[int], settings: Settings) -> None:
    """
    Enforce the upload size limit. An unknown size (None) passes.

    Used on the declared multipart size before the body is read, and on the
    payload itself afterwards.
    """
    if size is not None and size > settings.MAX_FILE_SIZE:
        limit_mb = settings.MAX_FILE_SIZE / (1024 * 1024)
        raise UploadValidationError(
            f"{filename or 'file'} exceeds the {limit_mb:g}MB size limit",
            details={"filename": filename, "size": size},
        )
