"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

import pytest

from tryon_gateway.config import Settings
from tryon_gateway.models.inputs import InputImage

# Smallest byte strings the gateway treats as images; content is never decoded
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"front-view-pixels"
GARMENT_BYTES = b"\x89PNG\r\n\x1a\n" + b"garment-pixels"


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing.

    Delays are zeroed so retry paths run instantly. Override specific
    settings in individual tests with `test_settings.model_copy(update=...)`.
    """
    return Settings(
        # === Application ===
        APP_NAME="Try-On Gateway (Test)",
        APP_VERSION="0.1.0",
        DEBUG=True,
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",

        # === Remote ===
        GRADIO_URL="http://localhost:7860",
        HF_TOKEN=None,

        # === Retry & Timeouts ===
        MAX_RETRIES=3,
        RETRY_DELAY=0.0,
        RETRY_DELAY_CAP=0.0,
        REQUEST_TIMEOUT=5.0,

        # === Downloads ===
        DOWNLOAD_ATTEMPTS=2,
        DOWNLOAD_RETRY_DELAY=0.0,

        # === Admin ===
        ADMIN_TOKEN="admin-secret",

        PROMETHEUS_ENABLED=False,  # Disable metrics in tests unless explicitly needed
    )


@pytest.fixture
def create_input_image():
    """Factory fixture to create InputImage payloads.

    Usage:
        def test_something(create_input_image):
            image = create_input_image(data=b"other", filename="other.png")
    """
    def _create(
        data: bytes = PNG_BYTES,
        mime_type: str = "image/png",
        filename: str = "front.png",
    ) -> InputImage:
        return InputImage(data=data, mime_type=mime_type, filename=filename)

    return _create


@pytest.fixture
def sample_inputs(create_input_image) -> dict[str, InputImage]:
    """A complete front + garment payload set."""
    return {
        "front": create_input_image(),
        "garment": create_input_image(data=GARMENT_BYTES, filename="garment.png"),
    }
