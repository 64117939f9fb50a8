"""
Unit tests for upload validation.
"""

import pytest

from tryon_gateway.api.validation import UploadValidationError, check_size, validate_image


def test_valid_png_passes(test_settings, create_input_image):
    validate_image(create_input_image(), test_settings)


def test_valid_jpeg_passes(test_settings, create_input_image):
    validate_image(create_input_image(mime_type="image/jpeg", filename="front.jpg"), test_settings)


def test_empty_payload_rejected(test_settings, create_input_image):
    with pytest.raises(UploadValidationError, match="front.png is empty"):
        validate_image(create_input_image(data=b""), test_settings)


def test_disallowed_mime_rejected(test_settings, create_input_image):
    image = create_input_image(mime_type="image/gif", filename="anim.gif")

    with pytest.raises(UploadValidationError) as exc_info:
        validate_image(image, test_settings)

    assert exc_info.value.message == "anim.gif must be a JPEG or PNG image"
    assert exc_info.value.details["mime_type"] == "image/gif"


def test_oversized_rejected(test_settings, create_input_image):
    settings = test_settings.model_copy(update={"MAX_FILE_SIZE": 1024 * 1024})
    image = create_input_image(data=b"x" * (1024 * 1024 + 1))

    with pytest.raises(UploadValidationError, match="exceeds the 1MB size limit"):
        validate_image(image, settings)


def test_exact_limit_accepted(test_settings, create_input_image):
    settings = test_settings.model_copy(update={"MAX_FILE_SIZE": 16})

    validate_image(create_input_image(data=b"x" * 16), settings)


def test_unnamed_payload_uses_generic_name(test_settings, create_input_image):
    with pytest.raises(UploadValidationError, match="^file is empty$"):
        validate_image(create_input_image(data=b"", filename=None), test_settings)


def test_check_size_on_declared_size(test_settings):
    settings = test_settings.model_copy(update={"MAX_FILE_SIZE": 10})

    check_size("front.png", 10, settings)
    check_size("front.png", None, settings)
    with pytest.raises(UploadValidationError) as exc_info:
        check_size("front.png", 11, settings)

    assert exc_info.value.details == {"filename": "front.png", "size": 11}
