"""
Custom exceptions for the inference client layer.

These exceptions let the retry loop distinguish failures that taint the
remote session (and are retried) from failures where the remote call
nominally succeeded but produced an unusable payload (terminal).
"""

from typing import Optional


class InferenceError(Exception):
    """
    Base exception for all inference client errors.

    `kind` is a stable, machine-readable name used in logs, metrics and
    error responses.
    """

    kind = "inference_error"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class SessionError(InferenceError):
    """
    Raised when a session to the remote service cannot be established.

    Includes handshake transport failures. Triggers session invalidation and
    a retry inside InferenceClient.
    """

    kind = "session_error"


class SessionTimeout(SessionError):
    """Raised when session construction exceeds the request timeout."""

    kind = "session_timeout"


class RemoteCallError(InferenceError):
    """
    Raised when the remote procedure call fails.

    Examples:
    - Transport failure or dropped session
    - Remote-reported parameter validation error
    - Empty response envelope

    Triggers session invalidation and retry with backoff.
    """

    kind = "remote_call_error"


class RemoteCallTimeout(RemoteCallError):
    """Raised when the remote procedure exceeds its call timeout."""

    kind = "remote_call_timeout"


class ParameterOutOfBounds(RemoteCallError):
    """
    Raised when the remote rejects a numeric parameter above its maximum.

    Besides the usual retry, the client lowers its process-wide clamp for
    that parameter to `maximum`.
    """

    kind = "parameter_out_of_bounds"

    def __init__(self, message: str, value: int, maximum: int, details: dict | None = None):
        super().__init__(message, {"value": value, "maximum": maximum, **(details or {})})
        self.value = value
        self.maximum = maximum


class ResultShapeError(InferenceError):
    """
    Raised when the remote response cannot be reduced to a NormalizedResult.

    The call itself succeeded, so retrying would most likely reproduce the
    same payload. Terminal for the request.
    """

    kind = "result_shape_error"


class UnrecognizedResultShape(ResultShapeError):
    """Raised when the response matches none of the known envelope shapes."""

    kind = "unrecognized_result_shape"


class InvalidResultEncoding(ResultShapeError):
    """Raised when the extracted image payload is not pure base64."""

    kind = "invalid_result_encoding"


class DownloadError(InferenceError):
    """Raised when a URL cannot be fetched."""

    kind = "download_error"


class DownloadExhausted(DownloadError):
    """
    Raised after the download routine used up its fixed attempt count.

    Attributes:
        url: URL that could not be fetched
        last_error: Error of the final attempt
    """

    kind = "download_exhausted"

    def __init__(self, url: str, attempts: int, last_error: Optional[BaseException]):
        super().__init__(
            f"Failed to download image after {attempts} attempts: {last_error}",
            details={
                "url": url,
                "attempts": attempts,
                "last_error_type": type(last_error).__name__ if last_error else None,
            },
        )
        self.url = url
        self.last_error = last_error


class ExhaustedRetries(InferenceError):
    """
    Raised when every attempt of the retry loop failed.

    Terminal; surfaced to the caller as a generic processing failure.

    Attributes:
        attempts: Number of attempts made
        last_error: Error of the final attempt
    """

    kind = "exhausted_retries"

    def __init__(self, attempts: int, last_error: Optional[BaseException]):
        super().__init__(
            f"Failed to process images after {attempts} attempts: {last_error}",
            details={
                "attempts": attempts,
                "last_error_type": type(last_error).__name__ if last_error else None,
                "last_error_kind": getattr(last_error, "kind", None),
            },
        )
        self.attempts = attempts
        self.last_error = last_error
