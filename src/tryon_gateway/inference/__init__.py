"""
Remote inference client and its building blocks.

Components:
- BaseInferenceClient: Abstract interface used by the service layer
- InferenceClient: Retrying try-on client with session caching
- SessionCache: Single shared, time-bounded remote session
- GradioSession: gradio_client-backed session implementation
- ResultNormalizer: Reduces remote envelopes to base64
- ImageDownloader: URL fetch with fixed-delay retries
- exceptions: Inference-specific exceptions
"""

from tryon_gateway.inference.base_client import BaseInferenceClient
from tryon_gateway.inference.client import InferenceClient
from tryon_gateway.inference.downloader import DownloadedFile, ImageDownloader
from tryon_gateway.inference.envelope import ResultNormalizer, is_base64, parse_envelope
from tryon_gateway.inference.exceptions import (
    DownloadError,
    DownloadExhausted,
    ExhaustedRetries,
    InferenceError,
    InvalidResultEncoding,
    ParameterOutOfBounds,
    RemoteCallError,
    RemoteCallTimeout,
    ResultShapeError,
    SessionError,
    SessionTimeout,
    UnrecognizedResultShape,
)
from tryon_gateway.inference.gradio_session import GradioSession, gradio_session_factory
from tryon_gateway.inference.session import RemoteSession, SessionCache

__all__ = [
    "BaseInferenceClient",
    "InferenceClient",
    "SessionCache",
    "RemoteSession",
    "GradioSession",
    "gradio_session_factory",
    "ResultNormalizer",
    "parse_envelope",
    "is_base64",
    "ImageDownloader",
    "DownloadedFile",
    "InferenceError",
    "SessionError",
    "SessionTimeout",
    "RemoteCallError",
    "RemoteCallTimeout",
    "ParameterOutOfBounds",
    "ResultShapeError",
    "UnrecognizedResultShape",
    "InvalidResultEncoding",
    "DownloadError",
    "DownloadExhausted",
    "ExhaustedRetries",
]
