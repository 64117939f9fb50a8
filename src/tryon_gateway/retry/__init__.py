"""
Retry building blocks shared by the inference client and the downloader.

Main Components:
    - BackoffPolicy: attempt budget and per-attempt delay (exponential or fixed)
    - RetryMetadata: immutable history of a submission's attempts
"""

from tryon_gateway.retry.metadata import RetryMetadata
from tryon_gateway.retry.policy import BackoffPolicy

__all__ = [
    "BackoffPolicy",
    "RetryMetadata",
]
