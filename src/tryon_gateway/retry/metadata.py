"""
Retry metadata tracking.

This module defines the RetryMetadata dataclass that captures the retry
history of one InferenceClient.submit call for logs and metrics.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RetryMetadata:
    """
    Retry history of one submission.

    Attributes:
        total_attempts: Number of remote attempts made
        succeeded: Whether the final attempt produced a result
        total_latency_ms: Time from first attempt to final outcome (ms)
        failures: One entry per failed attempt (attempt, kind, error)
    """

    total_attempts: int
    succeeded: bool
    total_latency_ms: int
    failures: list[dict] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate metadata invariants."""
        if self.total_attempts < 1:
            raise ValueError("total_attempts must be >= 1")

        if self.total_latency_ms < 0:
            raise ValueError("total_latency_ms must be >= 0")

        expected_failures = self.total_attempts - 1 if self.succeeded else self.total_attempts
        if len(self.failures) != expected_failures:
            raise ValueError(
                f"expected {expected_failures} failures for {self.total_attempts} attempts, "
                f"got {len(self.failures)}"
            )

    @property
    def retries_used(self) -> int:
        # First attempt is not a retry
        return self.total_attempts - 1
