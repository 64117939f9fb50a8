"""
Backoff policies for the inference retry loops.

Two shapes are used:
- Exponential, capped: the remote procedure call (`RETRY_DELAY * 2^(n-1)`,
  never more than `RETRY_DELAY_CAP`)
- Fixed: URL downloads (constant delay between attempts)
"""

from dataclasses import dataclass

from tryon_gateway.config import Settings


@dataclass(frozen=True)
class BackoffPolicy:
    """
    Attempt budget plus the delay to wait after a failed attempt.

    Attributes:
        max_attempts: Total attempts allowed (first try included)
        base_delay: Delay after the first failure (seconds)
        max_delay: Upper bound for any single delay (seconds)
        multiplier: Growth factor per failure; 1.0 gives a fixed delay
    """

    max_attempts: int
    base_delay: float
    max_delay: float
    multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be >= 0")
        if self.multiplier < 1.0:
            raise ValueError("multiplier must be >= 1.0")

    @classmethod
    def exponential(cls, settings: Settings) -> "BackoffPolicy":
        """Policy for remote procedure calls."""
        return cls(
            max_attempts=settings.MAX_RETRIES,
            base_delay=settings.RETRY_DELAY,
            max_delay=settings.RETRY_DELAY_CAP,
        )

    @classmethod
    def fixed(cls, max_attempts: int, delay: float) -> "BackoffPolicy":
        return cls(max_attempts=max_attempts, base_delay=delay, max_delay=delay, multiplier=1.0)

    def delay_for(self, attempt: int) -> float:
        """
        Delay to wait after failed attempt number `attempt` (1-indexed).

        >>> BackoffPolicy(3, 5.0, 30.0).delay_for(2)
        10.0
        """
        if attempt < 1:
            raise ValueError("attempt must be >= 1")
        return min(self.base_delay * self.multiplier ** (attempt - 1), self.max_delay)

    def is_last(self, attempt: int) -> bool:
        return attempt >= self.max_attempts
