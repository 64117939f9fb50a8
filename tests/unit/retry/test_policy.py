"""
Unit tests for BackoffPolicy and RetryMetadata.
"""

import pytest

from tryon_gateway.retry.metadata import RetryMetadata
from tryon_gateway.retry.policy import BackoffPolicy


# ============================================================================
# BackoffPolicy
# ============================================================================


def test_exponential_delays_capped():
    policy = BackoffPolicy(max_attempts=6, base_delay=5.0, max_delay=30.0)

    assert [policy.delay_for(n) for n in range(1, 6)] == [5.0, 10.0, 20.0, 30.0, 30.0]


def test_fixed_delay():
    policy = BackoffPolicy.fixed(max_attempts=3, delay=1.0)

    assert [policy.delay_for(n) for n in range(1, 4)] == [1.0, 1.0, 1.0]
    assert policy.multiplier == 1.0


def test_is_last():
    policy = BackoffPolicy(max_attempts=3, base_delay=1.0, max_delay=1.0)

    assert not policy.is_last(1)
    assert not policy.is_last(2)
    assert policy.is_last(3)


def test_exponential_from_settings(test_settings):
    settings = test_settings.model_copy(
        update={"MAX_RETRIES": 4, "RETRY_DELAY": 2.0, "RETRY_DELAY_CAP": 6.0}
    )

    policy = BackoffPolicy.exponential(settings)

    assert policy.max_attempts == 4
    assert [policy.delay_for(n) for n in range(1, 4)] == [2.0, 4.0, 6.0]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_attempts": 0, "base_delay": 1.0, "max_delay": 1.0},
        {"max_attempts": 1, "base_delay": -1.0, "max_delay": 1.0},
        {"max_attempts": 1, "base_delay": 1.0, "max_delay": 1.0, "multiplier": 0.5},
    ],
)
def test_invalid_policy(kwargs):
    with pytest.raises(ValueError):
        BackoffPolicy(**kwargs)


def test_delay_for_requires_positive_attempt():
    with pytest.raises(ValueError):
        BackoffPolicy(max_attempts=3, base_delay=1.0, max_delay=1.0).delay_for(0)


# ============================================================================
# RetryMetadata
# ============================================================================


def test_metadata_success_after_retries():
    metadata = RetryMetadata(
        total_attempts=3,
        succeeded=True,
        total_latency_ms=15_000,
        failures=[
            {"attempt": 1, "kind": "remote_call_error", "error": "dropped"},
            {"attempt": 2, "kind": "session_timeout", "error": "slow"},
        ],
    )

    assert metadata.retries_used == 2


def test_metadata_failure_counts_every_attempt():
    metadata = RetryMetadata(
        total_attempts=1,
        succeeded=False,
        total_latency_ms=10,
        failures=[{"attempt": 1, "kind": "unrecognized_result_shape", "error": "?"}],
    )

    assert metadata.retries_used == 0


def test_metadata_rejects_inconsistent_failures():
    with pytest.raises(ValueError, match="expected 1 failures"):
        RetryMetadata(total_attempts=2, succeeded=True, total_latency_ms=0, failures=[])


def test_metadata_rejects_zero_attempts():
    with pytest.raises(ValueError):
        RetryMetadata(total_attempts=0, succeeded=False, total_latency_ms=0)
