"""Unit tests for the backoff calculator."""

import random

import pytest

from ecomclient.client.backoff import JITTER_RATIO, compute_delay
from ecomclient.client.models import RetryPolicy


@pytest.fixture
def policy():
    return RetryPolicy(base_delay_ms=1000, max_delay_ms=30000)


def test_no_jitter_is_pure_exponential(policy):
    delays = [compute_delay(n, policy, rand=lambda: 0.0) for n in range(4)]
    assert delays == [1000.0, 2000.0, 4000.0, 8000.0]


def test_max_jitter_adds_a_quarter(policy):
    assert compute_delay(0, policy, rand=lambda: 1.0) == pytest.approx(1250.0)
    assert compute_delay(2, policy, rand=lambda: 0.5) == pytest.approx(4500.0)


def test_capped_at_max_delay(policy):
    assert compute_delay(5, policy, rand=lambda: 0.0) == 30000.0  # 32000 before cap
    assert compute_delay(4, policy, rand=lambda: 1.0) == 20000.0
    assert compute_delay(40, policy) == 30000.0


def test_jitter_clamped_when_near_cap():
    policy = RetryPolicy(base_delay_ms=1000, max_delay_ms=9000)
    # 8000 + 2000 jitter would exceed the cap
    assert compute_delay(3, policy, rand=lambda: 1.0) == 9000.0


def test_delay_within_bounds_for_random_draws(policy):
    rng = random.Random(1234)
    for attempt in range(12):
        exponential = policy.base_delay_ms * 2 ** attempt
        low = min(exponential, policy.max_delay_ms)
        high = min(exponential * (1 + JITTER_RATIO), policy.max_delay_ms)
        for _ in range(50):
            delay = compute_delay(attempt, policy, rand=rng.random)
            assert low <= delay <= high


def test_default_random_source(policy):
    delay = compute_delay(1, policy)
    assert 2000.0 <= delay <= 2500.0


def test_negative_attempt_rejected(policy):
    with pytest.raises(ValueError, match="attempt must be >= 0"):
        compute_delay(-1, policy)
