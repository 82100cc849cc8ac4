"""Exponential backoff with bounded jitter."""

from __future__ import annotations

import random
from typing import Callable

from ecomclient.client.models import RetryPolicy

# Jitter is at most this fraction of the unjittered delay
JITTER_RATIO = 0.25


def compute_delay(
    attempt: int,
    policy: RetryPolicy,
    rand: Callable[[], float] = random.random,
) -> float:
    """Compute the delay before retry number ``attempt``.

    ``delay = min(base * 2**attempt + jitter, max)`` where jitter is drawn
    uniformly from ``[0, 0.25 * base * 2**attempt]``.

    Args:
        attempt: Zero-indexed retry number (the first retry uses 0).
        policy: Retry policy supplying base and max delay.
        rand: Source of uniform floats in [0, 1). Injectable for tests.

    Returns:
        Delay in milliseconds.

    Raises:
        ValueError: If attempt is negative.
    """
    if attempt < 0:
        raise ValueError("attempt must be >= 0")

    exponential = policy.base_delay_ms * (2 ** attempt)
    # Past the cap the jitter cannot matter
    if exponential >= policy.max_delay_ms:
        return float(policy.max_delay_ms)

    jitter = exponential * JITTER_RATIO * rand()
    return float(min(exponential + jitter, policy.max_delay_ms))
