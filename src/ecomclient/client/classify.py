"""Retryability classification for failed attempts."""

from __future__ import annotations

from ecomclient.client.models import ApiError, RetryPolicy


def is_retryable(error: ApiError, policy: RetryPolicy) -> bool:
    """Decide whether a failed attempt should be retried.

    Cancellations never reach this function; the executor stops before
    classifying them.

    Args:
        error: The ApiError from the attempt.
        policy: Retry policy in effect for the call.

    Returns:
        True if another attempt is worth making.
    """
    if error.is_transport_error:
        return policy.retry_on_transport_error
    return error.status in policy.retryable_status_codes
