"""Unit tests for the retryability classifier."""

import pytest

from ecomclient.client.classify import is_retryable
from ecomclient.client.models import ApiError, RetryPolicy


def error(status: int) -> ApiError:
    return ApiError(message="x", status=status, code="TEST")


@pytest.mark.parametrize("status", [408, 429, 500, 502, 503, 504])
def test_default_retryable_statuses(status):
    assert is_retryable(error(status), RetryPolicy()) is True


@pytest.mark.parametrize("status", [400, 401, 403, 404, 409, 422, 501])
def test_non_retryable_statuses(status):
    assert is_retryable(error(status), RetryPolicy()) is False


def test_transport_error_follows_policy():
    assert is_retryable(error(0), RetryPolicy(retry_on_transport_error=True)) is True
    assert is_retryable(error(0), RetryPolicy(retry_on_transport_error=False)) is False


def test_custom_status_set():
    policy = RetryPolicy(retryable_status_codes={409})
    assert is_retryable(error(409), policy) is True
    assert is_retryable(error(503), policy) is False


def test_parse_error_on_success_status_not_retried():
    parse_error = ApiError(message="bad json", status=200, code="PARSE_ERROR")
    assert is_retryable(parse_error, RetryPolicy()) is False
