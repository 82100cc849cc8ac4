"""Unit tests for response unwrapping."""

import json

import httpx
import pytest

from ecomclient.client.models import Page
from ecomclient.client.result import Failure, Success
from ecomclient.client.unwrap import (
    DEFAULT_ERROR_MESSAGE,
    EnvelopedResponse,
    RawResponse,
    classify_payload,
    is_envelope,
    is_json_content_type,
    unwrap,
    unwrap_response,
)

JSON = {"Content-Type": "application/json"}


def body(obj) -> bytes:
    return json.dumps(obj).encode()


class TestEnvelopeDetection:
    """Tests for the structural envelope predicate."""

    def test_envelope_requires_success_and_data(self):
        assert is_envelope({"success": True, "data": []}) is True
        assert is_envelope({"success": True}) is False
        assert is_envelope({"data": []}) is False
        assert is_envelope([{"success": True, "data": 1}]) is False
        assert is_envelope("success") is False

    def test_classify_payload(self):
        enveloped = classify_payload({"success": True, "data": {"id": 1}, "meta": {"total": 1}})
        assert isinstance(enveloped, EnvelopedResponse)
        assert enveloped.meta == {"total": 1}
        assert isinstance(classify_payload({"id": 1}), RawResponse)

    def test_non_object_meta_ignored(self):
        enveloped = classify_payload({"success": True, "data": [1], "meta": "x"})
        assert enveloped.meta is None
        assert enveloped.to_value() == [1]

    @pytest.mark.parametrize(
        "content_type,expected",
        [
            ("application/json", True),
            ("application/json; charset=utf-8", True),
            ("Application/JSON", True),
            ("application/problem+json", True),
            ("text/plain", False),
            ("text/html; charset=utf-8", False),
            (None, False),
            ("", False),
        ],
    )
    def test_is_json_content_type(self, content_type, expected):
        assert is_json_content_type(content_type) is expected


class TestSuccessfulResponses:
    """Tests for 2xx/3xx unwrapping."""

    def test_paginated_envelope_becomes_page(self, envelope_page_body):
        result = unwrap(200, JSON, body(envelope_page_body))
        assert isinstance(result, Success)
        page = result.value
        assert isinstance(page, Page)
        assert page.items == {"id": 1}
        assert page.total == 50
        assert page.total_pages == 5

    def test_envelope_without_meta_returns_data(self):
        result = unwrap(200, JSON, body({"success": True, "data": {"id": 7, "name": "Mug"}}))
        assert result == Success({"id": 7, "name": "Mug"})

    def test_envelope_with_empty_meta_is_still_a_page(self):
        result = unwrap(200, JSON, body({"success": True, "data": [1], "meta": {}}))
        assert isinstance(result.value, Page)
        assert result.value.items == [1]
        assert result.value.total is None

    def test_envelope_with_null_data(self):
        result = unwrap(200, JSON, body({"success": True, "data": None}))
        assert result == Success(None)

    def test_raw_json_passthrough(self):
        raw = {"products": [{"id": 1}], "total": 1}
        assert unwrap(200, JSON, body(raw)) == Success(raw)

    def test_raw_json_array(self):
        assert unwrap(200, JSON, body([1, 2, 3])) == Success([1, 2, 3])

    def test_text_response(self):
        result = unwrap(200, {"Content-Type": "text/plain"}, b"pong")
        assert result == Success("pong")

    def test_missing_content_type_treated_as_text(self):
        assert unwrap(200, {}, b'{"a": 1}') == Success('{"a": 1}')

    def test_text_charset_respected(self):
        result = unwrap(200, {"Content-Type": "text/plain; charset=latin-1"}, "café".encode("latin-1"))
        assert result == Success("café")

    def test_empty_json_body_is_none(self):
        assert unwrap(204, JSON, b"") == Success(None)
        assert unwrap(200, JSON, b"  ") == Success(None)

    def test_header_lookup_is_case_insensitive(self):
        assert unwrap(200, {"content-type": "application/json"}, b"[]") == Success([])

    def test_malformed_json_is_parse_error(self):
        result = unwrap(200, JSON, b"{not json")
        assert isinstance(result, Failure)
        assert result.error.code == "PARSE_ERROR"
        assert result.error.status == 200
        assert result.error.message.startswith("Malformed JSON response")


class TestErrorResponses:
    """Tests for status >= 400."""

    def test_error_envelope(self, envelope_error_body):
        result = unwrap(404, JSON, body(envelope_error_body))
        assert isinstance(result, Failure)
        assert result.error.status == 404
        assert result.error.code == "NOT_FOUND"
        assert result.error.message == "missing"

    def test_error_details_carried(self):
        payload = {"success": False, "error": {"code": "VALIDATION_ERROR", "message": "bad",
                                               "details": {"email": "required"}}}
        result = unwrap(422, JSON, body(payload))
        assert result.error.details == {"email": "required"}

    def test_top_level_code_and_message(self):
        result = unwrap(401, JSON, body({"code": "UNAUTHORIZED", "message": "token expired"}))
        assert result.error.code == "UNAUTHORIZED"
        assert result.error.message == "token expired"

    def test_string_error_field(self):
        result = unwrap(400, JSON, body({"error": "quantity must be positive"}))
        assert result.error.message == "quantity must be positive"
        assert result.error.code == "HTTP_ERROR"

    def test_non_json_error_falls_back_to_reason(self):
        result = unwrap(502, {"Content-Type": "text/html"}, b"<html>Bad Gateway</html>", reason="Bad Gateway")
        assert isinstance(result, Failure)
        assert result.error.status == 502
        assert result.error.code == "HTTP_ERROR"
        assert result.error.message == "Bad Gateway"

    @pytest.mark.parametrize("status,reason", [(301, "Moved Permanently"), (304, "Not Modified")])
    def test_unfollowed_redirect_is_failure(self, status, reason):
        result = unwrap(status, {"Location": "/products/"}, b"", reason=reason)
        assert isinstance(result, Failure)
        assert result.error.status == status
        assert result.error.code == "HTTP_ERROR"
        assert result.error.message == reason

    def test_error_without_reason_uses_default_message(self):
        result = unwrap(500, {}, b"")
        assert result.error.message == DEFAULT_ERROR_MESSAGE
        assert result.error.code == "HTTP_ERROR"

    def test_error_body_parsed_regardless_of_content_type(self):
        result = unwrap(503, {"Content-Type": "text/plain"}, body({"code": "MAINTENANCE", "message": "later"}))
        assert result.error.code == "MAINTENANCE"


def test_unwrap_response_reads_httpx_response():
    response = httpx.Response(404, json={"success": False, "error": {"code": "NOT_FOUND", "message": "gone"}})
    result = unwrap_response(response)
    assert isinstance(result, Failure)
    assert result.error.code == "NOT_FOUND"


def test_unwrap_response_uses_reason_phrase():
    response = httpx.Response(503, text="down")
    result = unwrap_response(response)
    assert result.error.message == "Service Unavailable"
