"""Response unwrapping.

Turns a raw HTTP response (status, headers, body) into a ``Success`` with
the caller-facing value or a ``Failure`` with an ApiError.

The storefront backend wraps every payload in an envelope::

    {"success": true,  "data": ..., "meta": {"total": 50, "page": 1, ...}}
    {"success": false, "error": {"code": "NOT_FOUND", "message": "..."}}

Some third-party endpoints the client also talks to return plain JSON or
text, so the envelope is detected structurally rather than assumed.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

import httpx

from ecomclient.client.models import ApiError, Page
from ecomclient.client.result import Failure, Success, UnwrapResult

DEFAULT_ERROR_MESSAGE = "An error occurred"
HTTP_ERROR_CODE = "HTTP_ERROR"
PARSE_ERROR_CODE = "PARSE_ERROR"


@dataclass(frozen=True)
class EnvelopedResponse:
    """Payload that follows the ``{success, data, meta?}`` convention."""

    success: bool
    data: Any
    meta: Optional[Mapping[str, Any]] = None

    def to_value(self) -> Any:
        if self.meta is not None:
            return Page.from_envelope(self.data, self.meta)
        return self.data


@dataclass(frozen=True)
class RawResponse:
    """Payload returned unchanged (non-enveloped JSON)."""

    value: Any

    def to_value(self) -> Any:
        return self.value


Payload = Union[EnvelopedResponse, RawResponse]


def is_envelope(obj: Any) -> bool:
    """True when ``obj`` is a JSON object carrying both ``success`` and ``data``."""
    return isinstance(obj, dict) and "success" in obj and "data" in obj


def classify_payload(obj: Any) -> Payload:
    """Tag a parsed JSON value as enveloped or raw."""
    if is_envelope(obj):
        meta = obj.get("meta")
        return EnvelopedResponse(
            success=bool(obj["success"]),
            data=obj["data"],
            meta=meta if isinstance(meta, dict) else None,
        )
    return RawResponse(obj)


def is_json_content_type(content_type: Optional[str]) -> bool:
    """True for ``application/json`` and ``*/*+json`` media types."""
    if not content_type:
        return False
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def _decode_text(body: bytes, content_type: Optional[str]) -> str:
    charset = "utf-8"
    if content_type and "charset=" in content_type.lower():
        charset = content_type.lower().split("charset=", 1)[1].split(";", 1)[0].strip()
    try:
        return body.decode(charset, errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")


def _error_from_body(status: int, parsed: Any, reason: str) -> ApiError:
    default_message = reason or DEFAULT_ERROR_MESSAGE
    if not isinstance(parsed, dict):
        return ApiError(message=default_message, status=status, code=HTTP_ERROR_CODE)

    nested = parsed.get("error")
    info = nested if isinstance(nested, dict) else {}
    # A bare string "error" field is still the best message available
    fallback_message = nested if isinstance(nested, str) and nested else None

    return ApiError(
        message=info.get("message") or parsed.get("message") or fallback_message or default_message,
        status=status,
        code=info.get("code") or parsed.get("code") or HTTP_ERROR_CODE,
        details=info.get("details", parsed.get("details")),
    )


def unwrap(
    status: int,
    headers: Mapping[str, str],
    body: bytes,
    reason: str = "",
) -> UnwrapResult:
    """Map a raw HTTP response to a result.

    Never raises for a well-formed HTTP response. Only 2xx statuses succeed;
    a redirect that reaches here was not followed and fails with HTTP_ERROR.

    Args:
        status: HTTP status code.
        headers: Response headers (looked up case-insensitively).
        body: Raw response body.
        reason: HTTP reason phrase, used as a fallback error message.

    Returns:
        Success with the unwrapped value, or Failure with an ApiError.
    """
    content_type = httpx.Headers(headers).get("content-type")

    if not 200 <= status < 300:
        parsed: Any = None
        if body:
            try:
                parsed = json.loads(body)
            except ValueError:
                parsed = None
        return Failure(_error_from_body(status, parsed, reason))

    if not is_json_content_type(content_type):
        return Success(_decode_text(body, content_type))

    if not body or not body.strip():
        return Success(None)

    try:
        parsed = json.loads(body)
    except ValueError as e:
        return Failure(
            ApiError(
                message=f"Malformed JSON response: {e}",
                status=status,
                code=PARSE_ERROR_CODE,
            )
        )

    return Success(classify_payload(parsed).to_value())


def unwrap_response(response: httpx.Response) -> UnwrapResult:
    """Unwrap an ``httpx.Response`` whose body has been read."""
    return unwrap(
        response.status_code,
        response.headers,
        response.content,
        reason=response.reason_phrase,
    )
