"""Tests for the shared response helpers."""

from email.utils import format_datetime
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from cfclient.core.errors import CloudflareApiError, ResponseDecodeError
from cfclient.core.http import ApiResponse
from cfclient.core.http.shared import (
    http_error_from_response,
    parse_api_errors,
    parse_envelope,
    parse_retry_after,
)


class TestParseRetryAfter:
    """Retry-After header parsing."""

    def test_delta_seconds(self):
        response = httpx.Response(429, headers={"Retry-After": "7"})
        assert parse_retry_after(response) == 7.0

    def test_missing(self):
        assert parse_retry_after(httpx.Response(429)) is None

    def test_http_date(self):
        now = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        header = format_datetime(now + timedelta(seconds=30), usegmt=True)
        response = httpx.Response(503, headers={"Retry-After": header})

        assert parse_retry_after(response, now=now.timestamp()) == pytest.approx(30.0)

    def test_past_date_is_zero(self):
        now = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        header = format_datetime(now - timedelta(minutes=5), usegmt=True)
        response = httpx.Response(503, headers={"Retry-After": header})

        assert parse_retry_after(response, now=now.timestamp()) == 0.0

    def test_garbage_is_ignored(self):
        response = httpx.Response(503, headers={"Retry-After": "soon-ish"})
        assert parse_retry_after(response) is None

    @pytest.mark.parametrize("value", ["inf", "Infinity", "-inf", "nan"])
    def test_non_finite_is_ignored(self, value):
        response = httpx.Response(429, headers={"Retry-After": value})
        assert parse_retry_after(response) is None

    def test_minus_zero_zone_is_utc(self):
        """A "-0000" zone yields a naive datetime that must not be read as local time."""
        now = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        response = httpx.Response(503, headers={"Retry-After": "Mon, 01 Jan 2024 12:00:45 -0000"})

        assert parse_retry_after(response, now=now.timestamp()) == pytest.approx(45.0)


class TestParseApiErrors:
    def test_envelope_errors(self):
        errors = parse_api_errors('{"success": false, "errors": [{"code": 81057, "message": "exists"}]}')

        assert len(errors) == 1
        assert errors[0].code == 81057
        assert errors[0].message == "exists"

    @pytest.mark.parametrize("body", ["", "<html>bad gateway</html>", "[]", '{"errors": "nope"}'])
    def test_non_envelope_bodies(self, body):
        assert parse_api_errors(body) == []


class TestHttpErrorFromResponse:
    def test_keeps_body_and_errors(self):
        body = '{"success": false, "errors": [{"code": 7003, "message": "No route"}]}'
        response = httpx.Response(404, text=body)

        error = http_error_from_response(response, operation="GET zones/x")

        assert error.status_code == 404
        assert error.body == body
        assert error.errors[0].code == 7003
        assert error.operation == "GET zones/x"
        assert "7003" in str(error)
        assert not error.transient

    def test_transient_status_with_retry_after(self):
        response = httpx.Response(429, text="slow down", headers={"Retry-After": "3"})

        error = http_error_from_response(response)

        assert error.transient
        assert error.retry_after == 3.0
        assert error.errors == []


class TestParseEnvelope:
    def test_typed_result(self, make_envelope):
        response = httpx.Response(200, json=make_envelope({"id": "abc"}))

        envelope = parse_envelope(response, dict)

        assert isinstance(envelope, ApiResponse)
        assert envelope.result == {"id": "abc"}

    def test_unsuccessful_envelope(self, make_envelope):
        body = make_envelope(success=False, errors=[{"code": 1003, "message": "Invalid"}])
        response = httpx.Response(200, json=body)

        with pytest.raises(CloudflareApiError) as exc_info:
            parse_envelope(response, dict, operation="POST zones")

        assert exc_info.value.errors[0].code == 1003
        assert exc_info.value.operation == "POST zones"

    def test_undecodable_body(self):
        response = httpx.Response(200, text="not json")

        with pytest.raises(ResponseDecodeError) as exc_info:
            parse_envelope(response, dict)

        assert exc_info.value.body == "not json"

    def test_wrong_result_shape(self, make_envelope):
        response = httpx.Response(200, json=make_envelope("a string"))

        with pytest.raises(ResponseDecodeError):
            parse_envelope(response, list[int])
