"""
Tests for the shared request executor.

Run:
    python -m pytest tests/test_http.py -v
"""

from unittest.mock import patch

import pytest
import requests

from polydns.api.auth import BearerTokenAuth
from polydns.api.exceptions import (
    APIError,
    AuthError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ServerError
)
from polydns.api.http import RequestExecutor, classify_error, extract_error_message


BASE_URL = "https://api.example.test/v2"


def _executor(transport, **kwargs):
    return RequestExecutor(BASE_URL, auth=BearerTokenAuth("tkn"), session=transport.session, **kwargs)


# ===========================================================================
# 1. Successful exchanges
# ===========================================================================

class TestExecute:

    def test_get_returns_parsed_json(self, transport):
        transport.reply(200, {"domains": []})
        result = _executor(transport).execute("GET", "/domains", params={"page": 1, "type": None})

        assert result == {"domains": []}
        sent = transport.request()
        assert sent.url == f"{BASE_URL}/domains?page=1"
        assert sent.headers["Accept"] == "application/json"
        assert sent.headers["Authorization"] == "Bearer tkn"

    def test_path_without_leading_slash(self, transport):
        transport.reply(200, {})
        _executor(transport).execute("GET", "domains")
        assert transport.path() == "/v2/domains"

    def test_post_sends_json_body(self, transport):
        transport.reply(201, {"domain": {"domain": "example.com"}})
        _executor(transport).execute("post", "/domains", body={"domain": "example.com"})

        assert transport.method() == "POST"
        assert transport.body() == {"domain": "example.com"}
        assert transport.request().headers["Content-Type"] == "application/json"

    def test_no_content_returns_none(self, transport):
        transport.reply(204)
        assert _executor(transport).execute("DELETE", "/domains/example.com") is None

    def test_empty_body_returns_none(self, transport):
        transport.reply(200, text="")
        assert _executor(transport).execute("PUT", "/x") is None

    def test_timeout_is_passed_to_session(self, transport):
        transport.reply(200, {})
        _executor(transport, timeout=7.5).execute("GET", "/x")
        assert transport.session.send.call_args[1]["timeout"] == 7.5

    def test_unparseable_body_raises_api_error(self, transport):
        transport.reply(200, text="<html>oops</html>")
        with pytest.raises(APIError, match="Unparseable"):
            _executor(transport).execute("GET", "/x")


# ===========================================================================
# 2. Error classification
# ===========================================================================

class TestErrors:

    @pytest.mark.parametrize("status,error_class", [
        (400, APIError),
        (401, AuthError),
        (403, AuthError),
        (404, NotFoundError),
        (409, APIError),
        (429, RateLimitError),
        (500, ServerError),
        (503, ServerError),
    ])
    def test_status_mapping(self, transport, status, error_class):
        transport.reply(status, {"message": "nope"})
        with pytest.raises(error_class) as exc_info:
            _executor(transport).execute("GET", "/domains")

        assert type(exc_info.value) is error_class
        assert exc_info.value.status_code == status
        assert "GET /domains: nope" in str(exc_info.value)
        assert exc_info.value.response_body == '{"message": "nope"}'

    def test_classify_error_directly(self):
        assert isinstance(classify_error(429, "slow down"), APIError)
        assert isinstance(classify_error(418, "teapot"), APIError)

    @pytest.mark.parametrize("text,expected", [
        ('{"error": {"message": "bad zone"}}', "bad zone"),
        ('{"error": "invalid"}', "invalid"),
        ('{"message": "Not found"}', "Not found"),
        ('{"errors": [{"code": 1003, "message": "Invalid zone"}]}', "Invalid zone"),
        ("plain failure", "plain failure"),
    ])
    def test_extract_error_message(self, text, expected):
        assert extract_error_message(text) == expected

    def test_falls_back_to_reason(self, transport):
        transport.reply(500, text="")
        with pytest.raises(ServerError, match="Error"):
            _executor(transport).execute("GET", "/x")

    @pytest.mark.parametrize("exc", [
        requests.exceptions.Timeout("slow"),
        requests.exceptions.ConnectionError("refused"),
        requests.exceptions.TooManyRedirects("loop"),
    ])
    def test_transport_failures(self, transport, exc):
        transport.fail(exc)
        with pytest.raises(NetworkError):
            _executor(transport).execute("GET", "/x")


# ===========================================================================
# 3. Retry
# ===========================================================================

class TestRetry:

    def test_single_attempt_by_default(self, transport):
        transport.fail(requests.exceptions.ConnectionError("refused"))
        with pytest.raises(NetworkError):
            _executor(transport).execute("GET", "/x")
        assert transport.session.send.call_count == 1

    @patch("time.sleep")
    def test_network_errors_retried(self, mock_sleep, transport):
        transport.fail(requests.exceptions.ConnectionError("refused")).reply(200, {"ok": True})
        result = _executor(transport, retry_attempts=3).execute("GET", "/x")
        assert result == {"ok": True}
        assert transport.session.send.call_count == 2

    @patch("time.sleep")
    def test_http_errors_not_retried(self, mock_sleep, transport):
        transport.reply(500, {"message": "boom"})
        with pytest.raises(ServerError):
            _executor(transport, retry_attempts=3).execute("GET", "/x")
        assert transport.session.send.call_count == 1

    @patch("time.sleep")
    def test_gives_up_after_attempts(self, mock_sleep, transport):
        for _ in range(3):
            transport.fail(requests.exceptions.Timeout("slow"))
        with pytest.raises(NetworkError):
            _executor(transport, retry_attempts=3).execute("GET", "/x")
        assert transport.session.send.call_count == 3


# ===========================================================================
# 4. Rate-limit observation
# ===========================================================================

class TestRateLimit:

    def test_headers_recorded(self, transport):
        transport.reply(200, {}, headers={"X-RateLimit-Remaining": "42", "X-RateLimit-Reset": "1700000000"})
        executor = _executor(transport)
        executor.execute("GET", "/x")
        assert executor.rate_limit.remaining == 42
        assert executor.rate_limit.reset_at.year == 2023

    def test_lowercase_headers(self, transport):
        transport.reply(200, {}, headers={"x-ratelimit-remaining": "3"})
        executor = _executor(transport)
        executor.execute("GET", "/x")
        assert executor.rate_limit.remaining == 3
        assert executor.rate_limit.reset_at is None

    def test_recorded_on_errors_too(self, transport):
        transport.reply(429, {"message": "slow down"}, headers={"X-RateLimit-Remaining": "0"})
        executor = _executor(transport)
        with pytest.raises(RateLimitError):
            executor.execute("GET", "/x")
        assert executor.rate_limit.remaining == 0

    def test_malformed_headers_ignored(self, transport):
        transport.reply(200, {}, headers={"X-RateLimit-Remaining": "lots"})
        executor = _executor(transport)
        executor.execute("GET", "/x")
        assert executor.rate_limit.remaining is None

    def test_absent_headers_keep_previous(self, transport):
        transport.reply(200, {}, headers={"X-RateLimit-Remaining": "10"}).reply(200, {})
        executor = _executor(transport)
        executor.execute("GET", "/x")
        executor.execute("GET", "/x")
        assert executor.rate_limit.remaining == 10
