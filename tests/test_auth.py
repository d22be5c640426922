"""
Tests for the authentication strategies.

SigV4 expectations are the published AWS example credentials and
vectors, extended to the route53 service.

Run:
    python -m pytest tests/test_auth.py -v
"""

import threading
import time
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import requests

from polydns.api.auth import (
    AwsSigV4Auth,
    BearerTokenAuth,
    OAuth2ClientCredentialsAuth,
    StaticHeaderAuth,
    build_canonical_request,
    build_string_to_sign,
    calculate_signature,
    canonical_query,
    derive_signing_key,
    hash_payload
)
from polydns.api.exceptions import APIError, AuthError, NetworkError


SECRET = "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY"
EMPTY_HASH = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def _prepare(auth, method="GET", url="https://api.example.test/v1/zones", **kwargs):
    return requests.Request(method, url, auth=auth, **kwargs).prepare()


# ===========================================================================
# 1. Static header and bearer
# ===========================================================================

class TestStaticAuth:

    def test_static_header(self):
        prepared = _prepare(StaticHeaderAuth("AccessKey", "bunny-key"))
        assert prepared.headers["AccessKey"] == "bunny-key"
        assert "Authorization" not in prepared.headers

    def test_bearer(self):
        prepared = _prepare(BearerTokenAuth("abc123"))
        assert prepared.headers["Authorization"] == "Bearer abc123"


# ===========================================================================
# 2. SigV4 primitives
# ===========================================================================

class TestSigV4Primitives:

    def test_signing_key_matches_aws_example(self):
        key = derive_signing_key(SECRET, "20120215", "us-east-1", "iam")
        assert key.hex() == "f4780e2d9f65fa895f9c67b32ce1baf0b0d8a43505a000a1a9e090d414db404d"

    def test_signature_matches_aws_example(self):
        string_to_sign = (
            "AWS4-HMAC-SHA256\n"
            "20150830T123600Z\n"
            "20150830/us-east-1/iam/aws4_request\n"
            "f536975d06c0309214f805bb90ccff089219ecd68b2577efef23edd43b7e1a59"
        )
        signature = calculate_signature(SECRET, "20150830", "us-east-1", string_to_sign, service="iam")
        assert signature == "5d672d79c15b13162d9279b0855cfba6789a8edb4c82c400e06b5924a6f2b5d7"

    def test_route53_signing_key(self):
        key = derive_signing_key(SECRET, "20150830", "us-east-1")
        assert key.hex() == "21210f8f2475c398f12e1c52c3eb8e79780bcdf98b678165f9ad1118cc8770e4"

    def test_route53_signature(self):
        string_to_sign = (
            "AWS4-HMAC-SHA256\n"
            "20150830T123600Z\n"
            "20150830/us-east-1/route53/aws4_request\n"
            "f536975d06c0309214f805bb90ccff089219ecd68b2577efef23edd43b7e1a59"
        )
        signature = calculate_signature(SECRET, "20150830", "us-east-1", string_to_sign)
        assert signature == "ae671e57090296d6aadf3ffa24dcbdbbf08667ea3b20cccbb1931e492443ab4b"

    def test_payload_hash(self):
        assert hash_payload(None) == EMPTY_HASH
        assert hash_payload(b"") == EMPTY_HASH
        assert hash_payload('{"Changes": []}') == (
            "0722c5120de71a5dbb020ccfef62bb76c442efdfba92338cdbf46180bfffcdcc"
        )

    def test_canonical_query_sorts_and_encodes(self):
        assert canonical_query("b=2&a=1") == "a=1&b=2"
        assert canonical_query("name=a%20b") == "name=a%20b"
        assert canonical_query("") == ""

    def test_canonical_request_layout(self):
        canonical = build_canonical_request(
            "get", "/2013-04-01/hostedzone", "", "route53.amazonaws.com",
            EMPTY_HASH, "20150830T123600Z"
        )
        assert canonical.split("\n") == [
            "GET",
            "/2013-04-01/hostedzone",
            "",
            "host:route53.amazonaws.com",
            f"x-amz-content-sha256:{EMPTY_HASH}",
            "x-amz-date:20150830T123600Z",
            "",
            "host;x-amz-content-sha256;x-amz-date",
            EMPTY_HASH,
        ]
        string_to_sign = build_string_to_sign(
            "20150830T123600Z", "20150830/us-east-1/route53/aws4_request", canonical
        )
        assert string_to_sign.endswith(
            "f01ad77ed41c65f25cb0a0c7f69a60e09664d5c01924452e9d15153d5e714198"
        )


# ===========================================================================
# 3. SigV4 request signing
# ===========================================================================

class TestAwsSigV4Auth:

    def _auth(self):
        fixed = datetime(2015, 8, 30, 12, 36, 0, tzinfo=timezone.utc)
        return AwsSigV4Auth("AKIDEXAMPLE", SECRET, clock=lambda: fixed)

    def test_signs_get_request(self):
        prepared = _prepare(self._auth(), url="https://route53.amazonaws.com/2013-04-01/hostedzone")
        assert prepared.headers["x-amz-date"] == "20150830T123600Z"
        assert prepared.headers["x-amz-content-sha256"] == EMPTY_HASH
        assert prepared.headers["Authorization"] == (
            "AWS4-HMAC-SHA256 "
            "Credential=AKIDEXAMPLE/20150830/us-east-1/route53/aws4_request, "
            "SignedHeaders=host;x-amz-content-sha256;x-amz-date, "
            "Signature=ba6ef712705dd8cd9045488df80ec6dc83003d44a13f95f387d511525a7c6102"
        )

    def test_body_hash_follows_payload(self):
        prepared = _prepare(
            self._auth(),
            method="POST",
            url="https://route53.amazonaws.com/2013-04-01/hostedzone/Z1/rrset",
            data=b'{"Changes": []}'
        )
        assert prepared.headers["x-amz-content-sha256"] == (
            "0722c5120de71a5dbb020ccfef62bb76c442efdfba92338cdbf46180bfffcdcc"
        )

    def test_signature_changes_with_time(self):
        times = iter([
            datetime(2015, 8, 30, 12, 36, 0, tzinfo=timezone.utc),
            datetime(2015, 8, 30, 12, 37, 0, tzinfo=timezone.utc),
        ])
        auth = AwsSigV4Auth("AKIDEXAMPLE", SECRET, clock=lambda: next(times))
        url = "https://route53.amazonaws.com/2013-04-01/hostedzone"
        first = _prepare(auth, url=url).headers["Authorization"]
        second = _prepare(auth, url=url).headers["Authorization"]
        assert first != second


# ===========================================================================
# 4. OAuth2 client credentials
# ===========================================================================

class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


class TestOAuth2ClientCredentials:

    def _auth(self, make_response, clock, token="tok-1", expires_in=3600):
        session = MagicMock()
        session.post.return_value = make_response(200, {"access_token": token, "expires_in": expires_in})
        auth = OAuth2ClientCredentialsAuth("tenant-1", "client-1", "secret-1", session=session, clock=clock)
        return auth, session

    def test_token_url(self, make_response):
        auth, _ = self._auth(make_response, FakeClock(0))
        assert auth.token_url == "https://login.microsoftonline.com/tenant-1/oauth2/token"

    def test_fetch_posts_client_credentials(self, make_response):
        auth, session = self._auth(make_response, FakeClock(1000))
        assert auth.get_token() == "tok-1"
        assert auth.expires_at == 4600
        url = session.post.call_args[0][0]
        data = session.post.call_args[1]["data"]
        assert url == auth.token_url
        assert data["grant_type"] == "client_credentials"
        assert data["client_id"] == "client-1"
        assert data["client_secret"] == "secret-1"
        assert data["resource"] == "https://management.azure.com/"

    def test_reused_before_refresh_margin(self, make_response):
        clock = FakeClock(1000)
        auth, session = self._auth(make_response, clock)
        auth.get_token()
        clock.now = auth.expires_at - 121
        assert auth.get_token() == "tok-1"
        assert session.post.call_count == 1

    def test_refreshed_inside_refresh_margin(self, make_response):
        clock = FakeClock(1000)
        auth, session = self._auth(make_response, clock)
        auth.get_token()
        clock.now = auth.expires_at - 119
        session.post.return_value = make_response(200, {"access_token": "tok-2", "expires_in": 3600})
        assert auth.get_token() == "tok-2"
        assert session.post.call_count == 2

    def test_refreshed_exactly_at_margin(self, make_response):
        clock = FakeClock(1000)
        auth, session = self._auth(make_response, clock)
        auth.get_token()
        clock.now = auth.expires_at - 120
        auth.get_token()
        assert session.post.call_count == 2

    def test_applies_bearer_header(self, make_response):
        auth, _ = self._auth(make_response, FakeClock(0))
        prepared = _prepare(auth)
        assert prepared.headers["Authorization"] == "Bearer tok-1"

    def test_single_flight_refresh(self, make_response):
        session = MagicMock()

        def slow_post(*args, **kwargs):
            time.sleep(0.05)
            return make_response(200, {"access_token": "shared", "expires_in": 3600})

        session.post.side_effect = slow_post
        auth = OAuth2ClientCredentialsAuth("t", "c", "s", session=session)
        results = []
        threads = [threading.Thread(target=lambda: results.append(auth.get_token())) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert results == ["shared"] * 8
        assert session.post.call_count == 1

    @pytest.mark.parametrize("status", [400, 401, 403])
    def test_rejected_credentials(self, make_response, status):
        auth, session = self._auth(make_response, FakeClock(0))
        session.post.return_value = make_response(status, {"error": "invalid_client"})
        with pytest.raises(AuthError):
            auth.get_token()

    def test_server_failure(self, make_response):
        auth, session = self._auth(make_response, FakeClock(0))
        session.post.return_value = make_response(503, text="unavailable")
        with pytest.raises(APIError):
            auth.get_token()

    def test_missing_token(self, make_response):
        auth, session = self._auth(make_response, FakeClock(0))
        session.post.return_value = make_response(200, {"token_type": "Bearer"})
        with pytest.raises(AuthError, match="access_token"):
            auth.get_token()

    def test_transport_failure(self, make_response):
        auth, session = self._auth(make_response, FakeClock(0))
        session.post.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(NetworkError):
            auth.get_token()
