"""
Shared test fixtures.

Provider clients are exercised against a fake requests session: every
prepared request is recorded and answered from a queue of canned
responses, so no real credentials or network access are needed.
"""

import json
from urllib.parse import parse_qsl, urlsplit
from unittest.mock import MagicMock

import pytest
import requests
from requests.structures import CaseInsensitiveDict


ZONE = "example.com"


def build_response(status_code=200, body=None, headers=None, text=None):
    """Build a real requests.Response carrying a JSON (or raw text) body."""
    response = requests.Response()
    response.status_code = status_code
    response.reason = "OK" if status_code < 400 else "Error"
    if text is not None:
        response._content = text.encode("utf-8")
    elif body is not None:
        response._content = json.dumps(body).encode("utf-8")
    else:
        response._content = b""
    response.headers = CaseInsensitiveDict(headers or {})
    response.encoding = "utf-8"
    return response


class FakeTransport:
    """Records prepared requests and replays queued replies in order."""
    
    def __init__(self):
        self.session = MagicMock(spec=requests.Session)
        self.session.send.side_effect = self._send
        self.replies = []
        self.sent = []
    
    def reply(self, status_code=200, body=None, headers=None, text=None):
        self.replies.append(build_response(status_code, body, headers, text))
        return self
    
    def fail(self, exc):
        self.replies.append(exc)
        return self
    
    def _send(self, prepared, **kwargs):
        self.sent.append(prepared)
        if not self.replies:
            raise AssertionError(f"Unexpected request: {prepared.method} {prepared.url}")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply
    
    def request(self, index=-1):
        return self.sent[index]
    
    def method(self, index=-1):
        return self.sent[index].method
    
    def path(self, index=-1):
        return urlsplit(self.sent[index].url).path
    
    def query(self, index=-1):
        return dict(parse_qsl(urlsplit(self.sent[index].url).query))
    
    def body(self, index=-1):
        raw = self.sent[index].body
        if not raw:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return json.loads(raw)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def make_response():
    return build_response
