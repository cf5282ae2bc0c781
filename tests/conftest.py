"""Pytest fixtures and fakes for the stock monitor tests."""

import io
import json

import pytest
import requests

from stock_monitor.checker import EXPECTED_RESPONSE
from stock_monitor.config import Credentials


class BrokenStream(io.RawIOBase):
    """Raw body that fails part way through, like a dropped connection."""

    def __init__(self, first: bytes = b'{"updated_at"'):
        self._first = first
        self._sent = False

    def read(self, size=-1):
        if not self._sent:
            self._sent = True
            return self._first
        raise requests.exceptions.ChunkedEncodingError("connection broken")


def make_response(status=200, body=b"", headers=None, raw=None):
    resp = requests.Response()
    resp.status_code = status
    resp.url = "https://shop.example.com/api/v2/products/kit"
    resp.headers.update(headers or {})
    resp.raw = raw if raw is not None else io.BytesIO(body)
    return resp


class FakeSession:
    """Stands in for requests.Session; replays queued outcomes."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []
        self.closed = False

    def _next(self, method, url, kwargs):
        self.calls.append((method, url, kwargs))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def get(self, url, **kwargs):
        return self._next("GET", url, kwargs)

    def post(self, url, **kwargs):
        return self._next("POST", url, kwargs)

    def close(self):
        self.closed = True


@pytest.fixture
def baseline_body():
    return json.dumps(EXPECTED_RESPONSE.to_dict()).encode()


@pytest.fixture
def credentials():
    return Credentials(
        account_sid="AC123",
        auth_token="secret-token",
        from_number="+15550001111",
        to_number="+15550002222",
    )
