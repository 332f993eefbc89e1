"""
Shared pytest fixtures.

- recorder: replaces the shared RequestExecutor and records every descriptor
- http: MagicMock standing in for requests.Session on a real executor
"""

from unittest.mock import MagicMock

import pytest

from config import Settings
from services import api_client


class RecordingExecutor:
    """Captures descriptors instead of sending them."""

    def __init__(self, response=None, error: Exception | None = None):
        self.calls = []
        self.response = {"code": 200, "msg": "ok"} if response is None else response
        self.error = error

    def execute(self, descriptor):
        self.calls.append(descriptor)
        if self.error is not None:
            raise self.error
        return self.response

    @property
    def last(self):
        return self.calls[-1]


def make_response(status_code=200, body=None, text=None):
    response = MagicMock()
    response.status_code = status_code
    if text is None:
        text = "" if body is None else "json"
    response.text = text
    if body is None and text:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def recorder():
    rec = RecordingExecutor()
    api_client.set_executor(rec)
    yield rec
    api_client.set_executor(None)


@pytest.fixture
def http():
    session = MagicMock()
    session.request.return_value = make_response(body={"code": 200, "msg": "ok"})
    return session


@pytest.fixture
def settings():
    return Settings(api_base="http://backend.test", secret_key="test", log_level="WARNING")


@pytest.fixture
def response_factory():
    return make_response
