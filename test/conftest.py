"""Shared fakes for the Sonar API tests."""

import os
import sys

import pytest

# Add parent directory to path to import client and app
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))


class FakeResponse:
    """Just enough of requests.Response for SonarClient."""

    def __init__(self, status_code=200, payload=None, reason="OK"):
        self.status_code = status_code
        self.reason = reason
        self._payload = payload

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """
    Replays queued responses; the last one repeats once the queue is drained.
    Exceptions in the queue are raised instead of returned.
    """

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, auth=None, timeout=None):
        self.calls.append({"url": url, "params": params, "auth": auth, "timeout": timeout})
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item


def analyses(*keys):
    return FakeResponse(payload={"analyses": [{"key": k, "date": "2025-01-01T00:00:00+0000"} for k in keys]})


def gate_status(status=None):
    project_status = {"conditions": []}
    if status is not None:
        project_status["status"] = status
    return FakeResponse(payload={"projectStatus": project_status})


@pytest.fixture
def sleeps():
    """Records the intervals passed to sleep() instead of sleeping."""
    return []
