"""
Shared fixtures for the time-since-deploy test suite.
"""
import io
import json
import os
import sys
from typing import Any, Callable, Dict, Optional

import pytest

# Ensure project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from time_since_deploy.gitlab_client import GitLabClient  # noqa: E402
from time_since_deploy.logging_utils import logger  # noqa: E402


API = "https://gitlab.example.com/api/v4"


class FakeResponse:
    def __init__(self, body: Any = None, status_code: int = 200, headers: Optional[Dict[str, str]] = None):
        self.status_code = status_code
        self.headers = headers or {}
        self._body = body
        self.text = json.dumps(body) if body is not None else ""
        self.content = self.text.encode("utf-8")

    def json(self):
        if self._body is None:
            raise ValueError("no body")
        return self._body


class FakeSession:
    """Stands in for requests.Session; ``handler(path, params)`` returns a FakeResponse or raises."""

    def __init__(self, handler: Callable[[str, dict], FakeResponse]):
        self.handler = handler
        self.headers: Dict[str, str] = {}
        self.calls = []
        self.closed = False

    def get(self, url, params=None, timeout=None):
        assert url.startswith(API), url
        path = url[len(API):]
        self.calls.append((path, dict(params or {})))
        return self.handler(path, dict(params or {}))

    def close(self):
        self.closed = True


@pytest.fixture
def make_client():
    """Factory: make_client(handler) -> (GitLabClient, FakeSession)."""
    def _make(handler):
        session = FakeSession(handler)
        client = GitLabClient("test-token", "https://gitlab.example.com", timeout=5, session=session)
        return client, session
    return _make


@pytest.fixture
def log_stream(monkeypatch):
    """Capture structured log output (JSON lines, non-TTY)."""
    buf = io.StringIO()
    monkeypatch.setattr(logger, "_stream", buf)
    monkeypatch.setattr(logger, "level", "DEBUG")
    return buf


def log_events(buf: io.StringIO):
    return [json.loads(line) for line in buf.getvalue().splitlines() if line.strip()]


def env_payload(env_id: int, name: str, *, short_id: Optional[str] = None,
                finished_at: Optional[str] = None, deployed: bool = True) -> dict:
    body: Dict[str, Any] = {"id": env_id, "name": name, "state": "available"}
    if deployed:
        body["last_deployment"] = {
            "id": env_id * 10,
            "deployable": {
                "id": env_id * 100,
                "status": "success",
                "finished_at": finished_at,
                "commit": {"id": (short_id or "") + "0" * 32, "short_id": short_id},
            },
        }
    return body
