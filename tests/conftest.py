"""Shared fixtures for reqx scenario tests."""

import json

import pytest
from click.testing import CliRunner

from reqx import core
from reqx.errors import TransportError
from reqx.executor import HttpResponse


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def global_reqx_dir(tmp_path, monkeypatch):
    """Override the global ~/.reqx directory to a temp location."""
    fake_global = tmp_path / "fake_home" / ".reqx"
    fake_global.mkdir(parents=True)
    monkeypatch.setattr(core, "GLOBAL_DIR", fake_global)
    monkeypatch.setattr(core, "GLOBAL_CONFIG", fake_global / "config.yaml")
    return fake_global


@pytest.fixture
def transport():
    return RecordingTransport()


def make_response(status=200, body=None, headers=None, elapsed_ms=42.0):
    """Factory for HttpResponse objects. dict/list bodies are JSON-encoded."""
    if isinstance(body, dict | list):
        body = json.dumps(body)
    return HttpResponse(
        status=status,
        headers=list((headers or {}).items()),
        body=body or "",
        elapsed_ms=elapsed_ms,
    )


class RecordingTransport:
    """In-memory transport that records every call.

    ``responses`` maps a URL substring to the response (or TransportError)
    to return; the first matching key wins. Unmatched URLs get ``default``.
    """

    def __init__(self, responses=None, default=None):
        self.calls = []
        self.responses = responses or {}
        self.default = default or make_response(body={})

    def send(self, method, url, headers, body):
        self.calls.append(
            {"method": method, "url": url, "headers": list(headers), "body": body},
        )
        for fragment, outcome in self.responses.items():
            if fragment in url:
                if isinstance(outcome, TransportError):
                    raise outcome
                return outcome
        return self.default
