"""Tests for the retrying HTTP helpers and the registry fetcher."""

import asyncio

import pytest
import requests

from common import http_client
from common.errors import RegistryError
from common.http_client import RegistryFetcher, get_json, robust_get


class FakeResponse:
    def __init__(self, status_code, text="", headers=None):
        self.status_code = status_code
        self.text = text
        self.headers = headers or {}


@pytest.fixture
def scripted_get(monkeypatch):
    """Replace requests.get with a scripted sequence of responses/exceptions."""
    calls = []
    script = []

    def fake_get(url, timeout=None, headers=None):
        calls.append(url)
        step = script.pop(0)
        if isinstance(step, Exception):
            raise step
        return step

    monkeypatch.setattr(http_client.requests, "get", fake_get)
    monkeypatch.setattr(http_client.time, "sleep", lambda _: None)
    return script, calls


class TestRobustGet:

    def test_success_first_try(self, scripted_get):
        script, calls = scripted_get
        script.append(FakeResponse(200, "ok", {"X": "1"}))
        assert robust_get("https://r.test/a") == (200, {"X": "1"}, "ok")
        assert len(calls) == 1

    def test_404_not_retried(self, scripted_get):
        script, calls = scripted_get
        script.append(FakeResponse(404, '{"error":"Not found"}'))
        status, _, _ = robust_get("https://r.test/a")
        assert status == 404
        assert len(calls) == 1

    def test_retries_timeout_then_succeeds(self, scripted_get):
        script, calls = scripted_get
        script.extend([requests.Timeout(), requests.ConnectionError("reset"), FakeResponse(200, "x")])
        assert robust_get("https://r.test/a", retries=3)[0] == 200
        assert len(calls) == 3

    def test_persistent_5xx_returns_last_response(self, scripted_get):
        script, calls = scripted_get
        script.extend([FakeResponse(503, "down"), FakeResponse(502, "bad")])
        assert robust_get("https://r.test/a", retries=2) == (502, {}, "bad")

    def test_total_failure_is_status_zero(self, scripted_get):
        script, _ = scripted_get
        script.extend([requests.Timeout(), requests.Timeout()])
        status, headers, text = robust_get("https://r.test/a", retries=2)
        assert status == 0
        assert headers == {}
        assert "timeout" in text


class TestGetJson:

    def test_parses_any_status(self, scripted_get):
        script, _ = scripted_get
        script.append(FakeResponse(404, '{"error": "Not found"}'))
        assert get_json("https://r.test/a")[2] == {"error": "Not found"}

    def test_bad_json_is_none(self, scripted_get):
        script, _ = scripted_get
        script.append(FakeResponse(200, "<html>"))
        assert get_json("https://r.test/a") == (200, {}, None)


class TestRegistryFetcher:

    def test_fetch_json_returns_document(self, scripted_get):
        script, calls = scripted_get
        script.append(FakeResponse(200, '{"dist-tags": {"latest": "1.0.0"}}'))
        doc = asyncio.run(RegistryFetcher(retries=1).fetch_json("https://r.test/@types%2ffoo"))
        assert doc == {"dist-tags": {"latest": "1.0.0"}}
        assert calls == ["https://r.test/@types%2ffoo"]

    def test_not_found_body_passes_through(self, scripted_get):
        script, _ = scripted_get
        script.append(FakeResponse(404, '{"error": "Not found"}'))
        assert RegistryFetcher(retries=1).fetch("https://r.test/x") == {"error": "Not found"}

    def test_empty_body_is_empty_document(self, scripted_get):
        script, _ = scripted_get
        script.append(FakeResponse(200, ""))
        assert RegistryFetcher(retries=1).fetch("https://r.test/x") == {}

    def test_unreachable_raises(self, scripted_get):
        script, _ = scripted_get
        script.append(requests.ConnectionError("refused"))
        with pytest.raises(RegistryError, match="Could not reach"):
            RegistryFetcher(retries=1).fetch("https://r.test/x")

    def test_server_error_raises(self, scripted_get):
        script, _ = scripted_get
        script.append(FakeResponse(500, "oops"))
        with pytest.raises(RegistryError, match="HTTP 500"):
            RegistryFetcher(retries=1).fetch("https://r.test/x")
