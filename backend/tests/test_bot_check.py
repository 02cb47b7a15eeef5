"""Tests for the reCAPTCHA verifier"""
import pytest
import requests

from portfolio_admin.services import bot_check
from portfolio_admin.services.bot_check import RecaptchaVerifier


class FakeResponse:
    def __init__(self, payload=None, status_code=200, raises=None):
        self._payload = payload
        self.status_code = status_code
        self._raises = raises

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self._raises:
            raise self._raises
        return self._payload


@pytest.fixture
def posted(monkeypatch):
    """Capture calls to requests.post and answer with ``posted.response``"""

    class Recorder:
        response = FakeResponse({"success": True, "score": 0.9})
        calls = []

    def fake_post(url, data=None, timeout=None):
        Recorder.calls.append({"url": url, "data": data, "timeout": timeout})
        if isinstance(Recorder.response, Exception):
            raise Recorder.response
        return Recorder.response

    Recorder.calls = []
    monkeypatch.setattr(bot_check.requests, "post", fake_post)
    return Recorder


def test_skipped_without_secret(posted):
    result = RecaptchaVerifier(secret_key=None).verify("token")
    assert result.passed is True
    assert result.skipped is True
    assert posted.calls == []


def test_passes_with_high_score(posted):
    verifier = RecaptchaVerifier(secret_key="s3cret", verify_url="https://verify.test", timeout=3)
    result = verifier.verify("token", remote_ip="9.9.9.9")

    assert result
    assert result.score == 0.9
    assert posted.calls == [{
        "url": "https://verify.test",
        "data": {"secret": "s3cret", "response": "token", "remoteip": "9.9.9.9"},
        "timeout": 3,
    }]


def test_score_at_threshold_passes(posted):
    posted.response = FakeResponse({"success": True, "score": 0.5})
    assert RecaptchaVerifier(secret_key="s").verify("t").passed is True


def test_low_score_fails(posted):
    posted.response = FakeResponse({"success": True, "score": 0.3})
    result = RecaptchaVerifier(secret_key="s").verify("t")
    assert result.passed is False
    assert result.score == 0.3


def test_unsuccessful_response_fails(posted):
    posted.response = FakeResponse({"success": False, "score": 0.9, "error-codes": ["invalid-input-response"]})
    assert RecaptchaVerifier(secret_key="s").verify("t").passed is False


def test_missing_score_fails(posted):
    posted.response = FakeResponse({"success": True})
    assert RecaptchaVerifier(secret_key="s").verify("t").passed is False


@pytest.mark.parametrize("response", [
    requests.ConnectionError("unreachable"),
    requests.Timeout("slow"),
    FakeResponse(status_code=503),
    FakeResponse(raises=ValueError("not json")),
    FakeResponse(payload=["not", "a", "dict"]),
    FakeResponse({"success": True, "score": "high"}),
])
def test_transport_and_parse_failures_fail_closed(posted, response):
    posted.response = response
    result = RecaptchaVerifier(secret_key="s").verify("t")
    assert result.passed is False
