# tests/test_sheets_webhook.py
from urllib.parse import parse_qs, urlsplit

import aiohttp
import pytest

from leaddesk.core.config import settings
from leaddesk.core.exceptions import ConfigurationError
from leaddesk.services import sheets_webhook
from leaddesk.services.sheets_webhook import SHEET_FIELDS, build_webhook_request, mirror_lead

LEAD = {
    "id": "lead-1",
    "timestamp": "2024-01-01T00:00:00.000Z",
    "fullName": "Priya Raman",
    "email": "priya@example.com",
    "phone": "123",
    "experience": "2-5 years",
    "callStatus": "Not Called",
}


def test_request_without_token():
    url, headers, payload = build_webhook_request("https://script.example.com/exec", "", LEAD)

    assert url == "https://script.example.com/exec"
    assert headers == {"Content-Type": "application/json"}
    assert tuple(payload) == SHEET_FIELDS
    assert payload["fullName"] == "Priya Raman"
    assert payload["goal"] == ""
    assert "callStatus" not in payload


def test_token_is_sent_three_ways():
    url, headers, payload = build_webhook_request(
        "https://script.example.com/exec?deployment=abc&token=stale",
        "s3cret",
        LEAD,
    )

    query = parse_qs(urlsplit(url).query)
    assert query == {"deployment": ["abc"], "token": ["s3cret"]}
    assert headers["x-webhook-token"] == "s3cret"
    assert payload["token"] == "s3cret"


@pytest.mark.parametrize("url", ["ftp://script.example.com/exec", "not a url", "https://"])
def test_invalid_url(url):
    with pytest.raises(ConfigurationError) as exc_info:
        build_webhook_request(url, None, LEAD)

    assert exc_info.value.message == "Google Sheets webhook URL is invalid."


@pytest.mark.asyncio
async def test_mirror_skipped_when_unconfigured(monkeypatch):
    monkeypatch.setattr(settings, "google_sheets_webhook_url", "")

    assert await mirror_lead(LEAD) is None


@pytest.mark.asyncio
async def test_mirror_reports_invalid_url(monkeypatch):
    monkeypatch.setattr(settings, "google_sheets_webhook_url", "ftp://nope")

    result = await mirror_lead(LEAD)

    assert result.success is False
    assert result.error_message == "Google Sheets webhook URL is invalid."


class _FakeResponse:
    def __init__(self, status, body=""):
        self.status = status
        self._body = body

    async def text(self):
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class _RaisingPost:
    def __init__(self, error):
        self._error = error

    async def __aenter__(self):
        raise self._error

    async def __aexit__(self, *exc):
        return False


def _fake_session(outcome, seen=None):
    class _Session:
        def __init__(self, *args, **kwargs):
            pass

        async def __aenter__(self):
            return self

        async def __aexit__(self, *exc):
            return False

        def post(self, url, json=None, headers=None, timeout=None):
            if seen is not None:
                seen.update(url=url, json=json, headers=headers)
            if isinstance(outcome, BaseException):
                return _RaisingPost(outcome)
            return outcome

    return _Session


@pytest.mark.asyncio
async def test_mirror_success(monkeypatch):
    seen = {}
    monkeypatch.setattr(settings, "google_sheets_webhook_url", "https://script.example.com/exec")
    monkeypatch.setattr(settings, "google_sheets_webhook_token", "tok")
    monkeypatch.setattr(sheets_webhook.aiohttp, "ClientSession", _fake_session(_FakeResponse(200), seen))

    result = await mirror_lead(LEAD)

    assert result.success is True
    assert result.http_status == 200
    assert seen["url"] == "https://script.example.com/exec?token=tok"
    assert seen["json"]["id"] == "lead-1"
    assert seen["headers"]["x-webhook-token"] == "tok"


@pytest.mark.asyncio
async def test_mirror_non_2xx(monkeypatch):
    monkeypatch.setattr(settings, "google_sheets_webhook_url", "https://script.example.com/exec")
    monkeypatch.setattr(
        sheets_webhook.aiohttp,
        "ClientSession",
        _fake_session(_FakeResponse(403, "Forbidden")),
    )

    result = await mirror_lead(LEAD)

    assert result.success is False
    assert result.http_status == 403
    assert "Status 403" in result.error_message


@pytest.mark.asyncio
async def test_mirror_connection_error(monkeypatch):
    monkeypatch.setattr(settings, "google_sheets_webhook_url", "https://script.example.com/exec")
    monkeypatch.setattr(
        sheets_webhook.aiohttp,
        "ClientSession",
        _fake_session(aiohttp.ClientConnectionError("refused")),
    )

    result = await mirror_lead(LEAD)

    assert result.success is False
    assert result.http_status is None
    assert result.error_message.startswith("Failed to connect")
