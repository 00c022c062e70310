"""Tests for the BTK site client."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from btk_lookup.config.settings import LookupConfig
from btk_lookup.connectors.btk.client import BTKSiteClient, freshness_token, is_captcha_rejected
from btk_lookup.connectors.btk.session import Session
from btk_lookup.errors import CaptchaFetchError, SessionError, SubmissionError
from btk_lookup.http.transport import HttpResponse
from tests.fixtures.mock_responses import BLOCKED_PAGE, CAPTCHA_PNG, CAPTCHA_REJECTED_PAGE

BASE = "https://internet.btk.gov.tr/sitesorgu"


@pytest.fixture
def config():
    return LookupConfig(gemini_api_key="test_api_key")


@pytest.fixture
def transport():
    """Mock transport whose request() is an AsyncMock."""
    transport = MagicMock()
    transport.request = AsyncMock()
    return transport


@pytest.fixture
def client(transport, config):
    return BTKSiteClient(transport, config, clock=lambda: 1700000000.5)


class TestFreshnessToken:
    """Tests for the anti-cache token."""

    def test_format(self):
        assert freshness_token(1700000000.5) == "0.50000000 1700000000"

    def test_whole_second(self):
        assert freshness_token(1700000000.0) == "0.00000000 1700000000"


class TestOpenSession:
    """Tests for the session handshake."""

    @pytest.mark.asyncio
    async def test_collects_cookies(self, client, transport):
        transport.request.return_value = HttpResponse(
            status=200,
            set_cookies=["PHPSESSID=abc123; path=/", "lang=tr"],
            body=b"<html></html>",
        )

        session = await client.open_session()

        assert session == Session({"PHPSESSID": "abc123", "lang": "tr"})
        method, url = transport.request.call_args.args
        assert (method, url) == ("GET", f"{BASE}/")

    @pytest.mark.asyncio
    async def test_non_200_raises(self, client, transport):
        transport.request.return_value = HttpResponse(status=503)

        with pytest.raises(SessionError) as exc_info:
            await client.open_session()

        assert exc_info.value.status == 503


class TestAcquireCaptcha:
    """Tests for CAPTCHA download."""

    @pytest.mark.asyncio
    async def test_without_session_performs_handshake(self, client, transport):
        """An absent session triggers the handshake before the image request."""
        transport.request.side_effect = [
            HttpResponse(status=200, set_cookies=["PHPSESSID=abc123; path=/"]),
            HttpResponse(status=200, set_cookies=["captcha_seen=1"], body=CAPTCHA_PNG),
        ]

        challenge = await client.acquire_captcha()

        assert transport.request.await_count == 2
        assert challenge.image == CAPTCHA_PNG
        assert dict(challenge.session) == {"PHPSESSID": "abc123", "captcha_seen": "1"}

    @pytest.mark.asyncio
    async def test_reuses_session(self, client, transport):
        """A given session is used as-is, without a handshake."""
        transport.request.return_value = HttpResponse(status=200, body=CAPTCHA_PNG)
        session = Session({"PHPSESSID": "abc123"})

        challenge = await client.acquire_captcha(session)

        transport.request.assert_awaited_once()
        assert challenge.session == session

    @pytest.mark.asyncio
    async def test_request_shape(self, client, transport):
        """The image URL carries the freshness token and the session cookie."""
        transport.request.return_value = HttpResponse(status=200, body=CAPTCHA_PNG)

        await client.acquire_captcha(Session({"PHPSESSID": "abc123"}))

        call = transport.request.call_args
        assert call.args == (
            "GET",
            f"{BASE}/secureimage/captcha.php?_CAPTCHA=&t=0.50000000%201700000000",
        )
        headers = call.kwargs["headers"]
        assert headers["Cookie"] == "PHPSESSID=abc123"
        assert headers["Referer"] == f"{BASE}/"
        assert headers["Accept"].startswith("image/")

    @pytest.mark.asyncio
    async def test_non_200_raises(self, client, transport):
        transport.request.return_value = HttpResponse(status=404)

        with pytest.raises(CaptchaFetchError):
            await client.acquire_captcha(Session({"PHPSESSID": "abc123"}))

    @pytest.mark.asyncio
    async def test_empty_image_raises(self, client, transport):
        transport.request.return_value = HttpResponse(status=200, body=b"")

        with pytest.raises(CaptchaFetchError):
            await client.acquire_captcha(Session({"PHPSESSID": "abc123"}))

    @pytest.mark.asyncio
    async def test_handshake_failure_propagates(self, client, transport):
        transport.request.return_value = HttpResponse(status=500)

        with pytest.raises(SessionError):
            await client.acquire_captcha()


class TestSubmit:
    """Tests for the query submission."""

    @pytest.mark.asyncio
    async def test_form_and_headers(self, client, transport):
        transport.request.return_value = HttpResponse(status=200, body=BLOCKED_PAGE.encode("utf-8"))

        body = await client.submit("example-bet.com", "zQsmR", Session({"PHPSESSID": "abc123"}))

        assert body == BLOCKED_PAGE
        call = transport.request.call_args
        assert call.args == ("POST", f"{BASE}/")
        assert call.kwargs["data"] == {
            "deger": "example-bet.com",
            "ipw": "",
            "kat": "",
            "tr": "",
            "eg": "",
            "ayrintili": "0",
            "submit": "Sorgula",
            "security_code": "zQsmR",
        }
        headers = call.kwargs["headers"]
        assert headers["Cookie"] == "PHPSESSID=abc123"
        assert headers["Origin"] == "https://internet.btk.gov.tr"
        assert headers["Referer"] == f"{BASE}/"

    @pytest.mark.asyncio
    async def test_non_200_raises(self, client, transport):
        transport.request.return_value = HttpResponse(status=502)

        with pytest.raises(SubmissionError) as exc_info:
            await client.submit("example.com", "zQsmR", Session())

        assert exc_info.value.status == 502


class TestCaptchaRejection:
    """Tests for rejection detection."""

    def test_rejected_page(self):
        assert is_captcha_rejected(CAPTCHA_REJECTED_PAGE)

    def test_english_message(self):
        assert is_captcha_rejected("The security code you entered is wrong")

    def test_result_page_not_rejected(self):
        assert not is_captcha_rejected(BLOCKED_PAGE)
