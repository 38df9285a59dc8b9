"""
Tests for the Twilio WhatsApp client
"""

import asyncio
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from villacare.services import whatsapp_service


@pytest.fixture
def twilio(monkeypatch):
    monkeypatch.setattr(whatsapp_service.config, "TWILIO_ACCOUNT_SID", "AC123")
    monkeypatch.setattr(whatsapp_service.config, "TWILIO_AUTH_TOKEN", "token")
    monkeypatch.setattr(whatsapp_service.config, "TWILIO_WHATSAPP_NUMBER", "whatsapp:+14155238886")


def reply(status_code, **kwargs):
    with patch.object(httpx.AsyncClient, "post", new=AsyncMock(return_value=httpx.Response(status_code, **kwargs))):
        return asyncio.run(whatsapp_service.send_whatsapp_message("+34612345678", "Hola"))


class TestSendWhatsappMessage:
    def test_not_configured(self):
        assert asyncio.run(whatsapp_service.send_whatsapp_message("+34612345678", "Hola")) == (
            False,
            "WhatsApp not configured",
        )

    def test_sent(self, twilio):
        assert reply(201, json={"sid": "SM1"}) == (True, "SM1")

    def test_twilio_error_message(self, twilio):
        ok, error = reply(400, json={"code": 63016, "message": "Outside the allowed window"})

        assert ok is False
        assert error == "Outside the allowed window"

    def test_error_page_that_is_not_json(self, twilio):
        ok, error = reply(502, text="<html>Bad Gateway</html>")

        assert ok is False
        assert error

    def test_network_failure(self, twilio):
        failing = AsyncMock(side_effect=httpx.ConnectError("connection refused"))
        with patch.object(httpx.AsyncClient, "post", new=failing):
            result = asyncio.run(whatsapp_service.send_whatsapp_message("+34612345678", "Hola"))

        assert result == (False, "connection refused")
