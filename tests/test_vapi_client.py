"""
Tests for VapiClient - outbound call requests against a mocked aiohttp session.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from medischedule.config import VapiConfig
from medischedule.exceptions import VapiConfigurationError, VapiRequestError
from medischedule.vapi import VapiClient


def mock_session(status=201, body=None, json_error=None, text="", enter_error=None):
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=body, side_effect=json_error)
    response.text = AsyncMock(return_value=text)

    session = MagicMock()
    ctx = session.post.return_value
    ctx.__aenter__ = AsyncMock(return_value=response, side_effect=enter_error)
    ctx.__aexit__ = AsyncMock(return_value=False)
    return session


class TestConfiguration:

    def test_missing_lists_unset_vars(self):
        config = VapiConfig(api_key="k")
        assert config.missing() == ["VAPI_ASSISTANT_ID", "VAPI_PHONE_NUMBER_ID"]

    @pytest.mark.asyncio
    async def test_unconfigured_never_calls_vendor(self):
        session = mock_session()
        client = VapiClient(VapiConfig(), session)

        with pytest.raises(VapiConfigurationError) as exc_info:
            await client.create_call("+15550100")

        assert "VAPI_API_KEY" in str(exc_info.value)
        session.post.assert_not_called()


class TestCreateCall:

    @pytest.mark.asyncio
    async def test_success_returns_vendor_call(self, vapi_config):
        session = mock_session(body={"id": "call-123", "status": "queued"})
        client = VapiClient(vapi_config, session)

        call = await client.create_call("+15550100", consent_type="marketing", customer_id="p1")

        assert call["id"] == "call-123"
        args, kwargs = session.post.call_args
        assert args[0] == "https://vapi.test/call"
        assert kwargs["headers"]["Authorization"] == "Bearer test-key"
        assert kwargs["json"] == {
            "assistantId": "assistant-1",
            "phoneNumberId": "phone-1",
            "customer": {"number": "+15550100"},
            "metadata": {"consentType": "marketing", "customerId": "p1", "source": "demo"},
        }

    @pytest.mark.asyncio
    async def test_vendor_message_passed_through(self, vapi_config):
        session = mock_session(status=400, body={"message": "Invalid number"})
        client = VapiClient(vapi_config, session)

        with pytest.raises(VapiRequestError) as exc_info:
            await client.create_call("123")

        assert exc_info.value.message == "Invalid number"
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_vendor_message_list_joined(self, vapi_config):
        session = mock_session(status=400, body={"message": ["customer.number must be E.164", "bad id"]})
        client = VapiClient(vapi_config, session)

        with pytest.raises(VapiRequestError) as exc_info:
            await client.create_call("123")

        assert str(exc_info.value) == "customer.number must be E.164; bad id"

    @pytest.mark.asyncio
    async def test_generic_message_without_vendor_text(self, vapi_config):
        session = mock_session(status=500, body={})
        client = VapiClient(vapi_config, session)

        with pytest.raises(VapiRequestError) as exc_info:
            await client.create_call("+15550100")

        assert str(exc_info.value) == "Vapi call failed"

    @pytest.mark.asyncio
    async def test_non_json_error_body(self, vapi_config):
        session = mock_session(status=502, json_error=ValueError("not json"), text="Bad Gateway")
        client = VapiClient(vapi_config, session)

        with pytest.raises(VapiRequestError) as exc_info:
            await client.create_call("+15550100")

        assert str(exc_info.value) == "Bad Gateway"

    @pytest.mark.asyncio
    async def test_missing_call_id(self, vapi_config):
        session = mock_session(status=201, body={"status": "queued"})
        client = VapiClient(vapi_config, session)

        with pytest.raises(VapiRequestError):
            await client.create_call("+15550100")

    @pytest.mark.asyncio
    async def test_timeout(self, vapi_config):
        session = mock_session(enter_error=asyncio.TimeoutError())
        client = VapiClient(vapi_config, session)

        with pytest.raises(VapiRequestError) as exc_info:
            await client.create_call("+15550100")

        assert "timed out" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_connection_error(self, vapi_config):
        session = mock_session(enter_error=aiohttp.ClientConnectionError("refused"))
        client = VapiClient(vapi_config, session)

        with pytest.raises(VapiRequestError) as exc_info:
            await client.create_call("+15550100")

        assert "refused" in str(exc_info.value)
