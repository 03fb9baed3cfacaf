import asyncio
from typing import Optional

import aiohttp
from loguru import logger

from medischedule.config import VapiConfig
from medischedule.exceptions import VapiConfigurationError, VapiRequestError
from medischedule.utils import mask_phone

DEFAULT_ERROR_MESSAGE = "Vapi call failed"
CALL_SOURCE = "demo"


class VapiClient:
    """Thin wrapper over the Vapi `POST /call` endpoint. One attempt per call, no retries."""

    def __init__(self, config: VapiConfig, session: aiohttp.ClientSession):
        self.config = config
        self.session = session

    def ensure_configured(self) -> None:
        missing = self.config.missing()
        if missing:
            raise VapiConfigurationError(f"Missing Vapi configuration: {', '.join(missing)}")

    def build_payload(self, phone_number: str, consent_type: str, customer_id: Optional[str]) -> dict:
        return {
            "assistantId": self.config.assistant_id,
            "phoneNumberId": self.config.phone_number_id,
            "customer": {"number": phone_number},
            "metadata": {
                "consentType": consent_type,
                "customerId": customer_id,
                "source": CALL_SOURCE,
            },
        }

    async def create_call(self, phone_number: str, consent_type: str = "marketing",
                          customer_id: Optional[str] = None) -> dict:
        """Place an outbound call. Returns the vendor call object (contains `id`)."""
        self.ensure_configured()
        payload = self.build_payload(phone_number, consent_type, customer_id)

        logger.debug(f"Requesting Vapi call to {mask_phone(phone_number)}")

        try:
            async with asyncio.timeout(self.config.timeout_seconds):
                async with self.session.post(
                    f"{self.config.base_url}/call",
                    headers={
                        "Authorization": f"Bearer {self.config.api_key}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                ) as response:
                    data = await self._read_json(response)
                    if response.status >= 400:
                        message = data.get("message") or DEFAULT_ERROR_MESSAGE
                        raise VapiRequestError(_as_text(message), status_code=response.status)
        except asyncio.TimeoutError:
            logger.error(f"Vapi timed out after {self.config.timeout_seconds}s")
            raise VapiRequestError("Vapi request timed out")
        except aiohttp.ClientError as e:
            logger.error(f"Cannot reach Vapi at {self.config.base_url}: {e}")
            raise VapiRequestError(f"Vapi request failed: {e}")

        if not data.get("id"):
            raise VapiRequestError(_as_text(data.get("message") or DEFAULT_ERROR_MESSAGE))

        return data

    @staticmethod
    async def _read_json(response: aiohttp.ClientResponse) -> dict:
        try:
            data = await response.json(content_type=None)
        except ValueError:
            text = await response.text()
            return {"message": text} if text else {}
        return data if isinstance(data, dict) else {}


def _as_text(message) -> str:
    # Vapi validation errors come back as a list of messages
    if isinstance(message, list):
        return "; ".join(str(m) for m in message)
    return str(message)
