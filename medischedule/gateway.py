from typing import Any, Optional

from loguru import logger

from medischedule.constants import CALL_STATUS_INITIATED
from medischedule.exceptions import InvalidWebhookPayload
from medischedule.registry import CallRegistry
from medischedule.schemas import CallRecord, VapiCallResponse, VapiWebhookMessage
from medischedule.utils import mask_id, mask_phone
from medischedule.vapi import VapiClient


class CallGateway:
    """Boundary between the clinic UI, the call registry and Vapi."""

    def __init__(self, registry: CallRegistry, client: VapiClient):
        self.registry = registry
        self.client = client

    async def initiate_call(self, phone_number: str, consent_type: str = "marketing",
                            customer_id: Optional[str] = None) -> VapiCallResponse:
        logger.info(f"Initiating call - phone={mask_phone(phone_number)}, customer={mask_id(customer_id)}")

        call = await self.client.create_call(phone_number, consent_type, customer_id)
        call_id = call["id"]
        self.registry.create(call_id, phone_number)

        return VapiCallResponse(call_id=call_id, status=CALL_STATUS_INITIATED)

    def get_status(self, call_id: str) -> Optional[CallRecord]:
        return self.registry.get(call_id)

    def handle_webhook(self, payload: Any) -> dict:
        """Fold a Vapi server event into the registry.

        Only a missing `message` envelope is rejected. A message without a
        usable call id is acknowledged and dropped so Vapi does not retry;
        any message that names a call is folded, however loosely typed its
        other fields are.
        """
        message = payload.get("message") if isinstance(payload, dict) else None
        if message is None:
            raise InvalidWebhookPayload("No message in webhook payload")

        if not isinstance(message, dict):
            logger.warning(f"Ignoring non-object webhook message: {type(message).__name__}")
            return {"received": True}

        call = message.get("call")
        call_id = call.get("id") if isinstance(call, dict) else None
        if not isinstance(call_id, str) or not call_id:
            logger.info("No call ID in webhook message")
            return {"received": True}

        event = VapiWebhookMessage.model_validate(message)
        logger.debug(f"Processing message type: {event.type} for call: {mask_id(call_id)}")
        self.registry.apply_event(call_id, event)
        return {"received": True}
