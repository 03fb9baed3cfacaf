"""
In-memory call registry.

Folds the outbound call request and Vapi webhook events into one evolving
record per vendor call id. Webhooks may arrive before the outbound request
returns, so events for an unknown id create a placeholder record first.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from loguru import logger

from medischedule.constants import (
    AFFIRMATIVE_TOKENS,
    ASSISTANT_ROLE,
    CALL_STATUS_COMPLETED,
    CALL_STATUS_INITIATED,
    CALL_STATUS_UNKNOWN,
    FINAL_TRANSCRIPT,
    NEGATIVE_TOKENS,
    CallEventType,
    ConsentStatus,
)
from medischedule.schemas import CallRecord, VapiWebhookMessage
from medischedule.utils import mask_id, mask_phone


def infer_consent(text: str) -> Optional[ConsentStatus]:
    """Classify an utterance by keyword containment.

    Plain substring matching: "nonetheless" counts as "no". Returns None when
    neither an affirmative nor a negative token appears.
    """
    lowered = text.lower()
    if any(token in lowered for token in AFFIRMATIVE_TOKENS):
        return ConsentStatus.APPROVED
    if any(token in lowered for token in NEGATIVE_TOKENS):
        return ConsentStatus.DENIED
    return None


def format_transcript_line(role: Optional[str], text: str) -> str:
    speaker = "AI" if role == ASSISTANT_ROLE else "Customer"
    return f"{speaker}: {text}"


class CallRegistry:
    def __init__(self, clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self._calls: Dict[str, CallRecord] = {}
        self._clock = clock

    def __len__(self) -> int:
        return len(self._calls)

    def __contains__(self, call_id: str) -> bool:
        return call_id in self._calls

    def create(self, call_id: str, phone_number: str) -> CallRecord:
        """Register an initiated call. An existing record for the id is replaced."""
        if call_id in self._calls:
            logger.warning(f"Call {mask_id(call_id)} already registered, overwriting")

        record = CallRecord(
            id=call_id,
            phone_number=phone_number,
            status=CALL_STATUS_INITIATED,
            created_at=self._clock(),
        )
        self._calls[call_id] = record
        logger.info(f"Registered call {mask_id(call_id)} to {mask_phone(phone_number)}")
        return record.model_copy(deep=True)

    def get(self, call_id: str) -> Optional[CallRecord]:
        record = self._calls.get(call_id)
        return record.model_copy(deep=True) if record else None

    def apply_event(self, call_id: str, event: VapiWebhookMessage) -> CallRecord:
        record = self._calls.get(call_id)
        if record is None:
            record = CallRecord(
                id=call_id,
                phone_number=event.customer_number or "unknown",
                status=CALL_STATUS_UNKNOWN,
                created_at=self._clock(),
            )
            self._calls[call_id] = record
            logger.info(f"Webhook for unknown call {mask_id(call_id)}, created placeholder")

        event_type = event.type
        if event_type == CallEventType.STATUS_UPDATE.value:
            record.status = event.status
            logger.info(f"Call {mask_id(call_id)} status -> {event.status}")

        elif event_type == CallEventType.TRANSCRIPT.value:
            if event.transcript_type == FINAL_TRANSCRIPT:
                text = event.transcript or ""
                record.transcript.append(format_transcript_line(event.role, text))
                consent = infer_consent(text)
                if consent is not None:
                    record.consent = consent
                    logger.info(f"Call {mask_id(call_id)} consent -> {consent.value}")

        elif event_type == CallEventType.CALL_END.value:
            record.status = CALL_STATUS_COMPLETED
            record.completed_at = self._clock()
            logger.info(f"Call ended: {mask_id(call_id)}")

        else:
            logger.debug(f"Unhandled message type: {event_type}")

        return record.model_copy(deep=True)

    def list_ids(self) -> List[str]:
        return list(self._calls.keys())

    def list_records(self) -> List[CallRecord]:
        return [record.model_copy(deep=True) for record in self._calls.values()]

    def evict_completed(self, older_than: timedelta) -> int:
        """Drop completed calls that ended more than `older_than` ago."""
        cutoff = self._clock() - older_than
        expired = [
            call_id for call_id, record in self._calls.items()
            if record.status == CALL_STATUS_COMPLETED
            and record.completed_at is not None
            and record.completed_at < cutoff
        ]
        for call_id in expired:
            del self._calls[call_id]
        if expired:
            logger.info(f"Evicted {len(expired)} completed calls")
        return len(expired)
