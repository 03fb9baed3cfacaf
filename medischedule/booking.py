"""
Follow-up booking after an AI call.

Mirrors what the clinic UI does once a call completes: poll the call until
Vapi reports `completed`, summarize the transcript, then write a Follow-up
appointment and a call log entry.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional, Union

from loguru import logger

from medischedule.constants import (
    CALL_STATUS_COMPLETED,
    AppointmentStatus,
    AppointmentType,
)
from medischedule.schemas import CallRecord
from medischedule.store import ClinicStore
from medischedule.utils import mask_id, to_iso

FOLLOW_UP_DAYS_AHEAD = 7
FOLLOW_UP_HOUR = 14
FOLLOW_UP_MINUTE = 30
FOLLOW_UP_DURATION_MINUTES = 30

StatusReader = Callable[[str], Union[Optional[CallRecord], Awaitable[Optional[CallRecord]]]]


class CallNotCompletedError(RuntimeError):
    def __init__(self, call_id: str, status: Optional[str]):
        super().__init__(f"Call {call_id} has not completed (status={status})")
        self.call_id = call_id
        self.status = status


async def wait_for_completion(
    read_status: StatusReader,
    call_id: str,
    interval: float = 2.0,
    timeout: Optional[float] = None,
    on_update: Optional[Callable[[CallRecord], None]] = None,
) -> Optional[CallRecord]:
    """Poll a call's status until it reports `completed`.

    Returns None if the call is unknown. Raises asyncio.TimeoutError if the
    call has not completed within `timeout` seconds.
    """
    async def _poll() -> Optional[CallRecord]:
        while True:
            record = read_status(call_id)
            if asyncio.iscoroutine(record):
                record = await record
            if record is None:
                return None
            if on_update is not None:
                on_update(record)
            if record.status == CALL_STATUS_COMPLETED:
                return record
            await asyncio.sleep(interval)

    if timeout is None:
        return await _poll()
    return await asyncio.wait_for(_poll(), timeout=timeout)


def follow_up_slot(now: datetime) -> datetime:
    slot = now + timedelta(days=FOLLOW_UP_DAYS_AHEAD)
    return slot.replace(hour=FOLLOW_UP_HOUR, minute=FOLLOW_UP_MINUTE, second=0, microsecond=0)


class FollowUpBooker:
    def __init__(self, store: ClinicStore, analyzer,
                 clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self.store = store
        self.analyzer = analyzer
        self.clock = clock

    async def book_from_call(self, record: CallRecord, patient: dict) -> dict:
        """Book a Follow-up for `patient` from a completed call. Returns the appointment and call log."""
        if record.status != CALL_STATUS_COMPLETED:
            raise CallNotCompletedError(record.id, record.status)

        full_transcript = "\n".join(record.transcript)
        analysis = await self.analyzer.analyze(full_transcript)

        appointment = await self.store.insert_appointment({
            "patientId": patient["_id"],
            "patientName": patient.get("name", ""),
            "date": to_iso(follow_up_slot(self.clock())),
            "durationMinutes": FOLLOW_UP_DURATION_MINUTES,
            "status": AppointmentStatus.SCHEDULED.value,
            "type": AppointmentType.FOLLOW_UP.value,
            "notes": analysis.summary,
            "transcription": full_transcript,
            "aiSummary": analysis.summary,
        })

        call_log = await self.store.insert_call_log({
            "callId": record.id,
            "patientId": patient["_id"],
            "phoneNumber": record.phone_number,
            "status": record.status,
            "consent": record.consent.value,
            "transcript": full_transcript,
            "summary": analysis.summary,
            "sentiment": analysis.sentiment,
            "appointmentId": appointment["_id"],
        })

        logger.info(
            f"Booked follow-up {mask_id(appointment['_id'])} for patient {mask_id(patient['_id'])} "
            f"from call {mask_id(record.id)}"
        )
        return {"appointment": appointment, "callLog": call_log}
