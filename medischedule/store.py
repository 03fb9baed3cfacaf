import asyncio
import random
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from loguru import logger

from medischedule.constants import APPOINTMENTS_KEY, CALLS_KEY, PATIENTS_KEY
from medischedule.demo_data import (
    DEFAULT_APPOINTMENT_COUNT,
    DEFAULT_PATIENT_COUNT,
    generate_appointments,
    generate_patients,
)
from medischedule.storage import KeyValueTable
from medischedule.utils import generate_id, mask_id


class ClinicStore:
    """Collection-style CRUD over patients, appointments and call logs.

    Every collection lives in a single key/value entry, so writes are
    read-modify-write of the whole list and are serialized by one lock.
    """

    def __init__(
        self,
        table: KeyValueTable,
        rng: Optional[random.Random] = None,
        patient_count: int = DEFAULT_PATIENT_COUNT,
        appointment_count: int = DEFAULT_APPOINTMENT_COUNT,
    ):
        self.table = table
        self.rng = rng or random.Random()
        self.patient_count = patient_count
        self.appointment_count = appointment_count
        self._lock = asyncio.Lock()

    # Bootstrap

    async def bootstrap(self) -> bool:
        """Seed demo data on first use. Returns True if data was generated."""
        if await self.table.get(PATIENTS_KEY) is not None:
            return False
        await self.reset()
        return True

    async def reset(self) -> None:
        logger.info("Generating fresh demo patient data...")
        patients = generate_patients(self.patient_count, rng=self.rng)
        appointments = generate_appointments(patients, self.appointment_count, rng=self.rng)
        async with self._lock:
            await self.table.set(PATIENTS_KEY, patients)
            await self.table.set(APPOINTMENTS_KEY, appointments)
            await self.table.set(CALLS_KEY, [])
        logger.info(f"Generated {len(patients)} patients and {len(appointments)} appointments")

    # Patients

    async def list_patients(self) -> List[dict]:
        return await self._load(PATIENTS_KEY)

    async def get_patient(self, patient_id: str) -> Optional[dict]:
        patients = await self.list_patients()
        return next((p for p in patients if p.get("_id") == patient_id), None)

    async def update_patient(self, patient_id: str, updates: Dict[str, Any]) -> Optional[dict]:
        return await self._update(PATIENTS_KEY, patient_id, updates)

    # Appointments

    async def list_appointments(self) -> List[dict]:
        return await self._load(APPOINTMENTS_KEY)

    async def get_appointment(self, appointment_id: str) -> Optional[dict]:
        appointments = await self.list_appointments()
        return next((a for a in appointments if a.get("_id") == appointment_id), None)

    async def insert_appointment(self, fields: Dict[str, Any]) -> dict:
        return await self._insert(APPOINTMENTS_KEY, fields)

    async def update_appointment(self, appointment_id: str, updates: Dict[str, Any]) -> Optional[dict]:
        return await self._update(APPOINTMENTS_KEY, appointment_id, updates)

    # Call logs

    async def list_call_logs(self) -> List[dict]:
        return await self._load(CALLS_KEY)

    async def insert_call_log(self, fields: Dict[str, Any]) -> dict:
        log = dict(fields)
        log.setdefault("createdAt", datetime.now(timezone.utc).isoformat())
        return await self._insert(CALLS_KEY, log)

    # Internals

    async def _load(self, key: str) -> List[dict]:
        return await self.table.get(key) or []

    async def _insert(self, key: str, fields: Dict[str, Any]) -> dict:
        async with self._lock:
            items = await self._load(key)
            existing = {item.get("_id") for item in items}
            new_id = generate_id(self.rng)
            while new_id in existing:
                new_id = generate_id(self.rng)

            record = {**fields, "_id": new_id}
            items.append(record)
            await self.table.set(key, items)

        logger.debug(f"Inserted {mask_id(new_id)} into {key}")
        return record

    async def _update(self, key: str, record_id: str, updates: Dict[str, Any]) -> Optional[dict]:
        async with self._lock:
            items = await self._load(key)
            index = next((i for i, item in enumerate(items) if item.get("_id") == record_id), None)
            if index is None:
                return None

            # Identity is immutable
            changes = {k: v for k, v in updates.items() if k != "_id"}
            merged = {**items[index], **changes}
            items[index] = merged
            await self.table.set(key, items)

        logger.debug(f"Updated {mask_id(record_id)} in {key}: fields={sorted(changes)}")
        return merged
