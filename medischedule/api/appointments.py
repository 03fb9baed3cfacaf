from fastapi import APIRouter, Depends, HTTPException
from loguru import logger

from medischedule.dependencies import get_clinic_store
from medischedule.schedule import ALL_STATUSES, filter_appointments
from medischedule.schemas import AppointmentCreate, AppointmentUpdate
from medischedule.store import ClinicStore
from medischedule.utils import mask_id

router = APIRouter()


@router.get("")
async def list_appointments(
    status: str = ALL_STATUSES,
    search: str = None,
    store: ClinicStore = Depends(get_clinic_store),
):
    """Schedule view: filtered by status and search text, earliest first"""
    appointments = filter_appointments(await store.list_appointments(), status=status, search=search)
    return {"appointments": appointments, "total_count": len(appointments)}


@router.get("/{appointment_id}")
async def get_appointment(appointment_id: str, store: ClinicStore = Depends(get_clinic_store)):
    appointment = await store.get_appointment(appointment_id)
    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return {"status": "success", "appointment": appointment}


@router.post("", status_code=201)
async def add_appointment(appointment: AppointmentCreate, store: ClinicStore = Depends(get_clinic_store)):
    created = await store.insert_appointment(appointment.to_record())
    logger.info(f"Added appointment {mask_id(created['_id'])} for patient {mask_id(created['patientId'])}")
    return {"status": "success", "appointment": created}


@router.patch("/{appointment_id}")
async def update_appointment(
    appointment_id: str,
    appointment_data: AppointmentUpdate,
    store: ClinicStore = Depends(get_clinic_store),
):
    updated = await store.update_appointment(appointment_id, appointment_data.to_fields())
    if updated is None:
        raise HTTPException(status_code=404, detail=f"Appointment {appointment_id} not found")

    logger.info(f"Updated appointment {mask_id(appointment_id)} status={updated.get('status')}")
    return {"status": "success", "appointment": updated}
