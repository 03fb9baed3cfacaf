from fastapi import APIRouter, Depends

from medischedule.dependencies import get_clinic_store
from medischedule.schedule import dashboard_summary
from medischedule.store import ClinicStore

router = APIRouter()


@router.get("")
async def get_dashboard(store: ClinicStore = Depends(get_clinic_store)):
    appointments = await store.list_appointments()
    patients = await store.list_patients()
    return dashboard_summary(appointments, patients)
