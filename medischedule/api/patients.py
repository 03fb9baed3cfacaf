from fastapi import APIRouter, Depends, HTTPException
from loguru import logger

from medischedule.dependencies import get_clinic_store
from medischedule.schemas import PatientUpdate
from medischedule.store import ClinicStore
from medischedule.utils import mask_id

router = APIRouter()


@router.get("")
async def list_patients(risk: str = None, store: ClinicStore = Depends(get_clinic_store)):
    patients = await store.list_patients()
    if risk:
        patients = [p for p in patients if p.get("riskProfile") == risk]
    logger.info(f"Returning {len(patients)} patients, risk={risk}")
    return {"patients": patients, "total_count": len(patients)}


@router.get("/{patient_id}")
async def get_patient_by_id(patient_id: str, store: ClinicStore = Depends(get_clinic_store)):
    patient = await store.get_patient(patient_id)
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")
    return {"status": "success", "patient": patient}


@router.patch("/{patient_id}")
async def update_patient(
    patient_id: str,
    patient_data: PatientUpdate,
    store: ClinicStore = Depends(get_clinic_store),
):
    updated = await store.update_patient(patient_id, patient_data.to_fields())
    if updated is None:
        raise HTTPException(status_code=404, detail=f"Patient {patient_id} not found")

    logger.info(f"Updated patient {mask_id(patient_id)}")
    return {"status": "success", "patient": updated}
