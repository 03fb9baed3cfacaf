"""Outbound demo calls and call status polling"""
from fastapi import APIRouter, Depends, HTTPException, Request
from loguru import logger
from slowapi import Limiter

from medischedule.booking import CallNotCompletedError, FollowUpBooker
from medischedule.dependencies import (
    get_booker,
    get_call_gateway,
    get_call_registry,
    get_client_ip,
    get_clinic_store,
)
from medischedule.gateway import CallGateway
from medischedule.registry import CallRegistry
from medischedule.schemas import BookFollowUpRequest, VapiCallRequest
from medischedule.store import ClinicStore
from medischedule.utils import mask_id

router = APIRouter()
limiter = Limiter(key_func=get_client_ip)


@router.post("/vapi-call")
@limiter.limit("10/minute")
async def start_vapi_call(
    call_request: VapiCallRequest,
    request: Request,
    gateway: CallGateway = Depends(get_call_gateway),
):
    if not call_request.phone_number:
        raise HTTPException(status_code=400, detail="phoneNumber required")

    result = await gateway.initiate_call(
        call_request.phone_number,
        consent_type=call_request.consent_type,
        customer_id=call_request.customer_id,
    )
    return result.model_dump(by_alias=True)


@router.get("/calls")
async def list_calls(registry: CallRegistry = Depends(get_call_registry)):
    calls = [record.to_response() for record in registry.list_records()]
    return {"calls": calls, "count": len(calls)}


@router.get("/call/{call_id}")
async def get_call_status(call_id: str, gateway: CallGateway = Depends(get_call_gateway)):
    record = gateway.get_status(call_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Call not found")
    return record.to_response()


@router.post("/call/{call_id}/book")
async def book_follow_up(
    call_id: str,
    body: BookFollowUpRequest,
    gateway: CallGateway = Depends(get_call_gateway),
    store: ClinicStore = Depends(get_clinic_store),
    booker: FollowUpBooker = Depends(get_booker),
):
    """Summarize a completed call and book the follow-up appointment"""
    record = gateway.get_status(call_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Call not found")

    patient = await store.get_patient(body.patient_id)
    if patient is None:
        raise HTTPException(status_code=404, detail=f"Patient {body.patient_id} not found")

    try:
        return await booker.book_from_call(record, patient)
    except CallNotCompletedError as e:
        logger.info(f"Booking refused for call {mask_id(call_id)}: status={e.status}")
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/reset")
async def reset_demo_data(store: ClinicStore = Depends(get_clinic_store)):
    await store.reset()
    patients = await store.list_patients()
    appointments = await store.list_appointments()
    return {
        "status": "success",
        "patients": len(patients),
        "appointments": len(appointments),
    }
