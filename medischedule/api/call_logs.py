from fastapi import APIRouter, Depends

from medischedule.dependencies import get_clinic_store
from medischedule.store import ClinicStore

router = APIRouter()


@router.get("")
async def list_call_logs(store: ClinicStore = Depends(get_clinic_store)):
    logs = await store.list_call_logs()
    return {"call_logs": logs, "total_count": len(logs)}
