from fastapi import APIRouter, Depends

from medischedule.config import Settings
from medischedule.database import check_connection
from medischedule.dependencies import get_call_registry, get_settings
from medischedule.registry import CallRegistry

router = APIRouter()


@router.get("/")
async def root():
    return {
        "service": "MediSchedule Backend API",
        "version": "1.0",
        "status": "running",
        "endpoints": {
            "health": "/health",
            "calls": "/api/demo/*",
            "webhooks": "/api/webhooks/vapi",
            "patients": "/api/patients/*",
            "appointments": "/api/appointments/*",
            "dashboard": "/api/dashboard",
            "assistant": "/api/assistant/*"
        },
        "documentation": "/docs"
    }


@router.get("/health")
async def health(
    settings: Settings = Depends(get_settings),
    registry: CallRegistry = Depends(get_call_registry),
):
    if settings.store_backend == "mongo":
        is_connected, db_status = await check_connection()
    else:
        is_connected, db_status = True, "in-memory"

    return {
        "status": "healthy" if is_connected else "degraded",
        "service": "medischedule-backend",
        "database": db_status,
        "tracked_calls": len(registry)
    }
