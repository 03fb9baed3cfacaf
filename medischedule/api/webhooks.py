"""Vapi server event endpoints"""
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Body, Depends

from medischedule.dependencies import get_call_gateway, get_call_registry
from medischedule.gateway import CallGateway
from medischedule.registry import CallRegistry

router = APIRouter()


@router.post("/vapi")
async def vapi_webhook(
    payload: Any = Body(default=None),
    gateway: CallGateway = Depends(get_call_gateway),
):
    """Acknowledge every structurally valid event so Vapi never retries delivery"""
    return gateway.handle_webhook(payload)


@router.get("/test")
async def webhook_test(registry: CallRegistry = Depends(get_call_registry)):
    return {
        "status": "Webhook endpoint is working",
        "activeCalls": registry.list_ids(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
