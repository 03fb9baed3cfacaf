from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from medischedule.api import appointments, assistant, call_logs, dashboard, demo, health, patients, webhooks
from medischedule.config import Settings, VapiConfig
from medischedule.exceptions import register_exception_handlers
from medischedule.lifespan import lifespan
from medischedule.registry import CallRegistry
from medischedule.storage import KeyValueTable


def create_app(
    settings: Optional[Settings] = None,
    vapi_config: Optional[VapiConfig] = None,
    kv_table: Optional[KeyValueTable] = None,
    call_registry: Optional[CallRegistry] = None,
    analyzer=None,
    knowledge_base=None,
) -> FastAPI:
    """Build the API. Collaborators left as None are built from the environment at startup."""
    settings = settings or Settings.from_env()

    app = FastAPI(
        title="MediSchedule Backend API",
        version="1.0.0",
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.vapi_config = vapi_config or VapiConfig.from_env()
    app.state.kv_table = kv_table
    # One registry per service instance, shared by the call initiator and the webhook handler
    app.state.call_registry = call_registry or CallRegistry()
    app.state.analyzer = analyzer
    app.state.knowledge_base = knowledge_base

    app.state.limiter = demo.limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    allowed_origins = settings.origins
    logger.info(f"CORS allowed origins: {allowed_origins}")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials="*" not in allowed_origins,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type"],
        max_age=600
    )

    register_exception_handlers(app)

    app.include_router(health.router, tags=["Health"])
    app.include_router(demo.router, prefix="/api/demo", tags=["Demo Calls"])
    app.include_router(webhooks.router, prefix="/api/webhooks", tags=["Webhooks"])
    app.include_router(patients.router, prefix="/api/patients", tags=["Patients"])
    app.include_router(appointments.router, prefix="/api/appointments", tags=["Appointments"])
    app.include_router(call_logs.router, prefix="/api/call-logs", tags=["Call Logs"])
    app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])
    app.include_router(assistant.router, prefix="/api/assistant", tags=["Assistant"])

    return app
