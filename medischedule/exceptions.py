"""Domain errors and global exception handlers"""
import uuid
import traceback
from datetime import datetime, timezone
from fastapi import Request, HTTPException, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger


class VapiConfigurationError(RuntimeError):
    """Vapi credentials or resource ids are missing. Not retryable."""


class VapiRequestError(RuntimeError):
    """Vapi rejected the call request or could not be reached."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class InvalidWebhookPayload(ValueError):
    """Webhook body has no `message` envelope."""


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log full error, return generic message to client"""
    request_id = str(uuid.uuid4())

    logger.error(
        f"Request failed: {request.method} {request.url.path} "
        f"request_id={request_id} error_type={type(exc).__name__} error={exc}\n"
        f"{''.join(traceback.format_exception(type(exc), exc, exc.__traceback__))}"
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "An error occurred while processing your request",
            "request_id": request_id,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request body/query validation errors"""
    request_id = str(uuid.uuid4())

    logger.warning(f"Validation error: {request.method} {request.url.path} request_id={request_id}")

    return JSONResponse(
        status_code=422,
        content={
            "error": "Validation failed",
            "details": jsonable_errors(exc),
            "request_id": request_id
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """5xx: generic error, 4xx: specific error"""
    request_id = str(uuid.uuid4())

    if exc.status_code >= 500:
        logger.error(
            f"HTTP {exc.status_code}: {request.method} {request.url.path} "
            f"request_id={request_id} detail={exc.detail}"
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": "An error occurred",
                "request_id": request_id,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        )

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail, "request_id": request_id}
    )


async def vapi_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Vendor and configuration failures reach the UI with their message unchanged"""
    logger.error(f"Vapi call error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": str(exc)})


async def invalid_webhook_handler(request: Request, exc: InvalidWebhookPayload) -> JSONResponse:
    logger.warning(f"Rejected webhook on {request.url.path}: {exc}")
    return JSONResponse(status_code=400, content={"error": "Invalid webhook payload"})


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers"""
    app.add_exception_handler(Exception, global_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(VapiConfigurationError, vapi_error_handler)
    app.add_exception_handler(VapiRequestError, vapi_error_handler)
    app.add_exception_handler(InvalidWebhookPayload, invalid_webhook_handler)
