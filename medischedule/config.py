import os
from dataclasses import dataclass
from typing import List, Optional, Tuple
from loguru import logger

ENV = os.getenv("ENV", "local")

VAPI_ENV_VARS = [
    "VAPI_API_KEY",
    "VAPI_ASSISTANT_ID",
    "VAPI_PHONE_NUMBER_ID",
]

REQUIRED_BACKEND_ENV_VARS: List[str] = []

# Mongo-backed store needs a connection string outside local development
if os.getenv("STORE_BACKEND", "memory") == "mongo":
    REQUIRED_BACKEND_ENV_VARS.append("MONGO_URI")


@dataclass
class VapiConfig:
    """Credentials and resource ids for the Vapi outbound call API."""
    api_key: Optional[str] = None
    assistant_id: Optional[str] = None
    phone_number_id: Optional[str] = None
    base_url: str = "https://api.vapi.ai"
    timeout_seconds: float = 15.0

    @classmethod
    def from_env(cls) -> "VapiConfig":
        return cls(
            api_key=os.getenv("VAPI_API_KEY"),
            assistant_id=os.getenv("VAPI_ASSISTANT_ID"),
            phone_number_id=os.getenv("VAPI_PHONE_NUMBER_ID"),
            base_url=os.getenv("VAPI_BASE_URL", "https://api.vapi.ai").rstrip("/"),
            timeout_seconds=float(os.getenv("VAPI_TIMEOUT_SECONDS", "15")),
        )

    def missing(self) -> List[str]:
        values = {
            "VAPI_API_KEY": self.api_key,
            "VAPI_ASSISTANT_ID": self.assistant_id,
            "VAPI_PHONE_NUMBER_ID": self.phone_number_id,
        }
        return [name for name, value in values.items() if not value]


@dataclass
class Settings:
    env: str = "local"
    allowed_origins: str = "*"
    store_backend: str = "memory"
    mongo_db_name: str = "medischedule"
    public_base_url: Optional[str] = None
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    poll_interval_seconds: float = 2.0
    call_retention_minutes: Optional[float] = None

    @classmethod
    def from_env(cls) -> "Settings":
        retention = os.getenv("CALL_RETENTION_MINUTES")
        return cls(
            env=os.getenv("ENV", "local"),
            allowed_origins=os.getenv("ALLOWED_ORIGINS", "*"),
            store_backend=os.getenv("STORE_BACKEND", "memory"),
            mongo_db_name=os.getenv("MONGO_DB_NAME", "medischedule"),
            public_base_url=os.getenv("PUBLIC_BASE_URL"),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
            poll_interval_seconds=float(os.getenv("CALL_POLL_INTERVAL_SECONDS", "2.0")),
            call_retention_minutes=float(retention) if retention else None,
        )

    @property
    def origins(self) -> List[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


def validate_env_vars(required_vars: List[str]) -> Tuple[bool, List[str]]:
    missing = [var for var in required_vars if not os.getenv(var)]
    return len(missing) == 0, missing


async def validate_backend_startup() -> None:
    from medischedule.database import check_connection

    logger.info("Validating backend environment...")

    all_present, missing = validate_env_vars(REQUIRED_BACKEND_ENV_VARS)
    if not all_present:
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")
    logger.info("✓ Required environment variables present")

    # Vapi credentials only gate the outbound call endpoint
    _, missing_vapi = validate_env_vars(VAPI_ENV_VARS)
    if missing_vapi:
        logger.warning(f"Outbound calls disabled until configured: {', '.join(missing_vapi)}")

    if not os.getenv("PUBLIC_BASE_URL"):
        logger.warning("PUBLIC_BASE_URL not set - Vapi webhooks only reach a local server through a tunnel")

    if os.getenv("STORE_BACKEND", "memory") == "mongo":
        is_healthy, error = await check_connection()
        if not is_healthy:
            raise RuntimeError(f"MongoDB health check failed: {error}")
        logger.info("✓ MongoDB connection successful")

    logger.info("Backend validation complete - ready to start")
