import asyncio
from contextlib import asynccontextmanager
from datetime import timedelta
import aiohttp
from fastapi import FastAPI
from loguru import logger

from medischedule.analyzer import build_analyzer
from medischedule.booking import FollowUpBooker
from medischedule.database import close_mongo_client, get_database
from medischedule.gateway import CallGateway
from medischedule.knowledge import HelpBot, build_knowledge_base
from medischedule.storage import KeyValueTable, MemoryTable, MongoTable
from medischedule.store import ClinicStore
from medischedule.vapi import VapiClient

EVICTION_SWEEP_SECONDS = 60


def build_table(store_backend: str, db_name: str) -> KeyValueTable:
    if store_backend == "mongo":
        logger.info(f"Using MongoDB store (db={db_name})")
        return MongoTable(get_database(db_name))
    logger.info("Using in-memory store")
    return MemoryTable()


async def evict_completed_calls(app: FastAPI, retention: timedelta):
    while True:
        await asyncio.sleep(EVICTION_SWEEP_SECONDS)
        app.state.call_registry.evict_completed(retention)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting...")
    settings = app.state.settings

    app.state.http_session = aiohttp.ClientSession()
    logger.info("HTTP session created")

    if app.state.kv_table is None:
        app.state.kv_table = build_table(settings.store_backend, settings.mongo_db_name)
    app.state.clinic_store = ClinicStore(app.state.kv_table)
    if await app.state.clinic_store.bootstrap():
        logger.info("Seeded demo data")

    app.state.call_gateway = CallGateway(
        app.state.call_registry,
        VapiClient(app.state.vapi_config, app.state.http_session),
    )

    if app.state.analyzer is None:
        app.state.analyzer = build_analyzer(settings.openai_api_key, settings.openai_model)
    app.state.booker = FollowUpBooker(app.state.clinic_store, app.state.analyzer)

    if app.state.knowledge_base is None:
        app.state.knowledge_base = build_knowledge_base(settings.openai_api_key, settings.openai_model)
    app.state.help_bot = HelpBot()

    eviction_task = None
    if settings.call_retention_minutes:
        retention = timedelta(minutes=settings.call_retention_minutes)
        eviction_task = asyncio.create_task(evict_completed_calls(app, retention))
        logger.info(f"Evicting completed calls after {settings.call_retention_minutes} minutes")

    if settings.public_base_url:
        logger.info(f"Vapi webhook URL: {settings.public_base_url.rstrip('/')}/api/webhooks/vapi")

    logger.info("Application ready")

    yield

    logger.info("Shutdown signal received...")
    if eviction_task is not None:
        eviction_task.cancel()
    await app.state.http_session.close()
    logger.info("HTTP session closed")
    if settings.store_backend == "mongo":
        await close_mongo_client()
    logger.info("Graceful shutdown complete")
