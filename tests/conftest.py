"""Shared fixtures for MediSchedule tests."""

import random
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from medischedule.analyzer import StubTranscriptAnalyzer
from medischedule.config import Settings, VapiConfig
from medischedule.main import create_app
from medischedule.registry import CallRegistry
from medischedule.schemas import VapiWebhookMessage
from medischedule.storage import MemoryTable
from medischedule.store import ClinicStore

FIXED_NOW = datetime(2024, 6, 12, 9, 0, tzinfo=timezone.utc)  # a Wednesday


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def webhook_message(msg_type: str, call_id: str = None, **fields) -> VapiWebhookMessage:
    message = {"type": msg_type, **fields}
    if call_id is not None:
        message["call"] = {"id": call_id}
    return VapiWebhookMessage.model_validate(message)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    return CallRegistry(clock=clock)


@pytest.fixture
def clinic_store():
    return ClinicStore(MemoryTable(), rng=random.Random(42), patient_count=10, appointment_count=25)


@pytest.fixture
def vapi_config():
    return VapiConfig(
        api_key="test-key",
        assistant_id="assistant-1",
        phone_number_id="phone-1",
        base_url="https://vapi.test",
    )


@pytest.fixture
def app(vapi_config):
    return create_app(
        settings=Settings(),
        vapi_config=vapi_config,
        kv_table=MemoryTable(),
        call_registry=CallRegistry(),
        analyzer=StubTranscriptAnalyzer(),
    )


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def vapi_create_call(app, client):
    """Replace the outbound Vapi request with an AsyncMock returning call-123."""
    mock = AsyncMock(return_value={"id": "call-123", "status": "queued"})
    app.state.call_gateway.client.create_call = mock
    return mock
