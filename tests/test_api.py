"""
HTTP tests for the MediSchedule API using FastAPI's TestClient.

The outbound call endpoint is rate limited per client IP across the whole
test session, so only a handful of tests post to it.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from medischedule.analyzer import SIMULATED_SUMMARY, StubTranscriptAnalyzer
from medischedule.config import Settings, VapiConfig
from medischedule.exceptions import VapiRequestError
from medischedule.knowledge import DEFAULT_HELP_REPLY, UNAVAILABLE_ANSWER, MedicalKnowledgeBase
from medischedule.main import create_app
from medischedule.registry import CallRegistry
from medischedule.storage import MemoryTable


def send_event(client, message):
    return client.post("/api/webhooks/vapi", json={"message": message})


class TestHealth:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health_in_memory(self, client):
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["database"] == "in-memory"
        assert data["tracked_calls"] == 0


class TestStartCall:

    def test_phone_number_required(self, client, vapi_create_call):
        response = client.post("/api/demo/vapi-call", json={"consentType": "marketing"})

        assert response.status_code == 400
        assert response.json()["error"] == "phoneNumber required"
        vapi_create_call.assert_not_called()

    def test_vendor_error_message_surfaces(self, client, vapi_create_call):
        vapi_create_call.side_effect = VapiRequestError("Invalid number", status_code=400)

        response = client.post("/api/demo/vapi-call", json={"phoneNumber": "123"})

        assert response.status_code == 500
        assert response.json() == {"error": "Invalid number"}
        assert client.get("/api/demo/calls").json()["count"] == 0

    def test_unconfigured_vapi(self):
        app = create_app(
            settings=Settings(),
            vapi_config=VapiConfig(),
            kv_table=MemoryTable(),
            call_registry=CallRegistry(),
            analyzer=StubTranscriptAnalyzer(),
        )
        with TestClient(app) as client:
            response = client.post("/api/demo/vapi-call", json={"phoneNumber": "+15550100"})

        assert response.status_code == 500
        assert "VAPI_API_KEY" in response.json()["error"]


class TestCallStatus:

    def test_unknown_call_404(self, client):
        response = client.get("/api/demo/call/does-not-exist")
        assert response.status_code == 404
        assert response.json()["error"] == "Call not found"

    def test_webhook_creates_placeholder(self, client):
        send_event(client, {"type": "call-end", "call": {"id": "xyz"}})

        data = client.get("/api/demo/call/xyz").json()
        assert data["id"] == "xyz"
        assert data["phoneNumber"] == "unknown"
        assert data["status"] == "completed"
        assert data["transcript"] == []
        assert data["consent"] == "unknown"
        assert "createdAt" in data

    def test_list_calls(self, client):
        send_event(client, {"type": "status-update", "status": "ringing", "call": {"id": "a"}})
        send_event(client, {"type": "status-update", "status": "ringing", "call": {"id": "b"}})

        data = client.get("/api/demo/calls").json()
        assert data["count"] == 2
        assert {c["id"] for c in data["calls"]} == {"a", "b"}


class TestWebhook:

    @pytest.mark.parametrize("body", [{}, {"message": None}, {"other": 1}])
    def test_missing_message_400(self, client, body):
        response = client.post("/api/webhooks/vapi", json=body)
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid webhook payload"}

    def test_empty_body_400(self, client):
        response = client.post("/api/webhooks/vapi")
        assert response.status_code == 400

    def test_no_call_id_acknowledged(self, client):
        response = send_event(client, {"type": "status-update", "status": "ringing"})

        assert response.status_code == 200
        assert response.json() == {"received": True}
        assert client.get("/api/webhooks/test").json()["activeCalls"] == []

    def test_non_object_message_acknowledged(self, client):
        response = client.post("/api/webhooks/vapi", json={"message": "ping"})
        assert response.status_code == 200
        assert response.json() == {"received": True}

    def test_loosely_typed_events_still_fold(self, client):
        send_event(client, {"type": "status-update", "status": 3, "call": {"id": "p1"}})
        send_event(client, {"type": "call-end", "call": {"id": "p2", "customer": {"number": 15550100}}})

        first = client.get("/api/demo/call/p1")
        assert first.status_code == 200
        assert first.json()["status"] == "3"

        second = client.get("/api/demo/call/p2")
        assert second.status_code == 200
        assert second.json()["status"] == "completed"
        assert second.json()["phoneNumber"] == "15550100"

    def test_unknown_type_acknowledged(self, client):
        response = send_event(client, {"type": "speech-update", "call": {"id": "abc"}})
        assert response.json() == {"received": True}

    def test_test_endpoint_lists_active_calls(self, client):
        send_event(client, {"type": "status-update", "status": "ringing", "call": {"id": "abc"}})

        data = client.get("/api/webhooks/test").json()
        assert data["status"] == "Webhook endpoint is working"
        assert data["activeCalls"] == ["abc"]
        assert data["timestamp"]


class TestEndToEnd:

    def test_call_consent_and_booking(self, client, vapi_create_call):
        patient = client.get("/api/patients").json()["patients"][0]

        response = client.post(
            "/api/demo/vapi-call",
            json={"phoneNumber": "+1-555-0100", "consentType": "marketing", "customerId": patient["_id"]},
        )
        assert response.status_code == 200
        assert response.json() == {"callId": "call-123", "status": "initiated"}
        vapi_create_call.assert_awaited_once_with("+1-555-0100", "marketing", patient["_id"])

        send_event(client, {"type": "status-update", "status": "ringing", "call": {"id": "call-123"}})
        assert client.get("/api/demo/call/call-123").json()["status"] == "ringing"

        # Booking is refused until the call has ended
        early = client.post("/api/demo/call/call-123/book", json={"patientId": patient["_id"]})
        assert early.status_code == 409

        send_event(client, {"type": "transcript", "transcriptType": "final", "role": "assistant",
                            "transcript": "Do you consent?", "call": {"id": "call-123"}})
        send_event(client, {"type": "transcript", "transcriptType": "final", "role": "user",
                            "transcript": "Yes I agree", "call": {"id": "call-123"}})
        send_event(client, {"type": "call-end", "call": {"id": "call-123"}})

        call = client.get("/api/demo/call/call-123").json()
        assert call == {
            "id": "call-123",
            "phoneNumber": "+1-555-0100",
            "status": "completed",
            "transcript": ["AI: Do you consent?", "Customer: Yes I agree"],
            "consent": "approved",
            "createdAt": call["createdAt"],
        }

        booked = client.post("/api/demo/call/call-123/book", json={"patientId": patient["_id"]})
        assert booked.status_code == 200
        appointment = booked.json()["appointment"]
        assert appointment["type"] == "Follow-up"
        assert appointment["status"] == "SCHEDULED"
        assert appointment["aiSummary"] == SIMULATED_SUMMARY

        logs = client.get("/api/call-logs").json()
        assert logs["total_count"] == 1
        assert logs["call_logs"][0]["appointmentId"] == appointment["_id"]

        fetched = client.get(f"/api/appointments/{appointment['_id']}").json()["appointment"]
        assert fetched == appointment

    def test_book_unknown_call_or_patient(self, client):
        assert client.post("/api/demo/call/nope/book", json={"patientId": "p1"}).status_code == 404

        send_event(client, {"type": "call-end", "call": {"id": "abc"}})
        response = client.post("/api/demo/call/abc/book", json={"patientId": "missing"})
        assert response.status_code == 404
        assert "missing" in response.json()["error"]


class TestPatients:

    def test_list_patients(self, client):
        data = client.get("/api/patients").json()
        assert data["total_count"] == 50
        assert len(data["patients"]) == 50

    def test_risk_filter(self, client):
        data = client.get("/api/patients", params={"risk": "High"}).json()
        assert all(p["riskProfile"] == "High" for p in data["patients"])

    def test_get_and_patch_patient(self, client):
        patient = client.get("/api/patients").json()["patients"][0]

        response = client.patch(f"/api/patients/{patient['_id']}", json={"notes": "Prefers mornings"})

        assert response.status_code == 200
        updated = response.json()["patient"]
        assert updated == {**patient, "notes": "Prefers mornings"}
        assert client.get(f"/api/patients/{patient['_id']}").json()["patient"] == updated

    def test_patch_unknown_patient(self, client):
        response = client.patch("/api/patients/missing", json={"notes": "x"})
        assert response.status_code == 404

    def test_get_unknown_patient(self, client):
        assert client.get("/api/patients/missing").status_code == 404


class TestAppointments:

    def test_list_sorted_by_date(self, client):
        data = client.get("/api/appointments").json()
        dates = [a["date"] for a in data["appointments"]]
        assert data["total_count"] == 120
        assert dates == sorted(dates)

    def test_status_filter(self, client):
        data = client.get("/api/appointments", params={"status": "COMPLETED"}).json()
        assert data["appointments"]
        assert all(a["status"] == "COMPLETED" for a in data["appointments"])

    def test_create_appointment(self, client):
        response = client.post("/api/appointments", json={
            "patientId": "p1",
            "patientName": "Mary Smith",
            "date": "2024-07-01T10:00:00.000Z",
            "type": "Consultation",
        })

        assert response.status_code == 201
        created = response.json()["appointment"]
        assert created["status"] == "PENDING"
        assert created["durationMinutes"] == 30
        assert len(created["_id"]) == 9

    def test_create_rejects_bad_date(self, client):
        response = client.post("/api/appointments", json={
            "patientId": "p1",
            "patientName": "Mary Smith",
            "date": "next tuesday",
        })
        assert response.status_code == 422
        assert response.json()["error"] == "Validation failed"

    def test_patch_status(self, client):
        appointment = client.get("/api/appointments").json()["appointments"][0]

        response = client.patch(f"/api/appointments/{appointment['_id']}", json={"status": "CANCELLED"})

        assert response.status_code == 200
        assert response.json()["appointment"] == {**appointment, "status": "CANCELLED"}

    def test_patch_rejects_unknown_status(self, client):
        appointment = client.get("/api/appointments").json()["appointments"][0]
        response = client.patch(f"/api/appointments/{appointment['_id']}", json={"status": "LOST"})
        assert response.status_code == 422

    def test_patch_unknown_appointment(self, client):
        response = client.patch("/api/appointments/missing", json={"status": "CANCELLED"})
        assert response.status_code == 404


class TestDashboardAndReset:

    def test_dashboard(self, client):
        data = client.get("/api/dashboard").json()
        assert data["stats"]["total"] == 120
        assert data["patientCount"] == 50
        assert len(data["weekly"]) == 7

    def test_reset_regenerates(self, client):
        before = {p["_id"] for p in client.get("/api/patients").json()["patients"]}

        response = client.post("/api/demo/reset")

        assert response.json() == {"status": "success", "patients": 50, "appointments": 120}
        after = {p["_id"] for p in client.get("/api/patients").json()["patients"]}
        assert before != after
        assert client.get("/api/call-logs").json()["total_count"] == 0


class TestAssistant:

    def test_medical_query_without_openai_key(self, client):
        response = client.post("/api/assistant/medical-query", json={"question": "hypertension treatment"})

        assert response.status_code == 200
        assert response.json() == {"answer": UNAVAILABLE_ANSWER, "sources": [], "confidence": "low"}

    def test_medical_query_answered_from_documents(self, vapi_config):
        openai_client = MagicMock()
        openai_client.chat.completions.create = AsyncMock(return_value=MagicMock(
            choices=[MagicMock(message=MagicMock(content="Lifestyle changes come first."))]
        ))
        app = create_app(
            settings=Settings(),
            vapi_config=vapi_config,
            kv_table=MemoryTable(),
            call_registry=CallRegistry(),
            analyzer=StubTranscriptAnalyzer(),
            knowledge_base=MedicalKnowledgeBase(openai_client),
        )
        with TestClient(app) as client:
            data = client.post("/api/assistant/medical-query", json={"question": "hypertension treatment"}).json()

        assert data["answer"] == "Lifestyle changes come first."
        assert [doc["title"] for doc in data["sources"]] == ["Hypertension Management", "Medication Adherence"]
        assert data["confidence"] == "low"

    def test_medical_query_requires_question(self, client):
        assert client.post("/api/assistant/medical-query", json={"question": ""}).status_code == 422

    def test_list_and_add_documents(self, client):
        assert client.get("/api/assistant/documents").json()["total_count"] == 5
        symptoms = client.get("/api/assistant/documents", params={"category": "symptoms"}).json()
        assert [doc["title"] for doc in symptoms["documents"]] == ["Chest Pain Symptoms"]

        response = client.post("/api/assistant/documents", json={
            "title": "Statin Therapy", "content": "Statins lower LDL cholesterol.", "category": "medications",
        })

        assert response.status_code == 201
        assert response.json()["document"]["category"] == "medications"
        assert client.get("/api/assistant/documents").json()["total_count"] == 6

    def test_add_document_rejects_unknown_category(self, client):
        response = client.post("/api/assistant/documents", json={
            "title": "Statins", "content": "Lower LDL.", "category": "gossip",
        })
        assert response.status_code == 422

    def test_help_chat(self, client):
        data = client.post("/api/assistant/help", json={"message": "Where is the dashboard?"}).json()

        assert data["response"].startswith("The Dashboard shows")
        assert data["sources"][0]["title"] == "Dashboard Overview"

    def test_help_chat_default_reply(self, client):
        data = client.post("/api/assistant/help", json={"message": "hello"}).json()
        assert data["response"] == DEFAULT_HELP_REPLY
