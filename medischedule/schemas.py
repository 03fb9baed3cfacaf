from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from medischedule.utils import parse_iso_datetime
from medischedule.constants import (
    AppointmentStatus,
    AppointmentType,
    ConsentStatus,
    DocumentCategory,
    RiskProfile,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# Calls

class VapiCallRequest(CamelModel):
    phone_number: Optional[str] = Field(default=None, alias="phoneNumber")
    consent_type: str = Field(default="marketing", alias="consentType")
    customer_id: Optional[str] = Field(default=None, alias="customerId")


class VapiCallResponse(CamelModel):
    call_id: str = Field(..., alias="callId")
    status: str


class CallRecord(CamelModel):
    """Registry entry for one vendor call."""
    id: str
    phone_number: str = Field(default="unknown", alias="phoneNumber")
    status: Optional[str] = None
    transcript: List[str] = Field(default_factory=list)
    consent: ConsentStatus = ConsentStatus.UNKNOWN
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), alias="createdAt")
    completed_at: Optional[datetime] = Field(default=None, alias="completedAt")

    def to_response(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude={"completed_at"})


def _as_text(value: Any) -> Optional[str]:
    # Vendor payloads are loosely typed; numbers and other scalars become strings
    if value is None or isinstance(value, str):
        return value
    return str(value)


class WebhookCustomer(BaseModel):
    model_config = ConfigDict(extra="allow")
    number: Optional[str] = None

    @field_validator("number", mode="before")
    @classmethod
    def coerce_number(cls, v: Any) -> Optional[str]:
        return _as_text(v)


class WebhookCall(BaseModel):
    model_config = ConfigDict(extra="allow")
    id: Optional[str] = None
    customer: Optional[WebhookCustomer] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Optional[str]:
        return _as_text(v)

    @field_validator("customer", mode="before")
    @classmethod
    def drop_malformed_customer(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else None


class VapiWebhookMessage(CamelModel):
    """Inner `message` envelope of a Vapi server event.

    Every field is optional and coerced to text, so a message with a usable
    call id always validates. Unknown fields are kept.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: Optional[str] = None
    call: Optional[WebhookCall] = None
    status: Optional[str] = None
    transcript_type: Optional[str] = Field(default=None, alias="transcriptType")
    role: Optional[str] = None
    transcript: Optional[str] = None

    @field_validator("type", "status", "transcript_type", "role", "transcript", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Optional[str]:
        return _as_text(v)

    @field_validator("call", mode="before")
    @classmethod
    def drop_malformed_call(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else None

    @property
    def call_id(self) -> Optional[str]:
        return self.call.id if self.call else None

    @property
    def customer_number(self) -> Optional[str]:
        if self.call and self.call.customer:
            return self.call.customer.number
        return None


class BookFollowUpRequest(CamelModel):
    patient_id: str = Field(..., min_length=1, alias="patientId")


# Store records

class AppointmentCreate(CamelModel):
    patient_id: str = Field(..., min_length=1, alias="patientId")
    patient_name: str = Field(..., alias="patientName")
    date: str
    duration_minutes: int = Field(default=30, gt=0, alias="durationMinutes")
    status: AppointmentStatus = AppointmentStatus.PENDING
    type: AppointmentType = AppointmentType.CHECK_UP
    notes: Optional[str] = None
    transcription: Optional[str] = None
    ai_summary: Optional[str] = Field(default=None, alias="aiSummary")

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        if parse_iso_datetime(v) is None:
            raise ValueError("date must be an ISO-8601 timestamp")
        return v

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class AppointmentUpdate(CamelModel):
    patient_id: Optional[str] = Field(default=None, alias="patientId")
    patient_name: Optional[str] = Field(default=None, alias="patientName")
    date: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0, alias="durationMinutes")
    status: Optional[AppointmentStatus] = None
    type: Optional[AppointmentType] = None
    notes: Optional[str] = None
    transcription: Optional[str] = None
    ai_summary: Optional[str] = Field(default=None, alias="aiSummary")

    def to_fields(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class PatientUpdate(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=0)
    date_of_birth: Optional[str] = Field(default=None, alias="dateOfBirth")
    address: Optional[str] = None
    insurance: Optional[str] = None
    emergency_contact: Optional[str] = Field(default=None, alias="emergencyContact")
    emergency_phone: Optional[str] = Field(default=None, alias="emergencyPhone")
    medical_history: Optional[str] = Field(default=None, alias="medicalHistory")
    notes: Optional[str] = None
    last_visit: Optional[str] = Field(default=None, alias="lastVisit")
    risk_profile: Optional[RiskProfile] = Field(default=None, alias="riskProfile")

    def to_fields(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


# Assistants

class MedicalQueryRequest(CamelModel):
    question: str = Field(..., min_length=1)


class DocumentCreate(CamelModel):
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    category: DocumentCategory


class HelpChatRequest(CamelModel):
    message: str = Field(..., min_length=1)
