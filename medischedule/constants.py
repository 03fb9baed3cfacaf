from enum import Enum


class AppointmentStatus(str, Enum):
    PENDING = "PENDING"
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class AppointmentType(str, Enum):
    CHECK_UP = "Check-up"
    FOLLOW_UP = "Follow-up"
    CONSULTATION = "Consultation"
    EMERGENCY = "Emergency"


class RiskProfile(str, Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"


class ConsentStatus(str, Enum):
    UNKNOWN = "unknown"
    APPROVED = "approved"
    DENIED = "denied"


class DocumentCategory(str, Enum):
    SYMPTOMS = "symptoms"
    TREATMENTS = "treatments"
    PROCEDURES = "procedures"
    MEDICATIONS = "medications"
    GUIDELINES = "guidelines"


class HelpCategory(str, Enum):
    FEATURES = "features"
    USAGE = "usage"
    TECHNICAL = "technical"
    TROUBLESHOOTING = "troubleshooting"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CallEventType(str, Enum):
    STATUS_UPDATE = "status-update"
    TRANSCRIPT = "transcript"
    CALL_END = "call-end"


# Call record status values set locally; everything else is passed through from Vapi
CALL_STATUS_INITIATED = "initiated"
CALL_STATUS_UNKNOWN = "unknown"
CALL_STATUS_COMPLETED = "completed"

FINAL_TRANSCRIPT = "final"
ASSISTANT_ROLE = "assistant"

AFFIRMATIVE_TOKENS = ("yes", "agree", "accept")
NEGATIVE_TOKENS = ("no", "decline", "refuse")

# Key/value entries backing the mock store
PATIENTS_KEY = "medischedule_patients"
APPOINTMENTS_KEY = "medischedule_appointments"
CALLS_KEY = "medischedule_calls"
