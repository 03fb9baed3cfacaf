"""Randomized demo dataset for a fresh clinic store."""

import random
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from medischedule.constants import AppointmentStatus, AppointmentType, RiskProfile
from medischedule.utils import generate_id, to_iso

DEFAULT_PATIENT_COUNT = 50
DEFAULT_APPOINTMENT_COUNT = 120

FIRST_NAMES = [
    "James", "Mary", "John", "Patricia", "Robert", "Jennifer", "Michael", "Linda", "William", "Elizabeth",
    "David", "Barbara", "Richard", "Susan", "Joseph", "Jessica", "Thomas", "Sarah", "Christopher", "Karen",
    "Charles", "Nancy", "Daniel", "Lisa", "Matthew", "Betty", "Anthony", "Helen", "Mark", "Sandra",
    "Donald", "Donna", "Steven", "Carol", "Paul", "Ruth", "Andrew", "Sharon", "Joshua", "Michelle",
    "Kenneth", "Laura", "Kevin", "Brian", "Kimberly", "George", "Deborah", "Edward", "Dorothy",
]
LAST_NAMES = [
    "Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller", "Davis", "Rodriguez", "Martinez",
    "Hernandez", "Lopez", "Gonzalez", "Wilson", "Anderson", "Thomas", "Taylor", "Moore", "Jackson", "Martin",
    "Lee", "Perez", "Thompson", "White", "Harris", "Sanchez", "Clark", "Ramirez", "Lewis", "Robinson",
    "Walker", "Young", "Allen", "King", "Wright", "Scott", "Torres", "Nguyen", "Hill", "Flores",
    "Green", "Adams", "Nelson", "Baker", "Hall", "Rivera", "Campbell", "Mitchell", "Carter", "Roberts",
]
CONDITIONS = [
    "Hypertension", "Diabetes Type 2", "Asthma", "Routine Checkup", "Migraine", "Back Pain", "Flu Symptoms",
    "Arthritis", "High Cholesterol", "Anxiety", "Depression", "Allergies", "Insomnia", "COPD",
    "Heart Disease", "Osteoporosis", "Thyroid Issues", "Kidney Disease", "Liver Disease", "Cancer Screening",
]
MEDICAL_HISTORY = [
    "No significant medical history", "History of heart disease", "Family history of diabetes",
    "Previous surgery in 2019", "Chronic pain management", "Medication allergies noted",
    "Regular blood pressure monitoring", "Diabetic - insulin dependent", "Asthma - uses inhaler",
    "Previous hospitalization", "Ongoing physical therapy", "Mental health treatment",
]
INSURANCE_PROVIDERS = [
    "Blue Cross Blue Shield", "Aetna", "Cigna", "UnitedHealth", "Humana", "Kaiser Permanente",
    "Anthem", "Medicare", "Medicaid", "Tricare", "Independence Blue Cross", "Molina Healthcare",
]
STREETS = ["Main St", "Oak Ave", "Pine Rd", "Elm Dr", "Maple Ln", "Cedar Way", "Park Blvd", "First Ave", "Second St", "Third Dr"]
CITIES = ["Springfield", "Franklin", "Georgetown", "Madison", "Clinton", "Riverside", "Fairview", "Midtown", "Downtown", "Uptown"]
STATES = ["CA", "NY", "TX", "FL", "IL", "PA", "OH", "GA", "NC", "MI"]
PATIENT_TRAITS = [
    "cooperative and follows instructions well", "anxious about medical procedures", "punctual and reliable",
    "requires assistance with mobility", "prefers morning appointments", "has transportation challenges",
    "very health-conscious", "needs interpreter services",
]
DURATIONS = [15, 30, 45, 60]

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _phone(rng: random.Random) -> str:
    return f"+1-{rng.randint(100, 999)}-{rng.randint(100, 999)}-{rng.randint(1000, 9999)}"


def pick_risk_profile(draw: float) -> RiskProfile:
    """Map a uniform draw to a risk profile: 20% High, 30% Moderate, 50% Low."""
    if draw > 0.8:
        return RiskProfile.HIGH
    if draw > 0.5:
        return RiskProfile.MODERATE
    return RiskProfile.LOW


def generate_patients(count: int = DEFAULT_PATIENT_COUNT, rng: Optional[random.Random] = None,
                      clock: Clock = _utcnow) -> List[dict]:
    rng = rng or random.Random()
    now = clock()
    patients = []

    for _ in range(count):
        first_name = rng.choice(FIRST_NAMES)
        last_name = rng.choice(LAST_NAMES)
        age = 18 + rng.randrange(70)
        birth_year = now.year - age

        patient = {
            "_id": generate_id(rng),
            "name": f"{first_name} {last_name}",
            "email": f"{first_name.lower()}.{last_name.lower()}{rng.randrange(100)}@email.com",
            "phone": _phone(rng),
            "age": age,
            "dateOfBirth": f"{birth_year}-{rng.randint(1, 12):02d}-{rng.randint(1, 28):02d}",
            "address": (
                f"{rng.randint(1, 9999)} {rng.choice(STREETS)}, {rng.choice(CITIES)}, "
                f"{rng.choice(STATES)} {rng.randint(10000, 99999)}"
            ),
            "insurance": rng.choice(INSURANCE_PROVIDERS),
            "emergencyContact": f"{rng.choice(FIRST_NAMES)} {last_name}",
            "emergencyPhone": _phone(rng),
            "medicalHistory": rng.choice(MEDICAL_HISTORY),
            "riskProfile": pick_risk_profile(rng.random()).value,
        }
        if rng.random() > 0.3:
            last_visit = now - timedelta(days=rng.randrange(365))
            patient["lastVisit"] = last_visit.date().isoformat()
        if rng.random() > 0.5:
            patient["notes"] = f"Patient is {rng.choice(PATIENT_TRAITS)}"

        patients.append(patient)

    return patients


def status_for_offset(day_offset: int, draw: float) -> AppointmentStatus:
    """Past appointments are settled, future ones are mostly confirmed."""
    if day_offset < -1:
        return AppointmentStatus.COMPLETED
    if day_offset < 0:
        return AppointmentStatus.COMPLETED if draw > 0.5 else AppointmentStatus.CANCELLED
    return AppointmentStatus.SCHEDULED if draw > 0.2 else AppointmentStatus.PENDING


def generate_appointments(patients: List[dict], count: int = DEFAULT_APPOINTMENT_COUNT,
                          rng: Optional[random.Random] = None, clock: Clock = _utcnow) -> List[dict]:
    if not patients:
        return []

    rng = rng or random.Random()
    now = clock()
    appointment_types = [t.value for t in AppointmentType]
    appointments = []

    for _ in range(count):
        patient = rng.choice(patients)
        day_offset = rng.randrange(60) - 15
        appt_date = (now + timedelta(days=day_offset)).replace(
            hour=8 + rng.randrange(10),
            minute=rng.choice([0, 15, 30, 45]),
            second=0,
            microsecond=0,
        )
        appointment_type = rng.choice(appointment_types)
        status = status_for_offset(day_offset, rng.random())

        condition = rng.choice(CONDITIONS).lower()
        notes = rng.choice([
            f"Patient reporting {condition}",
            f"Follow-up for {condition}",
            f"Routine {appointment_type.lower()} - {condition}",
            f"Patient experiencing symptoms related to {condition}",
            f"Scheduled {appointment_type.lower()} for {condition} management",
        ])

        appointments.append({
            "_id": generate_id(rng),
            "patientId": patient["_id"],
            "patientName": patient["name"],
            "date": to_iso(appt_date),
            "durationMinutes": rng.choice(DURATIONS),
            "status": status.value,
            "type": appointment_type,
            "notes": notes,
        })

    return appointments
