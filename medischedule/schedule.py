from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional

from medischedule.constants import AppointmentStatus, AppointmentType, RiskProfile
from medischedule.utils import parse_iso_datetime

ALL_STATUSES = "ALL"
WEEKDAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _sort_key(appointment: dict) -> datetime:
    parsed = parse_iso_datetime(appointment.get("date"))
    if parsed is None:
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def filter_appointments(appointments: Iterable[dict], status: Optional[str] = None,
                        search: Optional[str] = None) -> List[dict]:
    """Schedule view: optional status filter, case-insensitive search on patient name or type, sorted by date."""
    needle = (search or "").lower()
    status = status or ALL_STATUSES

    def matches(appt: dict) -> bool:
        if status != ALL_STATUSES and appt.get("status") != status:
            return False
        if not needle:
            return True
        return needle in appt.get("patientName", "").lower() or needle in appt.get("type", "").lower()

    return sorted((a for a in appointments if matches(a)), key=_sort_key)


def status_counts(appointments: List[dict]) -> dict:
    counts = Counter(a.get("status") for a in appointments)
    return {
        "total": len(appointments),
        "completed": counts[AppointmentStatus.COMPLETED.value],
        "pending": counts[AppointmentStatus.PENDING.value],
        "scheduled": counts[AppointmentStatus.SCHEDULED.value],
        "cancelled": counts[AppointmentStatus.CANCELLED.value],
    }


def type_breakdown(appointments: List[dict]) -> List[dict]:
    counts = Counter(a.get("type") for a in appointments)
    return [{"name": t.value, "value": counts[t.value]} for t in AppointmentType]


def weekly_activity(appointments: List[dict], today: Optional[date] = None) -> List[dict]:
    """Appointment counts for each day of the current Monday-to-Sunday week."""
    today = today or datetime.now(timezone.utc).date()
    start_of_week = today - timedelta(days=today.weekday())

    per_day = Counter()
    for appt in appointments:
        parsed = parse_iso_datetime(appt.get("date"))
        if parsed is not None:
            per_day[parsed.date()] += 1

    week = []
    for index, name in enumerate(WEEKDAY_NAMES):
        day = start_of_week + timedelta(days=index)
        week.append({"name": name, "appointments": per_day[day], "date": day.isoformat()})
    return week


def dashboard_summary(appointments: List[dict], patients: List[dict], today: Optional[date] = None) -> dict:
    return {
        "stats": status_counts(appointments),
        "patientCount": len(patients),
        "highRiskPatients": sum(1 for p in patients if p.get("riskProfile") == RiskProfile.HIGH.value),
        "weekly": weekly_activity(appointments, today=today),
        "types": type_breakdown(appointments),
    }
