import logging
import random
import string
from datetime import datetime, timezone
from typing import Optional

from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_id(rng: Optional[random.Random] = None, length: int = 9) -> str:
    """Short opaque identifier in the style of the browser store (9 base-36 chars)."""
    rng = rng or random
    return "".join(rng.choice(_ID_ALPHABET) for _ in range(length))


def mask_phone(phone: Optional[str]) -> str:
    if not phone:
        return "unknown"
    digits = [c for c in phone if c.isdigit()]
    if len(digits) <= 4:
        return "***"
    return f"***{''.join(digits[-4:])}"


def mask_id(value: Optional[str]) -> str:
    if not value:
        return "unknown"
    value = str(value)
    if len(value) <= 6:
        return value[:2] + "***"
    return f"{value[:4]}...{value[-2:]}"


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp, returning None for empty or malformed input."""
    if not value:
        return None
    try:
        return dateutil_parser.isoparse(value)
    except (ValueError, TypeError) as e:
        logger.warning(f"Could not parse datetime '{value}': {e}")
        return None


def to_iso(dt: datetime) -> str:
    """Format like JavaScript's toISOString: UTC, millisecond precision, Z suffix."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"
