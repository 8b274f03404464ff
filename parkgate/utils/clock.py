# parkgate/utils/clock.py
"""
Facility-local clock helpers and transaction id generation.
Dates are kept as YYYY-MM-DD strings and times as hh:mm:ss AM/PM in the
facility timezone, since history is queried by exact calendar-day match.
"""

import threading
import time
from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from parkgate.config import settings

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%I:%M:%S %p"

_id_lock = threading.Lock()
_last_stamp = 0


def facility_tz(name: Optional[str] = None) -> ZoneInfo:
    return ZoneInfo(name or settings.FACILITY_TIMEZONE)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def facility_stamp(moment: Optional[datetime] = None, tz_name: Optional[str] = None) -> tuple[str, str]:
    """Return (date, time) strings for `moment` (default: now) on the facility clock."""
    moment = moment or utcnow()
    local = moment.astimezone(facility_tz(tz_name))
    return local.strftime(DATE_FORMAT), local.strftime(TIME_FORMAT)


def normalize_date(value: str, tz_name: Optional[str] = None) -> Optional[str]:
    """
    Normalise a query date to the facility calendar day.
    Plain dates are taken as-is; datetimes with an offset are converted to the
    facility timezone first. Returns None when the value cannot be parsed.
    """
    if not value:
        return None
    value = value.strip()
    try:
        return date.fromisoformat(value).strftime(DATE_FORMAT)
    except ValueError:
        pass
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(facility_tz(tz_name))
    return parsed.strftime(DATE_FORMAT)


def next_transaction_id(plate_number: str) -> str:
    """`<monotonic-ms-timestamp>-<plate>`; stamps never repeat within a process."""
    global _last_stamp
    with _id_lock:
        stamp = max(int(time.time() * 1000), _last_stamp + 1)
        _last_stamp = stamp
    return f"{stamp}-{plate_number}"
