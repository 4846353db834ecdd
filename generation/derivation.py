"""
Field derivation layer.

Pure functions that compute template values from raw form input, plus the
ordered pipeline that combines them. Every step receives the mapping built
so far and returns only the keys it computes; `derive_fields` merges the
results left to right, so a later step overrides an earlier one and any
step overrides the raw input.
"""
import logging
import re
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from functools import partial
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

from .countries import CountryTable, default_country_table
from .exceptions import (
    InvalidDate,
    InvalidDistance,
    InvalidMeetingType,
    InvalidTimeFormat,
    UnsupportedCountry,
)

logger = logging.getLogger(__name__)

Step = Callable[[Mapping[str, Any]], Dict[str, Any]]

KM_TO_MILES = Decimal("0.621371")
BOOKING_DURATION_MINUTES = 15
REPORT_DURATION_MINUTES = 5
REF_DATE = date(2000, 1, 1)

HH_MM_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
PLAIN_TIME_RE = re.compile(r"^\s*\d{1,2}\s*:\s*\d{2}\s*$")

MEETING_TYPES = {
    "virtual": "Virtual",
    "in person": "In Person",
    "none": "",
}

BOOKING_START_KEY = "Start_Time_For_Booking_Venue"


# --- Country ----------------------------------------------------------------

def resolve_country_data(country, table: CountryTable = default_country_table) -> Dict[str, str]:
    return table.resolve(country)


# --- Time -------------------------------------------------------------------

def _format_duration(minutes: int) -> str:
    return f"{minutes // 60}h{minutes % 60}m"


def run_time_automation(start_time) -> Dict[str, str]:
    """Booking slot of 15 minutes followed by a 5 minute report slot.

    >>> run_time_automation("08:30")["End_Time_For_Report_Preparation"]
    '08:50'
    """
    raw = str(start_time if start_time is not None else "").strip()
    if not HH_MM_RE.match(raw):
        raise InvalidTimeFormat(
            f'Invalid start time: "{start_time}". Expected format: HH:mm', value=start_time
        )

    start_booking = datetime.combine(REF_DATE, datetime.strptime(raw, "%H:%M").time())
    end_booking = start_booking + timedelta(minutes=BOOKING_DURATION_MINUTES)
    start_report = end_booking
    end_report = start_report + timedelta(minutes=REPORT_DURATION_MINUTES)
    total = _format_duration(BOOKING_DURATION_MINUTES + REPORT_DURATION_MINUTES)

    return {
        "Start_Time_For_Booking_Venue": start_booking.strftime("%H:%M"),
        "End_Time_For_Booking_Venue": end_booking.strftime("%H:%M"),
        "Start_Time_For_Report_Preparation": start_report.strftime("%H:%M"),
        "End_Time_For_Report_Preparation": end_report.strftime("%H:%M"),
        "Total_Time": total,
        "Service_Time": total,
    }


def enforce_time_format(value) -> str:
    """Normalize "08:30" / "08 : 30" / "830" to "0830"."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidTimeFormat("Time must be a non-empty string", value=value)

    stripped = re.sub(r"[\s:]", "", value)
    if not re.fullmatch(r"\d{3,4}", stripped):
        raise InvalidTimeFormat(
            f'Invalid time format: "{value}". Expected HH:mm or HHMM', value=value
        )

    padded = stripped.zfill(4)
    hours, minutes = int(padded[:2]), int(padded[2:])
    if hours > 23 or minutes > 59:
        raise InvalidTimeFormat(
            f'Invalid time: "{value}". Hours 00-23, minutes 00-59', value=value
        )
    return padded


# --- Dates ------------------------------------------------------------------

_DATE_INPUT_FORMATS = ("%B %d, %Y", "%d %B %Y")


def parse_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        raw = value.strip()
        try:
            return datetime.fromisoformat(raw).date()
        except ValueError:
            pass
        for fmt in _DATE_INPUT_FORMATS:
            try:
                return datetime.strptime(raw, fmt).date()
            except ValueError:
                continue
    raise InvalidDate(f'Invalid date: "{value}". Expected YYYY-MM-DD', value=value)


def format_date_of_fr(value) -> str:
    """18 February 2025"""
    return parse_date(value).strftime("%d %B %Y")


def format_event_date(value) -> str:
    """February 18, 2025"""
    return parse_date(value).strftime("%B %d, %Y")


def derive_event_day(value) -> str:
    """Friday"""
    return parse_date(value).strftime("%A")


def format_event_dates(value) -> Dict[str, str]:
    day = parse_date(value)
    return {
        "Date_of_FR": format_date_of_fr(day),
        "Event_Date": format_event_date(day),
        "Event_Day": derive_event_day(day),
    }


# --- Distance / meeting type ------------------------------------------------

def convert_km_to_miles(km) -> str:
    if isinstance(km, bool):
        raise InvalidDistance("Invalid input: km must be a non-negative number", value=km)
    try:
        amount = Decimal(str(km).strip())
    except (InvalidOperation, ValueError):
        raise InvalidDistance("Invalid input: km must be a non-negative number", value=km)
    if not amount.is_finite() or amount < 0:
        raise InvalidDistance("Invalid input: km must be a non-negative number", value=km)

    miles = (amount * KM_TO_MILES).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{miles:.2f}"


def resolve_meeting_type(value) -> str:
    if value is None:
        raise InvalidMeetingType("Meeting type is required", value=value)

    key = str(value).strip().lower()
    if key == "":
        # already canonical form of "None"
        return ""
    if key not in MEETING_TYPES:
        allowed = ", ".join(MEETING_TYPES)
        raise InvalidMeetingType(
            f'Invalid meeting type: "{value}". Allowed: {allowed}', value=value
        )
    return MEETING_TYPES[key]


# --- Pipeline steps ---------------------------------------------------------

def country_step(data: Mapping[str, Any], countries: CountryTable = default_country_table) -> Dict[str, Any]:
    country = data.get("Country") or data.get("country")
    if not country:
        return {}
    try:
        return resolve_country_data(country, countries)
    except UnsupportedCountry as exc:
        logger.warning("Country data not resolved for %r: %s", country, exc)
        return {}


def date_step(data: Mapping[str, Any]) -> Dict[str, Any]:
    if not data.get("Event_Date"):
        return {}
    return format_event_dates(data["Event_Date"])


def distance_step(data: Mapping[str, Any]) -> Dict[str, Any]:
    km = data.get("Distance_In_Kilometres")
    if km is None or km == "":
        return {}
    return {"Distance_In_Miles": convert_km_to_miles(km)}


def time_chain_step(data: Mapping[str, Any], seed_key: Optional[str] = BOOKING_START_KEY) -> Dict[str, Any]:
    """Run the time chain from the value under `seed_key`, and only that key.

    Times already present in the input are kept, apart from the seed key.
    """
    if seed_key is None:
        return {}
    seed = data.get(seed_key)
    if not isinstance(seed, str) or not seed.strip():
        return {}
    chain = run_time_automation(seed.strip())
    return {key: value for key, value in chain.items() if key == seed_key or not data.get(key)}


def meeting_type_step(data: Mapping[str, Any]) -> Dict[str, Any]:
    if data.get("Meeting_Type") is None:
        return {}
    return {"Meeting_Type": resolve_meeting_type(data["Meeting_Type"])}


def time_format_step(data: Mapping[str, Any]) -> Dict[str, Any]:
    out = {}
    for key, value in data.items():
        if "Time" not in key or not isinstance(value, str) or "h" in value:
            continue
        if PLAIN_TIME_RE.match(value):
            out[key] = enforce_time_format(value)
    return out


def default_steps(
    countries: CountryTable = default_country_table,
    time_seed: Optional[str] = BOOKING_START_KEY,
) -> Tuple[Step, ...]:
    return (
        partial(country_step, countries=countries),
        date_step,
        distance_step,
        partial(time_chain_step, seed_key=time_seed),
        meeting_type_step,
        time_format_step,
    )


def derive_fields(raw: Mapping[str, Any], steps: Optional[Sequence[Step]] = None) -> Dict[str, Any]:
    """Run the derivation steps over `raw` and return the combined mapping.

    The input mapping is never modified.
    """
    data: Dict[str, Any] = dict(raw or {})
    for step in steps if steps is not None else default_steps():
        data.update(step(MappingProxyType(dict(data))))
    return data
