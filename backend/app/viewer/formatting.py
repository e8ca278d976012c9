"""Display formatting for timestamps and processing states.

All functions are pure and degrade to a dash instead of raising.
"""

import math
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import parser as dateutil_parser

from app.config import settings
from app.schemas.resource import ProcessingState

DASH = "—"
NBSP = " "

_STATE_PREFIX = "PROCESSING_STATE_"

# Badge variant per processing state; unknown states use the neutral variant
STATE_BADGES: dict[str, str] = {
    ProcessingState.PROCESSING_STATE_UNSPECIFIED.value: "secondary",
    ProcessingState.PROCESSING_STATE_NOT_STARTED.value: "secondary",
    ProcessingState.PROCESSING_STATE_PROCESSING.value: "destructive",
    ProcessingState.PROCESSING_STATE_COMPLETED.value: "default",
    ProcessingState.PROCESSING_STATE_FAILED.value: "destructive",
}

_MINUTES_IN_HOUR = 60
_MINUTES_IN_DAY = 1440
_MINUTES_IN_MONTH = 43200
_MINUTES_IN_YEAR = 525600


def display_timezone() -> tzinfo:
    try:
        return ZoneInfo(settings.display_timezone)
    except (ZoneInfoNotFoundError, ValueError):
        return timezone.utc


def parse_timestamp(value: object) -> datetime | None:
    """Parse ISO-8601 text into an aware datetime.

    Text without an offset is read in the display timezone.

    Returns:
        The parsed datetime, or None for anything that is not valid ISO text.
    """
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = dateutil_parser.isoparse(value)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=display_timezone())
    return parsed


def timestamp_sort_key(value: object) -> float:
    """Epoch seconds for sorting; unparseable values sort as the earliest."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return -math.inf
    return parsed.timestamp()


def pretty(iso: object) -> str:
    """Absolute timestamp, e.g. ``Aug 30, 2025, 3:00:00 PM``."""
    parsed = parse_timestamp(iso)
    if parsed is None:
        return DASH
    try:
        local = parsed.astimezone(display_timezone())
    except (ValueError, OverflowError):
        return DASH
    hour = local.hour % 12 or 12
    return f"{local:%b} {local.day}, {local.year}, {hour}:{local:%M:%S} {local:%p}"


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def time_ago(iso: object, now: datetime | None = None) -> str:
    """Relative time with a single unit, e.g. ``5 minutes ago`` or ``in 2 hours``."""
    parsed = parse_timestamp(iso)
    if parsed is None:
        return DASH
    now = now or datetime.now(timezone.utc)

    milliseconds = abs((now - parsed).total_seconds()) * 1000
    minutes = milliseconds / 60000

    if minutes < 1:
        distance = _plural(_round_half_up(milliseconds / 1000), "second")
    elif minutes < _MINUTES_IN_HOUR:
        distance = _plural(_round_half_up(minutes), "minute")
    elif minutes < _MINUTES_IN_DAY:
        distance = _plural(_round_half_up(minutes / _MINUTES_IN_HOUR), "hour")
    elif minutes < _MINUTES_IN_MONTH:
        distance = _plural(_round_half_up(minutes / _MINUTES_IN_DAY), "day")
    elif minutes < _MINUTES_IN_YEAR:
        months = _round_half_up(minutes / _MINUTES_IN_MONTH)
        distance = "1 year" if months == 12 else _plural(months, "month")
    else:
        distance = _plural(_round_half_up(minutes / _MINUTES_IN_YEAR), "year")

    return f"in {distance}" if parsed > now else f"{distance} ago"


def state_value(state: object) -> str:
    if isinstance(state, ProcessingState):
        return state.value
    return str(state) if state is not None else ProcessingState.PROCESSING_STATE_UNSPECIFIED.value


def state_label(state: object) -> str:
    """``PROCESSING_STATE_NOT_STARTED`` -> ``NOT STARTED``."""
    return state_value(state).replace(_STATE_PREFIX, "", 1).replace("_", " ")


def state_badge(state: object) -> str:
    return STATE_BADGES.get(state_value(state), "secondary")
