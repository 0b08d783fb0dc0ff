"""
Civil-date helpers.

A civil date is the calendar date observed in a named IANA timezone. Day
boundaries come from zoneinfo, so a civil day across a DST switch is 23 or
25 hours long rather than a fixed offset from UTC.
"""
import re
from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from typing import Iterator, Optional, Tuple, Union
from zoneinfo import ZoneInfo

from analytics.config import DEFAULT_TIMEZONE
from analytics.observability import get_logger, log_recovered

logger = get_logger(__name__)

# Returned for instants that cannot be parsed
SENTINEL_DATE = date(1970, 1, 1)

DATE_FORMAT = "%Y-%m-%d"

# Postgres renders UTC offsets as "+00" or "-05" without minutes
_SHORT_OFFSET = re.compile(r"([+-]\d{2})$")

Instant = Union[datetime, str, None]


@lru_cache(maxsize=16)
def get_zone(tz_name: str) -> ZoneInfo:
    return ZoneInfo(tz_name)


def parse_timestamp(value: Instant) -> Optional[datetime]:
    """
    Parse an instant into an aware datetime.

    Accepts datetimes (naive ones are taken as UTC) and ISO-8601 strings,
    including "Z" suffixes and Postgres short offsets. Returns None when the
    value cannot be parsed.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    elif ("T" in text or " " in text) and _SHORT_OFFSET.search(text):
        text = _SHORT_OFFSET.sub(r"\1:00", text)

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def civil_day(instant: Instant, tz_name: str = DEFAULT_TIMEZONE) -> date:
    """Calendar date of an instant in the given timezone (sentinel if unparsable)."""
    parsed = parse_timestamp(instant)
    if parsed is None:
        log_recovered(
            logger, "timestamp",
            f"Unparsable timestamp, using {SENTINEL_DATE.isoformat()}",
            value=repr(instant),
        )
        return SENTINEL_DATE
    return parsed.astimezone(get_zone(tz_name)).date()


def to_civil_date(instant: Instant, tz_name: str = DEFAULT_TIMEZONE) -> str:
    """Calendar date string (YYYY-MM-DD) of an instant in the given timezone."""
    return civil_day(instant, tz_name).strftime(DATE_FORMAT)


def civil_day_bounds(day: Union[date, str], tz_name: str = DEFAULT_TIMEZONE) -> Tuple[datetime, datetime]:
    """
    UTC boundaries [start, end) of one civil day.

    start is local midnight of `day`, end is local midnight of the next day.
    """
    day = parse_civil_date(day)
    zone = get_zone(tz_name)
    local_start = datetime.combine(day, time.min, tzinfo=zone)
    local_end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
    return local_start.astimezone(timezone.utc), local_end.astimezone(timezone.utc)


def civil_range_bounds(
    start: Union[date, str],
    end: Union[date, str],
    tz_name: str = DEFAULT_TIMEZONE,
) -> Tuple[datetime, datetime]:
    """UTC boundaries [start, end) covering every civil day from start to end inclusive."""
    range_start, _ = civil_day_bounds(start, tz_name)
    _, range_end = civil_day_bounds(end, tz_name)
    return range_start, range_end


def parse_civil_date(value: Union[date, str]) -> date:
    """Coerce a date or YYYY-MM-DD string to a date (raises ValueError on bad strings)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value, DATE_FORMAT).date()


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Every calendar date from start to end inclusive, ascending."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def today_in(tz_name: str = DEFAULT_TIMEZONE, now: Optional[datetime] = None) -> date:
    """Today's civil date in the given timezone."""
    now = now or datetime.now(timezone.utc)
    return civil_day(now, tz_name)
