"""Wall-clock string parsing for the train feed.

The feed reports every time as a local wall-clock string plus a one-letter
zone code. Stop times use a 24-hour clock ("12/11/2023 17:36:00"); the origin
departure and ``updated_at`` use a 12-hour clock ("11/18/2023 4:58:09 PM").

During a fall-back transition a wall-clock time happens twice. The later of
the two instants is always chosen, which is how the upstream system reports
clock time. Times inside a spring-forward gap do not exist and fail to parse.
"""

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo

from .config import DEFAULT_TIMEZONE, TIMEZONE_CODES
from .exceptions import ParseError

logger = logging.getLogger(__name__)

STOP_TIME_FORMAT = "%m/%d/%Y %H:%M:%S"
CLOCK_TIME_FORMAT = "%m/%d/%Y %I:%M:%S %p"


@lru_cache(maxsize=None)
def _zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def zone_for_code(code: Optional[str]) -> ZoneInfo:
    """Map a one-letter zone code to a timezone. Unknown codes mean Eastern."""
    name = TIMEZONE_CODES.get((code or "").strip().upper())
    if name is None:
        logger.debug(f"Unknown timezone code {code!r}, using {DEFAULT_TIMEZONE}")
        name = DEFAULT_TIMEZONE
    return _zone(name)


def localize(naive: datetime, zone: ZoneInfo) -> datetime:
    """
    Attach a timezone to a naive wall-clock time.

    Args:
        naive: Local wall-clock time without tzinfo.
        zone: Zone the wall clock belongs to.

    Returns:
        Aware datetime. Ambiguous times resolve to the later instant.

    Raises:
        ParseError: If the wall-clock time does not exist in the zone.
    """
    aware = naive.replace(tzinfo=zone, fold=1)
    round_trip = aware.astimezone(timezone.utc).astimezone(zone)
    if round_trip.replace(tzinfo=None) != naive:
        raise ParseError(f"{naive.isoformat()} does not exist in {zone.key}")
    return aware


def _strptime(text: str, fmt: str) -> datetime:
    if not isinstance(text, str):
        raise ParseError(f"Expected a time string, got {type(text).__name__}")
    try:
        return datetime.strptime(text.strip(), fmt)
    except ValueError as e:
        raise ParseError(f"Unparseable time {text!r}: {e}") from e


def parse_stop_time(text: str, code: Optional[str]) -> int:
    """Parse a 24-hour stop time string into a Unix timestamp."""
    naive = _strptime(text, STOP_TIME_FORMAT)
    return int(localize(naive, zone_for_code(code)).timestamp())


def try_parse_stop_time(text: Optional[str], code: Optional[str]) -> Optional[int]:
    """Like parse_stop_time, but a missing or malformed string yields None."""
    if text is None:
        return None
    try:
        return parse_stop_time(text, code)
    except ParseError as e:
        logger.debug(f"Ignoring stop time: {e}")
        return None


def parse_origin_departure(text: str, code: Optional[str]) -> datetime:
    """
    Parse the origin scheduled departure into an aware local datetime.

    The result's date() and weekday() are the origin local date and weekday.
    """
    naive = _strptime(text, CLOCK_TIME_FORMAT)
    return localize(naive, zone_for_code(code))


def parse_updated_at(text: str) -> int:
    """Parse the feed's updated_at string, which is always Eastern time."""
    naive = _strptime(text, CLOCK_TIME_FORMAT)
    return int(localize(naive, _zone(DEFAULT_TIMEZONE)).timestamp())


def schedule_date(origin: datetime, zone_name: str) -> str:
    """Format the origin instant as YYYYMMDD in the schedule's home zone."""
    return origin.astimezone(_zone(zone_name)).strftime("%Y%m%d")
