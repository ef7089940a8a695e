"""Reconcile per-stop feed records into arrival and departure estimates."""

import json
import logging
from typing import Any, List, Mapping, Optional

from .config import MAX_STATIONS
from .models import RawStopRecord, StopTimeEvent, StopTimeUpdate
from .timeparse import try_parse_stop_time

logger = logging.getLogger(__name__)

# StopTimeEvent.delay is an int32 on the wire
MIN_DELAY = -(2 ** 31)
MAX_DELAY = 2 ** 31 - 1

# feed key -> RawStopRecord attribute
_STOP_FIELDS = {
    "scharr": "scheduled_arrival",
    "schdep": "scheduled_departure",
    "estarr": "estimated_arrival",
    "estdep": "estimated_departure",
    "postarr": "actual_arrival",
    "postdep": "actual_departure",
    "schcmnt": "scheduled_comment",
    "estarrcmnt": "estimated_arrival_comment",
    "estdepcmnt": "estimated_departure_comment",
}


def parse_stop_record(value: Any) -> RawStopRecord:
    """
    Build a RawStopRecord from one "StationN" property.

    The feed embeds each stop as a JSON string; an already decoded mapping
    is accepted too.

    Raises:
        ValueError: If the value is not a stop object or lacks code/tz.
    """
    if isinstance(value, str):
        value = json.loads(value)
    if not isinstance(value, Mapping):
        raise ValueError(f"Stop record is {type(value).__name__}, not an object")

    code = value.get("code")
    tz = value.get("tz")
    if not isinstance(code, str) or not isinstance(tz, str):
        raise ValueError("Stop record is missing code or tz")

    record = RawStopRecord(
        code=code,
        tz=tz,
        bus=bool(value.get("bus", False)),
        auto_arrival=bool(value.get("autoarr", False)),
        auto_departure=bool(value.get("autodep", False)),
    )
    for key, attribute in _STOP_FIELDS.items():
        text = value.get(key)
        if isinstance(text, str) and text:
            setattr(record, attribute, text)
    return record


def parse_stop_records(properties: Mapping[str, Any], max_stations: int = MAX_STATIONS) -> List[RawStopRecord]:
    """Collect Station0..StationN sub-records in index order, skipping bad ones."""
    records: List[RawStopRecord] = []
    for i in range(max_stations):
        value = properties.get(f"Station{i}")
        if value is None:
            continue
        try:
            records.append(parse_stop_record(value))
        except ValueError as e:
            # json.JSONDecodeError is a ValueError too
            logger.warning(f"Error parsing stop record Station{i}: {e}")
    return records


def observed_time(actual: Optional[str], estimated: Optional[str], tz: str) -> Optional[int]:
    """Fallback policy for observed times: actual, else estimated, else None."""
    if actual is not None:
        return try_parse_stop_time(actual, tz)
    return try_parse_stop_time(estimated, tz)


def interpolated_arrival(previous: RawStopRecord, current: RawStopRecord) -> Optional[StopTimeEvent]:
    """
    Carry the previous stop's departure delay forward to this stop's arrival.

    Returns None unless the previous observed departure, the previous
    scheduled departure and this stop's scheduled arrival all parse.
    """
    previous_departure = observed_time(previous.actual_departure, previous.estimated_departure, previous.tz)
    if previous_departure is None:
        return None
    previous_scheduled = try_parse_stop_time(previous.scheduled_departure, previous.tz)
    if previous_scheduled is None:
        return None
    scheduled_arrival = try_parse_stop_time(current.scheduled_arrival, current.tz)
    if scheduled_arrival is None:
        return None

    delay = previous_departure - previous_scheduled
    if not MIN_DELAY <= delay <= MAX_DELAY:
        logger.warning(f"Ignoring implausible delay of {delay}s carried from stop {previous.code} to {current.code}")
        return None
    return StopTimeEvent(time=scheduled_arrival + delay, delay=delay)


def arrival_event(records: List[RawStopRecord], i: int) -> Optional[StopTimeEvent]:
    """Arrival policy: actual, else estimated, else interpolated from stop i-1."""
    record = records[i]
    observed = observed_time(record.actual_arrival, record.estimated_arrival, record.tz)
    if observed is not None:
        return StopTimeEvent(time=observed)
    if record.actual_arrival is not None or record.estimated_arrival is not None:
        # A reported but unparseable time is not replaced by a guess
        return None
    if i == 0:
        return None
    return interpolated_arrival(records[i - 1], record)


def departure_event(record: RawStopRecord) -> Optional[StopTimeEvent]:
    """Departure policy: actual, else estimated. Departures are never interpolated."""
    observed = observed_time(record.actual_departure, record.estimated_departure, record.tz)
    if observed is None:
        return None
    return StopTimeEvent(time=observed)


def reconcile(records: List[RawStopRecord]) -> List[StopTimeUpdate]:
    """
    Convert a train's stop records into stop time updates.

    Args:
        records: Stop records in route order.

    Returns:
        One StopTimeUpdate per record, in the same order.
    """
    return [
        StopTimeUpdate(
            stop_id=record.code,
            arrival=arrival_event(records, i),
            departure=departure_event(record),
        )
        for i, record in enumerate(records)
    ]
