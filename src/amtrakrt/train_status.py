"""Per-train status lookups from the train status service."""

import json
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import requests

from .config import SETTINGS, Settings
from .exceptions import FetchError, ParseError
from .models import StatusStop, TrainStatus

logger = logging.getLogger(__name__)

StatusKey = Tuple[str, date]

HEADERS = {
    "Referer": "https://www.amtrak.com/",
    "Accept": "application/json, text/plain, */*",
}


def _parse_datetime(value: Any) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _event_times(event: Optional[Mapping[str, Any]]) -> Tuple[Optional[datetime], Optional[datetime]]:
    """(scheduled, estimated) for an arrival or departure block."""
    if not event:
        return None, None
    scheduled = _parse_datetime((event.get("schedule") or {}).get("dateTime"))
    estimated = _parse_datetime((event.get("statusInfo") or {}).get("dateTime"))
    return scheduled, estimated


def parse_status_stop(stop: Mapping[str, Any]) -> StatusStop:
    station = stop["station"]
    scheduled_arrival, estimated_arrival = _event_times(stop.get("arrival"))
    scheduled_departure, estimated_departure = _event_times(stop.get("departure"))
    return StatusStop(
        code=station["code"],
        stop_number=int(stop["stopNumber"]),
        name=station["name"],
        time_zone=station["timeZone"],
        scheduled_arrival=scheduled_arrival,
        scheduled_departure=scheduled_departure,
        estimated_arrival=estimated_arrival,
        estimated_departure=estimated_departure,
    )


def parse_status_document(document: Mapping[str, Any]) -> List[TrainStatus]:
    """
    Parse a status response body.

    Raises:
        ParseError: If required fields are missing.
    """
    statuses: List[TrainStatus] = []
    try:
        for entry in document["data"]:
            service = entry["travelService"]
            summary = entry.get("statusSummary") or {}
            statuses.append(
                TrainStatus(
                    id=entry["id"],
                    number=service["number"],
                    service_date=date.fromisoformat(service["date"]),
                    route_name=service["name"]["description"],
                    origin_code=service["origin"]["code"],
                    destination_code=service["destination"]["code"],
                    display_message=summary.get("displayMessage"),
                    stops=[parse_status_stop(stop) for stop in entry.get("stops", [])],
                )
            )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ParseError(f"Malformed train status document: {e}") from e
    return statuses


def get_train_status(
    train_number: str,
    starting_date: date,
    session: requests.Session,
    settings: Settings = SETTINGS,
) -> List[TrainStatus]:
    """Fetch the status of one train on one service date."""
    params = {"trainnum": train_number, "starting_date": starting_date.strftime("%Y-%m-%d")}
    try:
        response = session.get(
            settings.train_status_url,
            params=params,
            headers=HEADERS,
            timeout=settings.request_timeout,
        )
        response.raise_for_status()
    except requests.RequestException as e:
        raise FetchError(f"Status request for train {train_number} failed: {e}") from e

    try:
        document = json.loads(response.text)
    except ValueError as e:
        raise ParseError(f"Status for train {train_number} is not JSON: {e}") from e
    return parse_status_document(document)


def query_train_statuses(
    trains: Iterable[StatusKey],
    session: Optional[requests.Session] = None,
    settings: Settings = SETTINGS,
) -> Dict[StatusKey, List[TrainStatus]]:
    """
    Fetch many train statuses concurrently.

    Args:
        trains: (train_number, service_date) pairs.

    Returns:
        Statuses keyed by the requested pair. Failed lookups are left out.
    """
    session = session or requests.Session()
    results: Dict[StatusKey, List[TrainStatus]] = {}

    with ThreadPoolExecutor(max_workers=settings.max_workers) as executor:
        futures = {
            executor.submit(get_train_status, number, day, session, settings): (number, day)
            for number, day in trains
        }
        for future in as_completed(futures):
            key = futures[future]
            try:
                results[key] = future.result()
            except (FetchError, ParseError) as e:
                logger.warning(f"Error fetching status for train {key[0]} on {key[1]}: {e}")

    return results
