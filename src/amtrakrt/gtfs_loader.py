"""GTFS static data loader for the Amtrak schedule."""

import csv
import io
import logging
import zipfile
from typing import Dict, List, Optional

import requests

from .config import AMTRAK_GTFS_URL, REQUEST_TIMEOUT
from .exceptions import FetchError
from .models import Route, ServiceCalendar, Trip

logger = logging.getLogger(__name__)

WEEKDAY_COLUMNS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


class GTFSLoader:
    """Loads and indexes the route, trip and calendar tables of a GTFS feed."""

    def __init__(self):
        """Initialize the GTFS loader."""
        self.routes: Dict[str, Route] = {}
        self.trips: Dict[str, Trip] = {}
        self.calendars: Dict[str, ServiceCalendar] = {}
        self.route_ids_by_long_name: Dict[str, str] = {}  # long_name -> route_id
        self.trip_ids_by_short_name: Dict[str, List[str]] = {}  # short_name -> [trip_ids]

    def load_from_url(self, url: str = AMTRAK_GTFS_URL, session: Optional[requests.Session] = None) -> None:
        """Download and load the GTFS zip."""
        logger.info(f"Downloading GTFS data from {url}")
        http = session or requests
        try:
            response = http.get(url, timeout=REQUEST_TIMEOUT * 3)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to load GTFS data: {e}")
            raise FetchError(f"GTFS download failed: {e}") from e

        self.load_from_bytes(response.content)

    def load_from_bytes(self, data: bytes) -> None:
        """Load GTFS tables from the bytes of a zip archive."""
        with zipfile.ZipFile(io.BytesIO(data)) as zip_file:
            self._load_routes(zip_file.read("routes.txt").decode("utf-8-sig"))
            self._load_trips(zip_file.read("trips.txt").decode("utf-8-sig"))
            self._load_calendar(zip_file.read("calendar.txt").decode("utf-8-sig"))
        logger.info(
            f"Loaded {len(self.routes)} routes, {len(self.trips)} trips "
            f"and {len(self.calendars)} calendars"
        )

    def load_from_files(self, routes_path: str, trips_path: str, calendar_path: str) -> None:
        """Load GTFS data from local CSV files."""
        logger.info("Loading GTFS data from local files")
        with open(routes_path, "r", encoding="utf-8-sig") as f:
            self._load_routes(f.read())
        with open(trips_path, "r", encoding="utf-8-sig") as f:
            self._load_trips(f.read())
        with open(calendar_path, "r", encoding="utf-8-sig") as f:
            self._load_calendar(f.read())
        logger.info(f"Loaded {len(self.routes)} routes and {len(self.trips)} trips")

    def _load_routes(self, csv_content: str) -> None:
        """Parse routes.txt."""
        reader = csv.DictReader(io.StringIO(csv_content))
        for row in reader:
            route = Route(
                route_id=row["route_id"],
                long_name=row.get("route_long_name") or None,
                short_name=row.get("route_short_name") or None,
            )
            self.routes[route.route_id] = route
            if route.long_name:
                self.route_ids_by_long_name[route.long_name] = route.route_id

    def _load_trips(self, csv_content: str) -> None:
        """Parse trips.txt, keeping file order for trips sharing a short name."""
        reader = csv.DictReader(io.StringIO(csv_content))
        for row in reader:
            trip = Trip(
                trip_id=row["trip_id"],
                route_id=row["route_id"],
                service_id=row["service_id"],
                short_name=row.get("trip_short_name") or None,
            )
            self.trips[trip.trip_id] = trip
            if trip.short_name:
                self.trip_ids_by_short_name.setdefault(trip.short_name, []).append(trip.trip_id)

    def _load_calendar(self, csv_content: str) -> None:
        """Parse calendar.txt."""
        reader = csv.DictReader(io.StringIO(csv_content))
        for row in reader:
            flags = {day: row.get(day, "0").strip() == "1" for day in WEEKDAY_COLUMNS}
            calendar = ServiceCalendar(service_id=row["service_id"], **flags)
            self.calendars[calendar.service_id] = calendar

    def get_trip(self, trip_id: str) -> Trip:
        """Get trip by trip_id."""
        if trip_id not in self.trips:
            raise ValueError(f"Trip {trip_id} not found")
        return self.trips[trip_id]

    def get_calendar(self, service_id: str) -> ServiceCalendar:
        """Get the service calendar for a service_id."""
        if service_id not in self.calendars:
            raise ValueError(f"Service {service_id} not found")
        return self.calendars[service_id]

    def route_id_for_long_name(self, long_name: str) -> Optional[str]:
        """Exact lookup of a route by its long name."""
        return self.route_ids_by_long_name.get(long_name)

    def trip_ids_for_short_name(self, short_name: str) -> List[str]:
        """All trip_ids sharing a short name, in trips.txt order."""
        return list(self.trip_ids_by_short_name.get(short_name, []))

    def clear(self) -> None:
        """Clear all loaded data to free memory."""
        self.routes.clear()
        self.trips.clear()
        self.calendars.clear()
        self.route_ids_by_long_name.clear()
        self.trip_ids_by_short_name.clear()
        logger.info("Cleared GTFS data from memory")
