"""Match raw trains to scheduled trips and routes."""

import logging
from datetime import datetime
from typing import List, Mapping, Optional

from .config import ROUTE_OVERRIDES, SCHEDULE_TIMEZONE, RouteOverride
from .gtfs_loader import GTFSLoader
from .models import ResolvedIdentity
from .timeparse import schedule_date

logger = logging.getLogger(__name__)


class TripResolver:
    """
    Resolves a train number and route display name to schedule identifiers.

    Display names listed in the override table bypass schedule matching.
    Every other train is matched by route long name and trip short name;
    when several trips share a short name, the origin weekday picks the
    trip whose service calendar runs that day.
    """

    def __init__(
        self,
        schedule: GTFSLoader,
        overrides: Mapping[str, RouteOverride] = ROUTE_OVERRIDES,
        schedule_timezone: str = SCHEDULE_TIMEZONE,
    ):
        self.schedule = schedule
        self.overrides = overrides
        self.schedule_timezone = schedule_timezone

    def resolve(self, train_number: str, route_name: Optional[str], origin: datetime) -> ResolvedIdentity:
        """
        Resolve one train.

        Args:
            train_number: Train number as reported by the feed, e.g. "711".
            route_name: Route display name, e.g. "San Joaquins".
            origin: Aware origin scheduled departure in the origin's zone.

        Returns:
            ResolvedIdentity; trip_id/route_id are None when nothing matched.
        """
        identity = ResolvedIdentity(
            train_number=train_number,
            start_date=schedule_date(origin, self.schedule_timezone),
            origin_date=origin.date(),
            origin_weekday=origin.weekday(),
        )

        override = self.overrides.get(route_name) if route_name else None
        if override is not None:
            identity.route_id = override.route_id
            if override.trip_id_from_train_number:
                identity.trip_id = train_number
            return identity

        if route_name:
            identity.route_id = self.schedule.route_id_for_long_name(route_name)
        identity.trip_id = self.resolve_trip_id(train_number, identity.origin_weekday)

        if identity.trip_id is None:
            logger.debug(f"No scheduled trip for train {train_number} ({route_name})")
        return identity

    def resolve_trip_id(self, short_name: str, weekday: int) -> Optional[str]:
        """Pick the trip_id for a short name running on the given weekday."""
        candidates = self.schedule.trip_ids_for_short_name(short_name)
        if not candidates:
            return None
        if len(candidates) == 1:
            return candidates[0]

        running = self._running_on(candidates, weekday)
        if not running:
            return None
        if len(running) > 1:
            logger.debug(f"Trips {running} all run on weekday {weekday}, using {running[0]}")
        return running[0]

    def _running_on(self, trip_ids: List[str], weekday: int) -> List[str]:
        running = []
        for trip_id in trip_ids:
            try:
                trip = self.schedule.get_trip(trip_id)
                calendar = self.schedule.get_calendar(trip.service_id)
            except ValueError as e:
                logger.debug(f"Skipping candidate {trip_id}: {e}")
                continue
            if calendar.runs_on(weekday):
                running.append(trip_id)
        return running
