"""Data models for the Amtrak real-time converter."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional


@dataclass
class Route:
    """A route from the static schedule."""
    route_id: str
    long_name: Optional[str] = None
    short_name: Optional[str] = None


@dataclass
class Trip:
    """A scheduled trip from the static schedule."""
    trip_id: str
    route_id: str
    service_id: str
    short_name: Optional[str] = None


@dataclass
class ServiceCalendar:
    """Weekday applicability flags for one service_id."""
    service_id: str
    monday: bool = False
    tuesday: bool = False
    wednesday: bool = False
    thursday: bool = False
    friday: bool = False
    saturday: bool = False
    sunday: bool = False

    def runs_on(self, weekday: int) -> bool:
        """Check the flag for a weekday (Monday == 0, as datetime.weekday())."""
        flags = (
            self.monday,
            self.tuesday,
            self.wednesday,
            self.thursday,
            self.friday,
            self.saturday,
            self.sunday,
        )
        return flags[weekday]


@dataclass
class RawStopRecord:
    """One per-stop sub-record from the train feed."""
    code: str
    tz: str  # One-letter zone code, e.g. "P"
    scheduled_arrival: Optional[str] = None
    scheduled_departure: Optional[str] = None
    estimated_arrival: Optional[str] = None
    estimated_departure: Optional[str] = None
    actual_arrival: Optional[str] = None  # "postarr" in the feed
    actual_departure: Optional[str] = None  # "postdep" in the feed
    bus: bool = False
    auto_arrival: bool = False
    auto_departure: bool = False
    scheduled_comment: Optional[str] = None
    estimated_arrival_comment: Optional[str] = None
    estimated_departure_comment: Optional[str] = None


@dataclass
class RawVehicleRecord:
    """One train from the decrypted train feed."""
    train_number: str
    route_name: Optional[str]
    origin_tz: str
    origin_departure: str  # "11/18/2023 4:58:09 PM"
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    speed: Optional[float] = None  # m/s
    bearing: Optional[float] = None  # degrees
    updated_at: Optional[str] = None
    stops: List[RawStopRecord] = field(default_factory=list)


@dataclass
class ResolvedIdentity:
    """Schedule identity for one train on one service day."""
    train_number: str
    start_date: str  # YYYYMMDD in the schedule's home zone
    origin_date: date  # Calendar date at the origin, in the origin's zone
    origin_weekday: int
    trip_id: Optional[str] = None
    route_id: Optional[str] = None

    @property
    def entity_id(self) -> str:
        return f"{self.start_date}-{self.train_number}"


@dataclass
class StopTimeEvent:
    """An arrival or departure estimate in absolute time."""
    time: int  # Unix timestamp
    delay: Optional[int] = None  # Seconds, only set when interpolated


@dataclass
class StopTimeUpdate:
    """Reconciled arrival/departure for one stop."""
    stop_id: str
    arrival: Optional[StopTimeEvent] = None
    departure: Optional[StopTimeEvent] = None


@dataclass
class CorrelatedAlert:
    """Secondary-feed alert text attached to one train."""
    description: str
    route_id: Optional[str] = None
    trip_id: Optional[str] = None
    start_date: Optional[str] = None


@dataclass
class Advisory:
    """An alert scraped from the advisory web page."""
    id: str
    title: str
    description: str
    category: str
    route_id: Optional[str] = None


@dataclass
class StatusStop:
    """One stop of a per-train status document."""
    code: str
    stop_number: int
    name: str
    time_zone: str
    scheduled_arrival: Optional[datetime] = None
    scheduled_departure: Optional[datetime] = None
    estimated_arrival: Optional[datetime] = None
    estimated_departure: Optional[datetime] = None


@dataclass
class TrainStatus:
    """Per-train status document from the train status service."""
    id: str
    number: str
    service_date: date
    route_name: str
    origin_code: str
    destination_code: str
    display_message: Optional[str] = None
    stops: List[StatusStop] = field(default_factory=list)
