"""Static configuration for the Amtrak real-time converter."""

import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Tuple

# Upstream endpoints
TRAINS_DATA_URL = os.getenv(
    "TRAINS_DATA_URL",
    "https://maps.amtrak.com/services/MapDataService/trains/getTrainsData",
)
ASM_URL = os.getenv("ASM_URL", "https://asm-backend.transitdocs.com/map")
ADVISORIES_URL = os.getenv(
    "ADVISORIES_URL",
    "https://www.pacificsurfliner.com/plan-your-trip/alerts/travel-advisories/",
)
AMTRAK_GTFS_URL = os.getenv(
    "AMTRAK_GTFS_URL", "https://content.amtrak.com/content/gtfs/GTFS.zip"
)
TRAIN_STATUS_URL = os.getenv(
    "TRAIN_STATUS_URL", "https://amtraktime.catenarymaps.org/amtrakstatus"
)

REQUEST_TIMEOUT = 20  # seconds
MAX_WORKERS = 8

GTFS_RT_VERSION = "2.0"

# One-letter zone codes used by the train feed. Anything else is read as Eastern.
TIMEZONE_CODES: Mapping[str, str] = MappingProxyType(
    {
        "E": "America/New_York",
        "C": "America/Chicago",
        "M": "America/Denver",
        "P": "America/Los_Angeles",
        "A": "America/Phoenix",
    }
)
DEFAULT_TIMEZONE = "America/New_York"

# start_date and entity ids are expressed in the schedule's home zone
SCHEDULE_TIMEZONE = "America/New_York"


@dataclass(frozen=True)
class RouteOverride:
    """Direct identity rule for a route display name."""
    route_id: str
    trip_id_from_train_number: bool = True


# San Joaquins trips are published with the train number as trip_id
ROUTE_OVERRIDES: Mapping[str, RouteOverride] = MappingProxyType(
    {
        "San Joaquins": RouteOverride(route_id="SJ2"),
    }
)

HEADING_DEGREES: Mapping[str, float] = MappingProxyType(
    {
        "N": 0.001,
        "NE": 45.0,
        "E": 90.0,
        "SE": 135.0,
        "S": 180.0,
        "SW": 225.0,
        "W": 270.0,
        "NW": 315.0,
    }
)

MPH_TO_MPS = 0.44704
MAX_STATIONS = 100

CAPITAL_CORRIDOR_ROUTE_ID = "84"

# Advisory page
ADVISORY_ROUTE_NAME = "Pacific Surfliner"
ADVISORY_ID_PREFIX = "PAC_SURF_"
STRICT_SECTION_MARKERS: Tuple[str, ...] = ("Service Updates", "Station Notices")
HIGHLIGHT_CLASS = "u-textColor--orange"
SUBSECTION_KEYWORDS: Tuple[str, ...] = ("southbound", "northbound")


@dataclass(frozen=True)
class Settings:
    """Tunables for one pipeline instance."""
    trains_data_url: str = TRAINS_DATA_URL
    asm_url: str = ASM_URL
    advisories_url: str = ADVISORIES_URL
    train_status_url: str = TRAIN_STATUS_URL
    request_timeout: float = REQUEST_TIMEOUT
    max_workers: int = MAX_WORKERS
    schedule_timezone: str = SCHEDULE_TIMEZONE
    route_overrides: Mapping[str, RouteOverride] = field(default_factory=lambda: ROUTE_OVERRIDES)
    include_advisories: bool = True


SETTINGS = Settings()
