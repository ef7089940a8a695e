"""Shared schedule and feed fixtures for the test suite."""

import json
import sys
from pathlib import Path

# Add src to path so we can import amtrakrt
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from amtrakrt.gtfs_loader import GTFSLoader

ROUTES_CSV = """route_id,agency_id,route_short_name,route_long_name,route_type
88,51,,Pacific Surfliner,2
40,51,,Northeast Regional,2
84,51,,Capitol Corridor,2
99,51,,San Joaquins,2
"""

TRIPS_CSV = """route_id,service_id,trip_id,trip_short_name
88,WKDY,T595A,595
88,WKND,T595B,595
40,DAILY1,T171A,171
40,DAILY2,T171B,171
88,WKDY,T777,777
40,WEDONLY,T300A,300
40,WEDONLY,T300B,300
99,DAILY1,T711X,711
84,DAILY1,T527,527
"""

CALENDAR_CSV = """service_id,monday,tuesday,wednesday,thursday,friday,saturday,sunday,start_date,end_date
WKDY,1,1,1,1,1,0,0,20240101,20261231
WKND,0,0,0,0,0,1,1,20240101,20261231
DAILY1,1,1,1,1,1,1,1,20240101,20261231
DAILY2,1,1,1,1,1,1,1,20240101,20261231
WEDONLY,0,0,1,0,0,0,0,20240101,20261231
"""


def make_schedule() -> GTFSLoader:
    """A small schedule covering every resolution branch."""
    loader = GTFSLoader()
    loader._load_routes(ROUTES_CSV)
    loader._load_trips(TRIPS_CSV)
    loader._load_calendar(CALENDAR_CSV)
    return loader


def stop_json(**fields) -> str:
    """A StationN property value as the feed embeds it."""
    record = {"bus": False, "schcmnt": "", "autoarr": False, "autodep": False}
    record.update(fields)
    return json.dumps(record)


def make_feature(
    train_number="595",
    route_name="Pacific Surfliner",
    origin_tz="P",
    origin_departure="5/13/2024 9:01:00 PM",
    coordinates=(-117.169576, 32.716169),
    stations=None,
    **extra,
) -> dict:
    """A decrypted train feed feature."""
    properties = {
        "TrainNum": train_number,
        "RouteName": route_name,
        "OriginTZ": origin_tz,
        "OrigSchDep": origin_departure,
        "Velocity": "10",
        "Heading": "NW",
        "updated_at": "5/13/2024 9:30:00 PM",
    }
    for i, station in enumerate(stations or []):
        properties[f"Station{i}"] = station
    properties.update(extra)

    geometry = None
    if coordinates is not None:
        geometry = {"type": "Point", "coordinates": list(coordinates)}
    return {"type": "Feature", "geometry": geometry, "properties": properties}


SAN_DIEGO_STOPS = [
    stop_json(code="SAN", tz="P", schdep="05/13/2024 21:01:00", postdep="05/13/2024 21:03:00"),
    stop_json(
        code="OLT",
        tz="P",
        scharr="05/13/2024 21:09:00",
        schdep="05/13/2024 21:10:00",
        estdep="05/13/2024 21:12:00",
    ),
    stop_json(
        code="SOL",
        tz="P",
        scharr="05/13/2024 21:39:00",
        schdep="05/13/2024 21:40:00",
        estarr="05/13/2024 21:41:00",
        estdep="05/13/2024 21:42:00",
    ),
]
