"""Assemble GTFS-Realtime feeds from resolved trains and advisories."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional

from google.transit import gtfs_realtime_pb2

from .asm import AsmIndex, correlated_alert
from .config import CAPITAL_CORRIDOR_ROUTE_ID, GTFS_RT_VERSION, HEADING_DEGREES, MAX_STATIONS, MAX_WORKERS, MPH_TO_MPS
from .exceptions import ParseError
from .models import Advisory, CorrelatedAlert, RawVehicleRecord, ResolvedIdentity, StopTimeEvent, StopTimeUpdate
from .resolver import TripResolver
from .stop_times import parse_stop_records, reconcile
from .timeparse import parse_origin_departure, parse_updated_at

logger = logging.getLogger(__name__)

LANGUAGE = "en"


@dataclass
class FeedResults:
    """The three outward views of one assembled cycle."""
    vehicle_positions: gtfs_realtime_pb2.FeedMessage
    trip_updates: gtfs_realtime_pb2.FeedMessage
    alerts: gtfs_realtime_pb2.FeedMessage


def _string_property(properties: Mapping[str, Any], key: str) -> Optional[str]:
    value = properties.get(key)
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def get_speed(properties: Mapping[str, Any]) -> Optional[float]:
    """Velocity in mph to m/s."""
    text = _string_property(properties, "Velocity")
    if text is None:
        return None
    try:
        return float(text) * MPH_TO_MPS
    except ValueError:
        logger.debug(f"Ignoring velocity {text!r}")
        return None


def get_bearing(properties: Mapping[str, Any]) -> Optional[float]:
    """8-point compass heading to degrees."""
    heading = _string_property(properties, "Heading")
    if heading is None:
        return None
    return HEADING_DEGREES.get(heading.strip().upper())


def parse_feature(feature: Mapping[str, Any], max_stations: int = MAX_STATIONS) -> Optional[RawVehicleRecord]:
    """
    Turn one GeoJSON feature from the train feed into a RawVehicleRecord.

    Returns None when the feature has no train number or origin departure,
    since neither an entity id nor a schedule match can be formed without them.
    """
    properties = feature.get("properties")
    if not isinstance(properties, Mapping):
        logger.warning(f"Skipping feature with non-object properties: {feature.get('id')!r}")
        return None
    train_number = _string_property(properties, "TrainNum")
    origin_departure = _string_property(properties, "OrigSchDep")
    if not train_number or not origin_departure:
        logger.warning(f"Skipping feature without TrainNum/OrigSchDep: {feature.get('id')!r}")
        return None

    latitude = longitude = None
    geometry = feature.get("geometry")
    if not isinstance(geometry, Mapping):
        geometry = {}
    coordinates = geometry.get("coordinates")
    if geometry.get("type") == "Point" and isinstance(coordinates, (list, tuple)) and len(coordinates) >= 2:
        try:
            longitude, latitude = float(coordinates[0]), float(coordinates[1])
        except (TypeError, ValueError):
            logger.warning(f"Train {train_number} has unreadable coordinates {coordinates!r}")
    else:
        logger.debug(f"Train {train_number} has no point geometry")

    return RawVehicleRecord(
        train_number=train_number,
        route_name=_string_property(properties, "RouteName"),
        origin_tz=_string_property(properties, "OriginTZ") or "",
        origin_departure=origin_departure,
        latitude=latitude,
        longitude=longitude,
        speed=get_speed(properties),
        bearing=get_bearing(properties),
        updated_at=_string_property(properties, "updated_at"),
        stops=parse_stop_records(properties, max_stations),
    )


def make_header() -> gtfs_realtime_pb2.FeedHeader:
    """Feed header stamped with the current wall-clock time."""
    header = gtfs_realtime_pb2.FeedHeader()
    header.gtfs_realtime_version = GTFS_RT_VERSION
    header.incrementality = gtfs_realtime_pb2.FeedHeader.FULL_DATASET
    header.timestamp = int(time.time())
    return header


def _set_text(translated: gtfs_realtime_pb2.TranslatedString, text: str) -> None:
    translation = translated.translation.add()
    translation.text = text
    translation.language = LANGUAGE


def _fill_trip(trip: gtfs_realtime_pb2.TripDescriptor, identity: ResolvedIdentity) -> None:
    if identity.trip_id is not None:
        trip.trip_id = identity.trip_id
    if identity.route_id is not None:
        trip.route_id = identity.route_id
    trip.start_date = identity.start_date


def _fill_event(event: gtfs_realtime_pb2.TripUpdate.StopTimeEvent, source: StopTimeEvent) -> None:
    event.time = source.time
    if source.delay is not None:
        event.delay = source.delay


def _fill_stop_time_updates(trip_update: gtfs_realtime_pb2.TripUpdate, updates: Iterable[StopTimeUpdate]) -> None:
    for update in updates:
        stop_time = trip_update.stop_time_update.add()
        stop_time.stop_id = update.stop_id
        if update.arrival is not None:
            _fill_event(stop_time.arrival, update.arrival)
        if update.departure is not None:
            _fill_event(stop_time.departure, update.departure)


def _fill_correlated_alert(alert: gtfs_realtime_pb2.Alert, source: CorrelatedAlert) -> None:
    _set_text(alert.description_text, source.description)
    informed = alert.informed_entity.add()
    if source.route_id is not None:
        informed.route_id = source.route_id
        informed.trip.route_id = source.route_id
    if source.trip_id is not None:
        informed.trip.trip_id = source.trip_id
    if source.start_date is not None:
        informed.trip.start_date = source.start_date


def build_entity(
    record: RawVehicleRecord, resolver: TripResolver, index: Optional[AsmIndex] = None
) -> Optional[gtfs_realtime_pb2.FeedEntity]:
    """
    Resolve one train into a FeedEntity carrying vehicle, trip update and alert.

    Returns None only when the origin departure cannot be parsed.
    """
    try:
        origin = parse_origin_departure(record.origin_departure, record.origin_tz)
    except ParseError as e:
        logger.warning(f"Skipping train {record.train_number}: {e}")
        return None

    identity = resolver.resolve(record.train_number, record.route_name, origin)

    timestamp = None
    if record.updated_at is not None:
        try:
            timestamp = parse_updated_at(record.updated_at)
        except ParseError as e:
            logger.debug(f"Train {record.train_number}: {e}")

    entity = gtfs_realtime_pb2.FeedEntity()
    entity.id = identity.entity_id
    entity.is_deleted = False

    # Without a point there is no vehicle position to publish
    if record.latitude is not None and record.longitude is not None:
        vehicle = entity.vehicle
        _fill_trip(vehicle.trip, identity)
        if timestamp is not None:
            vehicle.timestamp = timestamp
        vehicle.position.latitude = record.latitude
        vehicle.position.longitude = record.longitude
        if record.speed is not None:
            vehicle.position.speed = record.speed
        if record.bearing is not None:
            vehicle.position.bearing = record.bearing

    trip_update = entity.trip_update
    _fill_trip(trip_update.trip, identity)
    if timestamp is not None:
        trip_update.timestamp = timestamp
    _fill_stop_time_updates(trip_update, reconcile(record.stops))

    if index is not None:
        alert = correlated_alert(index, identity)
        if alert is not None:
            _fill_correlated_alert(entity.alert, alert)

    return entity


def advisory_entity(advisory: Advisory) -> gtfs_realtime_pb2.FeedEntity:
    """Alert-only FeedEntity for a scraped advisory."""
    entity = gtfs_realtime_pb2.FeedEntity()
    entity.id = advisory.id
    entity.is_deleted = False

    alert = entity.alert
    alert.cause = gtfs_realtime_pb2.Alert.UNKNOWN_CAUSE
    alert.effect = gtfs_realtime_pb2.Alert.UNKNOWN_EFFECT
    informed = alert.informed_entity.add()
    if advisory.route_id is not None:
        informed.route_id = advisory.route_id
    _set_text(alert.header_text, advisory.title)
    _set_text(alert.description_text, advisory.description)
    return entity


def assemble(
    records: List[RawVehicleRecord],
    resolver: TripResolver,
    index: Optional[AsmIndex] = None,
    advisories: Iterable[Advisory] = (),
    max_workers: int = MAX_WORKERS,
) -> gtfs_realtime_pb2.FeedMessage:
    """
    Build the unified feed: one entity per train, then advisory alerts.

    Trains are resolved concurrently; entity order follows record order.
    """
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        entities = list(executor.map(lambda record: build_entity(record, resolver, index), records))

    unified = gtfs_realtime_pb2.FeedMessage()
    unified.header.CopyFrom(make_header())
    for entity in entities:
        if entity is not None:
            unified.entity.add().CopyFrom(entity)
    for advisory in advisories:
        unified.entity.add().CopyFrom(advisory_entity(advisory))

    logger.info(f"Assembled feed with {len(unified.entity)} entities from {len(records)} trains")
    return unified


def _view(unified: gtfs_realtime_pb2.FeedMessage, field_name: str) -> gtfs_realtime_pb2.FeedMessage:
    message = gtfs_realtime_pb2.FeedMessage()
    message.header.CopyFrom(unified.header)
    message.entity.extend(entity for entity in unified.entity if entity.HasField(field_name))
    return message


def split_views(unified: gtfs_realtime_pb2.FeedMessage) -> FeedResults:
    """Partition the unified feed into vehicle, trip update and alert views."""
    return FeedResults(
        vehicle_positions=_view(unified, "vehicle"),
        trip_updates=_view(unified, "trip_update"),
        alerts=_view(unified, "alert"),
    )


def _references_route(entity: gtfs_realtime_pb2.FeedEntity, route_id: str) -> bool:
    if entity.HasField("vehicle") and entity.vehicle.HasField("trip"):
        if entity.vehicle.trip.route_id == route_id:
            return True
    if entity.HasField("trip_update") and entity.trip_update.trip.route_id == route_id:
        return True
    return False


def filter_capital_corridor(
    message: gtfs_realtime_pb2.FeedMessage, route_id: str = CAPITAL_CORRIDOR_ROUTE_ID
) -> gtfs_realtime_pb2.FeedMessage:
    """
    Drop Capital Corridor vehicles and trips from a feed.

    The regional 511 feed publishes Capital Corridor with fresher positions,
    so consumers merging both feeds can remove the duplicate here.
    """
    filtered = gtfs_realtime_pb2.FeedMessage()
    filtered.header.CopyFrom(message.header)
    filtered.entity.extend(entity for entity in message.entity if not _references_route(entity, route_id))
    return filtered
