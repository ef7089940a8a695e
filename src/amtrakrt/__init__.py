"""amtrakrt - Amtrak train feed to GTFS-Realtime converter."""

__version__ = "0.1.0"

from .models import Advisory, RawStopRecord, RawVehicleRecord, ResolvedIdentity, StatusStop, StopTimeUpdate, TrainStatus
from .exceptions import AmtrakRTError, DecryptError, FetchError, ParseError
from .gtfs_loader import GTFSLoader
from .amtrak_client import AmtrakClient
from .feed import FeedResults, filter_capital_corridor
from .tracker import AmtrakRealtime, fetch_amtrak_gtfs_rt, fetch_amtrak_gtfs_rt_joined
from .train_status import get_train_status, query_train_statuses

__all__ = [
    "AmtrakRealtime",
    "fetch_amtrak_gtfs_rt",
    "fetch_amtrak_gtfs_rt_joined",
    "filter_capital_corridor",
    "get_train_status",
    "query_train_statuses",
    "FeedResults",
    "GTFSLoader",
    "AmtrakClient",
    "Advisory",
    "RawStopRecord",
    "RawVehicleRecord",
    "ResolvedIdentity",
    "StopTimeUpdate",
    "StatusStop",
    "TrainStatus",
    "AmtrakRTError",
    "FetchError",
    "DecryptError",
    "ParseError",
]
