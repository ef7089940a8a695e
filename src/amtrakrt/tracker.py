"""Main entry points: one assembly cycle of the Amtrak GTFS-Realtime feeds."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

import requests
from google.transit import gtfs_realtime_pb2

from .advisories import parse_advisories
from .amtrak_client import AmtrakClient, Decryptor
from .config import ADVISORY_ROUTE_NAME, SETTINGS, Settings
from .exceptions import FetchError
from .feed import FeedResults, assemble, parse_feature, split_views
from .gtfs_loader import GTFSLoader
from .models import Advisory
from .resolver import TripResolver

logger = logging.getLogger(__name__)


class AmtrakRealtime:
    """
    Converts the Amtrak train feed into GTFS-Realtime.

    This class provides methods to:
    - Build the unified feed (one entity per train plus advisory alerts)
    - Split it into vehicle position, trip update and alert feeds
    - Scrape the Pacific Surfliner advisory page on its own
    """

    def __init__(
        self,
        schedule: GTFSLoader,
        session: Optional[requests.Session] = None,
        decrypt: Optional[Decryptor] = None,
        settings: Settings = SETTINGS,
    ):
        """
        Initialize the converter.

        Args:
            schedule: Loaded Amtrak GTFS schedule.
            session: HTTP session shared by all fetches.
            decrypt: Opaque train feed decryptor (ciphertext -> plaintext).
            settings: Endpoints, timeouts and resolution tables.
        """
        self.gtfs_loader = schedule
        self.settings = settings
        self.client = AmtrakClient(session=session, decrypt=decrypt, settings=settings)
        self.resolver = TripResolver(
            schedule,
            overrides=settings.route_overrides,
            schedule_timezone=settings.schedule_timezone,
        )

    def fetch_advisories(self) -> List[Advisory]:
        """
        Scrape the advisory page.

        Returns:
            List of Advisory objects; empty if the route is not in the
            schedule or the page cannot be fetched.
        """
        route_id = self.gtfs_loader.route_id_for_long_name(ADVISORY_ROUTE_NAME)
        if route_id is None:
            logger.debug(f"No {ADVISORY_ROUTE_NAME} route in schedule, skipping advisories")
            return []

        try:
            html = self.client.fetch_advisories_html()
        except FetchError as e:
            logger.warning(f"Advisory page unavailable: {e}")
            return []
        return parse_advisories(html, route_id)

    def fetch_joined(self) -> gtfs_realtime_pb2.FeedMessage:
        """
        Run one cycle and return the unified feed.

        The train feed, the secondary alerts feed and the advisory page are
        fetched concurrently. Only a train feed failure aborts the cycle.

        Raises:
            FetchError, DecryptError, ParseError: If the train feed fails.
        """
        with ThreadPoolExecutor(max_workers=3) as executor:
            trains_future = executor.submit(self.client.get_train_features)
            index_future = executor.submit(self.client.load_asm_index)
            advisories_future = None
            if self.settings.include_advisories:
                advisories_future = executor.submit(self.fetch_advisories)

            features = trains_future.result()
            index = index_future.result()
            advisories = advisories_future.result() if advisories_future else []

        records = []
        for feature in features:
            record = parse_feature(feature)
            if record is not None:
                records.append(record)

        return assemble(records, self.resolver, index, advisories, self.settings.max_workers)

    def fetch(self) -> FeedResults:
        """Run one cycle and return the three feeds."""
        return split_views(self.fetch_joined())

    def cleanup(self) -> None:
        """Release resources and clear caches."""
        self.client.clear_cache()
        logger.info("Cleaned up converter resources")


def fetch_amtrak_gtfs_rt_joined(
    schedule: GTFSLoader,
    session: Optional[requests.Session] = None,
    decrypt: Optional[Decryptor] = None,
    settings: Settings = SETTINGS,
) -> gtfs_realtime_pb2.FeedMessage:
    """One cycle, unified feed."""
    return AmtrakRealtime(schedule, session, decrypt, settings).fetch_joined()


def fetch_amtrak_gtfs_rt(
    schedule: GTFSLoader,
    session: Optional[requests.Session] = None,
    decrypt: Optional[Decryptor] = None,
    settings: Settings = SETTINGS,
) -> FeedResults:
    """One cycle, split into vehicle positions, trip updates and alerts."""
    return AmtrakRealtime(schedule, session, decrypt, settings).fetch()
