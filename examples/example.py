"""Example usage of AmtrakRealtime."""

import importlib
import logging
import os
import sys
from pathlib import Path

import requests

# Add src to path so we can import amtrakrt
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from amtrakrt import AmtrakRealtime, AmtrakRTError, GTFSLoader, filter_capital_corridor

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def load_decryptor(spec: str):
    """
    Import a decryption function given as "module:function".

    Args:
        spec: Import path of a callable taking ciphertext and returning plaintext
    """
    module_name, _, function_name = spec.partition(":")
    return getattr(importlib.import_module(module_name), function_name)


def print_advisories(converter: AmtrakRealtime):
    """Scrape and display the Pacific Surfliner advisories only."""
    advisories = converter.fetch_advisories()
    print(f"\nPACIFIC SURFLINER ADVISORIES ({len(advisories)}):")
    print("-" * 70)
    for advisory in advisories:
        print(f"\n[{advisory.category}] {advisory.title} ({advisory.id})")
        print(f"  {advisory.description[:200]}")


def print_feeds(converter: AmtrakRealtime, drop_capital_corridor: bool = False):
    """
    Run one cycle and display a summary of the three feeds.

    Args:
        converter: Configured converter with a decryptor
        drop_capital_corridor: Remove Capital Corridor trains from the output
    """
    joined = converter.fetch_joined()
    if drop_capital_corridor:
        joined = filter_capital_corridor(joined)

    vehicles = [e for e in joined.entity if e.HasField("vehicle")]
    trips = [e for e in joined.entity if e.HasField("trip_update")]
    alerts = [e for e in joined.entity if e.HasField("alert")]

    print(f"\n{'='*70}")
    print(f"Feed timestamp: {joined.header.timestamp}")
    print(f"Vehicles: {len(vehicles)}  Trip updates: {len(trips)}  Alerts: {len(alerts)}")
    print(f"{'='*70}\n")

    for entity in trips[:10]:
        trip = entity.trip_update.trip
        stops = entity.trip_update.stop_time_update
        print(f"{entity.id}: route {trip.route_id or '?'} trip {trip.trip_id or '?'} ({len(stops)} stops)")

    for entity in alerts:
        text = entity.alert.description_text.translation[0].text if entity.alert.description_text.translation else ""
        print(f"\nALERT {entity.id}:")
        print(f"  {text[:200]}")


if __name__ == "__main__":
    session = requests.Session()

    print("Loading GTFS data... (this may take a minute)")
    schedule = GTFSLoader()
    schedule.load_from_url(session=session)

    decryptor_spec = os.getenv("AMTRAK_DECRYPTOR")
    decrypt = load_decryptor(decryptor_spec) if decryptor_spec else None
    converter = AmtrakRealtime(schedule, session=session, decrypt=decrypt)

    try:
        if decrypt is None:
            # The train feed needs a decryptor; advisories do not
            print("AMTRAK_DECRYPTOR not set (expected module:function), showing advisories only")
            print_advisories(converter)
        else:
            print_feeds(converter, drop_capital_corridor="--no-capital-corridor" in sys.argv[1:])
    except AmtrakRTError as e:
        logger.error(f"Failed to build feeds: {e}", exc_info=True)
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        converter.cleanup()
