"""Correlate secondary-feed train alerts with resolved trains.

The secondary feed lists trains by origin date and train id, each with zero
or more free-text alert records. Its origin date is a plain calendar date;
lookups must use the origin's local calendar date computed the same way or
they silently miss.
"""

import json
import logging
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .exceptions import ParseError
from .models import CorrelatedAlert, ResolvedIdentity

logger = logging.getLogger(__name__)

AsmKey = Tuple[date, str]

ASM_DATE_FORMAT = "%Y-%m-%d"


class AsmIndex:
    """Read-only (origin date, train id) -> alert texts index."""

    def __init__(self, entries: Optional[Mapping[AsmKey, Iterable[str]]] = None):
        frozen = {key: tuple(texts) for key, texts in (entries or {}).items()}
        self._entries: Mapping[AsmKey, Tuple[str, ...]] = MappingProxyType(frozen)

    def get(self, origin_date: date, train_id: str) -> Tuple[str, ...]:
        return self._entries.get((origin_date, train_id), ())

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self):
        return self._entries.keys()

    @classmethod
    def empty(cls) -> "AsmIndex":
        return cls()


def _parse_origin_date(text: Any) -> Optional[date]:
    if not isinstance(text, str):
        return None
    try:
        return datetime.strptime(text.strip(), ASM_DATE_FORMAT).date()
    except ValueError:
        return None


def build_index(documents: Iterable[Mapping[str, Any]]) -> AsmIndex:
    """
    Build the alert index from secondary-feed train documents.

    Alert texts keep their arrival order. Documents with an unparseable
    origin date or without a train id are skipped.
    """
    entries: Dict[AsmKey, List[str]] = {}
    skipped = 0

    for document in documents:
        if not isinstance(document, Mapping):
            skipped += 1
            continue
        origin_date = _parse_origin_date(document.get("origin_date"))
        train_id = document.get("train_id")
        if origin_date is None or train_id is None:
            skipped += 1
            continue

        for alert in document.get("alerts") or []:
            text = alert.get("text") if isinstance(alert, Mapping) else None
            if isinstance(text, str):
                entries.setdefault((origin_date, str(train_id)), []).append(text)

    if skipped:
        logger.debug(f"Skipped {skipped} secondary-feed documents without date or train id")
    logger.debug(f"Built alert index with {len(entries)} keys")
    return AsmIndex(entries)


def parse_asm_payload(text: str) -> AsmIndex:
    """Parse the secondary feed body (a JSON list of train documents)."""
    try:
        documents = json.loads(text)
    except ValueError as e:
        raise ParseError(f"Secondary feed is not JSON: {e}") from e
    if not isinstance(documents, list):
        raise ParseError("Secondary feed is not a list of trains")
    return build_index(documents)


def correlate(index: AsmIndex, train_number: str, origin_date: date) -> Optional[str]:
    """Join all alert texts for one train and date, or None on a miss."""
    texts = index.get(origin_date, train_number)
    if not texts:
        return None
    return "\n\n".join(texts)


def correlated_alert(index: AsmIndex, identity: ResolvedIdentity) -> Optional[CorrelatedAlert]:
    """Alert for a resolved train, informed by its route and trip."""
    description = correlate(index, identity.train_number, identity.origin_date)
    if description is None:
        return None
    return CorrelatedAlert(
        description=description,
        route_id=identity.route_id,
        trip_id=identity.trip_id,
        start_date=identity.start_date,
    )
