"""Fetches the Amtrak train feed, the secondary alerts feed and the advisory page."""

import json
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests

from .asm import AsmIndex, parse_asm_payload
from .config import SETTINGS, Settings
from .exceptions import DecryptError, FetchError, ParseError

logger = logging.getLogger(__name__)

# Opaque decryption capability: ciphertext -> plaintext GeoJSON
Decryptor = Callable[[str], str]


class AmtrakClient:
    """HTTP and decryption boundary for one pipeline instance."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        decrypt: Optional[Decryptor] = None,
        settings: Settings = SETTINGS,
    ):
        """
        Initialize the client.

        Args:
            session: HTTP session to use. A new one is created if None.
            decrypt: Function turning the train feed ciphertext into plaintext.
            settings: Endpoint URLs and timeouts.
        """
        self.session = session or requests.Session()
        self.decrypt = decrypt
        self.settings = settings
        self._cache: Dict[str, Tuple[str, float]] = {}  # url -> (text, timestamp)
        self._cache_ttl = 300  # Advisory page changes a few times a day

    def _get_text(self, url: str) -> str:
        logger.debug(f"Fetching {url}")
        try:
            response = self.session.get(url, timeout=self.settings.request_timeout)
            response.raise_for_status()
            return response.text
        except requests.RequestException as e:
            raise FetchError(f"Failed to fetch {url}: {e}") from e

    def fetch_trains_text(self) -> str:
        """Fetch the encrypted train feed."""
        return self._get_text(self.settings.trains_data_url)

    def fetch_asm_text(self) -> str:
        """Fetch the secondary alerts feed."""
        return self._get_text(self.settings.asm_url)

    def fetch_advisories_html(self) -> str:
        """Fetch the advisory page, cached for a few minutes."""
        url = self.settings.advisories_url
        now = time.time()
        if url in self._cache:
            text, timestamp = self._cache[url]
            if now - timestamp < self._cache_ttl:
                logger.debug(f"Using cached data for {url}")
                return text

        text = self._get_text(url)
        self._cache[url] = (text, now)
        return text

    def clear_cache(self) -> None:
        """Manually clear the cache."""
        self._cache.clear()

    def decrypt_trains(self, ciphertext: str) -> str:
        """
        Decrypt the train feed.

        Raises:
            DecryptError: If no decryptor is configured or decryption fails.
        """
        if self.decrypt is None:
            raise DecryptError("No decryptor configured for the train feed")
        try:
            plaintext = self.decrypt(ciphertext)
        except DecryptError:
            raise
        except Exception as e:
            raise DecryptError(f"Failed to decrypt train feed: {e}") from e
        if not isinstance(plaintext, str):
            raise DecryptError(f"Decryptor returned {type(plaintext).__name__}, not text")
        return plaintext

    @staticmethod
    def parse_trains(plaintext: str) -> List[Dict[str, Any]]:
        """
        Parse decrypted GeoJSON into its list of features.

        Raises:
            ParseError: If the text is not a GeoJSON FeatureCollection.
        """
        try:
            document = json.loads(plaintext)
        except ValueError as e:
            raise ParseError(f"Train feed is not JSON: {e}") from e

        if isinstance(document, dict) and "TrainsDataResponse" in document:
            document = document["TrainsDataResponse"]
        if not isinstance(document, dict) or document.get("type") != "FeatureCollection":
            raise ParseError("Train feed is not a GeoJSON FeatureCollection")

        features = document.get("features")
        if not isinstance(features, list):
            raise ParseError("FeatureCollection has no features list")
        return [feature for feature in features if isinstance(feature, dict)]

    def get_train_features(self) -> List[Dict[str, Any]]:
        """Fetch, decrypt and parse the train feed. Any failure is fatal."""
        try:
            return self.parse_trains(self.decrypt_trains(self.fetch_trains_text()))
        except (FetchError, DecryptError, ParseError) as e:
            logger.error(f"Train feed unavailable: {e}")
            raise

    def load_asm_index(self) -> AsmIndex:
        """Fetch and index the secondary alerts feed; failures give an empty index."""
        try:
            return parse_asm_payload(self.fetch_asm_text())
        except (FetchError, ParseError) as e:
            logger.warning(f"Secondary alerts feed unavailable: {e}")
            return AsmIndex.empty()
