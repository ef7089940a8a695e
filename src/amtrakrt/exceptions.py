"""Error taxonomy for the Amtrak real-time converter.

Resolution and correlation misses are not errors; they surface as ``None``.
"""


class AmtrakRTError(Exception):
    """Base class for all converter errors."""


class FetchError(AmtrakRTError):
    """An upstream HTTP request failed."""


class DecryptError(AmtrakRTError):
    """The train feed ciphertext could not be decrypted."""


class ParseError(AmtrakRTError):
    """Upstream JSON, GeoJSON or a time string was malformed."""
