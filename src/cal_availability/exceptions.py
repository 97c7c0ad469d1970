"""
Availability Service Exceptions

Only the exhausted-search condition and slot-source transport failures
leave the engine; intent parsing problems are absorbed by the fallback chain.
"""


class AvailabilityError(Exception):
    """Base class for errors raised by the availability service."""


class ConfigurationError(AvailabilityError):
    """Required configuration (API keys) is missing."""


class SlotSourceError(AvailabilityError):
    """The slot source could not be queried or returned an unusable response."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class SlotSourceTimeout(SlotSourceError):
    """The slot source did not answer within its time budget."""


class NoAvailabilityError(AvailabilityError):
    """Every expansion window came back empty."""

    def __init__(self, message: str = "No availability found in the next 30 days. Please contact directly."):
        super().__init__(message)
