"""
Exception hierarchy shared across ingestion, storage and scraping.
"""


class GrantNaviError(Exception):
    """Base class for all grantnavi errors."""


class ConfigurationError(GrantNaviError):
    """Required configuration is missing or malformed."""


class SourceError(GrantNaviError):
    """A CSV source is missing, empty or unreadable."""


class StoreError(GrantNaviError):
    """The backing store rejected a read or write."""


class FetchError(GrantNaviError):
    """An HTTP fetch failed (timeout, DNS, non-200 response)."""


class DiagnosisError(GrantNaviError):
    """The AI diagnosis completion could not be produced."""
