"""
Analytics Error Taxonomy

Validation errors are raised before any gateway fetch. Gateway failures
abort the request. A calculator that cannot aggregate its input is reported
as a PartialComputationWarning and the rest of the request succeeds.
"""

from typing import Optional


class AnalyticsError(Exception):
    """Base class for analytics engine errors"""


class InvalidFilterError(AnalyticsError):
    """Request filter failed validation"""


class InvalidRangeError(InvalidFilterError):
    """Start date after end date, or a non-positive identifier"""


class UnknownIntervalError(InvalidFilterError):
    """Interval is not one of daily, weekly, monthly"""

    def __init__(self, interval: str):
        self.interval = interval
        super().__init__(f"Unknown interval '{interval}': expected daily, weekly or monthly")


class DataUnavailable(AnalyticsError):
    """Data gateway could not supply records"""

    def __init__(self, dataset: str, reason: str):
        self.dataset = dataset
        self.reason = reason
        super().__init__(f"{dataset} unavailable: {reason}")


class MalformedRecordError(AnalyticsError, ValueError):
    """Records that cannot be aggregated consistently"""

    def __init__(self, message: str, dataset: Optional[str] = None):
        self.dataset = dataset
        super().__init__(message)


class PartialComputationWarning(UserWarning):
    """A dashboard section was skipped; the request otherwise succeeded"""

    def __init__(self, section: str, reason: str):
        self.section = section
        self.reason = reason
        super().__init__(f"Section '{section}' skipped: {reason}")
