"""
Analytics Module

Dashboard calculators over immutable polars snapshots, and the orchestrator
that fetches data and runs them.
"""

from .bucketing import Interval, bucketize, period_label, period_starts
from .exceptions import (
    AnalyticsError,
    DataUnavailable,
    InvalidFilterError,
    InvalidRangeError,
    MalformedRecordError,
    PartialComputationWarning,
    UnknownIntervalError,
)
from .orchestrator import DashboardOrchestrator, DashboardResult
from .query import DashboardFilter, DashboardRequest, View, parse_request
from .records import DeliveryRecord, OrderLineItem, OrderRecord, OrderStatus, UserRecord

__all__ = [
    # Requests
    "DashboardFilter",
    "DashboardRequest",
    "Interval",
    "View",
    "parse_request",
    # Records
    "DeliveryRecord",
    "OrderLineItem",
    "OrderRecord",
    "OrderStatus",
    "UserRecord",
    # Orchestration
    "DashboardOrchestrator",
    "DashboardResult",
    # Bucketing
    "bucketize",
    "period_label",
    "period_starts",
    # Errors
    "AnalyticsError",
    "DataUnavailable",
    "InvalidFilterError",
    "InvalidRangeError",
    "MalformedRecordError",
    "PartialComputationWarning",
    "UnknownIntervalError",
]
