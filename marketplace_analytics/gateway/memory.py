"""
In-Memory Data Gateway

Serves records held in plain lists. Used by tests, demos and callers that
already hold the records they want analysed.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Sequence
from zoneinfo import ZoneInfo

from marketplace_analytics.analytics.bucketing import window_bounds
from marketplace_analytics.analytics.frames import normalize_timestamp
from marketplace_analytics.analytics.query import DashboardFilter
from marketplace_analytics.analytics.records import DeliveryRecord, OrderRecord, UserRecord
from marketplace_analytics.config import get_settings

from .base import DataGateway


class InMemoryDataGateway(DataGateway):
    """
    Gateway over in-memory record lists.

    Window checks run in the reporting time zone (the configured one unless
    `tz` is given), the same way the engine buckets timestamps.
    """

    def __init__(
        self,
        orders: Optional[Iterable[OrderRecord]] = None,
        users: Optional[Iterable[UserRecord]] = None,
        deliveries: Optional[Iterable[DeliveryRecord]] = None,
        tz: Optional[ZoneInfo] = None,
    ):
        self.orders: List[OrderRecord] = list(orders or [])
        self.users: List[UserRecord] = list(users or [])
        self.deliveries: List[DeliveryRecord] = list(deliveries or [])
        self.tz = tz or get_settings().analytics.tz

    def _local(self, value: datetime) -> datetime:
        return normalize_timestamp(value, self.tz)

    def _in_window(self, value: datetime, query: DashboardFilter) -> bool:
        lower, upper = window_bounds(query.start_date, query.end_date)
        return lower <= self._local(value) < upper

    async def fetch_orders(self, query: DashboardFilter) -> Sequence[OrderRecord]:
        return [
            order for order in self.orders
            if self._in_window(order.created_at, query)
            and (query.restaurant_id is None or order.restaurant_id == query.restaurant_id)
            and (query.status is None or order.status == query.status)
        ]

    async def fetch_users(self, query: DashboardFilter) -> Sequence[UserRecord]:
        _, upper = window_bounds(query.start_date, query.end_date)
        return [user for user in self.users if self._local(user.created_at) < upper]

    async def fetch_deliveries(self, query: DashboardFilter) -> Sequence[DeliveryRecord]:
        return [
            delivery for delivery in self.deliveries
            if self._in_window(delivery.started_at, query)
        ]
