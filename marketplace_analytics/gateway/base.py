"""
Data Gateway Interface

The analytics engine reads raw records through this interface only. Records
come back pre-joined (restaurant, product, category and courier names
included) so calculators never issue follow-up lookups.
"""

from abc import ABC, abstractmethod
from typing import Sequence

from marketplace_analytics.analytics.query import DashboardFilter
from marketplace_analytics.analytics.records import DeliveryRecord, OrderRecord, UserRecord


class DataGateway(ABC):
    """
    Async source of order, user and delivery records.

    Every method raises DataUnavailable when the underlying storage fails.
    """

    @abstractmethod
    async def fetch_orders(self, query: DashboardFilter) -> Sequence[OrderRecord]:
        """Orders created in the window, matching restaurant and status when set"""

    @abstractmethod
    async def fetch_users(self, query: DashboardFilter) -> Sequence[UserRecord]:
        """Users who signed up on or before the end of the window"""

    @abstractmethod
    async def fetch_deliveries(self, query: DashboardFilter) -> Sequence[DeliveryRecord]:
        """Deliveries started in the window"""

    async def close(self) -> None:
        """Release storage resources"""
