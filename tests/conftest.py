"""
Test Suite Configuration

Shared sample marketplace for 2024-01-01 (a Monday) to 2024-01-03:

    users      u1 signed up 2023-12-15, u2 and u3 on Jan 1, u4 on Jan 3
    orders     o1 u1 Pizza Place  completed  20.00  Mon 12:30
               o2 u2 Pizza Place  cancelled  15.00  Tue 19:00
               o3 u2 Sushi Bar    completed  30.00  Wed 19:15
               o4 u3 Pizza Place  completed  25.00  Wed 12:45
    deliveries d1 (o1) Ada north 20 min on time
               d3 (o3) Bo  south 30 min late
               d4 (o4) Ada north 25 min on time
"""
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from marketplace_analytics.analytics.frames import Snapshot
from marketplace_analytics.analytics.orchestrator import DashboardOrchestrator
from marketplace_analytics.analytics.records import (
    DeliveryRecord,
    OrderLineItem,
    OrderRecord,
    OrderStatus,
    UserRecord,
)
from marketplace_analytics.config import AnalyticsSettings, Settings, get_settings
from marketplace_analytics.gateway import InMemoryDataGateway


MARGHERITA = dict(product_id=10, product_name="Margherita", category_id=1, category_name="Pizza")
COLA = dict(product_id=11, product_name="Cola", category_id=2, category_name="Drinks")
SALMON_ROLL = dict(product_id=20, product_name="Salmon Roll", category_id=3, category_name="Sushi")


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        app_env="testing",
        debug=True,
    )


@pytest.fixture
def analytics_settings() -> AnalyticsSettings:
    """Analytics settings pinned to UTC"""
    return AnalyticsSettings(timezone="UTC", max_workers=2)


@pytest.fixture
def tz() -> ZoneInfo:
    return ZoneInfo("UTC")


@pytest.fixture
def berlin_settings(monkeypatch) -> Settings:
    """Process settings with the reporting zone set to Europe/Berlin"""
    monkeypatch.setenv("ANALYTICS_TIMEZONE", "Europe/Berlin")
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture
def fixed_clock():
    """Clock frozen on the last day of the sample range"""
    return lambda: datetime(2024, 1, 3, 18, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_users() -> list:
    return [
        UserRecord(id=1, created_at=datetime(2023, 12, 15, 10, 0), full_name="Uma One"),
        UserRecord(id=2, created_at=datetime(2024, 1, 1, 9, 0), full_name="Umar Two"),
        UserRecord(id=3, created_at=datetime(2024, 1, 1, 12, 0), full_name="Una Three"),
        UserRecord(id=4, created_at=datetime(2024, 1, 3, 8, 0), full_name="Uri Four"),
    ]


@pytest.fixture
def sample_orders() -> list:
    return [
        OrderRecord(
            id=1, user_id=1, restaurant_id=1, restaurant_name="Pizza Place",
            status=OrderStatus.COMPLETED, subtotal=16.0, delivery_fee=4.0, total=20.0,
            created_at=datetime(2024, 1, 1, 12, 30),
            estimated_delivery_time=datetime(2024, 1, 1, 13, 10),
            actual_delivery_time=datetime(2024, 1, 1, 13, 5),
            delivery_person_id=7,
            items=(OrderLineItem(quantity=2, line_revenue=16.0, **MARGHERITA),),
        ),
        OrderRecord(
            id=2, user_id=2, restaurant_id=1, restaurant_name="Pizza Place",
            status=OrderStatus.CANCELLED, subtotal=11.0, delivery_fee=4.0, total=15.0,
            created_at=datetime(2024, 1, 2, 19, 0),
            items=(
                OrderLineItem(quantity=1, line_revenue=3.0, **COLA),
                OrderLineItem(quantity=1, line_revenue=8.0, **MARGHERITA),
            ),
        ),
        OrderRecord(
            id=3, user_id=2, restaurant_id=2, restaurant_name="Sushi Bar",
            status=OrderStatus.COMPLETED, subtotal=27.0, delivery_fee=3.0, total=30.0,
            created_at=datetime(2024, 1, 3, 19, 15),
            estimated_delivery_time=datetime(2024, 1, 3, 19, 50),
            actual_delivery_time=datetime(2024, 1, 3, 20, 0),
            delivery_person_id=8,
            items=(OrderLineItem(quantity=3, line_revenue=27.0, **SALMON_ROLL),),
        ),
        OrderRecord(
            id=4, user_id=3, restaurant_id=1, restaurant_name="Pizza Place",
            status=OrderStatus.COMPLETED, subtotal=22.0, delivery_fee=3.0, total=25.0,
            created_at=datetime(2024, 1, 3, 12, 45),
            estimated_delivery_time=datetime(2024, 1, 3, 13, 30),
            actual_delivery_time=datetime(2024, 1, 3, 13, 20),
            delivery_person_id=7,
            items=(
                OrderLineItem(quantity=2, line_revenue=16.0, **MARGHERITA),
                OrderLineItem(quantity=3, line_revenue=6.0, **COLA),
            ),
        ),
    ]


@pytest.fixture
def sample_deliveries() -> list:
    return [
        DeliveryRecord(
            id=1, order_id=1, delivery_person_id=7, delivery_person_name="Ada",
            zone="north", distance=2.0,
            started_at=datetime(2024, 1, 1, 12, 45),
            completed_at=datetime(2024, 1, 1, 13, 5),
            rating=5.0,
        ),
        DeliveryRecord(
            id=3, order_id=3, delivery_person_id=8, delivery_person_name="Bo",
            zone="south", distance=4.0,
            started_at=datetime(2024, 1, 3, 19, 30),
            completed_at=datetime(2024, 1, 3, 20, 0),
        ),
        DeliveryRecord(
            id=4, order_id=4, delivery_person_id=7, delivery_person_name="Ada",
            zone="north", distance=3.0,
            started_at=datetime(2024, 1, 3, 12, 55),
            completed_at=datetime(2024, 1, 3, 13, 20),
            rating=4.0,
        ),
    ]


@pytest.fixture
def snapshot(tz, sample_orders, sample_users, sample_deliveries) -> Snapshot:
    """Frames built from the full sample"""
    return Snapshot.from_records(
        tz,
        orders=sample_orders,
        users=sample_users,
        deliveries=sample_deliveries,
    )


@pytest.fixture
def gateway(tz, sample_orders, sample_users, sample_deliveries) -> InMemoryDataGateway:
    return InMemoryDataGateway(
        orders=sample_orders,
        users=sample_users,
        deliveries=sample_deliveries,
        tz=tz,
    )


@pytest.fixture
def orchestrator(gateway, analytics_settings, fixed_clock):
    """Orchestrator over the in-memory sample"""
    engine = DashboardOrchestrator(gateway, settings=analytics_settings, clock=fixed_clock)
    yield engine
    engine.executor.shutdown(wait=True)
