"""
Unit Tests - Record Conversion and Reporting Zone
"""
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import polars as pl
import pytest

from marketplace_analytics.analytics.bucketing import Interval, bucketize
from marketplace_analytics.analytics.exceptions import MalformedRecordError
from marketplace_analytics.analytics.frames import DELIVERY_SCHEMA, Snapshot
from marketplace_analytics.analytics.heatmap import heatmap_frame, heatmap_matrix
from marketplace_analytics.analytics.records import OrderRecord, OrderStatus

NEW_YORK = ZoneInfo("America/New_York")


def order(order_id, created_at):
    return OrderRecord(
        id=order_id, user_id=1, restaurant_id=1, status=OrderStatus.COMPLETED,
        subtotal=10.0, delivery_fee=0.0, total=10.0, created_at=created_at,
    )


@pytest.fixture
def new_york_snapshot():
    """
    Three aware orders, read in New York time (UTC-5 in January):

        o1 15:00 UTC Jan 1      -> Mon Jan 1 10:00
        o2 03:00 UTC Jan 2      -> Mon Jan 1 22:00
        o3 06:00 +01:00 Jan 2   -> Tue Jan 2 00:00
    """
    return Snapshot.from_records(
        NEW_YORK,
        orders=[
            order(1, datetime(2024, 1, 1, 15, 0, tzinfo=timezone.utc)),
            order(2, datetime(2024, 1, 2, 3, 0, tzinfo=timezone.utc)),
            order(3, datetime(2024, 1, 2, 6, 0, tzinfo=timezone(timedelta(hours=1)))),
        ],
    )


class TestReportingZone:
    """Timestamps are normalized to one zone before bucketing"""

    def test_timestamps_become_local_wall_clock(self, new_york_snapshot):
        assert new_york_snapshot.orders["created_at"].to_list() == [
            datetime(2024, 1, 1, 10, 0),
            datetime(2024, 1, 1, 22, 0),
            datetime(2024, 1, 2, 0, 0),
        ]

    def test_same_local_day_shares_a_bucket(self, new_york_snapshot):
        """o1 and o2 fall on different UTC days but the same New York day"""
        result = bucketize(
            new_york_snapshot.orders, "created_at", date(2024, 1, 1), date(2024, 1, 2), Interval.DAILY,
            {"order_count": pl.len()},
        )

        assert result["label"].to_list() == ["2024-01-01", "2024-01-02"]
        assert result["order_count"].to_list() == [2, 1]

    def test_heatmap_cells_use_local_day_and_hour(self, new_york_snapshot):
        grid = heatmap_matrix(heatmap_frame(new_york_snapshot.orders, date(2024, 1, 1), date(2024, 1, 2)))

        assert grid[0, 10] == 1
        assert grid[0, 22] == 1
        assert grid[1, 0] == 1
        assert grid.sum() == 3


class TestMalformedDatasets:
    """Each dataset is converted on its own"""

    def test_bad_dataset_is_reported_and_emptied(self, tz, sample_orders, sample_users, sample_deliveries):
        deliveries = [replace(sample_deliveries[0], distance=None)] + sample_deliveries[1:]

        snapshot, malformed = Snapshot.from_datasets(
            tz,
            {"orders": sample_orders, "users": sample_users, "deliveries": deliveries},
        )

        assert list(malformed) == ["deliveries"]
        assert malformed["deliveries"].dataset == "deliveries"
        assert snapshot.deliveries.height == 0
        assert dict(snapshot.deliveries.schema) == DELIVERY_SCHEMA
        assert snapshot.orders.height == 4
        assert snapshot.line_items.height == 6
        assert snapshot.users.height == 4

    def test_bad_line_item_marks_orders(self, tz, sample_orders):
        broken = replace(sample_orders[0], items=(replace(sample_orders[0].items[0], quantity=None),))

        snapshot, malformed = Snapshot.from_datasets(tz, {"orders": [broken] + sample_orders[1:]})

        assert list(malformed) == ["orders"]
        assert snapshot.orders.height == 0
        assert snapshot.line_items.height == 0

    def test_strict_conversion_raises(self, tz, sample_users):
        with pytest.raises(MalformedRecordError):
            Snapshot.from_records(tz, users=[replace(sample_users[0], id="u-1")])
