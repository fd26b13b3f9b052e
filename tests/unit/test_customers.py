"""
Unit Tests - Customer Insights
"""
from datetime import date, datetime

import pytest

from marketplace_analytics.analytics.customers import (
    CustomerInsightsCalculator,
    customer_insights,
    frequency_label,
)
from marketplace_analytics.analytics.frames import Snapshot
from marketplace_analytics.analytics.query import DashboardFilter
from marketplace_analytics.analytics.records import OrderLineItem, OrderRecord, OrderStatus

START = date(2024, 1, 1)
END = date(2024, 1, 3)


def repeat_order(order_id, day, total=12.0):
    return OrderRecord(
        id=order_id, user_id=1, restaurant_id=1, status=OrderStatus.COMPLETED,
        subtotal=total, delivery_fee=0.0, total=total,
        created_at=datetime(2024, 1, day, 12, 0),
        items=(OrderLineItem(product_id=10, category_id=1, quantity=1, line_revenue=total, product_name="Margherita"),),
    )


class TestFrequencyLabel:
    """Tests for the ordering frequency label"""

    @pytest.mark.parametrize("count,gap,label", [
        (1, 0.0, "one-time"),
        (2, 3.0, "weekly"),
        (3, 7.0, "weekly"),
        (2, 20.0, "monthly"),
        (2, 31.0, "monthly"),
        (2, 45.0, "occasional"),
    ])
    def test_labels(self, count, gap, label):
        assert frequency_label(count, gap) == label


class TestCustomerInsights:
    """Tests against the shared sample"""

    def test_sorted_by_spend(self, snapshot):
        insights = CustomerInsightsCalculator().compute(snapshot, DashboardFilter(START, END, restaurant_id=1))

        assert [i.user_id for i in insights] == [3, 1, 2]
        assert [i.total_spent for i in insights] == [25.0, 20.0, 0.0]

    def test_profile_fields(self, snapshot):
        insights = customer_insights(1, snapshot.orders, snapshot.line_items, snapshot.users, START, END)

        una = insights[0]
        assert una.full_name == "Una Three"
        assert una.order_count == 1
        assert una.last_order_date == datetime(2024, 1, 3, 12, 45)
        assert una.favorite_products == ["Cola", "Margherita"]
        assert una.order_frequency == "one-time"

    def test_cancelled_lines_are_not_favorites(self, snapshot):
        insights = customer_insights(1, snapshot.orders, snapshot.line_items, snapshot.users, START, END)

        umar = next(i for i in insights if i.user_id == 2)
        assert umar.favorite_products == []

    def test_favorite_limit(self, snapshot):
        insights = customer_insights(
            1, snapshot.orders, snapshot.line_items, snapshot.users, START, END, favorite_limit=1,
        )

        assert insights[0].favorite_products == ["Cola"]

    def test_weekly_regular(self, tz):
        snapshot = Snapshot.from_records(tz, orders=[repeat_order(1, 1), repeat_order(2, 4), repeat_order(3, 7)])

        insights = customer_insights(1, snapshot.orders, snapshot.line_items, snapshot.users, START, date(2024, 1, 7))

        assert len(insights) == 1
        assert insights[0].order_count == 3
        assert insights[0].total_spent == 36.0
        assert insights[0].order_frequency == "weekly"
        assert insights[0].full_name is None

    def test_restaurant_without_orders(self, snapshot):
        assert customer_insights(42, snapshot.orders, snapshot.line_items, snapshot.users, START, END) == []
