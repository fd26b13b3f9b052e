"""
Unit Tests - Dashboard Summary & Restaurant Stats
"""
from datetime import date

from marketplace_analytics.analytics.bucketing import Interval
from marketplace_analytics.analytics.query import DashboardFilter
from marketplace_analytics.analytics.summary import (
    DashboardSummaryCalculator,
    RestaurantStatsCalculator,
    dashboard_stats,
    orders_by_hour,
    orders_by_status,
)

START = date(2024, 1, 1)
END = date(2024, 1, 3)
TODAY = date(2024, 1, 3)


class TestDashboardStats:
    """Tests for marketplace-wide totals"""

    def test_totals(self, snapshot):
        stats = dashboard_stats(
            snapshot.orders, snapshot.line_items, snapshot.users,
            START, END, Interval.DAILY, today=TODAY,
        )

        assert stats.total_orders == 4
        assert stats.completed_orders == 3
        assert stats.cancelled_orders == 1
        assert stats.total_revenue == 75.0
        assert stats.total_users == 4
        assert stats.total_restaurants == 2
        assert stats.new_orders_today == 2
        assert stats.revenue_today == 55.0

    def test_revenue_series_excludes_cancelled(self, snapshot):
        stats = dashboard_stats(
            snapshot.orders, snapshot.line_items, snapshot.users,
            START, END, Interval.DAILY, today=TODAY,
        )

        assert [b.label for b in stats.revenue_by_date] == ["2024-01-01", "2024-01-02", "2024-01-03"]
        assert [b.total_amount for b in stats.revenue_by_date] == [20.0, 0.0, 55.0]
        assert [b.order_count for b in stats.revenue_by_date] == [1, 0, 2]

    def test_top_lists(self, snapshot):
        stats = dashboard_stats(
            snapshot.orders, snapshot.line_items, snapshot.users,
            START, END, Interval.DAILY, today=TODAY, top_n=2,
        )

        assert [(r.restaurant_name, r.total_revenue) for r in stats.top_restaurants] == [
            ("Pizza Place", 45.0),
            ("Sushi Bar", 30.0),
        ]
        assert [p.product_name for p in stats.top_products] == ["Margherita", "Salmon Roll"]
        assert stats.top_products[0].order_count == 2
        assert stats.top_products[0].total_revenue == 32.0

    def test_status_breakdown_is_dense(self, snapshot):
        statuses = {s.status: s.count for s in orders_by_status(snapshot.orders)}

        assert statuses == {
            "placed": 0,
            "preparing": 0,
            "in_delivery": 0,
            "completed": 3,
            "cancelled": 1,
        }

    def test_calculator_uses_clock(self, snapshot):
        calculator = DashboardSummaryCalculator(today=lambda: date(2024, 1, 1))

        stats = calculator.compute(snapshot, DashboardFilter(START, END))

        assert stats.new_orders_today == 1
        assert stats.revenue_today == 20.0


class TestRestaurantStats:
    """Tests for per-restaurant totals"""

    def test_pizza_place(self, snapshot):
        calculator = RestaurantStatsCalculator(today=lambda: TODAY)

        stats = calculator.compute(snapshot, DashboardFilter(START, END, restaurant_id=1))

        assert stats.restaurant_name == "Pizza Place"
        assert stats.total_orders == 3
        assert stats.completed_orders == 2
        assert stats.cancelled_orders == 1
        assert stats.total_revenue == 45.0
        assert stats.new_orders_today == 1
        assert stats.revenue_today == 25.0
        assert stats.total_customers == 3

    def test_order_distribution_sums_to_100(self, snapshot):
        calculator = RestaurantStatsCalculator(today=lambda: TODAY)

        stats = calculator.compute(snapshot, DashboardFilter(START, END, restaurant_id=1))

        assert [(d.category, d.percentage) for d in stats.order_distribution] == [
            ("Pizza", 84.21),
            ("Drinks", 15.79),
        ]

    def test_orders_by_hour_is_dense(self, snapshot):
        hours = orders_by_hour(snapshot.orders.filter(snapshot.orders["restaurant_id"] == 1))

        assert len(hours) == 24
        assert hours[12].order_count == 2
        assert hours[19].order_count == 1
        assert sum(h.order_count for h in hours) == 3
