"""
Unit Tests - Restaurant Performance
"""
from datetime import date

import numpy as np
import polars as pl
import pytest

from marketplace_analytics.analytics.bucketing import Interval
from marketplace_analytics.analytics.query import DashboardFilter
from marketplace_analytics.analytics.restaurant import (
    RestaurantPerformanceCalculator,
    detect_peak_windows,
    menu_performance,
    restaurant_orders,
    restaurant_performance,
)

START = date(2024, 1, 1)
END = date(2024, 1, 3)


class TestMenuPerformance:
    """Tests for category sales"""

    def test_contributions_sum_to_100(self, snapshot):
        lines = restaurant_orders(snapshot.line_items, 1, START, END)

        menu = menu_performance(lines)

        assert sum(m.contribution for m in menu) == pytest.approx(100.0, abs=0.1)

    def test_cancelled_orders_excluded(self, snapshot):
        """o2 was cancelled, so Pizza and Drinks come from o1 and o4 only"""
        lines = restaurant_orders(snapshot.line_items, 1, START, END)

        menu = {m.category_name: m for m in menu_performance(lines)}

        assert menu["Pizza"].total_sold == 4
        assert menu["Pizza"].revenue == 32.0
        assert menu["Pizza"].contribution == 84.21
        assert menu["Drinks"].total_sold == 3
        assert menu["Drinks"].revenue == 6.0
        assert menu["Drinks"].contribution == 15.79

    def test_sorted_by_revenue(self, snapshot):
        lines = restaurant_orders(snapshot.line_items, 1, START, END)

        assert [m.category_id for m in menu_performance(lines)] == [1, 2]

    def test_three_even_categories(self):
        """Largest-remainder rounding still lands on exactly 100"""
        lines = pl.DataFrame({
            "status": ["completed"] * 3,
            "category_id": [1, 2, 3],
            "category_name": ["Pizza", "Drinks", "Sushi"],
            "quantity": [1, 1, 1],
            "line_revenue": [10.0, 10.0, 10.0],
        })

        contributions = [m.contribution for m in menu_performance(lines)]

        assert contributions == [33.34, 33.33, 33.33]
        assert sum(contributions) == pytest.approx(100.0)

    def test_empty_menu(self, snapshot):
        assert menu_performance(snapshot.line_items.clear()) == []


class TestPeakWindows:
    """Tests for busy-hour detection"""

    def test_contiguous_hours_merge(self):
        grid = np.zeros((7, 24), dtype=np.int64)
        grid[4, 18:21] = [5, 8, 6]
        grid[5, 12] = 4

        windows = detect_peak_windows(grid, quantile=0.75, limit=3)

        assert windows[0].day_of_week == 4
        assert windows[0].day_name == "Friday"
        assert (windows[0].start_hour, windows[0].end_hour) == (18, 21)
        assert windows[0].order_count == 19
        assert (windows[1].day_of_week, windows[1].start_hour, windows[1].end_hour) == (5, 12, 13)

    def test_ties_break_by_start_hour_then_day(self):
        grid = np.zeros((7, 24), dtype=np.int64)
        grid[3, 19] = 2
        grid[1, 19] = 2
        grid[6, 11] = 2

        windows = detect_peak_windows(grid, limit=3)

        assert [(w.day_of_week, w.start_hour) for w in windows] == [(6, 11), (1, 19), (3, 19)]

    def test_limit(self):
        grid = np.zeros((7, 24), dtype=np.int64)
        for day in range(7):
            grid[day, 12] = day + 1

        assert len(detect_peak_windows(grid, limit=2)) == 2
        assert detect_peak_windows(grid, limit=0) == []

    def test_quiet_grid_has_no_peaks(self):
        assert detect_peak_windows(np.zeros((7, 24), dtype=np.int64)) == []

    def test_uniform_grid_has_no_peaks(self):
        """No hour exceeds the quantile when every hour is equal"""
        assert detect_peak_windows(np.full((7, 24), 3, dtype=np.int64)) == []


class TestRestaurantPerformance:
    """Tests against the shared sample"""

    def test_sample_restaurant(self, snapshot):
        result = restaurant_performance(
            restaurant_id=1,
            orders=snapshot.orders,
            line_items=snapshot.line_items,
            deliveries=snapshot.deliveries,
            start=START,
            end=END,
            interval=Interval.DAILY,
        )

        assert result.restaurant_id == 1
        assert result.average_order_value == 20.0
        assert result.order_frequency == 1.0
        assert result.cancellation_rate == 0.3333
        assert result.average_delivery_time == 22.5
        assert result.customer_retention_rate == 0.0
        assert len(result.menu_performance) == 2
        assert [(p.day_of_week, p.start_hour, p.end_hour) for p in result.peak_times] == [
            (0, 12, 13),
            (2, 12, 13),
            (1, 19, 20),
        ]

    def test_unknown_restaurant_is_all_zero(self, snapshot):
        query = DashboardFilter(START, END, restaurant_id=99)

        result = RestaurantPerformanceCalculator().compute(snapshot, query)

        assert result.average_order_value == 0.0
        assert result.order_frequency == 0.0
        assert result.cancellation_rate == 0.0
        assert result.average_delivery_time == 0.0
        assert result.menu_performance == []
        assert result.peak_times == []

    def test_calculator_honours_peak_settings(self, snapshot):
        query = DashboardFilter(START, END, restaurant_id=1)

        result = RestaurantPerformanceCalculator(max_peak_windows=1).compute(snapshot, query)

        assert len(result.peak_times) == 1
