"""
Unit Tests - Order Heatmap
"""
from datetime import date

from marketplace_analytics.analytics.heatmap import HeatmapAggregator, heatmap_frame, heatmap_matrix
from marketplace_analytics.analytics.query import DashboardFilter


class TestHeatmap:
    """Tests for the day x hour grid"""

    def test_always_168_cells(self, snapshot):
        cells = HeatmapAggregator().compute(snapshot, DashboardFilter(date(2024, 1, 1), date(2024, 1, 3)))

        assert len(cells) == 7 * 24
        assert (cells[0].day_of_week, cells[0].hour) == (0, 0)
        assert (cells[-1].day_of_week, cells[-1].hour) == (6, 23)

    def test_cells_sum_to_order_count(self, snapshot):
        cells = HeatmapAggregator().compute(snapshot, DashboardFilter(date(2024, 1, 1), date(2024, 1, 3)))

        assert sum(c.order_count for c in cells) == snapshot.orders.height

    def test_monday_is_day_zero(self, snapshot):
        """2024-01-01 is a Monday; o1 was placed at 12:30"""
        grid = heatmap_matrix(heatmap_frame(snapshot.orders, date(2024, 1, 1), date(2024, 1, 3)))

        assert grid.shape == (7, 24)
        assert grid[0, 12] == 1
        assert grid[1, 19] == 1
        assert grid[2, 12] == 1
        assert grid[2, 19] == 1
        assert grid.sum() == 4

    def test_window_restricts_orders(self, snapshot):
        cells = HeatmapAggregator().compute(snapshot, DashboardFilter(date(2024, 1, 2), date(2024, 1, 2)))

        assert len(cells) == 168
        assert sum(c.order_count for c in cells) == 1

    def test_empty_snapshot_is_all_zero(self, snapshot):
        empty = snapshot.orders.clear()

        grid = heatmap_matrix(heatmap_frame(empty, date(2024, 1, 1), date(2024, 1, 3)))

        assert grid.sum() == 0
