"""
Restaurant Performance Calculator

Per-restaurant ratios for one filter window:
- average order value, order frequency, cancellation rate
- customer retention (cohorts of first orders with the restaurant)
- average delivery time
- menu performance by category with contributions summing to 100%
- peak windows detected on the restaurant's order heatmap
"""

import calendar
from datetime import date
from typing import List

import numpy as np
import polars as pl

from .base import Calculator, Dataset
from .bucketing import Interval, in_window
from .delivery import average_delivery_minutes, prepare_deliveries
from .frames import Snapshot
from .heatmap import heatmap_frame, heatmap_matrix
from .query import DashboardFilter
from .ratios import allocate_percentages, as_number, safe_divide, safe_ratio
from .records import OrderStatus
from .retention import cohort_retention, completed_orders
from .schemas import MenuPerformance, PeakTime, RestaurantPerformance

CANCELLED = OrderStatus.CANCELLED.value


def restaurant_orders(orders: pl.DataFrame, restaurant_id: int, start: date, end: date) -> pl.DataFrame:
    """Orders of one restaurant inside the window"""
    return orders.filter(
        (pl.col("restaurant_id") == restaurant_id) & in_window("created_at", start, end)
    )


def menu_performance(line_items: pl.DataFrame) -> List[MenuPerformance]:
    """
    Category sales of non-cancelled orders.

    Categories with no units sold are left out, so the contributions of the
    remaining categories add up to 100.
    """
    sold = (
        line_items.filter(pl.col("status") != CANCELLED)
        .group_by("category_id")
        .agg([
            pl.col("category_name").drop_nulls().first().alias("category_name"),
            pl.col("quantity").sum().alias("total_sold"),
            pl.col("line_revenue").sum().alias("revenue"),
        ])
        .filter(pl.col("total_sold") > 0)
        .sort(["revenue", "category_id"], descending=[True, False])
    )

    contributions = allocate_percentages(sold["revenue"].to_list())

    return [
        MenuPerformance(
            category_id=row["category_id"],
            category_name=row["category_name"],
            total_sold=row["total_sold"],
            revenue=as_number(row["revenue"]),
            contribution=share,
        )
        for row, share in zip(sold.iter_rows(named=True), contributions)
    ]


def detect_peak_windows(
    matrix: np.ndarray,
    quantile: float = 0.75,
    limit: int = 3,
) -> List[PeakTime]:
    """
    Contiguous busy hour runs on a 7x24 heatmap.

    An hour is busy when its count exceeds the `quantile` of all cells.
    Runs are ranked by total orders, ties going to the earlier start hour
    and then the earlier day.
    """
    if limit <= 0 or matrix.sum() == 0:
        return []

    floor = float(np.quantile(matrix, quantile))
    days, hours = matrix.shape

    windows = []
    for day in range(days):
        hour = 0
        while hour < hours:
            if matrix[day, hour] <= floor:
                hour += 1
                continue
            begin = hour
            while hour < hours and matrix[day, hour] > floor:
                hour += 1
            windows.append((int(matrix[day, begin:hour].sum()), begin, day, hour))

    windows.sort(key=lambda w: (-w[0], w[1], w[2]))

    return [
        PeakTime(
            day_of_week=day,
            day_name=calendar.day_name[day],
            start_hour=begin,
            end_hour=stop,
            order_count=count,
        )
        for count, begin, day, stop in windows[:limit]
    ]


def customer_retention_rate(orders: pl.DataFrame, start: date, end: date, interval: Interval) -> float:
    """
    Overall cohort retention of a restaurant's customers.

    A customer joins in the bucket of their first order with the restaurant;
    activity is any later completed order with it.
    """
    members = orders.group_by("user_id").agg(pl.col("created_at").min())
    return cohort_retention(
        members=members,
        activity=completed_orders(orders),
        start=start,
        end=end,
        interval=interval,
    ).retention_rate


def restaurant_performance(
    restaurant_id: int,
    orders: pl.DataFrame,
    line_items: pl.DataFrame,
    deliveries: pl.DataFrame,
    start: date,
    end: date,
    interval: Interval,
    grace_minutes: float = 0.0,
    peak_quantile: float = 0.75,
    max_peak_windows: int = 3,
) -> RestaurantPerformance:
    """Performance summary for one restaurant"""
    orders = restaurant_orders(orders, restaurant_id, start, end)
    line_items = restaurant_orders(line_items, restaurant_id, start, end)

    order_count = orders.height
    cancelled = orders.filter(pl.col("status") == CANCELLED).height
    active_days = orders["created_at"].dt.date().n_unique() if order_count else 0

    prepared = prepare_deliveries(deliveries, orders, grace_minutes)
    grid = heatmap_matrix(heatmap_frame(orders, start, end))

    return RestaurantPerformance(
        restaurant_id=restaurant_id,
        average_order_value=safe_divide(orders["total"].sum(), order_count),
        order_frequency=safe_divide(order_count, active_days),
        customer_retention_rate=customer_retention_rate(orders, start, end, interval),
        average_delivery_time=average_delivery_minutes(prepared),
        cancellation_rate=safe_ratio(cancelled, order_count),
        menu_performance=menu_performance(line_items),
        peak_times=detect_peak_windows(grid, peak_quantile, max_peak_windows),
    )


class RestaurantPerformanceCalculator(Calculator):
    """Restaurant performance section"""

    section = "restaurant_performance"
    requires = frozenset({Dataset.ORDERS, Dataset.DELIVERIES})

    def __init__(
        self,
        grace_minutes: float = 0.0,
        peak_quantile: float = 0.75,
        max_peak_windows: int = 3,
    ):
        self.grace_minutes = grace_minutes
        self.peak_quantile = peak_quantile
        self.max_peak_windows = max_peak_windows

    def compute(self, snapshot: Snapshot, query: DashboardFilter) -> RestaurantPerformance:
        return restaurant_performance(
            restaurant_id=query.restaurant_id,
            orders=snapshot.orders,
            line_items=snapshot.line_items,
            deliveries=snapshot.deliveries,
            start=query.start_date,
            end=query.end_date,
            interval=query.interval,
            grace_minutes=self.grace_minutes,
            peak_quantile=self.peak_quantile,
            max_peak_windows=self.max_peak_windows,
        )
