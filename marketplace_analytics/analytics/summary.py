"""
Dashboard Summary

Marketplace-wide and per-restaurant totals: order counts by outcome,
revenue, today's activity, top restaurants and products, the revenue time
series and the order status breakdown.

Revenue always excludes cancelled orders.
"""

from datetime import date, datetime, time, timedelta
from typing import Callable, List

import polars as pl

from .base import Calculator, Dataset
from .bucketing import Interval, bucketize, in_window
from .frames import Snapshot
from .query import DashboardFilter
from .ratios import allocate_percentages, as_number
from .records import OrderStatus
from .restaurant import restaurant_orders
from .schemas import (
    DashboardStats,
    OrderDistribution,
    OrdersByHour,
    OrdersByStatus,
    RestaurantStats,
    RevenueBucket,
    TopProduct,
    TopRestaurant,
)

CANCELLED = OrderStatus.CANCELLED.value
COMPLETED = OrderStatus.COMPLETED.value


def _not_cancelled(df: pl.DataFrame) -> pl.DataFrame:
    return df.filter(pl.col("status") != CANCELLED)


def revenue_by_date(
    orders: pl.DataFrame,
    start: date,
    end: date,
    interval: Interval,
) -> List[RevenueBucket]:
    """Gap-filled revenue series of non-cancelled orders"""
    buckets = bucketize(
        _not_cancelled(orders), "created_at", start, end, interval,
        {
            "total_amount": pl.col("total").sum(),
            "order_count": pl.len().cast(pl.Int64),
        },
    )
    return [
        RevenueBucket(
            label=row["label"],
            period_start=row["period"],
            total_amount=as_number(row["total_amount"]),
            order_count=row["order_count"],
        )
        for row in buckets.iter_rows(named=True)
    ]


def orders_by_status(orders: pl.DataFrame) -> List[OrdersByStatus]:
    """Order count for every status, including those with none"""
    counts = dict(
        orders.group_by("status").agg(pl.len().alias("count")).iter_rows()
    )
    return [
        OrdersByStatus(status=status.value, count=counts.get(status.value, 0))
        for status in OrderStatus
    ]


def top_restaurants(orders: pl.DataFrame, limit: int = 5) -> List[TopRestaurant]:
    """Restaurants ranked by non-cancelled revenue"""
    ranked = (
        _not_cancelled(orders)
        .group_by("restaurant_id")
        .agg([
            pl.col("restaurant_name").drop_nulls().first().alias("restaurant_name"),
            pl.len().alias("order_count"),
            pl.col("total").sum().alias("total_revenue"),
        ])
        .sort(["total_revenue", "restaurant_id"], descending=[True, False])
        .head(limit)
    )
    return [
        TopRestaurant(
            restaurant_id=row["restaurant_id"],
            restaurant_name=row["restaurant_name"],
            order_count=row["order_count"],
            total_revenue=as_number(row["total_revenue"]),
        )
        for row in ranked.iter_rows(named=True)
    ]


def top_products(line_items: pl.DataFrame, limit: int = 5) -> List[TopProduct]:
    """Products ranked by the number of order lines they appear on"""
    ranked = (
        _not_cancelled(line_items)
        .group_by("product_id")
        .agg([
            pl.col("product_name").drop_nulls().first().alias("product_name"),
            pl.col("restaurant_name").drop_nulls().first().alias("restaurant_name"),
            pl.len().alias("order_count"),
            pl.col("line_revenue").sum().alias("total_revenue"),
        ])
        .sort(["order_count", "total_revenue", "product_id"], descending=[True, True, False])
        .head(limit)
    )
    return [
        TopProduct(
            product_id=row["product_id"],
            product_name=row["product_name"],
            restaurant_name=row["restaurant_name"],
            order_count=row["order_count"],
            total_revenue=as_number(row["total_revenue"]),
        )
        for row in ranked.iter_rows(named=True)
    ]


def orders_by_hour(orders: pl.DataFrame) -> List[OrdersByHour]:
    """Order count for each of the 24 hours"""
    counts = dict(
        orders.group_by(pl.col("created_at").dt.hour().cast(pl.Int64).alias("hour"))
        .agg(pl.len().alias("order_count"))
        .iter_rows()
    )
    return [OrdersByHour(hour=hour, order_count=counts.get(hour, 0)) for hour in range(24)]


def order_distribution(line_items: pl.DataFrame) -> List[OrderDistribution]:
    """Non-cancelled line revenue by category name, as shares of 100%"""
    amounts = (
        _not_cancelled(line_items)
        .with_columns(
            pl.coalesce([
                pl.col("category_name"),
                pl.col("category_id").cast(pl.Utf8),
            ]).alias("category")
        )
        .group_by("category")
        .agg(pl.col("line_revenue").sum().alias("amount"))
        .sort(["amount", "category"], descending=[True, False])
    )
    shares = allocate_percentages(amounts["amount"].to_list())
    return [
        OrderDistribution(category=row["category"], percentage=share, amount=as_number(row["amount"]))
        for row, share in zip(amounts.iter_rows(named=True), shares)
    ]


def _today_mask(today: date) -> pl.Expr:
    return in_window("created_at", today, today)


def _outcome_totals(orders: pl.DataFrame, today: date) -> dict:
    todays = orders.filter(_today_mask(today))
    return {
        "total_orders": orders.height,
        "completed_orders": orders.filter(pl.col("status") == COMPLETED).height,
        "cancelled_orders": orders.filter(pl.col("status") == CANCELLED).height,
        "total_revenue": as_number(_not_cancelled(orders)["total"].sum()),
        "new_orders_today": todays.height,
        "revenue_today": as_number(_not_cancelled(todays)["total"].sum()),
    }


def dashboard_stats(
    orders: pl.DataFrame,
    line_items: pl.DataFrame,
    users: pl.DataFrame,
    start: date,
    end: date,
    interval: Interval,
    today: date,
    top_n: int = 5,
) -> DashboardStats:
    """Marketplace-wide dashboard totals for the window"""
    orders = orders.filter(in_window("created_at", start, end))
    line_items = line_items.filter(in_window("created_at", start, end))
    signed_up = users.filter(pl.col("created_at") < datetime.combine(end + timedelta(days=1), time.min))

    return DashboardStats(
        **_outcome_totals(orders, today),
        total_users=signed_up.height,
        total_restaurants=orders["restaurant_id"].n_unique(),
        top_restaurants=top_restaurants(orders, top_n),
        top_products=top_products(line_items, top_n),
        revenue_by_date=revenue_by_date(orders, start, end, interval),
        orders_by_status=orders_by_status(orders),
    )


def restaurant_stats(
    restaurant_id: int,
    orders: pl.DataFrame,
    line_items: pl.DataFrame,
    start: date,
    end: date,
    interval: Interval,
    today: date,
    top_n: int = 5,
) -> RestaurantStats:
    """Dashboard totals for one restaurant"""
    orders = restaurant_orders(orders, restaurant_id, start, end)
    line_items = restaurant_orders(line_items, restaurant_id, start, end)
    names = orders["restaurant_name"].drop_nulls()

    return RestaurantStats(
        restaurant_id=restaurant_id,
        restaurant_name=names[0] if len(names) else None,
        **_outcome_totals(orders, today),
        total_customers=orders["user_id"].n_unique(),
        top_products=top_products(line_items, top_n),
        revenue_by_date=revenue_by_date(orders, start, end, interval),
        orders_by_hour=orders_by_hour(orders),
        order_distribution=order_distribution(line_items),
    )


class DashboardSummaryCalculator(Calculator):
    """Dashboard summary section"""

    section = "summary"
    requires = frozenset({Dataset.ORDERS, Dataset.USERS})

    def __init__(self, today: Callable[[], date], top_n: int = 5):
        self.today = today
        self.top_n = top_n

    def compute(self, snapshot: Snapshot, query: DashboardFilter) -> DashboardStats:
        return dashboard_stats(
            snapshot.orders,
            snapshot.line_items,
            snapshot.users,
            query.start_date,
            query.end_date,
            query.interval,
            today=self.today(),
            top_n=self.top_n,
        )


class RestaurantStatsCalculator(Calculator):
    """Restaurant statistics section"""

    section = "restaurant_stats"
    requires = frozenset({Dataset.ORDERS})

    def __init__(self, today: Callable[[], date], top_n: int = 5):
        self.today = today
        self.top_n = top_n

    def compute(self, snapshot: Snapshot, query: DashboardFilter) -> RestaurantStats:
        return restaurant_stats(
            query.restaurant_id,
            snapshot.orders,
            snapshot.line_items,
            query.start_date,
            query.end_date,
            query.interval,
            today=self.today(),
            top_n=self.top_n,
        )
