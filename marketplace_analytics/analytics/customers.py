"""
Customer Insights

Per-customer ordering profile for one restaurant: order count, spend, last
order, favorite products and a coarse ordering frequency label.
"""

from datetime import date
from typing import Dict, List

import polars as pl

from .base import Calculator, Dataset
from .frames import Snapshot
from .query import DashboardFilter
from .ratios import as_number
from .records import OrderStatus
from .restaurant import restaurant_orders
from .schemas import CustomerInsight

CANCELLED = OrderStatus.CANCELLED.value

# Upper bounds, in days, of the mean gap between consecutive orders
FREQUENCY_LABELS = (
    (7.0, "weekly"),
    (31.0, "monthly"),
)


def frequency_label(order_count: int, mean_gap_days: float) -> str:
    """Label a customer by how often they order"""
    if order_count <= 1:
        return "one-time"
    for limit, label in FREQUENCY_LABELS:
        if mean_gap_days <= limit:
            return label
    return "occasional"


def favorite_products(line_items: pl.DataFrame, limit: int = 3) -> Dict[int, List[str]]:
    """Top product names per customer by quantity ordered"""
    if limit <= 0 or line_items.is_empty():
        return {}

    ranked = (
        line_items.filter(pl.col("status") != CANCELLED)
        .with_columns(
            pl.coalesce([
                pl.col("product_name"),
                pl.col("product_id").cast(pl.Utf8),
            ]).alias("product")
        )
        .group_by(["user_id", "product"])
        .agg(pl.col("quantity").sum().alias("quantity"))
        .sort(["user_id", "quantity", "product"], descending=[False, True, False])
        .group_by("user_id", maintain_order=True)
        .agg(pl.col("product").head(limit).alias("products"))
    )
    return dict(zip(ranked["user_id"].to_list(), ranked["products"].to_list()))


def customer_insights(
    restaurant_id: int,
    orders: pl.DataFrame,
    line_items: pl.DataFrame,
    users: pl.DataFrame,
    start: date,
    end: date,
    favorite_limit: int = 3,
) -> List[CustomerInsight]:
    """
    Profiles of every customer who ordered from the restaurant in the window.

    Spend excludes cancelled orders; the frequency label comes from the mean
    gap between consecutive orders. Sorted by spend, highest first.
    """
    orders = restaurant_orders(orders, restaurant_id, start, end)
    line_items = restaurant_orders(line_items, restaurant_id, start, end)
    if orders.is_empty():
        return []

    profiles = (
        orders.group_by("user_id")
        .agg([
            pl.len().alias("order_count"),
            pl.col("total").filter(pl.col("status") != CANCELLED).sum().alias("total_spent"),
            pl.col("created_at").min().alias("first_order"),
            pl.col("created_at").max().alias("last_order_date"),
        ])
        .with_columns(
            pl.when(pl.col("order_count") > 1)
            .then(
                (pl.col("last_order_date") - pl.col("first_order")).dt.total_milliseconds()
                / 86_400_000
                / (pl.col("order_count") - 1)
            )
            .otherwise(0.0)
            .alias("mean_gap_days")
        )
        .join(users.select(["user_id", "full_name"]), on="user_id", how="left")
        .sort(["total_spent", "user_id"], descending=[True, False])
    )

    favorites = favorite_products(line_items, favorite_limit)

    return [
        CustomerInsight(
            user_id=row["user_id"],
            full_name=row["full_name"],
            order_count=row["order_count"],
            total_spent=as_number(row["total_spent"]),
            last_order_date=row["last_order_date"],
            favorite_products=favorites.get(row["user_id"], []),
            order_frequency=frequency_label(row["order_count"], row["mean_gap_days"]),
        )
        for row in profiles.iter_rows(named=True)
    ]


class CustomerInsightsCalculator(Calculator):
    """Customer insights section"""

    section = "customer_insights"
    requires = frozenset({Dataset.ORDERS, Dataset.USERS})

    def __init__(self, favorite_limit: int = 3):
        self.favorite_limit = favorite_limit

    def compute(self, snapshot: Snapshot, query: DashboardFilter) -> List[CustomerInsight]:
        return customer_insights(
            query.restaurant_id,
            snapshot.orders,
            snapshot.line_items,
            snapshot.users,
            query.start_date,
            query.end_date,
            favorite_limit=self.favorite_limit,
        )
