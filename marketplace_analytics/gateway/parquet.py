"""
Parquet Data Gateway

Reads the curated zone of the data lake written by the synthetic data
generator (or any producer following the same layout):

    <curated_path>/orders.parquet
    <curated_path>/order_items.parquet
    <curated_path>/users.parquet
    <curated_path>/deliveries.parquet

Timestamps in the files are naive wall-clock values in the reporting time
zone. Filters are pushed into lazy scans; rows are then mapped onto records
by explicit conversion functions.
"""

import asyncio
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import polars as pl
import structlog

from marketplace_analytics.analytics.bucketing import window_bounds
from marketplace_analytics.analytics.exceptions import DataUnavailable
from marketplace_analytics.analytics.query import DashboardFilter
from marketplace_analytics.analytics.records import (
    DeliveryRecord,
    OrderLineItem,
    OrderRecord,
    OrderStatus,
    UserRecord,
)

from .base import DataGateway

logger = structlog.get_logger(__name__)

ORDERS_FILE = "orders.parquet"
ORDER_ITEMS_FILE = "order_items.parquet"
USERS_FILE = "users.parquet"
DELIVERIES_FILE = "deliveries.parquet"


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def row_to_line_item(row: Dict[str, Any]) -> OrderLineItem:
    return OrderLineItem(
        product_id=row["product_id"],
        category_id=row["category_id"],
        quantity=row["quantity"],
        line_revenue=float(row["line_revenue"]),
        product_name=row.get("product_name"),
        category_name=row.get("category_name"),
    )


def row_to_order(row: Dict[str, Any], items: Sequence[OrderLineItem] = ()) -> OrderRecord:
    return OrderRecord(
        id=row["order_id"],
        user_id=row["user_id"],
        restaurant_id=row["restaurant_id"],
        status=OrderStatus(row["status"]),
        subtotal=float(row["subtotal"]),
        delivery_fee=float(row["delivery_fee"]),
        total=float(row["total"]),
        created_at=row["created_at"],
        estimated_delivery_time=row.get("estimated_delivery_time"),
        actual_delivery_time=row.get("actual_delivery_time"),
        delivery_person_id=row.get("delivery_person_id"),
        restaurant_name=row.get("restaurant_name"),
        items=tuple(items),
    )


def row_to_user(row: Dict[str, Any]) -> UserRecord:
    return UserRecord(
        id=row["user_id"],
        created_at=row["created_at"],
        role=row.get("role") or "customer",
        full_name=row.get("full_name"),
    )


def row_to_delivery(row: Dict[str, Any]) -> DeliveryRecord:
    return DeliveryRecord(
        id=row["delivery_id"],
        order_id=row["order_id"],
        delivery_person_id=row["delivery_person_id"],
        zone=row["zone"],
        distance=float(row["distance"]),
        started_at=row["started_at"],
        completed_at=row.get("completed_at"),
        rating=_optional_float(row.get("rating")),
        delivery_person_name=row.get("delivery_person_name"),
    )


class ParquetDataGateway(DataGateway):
    """
    Gateway over curated parquet files.

    Reads run in worker threads so the event loop stays free while polars
    scans the files. Storage and schema errors surface as DataUnavailable.
    """

    def __init__(self, curated_path: Union[str, Path]):
        self.curated_path = Path(curated_path)

    def _scan(self, file_name: str) -> pl.LazyFrame:
        return pl.scan_parquet(self.curated_path / file_name)

    async def _collect(self, dataset: str, build) -> list:
        try:
            return await asyncio.to_thread(build)
        except (OSError, ValueError, pl.exceptions.PolarsError) as e:
            logger.error(
                "Data lake read failed",
                dataset=dataset,
                path=str(self.curated_path),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise DataUnavailable(dataset, str(e)) from e

    def _read_orders(self, query: DashboardFilter) -> List[OrderRecord]:
        lower, upper = window_bounds(query.start_date, query.end_date)
        predicate = (pl.col("created_at") >= lower) & (pl.col("created_at") < upper)
        if query.restaurant_id is not None:
            predicate &= pl.col("restaurant_id") == query.restaurant_id
        if query.status is not None:
            predicate &= pl.col("status") == query.status.value

        orders = self._scan(ORDERS_FILE).filter(predicate).collect()
        items = (
            self._scan(ORDER_ITEMS_FILE)
            .filter(pl.col("order_id").is_in(orders["order_id"].to_list()))
            .collect()
        )

        items_by_order: Dict[int, List[OrderLineItem]] = defaultdict(list)
        for row in items.iter_rows(named=True):
            items_by_order[row["order_id"]].append(row_to_line_item(row))

        return [
            row_to_order(row, items_by_order.get(row["order_id"], ()))
            for row in orders.iter_rows(named=True)
        ]

    def _read_users(self, query: DashboardFilter) -> List[UserRecord]:
        _, upper = window_bounds(query.start_date, query.end_date)
        users = self._scan(USERS_FILE).filter(pl.col("created_at") < upper).collect()
        return [row_to_user(row) for row in users.iter_rows(named=True)]

    def _read_deliveries(self, query: DashboardFilter) -> List[DeliveryRecord]:
        lower, upper = window_bounds(query.start_date, query.end_date)
        deliveries = (
            self._scan(DELIVERIES_FILE)
            .filter((pl.col("started_at") >= lower) & (pl.col("started_at") < upper))
            .collect()
        )
        return [row_to_delivery(row) for row in deliveries.iter_rows(named=True)]

    async def fetch_orders(self, query: DashboardFilter) -> Sequence[OrderRecord]:
        return await self._collect("orders", lambda: self._read_orders(query))

    async def fetch_users(self, query: DashboardFilter) -> Sequence[UserRecord]:
        return await self._collect("users", lambda: self._read_users(query))

    async def fetch_deliveries(self, query: DashboardFilter) -> Sequence[DeliveryRecord]:
        return await self._collect("deliveries", lambda: self._read_deliveries(query))
