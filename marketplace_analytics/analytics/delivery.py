"""
Delivery Metrics Calculator

Delivery time and on-time statistics overall, per courier and per zone.

Deliveries are joined in memory with the orders of the same snapshot, which
supplies the estimated and actual delivery times and scopes deliveries to
the request's restaurant, status and window. A delivery counts as completed
once it has a delivered-at time: the order's actual delivery time, falling
back to the delivery's own completion time.
"""

from datetime import timedelta
from typing import List

import polars as pl
import structlog

from .base import Calculator, Dataset
from .exceptions import MalformedRecordError
from .frames import Snapshot
from .query import DashboardFilter
from .ratios import as_number, safe_ratio
from .schemas import DeliveryMetrics, DeliveryPerformance, ZoneDelivery

logger = structlog.get_logger(__name__)


def prepare_deliveries(
    deliveries: pl.DataFrame,
    orders: pl.DataFrame,
    grace_minutes: float = 0.0,
) -> pl.DataFrame:
    """
    Join deliveries with their orders and derive per-delivery facts.

    Adds: delivered_at, is_completed, duration_minutes, on_time.
    A delivery without an estimate is never on time.

    Raises:
        MalformedRecordError: a delivery is delivered before it started
    """
    joined = deliveries.join(
        orders.select([
            "order_id",
            "restaurant_id",
            "estimated_delivery_time",
            "actual_delivery_time",
        ]),
        on="order_id",
        how="inner",
    ).with_columns(
        pl.coalesce([pl.col("actual_delivery_time"), pl.col("completed_at")]).alias("delivered_at")
    )

    malformed = joined.filter(pl.col("delivered_at") < pl.col("started_at"))
    if malformed.height > 0:
        raise MalformedRecordError(
            f"{malformed.height} deliveries end before they start: "
            f"{malformed['delivery_id'].head(5).to_list()}"
        )

    grace = timedelta(minutes=grace_minutes)
    return joined.with_columns([
        pl.col("delivered_at").is_not_null().alias("is_completed"),
        ((pl.col("delivered_at") - pl.col("started_at")).dt.total_milliseconds() / 60_000)
        .alias("duration_minutes"),
        (pl.col("delivered_at") <= pl.col("estimated_delivery_time") + grace)
        .fill_null(False)
        .alias("on_time"),
    ])


def average_delivery_minutes(prepared: pl.DataFrame) -> float:
    """Mean delivery time of completed deliveries, 0 when there are none"""
    completed = prepared.filter(pl.col("is_completed"))
    if completed.is_empty():
        return 0.0
    return as_number(completed["duration_minutes"].mean())


def _courier_breakdown(prepared: pl.DataFrame) -> List[DeliveryPerformance]:
    couriers = (
        prepared.group_by("delivery_person_id")
        .agg([
            pl.col("delivery_person_name").drop_nulls().first().alias("delivery_person_name"),
            pl.len().alias("delivery_count"),
            pl.col("is_completed").sum().alias("completed"),
            pl.col("duration_minutes").mean().alias("average_delivery_time"),
            pl.col("on_time").sum().alias("on_time"),
            pl.col("rating").mean().alias("rating"),
        ])
        .sort(["delivery_count", "delivery_person_id"], descending=[True, False])
    )

    return [
        DeliveryPerformance(
            delivery_person_id=row["delivery_person_id"],
            delivery_person_name=row["delivery_person_name"],
            delivery_count=row["delivery_count"],
            average_delivery_time=as_number(row["average_delivery_time"]),
            on_time_rate=safe_ratio(row["on_time"], row["completed"]),
            rating=as_number(row["rating"]),
        )
        for row in couriers.iter_rows(named=True)
    ]


def _zone_breakdown(prepared: pl.DataFrame) -> List[ZoneDelivery]:
    zones = (
        prepared.group_by("zone")
        .agg([
            pl.len().alias("order_count"),
            pl.col("duration_minutes").mean().alias("average_delivery_time"),
            pl.col("distance").mean().alias("average_distance"),
        ])
        .sort("zone")
    )

    return [
        ZoneDelivery(
            zone=row["zone"],
            order_count=row["order_count"],
            average_delivery_time=as_number(row["average_delivery_time"]),
            average_distance=as_number(row["average_distance"]),
        )
        for row in zones.iter_rows(named=True)
    ]


def delivery_metrics(
    deliveries: pl.DataFrame,
    orders: pl.DataFrame,
    grace_minutes: float = 0.0,
) -> DeliveryMetrics:
    """
    Delivery statistics for the snapshot.

    With no completed deliveries the averages and rates are 0; the result
    is still a well-formed structure.
    """
    prepared = prepare_deliveries(deliveries, orders, grace_minutes)
    completed = prepared.filter(pl.col("is_completed"))

    logger.debug(
        "Delivery metrics computed",
        deliveries=prepared.height,
        completed=completed.height,
    )

    return DeliveryMetrics(
        average_delivery_time=average_delivery_minutes(prepared),
        on_time_delivery_rate=safe_ratio(completed["on_time"].sum(), completed.height),
        delivery_performance=_courier_breakdown(prepared),
        zone_delivery=_zone_breakdown(prepared),
    )


class DeliveryMetricsCalculator(Calculator):
    """Delivery metrics section"""

    section = "delivery_metrics"
    requires = frozenset({Dataset.DELIVERIES, Dataset.ORDERS})

    def __init__(self, grace_minutes: float = 0.0):
        self.grace_minutes = grace_minutes

    def compute(self, snapshot: Snapshot, query: DashboardFilter) -> DeliveryMetrics:
        return delivery_metrics(snapshot.deliveries, snapshot.orders, self.grace_minutes)
