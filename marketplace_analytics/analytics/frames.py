"""
Record to DataFrame Conversion

Explicit, pure conversion of gateway records into typed polars frames.
Every timestamp is normalized to the reporting time zone and stored as a
naive wall-clock value, so downstream bucketing, hour extraction and day
extraction all agree on which calendar day a record belongs to.

Naive input timestamps are taken to already be in the reporting zone.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Optional, Tuple
from zoneinfo import ZoneInfo

import polars as pl

from .exceptions import MalformedRecordError
from .records import DeliveryRecord, OrderRecord, UserRecord

TIMESTAMP = pl.Datetime("us")

ORDER_SCHEMA = {
    "order_id": pl.Int64,
    "user_id": pl.Int64,
    "restaurant_id": pl.Int64,
    "restaurant_name": pl.Utf8,
    "delivery_person_id": pl.Int64,
    "status": pl.Utf8,
    "subtotal": pl.Float64,
    "delivery_fee": pl.Float64,
    "total": pl.Float64,
    "created_at": TIMESTAMP,
    "estimated_delivery_time": TIMESTAMP,
    "actual_delivery_time": TIMESTAMP,
}

LINE_ITEM_SCHEMA = {
    "order_id": pl.Int64,
    "user_id": pl.Int64,
    "restaurant_id": pl.Int64,
    "restaurant_name": pl.Utf8,
    "status": pl.Utf8,
    "created_at": TIMESTAMP,
    "product_id": pl.Int64,
    "product_name": pl.Utf8,
    "category_id": pl.Int64,
    "category_name": pl.Utf8,
    "quantity": pl.Int64,
    "line_revenue": pl.Float64,
}

USER_SCHEMA = {
    "user_id": pl.Int64,
    "created_at": TIMESTAMP,
    "role": pl.Utf8,
    "full_name": pl.Utf8,
}

DELIVERY_SCHEMA = {
    "delivery_id": pl.Int64,
    "order_id": pl.Int64,
    "delivery_person_id": pl.Int64,
    "delivery_person_name": pl.Utf8,
    "zone": pl.Utf8,
    "distance": pl.Float64,
    "started_at": TIMESTAMP,
    "completed_at": TIMESTAMP,
    "rating": pl.Float64,
}


def normalize_timestamp(value: Optional[datetime], tz: ZoneInfo) -> Optional[datetime]:
    """Convert to the reporting zone and drop tzinfo"""
    if value is None:
        return None
    if value.tzinfo is not None:
        return value.astimezone(tz).replace(tzinfo=None)
    return value


def _columns(schema: dict) -> dict:
    return {name: [] for name in schema}


def orders_to_frame(orders: Iterable[OrderRecord], tz: ZoneInfo) -> pl.DataFrame:
    """One row per order"""
    data = _columns(ORDER_SCHEMA)
    for order in orders:
        data["order_id"].append(order.id)
        data["user_id"].append(order.user_id)
        data["restaurant_id"].append(order.restaurant_id)
        data["restaurant_name"].append(order.restaurant_name)
        data["delivery_person_id"].append(order.delivery_person_id)
        data["status"].append(order.status.value)
        data["subtotal"].append(float(order.subtotal))
        data["delivery_fee"].append(float(order.delivery_fee))
        data["total"].append(float(order.total))
        data["created_at"].append(normalize_timestamp(order.created_at, tz))
        data["estimated_delivery_time"].append(normalize_timestamp(order.estimated_delivery_time, tz))
        data["actual_delivery_time"].append(normalize_timestamp(order.actual_delivery_time, tz))
    return pl.DataFrame(data, schema=ORDER_SCHEMA)


def line_items_to_frame(orders: Iterable[OrderRecord], tz: ZoneInfo) -> pl.DataFrame:
    """One row per order line, carrying the parent order's keys"""
    data = _columns(LINE_ITEM_SCHEMA)
    for order in orders:
        created_at = normalize_timestamp(order.created_at, tz)
        for item in order.items:
            data["order_id"].append(order.id)
            data["user_id"].append(order.user_id)
            data["restaurant_id"].append(order.restaurant_id)
            data["restaurant_name"].append(order.restaurant_name)
            data["status"].append(order.status.value)
            data["created_at"].append(created_at)
            data["product_id"].append(item.product_id)
            data["product_name"].append(item.product_name)
            data["category_id"].append(item.category_id)
            data["category_name"].append(item.category_name)
            data["quantity"].append(int(item.quantity))
            data["line_revenue"].append(float(item.line_revenue))
    return pl.DataFrame(data, schema=LINE_ITEM_SCHEMA)


def users_to_frame(users: Iterable[UserRecord], tz: ZoneInfo) -> pl.DataFrame:
    """One row per user"""
    data = _columns(USER_SCHEMA)
    for user in users:
        data["user_id"].append(user.id)
        data["created_at"].append(normalize_timestamp(user.created_at, tz))
        data["role"].append(user.role)
        data["full_name"].append(user.full_name)
    return pl.DataFrame(data, schema=USER_SCHEMA)


def deliveries_to_frame(deliveries: Iterable[DeliveryRecord], tz: ZoneInfo) -> pl.DataFrame:
    """One row per delivery"""
    data = _columns(DELIVERY_SCHEMA)
    for delivery in deliveries:
        data["delivery_id"].append(delivery.id)
        data["order_id"].append(delivery.order_id)
        data["delivery_person_id"].append(delivery.delivery_person_id)
        data["delivery_person_name"].append(delivery.delivery_person_name)
        data["zone"].append(delivery.zone)
        data["distance"].append(float(delivery.distance))
        data["started_at"].append(normalize_timestamp(delivery.started_at, tz))
        data["completed_at"].append(normalize_timestamp(delivery.completed_at, tz))
        data["rating"].append(None if delivery.rating is None else float(delivery.rating))
    return pl.DataFrame(data, schema=DELIVERY_SCHEMA)


def empty_frame(schema: dict) -> pl.DataFrame:
    return pl.DataFrame(_columns(schema), schema=schema)


def _orders_frames(orders: Iterable[OrderRecord], tz: ZoneInfo) -> Tuple[pl.DataFrame, pl.DataFrame]:
    orders = list(orders)
    return orders_to_frame(orders, tz), line_items_to_frame(orders, tz)


# Dataset name -> (converter, schemas of the frames it produces)
CONVERTERS: Dict[str, Tuple[Callable[..., Tuple[pl.DataFrame, ...]], Tuple[dict, ...]]] = {
    "orders": (_orders_frames, (ORDER_SCHEMA, LINE_ITEM_SCHEMA)),
    "users": (lambda users, tz: (users_to_frame(users, tz),), (USER_SCHEMA,)),
    "deliveries": (lambda deliveries, tz: (deliveries_to_frame(deliveries, tz),), (DELIVERY_SCHEMA,)),
}


def convert_dataset(dataset: str, records: Iterable[Any], tz: ZoneInfo) -> Tuple[pl.DataFrame, ...]:
    """
    Convert one dataset into its frames.

    Raises:
        MalformedRecordError: a record has a missing or mistyped field
    """
    convert, _ = CONVERTERS[dataset]
    try:
        return convert(records or [], tz)
    except (TypeError, ValueError, AttributeError, OverflowError, pl.exceptions.PolarsError) as e:
        raise MalformedRecordError(f"Malformed {dataset} record ({type(e).__name__}: {e})", dataset) from e


@dataclass(frozen=True)
class Snapshot:
    """
    Immutable per-request view of the fetched records.

    Datasets a request did not need are left as empty, correctly typed
    frames so calculators can always rely on the schema.
    """
    orders: pl.DataFrame
    line_items: pl.DataFrame
    users: pl.DataFrame
    deliveries: pl.DataFrame

    @classmethod
    def from_records(
        cls,
        tz: ZoneInfo,
        orders: Optional[Iterable[OrderRecord]] = None,
        users: Optional[Iterable[UserRecord]] = None,
        deliveries: Optional[Iterable[DeliveryRecord]] = None,
    ) -> "Snapshot":
        """Strict conversion: the first malformed dataset raises MalformedRecordError"""
        snapshot, malformed = cls.from_datasets(
            tz,
            {"orders": orders or [], "users": users or [], "deliveries": deliveries or []},
        )
        if malformed:
            raise next(iter(malformed.values()))
        return snapshot

    @classmethod
    def from_datasets(
        cls,
        tz: ZoneInfo,
        records: Dict[str, Iterable[Any]],
    ) -> Tuple["Snapshot", Dict[str, MalformedRecordError]]:
        """
        Convert each dataset independently.

        A malformed dataset is replaced by empty frames and reported in the
        returned mapping; the other datasets are unaffected.
        """
        frames: Dict[str, Tuple[pl.DataFrame, ...]] = {}
        malformed: Dict[str, MalformedRecordError] = {}
        for dataset, (_, schemas) in CONVERTERS.items():
            try:
                frames[dataset] = convert_dataset(dataset, records.get(dataset, []), tz)
            except MalformedRecordError as e:
                malformed[dataset] = e
                frames[dataset] = tuple(empty_frame(schema) for schema in schemas)

        orders, line_items = frames["orders"]
        snapshot = cls(
            orders=orders,
            line_items=line_items,
            users=frames["users"][0],
            deliveries=frames["deliveries"][0],
        )
        return snapshot, malformed
