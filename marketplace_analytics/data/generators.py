"""
Synthetic Data Generator

Generates a realistic food-delivery marketplace for demos and development:
- Customers with signup dates spread before and across the range
- Restaurants with categorized menus
- Orders with lunch and dinner peaks, line items and delivery estimates
- Courier deliveries with zones, distances and ratings

Files are written to the curated zone in the layout ParquetDataGateway reads.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import polars as pl
import structlog
from faker import Faker

from marketplace_analytics.analytics.frames import DELIVERY_SCHEMA, LINE_ITEM_SCHEMA, ORDER_SCHEMA, USER_SCHEMA
from marketplace_analytics.analytics.records import OrderStatus
from marketplace_analytics.config import get_settings

logger = structlog.get_logger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

MENU_CATEGORIES = [
    ("Pizza", (9.0, 18.0)),
    ("Burgers", (7.0, 14.0)),
    ("Sushi", (8.0, 22.0)),
    ("Salads", (6.0, 12.0)),
    ("Pasta", (8.0, 16.0)),
    ("Tacos", (3.0, 9.0)),
    ("Desserts", (3.0, 8.0)),
    ("Drinks", (1.5, 5.0)),
]

ZONES = ["north", "south", "east", "west", "downtown"]

ORDER_STATUSES = [
    (OrderStatus.COMPLETED, 0.80),
    (OrderStatus.CANCELLED, 0.07),
    (OrderStatus.IN_DELIVERY, 0.05),
    (OrderStatus.PREPARING, 0.04),
    (OrderStatus.PLACED, 0.04),
]

# Relative order volume per hour of day: lunch and dinner peaks
HOUR_WEIGHTS = np.array([
    1, 1, 0.5, 0.2, 0.2, 0.3, 0.8, 1.5, 2, 2, 3, 6,
    9, 8, 4, 3, 3, 4, 8, 10, 9, 6, 3, 2,
])

DELIVERY_FEES = [0.0, 1.99, 2.99, 3.99]

ORDER_ITEM_COLUMNS = [
    "order_id", "product_id", "product_name", "category_id",
    "category_name", "quantity", "line_revenue",
]


@dataclass(frozen=True)
class MenuItem:
    product_id: int
    product_name: str
    category_id: int
    category_name: str
    price: float


def _frame(rows: List[dict], schema: dict) -> pl.DataFrame:
    data = {name: [row.get(name) for row in rows] for name in schema}
    return pl.DataFrame(data, schema=schema)


# =============================================================================
# GENERATORS
# =============================================================================

class UserGenerator:
    """Generate customers with signup timestamps"""

    def __init__(self, fake: Faker, rng: np.random.Generator):
        self.fake = fake
        self.rng = rng

    def generate(self, n: int, start: date, end: date, history_days: int = 180) -> pl.DataFrame:
        first = datetime.combine(start - timedelta(days=history_days), time.min)
        span = (datetime.combine(end + timedelta(days=1), time.min) - first).total_seconds()
        offsets = np.sort(self.rng.uniform(0, span, n))

        rows = [
            {
                "user_id": i + 1,
                "created_at": first + timedelta(seconds=float(offset)),
                "role": "customer",
                "full_name": self.fake.name(),
            }
            for i, offset in enumerate(offsets)
        ]
        return _frame(rows, USER_SCHEMA)


class RestaurantGenerator:
    """Generate restaurants and their categorized menus"""

    def __init__(self, fake: Faker, rng: np.random.Generator):
        self.fake = fake
        self.rng = rng

    def generate(self, n: int) -> Dict[int, dict]:
        restaurants = {}
        product_id = 1
        for restaurant_id in range(1, n + 1):
            picked = self.rng.choice(len(MENU_CATEGORIES), size=self.rng.integers(3, 6), replace=False)
            menu = []
            for index in sorted(picked):
                category_name, (low, high) = MENU_CATEGORIES[index]
                for _ in range(self.rng.integers(2, 5)):
                    menu.append(MenuItem(
                        product_id=product_id,
                        product_name=f"{self.fake.word().title()} {category_name.rstrip('s')}",
                        category_id=int(index) + 1,
                        category_name=category_name,
                        price=round(float(self.rng.uniform(low, high)), 2),
                    ))
                    product_id += 1
            restaurants[restaurant_id] = {
                "restaurant_name": f"{self.fake.last_name()}'s Kitchen",
                "menu": menu,
            }
        return restaurants


class OrderGenerator:
    """Generate orders, order lines and deliveries"""

    def __init__(
        self,
        users_df: pl.DataFrame,
        restaurants: Dict[int, dict],
        fake: Faker,
        rng: np.random.Generator,
        n_couriers: int = 25,
    ):
        self.signups = users_df["created_at"].to_numpy().astype("datetime64[us]")
        self.user_ids = users_df["user_id"].to_list()
        self.restaurants = restaurants
        self.fake = fake
        self.rng = rng
        self.couriers = {i: fake.name() for i in range(1, n_couriers + 1)}

    def _order_time(self, start: date, n_days: int) -> datetime:
        day = start + timedelta(days=int(self.rng.integers(0, n_days)))
        hour = int(self.rng.choice(24, p=HOUR_WEIGHTS / HOUR_WEIGHTS.sum()))
        minute = int(self.rng.integers(0, 60))
        return datetime.combine(day, time(hour, minute))

    def _customer(self, created_at: datetime) -> Optional[int]:
        # Only users who signed up before the order can place it
        eligible = int(np.searchsorted(self.signups, np.datetime64(created_at, "us")))
        if eligible == 0:
            return None
        return self.user_ids[int(self.rng.integers(0, eligible))]

    def generate(self, n: int, start: date, end: date) -> Dict[str, pl.DataFrame]:
        n_days = (end - start).days + 1
        statuses = [s for s, _ in ORDER_STATUSES]
        weights = [w for _, w in ORDER_STATUSES]

        orders, items, deliveries = [], [], []
        order_id = 0
        for _ in range(n):
            created_at = self._order_time(start, n_days)
            user_id = self._customer(created_at)
            if user_id is None:
                continue
            order_id += 1

            restaurant_id = int(self.rng.integers(1, len(self.restaurants) + 1))
            restaurant = self.restaurants[restaurant_id]
            status = statuses[int(self.rng.choice(len(statuses), p=weights))]

            subtotal = 0.0
            menu = restaurant["menu"]
            for index in self.rng.choice(len(menu), size=min(len(menu), int(self.rng.integers(1, 5))), replace=False):
                item = menu[int(index)]
                quantity = int(self.rng.integers(1, 4))
                line_revenue = round(item.price * quantity, 2)
                subtotal += line_revenue
                items.append({
                    "order_id": order_id,
                    "product_id": item.product_id,
                    "product_name": item.product_name,
                    "category_id": item.category_id,
                    "category_name": item.category_name,
                    "quantity": quantity,
                    "line_revenue": line_revenue,
                })

            delivery_fee = float(self.rng.choice(DELIVERY_FEES))
            estimated = created_at + timedelta(minutes=int(self.rng.integers(30, 51)))
            order = {
                "order_id": order_id,
                "user_id": user_id,
                "restaurant_id": restaurant_id,
                "restaurant_name": restaurant["restaurant_name"],
                "delivery_person_id": None,
                "status": status.value,
                "subtotal": round(subtotal, 2),
                "delivery_fee": delivery_fee,
                "total": round(subtotal + delivery_fee, 2),
                "created_at": created_at,
                "estimated_delivery_time": estimated,
                "actual_delivery_time": None,
            }

            if status in (OrderStatus.IN_DELIVERY, OrderStatus.COMPLETED):
                courier_id = int(self.rng.integers(1, len(self.couriers) + 1))
                started_at = created_at + timedelta(minutes=int(self.rng.integers(10, 21)))
                completed_at = None
                rating = None
                if status == OrderStatus.COMPLETED:
                    completed_at = started_at + timedelta(minutes=float(self.rng.gamma(6.0, 4.0)))
                    if self.rng.random() > 0.3:
                        rating = float(self.rng.integers(3, 11)) / 2
                order["delivery_person_id"] = courier_id
                order["actual_delivery_time"] = completed_at
                deliveries.append({
                    "delivery_id": len(deliveries) + 1,
                    "order_id": order_id,
                    "delivery_person_id": courier_id,
                    "delivery_person_name": self.couriers[courier_id],
                    "zone": str(self.rng.choice(ZONES)),
                    "distance": round(float(self.rng.uniform(0.5, 10.0)), 2),
                    "started_at": started_at,
                    "completed_at": completed_at,
                    "rating": rating,
                })

            orders.append(order)

        return {
            "orders": _frame(orders, ORDER_SCHEMA),
            "order_items": _frame(items, {c: LINE_ITEM_SCHEMA[c] for c in ORDER_ITEM_COLUMNS}),
            "deliveries": _frame(deliveries, DELIVERY_SCHEMA),
        }


# =============================================================================
# MAIN GENERATOR
# =============================================================================

class DataGenerator:
    """Main data generator orchestrator"""

    def __init__(self, output_dir: Optional[str] = None, seed: int = 42):
        self.output_dir = Path(output_dir or get_settings().data_lake.curated_path)
        self.fake = Faker()
        self.fake.seed_instance(seed)
        self.rng = np.random.default_rng(seed)

    def generate_all(
        self,
        start: date,
        end: date,
        n_users: int = 1000,
        n_restaurants: int = 20,
        n_orders: int = 10000,
        save: bool = True,
    ) -> Dict[str, pl.DataFrame]:
        """Generate the complete dataset for [start, end]"""
        logger.info(
            "Generating marketplace data",
            start=str(start),
            end=str(end),
            users=n_users,
            restaurants=n_restaurants,
            orders=n_orders,
        )

        users_df = UserGenerator(self.fake, self.rng).generate(n_users, start, end)
        restaurants = RestaurantGenerator(self.fake, self.rng).generate(n_restaurants)
        data = {"users": users_df}
        data.update(OrderGenerator(users_df, restaurants, self.fake, self.rng).generate(n_orders, start, end))

        if save:
            self._save_data(data)

        logger.info("Data generation complete", **{name: df.height for name, df in data.items()})
        return data

    def _save_data(self, data: Dict[str, pl.DataFrame]) -> None:
        """Save generated data as parquet files"""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        for name, df in data.items():
            parquet_path = self.output_dir / f"{name}.parquet"
            df.write_parquet(parquet_path)
            logger.info("Saved dataset", dataset=name, rows=df.height, path=str(parquet_path))
