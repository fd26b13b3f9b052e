"""
Input Records

Pre-joined, read-only records supplied by the data gateway. The engine never
follows relations on its own: everything a calculator needs (category names,
restaurant names, courier names) arrives on the record.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class OrderStatus(str, Enum):
    """Order lifecycle states"""
    PLACED = "placed"
    PREPARING = "preparing"
    IN_DELIVERY = "in_delivery"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class OrderLineItem:
    """Category-level order line"""
    product_id: int
    category_id: int
    quantity: int
    line_revenue: float
    product_name: Optional[str] = None
    category_name: Optional[str] = None


@dataclass(frozen=True)
class OrderRecord:
    """Order with its line items"""
    id: int
    user_id: int
    restaurant_id: int
    status: OrderStatus
    subtotal: float
    delivery_fee: float
    total: float
    created_at: datetime
    estimated_delivery_time: Optional[datetime] = None
    actual_delivery_time: Optional[datetime] = None
    delivery_person_id: Optional[int] = None
    restaurant_name: Optional[str] = None
    items: Tuple[OrderLineItem, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class UserRecord:
    """Marketplace user; created_at is the signup time"""
    id: int
    created_at: datetime
    role: str = "customer"
    full_name: Optional[str] = None


@dataclass(frozen=True)
class DeliveryRecord:
    """Courier delivery tied to an order"""
    id: int
    order_id: int
    delivery_person_id: int
    zone: str
    distance: float
    started_at: datetime
    completed_at: Optional[datetime] = None
    rating: Optional[float] = None
    delivery_person_name: Optional[str] = None
