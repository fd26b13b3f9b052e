"""
Analytics Response Schemas

Pydantic models for every structure the engine returns. Fields are
snake_case in Python and serialize to camelCase for API consumers:

    result.model_dump(by_alias=True, mode="json")
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AnalyticsModel(BaseModel):
    """Base model with camelCase serialization"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# TIME SERIES
# =============================================================================

class RevenueBucket(AnalyticsModel):
    """Revenue within one period"""
    label: str = Field(alias="date")
    period_start: date
    total_amount: float
    order_count: int


class UserGrowthPoint(AnalyticsModel):
    """User growth within one period"""
    label: str = Field(alias="date")
    period_start: date
    new_users: int
    total_users: int
    growth_rate: float


# =============================================================================
# RETENTION
# =============================================================================

class CohortRetentionPoint(AnalyticsModel):
    """Activity of a cohort `period` buckets after joining"""
    period: int
    active_users: int
    retention_rate: float


class Cohort(AnalyticsModel):
    """Users who joined within the same bucket"""
    cohort: str
    initial_users: int
    retention_data: List[CohortRetentionPoint]


class UserRetention(AnalyticsModel):
    """Cohort grid plus overall retention"""
    retention_rate: float
    total_users: int
    retained_users: int
    cohorts: List[Cohort]


# =============================================================================
# HEATMAP
# =============================================================================

class HeatmapCell(AnalyticsModel):
    """Orders placed on `day_of_week` (0 = Monday) during `hour`"""
    day_of_week: int
    hour: int
    order_count: int


# =============================================================================
# RESTAURANT
# =============================================================================

class MenuPerformance(AnalyticsModel):
    """Sales of one menu category"""
    category_id: int
    category_name: Optional[str] = None
    total_sold: int
    revenue: float
    contribution: float


class PeakTime(AnalyticsModel):
    """Contiguous busy hours [start_hour, end_hour) on one day"""
    day_of_week: int
    day_name: str
    start_hour: int
    end_hour: int
    order_count: int


class RestaurantPerformance(AnalyticsModel):
    restaurant_id: int
    average_order_value: float
    order_frequency: float
    customer_retention_rate: float
    average_delivery_time: float
    cancellation_rate: float
    menu_performance: List[MenuPerformance]
    peak_times: List[PeakTime]


# =============================================================================
# DELIVERY
# =============================================================================

class DeliveryPerformance(AnalyticsModel):
    """Per-courier delivery statistics"""
    delivery_person_id: int
    delivery_person_name: Optional[str] = None
    delivery_count: int
    average_delivery_time: float
    on_time_rate: float
    rating: float


class ZoneDelivery(AnalyticsModel):
    """Per-zone delivery statistics"""
    zone: str
    order_count: int
    average_delivery_time: float
    average_distance: float


class DeliveryMetrics(AnalyticsModel):
    average_delivery_time: float
    on_time_delivery_rate: float
    delivery_performance: List[DeliveryPerformance]
    zone_delivery: List[ZoneDelivery]


# =============================================================================
# DASHBOARD SUMMARY
# =============================================================================

class TopRestaurant(AnalyticsModel):
    restaurant_id: int
    restaurant_name: Optional[str] = None
    order_count: int
    total_revenue: float


class TopProduct(AnalyticsModel):
    product_id: int
    product_name: Optional[str] = None
    restaurant_name: Optional[str] = None
    order_count: int
    total_revenue: float


class OrdersByStatus(AnalyticsModel):
    status: str
    count: int


class DashboardStats(AnalyticsModel):
    """Marketplace-wide totals for the filter window"""
    total_orders: int
    completed_orders: int
    cancelled_orders: int
    total_revenue: float
    total_users: int
    total_restaurants: int
    new_orders_today: int
    revenue_today: float
    top_restaurants: List[TopRestaurant]
    top_products: List[TopProduct]
    revenue_by_date: List[RevenueBucket]
    orders_by_status: List[OrdersByStatus]


class OrdersByHour(AnalyticsModel):
    hour: int
    order_count: int


class OrderDistribution(AnalyticsModel):
    category: str
    percentage: float
    amount: float


class RestaurantStats(AnalyticsModel):
    """Dashboard totals scoped to one restaurant"""
    restaurant_id: int
    restaurant_name: Optional[str] = None
    total_orders: int
    completed_orders: int
    cancelled_orders: int
    total_revenue: float
    new_orders_today: int
    revenue_today: float
    total_customers: int
    top_products: List[TopProduct]
    revenue_by_date: List[RevenueBucket]
    orders_by_hour: List[OrdersByHour]
    order_distribution: List[OrderDistribution]


# =============================================================================
# CUSTOMERS
# =============================================================================

class CustomerInsight(AnalyticsModel):
    user_id: int
    full_name: Optional[str] = None
    order_count: int
    total_spent: float
    last_order_date: datetime
    favorite_products: List[str]
    order_frequency: str


class SectionWarning(AnalyticsModel):
    """A dashboard section that was skipped"""
    section: str
    message: str
