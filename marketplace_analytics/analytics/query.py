"""
Dashboard Requests

Filter and request types plus parsing from raw (query-string) values.
Everything here runs before the data gateway is touched, so a bad request
never causes partial I/O.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional, Union
from zoneinfo import ZoneInfo

from .bucketing import Interval, validate_range
from .exceptions import InvalidFilterError, InvalidRangeError
from .records import OrderStatus


class View(str, Enum):
    """Requested dashboard view"""
    GROWTH = "growth"
    RETENTION = "retention"
    HEATMAP = "heatmap"
    RESTAURANT_PERFORMANCE = "restaurant-performance"
    DELIVERY_METRICS = "delivery-metrics"
    FULL_DASHBOARD = "full-dashboard"
    RESTAURANT_STATS = "restaurant-stats"
    CUSTOMER_INSIGHTS = "customer-insights"

    @property
    def requires_restaurant(self) -> bool:
        return self in RESTAURANT_VIEWS


RESTAURANT_VIEWS = frozenset({
    View.RESTAURANT_PERFORMANCE,
    View.RESTAURANT_STATS,
    View.CUSTOMER_INSIGHTS,
})


@dataclass(frozen=True)
class DashboardFilter:
    """Validated filter window"""
    start_date: date
    end_date: date
    interval: Interval = Interval.DAILY
    restaurant_id: Optional[int] = None
    status: Optional[OrderStatus] = None

    def __post_init__(self):
        validate_range(self.start_date, self.end_date)
        if self.restaurant_id is not None and self.restaurant_id <= 0:
            raise InvalidRangeError(f"restaurant_id must be positive, got {self.restaurant_id}")


@dataclass(frozen=True)
class DashboardRequest:
    """A view name plus its filter"""
    view: View
    filter: DashboardFilter

    def __post_init__(self):
        if self.view.requires_restaurant and self.filter.restaurant_id is None:
            raise InvalidFilterError(f"restaurant_id is required for the {self.view.value} view")


def parse_date(value: Union[str, date, datetime], tz: Optional[ZoneInfo] = None) -> date:
    """
    Parse an ISO-8601 date or datetime into a calendar date.

    Offset-aware datetimes are converted into the reporting zone first so the
    date matches the buckets the engine builds.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return value
    else:
        text = str(value).strip()
        try:
            if "T" in text or " " in text:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            else:
                return date.fromisoformat(text)
        except ValueError:
            raise InvalidFilterError(f"Invalid ISO-8601 date: '{value}'") from None

    if parsed.tzinfo is not None and tz is not None:
        parsed = parsed.astimezone(tz)
    return parsed.date()


def parse_status(value: Union[str, OrderStatus, None]) -> Optional[OrderStatus]:
    """Parse an order status name"""
    if value is None or value == "":
        return None
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).strip().lower())
    except ValueError:
        allowed = [s.value for s in OrderStatus]
        raise InvalidFilterError(f"Unknown order status '{value}': expected one of {allowed}") from None


def parse_view(value: Union[str, View]) -> View:
    """Parse a view name"""
    if isinstance(value, View):
        return value
    try:
        return View(str(value).strip().lower())
    except ValueError:
        allowed = [v.value for v in View]
        raise InvalidFilterError(f"Unknown view '{value}': expected one of {allowed}") from None


def parse_request(
    view: Union[str, View],
    start_date: Union[str, date, datetime],
    end_date: Union[str, date, datetime],
    restaurant_id: Optional[int] = None,
    status: Union[str, OrderStatus, None] = None,
    interval: Union[str, Interval] = Interval.DAILY,
    tz: Optional[ZoneInfo] = None,
) -> DashboardRequest:
    """
    Build a validated DashboardRequest from raw values.

    Raises:
        UnknownIntervalError: interval is not daily, weekly or monthly
        InvalidRangeError: start after end, or non-positive restaurant_id
        InvalidFilterError: any other malformed value
    """
    dashboard_filter = DashboardFilter(
        start_date=parse_date(start_date, tz),
        end_date=parse_date(end_date, tz),
        interval=Interval.parse(interval),
        restaurant_id=restaurant_id,
        status=parse_status(status),
    )
    return DashboardRequest(view=parse_view(view), filter=dashboard_filter)
