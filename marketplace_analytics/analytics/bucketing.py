"""
Time-Bucketing Engine

Maps timestamps onto ordered calendar periods and fills gaps with zero-valued
buckets so every series handed to a chart is contiguous.

Period boundaries:
- daily: calendar day
- weekly: Monday-start week
- monthly: calendar month

Timestamps are expected to be naive wall-clock values in the reporting time
zone already (see frames.py), so bucketing itself never deals with offsets.
"""

from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

import polars as pl

from .exceptions import InvalidRangeError, UnknownIntervalError


class Interval(str, Enum):
    """Bucket length"""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @classmethod
    def parse(cls, value: Union[str, "Interval"]) -> "Interval":
        """Parse an interval name, raising UnknownIntervalError"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnknownIntervalError(str(value)) from None


TRUNCATE_EVERY = {
    Interval.DAILY: "1d",
    Interval.WEEKLY: "1w",
    Interval.MONTHLY: "1mo",
}


def validate_range(start: date, end: date) -> None:
    """Reject ranges whose start falls after their end"""
    if start > end:
        raise InvalidRangeError(f"start_date {start} is after end_date {end}")


def window_bounds(start: date, end: date) -> Tuple[datetime, datetime]:
    """Half-open window [start 00:00, end + 1 day 00:00)"""
    return (
        datetime.combine(start, time.min),
        datetime.combine(end + timedelta(days=1), time.min),
    )


def in_window(column: str, start: date, end: date) -> pl.Expr:
    """Predicate selecting rows whose timestamp falls inside the window"""
    lower, upper = window_bounds(start, end)
    return (pl.col(column) >= lower) & (pl.col(column) < upper)


def period_start(day: date, interval: Interval) -> date:
    """First day of the period containing `day`"""
    if interval == Interval.WEEKLY:
        return day - timedelta(days=day.weekday())
    if interval == Interval.MONTHLY:
        return day.replace(day=1)
    return day


def next_period(start: date, interval: Interval) -> date:
    """First day of the period following the one starting at `start`"""
    if interval == Interval.WEEKLY:
        return start + timedelta(weeks=1)
    if interval == Interval.MONTHLY:
        if start.month == 12:
            return date(start.year + 1, 1, 1)
        return date(start.year, start.month + 1, 1)
    return start + timedelta(days=1)


def period_starts(start: date, end: date, interval: Interval) -> List[date]:
    """
    Start dates of every period intersecting [start, end], in order.

    A degenerate range (start == end) yields exactly one period.
    """
    validate_range(start, end)

    periods = []
    current = period_start(start, interval)
    while current <= end:
        periods.append(current)
        current = next_period(current, interval)
    return periods


def period_label(start: date, interval: Interval) -> str:
    """Period key shown to callers"""
    if interval == Interval.WEEKLY:
        iso_year, iso_week, _ = start.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    if interval == Interval.MONTHLY:
        return start.strftime("%Y-%m")
    return start.isoformat()


def period_frame(start: date, end: date, interval: Interval) -> pl.DataFrame:
    """Dense skeleton with one row per period: period, label, period_index"""
    periods = period_starts(start, end, interval)
    return pl.DataFrame(
        {
            "period": periods,
            "label": [period_label(p, interval) for p in periods],
            "period_index": list(range(len(periods))),
        },
        schema={"period": pl.Date, "label": pl.Utf8, "period_index": pl.Int64},
    )


def assign_period(
    df: pl.DataFrame,
    column: str,
    interval: Interval,
    alias: str = "period",
) -> pl.DataFrame:
    """Add the period start date of `column` as `alias`"""
    return df.with_columns(
        pl.col(column).dt.truncate(TRUNCATE_EVERY[interval]).dt.date().alias(alias)
    )


def bucketize(
    df: pl.DataFrame,
    column: str,
    start: date,
    end: date,
    interval: Interval,
    aggregations: Optional[Dict[str, pl.Expr]] = None,
) -> pl.DataFrame:
    """
    Aggregate `df` into contiguous period buckets.

    Args:
        df: Records with a naive datetime column
        column: Timestamp column to bucket on
        start: First day of the range (inclusive)
        end: Last day of the range (inclusive)
        interval: Bucket length
        aggregations: Output column name -> polars aggregation expression

    Returns:
        One row per period ordered by period start, with zero-filled
        aggregates for periods that had no records.
    """
    skeleton = period_frame(start, end, interval)
    if not aggregations:
        return skeleton

    grouped = (
        assign_period(df.filter(in_window(column, start, end)), column, interval)
        .group_by("period")
        .agg([expr.alias(name) for name, expr in aggregations.items()])
    )

    buckets = skeleton.join(grouped, on="period", how="left")
    return buckets.with_columns(
        [pl.col(name).fill_null(0) for name in aggregations]
    ).sort("period")
