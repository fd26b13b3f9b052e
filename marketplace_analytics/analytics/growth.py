"""
Growth & Trend Calculator

Per-bucket new, cumulative and period-over-period growth series.
"""

from datetime import date, datetime, time
from typing import List, Optional

import polars as pl

from .base import Calculator, Dataset
from .bucketing import Interval, bucketize
from .frames import Snapshot
from .query import DashboardFilter
from .schemas import UserGrowthPoint


def growth_frame(
    buckets: pl.DataFrame,
    count_column: str,
    baseline: int = 0,
    total_column: str = "total",
) -> pl.DataFrame:
    """
    Add running total and growth rate to a bucket frame.

    Args:
        buckets: Ordered bucket frame holding per-period new counts
        count_column: Column with new entities per period
        baseline: Entities that existed before the first period
        total_column: Name of the cumulative column to add

    growth_rate = (current - previous) / previous, 0 when previous is 0.
    Unlike the shares in ratios.py it is signed and not clamped to [0, 1]:
    a period-over-period change can fall to -1 or exceed 1 (see "Growth
    rate" in DESIGN.md).
    """
    buckets = buckets.with_columns([
        (pl.col(count_column).cum_sum() + baseline).alias(total_column),
        pl.col(count_column).shift(1).fill_null(0).alias("_previous"),
    ])

    return buckets.with_columns(
        pl.when(pl.col("_previous") > 0)
        .then((pl.col(count_column) - pl.col("_previous")) / pl.col("_previous"))
        .otherwise(0.0)
        .round(4)
        .alias("growth_rate")
    ).drop("_previous")


def users_before(users: pl.DataFrame, start: date) -> int:
    """Users who signed up before the range starts"""
    cutoff = datetime.combine(start, time.min)
    return users.filter(pl.col("created_at") < cutoff).height


def user_growth(
    users: pl.DataFrame,
    start: date,
    end: date,
    interval: Interval,
    baseline: Optional[int] = None,
) -> List[UserGrowthPoint]:
    """
    User growth series, one point per bucket.

    When `baseline` is not supplied it is taken from the users in the frame
    who signed up before `start`.
    """
    if baseline is None:
        baseline = users_before(users, start)

    buckets = bucketize(
        users, "created_at", start, end, interval,
        {"new_users": pl.len().cast(pl.Int64)},
    )
    buckets = growth_frame(buckets, "new_users", baseline, total_column="total_users")

    return [
        UserGrowthPoint(
            label=row["label"],
            period_start=row["period"],
            new_users=row["new_users"],
            total_users=row["total_users"],
            growth_rate=row["growth_rate"],
        )
        for row in buckets.iter_rows(named=True)
    ]


class GrowthCalculator(Calculator):
    """User growth section"""

    section = "growth"
    requires = frozenset({Dataset.USERS})

    def compute(self, snapshot: Snapshot, query: DashboardFilter) -> List[UserGrowthPoint]:
        return user_growth(
            snapshot.users,
            query.start_date,
            query.end_date,
            query.interval,
        )
