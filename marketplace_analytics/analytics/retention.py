"""
Cohort Retention Calculator

Groups members by the bucket they joined in and tracks, for every later
bucket inside the range, how many of them placed at least one completed
order.

The cohort grid is always complete: every bucket in the range yields a
cohort, including empty ones, and every cohort reports each offset that
still falls inside the range.
"""

from datetime import date
from typing import Dict, Tuple

import polars as pl

from .base import Calculator, Dataset
from .bucketing import Interval, assign_period, in_window, period_frame
from .frames import Snapshot
from .query import DashboardFilter
from .ratios import safe_ratio
from .records import OrderStatus
from .schemas import Cohort, CohortRetentionPoint, UserRetention


def _cohort_sizes(members: pl.DataFrame) -> Dict[int, int]:
    sizes = members.group_by("cohort_index").agg(
        pl.col("user_id").n_unique().alias("initial_users")
    )
    return dict(zip(sizes["cohort_index"].to_list(), sizes["initial_users"].to_list()))


def _active_counts(members: pl.DataFrame, activity: pl.DataFrame) -> Dict[Tuple[int, int], int]:
    active = (
        activity.join(members.select(["user_id", "cohort_index"]), on="user_id", how="inner")
        .with_columns((pl.col("period_index") - pl.col("cohort_index")).alias("offset"))
        .filter(pl.col("offset") > 0)
        .group_by(["cohort_index", "offset"])
        .agg(pl.col("user_id").n_unique().alias("active_users"))
    )
    return {
        (row["cohort_index"], row["offset"]): row["active_users"]
        for row in active.iter_rows(named=True)
    }


def cohort_retention(
    members: pl.DataFrame,
    activity: pl.DataFrame,
    start: date,
    end: date,
    interval: Interval,
    joined_column: str = "created_at",
    activity_column: str = "created_at",
) -> UserRetention:
    """
    Build the cohort retention grid.

    Args:
        members: One row per member with `user_id` and the join timestamp
        activity: Qualifying activity rows with `user_id` and a timestamp
        start: First day of the range
        end: Last day of the range
        interval: Bucket length shared by cohorts and offsets

    Overall retention is measured in the most recent bucket of the range,
    the one period every cohort shares: retained users are the members of
    earlier cohorts active in that bucket, divided by those cohorts' size.
    """
    periods = period_frame(start, end, interval)
    index = periods.select(["period", "period_index"])
    n_periods = periods.height

    members = (
        assign_period(members.filter(in_window(joined_column, start, end)), joined_column, interval)
        .join(index, on="period", how="inner")
        .rename({"period_index": "cohort_index"})
        .unique(subset=["user_id"], keep="first")
    )
    activity = (
        assign_period(activity.filter(in_window(activity_column, start, end)), activity_column, interval)
        .join(index, on="period", how="inner")
        .select(["user_id", "period_index"])
        .unique()
    )

    sizes = _cohort_sizes(members)
    active = _active_counts(members, activity)

    cohorts = []
    for cohort_index, label in enumerate(periods["label"].to_list()):
        initial = sizes.get(cohort_index, 0)
        retention_data = [
            CohortRetentionPoint(
                period=0,
                active_users=initial,
                retention_rate=1.0 if initial > 0 else 0.0,
            )
        ]
        for offset in range(1, n_periods - cohort_index):
            active_users = active.get((cohort_index, offset), 0)
            retention_data.append(
                CohortRetentionPoint(
                    period=offset,
                    active_users=active_users,
                    retention_rate=safe_ratio(active_users, initial),
                )
            )
        cohorts.append(
            Cohort(cohort=label, initial_users=initial, retention_data=retention_data)
        )

    latest = n_periods - 1
    retained = sum(
        active.get((i, latest - i), 0) for i in range(latest)
    )
    observed = sum(sizes.get(i, 0) for i in range(latest))

    return UserRetention(
        retention_rate=safe_ratio(retained, observed),
        total_users=sum(sizes.values()),
        retained_users=retained,
        cohorts=cohorts,
    )


def completed_orders(orders: pl.DataFrame) -> pl.DataFrame:
    return orders.filter(pl.col("status") == OrderStatus.COMPLETED.value)


class CohortRetentionCalculator(Calculator):
    """User retention section: signup cohorts, completed-order activity"""

    section = "retention"
    requires = frozenset({Dataset.USERS, Dataset.ORDERS})

    def compute(self, snapshot: Snapshot, query: DashboardFilter) -> UserRetention:
        return cohort_retention(
            members=snapshot.users,
            activity=completed_orders(snapshot.orders),
            start=query.start_date,
            end=query.end_date,
            interval=query.interval,
        )
