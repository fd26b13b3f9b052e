"""
Heatmap Aggregator

Dense day-of-week x hour-of-day grid of order counts. Day 0 is Monday, in
line with Monday-start weeks used by the bucketing engine.
"""

from datetime import date
from typing import List

import numpy as np
import polars as pl

from .base import Calculator, Dataset
from .bucketing import in_window
from .frames import Snapshot
from .query import DashboardFilter
from .schemas import HeatmapCell

DAYS_PER_WEEK = 7
HOURS_PER_DAY = 24


def _grid_skeleton() -> pl.DataFrame:
    return pl.DataFrame(
        {
            "day_of_week": [d for d in range(DAYS_PER_WEEK) for _ in range(HOURS_PER_DAY)],
            "hour": [h for _ in range(DAYS_PER_WEEK) for h in range(HOURS_PER_DAY)],
        },
        schema={"day_of_week": pl.Int64, "hour": pl.Int64},
    )


def heatmap_frame(orders: pl.DataFrame, start: date, end: date) -> pl.DataFrame:
    """
    Order counts for all 168 (day_of_week, hour) cells.

    Orders outside the [start, end] window are ignored.
    """
    counts = (
        orders.filter(in_window("created_at", start, end))
        .with_columns([
            (pl.col("created_at").dt.weekday().cast(pl.Int64) - 1).alias("day_of_week"),
            pl.col("created_at").dt.hour().cast(pl.Int64).alias("hour"),
        ])
        .group_by(["day_of_week", "hour"])
        .agg(pl.len().cast(pl.Int64).alias("order_count"))
    )

    return (
        _grid_skeleton()
        .join(counts, on=["day_of_week", "hour"], how="left")
        .with_columns(pl.col("order_count").fill_null(0))
        .sort(["day_of_week", "hour"])
    )


def heatmap_matrix(grid: pl.DataFrame) -> np.ndarray:
    """7x24 count matrix from a heatmap frame"""
    matrix = np.zeros((DAYS_PER_WEEK, HOURS_PER_DAY), dtype=np.int64)
    for row in grid.iter_rows(named=True):
        matrix[row["day_of_week"], row["hour"]] = row["order_count"]
    return matrix


def order_heatmap(orders: pl.DataFrame, start: date, end: date) -> List[HeatmapCell]:
    """Heatmap cells ordered by day, then hour"""
    return [
        HeatmapCell(
            day_of_week=row["day_of_week"],
            hour=row["hour"],
            order_count=row["order_count"],
        )
        for row in heatmap_frame(orders, start, end).iter_rows(named=True)
    ]


class HeatmapAggregator(Calculator):
    """Order heatmap section"""

    section = "heatmap"
    requires = frozenset({Dataset.ORDERS})

    def compute(self, snapshot: Snapshot, query: DashboardFilter) -> List[HeatmapCell]:
        return order_heatmap(snapshot.orders, query.start_date, query.end_date)
