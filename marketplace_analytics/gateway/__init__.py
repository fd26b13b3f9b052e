"""
Data Gateway Module

Sources of raw records for the analytics engine.
"""

from .base import DataGateway
from .memory import InMemoryDataGateway
from .parquet import ParquetDataGateway

__all__ = ["DataGateway", "InMemoryDataGateway", "ParquetDataGateway"]
