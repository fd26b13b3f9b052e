"""
Calculator Interface

Each dashboard section is produced by one calculator. A calculator declares
the datasets it reads so the orchestrator fetches nothing more, and computes
its section from an immutable snapshot without further I/O.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, FrozenSet

from .frames import Snapshot
from .query import DashboardFilter


class Dataset(str, Enum):
    """Record sets served by the data gateway"""
    ORDERS = "orders"
    USERS = "users"
    DELIVERIES = "deliveries"


class Calculator(ABC):
    """Pure, read-only section calculator"""

    section: str = ""
    requires: FrozenSet[Dataset] = frozenset()

    @abstractmethod
    def compute(self, snapshot: Snapshot, query: DashboardFilter) -> Any:
        """Compute the section payload (a response model or a list of them)"""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(section={self.section!r})"
