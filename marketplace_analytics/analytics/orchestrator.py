"""
Dashboard Orchestrator

Turns a validated DashboardRequest into a DashboardResult:

1. resolve the sections the view needs
2. fetch only the datasets those calculators declare, concurrently
3. convert the records into one immutable snapshot
4. run the calculators on a bounded worker pool
5. merge the sections, flagging any calculator that failed

Gateway failures abort the request with DataUnavailable. A failing
calculator only removes its own section, and a dataset holding a malformed
record removes the sections that read it.
"""

import asyncio
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Callable, Dict, FrozenSet, List, Optional, Sequence, Tuple, Union

import structlog
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from marketplace_analytics.config import AnalyticsSettings, get_settings

from .base import Calculator, Dataset
from .bucketing import Interval
from .customers import CustomerInsightsCalculator
from .delivery import DeliveryMetricsCalculator
from .exceptions import AnalyticsError, DataUnavailable, MalformedRecordError, PartialComputationWarning
from .frames import Snapshot
from .growth import GrowthCalculator
from .heatmap import HeatmapAggregator
from .query import DashboardFilter, DashboardRequest, View, parse_request
from .records import OrderStatus
from .restaurant import RestaurantPerformanceCalculator
from .retention import CohortRetentionCalculator
from .schemas import SectionWarning
from .summary import DashboardSummaryCalculator, RestaurantStatsCalculator

if TYPE_CHECKING:
    from marketplace_analytics.gateway.base import DataGateway

logger = structlog.get_logger(__name__)

VIEW_SECTIONS: Dict[View, Tuple[str, ...]] = {
    View.GROWTH: ("growth",),
    View.RETENTION: ("retention",),
    View.HEATMAP: ("heatmap",),
    View.RESTAURANT_PERFORMANCE: ("restaurant_performance",),
    View.DELIVERY_METRICS: ("delivery_metrics",),
    View.RESTAURANT_STATS: ("restaurant_stats",),
    View.CUSTOMER_INSIGHTS: ("customer_insights",),
    View.FULL_DASHBOARD: ("summary", "growth", "retention", "heatmap", "delivery_metrics"),
}


def sections_for(request: DashboardRequest) -> Tuple[str, ...]:
    """Sections computed for a request, in response order"""
    sections = VIEW_SECTIONS[request.view]
    if request.view == View.FULL_DASHBOARD and request.filter.restaurant_id is not None:
        sections += ("restaurant_performance",)
    return sections


def default_calculators(
    settings: AnalyticsSettings,
    today: Callable[[], date],
) -> Dict[str, Calculator]:
    """One calculator per section, tuned from settings"""
    calculators = [
        DashboardSummaryCalculator(today, top_n=settings.top_n),
        GrowthCalculator(),
        CohortRetentionCalculator(),
        HeatmapAggregator(),
        RestaurantPerformanceCalculator(
            grace_minutes=settings.on_time_grace_minutes,
            peak_quantile=settings.peak_quantile,
            max_peak_windows=settings.max_peak_windows,
        ),
        DeliveryMetricsCalculator(grace_minutes=settings.on_time_grace_minutes),
        RestaurantStatsCalculator(today, top_n=settings.top_n),
        CustomerInsightsCalculator(favorite_limit=settings.favorite_products),
    ]
    return {calculator.section: calculator for calculator in calculators}


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json")
    if isinstance(value, (list, tuple)):
        return [_dump(item) for item in value]
    return value


@dataclass
class DashboardResult:
    """Computed sections of one request plus the sections that were skipped"""
    view: View
    sections: Dict[str, Any]
    warnings: List[PartialComputationWarning] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.warnings

    def to_response(self) -> Any:
        """
        Plain JSON-ready structure with camelCase keys.

        A single view returns its section structure directly; full-dashboard
        returns section name -> structure plus a `warnings` list.

        Raises:
            PartialComputationWarning: the section of a single view failed
        """
        if self.view != View.FULL_DASHBOARD:
            section = VIEW_SECTIONS[self.view][0]
            if section not in self.sections:
                raise self.warnings[0]
            return _dump(self.sections[section])

        response = {to_camel(name): _dump(value) for name, value in self.sections.items()}
        response["warnings"] = [
            SectionWarning(section=w.section, message=w.reason).model_dump(by_alias=True)
            for w in self.warnings
        ]
        return response


class DashboardOrchestrator:
    """
    Coordinates the gateway and the section calculators.

    Example:
        orchestrator = DashboardOrchestrator(InMemoryDataGateway(orders, users))
        result = await orchestrator.run(parse_request("growth", "2024-01-01", "2024-01-31"))
        payload = result.to_response()
    """

    def __init__(
        self,
        gateway: "DataGateway",
        calculators: Optional[Dict[str, Calculator]] = None,
        settings: Optional[AnalyticsSettings] = None,
        executor: Optional[Executor] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.gateway = gateway
        self.settings = settings or get_settings().analytics
        self.tz = self.settings.tz
        self.clock = clock or (lambda: datetime.now(self.tz))
        self.calculators = calculators if calculators is not None else default_calculators(self.settings, self.today)

        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(
            max_workers=self.settings.max_workers,
            thread_name_prefix="analytics",
        )

    def today(self) -> date:
        """Current calendar date in the reporting time zone"""
        now = self.clock()
        if now.tzinfo is not None:
            now = now.astimezone(self.tz)
        return now.date()

    async def query(
        self,
        view: Union[str, View],
        start_date: Union[str, date, datetime],
        end_date: Union[str, date, datetime],
        restaurant_id: Optional[int] = None,
        status: Union[str, OrderStatus, None] = None,
        interval: Union[str, Interval, None] = None,
    ) -> DashboardResult:
        """Parse raw request values and run the request"""
        request = parse_request(
            view,
            start_date,
            end_date,
            restaurant_id=restaurant_id,
            status=status,
            interval=interval or self.settings.default_interval,
            tz=self.tz,
        )
        return await self.run(request)

    async def run(self, request: DashboardRequest) -> DashboardResult:
        """
        Compute every section of the requested view.

        Raises:
            DataUnavailable: a dataset could not be fetched
        """
        started = time.perf_counter()
        calculators = self._calculators_for(request)
        datasets = frozenset().union(*(c.requires for c in calculators))

        log = logger.bind(
            view=request.view.value,
            start_date=str(request.filter.start_date),
            end_date=str(request.filter.end_date),
            interval=request.filter.interval.value,
            restaurant_id=request.filter.restaurant_id,
        )
        log.info(
            "Dashboard request started",
            sections=[c.section for c in calculators],
            datasets=sorted(d.value for d in datasets),
        )

        snapshot, malformed = await self._fetch(request.filter, datasets)
        runnable, warnings = self._exclude_malformed(calculators, malformed)
        sections, failed = await self._compute(runnable, snapshot, request.filter)
        warnings.extend(failed)

        log.info(
            "Dashboard request finished",
            sections=list(sections),
            skipped=[w.section for w in warnings],
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return DashboardResult(view=request.view, sections=sections, warnings=warnings)

    def _calculators_for(self, request: DashboardRequest) -> List[Calculator]:
        calculators = []
        for section in sections_for(request):
            if section not in self.calculators:
                raise AnalyticsError(f"No calculator registered for section '{section}'")
            calculators.append(self.calculators[section])
        return calculators

    async def _fetch_one(self, dataset: Dataset, query: DashboardFilter) -> Sequence[Any]:
        fetchers = {
            Dataset.ORDERS: self.gateway.fetch_orders,
            Dataset.USERS: self.gateway.fetch_users,
            Dataset.DELIVERIES: self.gateway.fetch_deliveries,
        }
        try:
            return await fetchers[dataset](query)
        except DataUnavailable:
            raise
        except Exception as e:
            raise DataUnavailable(dataset.value, f"{type(e).__name__}: {e}") from e

    async def _fetch(
        self,
        query: DashboardFilter,
        datasets: FrozenSet[Dataset],
    ) -> Tuple[Snapshot, Dict[Dataset, MalformedRecordError]]:
        """Fetch the datasets concurrently; the first failure cancels the rest"""
        started = time.perf_counter()
        try:
            async with asyncio.TaskGroup() as tg:
                tasks = {
                    dataset: tg.create_task(self._fetch_one(dataset, query))
                    for dataset in datasets
                }
        except ExceptionGroup as group:
            error = group.exceptions[0]
            logger.error(
                "Dashboard fetch failed",
                dataset=getattr(error, "dataset", None),
                error=str(error),
                failures=len(group.exceptions),
            )
            raise error from None

        records = {dataset.value: task.result() for dataset, task in tasks.items()}
        logger.debug(
            "Dashboard data fetched",
            counts={name: len(rows) for name, rows in records.items()},
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )

        loop = asyncio.get_running_loop()
        snapshot, malformed = await loop.run_in_executor(
            self.executor,
            Snapshot.from_datasets,
            self.tz,
            records,
        )
        return snapshot, {Dataset(name): error for name, error in malformed.items()}

    def _exclude_malformed(
        self,
        calculators: Sequence[Calculator],
        malformed: Dict[Dataset, MalformedRecordError],
    ) -> Tuple[List[Calculator], List[PartialComputationWarning]]:
        """Flag every section that reads a malformed dataset"""
        runnable: List[Calculator] = []
        warnings: List[PartialComputationWarning] = []
        for calculator in calculators:
            broken = sorted(d.value for d in calculator.requires if d in malformed)
            if not broken:
                runnable.append(calculator)
                continue
            error = malformed[Dataset(broken[0])]
            logger.warning(
                "Dashboard section skipped",
                section=calculator.section,
                dataset=broken[0],
                error=str(error),
                error_type=type(error).__name__,
            )
            warnings.append(PartialComputationWarning(calculator.section, str(error)))
        return runnable, warnings

    async def _compute(
        self,
        calculators: Sequence[Calculator],
        snapshot: Snapshot,
        query: DashboardFilter,
    ) -> Tuple[Dict[str, Any], List[PartialComputationWarning]]:
        loop = asyncio.get_running_loop()
        outcomes = await asyncio.gather(
            *(
                loop.run_in_executor(self.executor, calculator.compute, snapshot, query)
                for calculator in calculators
            ),
            return_exceptions=True,
        )

        sections: Dict[str, Any] = {}
        warnings: List[PartialComputationWarning] = []
        for calculator, outcome in zip(calculators, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(
                    "Dashboard section skipped",
                    section=calculator.section,
                    error=str(outcome),
                    error_type=type(outcome).__name__,
                )
                warnings.append(
                    PartialComputationWarning(calculator.section, str(outcome) or type(outcome).__name__)
                )
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                sections[calculator.section] = outcome
        return sections, warnings

    async def close(self) -> None:
        """Shut down the worker pool (when owned) and the gateway"""
        if self._owns_executor:
            self.executor.shutdown(wait=False, cancel_futures=True)
        await self.gateway.close()
