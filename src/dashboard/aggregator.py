"""Dashboard metrics aggregator.

Four read-only operations behind the /dashboard endpoints:
- overall lead / order / revenue totals
- per-employee KPI cards
- trailing lead vs order chart with moving averages
- top / bottom employees by revenue

Everything is recomputed from the CRM store on every call. Independent
reads are fanned out with asyncio.gather; the first failing read fails the
whole operation.
"""

import asyncio
import logging
import random
from datetime import datetime, timedelta

from src.config.settings import Settings
from src.dashboard.calculations import (
    conversion_rate,
    cskh_count,
    moving_averages,
    progress_percent,
    split_ranking,
    total_revenue,
    weekday_label,
)
from src.dashboard.clock import Clock, SystemClock
from src.dashboard.ports import CRMStatsReader, EmployeeActivity
from src.models.common import OrderStatus, start_of_day
from src.models.dashboard import (
    ChartPoint,
    CustomerServiceTotals,
    DashboardMetrics,
    EmployeeKPI,
    EmployeeRanking,
    LeadTotals,
    OrderTotals,
    RevenueTotals,
)

logger = logging.getLogger(__name__)

# Bounds of the placeholder processing time, in minutes: [15, 135).
PLACEHOLDER_PROCESSING_MINUTES = (15, 135)


class DashboardAggregator:
    """Compute dashboard payloads from a ``CRMStatsReader``."""

    def __init__(
        self,
        reader: CRMStatsReader,
        *,
        settings: Settings,
        clock: Clock | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._reader = reader
        self._settings = settings
        self._clock = clock or SystemClock(settings.TIMEZONE)
        self._rng = rng or random.Random()

    async def compute_overall_metrics(self) -> DashboardMetrics:
        """Lead, order and revenue totals.

        ``revenue.today`` and the ``cskh`` block are not wired to data and
        stay at zero.
        """
        today = start_of_day(self._clock.now())
        reader = self._reader

        (
            total_leads,
            today_leads,
            converted_leads,
            total_orders,
            today_orders,
            completed_orders,
            revenue,
        ) = await asyncio.gather(
            reader.count_leads(),
            reader.count_leads(since=today),
            reader.count_leads(converted=True),
            reader.count_orders(),
            reader.count_orders(since=today),
            reader.count_orders(status=OrderStatus.COMPLETED),
            reader.sum_order_amount(),
        )

        metrics = DashboardMetrics(
            leads=LeadTotals(total=total_leads, today=today_leads, converted=converted_leads),
            orders=OrderTotals(total=total_orders, today=today_orders, completed=completed_orders),
            revenue=RevenueTotals(
                total=float(revenue),
                today=0.0,
                target=float(self._settings.DAILY_REVENUE_TARGET),
            ),
            cskh=CustomerServiceTotals(),
        )
        logger.debug(
            "dashboard metrics: leads=%d orders=%d revenue=%s",
            total_leads, total_orders, revenue,
        )
        return metrics

    async def compute_employee_kpis(self) -> list[EmployeeKPI]:
        """One KPI card per active employee, in fetch order."""
        employees = await self._reader.list_active_employees()
        return [self._employee_kpi(emp) for emp in employees]

    async def compute_chart_series(self) -> list[ChartPoint]:
        """Daily lead / order counts over the trailing window, oldest first."""
        days = self._settings.CHART_WINDOW_DAYS
        today = start_of_day(self._clock.now())
        day_starts = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]

        counts = [await self._count_day(start) for start in day_starts]
        lead_counts = [leads for leads, _ in counts]
        order_counts = [orders for _, orders in counts]

        window = self._settings.MOVING_AVERAGE_WINDOW
        lead_ma = moving_averages(lead_counts, window)
        order_ma = moving_averages(order_counts, window)

        return [
            ChartPoint(
                name=weekday_label(start.date()),
                date=start.date().isoformat(),
                leads=lead_counts[i],
                orders=order_counts[i],
                lead_ma=lead_ma[i],
                order_ma=order_ma[i],
            )
            for i, start in enumerate(day_starts)
        ]

    async def compute_employee_ranking(self) -> EmployeeRanking:
        """Top and bottom three employees by revenue.

        Equal revenues keep fetch order (stable sort).
        """
        kpis = await self.compute_employee_kpis()
        ranked = sorted(kpis, key=lambda k: k.revenue, reverse=True)
        top, bottom = split_ranking(ranked)
        return EmployeeRanking(top3=top, bottom3=bottom)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _count_day(self, day_start: datetime) -> tuple[int, int]:
        day_end = day_start + timedelta(days=1)
        leads, orders = await asyncio.gather(
            self._reader.count_leads(since=day_start, until=day_end),
            self._reader.count_orders(since=day_start, until=day_end),
        )
        return leads, orders

    def _employee_kpi(self, emp: EmployeeActivity) -> EmployeeKPI:
        target = self._settings.EMPLOYEE_REVENUE_TARGET
        revenue = total_revenue(emp.order_amounts)
        orders = emp.order_count
        low, high = PLACEHOLDER_PROCESSING_MINUTES
        return EmployeeKPI(
            id=emp.employee_id,
            name=emp.full_name,
            employee_code=emp.employee_code,
            leads=emp.lead_count,
            orders=orders,
            avg_processing_time=self._rng.randrange(low, high),
            conversion_rate=conversion_rate(emp.lead_count, orders),
            cskh=cskh_count(orders),
            revenue=float(revenue),
            target=float(target),
            progress_percent=progress_percent(revenue, target),
        )
