"""FastAPI dashboard endpoints.

GET /dashboard/metrics           - overall lead / order / revenue totals
GET /dashboard/employee-kpis     - KPI card per active sales employee
GET /dashboard/chart-data        - trailing daily leads vs orders
GET /dashboard/employee-ranking  - top 3 / bottom 3 by revenue

Read-only. Storage failures are not caught here and surface as 500.
"""

from fastapi import APIRouter, Depends

from src.api.dependencies import get_dashboard_aggregator
from src.dashboard.aggregator import DashboardAggregator
from src.models.dashboard import (
    ChartPoint,
    DashboardMetrics,
    EmployeeKPI,
    EmployeeRanking,
)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/metrics", response_model=DashboardMetrics)
async def get_metrics(
    aggregator: DashboardAggregator = Depends(get_dashboard_aggregator),
) -> DashboardMetrics:
    """Get overall dashboard metrics."""
    return await aggregator.compute_overall_metrics()


@router.get("/employee-kpis", response_model=list[EmployeeKPI])
async def get_employee_kpis(
    aggregator: DashboardAggregator = Depends(get_dashboard_aggregator),
) -> list[EmployeeKPI]:
    """Get employee KPI data."""
    return await aggregator.compute_employee_kpis()


@router.get("/chart-data", response_model=list[ChartPoint])
async def get_chart_data(
    aggregator: DashboardAggregator = Depends(get_dashboard_aggregator),
) -> list[ChartPoint]:
    """Get chart data for leads vs orders over time."""
    return await aggregator.compute_chart_series()


@router.get("/employee-ranking", response_model=EmployeeRanking)
async def get_employee_ranking(
    aggregator: DashboardAggregator = Depends(get_dashboard_aggregator),
) -> EmployeeRanking:
    """Get top and bottom performing employees."""
    return await aggregator.compute_employee_ranking()
