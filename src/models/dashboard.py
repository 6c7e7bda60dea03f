"""Dashboard response models.

JSON keys keep the camelCase names the web client reads (``conversionRate``,
``leadMA``...). Python code constructs them by field name.
"""

from pydantic import Field

from src.models.common import CRMBase


# ---------------------------------------------------------------------------
# Overall metrics
# ---------------------------------------------------------------------------


class LeadTotals(CRMBase):
    total: int = Field(..., ge=0)
    today: int = Field(..., ge=0)
    converted: int = Field(..., ge=0)


class OrderTotals(CRMBase):
    total: int = Field(..., ge=0)
    today: int = Field(..., ge=0)
    completed: int = Field(..., ge=0)


class RevenueTotals(CRMBase):
    total: float = Field(..., ge=0)
    today: float = Field(
        default=0.0,
        description="Not wired to order data yet; always 0.",
    )
    target: float = Field(..., ge=0)


class CustomerServiceTotals(CRMBase):
    """Customer-service (CSKH) block. Not backed by data yet; always zero."""

    total: int = 0
    pending: int = 0


class DashboardMetrics(CRMBase):
    """Overall counts and sums for the dashboard header cards."""

    leads: LeadTotals
    orders: OrderTotals
    revenue: RevenueTotals
    cskh: CustomerServiceTotals = Field(default_factory=CustomerServiceTotals)


# ---------------------------------------------------------------------------
# Per-employee KPIs
# ---------------------------------------------------------------------------


class EmployeeKPI(CRMBase):
    """KPI card for one active sales employee."""

    id: int
    name: str
    employee_code: str
    leads: int = Field(..., ge=0)
    orders: int = Field(..., ge=0)
    avg_processing_time: int = Field(
        ...,
        alias="avgProcessingTime",
        description=(
            "PLACEHOLDER: random minutes, not derived from lead or order data. "
            "Do not use for reporting."
        ),
    )
    avg_processing_time_is_placeholder: bool = Field(
        default=True, alias="avgProcessingTimeIsPlaceholder",
    )
    conversion_rate: float = Field(..., ge=0, alias="conversionRate")
    cskh: int = Field(..., ge=0)
    revenue: float = Field(..., ge=0)
    target: float = Field(..., ge=0)
    progress_percent: int = Field(..., ge=0, le=100, alias="progressPercent")


class EmployeeRanking(CRMBase):
    """Best and worst performers by revenue.

    ``bottom3`` lists the worst performer first. With fewer than six
    employees the two lists overlap.
    """

    top3: list[EmployeeKPI]
    bottom3: list[EmployeeKPI]


# ---------------------------------------------------------------------------
# Chart
# ---------------------------------------------------------------------------


class ChartPoint(CRMBase):
    """Lead and order counts for one day plus trailing moving averages."""

    name: str = Field(..., description="Vietnamese weekday abbreviation.")
    date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")
    leads: int = Field(..., ge=0)
    orders: int = Field(..., ge=0)
    lead_ma: float = Field(..., ge=0, alias="leadMA")
    order_ma: float = Field(..., ge=0, alias="orderMA")
