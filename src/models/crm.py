"""CRM domain models: sales employees, leads, print orders.

Includes the order status transition table. Transitions are a static
lookup; ``check_order_transition`` is the only place that enforces it.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import EmailStr, Field, field_validator

from src.models.common import AssignmentMethod, CRMBase, LeadStatus, Money, OrderStatus

# ---------------------------------------------------------------------------
# Order status transitions
# ---------------------------------------------------------------------------

VALID_ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({
        OrderStatus.DESIGNING,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.DESIGNING: frozenset({
        OrderStatus.APPROVED,
        OrderStatus.PENDING,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.APPROVED: frozenset({
        OrderStatus.PRINTING,
        OrderStatus.DESIGNING,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.PRINTING: frozenset({
        OrderStatus.COMPLETED,
        OrderStatus.APPROVED,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.COMPLETED: frozenset({
        OrderStatus.DELIVERED,
        OrderStatus.PRINTING,
    }),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset({
        OrderStatus.PENDING,
    }),
}

ORDER_STATUS_LABELS: dict[OrderStatus, str] = {
    OrderStatus.PENDING: "Chờ xử lý",
    OrderStatus.DESIGNING: "Đang thiết kế",
    OrderStatus.APPROVED: "Đã duyệt",
    OrderStatus.PRINTING: "Đang in",
    OrderStatus.COMPLETED: "Hoàn thành",
    OrderStatus.DELIVERED: "Đã giao",
    OrderStatus.CANCELLED: "Đã hủy",
}


def allowed_order_transitions(current: OrderStatus) -> list[OrderStatus]:
    """Statuses reachable from ``current`` in one step, in declaration order."""
    reachable = VALID_ORDER_TRANSITIONS.get(current, frozenset())
    return [s for s in OrderStatus if s in reachable]


class InvalidStatusTransitionError(ValueError):
    """Raised when an order cannot move from one status to another."""

    def __init__(self, current: OrderStatus, requested: OrderStatus) -> None:
        self.current = current
        self.requested = requested
        self.allowed = allowed_order_transitions(current)
        allowed = ", ".join(ORDER_STATUS_LABELS[s] for s in self.allowed) or "Không có"
        super().__init__(
            f'Không thể chuyển từ "{ORDER_STATUS_LABELS[current]}" sang '
            f'"{ORDER_STATUS_LABELS[requested]}". Các trạng thái hợp lệ: {allowed}'
        )


def check_order_transition(current: OrderStatus, requested: OrderStatus) -> bool:
    """Validate a status change. Returns False when nothing changes.

    Raises InvalidStatusTransitionError when ``requested`` is not reachable
    from ``current`` in one step.
    """
    if current == requested:
        return False
    if requested not in VALID_ORDER_TRANSITIONS.get(current, frozenset()):
        raise InvalidStatusTransitionError(current, requested)
    return True


# ---------------------------------------------------------------------------
# Sales employees
# ---------------------------------------------------------------------------


class SalesEmployeeCreate(CRMBase):
    employee_code: str = Field(..., min_length=1, max_length=50)
    full_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: str | None = Field(default=None, max_length=30)


class SalesEmployeeUpdate(CRMBase):
    """Partial update. Omitted fields are left alone; only ``phone`` may be cleared."""

    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=30)
    is_active: bool | None = None
    round_robin_order: int | None = Field(default=None, ge=0)

    @field_validator("full_name", "email", "is_active", "round_robin_order", mode="before")
    @classmethod
    def reject_null(cls, v, info):  # noqa: ANN001
        if v is None:
            msg = f"{info.field_name} may be omitted but not null"
            raise ValueError(msg)
        return v


class SalesEmployeeReorder(CRMBase):
    new_order: int = Field(..., ge=0)


class DailyCountReset(CRMBase):
    message: str
    reset: int


class SalesEmployee(CRMBase):
    id: int
    employee_code: str
    full_name: str
    email: str
    phone: str | None = None
    is_active: bool
    round_robin_order: int
    daily_lead_count: int
    total_lead_count: int
    created_at: datetime


# ---------------------------------------------------------------------------
# Leads
# ---------------------------------------------------------------------------


class LeadCreate(CRMBase):
    """New lead. Without ``assigned_sales_id`` it goes to the next employee in the rotation."""

    full_name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=6, max_length=30)
    email: EmailStr | None = None
    demand: str | None = None
    assigned_sales_id: int | None = None


class LeadUpdate(CRMBase):
    """Partial update. ``email``, ``demand`` and ``assigned_sales_id`` may be cleared."""

    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    phone: str | None = Field(default=None, min_length=6, max_length=30)
    email: EmailStr | None = None
    demand: str | None = None
    status: LeadStatus | None = None
    assigned_sales_id: int | None = None

    @field_validator("full_name", "phone", "status", mode="before")
    @classmethod
    def reject_null(cls, v, info):  # noqa: ANN001
        if v is None:
            msg = f"{info.field_name} may be omitted but not null"
            raise ValueError(msg)
        return v


class Lead(CRMBase):
    id: int
    full_name: str
    phone: str
    email: str | None = None
    demand: str | None = None
    status: LeadStatus
    is_converted: bool
    assigned_sales_id: int | None = None
    assigned_at: datetime | None = None
    assignment_method: AssignmentMethod | None = None
    created_at: datetime


class AutoDistributeResult(CRMBase):
    message: str
    assigned_count: int = Field(..., ge=0, alias="assignedCount")
    total_leads: int = Field(..., ge=0, alias="totalLeads")


class ConversionOrder(CRMBase):
    description: str = Field(..., min_length=1)
    total_amount: Money
    quantity: int = Field(default=1, ge=1)


class LeadConversionRequest(CRMBase):
    order: ConversionOrder


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


class OrderCreate(CRMBase):
    description: str | None = None
    quantity: int = Field(default=1, ge=1)
    total_amount: Money | None = None
    discount: Money = Decimal("0")
    final_amount: Money | None = None
    sales_employee_id: int | None = None
    lead_id: int | None = None


class OrderStatusUpdate(CRMBase):
    status: OrderStatus


class Order(CRMBase):
    id: int
    order_code: str
    description: str | None = None
    quantity: int
    total_amount: Decimal | None = None
    discount: Decimal
    final_amount: Decimal | None = None
    status: OrderStatus
    sales_employee_id: int | None = None
    lead_id: int | None = None
    created_at: datetime
    updated_at: datetime


class AllowedTransitions(CRMBase):
    current_status: OrderStatus = Field(..., alias="currentStatus")
    allowed_transitions: list[OrderStatus] = Field(..., alias="allowedTransitions")


class LeadConversion(CRMBase):
    lead: Lead
    order: Order
