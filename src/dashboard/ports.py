"""Read contract the dashboard aggregator needs from the CRM store."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Protocol

from src.models.common import OrderStatus


@dataclass(frozen=True)
class EmployeeActivity:
    """An active sales employee with the leads and orders assigned to them."""

    employee_id: int
    full_name: str
    employee_code: str
    lead_count: int
    order_amounts: list[Decimal | None] = field(default_factory=list)

    @property
    def order_count(self) -> int:
        return len(self.order_amounts)


class CRMStatsReader(Protocol):
    """Async counts and sums over leads, orders and sales employees.

    Time bounds are naive local datetimes; ``since`` is inclusive and
    ``until`` exclusive. Any storage failure propagates to the caller.
    """

    async def count_leads(
        self,
        *,
        since: datetime | None = None,
        until: datetime | None = None,
        converted: bool | None = None,
    ) -> int:
        ...

    async def count_orders(
        self,
        *,
        since: datetime | None = None,
        until: datetime | None = None,
        status: OrderStatus | None = None,
    ) -> int:
        ...

    async def sum_order_amount(self) -> Decimal:
        """Sum of order final amounts; 0 when there are none."""
        ...

    async def list_active_employees(self) -> list[EmployeeActivity]:
        """Active employees in primary-key order."""
        ...
