"""CRM repositories: sales employees, leads, orders, and dashboard stats."""

import asyncio
import secrets
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.dashboard.ports import EmployeeActivity
from src.db.tables import LeadRow, OrderRow, SalesEmployeeRow
from src.models.common import AssignmentMethod, LeadStatus, OrderStatus

ORDER_CODE_ATTEMPTS = 5


class SalesEmployeeRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, employee_code: str, full_name: str, email: str,
                     phone: str | None, created_at: datetime) -> SalesEmployeeRow:
        max_order = (
            await self._session.execute(select(func.max(SalesEmployeeRow.round_robin_order)))
        ).scalar()
        row = SalesEmployeeRow(
            employee_code=employee_code,
            full_name=full_name,
            email=email,
            phone=phone,
            is_active=True,
            round_robin_order=(max_order or 0) + 1,
            daily_lead_count=0,
            total_lead_count=0,
            created_at=created_at,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get(self, employee_id: int) -> SalesEmployeeRow | None:
        return await self._session.get(SalesEmployeeRow, employee_id)

    async def get_by_code(self, employee_code: str) -> SalesEmployeeRow | None:
        result = await self._session.execute(
            select(SalesEmployeeRow).where(SalesEmployeeRow.employee_code == employee_code)
        )
        return result.scalar_one_or_none()

    async def list_all(self, *, is_active: bool | None = None) -> list[SalesEmployeeRow]:
        stmt = select(SalesEmployeeRow).order_by(SalesEmployeeRow.round_robin_order)
        if is_active is not None:
            stmt = stmt.where(SalesEmployeeRow.is_active == is_active)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def update(self, employee_id: int, **changes) -> SalesEmployeeRow | None:
        row = await self.get(employee_id)
        if row is not None:
            for key, value in changes.items():
                setattr(row, key, value)
            await self._session.flush()
        return row

    async def deactivate(self, employee_id: int) -> SalesEmployeeRow | None:
        return await self.update(employee_id, is_active=False)

    async def reorder(self, employee_id: int, new_order: int) -> SalesEmployeeRow | None:
        return await self.update(employee_id, round_robin_order=new_order)

    async def reset_daily_counts(self) -> int:
        """Zero every employee's daily lead count. Returns the number of rows touched."""
        result = await self._session.execute(
            update(SalesEmployeeRow).values(daily_lead_count=0)
        )
        return result.rowcount

    async def next_in_rotation(self) -> SalesEmployeeRow | None:
        """Active employee with the fewest leads today; ties go by rotation order."""
        result = await self._session.execute(
            select(SalesEmployeeRow)
            .where(SalesEmployeeRow.is_active.is_(True))
            .order_by(
                SalesEmployeeRow.daily_lead_count,
                SalesEmployeeRow.round_robin_order,
                SalesEmployeeRow.id,
            )
            .limit(1)
        )
        return result.scalar_one_or_none()


class LeadRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, full_name: str, phone: str, email: str | None,
                     demand: str | None, assigned_sales_id: int | None,
                     created_at: datetime,
                     assignment_method: AssignmentMethod = AssignmentMethod.MANUAL) -> LeadRow:
        row = LeadRow(
            full_name=full_name,
            phone=phone,
            email=email,
            demand=demand,
            status=LeadStatus.NEW,
            is_converted=False,
            created_at=created_at,
        )
        self._session.add(row)
        if assigned_sales_id is not None:
            await self._assign(row, assigned_sales_id, assignment_method, created_at)
        await self._session.flush()
        return row

    async def _assign(self, row: LeadRow, employee_id: int,
                      method: AssignmentMethod, at: datetime) -> None:
        row.assigned_sales_id = employee_id
        row.assigned_at = at
        row.assignment_method = method
        employee = await self._session.get(SalesEmployeeRow, employee_id)
        if employee is not None:
            employee.daily_lead_count += 1
            employee.total_lead_count += 1

    async def auto_assign(self, row: LeadRow, at: datetime) -> SalesEmployeeRow | None:
        """Give ``row`` to the next employee in the rotation, if anyone is active."""
        employee = await SalesEmployeeRepository(self._session).next_in_rotation()
        if employee is not None:
            await self._assign(row, employee.id, AssignmentMethod.ROUND_ROBIN, at)
            await self._session.flush()
        return employee

    async def list_unassigned_open(self) -> list[LeadRow]:
        """Unassigned, unconverted leads still in ``new`` or ``calling``, oldest first."""
        result = await self._session.execute(
            select(LeadRow)
            .where(
                LeadRow.assigned_sales_id.is_(None),
                LeadRow.is_converted.is_(False),
                LeadRow.status.in_([LeadStatus.NEW, LeadStatus.CALLING]),
            )
            .order_by(LeadRow.created_at, LeadRow.id)
        )
        return list(result.scalars().all())

    async def update(self, lead_id: int, *, at: datetime, **changes) -> LeadRow | None:
        """Apply ``changes``. A new ``assigned_sales_id`` counts as a manual assignment."""
        row = await self.get(lead_id)
        if row is None:
            return None
        if "assigned_sales_id" in changes:
            new_owner = changes.pop("assigned_sales_id")
            if new_owner is None:
                row.assigned_sales_id = None
                row.assigned_at = None
                row.assignment_method = None
            elif new_owner != row.assigned_sales_id:
                await self._assign(row, new_owner, AssignmentMethod.MANUAL, at)
        for key, value in changes.items():
            setattr(row, key, value)
        await self._session.flush()
        return row

    async def delete(self, lead_id: int) -> bool:
        """Delete a lead. Orders created from it are kept and unlinked."""
        row = await self.get(lead_id)
        if row is None:
            return False
        await self._session.execute(
            update(OrderRow).where(OrderRow.lead_id == lead_id).values(lead_id=None)
        )
        await self._session.delete(row)
        await self._session.flush()
        return True

    async def get(self, lead_id: int) -> LeadRow | None:
        return await self._session.get(LeadRow, lead_id)

    async def list_all(self, *, status: LeadStatus | None = None,
                       assigned_sales_id: int | None = None) -> list[LeadRow]:
        stmt = select(LeadRow).order_by(LeadRow.created_at.desc(), LeadRow.id.desc())
        if status is not None:
            stmt = stmt.where(LeadRow.status == status)
        if assigned_sales_id is not None:
            stmt = stmt.where(LeadRow.assigned_sales_id == assigned_sales_id)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def mark_converted(self, lead_id: int) -> LeadRow | None:
        row = await self.get(lead_id)
        if row is not None:
            row.is_converted = True
            row.status = LeadStatus.CLOSED
            await self._session.flush()
        return row


class OrderRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @staticmethod
    def new_order_code() -> str:
        return f"ORD{secrets.randbelow(10**8):08d}"

    async def _unused_order_code(self) -> str:
        for _ in range(ORDER_CODE_ATTEMPTS):
            code = self.new_order_code()
            taken = await self._session.scalar(
                select(OrderRow.id).where(OrderRow.order_code == code)
            )
            if taken is None:
                return code
        msg = f"No free order code after {ORDER_CODE_ATTEMPTS} attempts"
        raise RuntimeError(msg)

    async def create(self, *, description: str | None, quantity: int,
                     total_amount: Decimal | None, discount: Decimal,
                     final_amount: Decimal | None, sales_employee_id: int | None,
                     lead_id: int | None, created_at: datetime,
                     status: OrderStatus = OrderStatus.PENDING) -> OrderRow:
        row = OrderRow(
            order_code=await self._unused_order_code(),
            description=description,
            quantity=quantity,
            total_amount=total_amount,
            discount=discount,
            final_amount=final_amount,
            status=status,
            sales_employee_id=sales_employee_id,
            lead_id=lead_id,
            created_at=created_at,
            updated_at=created_at,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get(self, order_id: int) -> OrderRow | None:
        return await self._session.get(OrderRow, order_id)

    async def list_all(self, *, status: OrderStatus | None = None,
                       sales_employee_id: int | None = None) -> list[OrderRow]:
        stmt = select(OrderRow).order_by(OrderRow.created_at.desc(), OrderRow.id.desc())
        if status is not None:
            stmt = stmt.where(OrderRow.status == status)
        if sales_employee_id is not None:
            stmt = stmt.where(OrderRow.sales_employee_id == sales_employee_id)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def update_status(self, order_id: int, status: OrderStatus,
                            updated_at: datetime) -> OrderRow | None:
        row = await self.get(order_id)
        if row is not None:
            row.status = status
            row.updated_at = updated_at
            await self._session.flush()
        return row


class SqlCRMStatsReader:
    """``CRMStatsReader`` over the CRM tables.

    An AsyncSession cannot run two statements at once, so queries issued
    concurrently by the aggregator are serialised on a lock.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._lock = asyncio.Lock()

    async def _scalar(self, stmt):
        async with self._lock:
            return (await self._session.execute(stmt)).scalar()

    async def count_leads(self, *, since: datetime | None = None,
                          until: datetime | None = None,
                          converted: bool | None = None) -> int:
        stmt = select(func.count(LeadRow.id))
        if since is not None:
            stmt = stmt.where(LeadRow.created_at >= since)
        if until is not None:
            stmt = stmt.where(LeadRow.created_at < until)
        if converted is not None:
            stmt = stmt.where(LeadRow.is_converted == converted)
        return await self._scalar(stmt) or 0

    async def count_orders(self, *, since: datetime | None = None,
                           until: datetime | None = None,
                           status: OrderStatus | None = None) -> int:
        stmt = select(func.count(OrderRow.id))
        if since is not None:
            stmt = stmt.where(OrderRow.created_at >= since)
        if until is not None:
            stmt = stmt.where(OrderRow.created_at < until)
        if status is not None:
            stmt = stmt.where(OrderRow.status == status)
        return await self._scalar(stmt) or 0

    async def sum_order_amount(self) -> Decimal:
        total = await self._scalar(select(func.sum(OrderRow.final_amount)))
        # SQLite hands back a float for SUM over NUMERIC
        return Decimal(str(total)) if total is not None else Decimal(0)

    async def list_active_employees(self) -> list[EmployeeActivity]:
        stmt = (
            select(SalesEmployeeRow)
            .where(SalesEmployeeRow.is_active.is_(True))
            .options(selectinload(SalesEmployeeRow.leads), selectinload(SalesEmployeeRow.orders))
            .order_by(SalesEmployeeRow.id)
            .execution_options(populate_existing=True)
        )
        async with self._lock:
            result = await self._session.execute(stmt)
            rows = list(result.scalars().all())
        return [
            EmployeeActivity(
                employee_id=row.id,
                full_name=row.full_name,
                employee_code=row.employee_code,
                lead_count=len(row.leads),
                order_amounts=[o.final_amount for o in row.orders],
            )
            for row in rows
        ]
