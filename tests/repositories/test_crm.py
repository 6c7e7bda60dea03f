"""Tests for CRM repositories and the SQL-backed stats reader."""

import asyncio
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.tables import SalesEmployeeRow
from src.models.common import AssignmentMethod, LeadStatus, OrderStatus
from src.repositories.crm import (
    LeadRepository,
    OrderRepository,
    SalesEmployeeRepository,
    SqlCRMStatsReader,
)

NOW = datetime(2026, 10, 18, 15, 30)
TODAY = datetime(2026, 10, 18)


async def _employee(session: AsyncSession, code: str, name: str = "Nhân viên") -> SalesEmployeeRow:
    return await SalesEmployeeRepository(session).create(
        employee_code=code, full_name=name, email=f"{code.lower()}@inan.vn",
        phone=None, created_at=NOW,
    )


async def _order(session: AsyncSession, *, emp_id: int | None, amount: str | None,
                 created_at: datetime = NOW, status: OrderStatus = OrderStatus.PENDING):
    return await OrderRepository(session).create(
        description=None, quantity=1, total_amount=None, discount=Decimal("0"),
        final_amount=Decimal(amount) if amount is not None else None,
        sales_employee_id=emp_id, lead_id=None, created_at=created_at, status=status,
    )


async def _lead(session: AsyncSession, *, emp_id: int | None, created_at: datetime = NOW):
    return await LeadRepository(session).create(
        full_name="Khách", phone="0901234567", email=None, demand=None,
        assigned_sales_id=emp_id, created_at=created_at,
    )


# ===================================================================
# Sales employees
# ===================================================================


class TestSalesEmployeeRepository:

    @pytest.mark.anyio
    async def test_round_robin_order_increments(self, db_session: AsyncSession) -> None:
        first = await _employee(db_session, "NV001")
        second = await _employee(db_session, "NV002")
        assert first.round_robin_order == 1
        assert second.round_robin_order == 2
        assert first.is_active is True

    @pytest.mark.anyio
    async def test_list_filters_active(self, db_session: AsyncSession) -> None:
        repo = SalesEmployeeRepository(db_session)
        a = await _employee(db_session, "NV001")
        await _employee(db_session, "NV002")
        await repo.deactivate(a.id)

        assert len(await repo.list_all()) == 2
        active = await repo.list_all(is_active=True)
        assert [r.employee_code for r in active] == ["NV002"]

    @pytest.mark.anyio
    async def test_get_by_code_and_update(self, db_session: AsyncSession) -> None:
        repo = SalesEmployeeRepository(db_session)
        row = await _employee(db_session, "NV009")
        assert (await repo.get_by_code("NV009")).id == row.id
        updated = await repo.update(row.id, full_name="Tên mới")
        assert updated.full_name == "Tên mới"

    @pytest.mark.anyio
    async def test_update_missing_returns_none(self, db_session: AsyncSession) -> None:
        assert await SalesEmployeeRepository(db_session).update(999, full_name="x") is None

    @pytest.mark.anyio
    async def test_next_in_rotation_prefers_fewest_daily_leads(
        self, db_session: AsyncSession,
    ) -> None:
        repo = SalesEmployeeRepository(db_session)
        a = await _employee(db_session, "NV001")
        b = await _employee(db_session, "NV002")
        assert (await repo.next_in_rotation()).id == a.id

        await _lead(db_session, emp_id=a.id)
        assert (await repo.next_in_rotation()).id == b.id

        await repo.deactivate(b.id)
        assert (await repo.next_in_rotation()).id == a.id

    @pytest.mark.anyio
    async def test_next_in_rotation_empty(self, db_session: AsyncSession) -> None:
        assert await SalesEmployeeRepository(db_session).next_in_rotation() is None

    @pytest.mark.anyio
    async def test_reorder_breaks_ties(self, db_session: AsyncSession) -> None:
        repo = SalesEmployeeRepository(db_session)
        await _employee(db_session, "NV001")
        b = await _employee(db_session, "NV002")
        moved = await repo.reorder(b.id, 0)
        assert moved.round_robin_order == 0
        assert (await repo.next_in_rotation()).id == b.id
        assert await repo.reorder(999, 1) is None

    @pytest.mark.anyio
    async def test_reset_daily_counts(self, db_session: AsyncSession) -> None:
        repo = SalesEmployeeRepository(db_session)
        a = await _employee(db_session, "NV001")
        b = await _employee(db_session, "NV002")
        await _lead(db_session, emp_id=a.id)
        await _lead(db_session, emp_id=a.id)
        await _lead(db_session, emp_id=b.id)

        assert await repo.reset_daily_counts() == 2
        refreshed = await repo.list_all()
        assert [(e.daily_lead_count, e.total_lead_count) for e in refreshed] == [(0, 2), (0, 1)]


# ===================================================================
# Leads
# ===================================================================


class TestLeadRepository:

    @pytest.mark.anyio
    async def test_create_bumps_employee_counters(self, db_session: AsyncSession) -> None:
        emp = await _employee(db_session, "NV001")
        lead = await _lead(db_session, emp_id=emp.id)
        assert lead.status == LeadStatus.NEW
        assert lead.is_converted is False
        assert emp.daily_lead_count == 1
        assert emp.total_lead_count == 1

    @pytest.mark.anyio
    async def test_mark_converted(self, db_session: AsyncSession) -> None:
        repo = LeadRepository(db_session)
        lead = await _lead(db_session, emp_id=None)
        converted = await repo.mark_converted(lead.id)
        assert converted.is_converted is True
        assert converted.status == LeadStatus.CLOSED

    @pytest.mark.anyio
    async def test_list_filters(self, db_session: AsyncSession) -> None:
        repo = LeadRepository(db_session)
        emp = await _employee(db_session, "NV001")
        mine = await _lead(db_session, emp_id=emp.id)
        await _lead(db_session, emp_id=None)
        await repo.mark_converted(mine.id)

        assert len(await repo.list_all()) == 2
        assert [r.id for r in await repo.list_all(assigned_sales_id=emp.id)] == [mine.id]
        assert [r.id for r in await repo.list_all(status=LeadStatus.CLOSED)] == [mine.id]

    @pytest.mark.anyio
    async def test_create_with_owner_is_manual(self, db_session: AsyncSession) -> None:
        emp = await _employee(db_session, "NV001")
        lead = await _lead(db_session, emp_id=emp.id)
        assert lead.assignment_method == AssignmentMethod.MANUAL
        assert lead.assigned_at == NOW

    @pytest.mark.anyio
    async def test_auto_assign(self, db_session: AsyncSession) -> None:
        repo = LeadRepository(db_session)
        emp = await _employee(db_session, "NV001")
        lead = await _lead(db_session, emp_id=None)
        later = NOW + timedelta(minutes=5)

        owner = await repo.auto_assign(lead, later)

        assert owner.id == emp.id
        assert lead.assigned_sales_id == emp.id
        assert lead.assignment_method == AssignmentMethod.ROUND_ROBIN
        assert lead.assigned_at == later
        assert (emp.daily_lead_count, emp.total_lead_count) == (1, 1)

    @pytest.mark.anyio
    async def test_auto_assign_without_employees(self, db_session: AsyncSession) -> None:
        lead = await _lead(db_session, emp_id=None)
        assert await LeadRepository(db_session).auto_assign(lead, NOW) is None
        assert lead.assigned_sales_id is None
        assert lead.assignment_method is None

    @pytest.mark.anyio
    async def test_list_unassigned_open(self, db_session: AsyncSession) -> None:
        repo = LeadRepository(db_session)
        emp = await _employee(db_session, "NV001")
        newer = await _lead(db_session, emp_id=None)
        older = await _lead(db_session, emp_id=None, created_at=NOW - timedelta(days=1))
        calling = await _lead(db_session, emp_id=None, created_at=NOW - timedelta(hours=1))
        await repo.update(calling.id, at=NOW, status=LeadStatus.CALLING)
        rejected = await _lead(db_session, emp_id=None)
        await repo.update(rejected.id, at=NOW, status=LeadStatus.REJECTED)
        await _lead(db_session, emp_id=emp.id)
        converted = await _lead(db_session, emp_id=None)
        await repo.mark_converted(converted.id)

        pending = await repo.list_unassigned_open()
        assert [r.id for r in pending] == [older.id, calling.id, newer.id]

    @pytest.mark.anyio
    async def test_update_reassign_and_clear(self, db_session: AsyncSession) -> None:
        repo = LeadRepository(db_session)
        a = await _employee(db_session, "NV001")
        b = await _employee(db_session, "NV002")
        lead = await _lead(db_session, emp_id=a.id)

        moved = await repo.update(lead.id, at=NOW, assigned_sales_id=b.id, demand="Tờ rơi")
        assert moved.assigned_sales_id == b.id
        assert moved.demand == "Tờ rơi"
        assert (b.daily_lead_count, b.total_lead_count) == (1, 1)

        # Same owner again is not a new assignment
        await repo.update(lead.id, at=NOW, assigned_sales_id=b.id)
        assert b.total_lead_count == 1

        cleared = await repo.update(lead.id, at=NOW, assigned_sales_id=None)
        assert cleared.assigned_sales_id is None
        assert cleared.assigned_at is None
        assert cleared.assignment_method is None

    @pytest.mark.anyio
    async def test_update_missing_returns_none(self, db_session: AsyncSession) -> None:
        assert await LeadRepository(db_session).update(999, at=NOW, demand="x") is None

    @pytest.mark.anyio
    async def test_delete_unlinks_orders(self, db_session: AsyncSession) -> None:
        repo = LeadRepository(db_session)
        lead = await _lead(db_session, emp_id=None)
        order = await OrderRepository(db_session).create(
            description=None, quantity=1, total_amount=None, discount=Decimal("0"),
            final_amount=None, sales_employee_id=None, lead_id=lead.id, created_at=NOW,
        )

        assert await repo.delete(lead.id) is True
        assert await repo.get(lead.id) is None
        assert (await OrderRepository(db_session).get(order.id)).lead_id is None
        assert await repo.delete(lead.id) is False


# ===================================================================
# Orders
# ===================================================================


class TestOrderRepository:

    @pytest.mark.anyio
    async def test_create_defaults(self, db_session: AsyncSession) -> None:
        order = await _order(db_session, emp_id=None, amount="1500000")
        assert order.status == OrderStatus.PENDING
        assert order.order_code.startswith("ORD")
        assert len(order.order_code) == 11
        assert order.created_at == order.updated_at == NOW

    @pytest.mark.anyio
    async def test_update_status(self, db_session: AsyncSession) -> None:
        repo = OrderRepository(db_session)
        order = await _order(db_session, emp_id=None, amount=None)
        later = NOW + timedelta(hours=1)
        updated = await repo.update_status(order.id, OrderStatus.DESIGNING, later)
        assert updated.status == OrderStatus.DESIGNING
        assert updated.updated_at == later

    @pytest.mark.anyio
    async def test_list_by_status(self, db_session: AsyncSession) -> None:
        repo = OrderRepository(db_session)
        await _order(db_session, emp_id=None, amount="1", status=OrderStatus.COMPLETED)
        await _order(db_session, emp_id=None, amount="2")
        done = await repo.list_all(status=OrderStatus.COMPLETED)
        assert len(done) == 1
        assert done[0].final_amount == Decimal("1")

    @pytest.mark.anyio
    async def test_taken_order_code_is_redrawn(self, db_session: AsyncSession,
                                               monkeypatch: pytest.MonkeyPatch) -> None:
        codes = iter(["ORD00000001", "ORD00000001", "ORD00000002"])
        monkeypatch.setattr(OrderRepository, "new_order_code", staticmethod(lambda: next(codes)))

        first = await _order(db_session, emp_id=None, amount=None)
        second = await _order(db_session, emp_id=None, amount=None)
        assert first.order_code == "ORD00000001"
        assert second.order_code == "ORD00000002"

    @pytest.mark.anyio
    async def test_order_code_attempts_exhausted(self, db_session: AsyncSession,
                                                 monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(OrderRepository, "new_order_code", staticmethod(lambda: "ORD00000001"))
        await _order(db_session, emp_id=None, amount=None)

        with pytest.raises(RuntimeError, match="No free order code"):
            await _order(db_session, emp_id=None, amount=None)
        assert len(await OrderRepository(db_session).list_all()) == 1


# ===================================================================
# Stats reader
# ===================================================================


class TestSqlCRMStatsReader:

    @pytest.mark.anyio
    async def test_count_leads_with_bounds(self, db_session: AsyncSession) -> None:
        await _lead(db_session, emp_id=None, created_at=TODAY - timedelta(seconds=1))
        await _lead(db_session, emp_id=None, created_at=TODAY)
        await _lead(db_session, emp_id=None, created_at=TODAY + timedelta(hours=23))
        await _lead(db_session, emp_id=None, created_at=TODAY + timedelta(days=1))
        reader = SqlCRMStatsReader(db_session)

        assert await reader.count_leads() == 4
        assert await reader.count_leads(since=TODAY) == 3
        assert await reader.count_leads(since=TODAY, until=TODAY + timedelta(days=1)) == 2

    @pytest.mark.anyio
    async def test_count_converted_and_completed(self, db_session: AsyncSession) -> None:
        lead = await _lead(db_session, emp_id=None)
        await _lead(db_session, emp_id=None)
        await LeadRepository(db_session).mark_converted(lead.id)
        await _order(db_session, emp_id=None, amount="1", status=OrderStatus.COMPLETED)
        await _order(db_session, emp_id=None, amount="1", status=OrderStatus.DELIVERED)
        reader = SqlCRMStatsReader(db_session)

        assert await reader.count_leads(converted=True) == 1
        assert await reader.count_orders() == 2
        assert await reader.count_orders(status=OrderStatus.COMPLETED) == 1

    @pytest.mark.anyio
    async def test_sum_order_amount(self, db_session: AsyncSession) -> None:
        reader = SqlCRMStatsReader(db_session)
        assert await reader.sum_order_amount() == Decimal(0)

        await _order(db_session, emp_id=None, amount="2500000")
        await _order(db_session, emp_id=None, amount=None)
        await _order(db_session, emp_id=None, amount="1000000")
        assert await reader.sum_order_amount() == Decimal("3500000")

    @pytest.mark.anyio
    async def test_list_active_employees(self, db_session: AsyncSession) -> None:
        a = await _employee(db_session, "NV001", "A")
        b = await _employee(db_session, "NV002", "B")
        gone = await _employee(db_session, "NV003", "C")
        await SalesEmployeeRepository(db_session).deactivate(gone.id)
        for _ in range(3):
            await _lead(db_session, emp_id=a.id)
        await _order(db_session, emp_id=a.id, amount="1000")
        await _order(db_session, emp_id=a.id, amount=None)
        await _order(db_session, emp_id=gone.id, amount="5")

        activity = await SqlCRMStatsReader(db_session).list_active_employees()

        assert [e.employee_id for e in activity] == [a.id, b.id]
        first, second = activity
        assert (first.full_name, first.employee_code) == ("A", "NV001")
        assert first.lead_count == 3
        assert first.order_count == 2
        assert first.order_amounts[1] is None
        assert second.lead_count == 0
        assert second.order_amounts == []

    @pytest.mark.anyio
    async def test_concurrent_queries_share_session(self, db_session: AsyncSession) -> None:
        await _lead(db_session, emp_id=None)
        await _order(db_session, emp_id=None, amount="10")
        reader = SqlCRMStatsReader(db_session)

        results = await asyncio.gather(
            reader.count_leads(), reader.count_orders(), reader.sum_order_amount(),
            reader.list_active_employees(),
        )
        assert results == [1, 1, Decimal("10"), []]
