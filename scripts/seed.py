"""Seed script: load demo CRM data so the dashboard has something to show.

Creates:
1. Five sales employees (NV001..NV005), one of them inactive
2. Leads spread over the last seven days, some converted
3. Print orders for converted leads in assorted statuses

Idempotent: safe to run multiple times, skips if NV001 already exists.

Usage:
    python -m scripts.seed          # against DATABASE_URL from .env
    pytest tests/scripts/test_seed.py  # against aiosqlite in-memory
"""

import asyncio
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from src.config.settings import get_settings
from src.db.tables import SalesEmployeeRow
from src.models.common import OrderStatus, local_now, start_of_day
from src.repositories.crm import LeadRepository, OrderRepository, SalesEmployeeRepository

# (code, name, email, active)
DEMO_EMPLOYEES = [
    ("NV001", "Nguyễn Văn An", "an.nguyen@inan.vn", True),
    ("NV002", "Trần Thị Bình", "binh.tran@inan.vn", True),
    ("NV003", "Lê Hoàng Cường", "cuong.le@inan.vn", True),
    ("NV004", "Phạm Thu Dung", "dung.pham@inan.vn", True),
    ("NV005", "Võ Minh Em", "em.vo@inan.vn", False),
]

# Per employee: leads per day for the last 7 days (oldest first)
DEMO_LEADS_PER_DAY = [
    [2, 1, 3, 0, 2, 4, 1],
    [1, 2, 1, 2, 1, 1, 0],
    [0, 1, 0, 1, 2, 0, 1],
    [3, 2, 2, 1, 0, 1, 2],
    [1, 0, 0, 0, 0, 0, 0],
]

# Orders created from the first N leads of each employee:
# (final amount in VND or None, status)
DEMO_ORDERS = [
    [(Decimal("12500000"), OrderStatus.COMPLETED), (Decimal("8000000"), OrderStatus.PRINTING),
     (Decimal("3200000"), OrderStatus.DELIVERED)],
    [(Decimal("45000000"), OrderStatus.COMPLETED), (Decimal("2000000"), OrderStatus.PENDING)],
    [(None, OrderStatus.DESIGNING)],
    [(Decimal("6500000"), OrderStatus.APPROVED), (Decimal("1500000"), OrderStatus.CANCELLED),
     (Decimal("9900000"), OrderStatus.COMPLETED), (Decimal("4100000"), OrderStatus.PENDING)],
    [],
]

DEMO_MARKER_CODE = DEMO_EMPLOYEES[0][0]


async def seed_employees(session: AsyncSession, now: datetime) -> list[SalesEmployeeRow]:
    """Create the demo sales team."""
    repo = SalesEmployeeRepository(session)
    rows = []
    for code, name, email, active in DEMO_EMPLOYEES:
        row = await repo.create(
            employee_code=code, full_name=name, email=email, phone=None, created_at=now,
        )
        if not active:
            await repo.deactivate(row.id)
        rows.append(row)
    return rows


async def seed_pipeline(
    session: AsyncSession,
    employees: list[SalesEmployeeRow],
    now: datetime,
) -> tuple[int, int]:
    """Create leads and orders for each employee. Returns (leads, orders)."""
    leads_repo = LeadRepository(session)
    orders_repo = OrderRepository(session)
    today = start_of_day(now)
    lead_total = order_total = 0

    for emp, per_day, orders in zip(employees, DEMO_LEADS_PER_DAY, DEMO_ORDERS):
        lead_ids: list[tuple[int, datetime]] = []
        for offset, count in enumerate(per_day):
            day = today - timedelta(days=len(per_day) - 1 - offset)
            for n in range(count):
                created = day + timedelta(hours=9 + n)
                lead = await leads_repo.create(
                    full_name=f"Khách {emp.employee_code}-{offset}{n}",
                    phone=f"09{emp.id:02d}{offset:02d}{n:04d}",
                    email=None,
                    demand="In hộp giấy",
                    assigned_sales_id=emp.id,
                    created_at=created,
                )
                lead_ids.append((lead.id, created))
                lead_total += 1

        for (lead_id, created), (amount, status) in zip(lead_ids, orders):
            await leads_repo.mark_converted(lead_id)
            await orders_repo.create(
                description="Đơn in demo",
                quantity=1000,
                total_amount=amount,
                discount=Decimal("0"),
                final_amount=amount,
                sales_employee_id=emp.id,
                lead_id=lead_id,
                created_at=created + timedelta(hours=2),
                status=status,
            )
            order_total += 1

    return lead_total, order_total


async def seed_demo(session: AsyncSession, now: datetime | None = None) -> dict:
    """Idempotent demo seed.

    Returns dict with keys: created (bool), employees, leads, orders.
    """
    if await SalesEmployeeRepository(session).get_by_code(DEMO_MARKER_CODE) is not None:
        return {"created": False, "employees": 0, "leads": 0, "orders": 0}

    now = now or local_now(get_settings().TIMEZONE)
    employees = await seed_employees(session, now)
    leads, orders = await seed_pipeline(session, employees, now)
    return {
        "created": True,
        "employees": len(employees),
        "leads": leads,
        "orders": orders,
    }


async def _run_seed() -> None:
    """Run the seed against the configured database."""
    from src.db.session import async_session_factory

    async with async_session_factory() as session:
        result = await seed_demo(session)
        if not result["created"]:
            print(f"Demo data already seeded ({DEMO_MARKER_CODE} exists). Skipping.")
            return
        await session.commit()

    print("Seed complete.")
    print(f"  Employees: {result['employees']}")
    print(f"  Leads:     {result['leads']}")
    print(f"  Orders:    {result['orders']}")


if __name__ == "__main__":
    asyncio.run(_run_seed())
