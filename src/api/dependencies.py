"""FastAPI dependency injection factories for repositories and services.

Each repository factory takes AsyncSession via Depends(get_async_session).
The dashboard aggregator additionally takes a clock and a random source so
tests can pin "now" and the placeholder processing time.
"""

import random

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.config.settings import Settings, get_settings
from src.dashboard.aggregator import DashboardAggregator
from src.dashboard.clock import Clock, SystemClock
from src.db.session import get_async_session
from src.repositories.crm import (
    LeadRepository,
    OrderRepository,
    SalesEmployeeRepository,
    SqlCRMStatsReader,
)

# ---------------------------------------------------------------------------
# Time / randomness
# ---------------------------------------------------------------------------


def get_clock(settings: Settings = Depends(get_settings)) -> Clock:
    return SystemClock(settings.TIMEZONE)


def get_rng() -> random.Random:
    return random.Random()


# ---------------------------------------------------------------------------
# CRM repositories
# ---------------------------------------------------------------------------


async def get_sales_employee_repo(
    session: AsyncSession = Depends(get_async_session),
) -> SalesEmployeeRepository:
    return SalesEmployeeRepository(session)


async def get_lead_repo(
    session: AsyncSession = Depends(get_async_session),
) -> LeadRepository:
    return LeadRepository(session)


async def get_order_repo(
    session: AsyncSession = Depends(get_async_session),
) -> OrderRepository:
    return OrderRepository(session)


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


async def get_dashboard_aggregator(
    session: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
    rng: random.Random = Depends(get_rng),
) -> DashboardAggregator:
    return DashboardAggregator(
        SqlCRMStatsReader(session), settings=settings, clock=clock, rng=rng,
    )
