"""FastAPI sales employee endpoints.

GET    /sales-employees              - list (optional ?is_active=)
POST   /sales-employees              - create, appended to the round robin
GET    /sales-employees/{id}         - get
PATCH  /sales-employees/{id}         - partial update
DELETE /sales-employees/{id}         - soft delete (is_active = false)
POST   /sales-employees/reset-daily  - zero every daily lead count
PUT    /sales-employees/{id}/reorder - set the rotation slot
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from src.api.dependencies import get_clock, get_sales_employee_repo
from src.dashboard.clock import Clock
from src.models.crm import (
    DailyCountReset,
    SalesEmployee,
    SalesEmployeeCreate,
    SalesEmployeeReorder,
    SalesEmployeeUpdate,
)
from src.repositories.crm import SalesEmployeeRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sales-employees", tags=["sales-employees"])


@router.get("", response_model=list[SalesEmployee])
async def list_sales_employees(
    is_active: bool | None = Query(default=None),
    repo: SalesEmployeeRepository = Depends(get_sales_employee_repo),
) -> list[SalesEmployee]:
    """List sales employees in round-robin order."""
    rows = await repo.list_all(is_active=is_active)
    return [SalesEmployee.model_validate(r) for r in rows]


@router.post("", status_code=201, response_model=SalesEmployee)
async def create_sales_employee(
    body: SalesEmployeeCreate,
    repo: SalesEmployeeRepository = Depends(get_sales_employee_repo),
    clock: Clock = Depends(get_clock),
) -> SalesEmployee:
    """Create a sales employee."""
    if await repo.get_by_code(body.employee_code) is not None:
        raise HTTPException(
            status_code=409,
            detail=f"Employee code {body.employee_code} already exists.",
        )
    row = await repo.create(
        employee_code=body.employee_code,
        full_name=body.full_name,
        email=body.email,
        phone=body.phone,
        created_at=clock.now(),
    )
    logger.info("Created sales employee %s (%s)", row.id, row.employee_code)
    return SalesEmployee.model_validate(row)


@router.get("/{employee_id}", response_model=SalesEmployee)
async def get_sales_employee(
    employee_id: int,
    repo: SalesEmployeeRepository = Depends(get_sales_employee_repo),
) -> SalesEmployee:
    """Get a single sales employee."""
    row = await repo.get(employee_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Sales employee {employee_id} not found.")
    return SalesEmployee.model_validate(row)


@router.patch("/{employee_id}", response_model=SalesEmployee)
async def update_sales_employee(
    employee_id: int,
    body: SalesEmployeeUpdate,
    repo: SalesEmployeeRepository = Depends(get_sales_employee_repo),
) -> SalesEmployee:
    """Update the fields present in the request body."""
    row = await repo.update(employee_id, **body.model_dump(exclude_unset=True))
    if row is None:
        raise HTTPException(status_code=404, detail=f"Sales employee {employee_id} not found.")
    return SalesEmployee.model_validate(row)


@router.delete("/{employee_id}", response_model=SalesEmployee)
async def deactivate_sales_employee(
    employee_id: int,
    repo: SalesEmployeeRepository = Depends(get_sales_employee_repo),
) -> SalesEmployee:
    """Soft delete: the employee drops out of KPIs and lead assignment."""
    row = await repo.deactivate(employee_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Sales employee {employee_id} not found.")
    logger.info("Deactivated sales employee %s", employee_id)
    return SalesEmployee.model_validate(row)


@router.post("/reset-daily", response_model=DailyCountReset)
async def reset_daily_counts(
    repo: SalesEmployeeRepository = Depends(get_sales_employee_repo),
) -> DailyCountReset:
    """Zero everyone's daily lead count. Run once a day before leads come in."""
    reset = await repo.reset_daily_counts()
    logger.info("Reset daily lead counts for %d sales employees", reset)
    return DailyCountReset(message="Daily counts reset", reset=reset)


@router.put("/{employee_id}/reorder", response_model=SalesEmployee)
async def reorder_sales_employee(
    employee_id: int,
    body: SalesEmployeeReorder,
    repo: SalesEmployeeRepository = Depends(get_sales_employee_repo),
) -> SalesEmployee:
    """Move an employee to another slot in the lead rotation."""
    row = await repo.reorder(employee_id, body.new_order)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Sales employee {employee_id} not found.")
    return SalesEmployee.model_validate(row)
