"""FastAPI lead endpoints.

GET    /leads                          - list (filters: status, assigned_sales_id)
POST   /leads                          - create with status "new", auto-assigned if no owner given
POST   /leads/auto-distribute          - hand unassigned open leads to the rotation
GET    /leads/{id}                     - get
PUT    /leads/{id}                     - partial update
DELETE /leads/{id}                     - delete
POST   /leads/{id}/convert             - mark converted (status "closed")
POST   /leads/{id}/convert-with-order  - convert a closed lead and open its order
"""

import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query

from src.api.dependencies import (
    get_clock,
    get_lead_repo,
    get_order_repo,
    get_sales_employee_repo,
)
from src.dashboard.clock import Clock
from src.models.common import LeadStatus
from src.models.crm import (
    AutoDistributeResult,
    Lead,
    LeadConversion,
    LeadConversionRequest,
    LeadCreate,
    LeadUpdate,
    Order,
)
from src.repositories.crm import LeadRepository, OrderRepository, SalesEmployeeRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leads", tags=["leads"])


async def _require_employee(employees: SalesEmployeeRepository, employee_id: int) -> None:
    if await employees.get(employee_id) is None:
        raise HTTPException(status_code=404, detail=f"Sales employee {employee_id} not found.")


@router.get("", response_model=list[Lead])
async def list_leads(
    status: LeadStatus | None = Query(default=None),
    assigned_sales_id: int | None = Query(default=None),
    repo: LeadRepository = Depends(get_lead_repo),
) -> list[Lead]:
    """List leads, newest first."""
    rows = await repo.list_all(status=status, assigned_sales_id=assigned_sales_id)
    return [Lead.model_validate(r) for r in rows]


@router.post("", status_code=201, response_model=Lead)
async def create_lead(
    body: LeadCreate,
    repo: LeadRepository = Depends(get_lead_repo),
    employees: SalesEmployeeRepository = Depends(get_sales_employee_repo),
    clock: Clock = Depends(get_clock),
) -> Lead:
    """Create a lead. Without an owner it goes to the next employee in the rotation."""
    if body.assigned_sales_id is not None:
        await _require_employee(employees, body.assigned_sales_id)
    now = clock.now()
    row = await repo.create(
        full_name=body.full_name,
        phone=body.phone,
        email=body.email,
        demand=body.demand,
        assigned_sales_id=body.assigned_sales_id,
        created_at=now,
    )
    if body.assigned_sales_id is None:
        owner = await repo.auto_assign(row, now)
        if owner is None:
            logger.warning("Lead %s left unassigned: no active sales employee", row.id)
    return Lead.model_validate(row)


@router.post("/auto-distribute", response_model=AutoDistributeResult)
async def auto_distribute(
    repo: LeadRepository = Depends(get_lead_repo),
    clock: Clock = Depends(get_clock),
) -> AutoDistributeResult:
    """Assign every unassigned open lead, one at a time, to the least-loaded employee."""
    pending = await repo.list_unassigned_open()
    now = clock.now()
    assigned = 0
    for row in pending:
        if await repo.auto_assign(row, now) is None:
            return AutoDistributeResult(
                message="Không có nhân viên Sales nào đang hoạt động",
                assigned_count=0,
                total_leads=len(pending),
            )
        assigned += 1
    logger.info("Auto-distributed %d of %d leads", assigned, len(pending))
    return AutoDistributeResult(
        message="Đã phân bổ thành công",
        assigned_count=assigned,
        total_leads=len(pending),
    )


@router.get("/{lead_id}", response_model=Lead)
async def get_lead(
    lead_id: int,
    repo: LeadRepository = Depends(get_lead_repo),
) -> Lead:
    """Get a single lead."""
    row = await repo.get(lead_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Lead {lead_id} not found.")
    return Lead.model_validate(row)


@router.put("/{lead_id}", response_model=Lead)
async def update_lead(
    lead_id: int,
    body: LeadUpdate,
    repo: LeadRepository = Depends(get_lead_repo),
    employees: SalesEmployeeRepository = Depends(get_sales_employee_repo),
    clock: Clock = Depends(get_clock),
) -> Lead:
    """Update the fields present in the request body."""
    changes = body.model_dump(exclude_unset=True)
    if changes.get("assigned_sales_id") is not None:
        await _require_employee(employees, changes["assigned_sales_id"])
    row = await repo.update(lead_id, at=clock.now(), **changes)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Lead {lead_id} not found.")
    return Lead.model_validate(row)


@router.delete("/{lead_id}", status_code=204)
async def delete_lead(
    lead_id: int,
    repo: LeadRepository = Depends(get_lead_repo),
) -> None:
    """Delete a lead. Orders created from it stay, without the link."""
    if not await repo.delete(lead_id):
        raise HTTPException(status_code=404, detail=f"Lead {lead_id} not found.")
    logger.info("Deleted lead %s", lead_id)


@router.post("/{lead_id}/convert", response_model=Lead)
async def convert_lead(
    lead_id: int,
    repo: LeadRepository = Depends(get_lead_repo),
) -> Lead:
    """Mark a lead as converted."""
    row = await repo.mark_converted(lead_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Lead {lead_id} not found.")
    return Lead.model_validate(row)


@router.post("/{lead_id}/convert-with-order", status_code=201, response_model=LeadConversion)
async def convert_lead_with_order(
    lead_id: int,
    body: LeadConversionRequest,
    repo: LeadRepository = Depends(get_lead_repo),
    orders: OrderRepository = Depends(get_order_repo),
    clock: Clock = Depends(get_clock),
) -> LeadConversion:
    """Convert a closed lead and create its order in the same transaction.

    The order belongs to the lead's sales employee and starts as pending.
    """
    lead = await repo.get(lead_id)
    if lead is None:
        raise HTTPException(status_code=404, detail=f"Lead {lead_id} not found.")
    if lead.status != LeadStatus.CLOSED:
        raise HTTPException(
            status_code=400,
            detail="Chỉ có thể tạo đơn hàng cho lead đã chốt (status = closed)",
        )
    if lead.is_converted:
        raise HTTPException(status_code=400, detail="Lead đã được chuyển đổi trước đó")

    order = await orders.create(
        description=body.order.description,
        quantity=body.order.quantity,
        total_amount=body.order.total_amount,
        discount=Decimal("0"),
        final_amount=body.order.total_amount,
        sales_employee_id=lead.assigned_sales_id,
        lead_id=lead.id,
        created_at=clock.now(),
    )
    lead = await repo.mark_converted(lead_id)
    logger.info("Converted lead %s into order %s", lead_id, order.order_code)
    return LeadConversion(lead=Lead.model_validate(lead), order=Order.model_validate(order))
