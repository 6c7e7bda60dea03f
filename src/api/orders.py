"""FastAPI order endpoints.

GET   /orders                           - list (filters: status, sales_employee_id)
POST  /orders                           - create with status "pending"
GET   /orders/{id}                      - get
GET   /orders/{id}/allowed-transitions  - statuses reachable in one step
PATCH /orders/{id}/status               - move to another status (transition table enforced)
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from src.api.dependencies import (
    get_clock,
    get_lead_repo,
    get_order_repo,
    get_sales_employee_repo,
)
from src.dashboard.clock import Clock
from src.models.common import OrderStatus
from src.models.crm import (
    AllowedTransitions,
    InvalidStatusTransitionError,
    Order,
    OrderCreate,
    OrderStatusUpdate,
    allowed_order_transitions,
    check_order_transition,
)
from src.repositories.crm import LeadRepository, OrderRepository, SalesEmployeeRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("", response_model=list[Order])
async def list_orders(
    status: OrderStatus | None = Query(default=None),
    sales_employee_id: int | None = Query(default=None),
    repo: OrderRepository = Depends(get_order_repo),
) -> list[Order]:
    """List orders, newest first."""
    rows = await repo.list_all(status=status, sales_employee_id=sales_employee_id)
    return [Order.model_validate(r) for r in rows]


@router.post("", status_code=201, response_model=Order)
async def create_order(
    body: OrderCreate,
    repo: OrderRepository = Depends(get_order_repo),
    employees: SalesEmployeeRepository = Depends(get_sales_employee_repo),
    leads: LeadRepository = Depends(get_lead_repo),
    clock: Clock = Depends(get_clock),
) -> Order:
    """Create a print order."""
    if body.sales_employee_id is not None and await employees.get(body.sales_employee_id) is None:
        raise HTTPException(
            status_code=404,
            detail=f"Sales employee {body.sales_employee_id} not found.",
        )
    if body.lead_id is not None and await leads.get(body.lead_id) is None:
        raise HTTPException(status_code=404, detail=f"Lead {body.lead_id} not found.")
    row = await repo.create(
        description=body.description,
        quantity=body.quantity,
        total_amount=body.total_amount,
        discount=body.discount,
        final_amount=body.final_amount,
        sales_employee_id=body.sales_employee_id,
        lead_id=body.lead_id,
        created_at=clock.now(),
    )
    return Order.model_validate(row)


@router.get("/{order_id}", response_model=Order)
async def get_order(
    order_id: int,
    repo: OrderRepository = Depends(get_order_repo),
) -> Order:
    """Get a single order."""
    row = await repo.get(order_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found.")
    return Order.model_validate(row)


@router.get("/{order_id}/allowed-transitions", response_model=AllowedTransitions)
async def get_allowed_transitions(
    order_id: int,
    repo: OrderRepository = Depends(get_order_repo),
) -> AllowedTransitions:
    """Statuses the order can move to next."""
    row = await repo.get(order_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found.")
    return AllowedTransitions(
        current_status=row.status,
        allowed_transitions=allowed_order_transitions(row.status),
    )


@router.patch("/{order_id}/status", response_model=Order)
async def update_order_status(
    order_id: int,
    body: OrderStatusUpdate,
    repo: OrderRepository = Depends(get_order_repo),
    clock: Clock = Depends(get_clock),
) -> Order:
    """Change an order's status. Same-status requests are a no-op."""
    row = await repo.get(order_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found.")

    try:
        changed = check_order_transition(row.status, body.status)
    except InvalidStatusTransitionError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    if changed:
        previous = row.status
        row = await repo.update_status(order_id, body.status, clock.now())
        logger.info("Order %s: %s -> %s", order_id, previous, body.status)
    return Order.model_validate(row)
