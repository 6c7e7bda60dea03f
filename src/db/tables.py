"""SQLAlchemy ORM table models for the CRM.

Three tables back the dashboard: sales employees, the leads assigned to
them and the print orders they close. Timestamps are naive values in the
shop's local calendar (see ``Settings.TIMEZONE``).
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.db.session import Base
from src.models.common import AssignmentMethod, LeadStatus, OrderStatus

# Stored as VARCHAR so new statuses don't need a Postgres enum migration.
_LeadStatusType = Enum(
    LeadStatus, native_enum=False, length=20,
    values_callable=lambda x: [e.value for e in x],
)
_OrderStatusType = Enum(
    OrderStatus, native_enum=False, length=20,
    values_callable=lambda x: [e.value for e in x],
)
_AssignmentMethodType = Enum(
    AssignmentMethod, native_enum=False, length=20,
    values_callable=lambda x: [e.value for e in x],
)


# ---------------------------------------------------------------------------
# Sales team
# ---------------------------------------------------------------------------


class SalesEmployeeRow(Base):
    __tablename__ = "sales_employees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    round_robin_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    daily_lead_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_lead_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    leads: Mapped[list["LeadRow"]] = relationship(
        back_populates="sales_employee", order_by="LeadRow.id",
    )
    orders: Mapped[list["OrderRow"]] = relationship(
        back_populates="sales_employee", order_by="OrderRow.id",
    )


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class LeadRow(Base):
    __tablename__ = "leads"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    demand: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[LeadStatus] = mapped_column(
        _LeadStatusType, default=LeadStatus.NEW, nullable=False,
    )
    is_converted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    assigned_sales_id: Mapped[int | None] = mapped_column(
        ForeignKey("sales_employees.id"), nullable=True, index=True,
    )
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    assignment_method: Mapped[AssignmentMethod | None] = mapped_column(
        _AssignmentMethodType, nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)

    sales_employee: Mapped[SalesEmployeeRow | None] = relationship(back_populates="leads")


class OrderRow(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_code: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    total_amount: Mapped[Decimal | None] = mapped_column(Numeric(15, 2), nullable=True)
    discount: Mapped[Decimal] = mapped_column(Numeric(15, 2), default=Decimal("0"), nullable=False)
    final_amount: Mapped[Decimal | None] = mapped_column(Numeric(15, 2), nullable=True)
    status: Mapped[OrderStatus] = mapped_column(
        _OrderStatusType, default=OrderStatus.PENDING, nullable=False, index=True,
    )
    sales_employee_id: Mapped[int | None] = mapped_column(
        ForeignKey("sales_employees.id"), nullable=True, index=True,
    )
    lead_id: Mapped[int | None] = mapped_column(ForeignKey("leads.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    sales_employee: Mapped[SalesEmployeeRow | None] = relationship(back_populates="orders")
