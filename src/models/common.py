"""Shared types, enums, and base models used across the CRM domain models."""

from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Annotated
from zoneinfo import ZoneInfo

from pydantic import BaseModel, Field


def local_now(tz_name: str) -> datetime:
    """Return the current wall-clock time in ``tz_name`` as a naive datetime.

    Lead and order timestamps are stored timezone-naive in the shop's local
    calendar, so comparisons are made against naive local values.
    """
    return datetime.now(tz=ZoneInfo(tz_name)).replace(tzinfo=None)


def start_of_day(moment: datetime) -> datetime:
    """Midnight of the calendar day containing ``moment``."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


# --- Reusable annotated types ---

Money = Annotated[
    Decimal,
    Field(ge=0, max_digits=15, decimal_places=2, description="Non-negative amount in VND."),
]


# --- Shared enums ---


class LeadStatus(StrEnum):
    """Sales pipeline status of a lead."""

    NEW = "new"
    CALLING = "calling"
    NO_ANSWER = "no_answer"
    QUOTED = "quoted"
    CLOSED = "closed"
    REJECTED = "rejected"


class AssignmentMethod(StrEnum):
    """How a lead got its sales employee."""

    MANUAL = "manual"
    ROUND_ROBIN = "round_robin"


class OrderStatus(StrEnum):
    """Production status of a print order."""

    PENDING = "pending"
    DESIGNING = "designing"
    APPROVED = "approved"
    PRINTING = "printing"
    COMPLETED = "completed"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# --- Base model ---


class CRMBase(BaseModel):
    """Base model with common configuration for all CRM Pydantic models."""

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
        "protected_namespaces": (),
    }
