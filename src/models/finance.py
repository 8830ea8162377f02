from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LeadRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    assigned_agent_id: Optional[str] = None
    status: Optional[str] = None


class BookingRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    tenant_id: Optional[str] = None
    lead_id: Optional[str] = None
    booking_reference: Optional[str] = None
    customer_name: Optional[str] = None
    destination: Optional[str] = None
    booking_type: str
    total_amount: float = Field(..., ge=0, allow_inf_nan=False)
    currency: Optional[str] = None
    status: Optional[str] = None
    created_at: datetime
    assigned_agent_id: Optional[str] = None
    lead: Optional[LeadRecord] = None


class PaymentRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    booking_id: str
    amount: float = Field(..., allow_inf_nan=False)
    currency: Optional[str] = None
    payment_method: Optional[str] = None
    status: str = "pending"
    due_date: Optional[date] = None
    paid_date: Optional[date] = None
    created_at: Optional[datetime] = None

    @field_validator("due_date", "paid_date", mode="before")
    @classmethod
    def _strip_time(cls, value: object) -> object:
        # Payment dates are stored as timestamps; only the calendar day matters.
        if isinstance(value, str) and "T" in value:
            return value.split("T", 1)[0]
        return value
