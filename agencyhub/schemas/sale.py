# agencyhub/schemas/sale.py
from datetime import date, datetime, time
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, field_validator

from agencyhub.models.sale import SaleStatus


class SaleCreate(BaseModel):
    client_id: UUID
    sale_date: date
    sale_time: time | None = None
    gross_amount: Decimal
    screenshot_url: str | None = None
    notes: str | None = None

    @field_validator("gross_amount")
    @classmethod
    def validate_gross_amount(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Gross amount cannot be negative")
        return v


class SaleUpdate(BaseModel):
    client_id: UUID | None = None
    sale_date: date | None = None
    sale_time: time | None = None
    gross_amount: Decimal | None = None
    screenshot_url: str | None = None
    notes: str | None = None

    @field_validator("client_id", "sale_date")
    @classmethod
    def validate_not_null(cls, v):
        # Explicit nulls only; omitted fields are never validated.
        if v is None:
            raise ValueError("Field cannot be null")
        return v

    @field_validator("gross_amount")
    @classmethod
    def validate_gross_amount(cls, v: Decimal | None) -> Decimal:
        if v is None:
            raise ValueError("Gross amount cannot be null")
        if v < 0:
            raise ValueError("Gross amount cannot be negative")
        return v


class SaleReviewRequest(BaseModel):
    decision: Literal["valid", "invalid"]
    notes: str | None = None


class SaleResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    chatter_id: UUID
    client_id: UUID
    sale_date: date
    sale_time: time | None = None
    gross_amount: Decimal
    screenshot_url: str | None = None
    notes: str | None = None
    status: SaleStatus
    approved_by: UUID | None = None
    approved_at: datetime | None = None
    version: int
    created_at: datetime
    updated_at: datetime

    # Derived; never stored
    net_amount: Decimal = Decimal("0")

    class Config:
        from_attributes = True


class ChatterTotalsResponse(BaseModel):
    chatter_id: UUID
    sale_count: int
    valid_count: int
    valid_gross: Decimal
    valid_net: Decimal
    pending_gross: Decimal

    class Config:
        from_attributes = True


class SalesSummaryResponse(BaseModel):
    total_count: int
    counts_by_status: dict[str, int]
    valid_gross: Decimal
    valid_net: Decimal
    pending_gross: Decimal
    by_chatter: list[ChatterTotalsResponse]

    class Config:
        from_attributes = True
