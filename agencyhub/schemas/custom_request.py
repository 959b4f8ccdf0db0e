# agencyhub/schemas/custom_request.py
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, EmailStr, field_validator, model_validator

from agencyhub.models.custom_request import CustomRequestPriority, CustomRequestStatus


def _non_negative(v: Decimal | None, label: str) -> Decimal | None:
    if v is not None and v < 0:
        raise ValueError(f"{label} cannot be negative")
    return v


def _not_null(v, label: str):
    # Only runs on explicit input; omitted fields keep their defaults.
    if v is None:
        raise ValueError(f"{label} cannot be null")
    return v


def _required_text(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Field is required")
    return v


class CustomRequestCreate(BaseModel):
    client_id: UUID
    fan_name: str
    fan_email: EmailStr | None = None
    fan_lifetime_spend: Decimal | None = None
    description: str
    proposed_amount: Decimal
    amount_paid: Decimal | None = None
    length_duration: str | None = None
    priority: CustomRequestPriority = CustomRequestPriority.MEDIUM
    notes: str | None = None
    chat_link: str | None = None
    date_due: date | None = None
    is_voice_video_call: bool = False
    call_scheduled_at: datetime | None = None

    @field_validator("fan_name", "description")
    @classmethod
    def validate_required_text(cls, v: str) -> str:
        return _required_text(v)

    @field_validator("proposed_amount")
    @classmethod
    def validate_proposed_amount(cls, v: Decimal) -> Decimal:
        return _non_negative(v, "Proposed amount")

    @field_validator("amount_paid")
    @classmethod
    def validate_amount_paid(cls, v: Decimal | None) -> Decimal | None:
        # May exceed the proposed amount.
        return _non_negative(v, "Amount paid")

    @field_validator("fan_lifetime_spend")
    @classmethod
    def validate_lifetime_spend(cls, v: Decimal | None) -> Decimal | None:
        return _non_negative(v, "Lifetime spend")


class CustomRequestUpdate(BaseModel):
    """
    Free-form edit. Status cannot be set here: use the action endpoints.
    """

    fan_name: str | None = None
    fan_email: EmailStr | None = None
    fan_lifetime_spend: Decimal | None = None
    description: str | None = None
    proposed_amount: Decimal | None = None
    amount_paid: Decimal | None = None
    length_duration: str | None = None
    priority: CustomRequestPriority | None = None
    notes: str | None = None
    chat_link: str | None = None
    estimated_delivery_date: date | None = None
    date_due: date | None = None
    call_scheduled_at: datetime | None = None
    version: int

    @model_validator(mode="before")
    @classmethod
    def reject_status(cls, data):
        if isinstance(data, dict) and "status" in data:
            raise ValueError("Status updates are not allowed on this endpoint. Use action endpoints instead.")
        return data

    @field_validator("fan_name", "description")
    @classmethod
    def validate_required_text(cls, v: str | None) -> str:
        return _required_text(_not_null(v, "Field"))

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v: CustomRequestPriority | None) -> CustomRequestPriority:
        return _not_null(v, "Priority")

    @field_validator("proposed_amount")
    @classmethod
    def validate_proposed_amount(cls, v: Decimal | None) -> Decimal:
        return _non_negative(_not_null(v, "Proposed amount"), "Proposed amount")

    @field_validator("amount_paid")
    @classmethod
    def validate_amount_paid(cls, v: Decimal | None) -> Decimal | None:
        return _non_negative(v, "Amount paid")

    @field_validator("fan_lifetime_spend")
    @classmethod
    def validate_lifetime_spend(cls, v: Decimal | None) -> Decimal | None:
        return _non_negative(v, "Lifetime spend")


class CustomRequestResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    client_id: UUID
    created_by: UUID | None
    fan_name: str
    fan_email: str | None = None
    fan_lifetime_spend: Decimal | None = None
    description: str
    proposed_amount: Decimal
    amount_paid: Decimal | None = None
    length_duration: str | None = None
    status: CustomRequestStatus
    priority: CustomRequestPriority
    notes: str | None = None
    chat_link: str | None = None
    is_voice_video_call: bool = False
    call_scheduled_at: datetime | None = None

    date_submitted: date
    date_due: date | None = None
    estimated_delivery_date: date | None = None
    date_completed: date | None = None

    team_approved_by: UUID | None = None
    team_approved_at: datetime | None = None
    client_approved_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_by: UUID | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None

    version: int
    created_at: datetime
    updated_at: datetime

    # Computed fields for frontend convenience
    pending_balance: Decimal = Decimal("0")
    client_username: str | None = None

    class Config:
        from_attributes = True


class CustomRequestListResponse(BaseModel):
    items: list[CustomRequestResponse]
    total: int
    page: int
    page_size: int


class ContentUploadResponse(BaseModel):
    id: UUID
    custom_request_id: UUID
    file_name: str
    file_path: str
    file_size: int | None = None
    file_type: str | None = None
    uploaded_by: str
    uploaded_by_id: UUID | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class AttachmentUploadResponse(BaseModel):
    uploaded: list[ContentUploadResponse]
    failed: list[str] = []


class CustomNoteCreate(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        return _required_text(v)


class CustomNoteResponse(BaseModel):
    id: UUID
    custom_request_id: UUID
    content: str
    created_by: UUID | None = None
    created_at: datetime
    updated_at: datetime

    # Computed for display
    author_name: str | None = None

    class Config:
        from_attributes = True
