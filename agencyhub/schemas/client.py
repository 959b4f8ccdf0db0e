# agencyhub/schemas/client.py
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, field_validator


def _clean_username(v: str) -> str:
    v = v.strip().lstrip("@")
    if not v:
        raise ValueError("Username is required")
    if len(v) > 100:
        raise ValueError("Username must be at most 100 characters")
    return v


class ClientCreate(BaseModel):
    username: str
    display_name: str | None = None

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        return _clean_username(v)


class ClientUpdate(BaseModel):
    username: str | None = None
    display_name: str | None = None

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str | None) -> str:
        if v is None:
            raise ValueError("Username cannot be null")
        return _clean_username(v)


class ClientResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    username: str
    display_name: str | None = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
