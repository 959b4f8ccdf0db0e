# agencyhub/schemas/role.py
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, field_validator

from agencyhub.core.permissions import PermissionType


class RoleBase(BaseModel):
    name: str
    description: str | None = None
    color: str = "gray"

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2 or len(v) > 50:
            raise ValueError("Role name must be 2-50 characters")
        return v


class RoleCreate(RoleBase):
    slug: str | None = None
    hierarchy_level: int = 50
    permission_codes: list[str] = []

    @field_validator("hierarchy_level")
    @classmethod
    def validate_level(cls, v: int) -> int:
        if v < 0 or v > 100:
            raise ValueError("Hierarchy level must be between 0 and 100")
        return v


class RoleUpdate(BaseModel):
    name: str | None = None
    slug: str | None = None
    description: str | None = None
    color: str | None = None
    hierarchy_level: int | None = None
    permission_codes: list[str] | None = None

    @field_validator("hierarchy_level")
    @classmethod
    def validate_level(cls, v: int | None) -> int | None:
        if v is not None and (v < 0 or v > 100):
            raise ValueError("Hierarchy level must be between 0 and 100")
        return v


class RoleCloneRequest(BaseModel):
    name: str | None = None


class RolePermissionsUpdate(BaseModel):
    permission_codes: list[str]


class PermissionResponse(BaseModel):
    code: str
    name: str
    description: str | None = None
    category: str
    type: PermissionType

    class Config:
        from_attributes = True


class RoleResponse(RoleBase):
    id: UUID
    tenant_id: UUID
    slug: str
    hierarchy_level: int
    is_system_default: bool
    is_immutable: bool
    permission_codes: list[str] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
