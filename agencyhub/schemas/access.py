# agencyhub/schemas/access.py
from uuid import UUID

from pydantic import BaseModel


class RoleInfoResponse(BaseModel):
    id: UUID
    name: str
    slug: str
    color: str
    hierarchy_level: int
    is_system_default: bool
    is_immutable: bool

    class Config:
        from_attributes = True


class EffectiveAccessResponse(BaseModel):
    member_id: UUID | None = None
    tenant_id: UUID | None = None
    permissions: list[str]
    role: RoleInfoResponse | None = None
    source: str
    legacy_role: str | None = None
    is_platform_admin: bool
    is_manager_or_above: bool
    is_admin_or_above: bool
    is_owner: bool

    @classmethod
    def from_access(cls, access) -> "EffectiveAccessResponse":
        return cls(
            member_id=access.member_id,
            tenant_id=access.tenant_id,
            permissions=sorted(access.permissions),
            role=RoleInfoResponse.model_validate(access.role) if access.role else None,
            source=access.source,
            legacy_role=access.legacy_role,
            is_platform_admin=access.is_platform_admin,
            is_manager_or_above=access.is_manager_or_above,
            is_admin_or_above=access.is_admin_or_above,
            is_owner=access.is_owner,
        )
