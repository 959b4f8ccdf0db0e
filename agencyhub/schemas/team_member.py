# agencyhub/schemas/team_member.py
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, model_validator

from agencyhub.core.permissions import LegacyRole


class TeamMemberResponse(BaseModel):
    id: UUID
    tenant_id: UUID | None = None
    email: str
    full_name: str
    role: str
    role_id: UUID | None = None
    shift: str | None = None
    is_platform_admin: bool = False
    is_active: bool = True
    approved_by: UUID | None = None
    approved_at: datetime | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class AssignRoleRequest(BaseModel):
    role_id: UUID


class ApproveMemberRequest(BaseModel):
    legacy_role: LegacyRole | None = None
    role_id: UUID | None = None

    @model_validator(mode="after")
    def validate_one_target(self):
        """Exactly one of legacy_role / role_id must be given."""
        if (self.legacy_role is None) == (self.role_id is None):
            raise ValueError("Provide exactly one of legacy_role or role_id")
        return self
