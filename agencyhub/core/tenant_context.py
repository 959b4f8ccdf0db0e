# agencyhub/core/tenant_context.py
from uuid import UUID

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from agencyhub.api.v1.endpoints.auth import get_current_member
from agencyhub.core.database import get_db
from agencyhub.models.team_member import TeamMember
from agencyhub.models.tenant import Tenant, TenantStatus
from agencyhub.services.permission_service import EffectiveAccess, resolve_access


class TenantContext:
    """
    Wraps the acting member, their tenant and their resolved access.

    - member: current authenticated team member
    - tenant: the member's agency (None only for platform admins without one)
    - access: EffectiveAccess resolved for this request
    """

    def __init__(self, member: TeamMember, tenant: Tenant | None, access: EffectiveAccess):
        self.member = member
        self.tenant = tenant
        self.access = access

    @property
    def member_id(self) -> UUID:
        return self.member.id

    @property
    def tenant_id(self) -> UUID | None:
        return self.tenant.id if self.tenant is not None else None

    def require_tenant_id(self) -> UUID:
        if self.tenant is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="This operation needs an agency. Platform admins must belong to one to create records.",
            )
        return self.tenant.id


_INACTIVE_TENANT_DETAIL = {
    TenantStatus.SUSPENDED: "Agency account is suspended. Please contact support.",
    TenantStatus.INACTIVE: "Agency account is inactive. Please contact support.",
}


def get_tenant_context(
    db: Session = Depends(get_db),
    current_member: TeamMember = Depends(get_current_member),
) -> TenantContext:
    """
    Resolve the member's tenant and access.

    - Platform admins: tenant is optional and never blocks access.
    - Everyone else: must belong to an active tenant.
    """
    access = resolve_access(db, current_member)

    tenant = None
    if current_member.tenant_id is not None:
        tenant = db.query(Tenant).filter(Tenant.id == current_member.tenant_id).first()

    if access.is_platform_admin:
        return TenantContext(member=current_member, tenant=tenant, access=access)

    if current_member.tenant_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Tenant-scoped operation requires an agency member.",
        )
    if not tenant:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Agency not found.",
        )
    if tenant.status != TenantStatus.ACTIVE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=_INACTIVE_TENANT_DETAIL.get(tenant.status, "Agency account is not active. Please contact support."),
        )

    return TenantContext(member=current_member, tenant=tenant, access=access)
