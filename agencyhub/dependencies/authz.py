# agencyhub/dependencies/authz.py
from fastapi import Depends, HTTPException, status

from agencyhub.core.tenant_context import TenantContext, get_tenant_context


def require_permission(permission_code: str):
    """
    Dependency factory for permission-based access control.

    Usage:

    @router.patch("/{id}/deliver")
    def deliver(ctx: TenantContext = Depends(require_permission("customs.deliver"))):
        ...

    Returns the TenantContext if the member holds the permission.
    """

    def dependency(ctx: TenantContext = Depends(get_tenant_context)) -> TenantContext:
        if not ctx.access.has_permission(permission_code):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {permission_code}",
            )
        return ctx

    return dependency


def require_any_permission(*permission_codes: str):
    """
    Like require_permission, but any one of the codes is enough.
    """

    def dependency(ctx: TenantContext = Depends(get_tenant_context)) -> TenantContext:
        if not ctx.access.has_any_permission(permission_codes):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required one of: {', '.join(permission_codes)}",
            )
        return ctx

    return dependency


def require_manager(permission_code: str | None = None):
    """
    Manager-or-above (hierarchy level >= 60 or a legacy manager/admin/owner),
    optionally combined with a permission.
    """

    def dependency(ctx: TenantContext = Depends(get_tenant_context)) -> TenantContext:
        if not ctx.access.is_manager_or_above:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only managers and above can perform this action.",
            )
        if permission_code and not ctx.access.has_permission(permission_code):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {permission_code}",
            )
        return ctx

    return dependency
