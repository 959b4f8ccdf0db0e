# agencyhub/api/v1/endpoints/roles.py
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agencyhub.core.database import get_db
from agencyhub.core.tenant_context import TenantContext
from agencyhub.dependencies.authz import require_permission
from agencyhub.models.tenant_role import TenantRole
from agencyhub.schemas.role import (
    PermissionResponse,
    RoleCloneRequest,
    RoleCreate,
    RolePermissionsUpdate,
    RoleResponse,
    RoleUpdate,
)
from agencyhub.services import role_service
from agencyhub.services.role_service import (
    InvalidPermissionCodesError,
    RoleInUseError,
    RoleNotFoundError,
    RoleProtectedError,
    RoleSlugConflictError,
)

router = APIRouter()

_VIEW = "settings.roles"
_MANAGE = "settings.manage_roles"


def _load_role(db: Session, ctx: TenantContext, role_id: UUID) -> TenantRole:
    try:
        return role_service.get_role(db, ctx.require_tenant_id(), role_id)
    except RoleNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


def _role_errors_to_http(exc: Exception) -> HTTPException:
    if isinstance(exc, RoleProtectedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    if isinstance(exc, (RoleInUseError, RoleSlugConflictError)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, InvalidPermissionCodesError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return HTTPException(status_code=500, detail="Failed to update role.")


_ROLE_ERRORS = (
    RoleProtectedError,
    RoleInUseError,
    RoleSlugConflictError,
    InvalidPermissionCodesError,
    SQLAlchemyError,
)


@router.get("/permissions", response_model=list[PermissionResponse], tags=["roles"])
def list_permissions(
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(_VIEW)),
) -> list[PermissionResponse]:
    """
    The active permission catalog, grouped by category.
    """
    return [PermissionResponse.model_validate(p) for p in role_service.list_permission_catalog(db)]


@router.get("", response_model=list[RoleResponse], tags=["roles"])
def list_roles(
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(_VIEW)),
) -> list[RoleResponse]:
    """
    List all roles for the current agency, highest hierarchy level first.
    """
    roles = role_service.list_roles(db, ctx.require_tenant_id())
    return [RoleResponse.model_validate(r) for r in roles]


@router.get("/{role_id}", response_model=RoleResponse, tags=["roles"])
def get_role(
    role_id: UUID,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(_VIEW)),
) -> RoleResponse:
    return RoleResponse.model_validate(_load_role(db, ctx, role_id))


@router.post("", response_model=RoleResponse, status_code=status.HTTP_201_CREATED, tags=["roles"])
def create_role(
    payload: RoleCreate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(_MANAGE)),
) -> RoleResponse:
    try:
        role = role_service.create_role(db, ctx.require_tenant_id(), **payload.model_dump())
    except _ROLE_ERRORS as exc:
        raise _role_errors_to_http(exc)
    return RoleResponse.model_validate(role)


@router.patch("/{role_id}", response_model=RoleResponse, tags=["roles"])
def update_role(
    role_id: UUID,
    payload: RoleUpdate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(_MANAGE)),
) -> RoleResponse:
    role = _load_role(db, ctx, role_id)
    try:
        role = role_service.update_role(db, ctx.access, role, **payload.model_dump(exclude_unset=True))
    except _ROLE_ERRORS as exc:
        raise _role_errors_to_http(exc)
    return RoleResponse.model_validate(role)


@router.put("/{role_id}/permissions", response_model=RoleResponse, tags=["roles"])
def set_role_permissions(
    role_id: UUID,
    payload: RolePermissionsUpdate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(_MANAGE)),
) -> RoleResponse:
    role = _load_role(db, ctx, role_id)
    try:
        role = role_service.set_role_permissions(db, ctx.access, role, payload.permission_codes)
    except _ROLE_ERRORS as exc:
        raise _role_errors_to_http(exc)
    return RoleResponse.model_validate(role)


@router.post("/{role_id}/clone", response_model=RoleResponse, status_code=status.HTTP_201_CREATED, tags=["roles"])
def clone_role(
    role_id: UUID,
    payload: RoleCloneRequest,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(_MANAGE)),
) -> RoleResponse:
    role = _load_role(db, ctx, role_id)
    try:
        clone = role_service.clone_role(db, role, name=payload.name)
    except _ROLE_ERRORS as exc:
        raise _role_errors_to_http(exc)
    return RoleResponse.model_validate(clone)


@router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["roles"])
def delete_role(
    role_id: UUID,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_permission(_MANAGE)),
) -> None:
    role = _load_role(db, ctx, role_id)
    try:
        role_service.delete_role(db, role)
    except _ROLE_ERRORS as exc:
        raise _role_errors_to_http(exc)
