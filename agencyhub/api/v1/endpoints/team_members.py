# agencyhub/api/v1/endpoints/team_members.py
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agencyhub.core.database import get_db
from agencyhub.core.tenant_context import TenantContext
from agencyhub.dependencies.authz import require_any_permission, require_permission
from agencyhub.models.team_member import TeamMember
from agencyhub.schemas.team_member import ApproveMemberRequest, AssignRoleRequest, TeamMemberResponse
from agencyhub.services import team_member_service
from agencyhub.services.team_member_service import (
    RoleAssignmentError,
    TeamMemberNotFoundError,
    TeamMemberStateError,
)

router = APIRouter()


def _load_member(db: Session, ctx: TenantContext, member_id: UUID) -> TeamMember:
    try:
        return team_member_service.get_team_member(db, ctx.require_tenant_id(), member_id)
    except TeamMemberNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.get("", response_model=list[TeamMemberResponse])
def list_team_members(
    include_inactive: bool = Query(False),
    pending_only: bool = Query(False),
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_any_permission("team.view", "team.user_approvals")),
) -> list[TeamMemberResponse]:
    members = team_member_service.list_team_members(
        db,
        ctx.require_tenant_id(),
        include_inactive=include_inactive,
        pending_only=pending_only,
    )
    return [TeamMemberResponse.model_validate(m) for m in members]


@router.patch("/{member_id}/role", response_model=TeamMemberResponse)
def assign_role(
    member_id: UUID,
    payload: AssignRoleRequest,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_permission("team.edit_members")),
) -> TeamMemberResponse:
    member = _load_member(db, ctx, member_id)
    try:
        member = team_member_service.assign_role(db, ctx.access, member, payload.role_id)
    except RoleAssignmentError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to assign role.")
    return TeamMemberResponse.model_validate(member)


@router.patch("/{member_id}/approve", response_model=TeamMemberResponse)
def approve_member(
    member_id: UUID,
    payload: ApproveMemberRequest,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_permission("team.approve_users")),
) -> TeamMemberResponse:
    member = _load_member(db, ctx, member_id)
    try:
        member = team_member_service.approve_member(
            db,
            ctx.access,
            member,
            legacy_role=payload.legacy_role,
            role_id=payload.role_id,
        )
    except (RoleAssignmentError, TeamMemberStateError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to approve team member.")
    return TeamMemberResponse.model_validate(member)


@router.patch("/{member_id}/deactivate", response_model=TeamMemberResponse)
def deactivate_member(
    member_id: UUID,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(require_permission("team.edit_members")),
) -> TeamMemberResponse:
    member = _load_member(db, ctx, member_id)
    try:
        member = team_member_service.deactivate_member(db, ctx.access, member)
    except TeamMemberStateError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to deactivate team member.")
    return TeamMemberResponse.model_validate(member)
