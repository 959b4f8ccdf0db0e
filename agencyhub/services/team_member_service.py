# agencyhub/services/team_member_service.py
from __future__ import annotations

import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agencyhub.core.permissions import LegacyRole, parse_legacy_role
from agencyhub.models.team_member import TeamMember
from agencyhub.models.tenant_role import TenantRole
from agencyhub.services.permission_service import EffectiveAccess
from agencyhub.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


class TeamMemberNotFoundError(Exception):
    pass


class TeamMemberStateError(Exception):
    pass


class RoleAssignmentError(Exception):
    pass


def list_team_members(
    db: Session,
    tenant_id: uuid.UUID,
    *,
    include_inactive: bool = False,
    pending_only: bool = False,
) -> list[TeamMember]:
    query = db.query(TeamMember).filter(TeamMember.tenant_id == tenant_id)
    if not include_inactive:
        query = query.filter(TeamMember.is_active.is_(True))
    if pending_only:
        query = query.filter(TeamMember.role == LegacyRole.PENDING.value)
    return query.order_by(TeamMember.full_name).all()


def get_team_member(db: Session, tenant_id: uuid.UUID, member_id: uuid.UUID) -> TeamMember:
    member = db.query(TeamMember).filter(TeamMember.id == member_id, TeamMember.tenant_id == tenant_id).first()
    if not member:
        raise TeamMemberNotFoundError("Team member not found")
    return member


def _load_tenant_role(db: Session, member: TeamMember, role_id: uuid.UUID) -> TenantRole:
    role = db.query(TenantRole).filter(TenantRole.id == role_id, TenantRole.tenant_id == member.tenant_id).first()
    if not role:
        raise RoleAssignmentError("Role not found in this agency.")
    return role


def _apply_role(member: TeamMember, role: TenantRole) -> None:
    member.role_id = role.id
    # Keep the legacy column in step for roles that have a legacy equivalent.
    legacy = parse_legacy_role(role.slug)
    if legacy is not None:
        member.role = legacy.value


def _commit(db: Session, member: TeamMember) -> TeamMember:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(member)
    return member


def assign_role(db: Session, access: EffectiveAccess, member: TeamMember, role_id: uuid.UUID) -> TeamMember:
    """
    Point a member at a tenant role. Only owners may hand out an owner-level role.
    """
    role = _load_tenant_role(db, member, role_id)
    if role.is_immutable and not access.is_owner:
        raise RoleAssignmentError("Only an owner can assign this role.")
    if member.id == access.member_id and not access.is_platform_admin:
        raise RoleAssignmentError("You cannot change your own role.")

    _apply_role(member, role)
    member = _commit(db, member)
    logger.info("Member %s assigned role %s by %s", member.id, role.slug, access.member_id)
    return member


def approve_member(
    db: Session,
    access: EffectiveAccess,
    member: TeamMember,
    *,
    legacy_role: LegacyRole | None = None,
    role_id: uuid.UUID | None = None,
) -> TeamMember:
    """
    Move a pending sign-up into the team, either onto a legacy role or a tenant role.
    """
    if member.role != LegacyRole.PENDING.value:
        raise TeamMemberStateError("Team member is not awaiting approval.")
    if (legacy_role is None) == (role_id is None):
        raise TeamMemberStateError("Choose exactly one of a role or a legacy role.")

    if role_id is not None:
        role = _load_tenant_role(db, member, role_id)
        if role.is_immutable and not access.is_owner:
            raise RoleAssignmentError("Only an owner can assign this role.")
        _apply_role(member, role)
    else:
        if legacy_role == LegacyRole.PENDING:
            raise TeamMemberStateError("Approved members need a role other than pending.")
        if legacy_role == LegacyRole.OWNER and not access.is_owner:
            raise RoleAssignmentError("Only an owner can assign this role.")
        member.role = legacy_role.value
        member.role_id = None

    member.approved_by = access.member_id
    member.approved_at = utc_now()

    member = _commit(db, member)
    logger.info("Member %s approved by %s as %s", member.id, access.member_id, member.role)
    return member


def deactivate_member(db: Session, access: EffectiveAccess, member: TeamMember) -> TeamMember:
    """
    Soft delete: the row stays, the member loses all access.
    """
    if member.id == access.member_id:
        raise TeamMemberStateError("You cannot deactivate yourself.")
    if not member.is_active:
        return member

    member.is_active = False
    member = _commit(db, member)
    logger.info("Member %s deactivated by %s", member.id, access.member_id)
    return member
