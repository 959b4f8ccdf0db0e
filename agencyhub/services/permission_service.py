# agencyhub/services/permission_service.py
"""
Resolve a team member's effective permissions.

Resolution order:
1. No active membership    -> nothing (deactivated platform admins too).
2. Platform admin          -> the whole active catalog.
3. Assigned tenant role    -> that role's granted codes.
4. Legacy role column      -> static mapping in core/permissions.py.

A role that cannot be loaded (deleted, wrong tenant, query error) falls
back to step 4 instead of denying access.

The lookup step (`load_resolution`) talks to the database; turning its
result into an `EffectiveAccess` (`build_effective_access`) is pure.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Iterable, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agencyhub.core.permissions import (
    ADMIN_LEVEL,
    ALL_PERMISSION_CODES,
    LEGACY_ADMIN_OR_ABOVE,
    LEGACY_MANAGER_OR_ABOVE,
    LEGACY_OWNER,
    MANAGER_LEVEL,
    OWNER_LEVEL,
    LegacyRole,
    legacy_permissions_for,
    parse_legacy_role,
)
from agencyhub.models.permission_catalog import PermissionCatalog
from agencyhub.models.team_member import TeamMember
from agencyhub.models.tenant_role import TenantRole, TenantRolePermission

logger = logging.getLogger(__name__)


# -------------------------
# Value objects
# -------------------------
@dataclass(frozen=True)
class RoleInfo:
    id: uuid.UUID
    name: str
    slug: str
    color: str
    hierarchy_level: int
    is_system_default: bool
    is_immutable: bool

    @classmethod
    def from_model(cls, role: TenantRole) -> "RoleInfo":
        return cls(
            id=role.id,
            name=role.name,
            slug=role.slug,
            color=role.color,
            hierarchy_level=role.hierarchy_level,
            is_system_default=role.is_system_default,
            is_immutable=role.is_immutable,
        )


@dataclass(frozen=True)
class EffectiveAccess:
    """
    Immutable result of resolving a member's access.
    Recomputed on every request; never mutated in place.
    """

    member_id: uuid.UUID | None
    tenant_id: uuid.UUID | None
    permissions: frozenset[str] = field(default_factory=frozenset)
    role: RoleInfo | None = None
    source: str = "none"  # platform_admin | role | legacy | none
    legacy_role: str | None = None
    is_platform_admin: bool = False
    is_manager_or_above: bool = False
    is_admin_or_above: bool = False
    is_owner: bool = False

    def has_permission(self, code: str) -> bool:
        if self.is_platform_admin:
            return True
        return code in self.permissions

    def has_any_permission(self, codes: Iterable[str]) -> bool:
        if self.is_platform_admin:
            return True
        return any(code in self.permissions for code in codes)

    def has_all_permissions(self, codes: Iterable[str]) -> bool:
        if self.is_platform_admin:
            return True
        return all(code in self.permissions for code in codes)

    def permissions_in_category(self, category: str) -> list[str]:
        prefix = f"{category}."
        return sorted(code for code in self.permissions if code.startswith(prefix))


# -------------------------
# Resolution outcomes
# -------------------------
@dataclass(frozen=True)
class ResolvedPlatformAdmin:
    catalog: frozenset[str]


@dataclass(frozen=True)
class ResolvedByRole:
    role: RoleInfo
    permissions: frozenset[str]


@dataclass(frozen=True)
class ResolvedLegacy:
    legacy_role: str | None


@dataclass(frozen=True)
class ResolvedNone:
    pass


Resolution = Union[ResolvedPlatformAdmin, ResolvedByRole, ResolvedLegacy, ResolvedNone]


# -------------------------
# Lookups
# -------------------------
def get_active_catalog_codes(db: Session) -> frozenset[str]:
    """
    All active permission codes from permissions_catalog.
    Falls back to the static registry if the table is empty or unreadable.
    """
    try:
        rows = db.query(PermissionCatalog.code).filter(PermissionCatalog.is_active.is_(True)).all()
    except SQLAlchemyError:
        logger.exception("Could not read permissions_catalog; using static catalog")
        db.rollback()
        return ALL_PERMISSION_CODES

    codes = frozenset(r[0] for r in rows)
    if not codes:
        logger.warning("permissions_catalog is empty; using static catalog")
        return ALL_PERMISSION_CODES
    return codes


def _load_role_grant(db: Session, member: TeamMember) -> ResolvedByRole | None:
    """
    Load the member's assigned role and its granted codes.
    Returns None when the role cannot be used, so the caller falls back.
    """
    try:
        role = (
            db.query(TenantRole)
            .filter(
                TenantRole.id == member.role_id,
                TenantRole.tenant_id == member.tenant_id,
            )
            .first()
        )
        if role is None:
            logger.warning(
                "Role %s for member %s not found in tenant %s; falling back to legacy role",
                member.role_id,
                member.id,
                member.tenant_id,
            )
            return None

        rows = (
            db.query(PermissionCatalog.code)
            .join(TenantRolePermission, TenantRolePermission.permission_id == PermissionCatalog.id)
            .filter(TenantRolePermission.role_id == role.id)
            .all()
        )
    except SQLAlchemyError:
        logger.exception("Role lookup failed for member %s; falling back to legacy role", member.id)
        db.rollback()
        return None

    return ResolvedByRole(
        role=RoleInfo.from_model(role),
        permissions=frozenset(r[0] for r in rows),
    )


def load_resolution(db: Session, member: TeamMember | None) -> Resolution:
    """
    Decide which source the member's permissions come from.
    """
    # Deactivated members get nothing, platform admins included.
    if member is None or not member.is_active:
        return ResolvedNone()

    if member.is_platform_admin:
        return ResolvedPlatformAdmin(catalog=get_active_catalog_codes(db))

    if member.role_id is not None:
        by_role = _load_role_grant(db, member)
        if by_role is not None:
            return by_role

    return ResolvedLegacy(legacy_role=member.role)


# -------------------------
# Pure construction
# -------------------------
def _legacy_flags(legacy_role: LegacyRole | None) -> tuple[bool, bool, bool]:
    return (
        legacy_role in LEGACY_MANAGER_OR_ABOVE,
        legacy_role in LEGACY_ADMIN_OR_ABOVE,
        legacy_role in LEGACY_OWNER,
    )


def _level_flags(level: int) -> tuple[bool, bool, bool]:
    return level >= MANAGER_LEVEL, level >= ADMIN_LEVEL, level >= OWNER_LEVEL


def build_effective_access(resolution: Resolution, member: TeamMember | None) -> EffectiveAccess:
    """
    Turn a resolution outcome into an EffectiveAccess. No I/O.
    """
    member_id = member.id if member is not None else None
    tenant_id = member.tenant_id if member is not None else None
    legacy_role = member.role if member is not None else None

    if isinstance(resolution, ResolvedPlatformAdmin):
        return EffectiveAccess(
            member_id=member_id,
            tenant_id=tenant_id,
            permissions=resolution.catalog,
            source="platform_admin",
            legacy_role=legacy_role,
            is_platform_admin=True,
            is_manager_or_above=True,
            is_admin_or_above=True,
            is_owner=True,
        )

    if isinstance(resolution, ResolvedByRole):
        manager, admin, owner = _level_flags(resolution.role.hierarchy_level)
        return EffectiveAccess(
            member_id=member_id,
            tenant_id=tenant_id,
            permissions=resolution.permissions,
            role=resolution.role,
            source="role",
            legacy_role=legacy_role,
            is_manager_or_above=manager,
            is_admin_or_above=admin,
            is_owner=owner,
        )

    if isinstance(resolution, ResolvedLegacy):
        manager, admin, owner = _legacy_flags(parse_legacy_role(resolution.legacy_role))
        return EffectiveAccess(
            member_id=member_id,
            tenant_id=tenant_id,
            permissions=legacy_permissions_for(resolution.legacy_role),
            source="legacy",
            legacy_role=legacy_role,
            is_manager_or_above=manager,
            is_admin_or_above=admin,
            is_owner=owner,
        )

    if isinstance(resolution, ResolvedNone):
        return EffectiveAccess(member_id=member_id, tenant_id=tenant_id, legacy_role=legacy_role)

    raise TypeError(f"Unknown resolution type: {type(resolution).__name__}")


# -------------------------
# Entry points
# -------------------------
def resolve_access(db: Session, member: TeamMember | None) -> EffectiveAccess:
    return build_effective_access(load_resolution(db, member), member)


def get_active_member(db: Session, member_id: uuid.UUID) -> TeamMember | None:
    """
    The member's row, or None if it does not exist or has been deactivated.
    """
    return (
        db.query(TeamMember)
        .filter(TeamMember.id == member_id, TeamMember.is_active.is_(True))
        .first()
    )


def refresh_access(db: Session, member_id: uuid.UUID) -> EffectiveAccess:
    """
    Re-read the member row and resolve again (e.g. after a role change).
    """
    db.expire_all()
    member = get_active_member(db, member_id)
    access = resolve_access(db, member)
    logger.info(
        "Refreshed access member=%s source=%s permissions=%d",
        member_id,
        access.source,
        len(access.permissions),
    )
    return access
