# agencyhub/services/role_service.py
from __future__ import annotations

import logging
import re
import uuid
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agencyhub.core.permissions import CATEGORY_ORDER
from agencyhub.models.permission_catalog import PermissionCatalog
from agencyhub.models.team_member import TeamMember
from agencyhub.models.tenant_role import TenantRole, TenantRolePermission
from agencyhub.services.permission_service import EffectiveAccess

logger = logging.getLogger(__name__)

DEFAULT_HIERARCHY_LEVEL = 50
CLONE_LEVEL_STEP = 5
CLONE_MIN_LEVEL = 10


class RoleNotFoundError(Exception):
    pass


class RoleProtectedError(Exception):
    pass


class RoleInUseError(Exception):
    pass


class RoleSlugConflictError(Exception):
    pass


class InvalidPermissionCodesError(Exception):
    pass


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.strip().lower()).strip("-")
    return slug or "role"


def _slug_taken(db: Session, tenant_id: uuid.UUID, slug: str, exclude_id: uuid.UUID | None = None) -> bool:
    query = db.query(TenantRole.id).filter(TenantRole.tenant_id == tenant_id, TenantRole.slug == slug)
    if exclude_id is not None:
        query = query.filter(TenantRole.id != exclude_id)
    return query.first() is not None


def _unique_slug(db: Session, tenant_id: uuid.UUID, base: str) -> str:
    candidate = base
    n = 2
    while _slug_taken(db, tenant_id, candidate):
        candidate = f"{base}-{n}"
        n += 1
    return candidate


def _catalog_by_code(db: Session, codes: Iterable[str]) -> dict[str, PermissionCatalog]:
    """
    Look up active catalog rows for `codes`; unknown or inactive codes raise.
    """
    wanted = sorted({c for c in codes if c})
    if not wanted:
        return {}
    rows = (
        db.query(PermissionCatalog)
        .filter(PermissionCatalog.code.in_(wanted), PermissionCatalog.is_active.is_(True))
        .all()
    )
    found = {r.code: r for r in rows}
    invalid = [c for c in wanted if c not in found]
    if invalid:
        raise InvalidPermissionCodesError(f"Invalid permission codes: {', '.join(invalid)}")
    return found


def _replace_grants(db: Session, role: TenantRole, catalog_rows: Iterable[PermissionCatalog]) -> None:
    role.permissions.clear()
    db.flush()
    for perm in catalog_rows:
        role.permissions.append(TenantRolePermission(permission_id=perm.id, permission=perm))


def _commit(db: Session, role: TenantRole) -> TenantRole:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(role)
    return role


def list_roles(db: Session, tenant_id: uuid.UUID) -> list[TenantRole]:
    return (
        db.query(TenantRole)
        .filter(TenantRole.tenant_id == tenant_id)
        .order_by(TenantRole.hierarchy_level.desc(), TenantRole.name)
        .all()
    )


def get_role(db: Session, tenant_id: uuid.UUID, role_id: uuid.UUID) -> TenantRole:
    role = db.query(TenantRole).filter(TenantRole.id == role_id, TenantRole.tenant_id == tenant_id).first()
    if not role:
        raise RoleNotFoundError("Role not found")
    return role


def create_role(
    db: Session,
    tenant_id: uuid.UUID,
    *,
    name: str,
    description: str | None = None,
    color: str = "gray",
    hierarchy_level: int = DEFAULT_HIERARCHY_LEVEL,
    slug: str | None = None,
    permission_codes: Iterable[str] = (),
) -> TenantRole:
    """
    Custom roles are never system defaults and never immutable.
    """
    slug = slugify(slug or name)
    if _slug_taken(db, tenant_id, slug):
        raise RoleSlugConflictError("A role with this slug already exists.")

    catalog = _catalog_by_code(db, permission_codes)

    role = TenantRole(
        tenant_id=tenant_id,
        name=name,
        slug=slug,
        description=description,
        color=color,
        hierarchy_level=hierarchy_level,
        is_system_default=False,
        is_immutable=False,
    )
    db.add(role)
    db.flush()
    _replace_grants(db, role, catalog.values())

    role = _commit(db, role)
    logger.info("Role %s (%s) created in tenant %s", role.slug, role.id, tenant_id)
    return role


def update_role(
    db: Session,
    access: EffectiveAccess,
    role: TenantRole,
    *,
    name: str | None = None,
    slug: str | None = None,
    description: str | None = None,
    color: str | None = None,
    hierarchy_level: int | None = None,
    permission_codes: Iterable[str] | None = None,
) -> TenantRole:
    """
    Immutable roles can only be changed by an owner.
    System-default roles keep their slug.
    """
    if role.is_immutable and not access.is_owner:
        raise RoleProtectedError("Only an owner can modify this role.")

    if slug is not None:
        new_slug = slugify(slug)
        if new_slug != role.slug:
            if role.is_system_default:
                raise RoleProtectedError("The slug of a system role cannot be changed.")
            if _slug_taken(db, role.tenant_id, new_slug, exclude_id=role.id):
                raise RoleSlugConflictError("A role with this slug already exists.")
            role.slug = new_slug

    if name is not None:
        role.name = name
    if description is not None:
        role.description = description
    if color is not None:
        role.color = color
    if hierarchy_level is not None:
        role.hierarchy_level = hierarchy_level
    if permission_codes is not None:
        _replace_grants(db, role, _catalog_by_code(db, permission_codes).values())

    return _commit(db, role)


def set_role_permissions(
    db: Session,
    access: EffectiveAccess,
    role: TenantRole,
    permission_codes: Iterable[str],
) -> TenantRole:
    if role.is_immutable and not access.is_owner:
        raise RoleProtectedError("Only an owner can modify this role.")
    catalog = _catalog_by_code(db, permission_codes)
    _replace_grants(db, role, catalog.values())
    role = _commit(db, role)
    logger.info("Role %s now grants %d permissions", role.id, len(catalog))
    return role


def clone_role(db: Session, role: TenantRole, *, name: str | None = None) -> TenantRole:
    """
    Copy a role's current permissions into a new custom role.
    The copy is not linked to the source afterwards.
    """
    new_name = name or f"{role.name} (Copy)"
    slug = _unique_slug(db, role.tenant_id, f"{role.slug}-copy")

    clone = TenantRole(
        tenant_id=role.tenant_id,
        name=new_name,
        slug=slug,
        description=role.description,
        color=role.color,
        hierarchy_level=max(role.hierarchy_level - CLONE_LEVEL_STEP, CLONE_MIN_LEVEL),
        is_system_default=False,
        is_immutable=False,
    )
    db.add(clone)
    db.flush()
    for grant in role.permissions:
        clone.permissions.append(TenantRolePermission(permission_id=grant.permission_id))

    clone = _commit(db, clone)
    logger.info("Role %s cloned from %s", clone.id, role.id)
    return clone


def delete_role(db: Session, role: TenantRole) -> None:
    if role.is_system_default:
        raise RoleProtectedError("System roles cannot be deleted.")
    if role.is_immutable:
        raise RoleProtectedError("This role cannot be deleted.")

    in_use = db.query(TeamMember.id).filter(TeamMember.role_id == role.id).count()
    if in_use:
        raise RoleInUseError(f"Role is assigned to {in_use} team member(s). Reassign them first.")

    try:
        db.delete(role)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    logger.info("Role %s deleted", role.id)


def list_permission_catalog(db: Session) -> list[PermissionCatalog]:
    """
    Active catalog entries, grouped by category in display order, then by code.
    """
    rows = db.query(PermissionCatalog).filter(PermissionCatalog.is_active.is_(True)).all()
    order = {c.value: i for i, c in enumerate(CATEGORY_ORDER)}
    return sorted(rows, key=lambda r: (order.get(r.category, len(order)), r.category, r.code))
