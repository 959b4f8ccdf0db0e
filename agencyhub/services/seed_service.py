# agencyhub/services/seed_service.py
from sqlalchemy.orm import Session

from agencyhub.core.permissions import (
    LEGACY_ROLE_PERMISSIONS,
    PERMISSION_CATALOG,
    SYSTEM_ROLE_DEFAULTS,
    LegacyRole,
)
from agencyhub.models.permission_catalog import PermissionCatalog
from agencyhub.models.tenant import Tenant
from agencyhub.models.tenant_role import TenantRole, TenantRolePermission


def seed_permission_catalog(db: Session) -> dict[str, PermissionCatalog]:
    """
    Upsert every code from PERMISSION_CATALOG into permissions_catalog.
    Returns a dict mapping permission code -> PermissionCatalog row.
    Safe to run repeatedly; codes are never renamed, only added.
    """
    existing = {p.code: p for p in db.query(PermissionCatalog).all()}
    for code, (name, category, perm_type) in PERMISSION_CATALOG.items():
        perm = existing.get(code)
        if perm is None:
            perm = PermissionCatalog(code=code, name=name, category=category.value, type=perm_type)
            db.add(perm)
            existing[code] = perm
        else:
            perm.name = name
            perm.category = category.value
            perm.type = perm_type
    db.flush()
    return existing


def seed_tenant_roles(db: Session, tenant: Tenant) -> dict[LegacyRole, TenantRole]:
    """
    Create the system roles for a tenant and grant them the legacy permission sets.

    Existing system roles keep whatever grants they have: tenants may have
    tuned them. Only roles created here get the default grants.
    """
    catalog = {p.code: p for p in db.query(PermissionCatalog).all()}
    if not catalog:
        catalog = seed_permission_catalog(db)

    roles_map: dict[LegacyRole, TenantRole] = {}
    for legacy_role, (name, color, level, immutable) in SYSTEM_ROLE_DEFAULTS.items():
        role = (
            db.query(TenantRole)
            .filter(TenantRole.tenant_id == tenant.id, TenantRole.slug == legacy_role.value)
            .first()
        )
        if role is None:
            role = TenantRole(
                tenant_id=tenant.id,
                name=name,
                slug=legacy_role.value,
                description=f"System default role: {name}",
                color=color,
                hierarchy_level=level,
                is_system_default=True,
                is_immutable=immutable,
            )
            db.add(role)
            db.flush()
            for code in sorted(LEGACY_ROLE_PERMISSIONS[legacy_role]):
                perm = catalog.get(code)
                if perm is not None:
                    db.add(TenantRolePermission(role_id=role.id, permission_id=perm.id))
            db.flush()
        roles_map[legacy_role] = role

    return roles_map
