# agencyhub/services/tenant_service.py
from __future__ import annotations

import logging
import uuid

from sqlalchemy.orm import Session

from agencyhub.core.permissions import LegacyRole
from agencyhub.models.team_member import TeamMember
from agencyhub.models.tenant import Tenant, TenantStatus
from agencyhub.services.role_service import slugify
from agencyhub.services.seed_service import seed_tenant_roles
from agencyhub.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


class TenantAlreadyExistsError(Exception):
    pass


def create_tenant(
    db: Session,
    *,
    name: str,
    owner_email: str,
    owner_name: str,
    owner_id: uuid.UUID | None = None,
    slug: str | None = None,
) -> tuple[Tenant, TeamMember]:
    """
    Create an agency with its system roles and an approved owner.

    `owner_id` should be the hosted auth user id so the owner's tokens
    resolve to this member. Does not commit: the caller owns the transaction.
    """
    slug = slugify(slug or name)
    if db.query(Tenant.id).filter(Tenant.slug == slug).first() is not None:
        raise TenantAlreadyExistsError(f"Tenant with slug '{slug}' already exists")

    tenant = Tenant(name=name, slug=slug, status=TenantStatus.ACTIVE)
    db.add(tenant)
    db.flush()

    roles = seed_tenant_roles(db, tenant)
    owner_role = roles[LegacyRole.OWNER]

    owner = TeamMember(
        id=owner_id or uuid.uuid4(),
        tenant_id=tenant.id,
        email=owner_email,
        full_name=owner_name,
        role=LegacyRole.OWNER.value,
        role_id=owner_role.id,
        is_active=True,
        approved_at=utc_now(),
    )
    db.add(owner)
    db.flush()

    logger.info("Tenant %s (%s) created with owner %s", tenant.slug, tenant.id, owner.email)
    return tenant, owner


def ensure_platform_admin(
    db: Session,
    *,
    email: str,
    full_name: str = "Platform Admin",
    member_id: uuid.UUID | None = None,
) -> TeamMember:
    """
    Ensure a platform admin exists (tenant_id is NULL). Idempotent.
    """
    existing = db.query(TeamMember).filter(TeamMember.tenant_id.is_(None), TeamMember.email == email).first()
    if existing:
        existing.is_platform_admin = True
        existing.is_active = True
        db.flush()
        return existing

    member = TeamMember(
        id=member_id or uuid.uuid4(),
        tenant_id=None,
        email=email,
        full_name=full_name,
        role=LegacyRole.OWNER.value,
        is_platform_admin=True,
        is_active=True,
        approved_at=utc_now(),
    )
    db.add(member)
    db.flush()
    logger.info("Platform admin created: %s", email)
    return member
