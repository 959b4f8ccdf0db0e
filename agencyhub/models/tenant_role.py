# agencyhub/models/tenant_role.py
"""
Tenant-scoped role and role -> permission grant models.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agencyhub.models.base import Base
from agencyhub.models.permission_catalog import PermissionCatalog


class TenantRole(Base):
    """
    A named bundle of permissions inside one tenant (e.g. "Owner", "Chatter",
    or a custom "Senior Chatter").

    hierarchy_level drives coarse checks: >= 60 manager, >= 80 admin,
    >= 100 owner.
    """

    __tablename__ = "tenant_roles"
    __table_args__ = (UniqueConstraint("tenant_id", "slug", name="uq_tenant_roles_tenant_slug"),)

    # Primary Key
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )

    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Role Information
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    slug: Mapped[str] = mapped_column(String(60), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    color: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="gray",
        server_default=text("'gray'"),
        doc="Presentation only.",
    )
    hierarchy_level: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=50,
        server_default=text("50"),
    )

    # Flags
    is_system_default: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
        doc="Seeded with the tenant. Cannot be deleted and its slug cannot change.",
    )
    is_immutable: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
        doc="Name and permissions can only be changed by an owner. Cannot be deleted.",
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=datetime.utcnow,
    )

    # Relationships
    permissions: Mapped[list["TenantRolePermission"]] = relationship(
        "TenantRolePermission",
        back_populates="role",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def permission_codes(self) -> list[str]:
        return sorted(rp.permission.code for rp in self.permissions if rp.permission is not None)


class TenantRolePermission(Base):
    """
    Grants one catalog permission to one tenant role.
    """

    __tablename__ = "tenant_role_permissions"
    __table_args__ = (UniqueConstraint("role_id", "permission_id", name="uq_role_permission"),)

    # Primary Key
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )

    # Foreign Keys
    role_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tenant_roles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    permission_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("permissions_catalog.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # Relationships
    role: Mapped["TenantRole"] = relationship("TenantRole", back_populates="permissions")
    permission: Mapped["PermissionCatalog"] = relationship("PermissionCatalog", lazy="joined")
