# agencyhub/models/team_member.py
import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    String,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agencyhub.models.base import Base
from agencyhub.models.tenant import Tenant


class TeamMember(Base):
    """
    An authenticated team member (the acting user of every request).

    - Platform admins: tenant_id may be NULL and is_platform_admin is true.
    - Everyone else belongs to exactly one tenant.

    `role` is the legacy role string (owner/admin/manager/chatter/pending).
    It is kept as plain text so unrecognized historical values survive and
    simply resolve to no permissions. `role_id` points at the fine-grained
    tenant role, when one has been assigned.
    """

    __tablename__ = "team_members"
    __table_args__ = (UniqueConstraint("email", "tenant_id", name="uq_team_members_email_tenant"),)

    # Primary Key (same id as the hosted auth user)
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # Foreign Keys
    tenant_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    role_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tenant_roles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        doc="Assigned tenant role. NULL means permissions come from the legacy role column.",
    )

    email: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        server_default=text("'pending'"),
    )
    shift: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Flags
    is_platform_admin: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
        doc="Platform-wide administrator: every permission, no tenant scoping.",
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
        doc="If false, member has no access. Use this instead of hard delete.",
    )

    # Approval
    approved_by: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

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
    tenant: Mapped["Tenant"] = relationship("Tenant", backref="team_members")
    assigned_role: Mapped["TenantRole"] = relationship("TenantRole", foreign_keys=[role_id])
