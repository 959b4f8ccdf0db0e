# agencyhub/models/permission_catalog.py
"""
Canonical permission codes available on the platform.
Shared by all tenants; tenant roles grant rows from this table.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from agencyhub.core.permissions import PermissionType
from agencyhub.models.base import Base, value_enum


class PermissionCatalog(Base):
    __tablename__ = "permissions_catalog"

    # Primary Key
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )

    # Permission Information
    code: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    category: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    type: Mapped[PermissionType] = mapped_column(
        value_enum(PermissionType, "permission_type_enum"),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
        doc="Inactive codes are hidden from the catalog and not granted to platform admins.",
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )
