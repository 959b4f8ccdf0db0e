# agencyhub/models/sale.py
import uuid
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum as PyEnum

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agencyhub.models.base import Base, value_enum
from agencyhub.models.client import Client
from agencyhub.models.team_member import TeamMember


class SaleStatus(str, PyEnum):
    PENDING = "pending"
    VALID = "valid"
    INVALID = "invalid"


SALE_STATUS_ENUM = value_enum(SaleStatus, "sale_status_enum")


class Sale(Base):
    """
    A revenue event submitted by a chatter, awaiting validation by a manager.

    Only gross_amount is stored; net revenue is always derived
    (see services/sale_service.net_revenue).
    """

    __tablename__ = "chatter_sales"

    # Primary Key
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # Foreign Keys
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    chatter_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("team_members.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Sale Details
    sale_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    sale_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    gross_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    screenshot_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[SaleStatus] = mapped_column(
        SALE_STATUS_ENUM,
        nullable=False,
        default=SaleStatus.PENDING,
        server_default=text("'pending'"),
        index=True,
    )

    # Review
    approved_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("team_members.id", ondelete="SET NULL"),
        nullable=True,
    )
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Optimistic concurrency
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default=text("1"))

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

    __mapper_args__ = {"version_id_col": version}

    client: Mapped["Client"] = relationship("Client")
    chatter: Mapped["TeamMember"] = relationship("TeamMember", foreign_keys=[chatter_id])
    approver: Mapped["TeamMember"] = relationship("TeamMember", foreign_keys=[approved_by])
