# agencyhub/models/custom_request.py
import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum as PyEnum

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agencyhub.models.base import Base, value_enum
from agencyhub.models.client import Client
from agencyhub.models.team_member import TeamMember


class CustomRequestStatus(str, PyEnum):
    PENDING = "pending"
    PENDING_TEAM_APPROVAL = "pending_team_approval"
    PENDING_CLIENT_APPROVAL = "pending_client_approval"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class CustomRequestPriority(str, PyEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


CUSTOM_REQUEST_STATUS_ENUM = value_enum(CustomRequestStatus, "custom_request_status_enum")
CUSTOM_REQUEST_PRIORITY_ENUM = value_enum(CustomRequestPriority, "custom_request_priority_enum")


class CustomRequest(Base):
    """
    A fan's order for custom content from a client.

    `version` is bumped by SQLAlchemy on every UPDATE and is part of the
    UPDATE's WHERE clause, so two writers racing on the same row cannot
    both succeed.
    """

    __tablename__ = "custom_requests"

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
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("team_members.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Requester
    fan_name: Mapped[str] = mapped_column(String(200), nullable=False)
    fan_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    fan_lifetime_spend: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    # Order details
    description: Mapped[str] = mapped_column(Text, nullable=False)
    length_duration: Mapped[str | None] = mapped_column(String(100), nullable=True)
    proposed_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
        server_default=text("0"),
    )
    amount_paid: Mapped[Decimal | None] = mapped_column(
        Numeric(12, 2),
        nullable=True,
        doc="May exceed proposed_amount (overpayment is tolerated).",
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    chat_link: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_voice_video_call: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )
    call_scheduled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Workflow
    status: Mapped[CustomRequestStatus] = mapped_column(
        CUSTOM_REQUEST_STATUS_ENUM,
        nullable=False,
        default=CustomRequestStatus.PENDING,
        server_default=text("'pending'"),
        index=True,
    )
    priority: Mapped[CustomRequestPriority] = mapped_column(
        CUSTOM_REQUEST_PRIORITY_ENUM,
        nullable=False,
        default=CustomRequestPriority.MEDIUM,
        server_default=text("'medium'"),
    )

    # Dates
    date_submitted: Mapped[date] = mapped_column(Date, nullable=False)
    date_due: Mapped[date | None] = mapped_column(Date, nullable=True)
    estimated_delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    date_completed: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Team approval
    team_approved_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("team_members.id", ondelete="SET NULL"),
        nullable=True,
    )
    team_approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Client approval
    client_approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Delivery
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Cancellation (denied requests are kept, not deleted)
    cancelled_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("team_members.id", ondelete="SET NULL"),
        nullable=True,
    )
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)

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
    creator: Mapped["TeamMember"] = relationship("TeamMember", foreign_keys=[created_by])
    team_approver: Mapped["TeamMember"] = relationship("TeamMember", foreign_keys=[team_approved_by])
    uploads: Mapped[list["ContentUpload"]] = relationship(
        "ContentUpload",
        back_populates="custom_request",
        cascade="all, delete-orphan",
        order_by="ContentUpload.created_at",
    )
