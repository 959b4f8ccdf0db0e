# agencyhub/models/content_upload.py
import uuid
from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agencyhub.models.base import Base


class ContentUpload(Base):
    """
    A file attached to a custom request (reference images from the team,
    or delivered content).
    """

    __tablename__ = "content_uploads"

    # Primary Key
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # Foreign Keys
    custom_request_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("custom_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    uploaded_by_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("team_members.id", ondelete="SET NULL"),
        nullable=True,
    )

    # File Information
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        doc="Storage key: {custom_request_id}/{prefix}-{timestamp_ms}-{index}.{ext}",
    )
    file_size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    file_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    uploaded_by: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="team",
        server_default=text("'team'"),
        doc="Which side uploaded the file: 'team' or 'client'.",
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    custom_request: Mapped["CustomRequest"] = relationship("CustomRequest", back_populates="uploads")
