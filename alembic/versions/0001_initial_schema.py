"""initial_schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TENANT_STATUS = ("active", "suspended", "inactive")
PERMISSION_TYPE = ("page_access", "action")
CUSTOM_REQUEST_STATUS = (
    "pending",
    "pending_team_approval",
    "pending_client_approval",
    "in_progress",
    "completed",
    "delivered",
    "cancelled",
)
CUSTOM_REQUEST_PRIORITY = ("low", "medium", "high", "urgent")
SALE_STATUS = ("pending", "valid", "invalid")


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def _updated_at() -> sa.Column:
    return sa.Column(
        "updated_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=100), nullable=False),
        sa.Column(
            "status",
            sa.Enum(*TENANT_STATUS, name="tenant_status_enum"),
            nullable=False,
            server_default=sa.text("'active'"),
        ),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_tenants_slug"), "tenants", ["slug"], unique=True)

    op.create_table(
        "permissions_catalog",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("code", sa.String(length=100), nullable=False),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("category", sa.String(length=50), nullable=False),
        sa.Column("type", sa.Enum(*PERMISSION_TYPE, name="permission_type_enum"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_permissions_catalog_code"), "permissions_catalog", ["code"], unique=True)
    op.create_index(op.f("ix_permissions_catalog_category"), "permissions_catalog", ["category"])

    op.create_table(
        "tenant_roles",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("slug", sa.String(length=60), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("color", sa.String(length=20), nullable=False, server_default=sa.text("'gray'")),
        sa.Column("hierarchy_level", sa.Integer(), nullable=False, server_default=sa.text("50")),
        sa.Column("is_system_default", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_immutable", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "slug", name="uq_tenant_roles_tenant_slug"),
    )
    op.create_index(op.f("ix_tenant_roles_tenant_id"), "tenant_roles", ["tenant_id"])
    op.create_index(op.f("ix_tenant_roles_slug"), "tenant_roles", ["slug"])

    op.create_table(
        "tenant_role_permissions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("role_id", sa.Uuid(), nullable=False),
        sa.Column("permission_id", sa.Uuid(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["role_id"], ["tenant_roles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["permission_id"], ["permissions_catalog.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("role_id", "permission_id", name="uq_role_permission"),
    )
    op.create_index(op.f("ix_tenant_role_permissions_role_id"), "tenant_role_permissions", ["role_id"])
    op.create_index(
        op.f("ix_tenant_role_permissions_permission_id"), "tenant_role_permissions", ["permission_id"]
    )

    op.create_table(
        "team_members",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), nullable=True),
        sa.Column("role_id", sa.Uuid(), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("shift", sa.String(length=50), nullable=True),
        sa.Column("is_platform_admin", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("approved_by", sa.Uuid(), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["role_id"], ["tenant_roles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", "tenant_id", name="uq_team_members_email_tenant"),
    )
    op.create_index(op.f("ix_team_members_tenant_id"), "team_members", ["tenant_id"])
    op.create_index(op.f("ix_team_members_role_id"), "team_members", ["role_id"])

    op.create_table(
        "clients",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), nullable=False),
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column("display_name", sa.String(length=200), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _created_at(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "username", name="uq_clients_tenant_username"),
    )
    op.create_index(op.f("ix_clients_tenant_id"), "clients", ["tenant_id"])
    op.create_index(op.f("ix_clients_username"), "clients", ["username"])

    op.create_table(
        "custom_requests",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), nullable=False),
        sa.Column("client_id", sa.Uuid(), nullable=False),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        sa.Column("fan_name", sa.String(length=200), nullable=False),
        sa.Column("fan_email", sa.String(length=255), nullable=True),
        sa.Column("fan_lifetime_spend", sa.Numeric(12, 2), nullable=True),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("length_duration", sa.String(length=100), nullable=True),
        sa.Column("proposed_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("amount_paid", sa.Numeric(12, 2), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("chat_link", sa.String(length=500), nullable=True),
        sa.Column("is_voice_video_call", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("call_scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "status",
            sa.Enum(*CUSTOM_REQUEST_STATUS, name="custom_request_status_enum"),
            nullable=False,
            server_default=sa.text("'pending'"),
        ),
        sa.Column(
            "priority",
            sa.Enum(*CUSTOM_REQUEST_PRIORITY, name="custom_request_priority_enum"),
            nullable=False,
            server_default=sa.text("'medium'"),
        ),
        sa.Column("date_submitted", sa.Date(), nullable=False),
        sa.Column("date_due", sa.Date(), nullable=True),
        sa.Column("estimated_delivery_date", sa.Date(), nullable=True),
        sa.Column("date_completed", sa.Date(), nullable=True),
        sa.Column("team_approved_by", sa.Uuid(), nullable=True),
        sa.Column("team_approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("client_approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by", sa.Uuid(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.String(length=500), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["team_members.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["team_approved_by"], ["team_members.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["cancelled_by"], ["team_members.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_custom_requests_tenant_id"), "custom_requests", ["tenant_id"])
    op.create_index(op.f("ix_custom_requests_client_id"), "custom_requests", ["client_id"])
    op.create_index(op.f("ix_custom_requests_created_by"), "custom_requests", ["created_by"])
    op.create_index(op.f("ix_custom_requests_status"), "custom_requests", ["status"])

    op.create_table(
        "content_uploads",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("custom_request_id", sa.Uuid(), nullable=False),
        sa.Column("uploaded_by_id", sa.Uuid(), nullable=True),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("file_path", sa.String(length=500), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=True),
        sa.Column("file_type", sa.String(length=100), nullable=True),
        sa.Column("uploaded_by", sa.String(length=20), nullable=False, server_default=sa.text("'team'")),
        _created_at(),
        sa.ForeignKeyConstraint(["custom_request_id"], ["custom_requests.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["uploaded_by_id"], ["team_members.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_content_uploads_custom_request_id"), "content_uploads", ["custom_request_id"])

    op.create_table(
        "chatter_sales",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), nullable=False),
        sa.Column("chatter_id", sa.Uuid(), nullable=False),
        sa.Column("client_id", sa.Uuid(), nullable=False),
        sa.Column("sale_date", sa.Date(), nullable=False),
        sa.Column("sale_time", sa.Time(), nullable=True),
        sa.Column("gross_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("screenshot_url", sa.String(length=500), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "status",
            sa.Enum(*SALE_STATUS, name="sale_status_enum"),
            nullable=False,
            server_default=sa.text("'pending'"),
        ),
        sa.Column("approved_by", sa.Uuid(), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["chatter_id"], ["team_members.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["approved_by"], ["team_members.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_chatter_sales_tenant_id"), "chatter_sales", ["tenant_id"])
    op.create_index(op.f("ix_chatter_sales_chatter_id"), "chatter_sales", ["chatter_id"])
    op.create_index(op.f("ix_chatter_sales_client_id"), "chatter_sales", ["client_id"])
    op.create_index(op.f("ix_chatter_sales_sale_date"), "chatter_sales", ["sale_date"])
    op.create_index(op.f("ix_chatter_sales_status"), "chatter_sales", ["status"])


def downgrade() -> None:
    op.drop_table("chatter_sales")
    op.drop_table("content_uploads")
    op.drop_table("custom_requests")
    op.drop_table("clients")
    op.drop_table("team_members")
    op.drop_table("tenant_role_permissions")
    op.drop_table("tenant_roles")
    op.drop_table("permissions_catalog")
    op.drop_table("tenants")

    bind = op.get_bind()
    for enum_name in (
        "sale_status_enum",
        "custom_request_priority_enum",
        "custom_request_status_enum",
        "permission_type_enum",
        "tenant_status_enum",
    ):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)
