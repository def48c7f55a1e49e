"""initial portal schema

Revision ID: a1c0f3e2b7d4
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = "a1c0f3e2b7d4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=False),
        nullable=False,
        server_default=sa.func.current_timestamp(),
    )


def upgrade() -> None:
    bind = op.get_bind()
    insp = inspect(bind)
    existing_tables = set(insp.get_table_names())

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("email", sa.String(length=320), nullable=False),
            sa.Column("password_hash", sa.String(length=255), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            _created_at(),
            sa.Column("last_login_at", sa.DateTime(timezone=False), nullable=True),
            sa.Column("full_name", sa.String(length=255), nullable=True),
            sa.Column("phone_number", sa.String(length=32), nullable=True),
            sa.Column("date_of_birth", sa.Date(), nullable=True),
            sa.Column("avatar_storage_key", sa.String(length=512), nullable=True),
            sa.Column("language", sa.String(length=8), nullable=False, server_default="en"),
            sa.Column("region", sa.String(length=128), nullable=True),
            sa.Column("district", sa.String(length=128), nullable=True),
            sa.Column("ward", sa.String(length=128), nullable=True),
            sa.Column("village", sa.String(length=128), nullable=True),
            sa.Column("moderation_level", sa.Integer(), nullable=False, server_default="0"),
            sa.UniqueConstraint("email", name="uq_users_email"),
        )

    if "roles" not in existing_tables:
        op.create_table(
            "roles",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("key", sa.String(length=64), nullable=False),
            sa.Column("name", sa.String(length=128), nullable=False),
            _created_at(),
            sa.UniqueConstraint("key", name="uq_roles_key"),
        )

    if "permissions" not in existing_tables:
        op.create_table(
            "permissions",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("key", sa.String(length=128), nullable=False),
            sa.Column("name", sa.String(length=128), nullable=False),
            _created_at(),
            sa.UniqueConstraint("key", name="uq_permissions_key"),
        )

    if "user_roles" not in existing_tables:
        op.create_table(
            "user_roles",
            sa.Column("user_id", sa.Integer(), nullable=False),
            sa.Column("role_id", sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["role_id"], ["roles.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("user_id", "role_id"),
        )

    if "role_permissions" not in existing_tables:
        op.create_table(
            "role_permissions",
            sa.Column("role_id", sa.Integer(), nullable=False),
            sa.Column("permission_id", sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(["role_id"], ["roles.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["permission_id"], ["permissions.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("role_id", "permission_id"),
        )

    if "audit_events" not in existing_tables:
        op.create_table(
            "audit_events",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            _created_at(),
            sa.Column("request_id", sa.String(length=64), nullable=True),
            sa.Column("client_ip", sa.String(length=64), nullable=True),
            sa.Column("actor_user_id", sa.Integer(), nullable=True),
            sa.Column("actor_user_email", sa.String(length=320), nullable=True),
            sa.Column("action", sa.String(length=128), nullable=False),
            sa.Column("entity_type", sa.String(length=128), nullable=True),
            sa.Column("entity_id", sa.String(length=128), nullable=True),
            sa.Column("reason", sa.String(length=512), nullable=True),
            sa.Column("metadata_json", sa.Text(), nullable=True),
            sa.ForeignKeyConstraint(["actor_user_id"], ["users.id"], ondelete="SET NULL"),
            sa.UniqueConstraint("request_id", "id", name="uq_audit_request_id_id"),
        )

    if "feedback_categories" not in existing_tables:
        op.create_table(
            "feedback_categories",
            sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("icon", sa.String(length=64), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        )

    if "feedback" not in existing_tables:
        op.create_table(
            "feedback",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("tracking_id", sa.String(length=16), nullable=False),
            sa.Column("user_id", sa.Integer(), nullable=True),
            sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
            sa.Column("is_anonymous", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("full_name", sa.String(length=255), nullable=True),
            sa.Column("phone_number", sa.String(length=32), nullable=True),
            sa.Column("email", sa.String(length=320), nullable=True),
            sa.Column("region", sa.String(length=128), nullable=False),
            sa.Column("district", sa.String(length=128), nullable=True),
            sa.Column("ward", sa.String(length=128), nullable=True),
            sa.Column("village", sa.String(length=128), nullable=True),
            sa.Column("street", sa.String(length=255), nullable=True),
            sa.Column("category", sa.String(length=64), nullable=False),
            sa.Column("description", sa.Text(), nullable=False),
            _created_at(),
            sa.Column(
                "updated_at",
                sa.DateTime(timezone=False),
                nullable=False,
                server_default=sa.func.current_timestamp(),
            ),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
            sa.UniqueConstraint("tracking_id", name="uq_feedback_tracking_id"),
        )
        for idx_name, cols in (
            ("idx_feedback_status", ["status"]),
            ("idx_feedback_region", ["region"]),
            ("idx_feedback_category", ["category"]),
            ("idx_feedback_user_id", ["user_id"]),
            ("idx_feedback_created_at", ["created_at"]),
        ):
            op.create_index(idx_name, "feedback", cols)

    if "feedback_evidence" not in existing_tables:
        op.create_table(
            "feedback_evidence",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("feedback_id", sa.Integer(), nullable=False),
            sa.Column("storage_key", sa.String(length=512), nullable=False),
            sa.Column("original_filename", sa.String(length=255), nullable=False),
            sa.Column("content_type", sa.String(length=128), nullable=False),
            sa.Column("sha256", sa.String(length=64), nullable=False),
            sa.Column("size_bytes", sa.Integer(), nullable=False),
            _created_at(),
            sa.ForeignKeyConstraint(["feedback_id"], ["feedback.id"], ondelete="CASCADE"),
        )

    if "feedback_notifications" not in existing_tables:
        op.create_table(
            "feedback_notifications",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("feedback_id", sa.Integer(), nullable=False),
            sa.Column("user_id", sa.Integer(), nullable=False),
            sa.Column("message", sa.Text(), nullable=False),
            sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
            _created_at(),
            sa.ForeignKeyConstraint(["feedback_id"], ["feedback.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        )
        op.create_index("idx_feedback_notifications_user", "feedback_notifications", ["user_id", "is_read"])

    if "feedback_responses" not in existing_tables:
        op.create_table(
            "feedback_responses",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("feedback_id", sa.Integer(), nullable=False),
            sa.Column("responder_user_id", sa.Integer(), nullable=True),
            sa.Column("message", sa.Text(), nullable=False),
            _created_at(),
            sa.ForeignKeyConstraint(["feedback_id"], ["feedback.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["responder_user_id"], ["users.id"], ondelete="SET NULL"),
        )


def downgrade() -> None:
    op.drop_table("feedback_responses")
    op.drop_index("idx_feedback_notifications_user", table_name="feedback_notifications")
    op.drop_table("feedback_notifications")
    op.drop_table("feedback_evidence")
    for idx_name in (
        "idx_feedback_created_at",
        "idx_feedback_user_id",
        "idx_feedback_category",
        "idx_feedback_region",
        "idx_feedback_status",
    ):
        op.drop_index(idx_name, table_name="feedback")
    op.drop_table("feedback")
    op.drop_table("feedback_categories")
    op.drop_table("audit_events")
    op.drop_table("role_permissions")
    op.drop_table("user_roles")
    op.drop_table("permissions")
    op.drop_table("roles")
    op.drop_table("users")
