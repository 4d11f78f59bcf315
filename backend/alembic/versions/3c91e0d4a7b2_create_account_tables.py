"""create account tables

Revision ID: 3c91e0d4a7b2
Revises:
Create Date: 2026-10-12 11:04:37.512904

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c91e0d4a7b2"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=True),
        sa.Column("google_id", sa.String(), nullable=True),
        sa.Column("role", sa.String(), nullable=False, server_default="user"),
        sa.Column("department", sa.String(), nullable=True),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("verification_token", sa.String(), nullable=True),
        sa.Column("verification_token_expires_at", sa.DateTime(), nullable=True),
        sa.Column("reset_password_token", sa.String(), nullable=True),
        sa.Column("reset_password_expires_at", sa.DateTime(), nullable=True),
        sa.Column("profile_pic", sa.String(), nullable=True),
        sa.Column("api_keys", sa.JSON(), nullable=True),
        sa.Column("last_active", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index(op.f("ix_users_id"), "users", ["id"], unique=False)
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)
    op.create_index(op.f("ix_users_google_id"), "users", ["google_id"], unique=True)
    op.create_index(op.f("ix_users_verification_token"), "users", ["verification_token"], unique=False)
    op.create_index(op.f("ix_users_reset_password_token"), "users", ["reset_password_token"], unique=False)

    op.create_table(
        "user_gpt_assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("gpt_id", sa.String(), nullable=False),
        sa.Column("assigned_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(op.f("ix_user_gpt_assignments_id"), "user_gpt_assignments", ["id"], unique=False)
    op.create_index(op.f("ix_user_gpt_assignments_user_id"), "user_gpt_assignments", ["user_id"], unique=False)
    op.create_index(op.f("ix_user_gpt_assignments_gpt_id"), "user_gpt_assignments", ["gpt_id"], unique=False)

    op.create_table(
        "chat_histories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("gpt_id", sa.String(), nullable=True),
        sa.Column("title", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(op.f("ix_chat_histories_id"), "chat_histories", ["id"], unique=False)
    op.create_index(op.f("ix_chat_histories_user_id"), "chat_histories", ["user_id"], unique=False)

    op.create_table(
        "user_favorites",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("gpt_id", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(op.f("ix_user_favorites_id"), "user_favorites", ["id"], unique=False)
    op.create_index(op.f("ix_user_favorites_user_id"), "user_favorites", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_user_favorites_user_id"), table_name="user_favorites")
    op.drop_index(op.f("ix_user_favorites_id"), table_name="user_favorites")
    op.drop_table("user_favorites")

    op.drop_index(op.f("ix_chat_histories_user_id"), table_name="chat_histories")
    op.drop_index(op.f("ix_chat_histories_id"), table_name="chat_histories")
    op.drop_table("chat_histories")

    op.drop_index(op.f("ix_user_gpt_assignments_gpt_id"), table_name="user_gpt_assignments")
    op.drop_index(op.f("ix_user_gpt_assignments_user_id"), table_name="user_gpt_assignments")
    op.drop_index(op.f("ix_user_gpt_assignments_id"), table_name="user_gpt_assignments")
    op.drop_table("user_gpt_assignments")

    op.drop_index(op.f("ix_users_reset_password_token"), table_name="users")
    op.drop_index(op.f("ix_users_verification_token"), table_name="users")
    op.drop_index(op.f("ix_users_google_id"), table_name="users")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_index(op.f("ix_users_id"), table_name="users")
    op.drop_table("users")
