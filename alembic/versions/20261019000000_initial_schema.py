"""Initial forum schema: users, role domains and roles, communities, essays, notifications.

Revision ID: 20261019000000
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at(name: str = "created_at") -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("passwd_hash", sa.String(length=255), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "roledomains",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("domain_type", sa.String(length=32), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("domain", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=64), nullable=False),
        sa.Column("preset", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(["domain"], ["roledomains.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("domain", "name", name="roles_domain_name_key"),
    )
    op.create_index(op.f("ix_roles_domain"), "roles", ["domain"], unique=False)
    op.create_table(
        "role_perms",
        sa.Column("role_id", sa.Integer(), nullable=False),
        sa.Column("permission", sa.String(length=64), nullable=False),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("role_id", "permission"),
    )
    op.create_table(
        "user_roles",
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("role_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "role_id"),
    )
    op.create_index(op.f("ix_user_roles_role_id"), "user_roles", ["role_id"], unique=False)

    op.create_table(
        "subdisceptos",
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("min_length", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("questions_required", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("nsfw", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("public", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("roledomain_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["roledomain_id"], ["roledomains.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("name"),
        sa.UniqueConstraint("roledomain_id"),
    )
    op.create_table(
        "subdiscepto_users",
        sa.Column("subdiscepto", sa.String(length=255), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        _created_at("joined_at"),
        sa.Column("left_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["subdiscepto"], ["subdisceptos.name"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("subdiscepto", "user_id"),
    )

    op.create_table(
        "essays",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("thesis", sa.String(length=255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("attributed_to_id", sa.Integer(), nullable=False),
        _created_at("published"),
        sa.Column("posted_in", sa.String(length=255), nullable=False),
        sa.ForeignKeyConstraint(["attributed_to_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["posted_in"], ["subdisceptos.name"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_essays_attributed_to_id"), "essays", ["attributed_to_id"], unique=False)
    op.create_index(op.f("ix_essays_posted_in"), "essays", ["posted_in"], unique=False)
    op.create_table(
        "essay_tags",
        sa.Column("essay_id", sa.Integer(), nullable=False),
        sa.Column("tag", sa.String(length=64), nullable=False),
        sa.ForeignKeyConstraint(["essay_id"], ["essays.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("essay_id", "tag"),
    )
    op.create_table(
        "essay_replies",
        sa.Column("from_id", sa.Integer(), nullable=False),
        sa.Column("to_id", sa.Integer(), nullable=False),
        sa.Column("reply_type", sa.String(length=32), nullable=False, server_default="general"),
        sa.ForeignKeyConstraint(["from_id"], ["essays.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["to_id"], ["essays.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("from_id"),
    )
    op.create_index(op.f("ix_essay_replies_to_id"), "essay_replies", ["to_id"], unique=False)
    op.create_table(
        "votes",
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("essay_id", sa.Integer(), nullable=False),
        sa.Column("vote_type", sa.String(length=16), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["essay_id"], ["essays.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "essay_id"),
    )
    op.create_table(
        "reports",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("flag", sa.String(length=32), nullable=False, server_default="offensive"),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("essay_id", sa.Integer(), nullable=True),
        sa.Column("from_user_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["essay_id"], ["essays.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["from_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("notif_type", sa.String(length=32), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("text", sa.String(length=1024), nullable=False),
        sa.Column("action_url", sa.String(length=2048), nullable=False, server_default=""),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_notifications_user_id"), "notifications", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_notifications_user_id"), table_name="notifications")
    op.drop_table("notifications")
    op.drop_table("reports")
    op.drop_table("votes")
    op.drop_index(op.f("ix_essay_replies_to_id"), table_name="essay_replies")
    op.drop_table("essay_replies")
    op.drop_table("essay_tags")
    op.drop_index(op.f("ix_essays_posted_in"), table_name="essays")
    op.drop_index(op.f("ix_essays_attributed_to_id"), table_name="essays")
    op.drop_table("essays")
    op.drop_table("subdiscepto_users")
    op.drop_table("subdisceptos")
    op.drop_index(op.f("ix_user_roles_role_id"), table_name="user_roles")
    op.drop_table("user_roles")
    op.drop_table("role_perms")
    op.drop_index(op.f("ix_roles_domain"), table_name="roles")
    op.drop_table("roles")
    op.drop_table("roledomains")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
