"""Seed the global role domain (-123) with the preset admin and common roles.

Revision ID: 20261019100000
Revises: 20261019000000
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "20261019100000"
down_revision: Union[str, None] = "20261019000000"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

GLOBAL_ROLE_DOMAIN_ID = -123

# Frozen copy of the preset global roles at the time of this revision.
GLOBAL_ADMIN_PERMS = [
    "ban_user",
    "ban_user_globally",
    "change_ranking",
    "common_after_rejoin",
    "create_essay",
    "create_report",
    "create_subdiscepto",
    "create_vote",
    "delete_essay",
    "delete_report",
    "delete_subdiscepto",
    "delete_user",
    "delete_vote",
    "login",
    "manage_global_role",
    "manage_role",
    "read_essay",
    "read_subdiscepto",
    "update_subdiscepto",
    "use_local_permissions",
    "view_report",
]
GLOBAL_COMMON_PERMS = ["create_vote", "delete_vote", "use_local_permissions"]

roledomains = sa.table("roledomains", sa.column("id", sa.Integer), sa.column("domain_type", sa.String))
roles = sa.table(
    "roles",
    sa.column("id", sa.Integer),
    sa.column("domain", sa.Integer),
    sa.column("name", sa.String),
    sa.column("preset", sa.Boolean),
)
role_perms = sa.table("role_perms", sa.column("role_id", sa.Integer), sa.column("permission", sa.String))


def upgrade() -> None:
    conn = op.get_bind()
    conn.execute(roledomains.insert().values(id=GLOBAL_ROLE_DOMAIN_ID, domain_type="discepto"))
    for name, perms in (("admin", GLOBAL_ADMIN_PERMS), ("common", GLOBAL_COMMON_PERMS)):
        role_id = conn.execute(
            roles.insert()
            .values(domain=GLOBAL_ROLE_DOMAIN_ID, name=name, preset=True)
            .returning(roles.c.id)
        ).scalar_one()
        conn.execute(role_perms.insert(), [{"role_id": role_id, "permission": p} for p in perms])


def downgrade() -> None:
    # Cascades to roles, role_perms and user_roles.
    op.execute(roledomains.delete().where(roledomains.c.id == GLOBAL_ROLE_DOMAIN_ID))
