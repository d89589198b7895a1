"""Seed default roles

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-18

Creates the admin, editor, reviewer and viewer roles.
"""
from datetime import datetime
from typing import Sequence, Union
import uuid

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0002"
down_revision: Union[str, Sequence[str], None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# Frozen copy of the role table at the time of this revision
DEFAULT_ROLES = {
    "admin": ["*:*"],
    "editor": ["reviews:read", "reviews:assign", "reviews:bulk_assign"],
    "reviewer": ["reviews:read", "reviews:handle", "reviews:approve", "reviews:reject"],
    "viewer": ["reviews:read"],
}

roles_table = sa.table(
    "roles",
    sa.column("id", sa.Uuid()),
    sa.column("name", sa.String()),
    sa.column("permissions", sa.JSON()),
    sa.column("is_system", sa.Boolean()),
    sa.column("created_at", sa.DateTime()),
)


def upgrade() -> None:
    connection = op.get_bind()
    existing = {
        row[0] for row in connection.execute(sa.select(roles_table.c.name)).fetchall()
    }
    now = datetime.utcnow()
    rows = [
        {
            "id": uuid.uuid4(),
            "name": name,
            "permissions": permissions,
            "is_system": True,
            "created_at": now,
        }
        for name, permissions in DEFAULT_ROLES.items()
        if name not in existing
    ]
    if rows:
        op.bulk_insert(roles_table, rows)


def downgrade() -> None:
    op.execute(
        roles_table.delete().where(
            sa.and_(
                roles_table.c.name.in_(list(DEFAULT_ROLES)),
                roles_table.c.is_system.is_(True),
            )
        )
    )
