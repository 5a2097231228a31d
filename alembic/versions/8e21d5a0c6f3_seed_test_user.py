"""Seed test user

Revision ID: 8e21d5a0c6f3
Revises: 3f9a1c2b7d40
Create Date: 2026-10-17

"""
from datetime import datetime, timezone
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8e21d5a0c6f3'
down_revision: Union[str, Sequence[str], None] = '3f9a1c2b7d40'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema - add test user."""
    users_table = sa.table(
        'users',
        sa.column('username', sa.String),
        sa.column('email', sa.String),
        sa.column('disabled', sa.Boolean),
        sa.column('subscription_tier', sa.String),
        sa.column('created_at', sa.DateTime),
    )

    op.bulk_insert(
        users_table,
        [
            {
                'username': 'testuser',
                'email': 'test@example.com',
                'disabled': False,
                'subscription_tier': 'pro',
                'created_at': datetime.now(timezone.utc).replace(tzinfo=None),
            }
        ]
    )


def downgrade() -> None:
    """Downgrade schema - remove test user."""
    op.execute("DELETE FROM users WHERE username = 'testuser'")
