"""unique active time entry per user

Revision ID: 8e4b7c2d91a5
Revises: 3c1f0a9d2b7e
Create Date: 2026-10-02 09:31:05.772914

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8e4b7c2d91a5'
down_revision: Union[str, Sequence[str], None] = '3c1f0a9d2b7e'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.execute(
        """
        CREATE UNIQUE INDEX IF NOT EXISTS uq_time_entries_active_user
        ON time_entries(user_id)
        WHERE status = 'IN_PROGRESS';
        """
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.execute("DROP INDEX IF EXISTS uq_time_entries_active_user;")
