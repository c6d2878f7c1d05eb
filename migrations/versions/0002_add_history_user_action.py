"""add user_action to recommendation_history

Revision ID: 0002_add_history_user_action
Revises: 0001_init
Create Date: 2026-10-06

"""

from alembic import op
import sqlalchemy as sa


revision = "0002_add_history_user_action"
down_revision = "0001_init"
branch_labels = None
depends_on = None


def upgrade():
    op.add_column(
        "recommendation_history",
        sa.Column("user_action", sa.String(length=32), nullable=True),
    )


def downgrade():
    op.drop_column("recommendation_history", "user_action")
