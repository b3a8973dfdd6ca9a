"""Initial schema: stored_collections key-value table

Revision ID: 20261001_collections
Revises:
Create Date: 2026-10-01

Every persisted collection (products, movements, incidents, app_users,
config, session) is one row holding its whole JSON payload.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261001_collections'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('stored_collections',
        sa.Column('kind', sa.String(length=64), nullable=False),
        sa.Column('payload', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('kind')
    )


def downgrade():
    op.drop_table('stored_collections')
