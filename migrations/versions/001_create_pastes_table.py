"""create pastes table

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-19 09:00:00.000000

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'pastes',
        sa.Column('id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('max_views', sa.Integer(), nullable=True),
        sa.Column('remaining_views', sa.Integer(), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('max_views IS NULL OR max_views >= 1', name='ck_pastes_max_views_min_1'),
        sa.CheckConstraint('remaining_views IS NULL OR remaining_views >= 0', name='ck_pastes_remaining_views_non_negative'),
        sa.CheckConstraint(
            '(max_views IS NULL AND remaining_views IS NULL)'
            ' OR (max_views IS NOT NULL AND remaining_views IS NOT NULL)',
            name='ck_pastes_remaining_views_requires_max_views',
        ),
        sa.CheckConstraint('expires_at IS NULL OR expires_at > created_at', name='ck_pastes_expires_after_created'),
    )


def downgrade() -> None:
    op.drop_table('pastes')
