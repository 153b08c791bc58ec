"""create streaks, past_streaks and user_settings tables

Revision ID: 3e1f0c9a7b21
Revises:
Create Date: 2025-12-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3e1f0c9a7b21'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    tables = inspector.get_table_names()

    if 'streaks' not in tables:
        op.create_table(
            'streaks',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('owner_id', sa.String(), nullable=False),
            sa.Column('title', sa.String(), nullable=True),
            sa.Column('description', sa.String(), nullable=True),
            sa.Column('color', sa.String(length=7), nullable=False, server_default='#000000'),
            sa.Column('current_start_date', sa.DateTime(timezone=True), nullable=False),
            sa.Column('current_end_date', sa.DateTime(timezone=True), nullable=False),
            sa.Column('longest_streak', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('position', sa.Integer(), nullable=False, server_default='1'),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        )
        op.create_index('ix_streaks_id', 'streaks', ['id'])
        op.create_index('ix_streaks_owner_id', 'streaks', ['owner_id'])

    if 'past_streaks' not in tables:
        op.create_table(
            'past_streaks',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('streak_id', sa.Integer(), sa.ForeignKey('streaks.id', ondelete='CASCADE'), nullable=False),
            sa.Column('seq', sa.Integer(), nullable=False),
            sa.Column('start', sa.DateTime(timezone=True), nullable=False),
            sa.Column('end', sa.DateTime(timezone=True), nullable=False),
            sa.UniqueConstraint('streak_id', 'seq', name='uq_past_streaks_streak_seq'),
        )
        op.create_index('ix_past_streaks_id', 'past_streaks', ['id'])
        op.create_index('ix_past_streaks_streak_id', 'past_streaks', ['streak_id'])

    if 'user_settings' not in tables:
        op.create_table(
            'user_settings',
            sa.Column('owner_id', sa.String(), primary_key=True, nullable=False),
            sa.Column('timezone_offset', sa.Float(), nullable=False, server_default='0'),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        )
        op.create_index('ix_user_settings_owner_id', 'user_settings', ['owner_id'])


def downgrade() -> None:
    # Safe drop if exists, children first
    op.execute('DROP TABLE IF EXISTS past_streaks')
    op.execute('DROP TABLE IF EXISTS user_settings')
    op.execute('DROP TABLE IF EXISTS streaks')
