"""Initial schema - curriculum, progress ledger, event log

Revision ID: 0001
Revises: 
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users table (profile mirror of the auth provider)
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False, index=True),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, default=True),
        sa.Column('is_admin', sa.Boolean(), nullable=False, default=False),
        sa.Column('subscription_type', sa.String(50), nullable=True),
        sa.Column('subscription_until', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Curriculum tables
    op.create_table(
        'program_blocks',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('subtitle', sa.String(255), nullable=True),
        sa.Column('icon', sa.String(16), nullable=True),
        sa.Column('color', sa.String(100), nullable=True),
        sa.Column('goal', sa.Text(), nullable=True),
        sa.Column('order_num', sa.Integer(), nullable=False, unique=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'program_months',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column('block_id', sa.Integer(), sa.ForeignKey('program_blocks.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('themes', sa.Text(), nullable=True),
        sa.Column('plot', sa.Text(), nullable=True),
        sa.Column('order_num', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('block_id', 'order_num', name='uq_program_months_block_order'),
    )

    op.create_table(
        'program_weeks',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column('month_id', sa.Integer(), sa.ForeignKey('program_months.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('order_num', sa.Integer(), nullable=False),
        sa.Column('cartoon_url', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('month_id', 'order_num', name='uq_program_weeks_month_order'),
    )

    op.create_table(
        'program_stories',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column('week_id', sa.Integer(), sa.ForeignKey('program_weeks.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('day_in_week', sa.Integer(), nullable=False),
        sa.Column('plot', sa.Text(), nullable=True),
        sa.Column('full_text', sa.Text(), nullable=True),
        sa.Column('therapeutic_goal', sa.Text(), nullable=True),
        sa.Column('methodology', sa.Text(), nullable=True),
        sa.Column('why_important', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('week_id', 'day_in_week', name='uq_program_stories_week_day'),
    )

    op.create_table(
        'program_questions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('story_id', sa.Integer(), sa.ForeignKey('program_stories.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('question_type', sa.String(50), nullable=False),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('hint', sa.Text(), nullable=True),
        sa.Column('order_num', sa.Integer(), nullable=False, default=1),
    )

    # Progress ledger
    op.create_table(
        'user_story_progress',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('story_id', sa.Integer(), sa.ForeignKey('program_stories.id', ondelete='CASCADE'), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('questions_answered', sa.JSON(), nullable=False),
        sa.UniqueConstraint('user_id', 'story_id', name='uq_user_story_progress_user_story'),
    )

    # Event logs table (append-only)
    op.create_table(
        'event_logs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('event_type', sa.String(100), nullable=False, index=True),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.String(64), nullable=False, index=True),
        sa.Column('user_id', sa.Uuid(), nullable=True, index=True),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False, index=True),
    )
    op.create_index('ix_event_logs_entity', 'event_logs', ['entity_type', 'entity_id'])


def downgrade() -> None:
    op.drop_table('event_logs')
    op.drop_table('user_story_progress')
    op.drop_table('program_questions')
    op.drop_table('program_stories')
    op.drop_table('program_weeks')
    op.drop_table('program_months')
    op.drop_table('program_blocks')
    op.drop_table('users')
