"""Initial schema - lectures, concept graph, learner progress

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
    # Users table
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False, index=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, default='student'),
        sa.Column('is_active', sa.Boolean(), nullable=False, default=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Lectures table
    op.create_table(
        'lectures',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, default=''),
        sa.Column('lecturer_name', sa.String(255), nullable=False, default=''),
        sa.Column('content_url', sa.Text(), nullable=False, default=''),
        sa.Column('content_type', sa.String(50), nullable=False, default='video'),
        sa.Column('category', sa.String(100), nullable=False, index=True),
        sa.Column('order', sa.Integer(), nullable=False, default=0),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Lecture prerequisite edges: lecture_id requires prerequisite_lecture_id
    op.create_table(
        'lecture_prerequisites',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('lecture_id', sa.Uuid(), sa.ForeignKey('lectures.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('prerequisite_lecture_id', sa.Uuid(), sa.ForeignKey('lectures.id', ondelete='RESTRICT'), nullable=False, index=True),
        sa.Column('is_required', sa.Boolean(), nullable=False, default=True),
        sa.Column('importance_level', sa.Integer(), nullable=False, default=3),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('lecture_id', 'prerequisite_lecture_id', name='uq_lecture_prerequisite_pair'),
        sa.CheckConstraint('lecture_id <> prerequisite_lecture_id', name='ck_lecture_prerequisite_not_self'),
        sa.CheckConstraint('importance_level BETWEEN 1 AND 5', name='ck_lecture_prerequisite_importance'),
    )

    # Philosophical entities and typed relations
    op.create_table(
        'philosophical_entities',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('type', sa.String(50), nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, default=''),
        sa.Column('start_year', sa.Integer(), nullable=True),
        sa.Column('end_year', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_table(
        'philosophical_relations',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('source_entity_id', sa.Uuid(), sa.ForeignKey('philosophical_entities.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('target_entity_id', sa.Uuid(), sa.ForeignKey('philosophical_entities.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('relation_types', sa.JSON(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('importance', sa.Integer(), nullable=False, default=3),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Learner progress, one row per (user, lecture)
    op.create_table(
        'progress',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('lecture_id', sa.Uuid(), sa.ForeignKey('lectures.id', ondelete='RESTRICT'), nullable=False, index=True),
        sa.Column('status', sa.String(32), nullable=False, default='LOCKED'),
        sa.Column('last_viewed', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_mastery_score', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('user_id', 'lecture_id', name='uq_progress_user_lecture'),
    )

    # Event logs table (append-only)
    op.create_table(
        'event_logs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('event_type', sa.String(100), nullable=False, index=True),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('user_id', sa.Uuid(), nullable=True, index=True),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False, index=True),
    )
    op.create_index('ix_event_logs_entity', 'event_logs', ['entity_type', 'entity_id'])
    op.create_index('ix_event_logs_type_time', 'event_logs', ['event_type', 'created_at'])


def downgrade() -> None:
    op.drop_table('event_logs')
    op.drop_table('progress')
    op.drop_table('philosophical_relations')
    op.drop_table('philosophical_entities')
    op.drop_table('lecture_prerequisites')
    op.drop_table('lectures')
    op.drop_table('users')
