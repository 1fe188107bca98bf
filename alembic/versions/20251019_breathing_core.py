"""add breathing core tables

Revision ID: 20251019_breathing_core
Revises:
Create Date: 2025-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20251019_breathing_core"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'breathing_parameters',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('user_id', sa.String(255), nullable=False, index=True),
        sa.Column('mode', sa.String(20), nullable=False),
        sa.Column('inhale_seconds', sa.Float(), nullable=False),
        sa.Column('exhale_seconds', sa.Float(), nullable=False),
        sa.Column('pause_seconds', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_duration_seconds', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()')),
        sa.UniqueConstraint('user_id', 'mode', name='uq_breathing_params_user_mode'),
    )

    op.create_table(
        'breathing_sessions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.String(255), nullable=False, index=True),
        sa.Column('mode', sa.String(20), nullable=False),
        sa.Column('duration_seconds', sa.Integer(), nullable=False),
        sa.Column('completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('comfort_rating', sa.String(20), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()')),
    )
    op.create_index('ix_breathing_session_user_created', 'breathing_sessions', ['user_id', 'created_at'])
    op.create_index('ix_breathing_session_user_mode', 'breathing_sessions', ['user_id', 'mode'])

    op.create_table(
        'lung_capacity_metrics',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('user_id', sa.String(255), nullable=False, index=True),
        sa.Column('session_id', sa.Integer(), sa.ForeignKey('breathing_sessions.id'), nullable=False, index=True),
        sa.Column('max_breath_hold_seconds', sa.Float(), nullable=True),
        sa.Column('average_inhale_depth', sa.Float(), nullable=True),
        sa.Column('average_exhale_control', sa.Float(), nullable=True),
        sa.Column('respiratory_rate', sa.Float(), nullable=True),
        sa.Column('comfort_level', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_lung_metric_user_created', 'lung_capacity_metrics', ['user_id', 'created_at'])

    op.create_table(
        'user_progress_analytics',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('user_id', sa.String(255), nullable=False, unique=True, index=True),
        sa.Column('baseline_lung_capacity', sa.Float(), nullable=True),
        sa.Column('current_lung_capacity', sa.Float(), nullable=True),
        sa.Column('capacity_improvement_percent', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_training_minutes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('consecutive_days_streak', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('best_streak', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_session_date', sa.Date(), nullable=True),
        sa.Column('difficulty_level', sa.String(20), nullable=False, server_default='beginner'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()')),
    )


def downgrade() -> None:
    op.drop_table('user_progress_analytics')
    op.drop_index('ix_lung_metric_user_created', table_name='lung_capacity_metrics')
    op.drop_table('lung_capacity_metrics')
    op.drop_index('ix_breathing_session_user_mode', table_name='breathing_sessions')
    op.drop_index('ix_breathing_session_user_created', table_name='breathing_sessions')
    op.drop_table('breathing_sessions')
    op.drop_table('breathing_parameters')
