"""Create notification, settings, workspace and run log tables.

Revision ID: 3f1c2a9b7d40
Revises:
Create Date: 2026-10-19 09:12:04.518233
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9b7d40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

severity_enum = sa.Enum('INFO', 'WARN', 'CRITICAL', name='notificationseverity')
project_status_enum = sa.Enum(
    'ACTIVE', 'PLANNING', 'ON_HOLD', 'COMPLETED', 'ARCHIVED', name='projectstatus'
)
project_priority_enum = sa.Enum('CRITICAL', 'HIGH', 'MEDIUM', 'LOW', name='projectpriority')
task_status_enum = sa.Enum(
    'PENDING', 'IN_PROGRESS', 'COMPLETED', 'DEFERRED', 'CANCELLED', name='taskstatus'
)
task_priority_enum = sa.Enum('CRITICAL', 'HIGH', 'MEDIUM', 'LOW', name='taskpriority')


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('severity', severity_enum, nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=True),
        sa.Column('entity_id', sa.String(length=64), nullable=True),
        sa.Column('action_url', sa.String(length=500), nullable=True),
        sa.Column('read_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('notifications_user_created_idx', 'notifications', ['user_id', 'created_at'])
    op.create_index(
        'notifications_dedupe_idx', 'notifications', ['user_id', 'type', 'entity_id', 'created_at']
    )

    op.create_table(
        'notification_settings',
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('quiet_hours_start', sa.Time(), nullable=True),
        sa.Column('quiet_hours_end', sa.Time(), nullable=True),
        sa.Column('channel_inapp', sa.Boolean(), nullable=False),
        sa.Column('channel_email', sa.Boolean(), nullable=False),
        sa.Column('channel_slack', sa.Boolean(), nullable=False),
        sa.Column('channel_discord', sa.Boolean(), nullable=False),
        sa.Column('digest_daily', sa.Boolean(), nullable=False),
        sa.Column('digest_time', sa.Time(), nullable=False),
        sa.Column('nudges_enabled', sa.Boolean(), nullable=False),
        sa.Column('critical_only', sa.Boolean(), nullable=False),
        sa.Column('muted_entities', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('user_id'),
    )

    op.create_table(
        'projects',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=500), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', project_status_enum, nullable=False),
        sa.Column('priority', project_priority_enum, nullable=False),
        sa.Column('deadline', sa.DateTime(), nullable=True),
        sa.Column('primary_principle_id', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_projects_user_id', 'projects', ['user_id'])

    op.create_table(
        'tasks',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('status', task_status_enum, nullable=False),
        sa.Column('priority', task_priority_enum, nullable=False),
        sa.Column('due_date', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_tasks_project_id', 'tasks', ['project_id'])

    op.create_table(
        'documents',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('principle_alignment_score', sa.Integer(), nullable=True),
        sa.Column('user_override', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_documents_user_id', 'documents', ['user_id'])

    op.create_table(
        'daily_focus',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('focus_theme', sa.JSON(), nullable=True),
        sa.Column('top_actions', sa.JSON(), nullable=False),
        sa.Column('generated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'date', name='uq_daily_focus_user_date'),
    )

    op.create_table(
        'focus_actions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('daily_focus_id', sa.Integer(), nullable=False),
        sa.Column('action_id', sa.String(length=32), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('priority_level', sa.String(length=20), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('deferred', sa.Boolean(), nullable=False),
        sa.Column('ignored', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['daily_focus_id'], ['daily_focus.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('daily_focus_id', 'action_id', name='uq_focus_action_plan'),
    )
    op.create_index('ix_focus_actions_user_id', 'focus_actions', ['user_id'])

    op.create_table(
        'nudge_runs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('finished_at', sa.DateTime(), nullable=False),
        sa.Column('users_checked', sa.Integer(), nullable=False),
        sa.Column('notifications_created', sa.Integer(), nullable=False),
        sa.Column('errors', sa.Integer(), nullable=False),
        sa.Column('deadline_exceeded', sa.Boolean(), nullable=False),
        sa.Column('details', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_nudge_runs_started_at', 'nudge_runs', ['started_at'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_nudge_runs_started_at', table_name='nudge_runs')
    op.drop_table('nudge_runs')
    op.drop_index('ix_focus_actions_user_id', table_name='focus_actions')
    op.drop_table('focus_actions')
    op.drop_table('daily_focus')
    op.drop_index('ix_documents_user_id', table_name='documents')
    op.drop_table('documents')
    op.drop_index('ix_tasks_project_id', table_name='tasks')
    op.drop_table('tasks')
    op.drop_index('ix_projects_user_id', table_name='projects')
    op.drop_table('projects')
    op.drop_table('notification_settings')
    op.drop_index('notifications_dedupe_idx', table_name='notifications')
    op.drop_index('notifications_user_created_idx', table_name='notifications')
    op.drop_table('notifications')

    bind = op.get_bind()
    for enum_type in (
        task_priority_enum,
        task_status_enum,
        project_priority_enum,
        project_status_enum,
        severity_enum,
    ):
        enum_type.drop(bind, checkfirst=True)
