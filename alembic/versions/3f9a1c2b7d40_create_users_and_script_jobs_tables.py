"""Create users and script_jobs tables

Revision ID: 3f9a1c2b7d40
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9a1c2b7d40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('users',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('username', sa.String(length=50), nullable=False),
    sa.Column('email', sa.String(length=255), nullable=True),
    sa.Column('full_name', sa.String(length=255), nullable=True),
    sa.Column('disabled', sa.Boolean(), nullable=True),
    sa.Column('subscription_tier', sa.String(length=50), nullable=False, server_default='starter'),
    sa.Column('created_at', sa.DateTime(), nullable=False),
    sa.Column('updated_at', sa.DateTime(), nullable=True),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table('script_jobs',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('job_id', sa.String(length=36), nullable=False),
    sa.Column('owner_id', sa.Integer(), nullable=False),
    sa.Column('title', sa.String(length=200), nullable=False),
    sa.Column('input_kind', sa.String(length=20), nullable=False),
    sa.Column('platform', sa.String(length=50), nullable=False),
    sa.Column('target_duration', sa.String(length=20), nullable=False),
    sa.Column('custom_duration', sa.Integer(), nullable=True),
    sa.Column('granularity', sa.String(length=20), nullable=False),
    sa.Column('style_notes', sa.Text(), nullable=True),
    sa.Column('language', sa.String(length=10), nullable=True),
    sa.Column('tags', sa.JSON(), nullable=True),
    sa.Column('source_text', sa.Text(), nullable=True),
    sa.Column('document', sa.JSON(), nullable=True),
    sa.Column('video', sa.JSON(), nullable=True),
    sa.Column('transcription', sa.JSON(), nullable=True),
    sa.Column('brief_text', sa.Text(), nullable=True),
    sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
    sa.Column('pipeline_stage', sa.String(length=20), nullable=False, server_default='generation'),
    sa.Column('generated_content', sa.JSON(), nullable=True),
    sa.Column('processing_metadata', sa.JSON(), nullable=False),
    sa.Column('variations', sa.JSON(), nullable=False),
    sa.Column('trend_snapshot', sa.JSON(), nullable=False),
    sa.Column('times_generated', sa.Integer(), nullable=False, server_default='1'),
    sa.Column('variations_created', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('successful_generations', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('failed_generations', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('deal_connection', sa.JSON(), nullable=True),
    sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
    sa.Column('deleted_at', sa.DateTime(), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=False),
    sa.Column('updated_at', sa.DateTime(), nullable=True),
    sa.Column('last_processed_at', sa.DateTime(), nullable=True),
    sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_script_jobs_id'), 'script_jobs', ['id'], unique=False)
    op.create_index(op.f('ix_script_jobs_job_id'), 'script_jobs', ['job_id'], unique=True)
    op.create_index(op.f('ix_script_jobs_owner_id'), 'script_jobs', ['owner_id'], unique=False)
    op.create_index(op.f('ix_script_jobs_status'), 'script_jobs', ['status'], unique=False)
    op.create_index(op.f('ix_script_jobs_is_deleted'), 'script_jobs', ['is_deleted'], unique=False)
    op.create_index(op.f('ix_script_jobs_created_at'), 'script_jobs', ['created_at'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_script_jobs_created_at'), table_name='script_jobs')
    op.drop_index(op.f('ix_script_jobs_is_deleted'), table_name='script_jobs')
    op.drop_index(op.f('ix_script_jobs_status'), table_name='script_jobs')
    op.drop_index(op.f('ix_script_jobs_owner_id'), table_name='script_jobs')
    op.drop_index(op.f('ix_script_jobs_job_id'), table_name='script_jobs')
    op.drop_index(op.f('ix_script_jobs_id'), table_name='script_jobs')
    op.drop_table('script_jobs')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_index(op.f('ix_users_username'), table_name='users')
    op.drop_index(op.f('ix_users_id'), table_name='users')
    op.drop_table('users')
