"""add_platform_api_configs_table

Revision ID: 8b41e0c7d5a2
Revises: 3f6c2a9d1b7e
Create Date: 2026-10-16 10:30:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '8b41e0c7d5a2'
down_revision = '3f6c2a9d1b7e'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'platform_api_configs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('platform_id', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('api_type', sa.String(length=50), nullable=False),
        sa.Column('base_url', sa.String(length=500), nullable=False),
        sa.Column('endpoints', sa.JSON(), nullable=False),
        sa.Column('headers', sa.JSON(), nullable=True),
        sa.Column('rate_limit_rpm', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('timeout_ms', sa.Integer(), nullable=False, server_default='30000'),
        sa.Column('is_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('health_status', sa.String(length=20), nullable=False, server_default='unknown'),
        sa.Column('last_health_check', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_index(op.f('ix_platform_api_configs_id'), 'platform_api_configs', ['id'], unique=False)
    op.create_index(op.f('ix_platform_api_configs_platform_id'), 'platform_api_configs', ['platform_id'], unique=True)
    op.create_index(op.f('ix_platform_api_configs_is_enabled'), 'platform_api_configs', ['is_enabled'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_platform_api_configs_is_enabled'), table_name='platform_api_configs')
    op.drop_index(op.f('ix_platform_api_configs_platform_id'), table_name='platform_api_configs')
    op.drop_index(op.f('ix_platform_api_configs_id'), table_name='platform_api_configs')

    op.drop_table('platform_api_configs')
