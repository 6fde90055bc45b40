"""add_service_configurations_table

Revision ID: 3f6c2a9d1b7e
Revises: 
Create Date: 2026-10-16 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f6c2a9d1b7e'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'service_configurations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('service_name', sa.String(length=100), nullable=False),
        sa.Column('display_name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=50), nullable=False, server_default='sync'),
        sa.Column('priority', sa.Integer(), nullable=False, server_default='2'),
        sa.Column('interval_minutes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_run', sa.DateTime(timezone=True), nullable=True),
        sa.Column('run_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('error_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('last_error_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_index(op.f('ix_service_configurations_id'), 'service_configurations', ['id'], unique=False)
    op.create_index(op.f('ix_service_configurations_service_name'), 'service_configurations', ['service_name'], unique=True)
    op.create_index(op.f('ix_service_configurations_is_enabled'), 'service_configurations', ['is_enabled'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_service_configurations_is_enabled'), table_name='service_configurations')
    op.drop_index(op.f('ix_service_configurations_service_name'), table_name='service_configurations')
    op.drop_index(op.f('ix_service_configurations_id'), table_name='service_configurations')

    op.drop_table('service_configurations')
