"""Actor schema - administrators, users, operative users

Revision ID: 0001
Revises: 
Create Date: 2026-10-16

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _actor_columns() -> list:
    return [
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('username', sa.String(100), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('refresh_token_hash', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    ]


def _unique_indexes(table: str) -> None:
    op.create_index(f'ix_{table}_email', table, ['email'], unique=True)
    op.create_index(f'ix_{table}_username', table, ['username'], unique=True)


def upgrade() -> None:
    op.create_table(
        'administrators',
        *_actor_columns(),
        sa.Column('modules', sa.JSON(), nullable=True),
        sa.Column('recover_password_id', sa.String(255), nullable=True),
    )
    _unique_indexes('administrators')

    op.create_table(
        'users',
        *_actor_columns(),
        sa.Column('language', sa.String(10), nullable=False, server_default='es'),
    )
    _unique_indexes('users')

    op.create_table(
        'operative_users',
        *_actor_columns(),
        sa.Column(
            'created_by_id',
            sa.Uuid(),
            sa.ForeignKey('administrators.id', ondelete='SET NULL'),
            nullable=True,
        ),
    )
    _unique_indexes('operative_users')
    op.create_index('ix_operative_users_created_by_id', 'operative_users', ['created_by_id'])


def downgrade() -> None:
    op.drop_table('operative_users')
    op.drop_table('users')
    op.drop_table('administrators')
