"""create users and login_attempts

Revision ID: a3f1c9d2e4b7
Revises:
Create Date: 2026-10-19 09:12:40.118233

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'a3f1c9d2e4b7'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the account and login-attempt tables."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('business_id', sa.Integer(), nullable=False),
        sa.Column('role_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False, server_default=''),
        sa.Column('alias', sa.String(length=100), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('status', sa.SmallInteger(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('alias', name='uq_users_alias'),
    )
    op.create_index('ix_users_business_id', 'users', ['business_id'])

    op.create_table(
        'login_attempts',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('alias', sa.String(length=100), nullable=False),
        sa.Column('business_id', sa.Integer(), nullable=True),
        sa.Column('failed_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('locked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_success_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_attempt_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('alias', name='uq_login_attempts_alias'),
    )


def downgrade() -> None:
    """Drop the account and login-attempt tables."""
    op.drop_table('login_attempts')
    op.drop_index('ix_users_business_id', table_name='users')
    op.drop_table('users')
