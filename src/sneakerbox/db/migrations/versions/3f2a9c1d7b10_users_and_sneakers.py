"""users and sneakers

Learn: google_id is UNIQUE but nullable. Postgres treats NULLs as
distinct, which gives "sparse" uniqueness: any number of password-only
accounts, but never two accounts on the same Google id.

Revision ID: 3f2a9c1d7b10
Revises:
Create Date: 2026-10-19 09:12:44.118203
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('username', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('google_id', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            'password_hash IS NOT NULL OR google_id IS NOT NULL',
            name='ck_users_auth_path',
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sa.UniqueConstraint('google_id'),
        sa.UniqueConstraint('username'),
    )
    op.create_table(
        'sneakers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('brand', sa.String(length=100), nullable=False),
        sa.Column('model', sa.String(length=100), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('color', sa.String(length=50), nullable=False),
        sa.Column('size', sa.Float(), nullable=False),
        sa.Column('in_stock', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('price >= 0', name='ck_sneakers_price'),
        sa.CheckConstraint('size >= 4 AND size <= 18', name='ck_sneakers_size'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'idx_sneakers_user_created', 'sneakers', ['user_id', 'created_at'], unique=False
    )


def downgrade() -> None:
    op.drop_index('idx_sneakers_user_created', table_name='sneakers')
    op.drop_table('sneakers')
    op.drop_table('users')
