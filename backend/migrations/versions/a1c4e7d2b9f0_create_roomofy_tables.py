"""create user, room, wallet_account and wallet_transaction tables

Revision ID: a1c4e7d2b9f0
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a1c4e7d2b9f0'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    existing_tables = set(sa.inspect(bind).get_table_names())

    if 'user' not in existing_tables:
        op.create_table(
            'user',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('mobile', sa.String(length=32), nullable=False),
            sa.Column('password_hash', sa.String(length=128), nullable=False),
            sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        )
        op.create_index('ix_user_mobile', 'user', ['mobile'], unique=True)

    if 'room' not in existing_tables:
        op.create_table(
            'room',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('title', sa.String(length=128), nullable=False),
            sa.Column('price', sa.Integer(), nullable=False),
            sa.Column('ac', sa.String(length=16), nullable=False, server_default='Non-AC'),
            sa.Column('location', sa.String(length=128), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('photo_url', sa.String(length=512), nullable=True),
            sa.Column('is_visible', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('rating', sa.Float(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        )

    if 'wallet_account' not in existing_tables:
        op.create_table(
            'wallet_account',
            sa.Column('id', sa.String(length=64), primary_key=True),
            sa.Column('balance', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        )

    if 'wallet_transaction' not in existing_tables:
        op.create_table(
            'wallet_transaction',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('account_id', sa.String(length=64), sa.ForeignKey('wallet_account.id'), nullable=False),
            sa.Column('direction', sa.String(length=8), nullable=False),
            sa.Column('amount', sa.Integer(), nullable=False),
            sa.Column('reason', sa.String(length=255), nullable=False, server_default=''),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        )
        op.create_index('ix_wallet_transaction_account_id', 'wallet_transaction', ['account_id'])


def downgrade():
    op.drop_index('ix_wallet_transaction_account_id', table_name='wallet_transaction')
    op.drop_table('wallet_transaction')
    op.drop_table('wallet_account')
    op.drop_table('room')
    op.drop_index('ix_user_mobile', table_name='user')
    op.drop_table('user')
