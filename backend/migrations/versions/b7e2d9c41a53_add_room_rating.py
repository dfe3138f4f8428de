"""per-user room ratings; drop admin-set room.rating

Revision ID: b7e2d9c41a53
Revises: a1c4e7d2b9f0
Create Date: 2026-10-20 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'b7e2d9c41a53'
down_revision = 'a1c4e7d2b9f0'
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)

    if 'room_rating' not in set(insp.get_table_names()):
        op.create_table(
            'room_rating',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('room_id', sa.Integer(), sa.ForeignKey('room.id'), nullable=False),
            sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
            sa.Column('value', sa.Integer(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
            sa.UniqueConstraint('room_id', 'user_id', name='uq_room_rating_room_user'),
        )
        op.create_index('ix_room_rating_room_id', 'room_rating', ['room_id'])

    cols = {c['name'] for c in insp.get_columns('room')}
    if 'rating' in cols:
        with op.batch_alter_table('room') as batch_op:
            batch_op.drop_column('rating')


def downgrade():
    with op.batch_alter_table('room') as batch_op:
        batch_op.add_column(sa.Column('rating', sa.Float(), nullable=True))
    op.drop_index('ix_room_rating_room_id', table_name='room_rating')
    op.drop_table('room_rating')
