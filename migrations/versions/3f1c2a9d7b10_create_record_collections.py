"""Create record collections and store metadata

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-19 10:12:41.118204

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f1c2a9d7b10'
down_revision = None
branch_labels = None
depends_on = None

COLLECTIONS = ('customers', 'orders', 'ingredients', 'recipes', 'settings')


def upgrade():
    # Tables may already exist from init_db()'s create_all()
    existing = set(sa.inspect(op.get_bind()).get_table_names())
    for name in COLLECTIONS:
        if name not in existing:
            op.create_table(
                name,
                sa.Column('id', sa.String(length=64), nullable=False),
                sa.Column('data', sa.JSON(), nullable=False),
                sa.PrimaryKeyConstraint('id'),
            )
    if 'store_meta' not in existing:
        op.create_table(
            'store_meta',
            sa.Column('key', sa.String(length=50), nullable=False),
            sa.Column('value', sa.String(length=200), nullable=True),
            sa.PrimaryKeyConstraint('key'),
        )


def downgrade():
    op.drop_table('store_meta')
    for name in reversed(COLLECTIONS):
        op.drop_table(name)
