"""Slugs and hits

Revision ID: 001_slugs_and_hits
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_slugs_and_hits'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the schema:
    - slugs: slug records (token -> redirect, owned by a user)
    - hits: append-only hit log, embedding a snapshot of the slug (no foreign key)
    """
    op.create_table(
        'slugs',
        sa.Column('pk', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('domain', sa.Text(), nullable=False),
        sa.Column('userid', sa.String(length=128), nullable=False),
        sa.Column('createdat', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updatedat', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('pk')
    )
    op.create_index('ix_slugs_id', 'slugs', ['id'], unique=True)
    op.create_index('ix_slugs_slug', 'slugs', ['slug'])
    op.create_index('ix_slugs_userid', 'slugs', ['userid'])
    op.create_index('ix_slugs_createdat', 'slugs', ['createdat'])

    op.create_table(
        'hits',
        sa.Column('pk', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('slug_id', sa.String(length=32), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('domain', sa.Text(), nullable=False),
        sa.Column('userid', sa.String(length=128), nullable=False),
        sa.Column('hittedat', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('pk')
    )
    op.create_index('ix_hits_slug_id', 'hits', ['slug_id'])
    op.create_index('ix_hits_hittedat', 'hits', ['hittedat'])


def downgrade() -> None:
    op.drop_index('ix_hits_hittedat', table_name='hits')
    op.drop_index('ix_hits_slug_id', table_name='hits')
    op.drop_table('hits')

    op.drop_index('ix_slugs_createdat', table_name='slugs')
    op.drop_index('ix_slugs_userid', table_name='slugs')
    op.drop_index('ix_slugs_slug', table_name='slugs')
    op.drop_index('ix_slugs_id', table_name='slugs')
    op.drop_table('slugs')
