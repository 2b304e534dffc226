"""Initial schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create initial database schema:
    - links table: shortened URLs, unique on segment and on original_url
    - clicks table: append-only click log referencing links
    """
    bind = op.get_bind()
    existing_tables = inspect(bind).get_table_names()

    if 'links' not in existing_tables:
        op.create_table(
            'links',
            sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
            sa.Column('original_url', sa.String(length=1000), nullable=False),
            sa.Column('segment', sa.String(length=15), nullable=False),
            sa.Column('submitter_ip', sa.String(length=45), nullable=False),
            sa.Column('title', sa.Text(), nullable=False, server_default=''),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('expires_at', sa.DateTime(), nullable=True),
            sa.Column('click_count', sa.Integer(), nullable=False, server_default='0'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('original_url'),
        )

        op.create_index('ix_links_segment', 'links', ['segment'], unique=True)
        op.create_index('ix_links_created_at', 'links', ['created_at'])
        op.create_index(
            'ix_links_submitter_ip_created_at',
            'links',
            ['submitter_ip', 'created_at']
        )

    if 'clicks' not in existing_tables:
        op.create_table(
            'clicks',
            sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
            sa.Column('link_id', sa.Integer(), nullable=False),
            sa.Column('ip', sa.String(length=45), nullable=False),
            sa.Column('referer', sa.Text(), nullable=False, server_default=''),
            sa.Column('clicked_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id'),
            sa.ForeignKeyConstraint(['link_id'], ['links.id']),
        )

        op.create_index('ix_clicks_link_id', 'clicks', ['link_id'])
        op.create_index('ix_clicks_clicked_at', 'clicks', ['clicked_at'])


def downgrade() -> None:
    """
    Drop all tables and indexes.
    """
    op.drop_index('ix_clicks_clicked_at', table_name='clicks')
    op.drop_index('ix_clicks_link_id', table_name='clicks')
    op.drop_table('clicks')

    op.drop_index('ix_links_submitter_ip_created_at', table_name='links')
    op.drop_index('ix_links_created_at', table_name='links')
    op.drop_index('ix_links_segment', table_name='links')
    op.drop_table('links')
