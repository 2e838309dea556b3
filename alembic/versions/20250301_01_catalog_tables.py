"""Create comics and upcoming_books tables

Revision ID: 20250301_01
Revises:
Create Date: 2025-03-01
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '20250301_01'
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        'comics',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('genre', sa.String(), nullable=False, server_default=''),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('media_urls', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_comics_id', 'comics', ['id'])
    op.create_index('ix_comics_title', 'comics', ['title'], unique=True)

    op.create_table(
        'upcoming_books',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('author', sa.String(), nullable=False, server_default=''),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('genre', sa.String(), nullable=False, server_default=''),
        sa.Column('release_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='upcoming'),
        sa.Column('pre_order', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('media_urls', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_upcoming_books_id', 'upcoming_books', ['id'])
    op.create_index('ix_upcoming_books_title', 'upcoming_books', ['title'], unique=True)


def downgrade() -> None:
    op.drop_index('ix_upcoming_books_title', table_name='upcoming_books')
    op.drop_index('ix_upcoming_books_id', table_name='upcoming_books')
    op.drop_table('upcoming_books')
    op.drop_index('ix_comics_title', table_name='comics')
    op.drop_index('ix_comics_id', table_name='comics')
    op.drop_table('comics')
