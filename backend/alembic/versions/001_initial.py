"""Initial migration - create documents table

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'documents',
        sa.Column('path', sa.String(512), primary_key=True),
        sa.Column('collection', sa.String(512), nullable=False),
        sa.Column('owner_id', sa.String(128), nullable=True),
        sa.Column('data', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_documents_collection', 'documents', ['collection'])
    op.create_index('ix_documents_owner_id', 'documents', ['owner_id'])
    op.create_index('ix_documents_collection_owner', 'documents', ['collection', 'owner_id'])


def downgrade() -> None:
    op.drop_index('ix_documents_collection_owner', table_name='documents')
    op.drop_index('ix_documents_owner_id', table_name='documents')
    op.drop_index('ix_documents_collection', table_name='documents')
    op.drop_table('documents')
