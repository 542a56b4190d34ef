"""create documenttemplates table

Revision ID: 3b7c1d9e2a41
Revises:
Create Date: 2026-10-19 09:00:00
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '3b7c1d9e2a41'
down_revision = None
branch_labels = None
depends_on = None

document_type_enum = sa.Enum('cheque', 'invoice', name='document_type_enum')


def upgrade() -> None:
    op.create_table(
        'documenttemplates',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('client_id', sa.Integer(), nullable=False),
        sa.Column('document_type', document_type_enum, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_default', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('sections', sa.JSON(), nullable=False),
        sa.Column('page_width', sa.Float(), nullable=False),
        sa.Column('page_height', sa.Float(), nullable=False),
        sa.Column('ui_preferences', sa.JSON(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_documenttemplates_id'), 'documenttemplates', ['id'], unique=False)
    op.create_index(op.f('ix_documenttemplates_client_id'), 'documenttemplates', ['client_id'], unique=False)
    op.create_index(op.f('ix_documenttemplates_document_type'), 'documenttemplates', ['document_type'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_documenttemplates_document_type'), table_name='documenttemplates')
    op.drop_index(op.f('ix_documenttemplates_client_id'), table_name='documenttemplates')
    op.drop_index(op.f('ix_documenttemplates_id'), table_name='documenttemplates')
    op.drop_table('documenttemplates')
    # Postgres keeps the enum type after the table is gone
    document_type_enum.drop(op.get_bind(), checkfirst=True)
