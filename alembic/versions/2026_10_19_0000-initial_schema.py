"""initial schema

Revision ID: 2026_10_19_0000
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = '2026_10_19_0000'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create accounts and credit balances."""

    # ========================================================================
    # Create accounts table
    # ========================================================================
    op.create_table(
        'accounts',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('anonymous_token', sa.String(255), nullable=False),
        sa.Column('is_pro', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),

        # One account per anonymous visitor
        sa.UniqueConstraint('anonymous_token', name='uq_accounts_anonymous_token'),
    )

    op.create_index('idx_accounts_created_at', 'accounts', ['created_at'])

    # ========================================================================
    # Create credit_balances table
    # ========================================================================
    op.create_table(
        'credit_balances',
        sa.Column(
            'account_id',
            UUID(as_uuid=True),
            sa.ForeignKey('accounts.id', ondelete='CASCADE'),
            primary_key=True,
        ),
        sa.Column('remaining', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),

        sa.CheckConstraint('remaining >= 0', name='ck_credit_balances_remaining_non_negative'),
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('credit_balances')
    op.drop_index('idx_accounts_created_at', table_name='accounts')
    op.drop_table('accounts')
