"""add_collector_tables

Revision ID: 3c7e91a0d2f4
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c7e91a0d2f4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'tokens',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('symbol', sa.String(length=20), nullable=True),
        sa.Column('name', sa.String(length=100), nullable=True),
        sa.Column('decimals', sa.SmallInteger(), nullable=True),
        sa.Column('l1_address', sa.String(length=42), nullable=True, comment='L1 token address'),
        sa.Column('l2_address', sa.String(length=66), nullable=True, comment='L2 token address'),
        sa.Column('l1_allow_list_status', sa.String(length=20), nullable=True, comment='UNKNOWN / PROPOSED / ACCEPTED / REJECTED'),
        sa.Column('l1_allow_list_proposal_tx', sa.String(length=66), nullable=True),
        sa.Column('l1_allow_list_proposer', sa.String(length=42), nullable=True),
        sa.Column('l1_allow_list_approver', sa.String(length=42), nullable=True),
        sa.Column('l1_allow_list_resolution_tx', sa.String(length=66), nullable=True),
        sa.Column('l1_registration_submitter', sa.String(length=42), nullable=True),
        sa.Column('l1_registration_block', sa.BigInteger(), nullable=True),
        sa.Column('l1_registration_tx', sa.String(length=66), nullable=True),
        sa.Column('l1_to_l2_message_hash', sa.String(length=66), nullable=True, comment='Leaf of the L1->L2 registration message'),
        sa.Column('l1_to_l2_message_index', sa.BigInteger(), nullable=True),
        sa.Column('l2_registration_available_block', sa.BigInteger(), nullable=True, comment='First L2 block that can consume the message'),
        sa.Column('l2_registration_block', sa.BigInteger(), nullable=True),
        sa.Column('l2_registration_tx', sa.String(length=66), nullable=True),
        sa.Column('l2_registration_tx_index', sa.Integer(), nullable=True),
        sa.Column('l2_registration_log_index', sa.Integer(), nullable=True),
        sa.Column('l2_registration_submitter', sa.String(length=66), nullable=True),
        sa.Column('l2_registration_fee_payer', sa.String(length=66), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('l2_address'),
        sa.UniqueConstraint('l1_to_l2_message_hash')
    )
    op.create_index(op.f('ix_tokens_l1_address'), 'tokens', ['l1_address'], unique=True)

    op.create_table(
        'block_progress',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('chain', sa.String(length=10), nullable=False, comment='L1 or L2'),
        sa.Column('last_scanned_block', sa.BigInteger(), nullable=False, comment='Highest block fully processed by the collector'),
        sa.Column('last_scan_timestamp', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('chain')
    )

    op.create_table(
        'contract_instances',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('address', sa.String(length=66), nullable=False, comment='L2 contract address'),
        sa.Column('portal_address', sa.String(length=66), nullable=True),
        sa.Column('deployment_params', sa.JSON(), nullable=True, comment='Constructor arguments used for the instance'),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_contract_instances_address'), 'contract_instances', ['address'], unique=True)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_contract_instances_address'), table_name='contract_instances')
    op.drop_table('contract_instances')
    op.drop_table('block_progress')
    op.drop_index(op.f('ix_tokens_l1_address'), table_name='tokens')
    op.drop_table('tokens')
