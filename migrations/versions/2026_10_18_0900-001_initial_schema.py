"""Initial schema

Revision ID: 001
Revises: 
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, approval requests, delegations and comments."""

    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='Requester'),
        sa.Column('department', sa.String(length=100), nullable=True),
        sa.Column('position', sa.String(length=100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table(
        'approval_requests',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('request_type', sa.String(length=20), nullable=False, server_default='Other'),
        sa.Column('requester_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('approver_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('actual_approver_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='Pending'),
        sa.Column('priority', sa.String(length=20), nullable=False, server_default='Medium'),
        sa.Column('amount', sa.Numeric(14, 2), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['requester_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['approver_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['actual_approver_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_approval_requests_id', 'approval_requests', ['id'])
    op.create_index('ix_approval_requests_requester_id', 'approval_requests', ['requester_id'])
    op.create_index('ix_approval_requests_approver_id', 'approval_requests', ['approver_id'])
    op.create_index('ix_approval_requests_status', 'approval_requests', ['status'])
    op.create_index(
        'ix_approval_requests_approver_id_status', 'approval_requests', ['approver_id', 'status']
    )
    op.create_index(
        'ix_approval_requests_requester_id_created_at',
        'approval_requests',
        ['requester_id', 'created_at'],
    )

    op.create_table(
        'delegations',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('delegator_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('delegate_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('auto_expired', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['delegator_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['delegate_id'], ['users.id'], ondelete='CASCADE'),
        sa.CheckConstraint('end_date > start_date', name='ck_delegations_end_after_start'),
        sa.CheckConstraint('delegator_id <> delegate_id', name='ck_delegations_not_self'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_delegations_id', 'delegations', ['id'])
    op.create_index(
        'ix_delegations_delegator_active_window',
        'delegations',
        ['delegator_id', 'is_active', 'start_date', 'end_date'],
    )
    op.create_index('ix_delegations_delegate_id_is_active', 'delegations', ['delegate_id', 'is_active'])
    op.create_index('ix_delegations_is_active_end_date', 'delegations', ['is_active', 'end_date'])

    # At most one active delegation per delegator at any instant. Closed
    # ranges match the inclusive window semantics used by the overlap check.
    op.execute('CREATE EXTENSION IF NOT EXISTS btree_gist')
    op.execute(
        """
        ALTER TABLE delegations
        ADD CONSTRAINT ex_delegations_active_window
        EXCLUDE USING gist (
            delegator_id WITH =,
            tstzrange(start_date, end_date, '[]') WITH &&
        ) WHERE (is_active)
        """
    )

    op.create_table(
        'comments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('request_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('comment', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['request_id'], ['approval_requests.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_comments_id', 'comments', ['id'])
    op.create_index('ix_comments_request_id', 'comments', ['request_id'])
    op.create_index('ix_comments_request_id_created_at', 'comments', ['request_id', 'created_at'])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('comments')
    op.drop_table('delegations')
    op.drop_table('approval_requests')
    op.drop_table('users')
