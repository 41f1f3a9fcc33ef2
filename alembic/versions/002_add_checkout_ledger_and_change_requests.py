# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""add processed checkout sessions, participant change requests and event reminders

Revision ID: 002
Revises: 001
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '002'
down_revision: Union[str, None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'processed_checkout_sessions',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('session_id', sa.String(255), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('plan_id', sa.String(50), nullable=False),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_processed_checkout_sessions'),
        sa.UniqueConstraint('session_id', name='uq_processed_checkout_sessions_session_id'),
        sa.ForeignKeyConstraint(
            ['organization_id'], ['organizations.id'],
            name='fk_processed_checkout_sessions_organization_id_organizations',
            ondelete='CASCADE',
        ),
    )
    op.create_index(
        'idx_processed_checkout_sessions_organization',
        'processed_checkout_sessions',
        ['organization_id'],
    )
    # Sessions already applied before the ledger existed
    op.execute(
        """
        INSERT INTO processed_checkout_sessions (id, session_id, organization_id, plan_id, processed_at)
        SELECT gen_random_uuid(), payment_session_id, id,
               COALESCE(subscription_plan_id, subscription_type), COALESCE(subscription_start_date, now())
        FROM organizations
        WHERE payment_session_id IS NOT NULL
        """
    )

    op.create_table(
        'participant_change_requests',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('participant_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('event_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('participant_name', sa.String(255), nullable=False),
        sa.Column('participant_email', sa.String(255), nullable=False),
        sa.Column('request_type', sa.String(20), nullable=False),
        sa.Column('current_value', sa.String(50), nullable=True),
        sa.Column('requested_value', sa.String(50), nullable=True),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('organizer_comment', sa.Text(), nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_participant_change_requests'),
        sa.ForeignKeyConstraint(
            ['participant_id'], ['event_participants.id'],
            name='fk_participant_change_requests_participant_id_event_participants',
            ondelete='SET NULL',
        ),
        sa.ForeignKeyConstraint(
            ['event_id'], ['events.id'],
            name='fk_participant_change_requests_event_id_events', ondelete='CASCADE',
        ),
    )
    op.create_index(
        'idx_participant_change_requests_event',
        'participant_change_requests',
        ['event_id', 'status'],
    )

    op.add_column('events', sa.Column('reminder_sent_at', sa.DateTime(timezone=True), nullable=True))


def downgrade() -> None:
    op.drop_column('events', 'reminder_sent_at')
    op.drop_index('idx_participant_change_requests_event', 'participant_change_requests')
    op.drop_table('participant_change_requests')
    op.drop_index('idx_processed_checkout_sessions_organization', 'processed_checkout_sessions')
    op.drop_table('processed_checkout_sessions')
