# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""create organizations, events and carpool tables

Revision ID: 001
Revises:
Create Date: 2026-03-02

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
    op.create_table(
        'organizations',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('type', sa.String(20), nullable=False, server_default='club'),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('sports', sa.JSON(), nullable=False),
        sa.Column('contact_first_name', sa.String(100), nullable=True),
        sa.Column('contact_last_name', sa.String(100), nullable=True),
        sa.Column('role', sa.String(20), nullable=False, server_default='organization'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('subscription_type', sa.String(30), nullable=False, server_default='decouverte'),
        sa.Column('subscription_plan_id', sa.String(50), nullable=True),
        sa.Column('subscription_status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('payment_method', sa.String(20), nullable=True),
        sa.Column('stripe_customer_id', sa.String(255), nullable=True),
        sa.Column('stripe_subscription_id', sa.String(255), nullable=True),
        sa.Column('payment_session_id', sa.String(255), nullable=True),
        sa.Column('subscription_start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('subscription_end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('package_remaining_events', sa.Integer(), nullable=True),
        sa.Column('package_expiry_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('event_created_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('invitations_sent_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_reset_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_organizations'),
        sa.UniqueConstraint('email', name='uq_organizations_email'),
    )
    op.create_index('idx_organizations_subscription_type', 'organizations', ['subscription_type'])
    op.create_index('idx_organizations_stripe_customer', 'organizations', ['stripe_customer_id'])
    op.create_index('idx_organizations_stripe_subscription', 'organizations', ['stripe_subscription_id'])
    op.create_index('idx_organizations_package_expiry', 'organizations', ['package_expiry_date'])

    op.create_table(
        'events',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('sport', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('meeting_point', sa.Text(), nullable=False),
        sa.Column('destination', sa.Text(), nullable=False),
        sa.Column('is_recurring', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('recurrence_pattern', sa.String(50), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='confirmed'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_events'),
        sa.ForeignKeyConstraint(
            ['organization_id'], ['organizations.id'],
            name='fk_events_organization_id_organizations', ondelete='CASCADE',
        ),
    )
    op.create_index('idx_events_organization', 'events', ['organization_id'])
    op.create_index('idx_events_date', 'events', ['date'])

    op.create_table(
        'event_participants',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('event_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('available_seats', sa.Integer(), nullable=True),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='confirmed'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_event_participants'),
        sa.ForeignKeyConstraint(
            ['event_id'], ['events.id'],
            name='fk_event_participants_event_id_events', ondelete='CASCADE',
        ),
        sa.UniqueConstraint('event_id', 'email', name='uq_event_participants_event_email'),
    )
    op.create_index('idx_event_participants_event', 'event_participants', ['event_id'])

    op.create_table(
        'event_invitations',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('event_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, server_default=''),
        sa.Column('token', sa.String(64), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_event_invitations'),
        sa.ForeignKeyConstraint(
            ['event_id'], ['events.id'],
            name='fk_event_invitations_event_id_events', ondelete='CASCADE',
        ),
    )
    op.create_index('ix_event_invitations_token', 'event_invitations', ['token'], unique=True)
    op.create_index('idx_event_invitations_event', 'event_invitations', ['event_id'])

    op.create_table(
        'messages',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('event_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('sender_name', sa.String(255), nullable=False),
        sa.Column('sender_email', sa.String(255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('is_from_organizer', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_broadcast', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('reply_to_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_messages'),
        sa.ForeignKeyConstraint(
            ['event_id'], ['events.id'],
            name='fk_messages_event_id_events', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['reply_to_id'], ['messages.id'],
            name='fk_messages_reply_to_id_messages', ondelete='SET NULL',
        ),
    )
    op.create_index('idx_messages_event', 'messages', ['event_id'])

    op.create_table(
        'notifications',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('type', sa.String(20), nullable=False, server_default='info'),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('action_url', sa.String(500), nullable=True),
        sa.Column('event_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_notifications'),
        sa.ForeignKeyConstraint(
            ['organization_id'], ['organizations.id'],
            name='fk_notifications_organization_id_organizations', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['event_id'], ['events.id'],
            name='fk_notifications_event_id_events', ondelete='SET NULL',
        ),
    )
    op.create_index('idx_notifications_organization', 'notifications', ['organization_id'])
    op.create_index('idx_notifications_unread', 'notifications', ['organization_id', 'read'])

    op.create_table(
        'subscription_reminder_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('reminder_type', sa.String(30), nullable=False),
        sa.Column('days_before_expiry', sa.Integer(), nullable=False),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_subscription_reminder_logs'),
        sa.ForeignKeyConstraint(
            ['organization_id'], ['organizations.id'],
            name='fk_subscription_reminder_logs_organization_id_organizations', ondelete='CASCADE',
        ),
    )
    op.create_index(
        'idx_reminder_logs_lookup',
        'subscription_reminder_logs',
        ['organization_id', 'reminder_type', 'days_before_expiry'],
    )


def downgrade() -> None:
    op.drop_index('idx_reminder_logs_lookup', 'subscription_reminder_logs')
    op.drop_table('subscription_reminder_logs')
    op.drop_index('idx_notifications_unread', 'notifications')
    op.drop_index('idx_notifications_organization', 'notifications')
    op.drop_table('notifications')
    op.drop_index('idx_messages_event', 'messages')
    op.drop_table('messages')
    op.drop_index('idx_event_invitations_event', 'event_invitations')
    op.drop_index('ix_event_invitations_token', 'event_invitations')
    op.drop_table('event_invitations')
    op.drop_index('idx_event_participants_event', 'event_participants')
    op.drop_table('event_participants')
    op.drop_index('idx_events_date', 'events')
    op.drop_index('idx_events_organization', 'events')
    op.drop_table('events')
    op.drop_index('idx_organizations_package_expiry', 'organizations')
    op.drop_index('idx_organizations_stripe_subscription', 'organizations')
    op.drop_index('idx_organizations_stripe_customer', 'organizations')
    op.drop_index('idx_organizations_subscription_type', 'organizations')
    op.drop_table('organizations')
