"""Create booking lifecycle tables

Revision ID: b001_create_booking_tables
Revises:
Create Date: 2026-10-19

Creates:
- bookings (versioned negotiation record)
- booking_changes (field-level change log)
- booking_audit_log (status transitions and confirmation resets)
- booking_history (scrubbed archive of cancelled/deleted bookings)
- public_events (listings derived from published bookings)
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

# revision identifiers, used by Alembic.
revision = 'b001_create_booking_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'bookings',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('sender_id', sa.String(), nullable=False, index=True),
        sa.Column('receiver_id', sa.String(), nullable=False, index=True),
        sa.Column('status', sa.String(), nullable=False, server_default=sa.text("'pending'")),

        # Negotiable fields
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('event_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('start_time', sa.String(5), nullable=True),
        sa.Column('end_time', sa.String(5), nullable=True),
        sa.Column('venue', sa.String(), nullable=True),
        sa.Column('address', sa.String(), nullable=True),
        sa.Column('audience_estimate', sa.Integer(), nullable=True),
        sa.Column('ticket_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('pricing_mode', sa.String(), nullable=False, server_default=sa.text("'by_agreement'")),
        sa.Column('artist_fee', sa.Numeric(12, 2), nullable=True),
        sa.Column('door_percentage', sa.Integer(), nullable=True),
        sa.Column('tech_spec', sa.Text(), nullable=True),
        sa.Column('hospitality_rider', sa.Text(), nullable=True),
        sa.Column('personal_message', sa.Text(), nullable=True),
        sa.Column('selected_concept_id', sa.String(), nullable=True),
        sa.Column('concept_ids', JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),

        # Confirmation
        sa.Column('sender_confirmed', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('receiver_confirmed', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('sender_confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('receiver_confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('sender_read_agreement', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('receiver_read_agreement', sa.Boolean(), nullable=False, server_default=sa.text('false')),

        # Disclosure
        sa.Column('public_visibility_settings', JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column('is_public_after_approval', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('agreement_summary', JSONB(), nullable=True),
        sa.Column('sender_contact_info', JSONB(), nullable=True),
        sa.Column('receiver_contact_info', JSONB(), nullable=True),

        sa.Column('allowed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_modified_by', sa.String(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default=sa.text('1')),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),

        sa.CheckConstraint('sender_id <> receiver_id', name='ck_bookings_distinct_parties'),
        sa.CheckConstraint(
            "status IN ('pending', 'allowed', 'approved_by_sender', "
            "'approved_by_receiver', 'approved_by_both', 'upcoming', "
            "'completed', 'cancelled', 'deleted')",
            name='ck_bookings_status',
        ),
        sa.CheckConstraint(
            "pricing_mode IN ('fixed_fee', 'door_deal', 'by_agreement')",
            name='ck_bookings_pricing_mode',
        ),
        sa.CheckConstraint(
            'audience_estimate IS NULL OR audience_estimate >= 0',
            name='ck_bookings_audience_non_negative',
        ),
    )
    op.create_index('ix_bookings_sender_status', 'bookings', ['sender_id', 'status'])
    op.create_index('ix_bookings_receiver_status', 'bookings', ['receiver_id', 'status'])

    op.create_table(
        'booking_changes',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('booking_id', sa.String(), sa.ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('changed_by', sa.String(), nullable=False),
        sa.Column('field_name', sa.String(50), nullable=False),
        sa.Column('old_value', sa.Text(), nullable=True),
        sa.Column('new_value', sa.Text(), nullable=True),
        sa.Column('acknowledged_by_sender', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('acknowledged_by_receiver', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('change_timestamp', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
    )

    op.create_table(
        'booking_audit_log',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('booking_id', sa.String(), sa.ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('user_id', sa.String(), nullable=False, index=True),
        sa.Column('action', sa.String(50), nullable=False, index=True),
        sa.Column('old_state', sa.String(50), nullable=True),
        sa.Column('new_state', sa.String(50), nullable=True),
        sa.Column('action_metadata', JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
    )
    op.create_index(
        'idx_booking_audit_created_desc',
        'booking_audit_log',
        ['booking_id', sa.text('created_at DESC')],
    )

    # No columns for contact info, pricing, personal message, tech spec
    # or hospitality rider
    op.create_table(
        'booking_history',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('booking_id', sa.String(), nullable=False, unique=True, index=True),
        sa.Column('sender_id', sa.String(), nullable=False, index=True),
        sa.Column('receiver_id', sa.String(), nullable=False, index=True),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('previous_status', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('event_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('start_time', sa.String(5), nullable=True),
        sa.Column('end_time', sa.String(5), nullable=True),
        sa.Column('venue', sa.String(), nullable=True),
        sa.Column('address', sa.String(), nullable=True),
        sa.Column('audience_estimate', sa.Integer(), nullable=True),
        sa.Column('selected_concept_id', sa.String(), nullable=True),
        sa.Column('archived_by', sa.String(), nullable=False),
        sa.Column('deletion_reason', sa.Text(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.Column('booking_created_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        'public_events',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('source_booking_id', sa.String(), nullable=False),
        sa.Column('artist_id', sa.String(), nullable=False, index=True),
        sa.Column('organizer_id', sa.String(), nullable=False, index=True),
        sa.Column('portfolio_id', sa.String(), nullable=True),
        sa.Column('title', sa.String(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('event_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('start_time', sa.String(5), nullable=True),
        sa.Column('end_time', sa.String(5), nullable=True),
        sa.Column('venue', sa.String(), nullable=True),
        sa.Column('address', sa.String(), nullable=True),
        sa.Column('ticket_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('audience_estimate', sa.Integer(), nullable=True),
        sa.Column('show_portfolio', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('show_artist_bio', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('published_by', sa.String(), nullable=False),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        # One listing per booking
        sa.UniqueConstraint('source_booking_id', name='uq_public_events_source_booking'),
    )
    op.create_index('ix_public_events_event_date', 'public_events', ['event_date'])


def downgrade() -> None:
    op.drop_index('ix_public_events_event_date', table_name='public_events')
    op.drop_table('public_events')
    op.drop_table('booking_history')
    op.drop_index('idx_booking_audit_created_desc', table_name='booking_audit_log')
    op.drop_table('booking_audit_log')
    op.drop_table('booking_changes')
    op.drop_index('ix_bookings_receiver_status', table_name='bookings')
    op.drop_index('ix_bookings_sender_status', table_name='bookings')
    op.drop_table('bookings')
