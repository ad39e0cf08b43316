"""Initial shortlet booking schema

Revision ID: 0001_initial
Revises:
Create Date: 2025-01-15 12:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('telegram_id', sa.BigInteger(), nullable=False),
        sa.Column('chat_id', sa.BigInteger(), nullable=True),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('username', sa.String(255), nullable=True),
        sa.Column('language_code', sa.String(10), nullable=False, server_default='en'),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('role', sa.String(20), nullable=False, server_default='user'),
        sa.Column('total_bookings', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('first_seen', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('last_seen', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_users_telegram_id', 'users', ['telegram_id'], unique=True)

    op.create_table(
        'property_owners',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('business_name', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('telegram_chat_id', sa.BigInteger(), nullable=True, unique=True),
        *_timestamps(),
    )

    op.create_table(
        'apartments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('owner_id', sa.Integer(), sa.ForeignKey('property_owners.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('location', sa.String(100), nullable=False),
        sa.Column('apartment_type', sa.String(50), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('max_guests', sa.Integer(), nullable=False, server_default='2'),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('idx_apartments_location', 'apartments', ['location'])
    op.create_index('idx_apartments_available', 'apartments', ['is_available'])

    op.create_table(
        'bookings',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('booking_code', sa.String(20), nullable=False),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('tenant_chat_id', sa.BigInteger(), nullable=False),
        sa.Column('apartment_id', sa.Integer(), sa.ForeignKey('apartments.id'), nullable=False),
        sa.Column('guest_name', sa.String(255), nullable=True),
        sa.Column('guest_phone', sa.String(50), nullable=True),
        sa.Column('check_in', sa.Date(), nullable=True),
        sa.Column('check_out', sa.Date(), nullable=True),
        sa.Column('nights', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('guests', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('commission', sa.Numeric(12, 2), nullable=False),
        sa.Column('tenant_confirmed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('tenant_confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('property_owner_confirmed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('property_owner_confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('dual_confirmation_notified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('dual_confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('access_pin', sa.String(5), nullable=False),
        sa.Column('pin_expiry', sa.DateTime(timezone=True), nullable=False),
        sa.Column('pin_used', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('commission_paid', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('commission_paid_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_bookings_booking_code', 'bookings', ['booking_code'], unique=True)
    op.create_index('idx_bookings_tenant_id', 'bookings', ['tenant_id'])
    op.create_index('idx_bookings_apartment_id', 'bookings', ['apartment_id'])
    op.create_index('idx_bookings_status', 'bookings', ['status'])

    op.create_table(
        'booking_status_history',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('booking_id', sa.Integer(), sa.ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('from_status', sa.String(20), nullable=True),
        sa.Column('to_status', sa.String(20), nullable=False),
        sa.Column('changed_by_chat_id', sa.BigInteger(), nullable=True),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'commission_entries',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('booking_id', sa.Integer(), sa.ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('booking_code', sa.String(20), nullable=False),
        sa.Column('owner_id', sa.Integer(), sa.ForeignKey('property_owners.id', ondelete='SET NULL'), nullable=True),
        sa.Column('apartment_id', sa.Integer(), sa.ForeignKey('apartments.id'), nullable=False),
        sa.Column('guest_name', sa.String(255), nullable=True),
        sa.Column('amount_paid', sa.Numeric(12, 2), nullable=False),
        sa.Column('commission_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('commission_status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('commission_paid_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_commission_entries_booking_code', 'commission_entries', ['booking_code'], unique=True)
    op.create_index('idx_commission_entries_owner_id', 'commission_entries', ['owner_id'])
    op.create_index('idx_commission_entries_status', 'commission_entries', ['commission_status'])

    op.create_table(
        'chat_sessions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('chat_id', sa.BigInteger(), nullable=False),
        sa.Column('flow', sa.String(50), nullable=False),
        sa.Column('step', sa.String(50), nullable=False),
        sa.Column('data', sa.JSON(), nullable=False),
        sa.Column('touched_at', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )
    op.create_index('idx_chat_sessions_chat_id', 'chat_sessions', ['chat_id'], unique=True)
    op.create_index('idx_chat_sessions_touched_at', 'chat_sessions', ['touched_at'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('chat_sessions')
    op.drop_table('commission_entries')
    op.drop_table('booking_status_history')
    op.drop_table('bookings')
    op.drop_table('apartments')
    op.drop_table('property_owners')
    op.drop_table('users')
