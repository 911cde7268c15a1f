"""initial

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-16 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('hotels',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('city', sa.String(length=128), nullable=True),
        sa.Column('contact_email', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    )
    op.create_index('ix_hotels_name', 'hotels', ['name'], unique=False)

    op.create_table('bookings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('reference', sa.String(length=64), nullable=False),
        sa.Column('hotel_id', sa.Integer(), nullable=False),
        sa.Column('guest_name', sa.String(length=255), nullable=False),
        sa.Column('guest_contact', sa.String(length=32), nullable=False),
        sa.Column('guest_email', sa.String(length=255), nullable=True),
        sa.Column('check_in_date', sa.Date(), nullable=False),
        sa.Column('check_out_date', sa.Date(), nullable=False),
        sa.Column('total_amount', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('payment_status', sa.String(length=32), nullable=False, server_default='pending'),
        sa.Column('transaction_id', sa.String(length=64), nullable=True),
        sa.Column('gateway_order_id', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['hotel_id'], ['hotels.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('reference', name='bookings_reference_key'),
    )
    op.create_index('ix_bookings_reference', 'bookings', ['reference'], unique=False)
    op.create_index('ix_bookings_hotel_id', 'bookings', ['hotel_id'], unique=False)
    op.create_index('ix_bookings_payment_status', 'bookings', ['payment_status'], unique=False)
    op.create_index('ix_bookings_transaction_id', 'bookings', ['transaction_id'], unique=False)
    op.create_index('ix_bookings_gateway_order_id', 'bookings', ['gateway_order_id'], unique=False)

    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('action', sa.String(length=255), nullable=False),
        sa.Column('object_type', sa.String(length=128), nullable=True),
        sa.Column('object_id', sa.String(length=128), nullable=True),
        sa.Column('detail', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    )


def downgrade():
    op.drop_table('audit_logs')
    op.drop_index('ix_bookings_gateway_order_id', table_name='bookings')
    op.drop_index('ix_bookings_transaction_id', table_name='bookings')
    op.drop_index('ix_bookings_payment_status', table_name='bookings')
    op.drop_index('ix_bookings_hotel_id', table_name='bookings')
    op.drop_index('ix_bookings_reference', table_name='bookings')
    op.drop_table('bookings')
    op.drop_index('ix_hotels_name', table_name='hotels')
    op.drop_table('hotels')
