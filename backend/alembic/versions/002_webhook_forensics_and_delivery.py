"""Webhook forensics and courier delivery tracking

Revision ID: 002_webhook_forensics_and_delivery
Revises: 001_initial
Create Date: 2026-10-19

Adds:
- source_ip and signature columns on webhook_event_logs
- courier/tracking columns on pending_purchases
- AWAITING_DELIVERY purchase status
- TRACKING_SUBMITTED, TRACKING_REMINDER_SENT, CLIENT_SELECTION_SUBMITTED activity actions
"""

from alembic import op
import sqlalchemy as sa

revision = '002_webhook_forensics_and_delivery'
down_revision = '001_initial'
branch_labels = None
depends_on = None


def upgrade() -> None:
    # New enum values cannot be added inside a transaction block
    op.execute("COMMIT")
    op.execute("ALTER TYPE purchasestatus ADD VALUE IF NOT EXISTS 'AWAITING_DELIVERY'")
    op.execute("ALTER TYPE activityaction ADD VALUE IF NOT EXISTS 'TRACKING_SUBMITTED'")
    op.execute("ALTER TYPE activityaction ADD VALUE IF NOT EXISTS 'TRACKING_REMINDER_SENT'")
    op.execute("ALTER TYPE activityaction ADD VALUE IF NOT EXISTS 'CLIENT_SELECTION_SUBMITTED'")
    op.execute("BEGIN")

    op.add_column('webhook_event_logs', sa.Column('source_ip', sa.String(64), nullable=True))
    op.add_column('webhook_event_logs', sa.Column('signature_provided', sa.String(128), nullable=True))
    op.add_column('webhook_event_logs', sa.Column('signature_computed', sa.String(128), nullable=True))
    op.add_column('webhook_event_logs', sa.Column('signature_valid', sa.Boolean(), nullable=True))

    op.add_column('pending_purchases', sa.Column('courier_company', sa.String(120), nullable=True))
    op.add_column('pending_purchases', sa.Column('tracking_number', sa.String(120), nullable=True))
    op.add_column('pending_purchases', sa.Column('tracking_submitted_at', sa.DateTime(), nullable=True))
    op.add_column('pending_purchases', sa.Column(
        'tracking_reminders_sent', sa.Integer(), nullable=False, server_default='0'))
    op.add_column('pending_purchases', sa.Column('last_tracking_reminder_at', sa.DateTime(), nullable=True))
    op.add_column('pending_purchases', sa.Column(
        'flagged_for_follow_up', sa.Boolean(), nullable=False, server_default=sa.false()))


def downgrade() -> None:
    # Enum values are left in place; Postgres cannot drop them
    op.drop_column('pending_purchases', 'flagged_for_follow_up')
    op.drop_column('pending_purchases', 'last_tracking_reminder_at')
    op.drop_column('pending_purchases', 'tracking_reminders_sent')
    op.drop_column('pending_purchases', 'tracking_submitted_at')
    op.drop_column('pending_purchases', 'tracking_number')
    op.drop_column('pending_purchases', 'courier_company')

    op.drop_column('webhook_event_logs', 'signature_valid')
    op.drop_column('webhook_event_logs', 'signature_computed')
    op.drop_column('webhook_event_logs', 'signature_provided')
    op.drop_column('webhook_event_logs', 'source_ip')
