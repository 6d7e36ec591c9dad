"""Initial GearDesk schema

Revision ID: 001_initial
Revises: 
Create Date: 2026-01-12

All tables, money as INTEGER CENTS.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UUID = postgresql.UUID(as_uuid=True)
JSONB = postgresql.JSONB()

PRODUCT_TYPE = ('CAMERA_BODY', 'LENS', 'FLASH', 'DRONE', 'VIDEO_CAMERA', 'ACCESSORY', 'OTHER')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    # === USERS ===
    op.create_table(
        'users',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('firebase_uid', sa.String(128), unique=True, nullable=False, index=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('role', sa.Enum('STAFF', 'ADMIN', name='userrole'), nullable=False),
        sa.Column('is_active', sa.Boolean(), default=True),
        *_timestamps(),
    )

    # === VENDORS / CLIENTS ===
    op.create_table(
        'vendors',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), default=True),
        *_timestamps(),
    )

    op.create_table(
        'clients',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('first_name', sa.String(120), nullable=False),
        sa.Column('last_name', sa.String(120), nullable=False),
        sa.Column('phone', sa.String(50), nullable=False, index=True),
        sa.Column('email', sa.String(255), nullable=True, index=True),
        sa.Column('merged_into_id', UUID, sa.ForeignKey('clients.id', ondelete='SET NULL'), nullable=True),
        sa.Column('merged_at', sa.DateTime(), nullable=True),
        *_timestamps(),
    )

    # === PURCHASES ===
    op.create_table(
        'pending_purchases',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('customer_name', sa.String(255), nullable=False),
        sa.Column('customer_phone', sa.String(50), nullable=False, index=True),
        sa.Column('customer_email', sa.String(255), nullable=True),
        sa.Column('whatsapp_conversation_id', sa.String(255), nullable=True, index=True),
        sa.Column('total_quote_amount_cents', sa.Integer(), default=0),
        sa.Column('bot_quote_accepted_at', sa.DateTime(), nullable=True),
        sa.Column('bot_conversation_data', JSONB, nullable=True),
        sa.Column('status', sa.Enum(
            'PENDING_REVIEW', 'QUOTE_SENT', 'CLIENT_ACCEPTED', 'CLIENT_DECLINED', 'AWAITING_PAYMENT',
            'INSPECTION_IN_PROGRESS', 'FINAL_QUOTE_SENT', 'APPROVED', 'PAYMENT_RECEIVED', 'COMPLETED',
            name='purchasestatus'), nullable=False, index=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('vendor_id', UUID, sa.ForeignKey('vendors.id', ondelete='SET NULL'), nullable=True),
        sa.Column('client_id', UUID, sa.ForeignKey('clients.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('quote_confirmation_token', sa.String(64), unique=True, nullable=True, index=True),
        sa.Column('quote_token_expires_at', sa.DateTime(), nullable=True),
        sa.Column('client_accepted_at', sa.DateTime(), nullable=True),
        sa.Column('client_declined_at', sa.DateTime(), nullable=True),
        sa.Column('client_decline_reason', sa.Text(), nullable=True),
        sa.Column('gear_received_at', sa.DateTime(), nullable=True),
        sa.Column('gear_received_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('client_notified_at', sa.DateTime(), nullable=True),
        sa.Column('final_quote_sent_at', sa.DateTime(), nullable=True),
        sa.Column('payment_approved_at', sa.DateTime(), nullable=True),
        sa.Column('payment_received_at', sa.DateTime(), nullable=True),
        sa.Column('invoice_number', sa.String(32), unique=True, nullable=True),
        sa.Column('invoice_total_cents', sa.Integer(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'pending_items',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('purchase_id', UUID, sa.ForeignKey('pending_purchases.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('brand', sa.String(120), nullable=True),
        sa.Column('model', sa.String(255), nullable=True),
        sa.Column('category', sa.String(120), nullable=True),
        sa.Column('condition', sa.String(120), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('serial_number', sa.String(120), nullable=True),
        sa.Column('ocr_text', sa.Text(), nullable=True),
        sa.Column('ocr_brand', sa.String(120), nullable=True),
        sa.Column('ocr_model', sa.String(255), nullable=True),
        sa.Column('bot_estimated_price_cents', sa.Integer(), nullable=True),
        sa.Column('proposed_price_cents', sa.Integer(), nullable=True),
        sa.Column('suggested_sell_price_cents', sa.Integer(), nullable=True),
        sa.Column('final_price_cents', sa.Integer(), nullable=True),
        sa.Column('image_urls', JSONB, nullable=True),
        sa.Column('status', sa.Enum(
            'PENDING', 'APPROVED', 'PRICE_ADJUSTED', 'REJECTED', 'ADDED_TO_INVENTORY',
            name='pendingitemstatus'), nullable=False),
        sa.Column('inspection_notes', sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'client_details',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('purchase_id', UUID, sa.ForeignKey('pending_purchases.id', ondelete='CASCADE'), unique=True, nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('surname', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=False),
        sa.Column('id_number', sa.String(20), nullable=True),
        sa.Column('passport_number', sa.String(20), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('physical_address', sa.Text(), nullable=False),
        sa.Column('postal_address', sa.Text(), nullable=True),
        sa.Column('bank_name', sa.String(120), nullable=True),
        sa.Column('account_holder', sa.String(255), nullable=True),
        sa.Column('account_number', sa.String(40), nullable=True),
        sa.Column('branch_code', sa.String(20), nullable=True),
        sa.Column('account_type', sa.String(40), nullable=True),
        sa.Column('submitted_at', sa.DateTime(), nullable=False),
    )

    # === PRODUCTS ===
    op.create_table(
        'products',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, index=True),
        sa.Column('brand', sa.String(120), nullable=False),
        sa.Column('model', sa.String(255), nullable=False),
        sa.Column('variant', sa.String(120), nullable=False),
        sa.Column('product_type', sa.Enum(*PRODUCT_TYPE, name='producttype'), nullable=False),
        sa.Column('buy_price_min_cents', sa.Integer(), nullable=False),
        sa.Column('buy_price_max_cents', sa.Integer(), nullable=False),
        sa.Column('consign_price_min_cents', sa.Integer(), nullable=False),
        sa.Column('consign_price_max_cents', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('specifications', JSONB, nullable=True),
        sa.Column('active', sa.Boolean(), default=True),
        *_timestamps(),
        sa.UniqueConstraint('brand', 'model', 'variant', name='uq_products_brand_model_variant'),
    )

    op.create_table(
        'product_question_templates',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('product_id', UUID, sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('question', sa.Text(), nullable=False),
        sa.Column('question_order', sa.Integer(), default=0),
        sa.Column('is_required', sa.Boolean(), default=True),
        sa.Column('category', sa.String(120), nullable=True),
    )

    op.create_table(
        'accessory_templates',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('product_id', UUID, sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('accessory_name', sa.String(255), nullable=False),
        sa.Column('accessory_order', sa.Integer(), default=0),
        sa.Column('is_required', sa.Boolean(), default=False),
        sa.Column('penalty_amount_cents', sa.Integer(), default=0),
    )

    # === INSPECTIONS ===
    op.create_table(
        'inspection_sessions',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('session_number', sa.String(20), unique=True, nullable=False),
        sa.Column('session_name', sa.String(255), nullable=False),
        sa.Column('purchase_id', UUID, sa.ForeignKey('pending_purchases.id', ondelete='CASCADE'), unique=True, nullable=True),
        sa.Column('vendor_id', UUID, sa.ForeignKey('vendors.id', ondelete='SET NULL'), nullable=True),
        sa.Column('status', sa.Enum('IN_PROGRESS', 'COMPLETED', 'CANCELLED', name='sessionstatus'), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'incoming_gear_items',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('session_id', UUID, sa.ForeignKey('inspection_sessions.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('pending_item_id', UUID, sa.ForeignKey('pending_items.id', ondelete='SET NULL'), nullable=True),
        sa.Column('client_name', sa.String(255), nullable=False),
        sa.Column('client_brand', sa.String(120), nullable=True),
        sa.Column('client_model', sa.String(255), nullable=True),
        sa.Column('client_description', sa.Text(), nullable=True),
        sa.Column('client_serial_number', sa.String(120), nullable=True),
        sa.Column('client_images', JSONB, nullable=True),
        sa.Column('client_selection', sa.Enum('BUY', 'CONSIGNMENT', name='clientselection'), nullable=True),
        sa.Column('inspection_status', sa.Enum(
            'UNVERIFIED', 'IN_PROGRESS', 'VERIFIED', 'APPROVED', 'REOPENED', 'REJECTED',
            name='inspectionstatus'), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'verified_gear_items',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('incoming_item_id', UUID, sa.ForeignKey('incoming_gear_items.id', ondelete='CASCADE'), unique=True, nullable=False),
        sa.Column('product_id', UUID, sa.ForeignKey('products.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('serial_number', sa.String(120), nullable=True),
        sa.Column('verified_condition', sa.Enum(
            'LIKE_NEW', 'EXCELLENT', 'VERY_GOOD', 'GOOD', 'WORN', name='verifiedcondition'), nullable=False),
        sa.Column('general_notes', sa.Text(), nullable=True),
        sa.Column('not_interested', sa.Boolean(), default=False),
        sa.Column('requires_repair', sa.Boolean(), default=False),
        sa.Column('repair_notes', sa.Text(), nullable=True),
        sa.Column('verified_at', sa.DateTime(), nullable=True),
        sa.Column('verified_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('approved_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('locked', sa.Boolean(), default=False),
        sa.Column('reopened_at', sa.DateTime(), nullable=True),
        sa.Column('reopened_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('reopen_reason', sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'verified_answers',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('verified_item_id', UUID, sa.ForeignKey('verified_gear_items.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('answer', sa.String(50), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
    )

    op.create_table(
        'verified_accessories',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('verified_item_id', UUID, sa.ForeignKey('verified_gear_items.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('accessory_name', sa.String(255), nullable=False),
        sa.Column('is_present', sa.Boolean(), default=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('accessory_order', sa.Integer(), default=0),
    )

    op.create_table(
        'pricing_snapshots',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('verified_item_id', UUID, sa.ForeignKey('verified_gear_items.id', ondelete='CASCADE'), unique=True, nullable=False),
        sa.Column('base_buy_min_cents', sa.Integer(), nullable=False),
        sa.Column('base_buy_max_cents', sa.Integer(), nullable=False),
        sa.Column('base_consign_min_cents', sa.Integer(), nullable=False),
        sa.Column('base_consign_max_cents', sa.Integer(), nullable=False),
        sa.Column('condition_multiplier', sa.Numeric(4, 2), nullable=False),
        sa.Column('computed_buy_price_cents', sa.Integer(), nullable=False),
        sa.Column('computed_consign_price_cents', sa.Integer(), nullable=False),
        sa.Column('accessory_penalty_cents', sa.Integer(), default=0),
        sa.Column('final_buy_price_cents', sa.Integer(), nullable=False),
        sa.Column('final_consign_price_cents', sa.Integer(), nullable=False),
        sa.Column('calculated_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'price_overrides',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('verified_item_id', UUID, sa.ForeignKey('verified_gear_items.id', ondelete='CASCADE'), unique=True, nullable=False),
        sa.Column('override_buy_price_cents', sa.Integer(), nullable=True),
        sa.Column('override_consign_price_cents', sa.Integer(), nullable=True),
        sa.Column('override_reason', sa.Enum(
            'MARKET_RESEARCH', 'DEMAND_HIGH', 'DEMAND_LOW', 'CONDITION_EXCEPTION', 'CLIENT_NEGOTIATION',
            'BULK_DISCOUNT', 'DAMAGED_NOT_OBVIOUS', 'RARE_ITEM', 'OTHER', name='overridereason'), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('overridden_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('overridden_at', sa.DateTime(), nullable=False),
    )

    # === EQUIPMENT ===
    op.create_table(
        'equipment',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('sku', sa.String(32), unique=True, nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('brand', sa.String(120), nullable=False),
        sa.Column('model', sa.String(255), nullable=False),
        sa.Column('category', postgresql.ENUM(*PRODUCT_TYPE, name='producttype', create_type=False), nullable=False),
        sa.Column('condition', sa.Enum(
            'MINT', 'EXCELLENT', 'GOOD', 'FAIR', 'POOR', name='equipmentcondition'), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('serial_number', sa.String(120), nullable=True),
        sa.Column('shelf_location', sa.String(60), nullable=True),
        sa.Column('images', JSONB, nullable=True),
        sa.Column('acquisition_type', sa.Enum(
            'PURCHASED_OUTRIGHT', 'CONSIGNMENT', name='acquisitiontype'), nullable=False),
        sa.Column('vendor_id', UUID, sa.ForeignKey('vendors.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('client_id', UUID, sa.ForeignKey('clients.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('purchase_price_cents', sa.Integer(), default=0),
        sa.Column('selling_price_cents', sa.Integer(), default=0),
        sa.Column('cost_price_cents', sa.Integer(), default=0),
        sa.Column('consignment_rate', sa.Integer(), nullable=True),
        sa.Column('consignment_end_date', sa.Date(), nullable=True),
        sa.Column('status', sa.Enum(
            'PENDING_INSPECTION', 'INSPECTED', 'IN_REPAIR', 'READY_FOR_SALE', 'RESERVED', 'SOLD', 'RETURNED',
            name='equipmentstatus'), nullable=False, index=True),
        sa.Column('intake_status', sa.Enum('PENDING_INTAKE', 'INTAKE_COMPLETE', name='intakestatus'), nullable=False),
        sa.Column('in_repair', sa.Boolean(), default=False),
        sa.Column('source_verified_item_id', UUID, sa.ForeignKey('verified_gear_items.id', ondelete='SET NULL'), unique=True, nullable=True),
        sa.Column('woocommerce_id', sa.Integer(), nullable=True),
        sa.Column('synced_to_woo', sa.Boolean(), default=False),
        sa.Column('last_synced_at', sa.DateTime(), nullable=True),
        sa.Column('sold_at', sa.DateTime(), nullable=True),
        sa.Column('created_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'price_history',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('equipment_id', UUID, sa.ForeignKey('equipment.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('old_price_cents', sa.Integer(), nullable=False),
        sa.Column('new_price_cents', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(255), nullable=False),
        sa.Column('changed_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'repair_logs',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('equipment_id', UUID, sa.ForeignKey('equipment.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('technician_name', sa.String(255), nullable=False),
        sa.Column('issue', sa.Text(), nullable=False),
        sa.Column('status', sa.Enum('SENT_TO_TECH', 'REPAIR_COMPLETED', name='repairstatus'), nullable=False),
        sa.Column('cost_cents', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('sent_at', sa.DateTime(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('created_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
    )

    # === BUNDLES ===
    op.create_table(
        'bundles',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('selling_price_cents', sa.Integer(), nullable=False),
        sa.Column('cost_price_cents', sa.Integer(), default=0),
        sa.Column('status', sa.Enum('ACTIVE', 'DISSOLVED', name='bundlestatus'), nullable=False, index=True),
        sa.Column('woocommerce_id', sa.Integer(), nullable=True),
        sa.Column('synced_to_woo', sa.Boolean(), default=False),
        sa.Column('last_synced_at', sa.DateTime(), nullable=True),
        sa.Column('approved_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('dissolved_at', sa.DateTime(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'bundle_items',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('bundle_id', UUID, sa.ForeignKey('bundles.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('equipment_id', UUID, sa.ForeignKey('equipment.id', ondelete='CASCADE'), nullable=False, unique=True, index=True),
    )

    # === CONSIGNMENT ===
    op.create_table(
        'consignment_change_requests',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('equipment_id', UUID, sa.ForeignKey('equipment.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('token', sa.String(64), unique=True, nullable=False, index=True),
        sa.Column('current_payout_cents', sa.Integer(), nullable=False),
        sa.Column('proposed_payout_cents', sa.Integer(), nullable=False),
        sa.Column('client_adjusted_payout_cents', sa.Integer(), nullable=True),
        sa.Column('final_payout_cents', sa.Integer(), nullable=True),
        sa.Column('proposed_end_date', sa.Date(), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('status', sa.Enum('PENDING_CLIENT', 'CONFIRMED', name='changerequeststatus'), nullable=False),
        sa.Column('approved_by_admin_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('client_confirmed_at', sa.DateTime(), nullable=True),
        *_timestamps(),
    )

    # === WEBHOOKS ===
    op.create_table(
        'webhook_event_logs',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('event_id', sa.String(64), unique=True, nullable=False),
        sa.Column('event_type', sa.String(64), nullable=False, index=True),
        sa.Column('version', sa.String(16), nullable=False),
        sa.Column('payload', JSONB, nullable=False),
        sa.Column('status', sa.Enum('PENDING', 'PROCESSING', 'PROCESSED', 'FAILED', name='webhookstatus'), nullable=False, index=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('related_entity_id', sa.String(64), nullable=True),
        sa.Column('related_entity_type', sa.String(64), nullable=True),
        sa.Column('received_at', sa.DateTime(), nullable=False),
        sa.Column('processed_at', sa.DateTime(), nullable=True),
        sa.Column('retry_count', sa.Integer(), default=0),
        sa.Column('last_retried_at', sa.DateTime(), nullable=True),
        sa.Column('ignored_at', sa.DateTime(), nullable=True),
        sa.Column('ignored_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('ignore_note', sa.Text(), nullable=True),
    )

    # === ACTIVITY LOG ===
    op.create_table(
        'activity_logs',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('user_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('action', sa.Enum(
            'PURCHASE_CREATED', 'QUOTE_SENT', 'QUOTE_ACCEPTED', 'QUOTE_DECLINED', 'CLIENT_DETAILS_SUBMITTED',
            'GEAR_RECEIVED', 'GEAR_RECEIVED_UNDONE', 'INSPECTION_STARTED', 'ITEM_IDENTIFIED', 'ITEM_VERIFIED',
            'ITEM_APPROVED', 'ITEM_REOPENED', 'ITEM_REJECTED', 'PRICE_OVERRIDDEN', 'FINAL_QUOTE_SENT',
            'APPROVED_FOR_PAYMENT', 'MARKED_AS_PAID', 'CREATED_EQUIPMENT', 'CREATED_EQUIPMENT_FROM_INSPECTION',
            'PRICE_UPDATED', 'INTAKE_COMPLETED', 'SENT_TO_REPAIR', 'REPAIR_COMPLETED', 'SOLD', 'SYNCED_TO_WOO',
            'BUNDLE_CREATED', 'BUNDLE_DISSOLVED', 'CONSIGNMENT_CHANGE_REQUESTED', 'CONSIGNMENT_CHANGE_CONFIRMED',
            'CLIENTS_MERGED', name='activityaction'), nullable=False, index=True),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', UUID, nullable=False),
        sa.Column('details', JSONB, nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, index=True),
    )

    # === SETTINGS ===
    op.create_table(
        'woo_settings',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('store_url', sa.String(255), nullable=False),
        sa.Column('consumer_key', sa.String(255), nullable=False),
        sa.Column('consumer_secret', sa.String(255), nullable=False),
        sa.Column('auto_sync', sa.Boolean(), default=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    # === CATALOG ===
    op.create_table(
        'catalog_items',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('output_text', sa.String(500), nullable=True),
        sa.Column('make', sa.String(120), nullable=True, index=True),
        sa.Column('product_type', sa.String(120), nullable=True),
        sa.Column('specifications', JSONB, nullable=True),
        sa.Column('buy_low', sa.Integer(), nullable=True),
        sa.Column('buy_high', sa.Integer(), nullable=True),
        sa.Column('consign_low', sa.Integer(), nullable=True),
        sa.Column('consign_high', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), default=True),
        *_timestamps(),
    )

    op.create_table(
        'lensfun_lenses',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('maker', sa.String(120), nullable=False, index=True),
        sa.Column('model', sa.String(255), nullable=False),
        sa.Column('mounts', JSONB, nullable=True),
        sa.Column('lens_type', sa.String(60), nullable=True),
        sa.Column('crop_factor', sa.Float(), nullable=True),
        sa.Column('focal_min_mm', sa.Float(), nullable=True),
        sa.Column('focal_max_mm', sa.Float(), nullable=True),
        sa.Column('aperture_min', sa.Float(), nullable=True),
        sa.Column('aperture_max', sa.Float(), nullable=True),
        sa.Column('source_file', sa.String(120), nullable=True),
        sa.Column('imported_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('maker', 'model', name='uq_lensfun_maker_model'),
    )

    op.create_table(
        'catalog_enrichment_suggestions',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('catalog_item_id', UUID, sa.ForeignKey('catalog_items.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('lensfun_lens_id', UUID, sa.ForeignKey('lensfun_lenses.id', ondelete='SET NULL'), nullable=True),
        sa.Column('match_score', sa.Float(), nullable=False),
        sa.Column('match_confidence', sa.String(16), nullable=False),
        sa.Column('match_reasons', JSONB, nullable=True),
        sa.Column('suggested_specs', JSONB, nullable=True),
        sa.Column('specs_before', JSONB, nullable=True),
        sa.Column('specs_after', JSONB, nullable=True),
        sa.Column('status', sa.Enum(
            'AUTO_APPLIED', 'PENDING_REVIEW', 'SUPERSEDED', 'APPROVED', 'REJECTED',
            name='suggestionstatus'), nullable=False, index=True),
        sa.Column('reviewed_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('review_note', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    # At most one pending review per catalog item
    op.create_index(
        'uq_enrichment_pending_per_item',
        'catalog_enrichment_suggestions',
        ['catalog_item_id'],
        unique=True,
        postgresql_where=sa.text("status = 'PENDING_REVIEW'"),
    )

    op.create_table(
        'catalog_blocking_issues',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('catalog_item_id', UUID, sa.ForeignKey('catalog_items.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('issue_type', sa.String(64), nullable=False, index=True),
        sa.Column('severity', sa.Enum('BLOCKING', name='issueseverity'), nullable=False),
        sa.Column('status', sa.Enum('OPEN', 'RESOLVED', name='issuestatus'), nullable=False, index=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('details', JSONB, nullable=True),
        sa.Column('first_detected_at', sa.DateTime(), nullable=False),
        sa.Column('last_detected_at', sa.DateTime(), nullable=False),
        sa.Column('resolved_at', sa.DateTime(), nullable=True),
        sa.Column('resolved_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('resolution_note', sa.Text(), nullable=True),
    )
    # Rescans upsert against the single OPEN row per (item, type)
    op.create_index(
        'uq_open_issue_per_item_type',
        'catalog_blocking_issues',
        ['catalog_item_id', 'issue_type'],
        unique=True,
        postgresql_where=sa.text("status = 'OPEN'"),
    )


def downgrade() -> None:
    # Drop in reverse dependency order
    op.drop_index('uq_open_issue_per_item_type', table_name='catalog_blocking_issues')
    op.drop_table('catalog_blocking_issues')
    op.drop_index('uq_enrichment_pending_per_item', table_name='catalog_enrichment_suggestions')
    op.drop_table('catalog_enrichment_suggestions')
    op.drop_table('lensfun_lenses')
    op.drop_table('catalog_items')
    op.drop_table('woo_settings')
    op.drop_table('activity_logs')
    op.drop_table('webhook_event_logs')
    op.drop_table('consignment_change_requests')
    op.drop_table('bundle_items')
    op.drop_table('bundles')
    op.drop_table('repair_logs')
    op.drop_table('price_history')
    op.drop_table('equipment')
    op.drop_table('price_overrides')
    op.drop_table('pricing_snapshots')
    op.drop_table('verified_accessories')
    op.drop_table('verified_answers')
    op.drop_table('verified_gear_items')
    op.drop_table('incoming_gear_items')
    op.drop_table('inspection_sessions')
    op.drop_table('accessory_templates')
    op.drop_table('product_question_templates')
    op.drop_table('products')
    op.drop_table('client_details')
    op.drop_table('pending_items')
    op.drop_table('pending_purchases')
    op.drop_table('clients')
    op.drop_table('vendors')
    op.drop_table('users')

    # Drop enums
    for enum_name in (
        'issuestatus', 'issueseverity', 'suggestionstatus', 'activityaction', 'webhookstatus',
        'changerequeststatus', 'bundlestatus', 'repairstatus', 'intakestatus', 'equipmentstatus',
        'acquisitiontype', 'equipmentcondition', 'overridereason', 'verifiedcondition',
        'inspectionstatus', 'clientselection', 'sessionstatus', 'producttype', 'pendingitemstatus',
        'purchasestatus', 'userrole',
    ):
        op.execute(f'DROP TYPE IF EXISTS {enum_name}')
