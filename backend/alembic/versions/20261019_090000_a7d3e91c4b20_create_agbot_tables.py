"""create agbot locations, assets, readings, alerts and sync logs

Revision ID: a7d3e91c4b20
Revises:
Create Date: 2026-10-19 09:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a7d3e91c4b20'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'agbot_locations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('external_guid', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('location_guid', sa.String(255), nullable=True),
        sa.Column('customer_name', sa.String(255), nullable=True),
        sa.Column('customer_guid', sa.String(255), nullable=True),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('state', sa.String(50), nullable=True),
        sa.Column('postcode', sa.String(20), nullable=True),
        sa.Column('country', sa.String(100), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('calibrated_fill_level', sa.Float(), nullable=True),
        sa.Column('is_online', sa.Boolean(), nullable=True),
        sa.Column('installation_status', sa.Integer(), nullable=True),
        sa.Column('daily_consumption', sa.Float(), nullable=True),
        sa.Column('days_remaining', sa.Integer(), nullable=True),
        sa.Column('last_telemetry_at', sa.DateTime(), nullable=True),
        sa.Column('last_telemetry_epoch', sa.BigInteger(), nullable=True),
        sa.Column('is_disabled', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index(op.f('ix_agbot_locations_id'), 'agbot_locations', ['id'], unique=False)
    op.create_index(op.f('ix_agbot_locations_external_guid'), 'agbot_locations', ['external_guid'], unique=True)

    op.create_table(
        'agbot_assets',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('location_id', sa.Integer(), sa.ForeignKey('agbot_locations.id'), nullable=False),
        sa.Column('external_guid', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('serial_number', sa.String(100), nullable=False),
        sa.Column('device_serial', sa.String(100), nullable=True),
        sa.Column('asset_guid', sa.String(255), nullable=True),
        sa.Column('profile_name', sa.String(255), nullable=True),
        sa.Column('commodity', sa.String(100), nullable=True),
        sa.Column('is_online', sa.Boolean(), nullable=True),
        sa.Column('is_disabled', sa.Boolean(), nullable=True),
        sa.Column('device_state', sa.String(50), nullable=True),
        sa.Column('battery_voltage', sa.Float(), nullable=True),
        sa.Column('temperature_c', sa.Float(), nullable=True),
        sa.Column('capacity_liters', sa.Float(), nullable=True),
        sa.Column('current_level_liters', sa.Float(), nullable=True),
        sa.Column('current_level_percent', sa.Float(), nullable=True),
        sa.Column('current_raw_percent', sa.Float(), nullable=True),
        sa.Column('ullage_liters', sa.Float(), nullable=True),
        sa.Column('daily_consumption_liters', sa.Float(), nullable=True),
        sa.Column('days_remaining', sa.Integer(), nullable=True),
        sa.Column('last_telemetry_at', sa.DateTime(), nullable=True),
        sa.Column('last_telemetry_epoch', sa.BigInteger(), nullable=True),
        sa.Column('calculated_daily_consumption', sa.Float(), nullable=True),
        sa.Column('calculated_days_remaining', sa.Integer(), nullable=True),
        sa.Column('consumption_confidence', sa.String(20), nullable=True),
        sa.Column('last_consumption_calc_at', sa.DateTime(), nullable=True),
        sa.Column('raw_data', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index(op.f('ix_agbot_assets_id'), 'agbot_assets', ['id'], unique=False)
    op.create_index(op.f('ix_agbot_assets_location_id'), 'agbot_assets', ['location_id'], unique=False)
    op.create_index(op.f('ix_agbot_assets_external_guid'), 'agbot_assets', ['external_guid'], unique=True)

    op.create_table(
        'agbot_readings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('asset_id', sa.Integer(), sa.ForeignKey('agbot_assets.id'), nullable=False),
        sa.Column('reading_at', sa.DateTime(), nullable=False),
        sa.Column('level_percent', sa.Float(), nullable=True),
        sa.Column('raw_percent', sa.Float(), nullable=True),
        sa.Column('level_liters', sa.Float(), nullable=True),
        sa.Column('battery_voltage', sa.Float(), nullable=True),
        sa.Column('temperature_c', sa.Float(), nullable=True),
        sa.Column('is_online', sa.Boolean(), nullable=True),
        sa.Column('device_state', sa.String(50), nullable=True),
        sa.Column('daily_consumption', sa.Float(), nullable=True),
        sa.Column('days_remaining', sa.Integer(), nullable=True),
        sa.Column('telemetry_epoch', sa.BigInteger(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index(op.f('ix_agbot_readings_id'), 'agbot_readings', ['id'], unique=False)
    op.create_index(op.f('ix_agbot_readings_asset_id'), 'agbot_readings', ['asset_id'], unique=False)
    op.create_index(op.f('ix_agbot_readings_reading_at'), 'agbot_readings', ['reading_at'], unique=False)
    op.create_index('ix_agbot_readings_asset_reading_at', 'agbot_readings', ['asset_id', 'reading_at'], unique=False)

    op.create_table(
        'agbot_alerts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('asset_id', sa.Integer(), sa.ForeignKey('agbot_assets.id'), nullable=False),
        sa.Column('alert_type', sa.String(50), nullable=False),
        sa.Column('severity', sa.String(20), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('current_value', sa.Float(), nullable=True),
        sa.Column('threshold_value', sa.Float(), nullable=True),
        sa.Column('previous_value', sa.Float(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('triggered_at', sa.DateTime(), nullable=True),
        sa.Column('resolved_at', sa.DateTime(), nullable=True),
        sa.Column('resolution_notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index(op.f('ix_agbot_alerts_id'), 'agbot_alerts', ['id'], unique=False)
    op.create_index(op.f('ix_agbot_alerts_asset_id'), 'agbot_alerts', ['asset_id'], unique=False)
    # One active alert per asset and type
    op.create_index(
        'uq_agbot_alerts_active_asset_type',
        'agbot_alerts',
        ['asset_id', 'alert_type'],
        unique=True,
        postgresql_where=sa.text('is_active'),
    )

    op.create_table(
        'agbot_sync_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('sync_type', sa.String(50), nullable=False),
        sa.Column('status', sa.String(50), nullable=True),
        sa.Column('locations_processed', sa.Integer(), nullable=True),
        sa.Column('assets_processed', sa.Integer(), nullable=True),
        sa.Column('readings_processed', sa.Integer(), nullable=True),
        sa.Column('alerts_triggered', sa.Integer(), nullable=True),
        sa.Column('error_count', sa.Integer(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('duration_ms', sa.Integer(), nullable=True),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
    )
    op.create_index(op.f('ix_agbot_sync_logs_id'), 'agbot_sync_logs', ['id'], unique=False)
    op.create_index(op.f('ix_agbot_sync_logs_sync_type'), 'agbot_sync_logs', ['sync_type'], unique=False)


def downgrade():
    op.drop_table('agbot_sync_logs')
    op.drop_index('uq_agbot_alerts_active_asset_type', table_name='agbot_alerts')
    op.drop_table('agbot_alerts')
    op.drop_table('agbot_readings')
    op.drop_table('agbot_assets')
    op.drop_table('agbot_locations')
