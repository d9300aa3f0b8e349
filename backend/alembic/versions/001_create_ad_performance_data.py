"""create ad_performance_data

Revision ID: 001
Revises: 
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'ad_performance_data',
        sa.Column('id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('campaign_name', sa.Text(), nullable=False),
        sa.Column('campaign_id', sa.String(length=64), nullable=False),
        sa.Column('ad_set_name', sa.Text(), nullable=False),
        sa.Column('ad_set_id', sa.String(length=64), nullable=False),
        sa.Column('ad_name', sa.Text(), nullable=False),
        sa.Column('ad_id', sa.String(length=64), nullable=False),
        sa.Column('placement', sa.String(length=128), nullable=False),
        sa.Column('platform', sa.String(length=64), nullable=False),
        sa.Column('delivery_status', sa.String(length=32), nullable=False),
        sa.Column('delivery_level', sa.String(length=32), nullable=False),
        sa.Column('reach', sa.Float(), nullable=True),
        sa.Column('impressions', sa.Float(), nullable=True),
        sa.Column('frequency', sa.Float(), nullable=True),
        sa.Column('results', sa.Float(), nullable=True),
        sa.Column('amount_spent', sa.Float(), nullable=True),
        sa.Column('cost_per_result', sa.Float(), nullable=True),
        sa.Column('purchase_roas', sa.Float(), nullable=True),
        sa.Column('ctr_all', sa.Float(), nullable=True),
        sa.Column('result_rate', sa.Float(), nullable=True),
        sa.Column('starts', sa.String(length=32), nullable=True),
        sa.Column('ends', sa.String(length=32), nullable=True),
        sa.Column('reporting_starts', sa.String(length=32), nullable=True),
        sa.Column('reporting_ends', sa.String(length=32), nullable=True),
        sa.Column('day', sa.String(length=10), nullable=False),
        sa.Column('attribution_setting', sa.Text(), nullable=True),
        sa.Column('result_type', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('ad_id', 'day', 'placement', 'platform', name='uq_ad_performance_natural_key'),
    )

    # Dashboard queries filter by campaign and day range
    op.create_index('ix_ad_performance_campaign_id', 'ad_performance_data', ['campaign_id'])
    op.create_index('ix_ad_performance_ad_set_id', 'ad_performance_data', ['ad_set_id'])
    op.create_index('ix_ad_performance_ad_id', 'ad_performance_data', ['ad_id'])
    op.create_index('ix_ad_performance_day', 'ad_performance_data', ['day'])
    op.create_index('ix_ad_performance_campaign_day', 'ad_performance_data', ['campaign_id', 'day'])


def downgrade():
    op.drop_index('ix_ad_performance_campaign_day', table_name='ad_performance_data')
    op.drop_index('ix_ad_performance_day', table_name='ad_performance_data')
    op.drop_index('ix_ad_performance_ad_id', table_name='ad_performance_data')
    op.drop_index('ix_ad_performance_ad_set_id', table_name='ad_performance_data')
    op.drop_index('ix_ad_performance_campaign_id', table_name='ad_performance_data')
    op.drop_table('ad_performance_data')
