"""Create organization, user, order, stage history and access audit tables

Revision ID: 001
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None

STAGES = (
    'DesignProposal', 'ProofApproval', 'Measurements', 'ProductionPlanning',
    'Cutting', 'Sewing', 'QualityControl', 'Finishing', 'FinalInspection',
    'Packaging', 'ShippingPreparation', 'ShipOrder', 'Delivery',
)
STAGE_LIST = ", ".join(f"'{stage}'" for stage in STAGES)


def upgrade():
    # Create organization table
    op.create_table(
        'organization',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    # Create app_user table
    op.create_table(
        'app_user',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('role', sa.Text(), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['organization_id'], ['organization.id'], ondelete='RESTRICT'),
        sa.UniqueConstraint('email', name='uq_app_user_email'),
        sa.CheckConstraint("role IN ('Director', 'Finance', 'ColorGarbStaff')", name='ck_app_user_role'),
        sa.CheckConstraint(
            "role = 'ColorGarbStaff' OR organization_id IS NOT NULL",
            name='ck_app_user_org_scoped_role_has_org'
        ),
    )
    op.create_index('idx_app_user_org_role', 'app_user', ['organization_id', 'role'])

    # Create orders table (version drives optimistic locking)
    op.create_table(
        'orders',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('order_number', sa.Text(), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('description', sa.Text(), server_default='', nullable=False),
        sa.Column('current_stage', sa.Text(), nullable=False),
        sa.Column('original_ship_date', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('current_ship_date', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('version', sa.Integer(), server_default='1', nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['organization_id'], ['organization.id'], ondelete='RESTRICT'),
        sa.UniqueConstraint('order_number', name='uq_orders_order_number'),
        sa.CheckConstraint(f"current_stage IN ({STAGE_LIST})", name='ck_orders_current_stage'),
    )
    op.create_index('ix_orders_organization_id', 'orders', ['organization_id'])
    op.create_index('ix_orders_organization_id_stage', 'orders', ['organization_id', 'current_stage'])

    # Create order_stage_history table (append-only)
    op.create_table(
        'order_stage_history',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('order_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('previous_stage', sa.Text(), nullable=False),
        sa.Column('new_stage', sa.Text(), nullable=False),
        sa.Column('changed_by_user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('changed_by_role', sa.Text(), nullable=False),
        sa.Column('previous_ship_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('new_ship_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('changed_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='RESTRICT'),
        sa.CheckConstraint("length(trim(reason)) > 0", name='ck_order_stage_history_reason_not_empty'),
    )
    op.create_index(
        'ix_order_stage_history_order_id_changed_at', 'order_stage_history', ['order_id', 'changed_at']
    )
    op.create_index('ix_order_stage_history_changed_at', 'order_stage_history', ['changed_at'])

    # Create role_access_audit table (access-attempt log)
    op.create_table(
        'role_access_audit',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('user_role', sa.Text(), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('resource', sa.Text(), nullable=False),
        sa.Column('http_method', sa.Text(), nullable=False),
        sa.Column('access_granted', sa.Boolean(), nullable=False),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('metadata_json', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('ip_address', sa.Text(), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('request_id', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_role_access_audit_user_id_timestamp', 'role_access_audit', ['user_id', sa.text('timestamp DESC')]
    )
    op.create_index(
        'ix_role_access_audit_organization_id_timestamp',
        'role_access_audit',
        ['organization_id', sa.text('timestamp DESC')]
    )

    # Audit tables are append-only: reject UPDATE and DELETE at the database
    op.execute("""
        CREATE OR REPLACE FUNCTION reject_audit_modification()
        RETURNS TRIGGER AS $$
        BEGIN
            RAISE EXCEPTION 'audit tables are append-only';
        END;
        $$ LANGUAGE plpgsql;
    """)
    for table in ('order_stage_history', 'role_access_audit'):
        op.execute(f"""
            CREATE TRIGGER {table}_append_only
            BEFORE UPDATE OR DELETE ON {table}
            FOR EACH ROW
            EXECUTE FUNCTION reject_audit_modification();
        """)


def downgrade():
    for table in ('role_access_audit', 'order_stage_history'):
        op.execute(f'DROP TRIGGER IF EXISTS {table}_append_only ON {table}')
    op.execute('DROP FUNCTION IF EXISTS reject_audit_modification()')

    op.drop_index('ix_role_access_audit_organization_id_timestamp', table_name='role_access_audit')
    op.drop_index('ix_role_access_audit_user_id_timestamp', table_name='role_access_audit')
    op.drop_table('role_access_audit')

    op.drop_index('ix_order_stage_history_changed_at', table_name='order_stage_history')
    op.drop_index('ix_order_stage_history_order_id_changed_at', table_name='order_stage_history')
    op.drop_table('order_stage_history')

    op.drop_index('ix_orders_organization_id_stage', table_name='orders')
    op.drop_index('ix_orders_organization_id', table_name='orders')
    op.drop_table('orders')

    op.drop_index('idx_app_user_org_role', table_name='app_user')
    op.drop_table('app_user')

    op.drop_table('organization')
