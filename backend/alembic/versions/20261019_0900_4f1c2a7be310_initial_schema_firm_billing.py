"""Initial schema: firms, subscriptions, usage, split billing, billing rules, charges, invoices, audit

Revision ID: 4f1c2a7be310
Revises: 
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4f1c2a7be310'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Enum columns store member names, matching SQLAlchemy's default Enum mapping
billing_cycle = sa.Enum('MONTHLY', 'YEARLY', name='billingcycle')
subscription_status = sa.Enum('ACTIVE', 'SCHEDULED_CANCELLATION', 'CANCELED', name='subscriptionstatus')
approval_type = sa.Enum('AUTOMATIC', 'MANUAL', 'THRESHOLD', name='approvaltype')
billing_frequency = sa.Enum('MONTHLY', 'QUARTERLY', 'YEARLY', name='billingfrequency')
charge_type = sa.Enum('OFFICE', 'USER', name='chargetype')
charge_status = sa.Enum('PENDING', 'APPROVED', 'BILLED', 'PAID', 'CANCELLED', name='chargestatus')
invoice_status = sa.Enum('OPEN', 'PAID', 'VOID', name='invoicestatus')


def _common_columns() -> list:
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create all tables for the firm billing engine."""
    # 1. Firms table (no dependencies)
    op.create_table(
        'firms',
        *_common_columns(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='USD'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_firms_email'), 'firms', ['email'])
    op.create_index(op.f('ix_firms_created_at'), 'firms', ['created_at'])

    # 2. Plan catalog limits (no dependencies)
    op.create_table(
        'resource_limits',
        *_common_columns(),
        sa.Column('plan_id', sa.String(), nullable=False),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('limit', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('plan_id', 'category', name='uq_resource_limits_plan_category')
    )
    op.create_index(op.f('ix_resource_limits_plan_id'), 'resource_limits', ['plan_id'])

    # 3. Subscriptions (depends on firms)
    op.create_table(
        'subscriptions',
        *_common_columns(),
        sa.Column('firm_id', sa.Uuid(), nullable=False),
        sa.Column('plan_id', sa.String(), nullable=False),
        sa.Column('billing_cycle', billing_cycle, nullable=False, server_default='MONTHLY'),
        sa.Column('status', subscription_status, nullable=False, server_default='ACTIVE'),
        sa.Column('current_period_start', sa.DateTime(), nullable=False),
        sa.Column('current_period_end', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['firm_id'], ['firms.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_subscriptions_firm_id'), 'subscriptions', ['firm_id'])
    op.create_index(op.f('ix_subscriptions_plan_id'), 'subscriptions', ['plan_id'])
    op.create_index(op.f('ix_subscriptions_status'), 'subscriptions', ['status'])
    op.create_index(op.f('ix_subscriptions_current_period_end'), 'subscriptions', ['current_period_end'])

    # 4. Usage counters (depends on firms)
    op.create_table(
        'usage_records',
        *_common_columns(),
        sa.Column('firm_id', sa.Uuid(), nullable=False),
        sa.Column('period_id', sa.String(), nullable=False),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('used', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['firm_id'], ['firms.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('firm_id', 'period_id', 'category', name='uq_usage_records_firm_period_category')
    )
    op.create_index(op.f('ix_usage_records_firm_id'), 'usage_records', ['firm_id'])
    op.create_index(op.f('ix_usage_records_period_id'), 'usage_records', ['period_id'])

    # 5. Split billing config (depends on firms)
    op.create_table(
        'split_billing_configs',
        *_common_columns(),
        sa.Column('firm_id', sa.Uuid(), nullable=False),
        sa.Column('base_plan_firm_pays', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('staff_addons_firm_pays', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('shared_resources_split_percentage', sa.Integer(), nullable=False, server_default='0'),
        sa.CheckConstraint(
            'shared_resources_split_percentage >= 0 AND shared_resources_split_percentage <= 100',
            name='ck_split_billing_percentage_range',
        ),
        sa.ForeignKeyConstraint(['firm_id'], ['firms.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('firm_id')
    )

    # 6. Billing rules (depends on firms)
    op.create_table(
        'billing_rules',
        *_common_columns(),
        sa.Column('firm_id', sa.Uuid(), nullable=False),
        sa.Column('office_approval_type', approval_type, nullable=False, server_default='THRESHOLD'),
        sa.Column('max_offices_auto_approve', sa.Integer(), nullable=True),
        sa.Column('user_approval_type', approval_type, nullable=False, server_default='THRESHOLD'),
        sa.Column('max_users_auto_approve', sa.Integer(), nullable=True),
        sa.Column('auto_billing_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('billing_frequency', billing_frequency, nullable=False, server_default='MONTHLY'),
        sa.Column('monthly_billing_threshold', sa.Integer(), nullable=True),
        sa.Column('approval_version', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['firm_id'], ['firms.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('firm_id')
    )

    # 7. Invoices (depends on firms)
    op.create_table(
        'invoices',
        *_common_columns(),
        sa.Column('firm_id', sa.Uuid(), nullable=False),
        sa.Column('number', sa.String(), nullable=False),
        sa.Column('period_id', sa.String(), nullable=False),
        sa.Column('status', invoice_status, nullable=False, server_default='OPEN'),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='USD'),
        sa.Column('total_amount', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('firm_amount', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('staff_amount', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['firm_id'], ['firms.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_invoices_firm_id'), 'invoices', ['firm_id'])
    op.create_index(op.f('ix_invoices_number'), 'invoices', ['number'], unique=True)
    op.create_index(op.f('ix_invoices_period_id'), 'invoices', ['period_id'])
    op.create_index(op.f('ix_invoices_status'), 'invoices', ['status'])

    # 8. Growth charges (depends on firms, invoices)
    op.create_table(
        'billing_charges',
        *_common_columns(),
        sa.Column('firm_id', sa.Uuid(), nullable=False),
        sa.Column('charge_type', charge_type, nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Integer(), nullable=False),
        sa.Column('total_amount', sa.Integer(), nullable=False),
        sa.Column('status', charge_status, nullable=False, server_default='PENDING'),
        sa.Column('requires_approval', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('period_id', sa.String(), nullable=False),
        sa.Column('billing_period_start', sa.DateTime(), nullable=False),
        sa.Column('billing_period_end', sa.DateTime(), nullable=False),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('billed_at', sa.DateTime(), nullable=True),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('invoice_id', sa.Uuid(), nullable=True),
        sa.ForeignKeyConstraint(['firm_id'], ['firms.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_billing_charges_firm_id'), 'billing_charges', ['firm_id'])
    op.create_index(op.f('ix_billing_charges_charge_type'), 'billing_charges', ['charge_type'])
    op.create_index(op.f('ix_billing_charges_status'), 'billing_charges', ['status'])
    op.create_index(op.f('ix_billing_charges_period_id'), 'billing_charges', ['period_id'])
    op.create_index(op.f('ix_billing_charges_invoice_id'), 'billing_charges', ['invoice_id'])

    # 9. Invoice line items (depends on invoices, billing_charges)
    op.create_table(
        'invoice_line_items',
        *_common_columns(),
        sa.Column('invoice_id', sa.Uuid(), nullable=False),
        sa.Column('charge_id', sa.Uuid(), nullable=True),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=False),
        sa.Column('total_amount', sa.Integer(), nullable=False),
        sa.Column('firm_amount', sa.Integer(), nullable=False),
        sa.Column('staff_amount', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['charge_id'], ['billing_charges.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_invoice_line_items_invoice_id'), 'invoice_line_items', ['invoice_id'])

    # 10. Audit log (no foreign keys; entities are referenced by type and ID)
    op.create_table(
        'audit_logs',
        *_common_columns(),
        sa.Column('entity_type', sa.String(), nullable=False),
        sa.Column('entity_id', sa.Uuid(), nullable=False),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('changes', sa.JSON(), nullable=False),
        sa.Column('request_id', sa.String(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_audit_logs_entity_type'), 'audit_logs', ['entity_type'])
    op.create_index(op.f('ix_audit_logs_entity_id'), 'audit_logs', ['entity_id'])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_table('audit_logs')
    op.drop_table('invoice_line_items')
    op.drop_table('billing_charges')
    op.drop_table('invoices')
    op.drop_table('billing_rules')
    op.drop_table('split_billing_configs')
    op.drop_table('usage_records')
    op.drop_table('subscriptions')
    op.drop_table('resource_limits')
    op.drop_table('firms')

    bind = op.get_bind()
    for enum_type in (
        invoice_status,
        charge_status,
        charge_type,
        billing_frequency,
        approval_type,
        subscription_status,
        billing_cycle,
    ):
        enum_type.drop(bind, checkfirst=True)
