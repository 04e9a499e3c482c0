"""Initial database schema

Revision ID: 001
Revises: 
Create Date: 2026-10-19

Creates the users, customers, vehicles, service orders, estimations,
invoices, reminders and document counter tables.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now()),
    ]


def upgrade() -> None:
    # Users table
    op.create_table('users',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='receptionist'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('reset_password_token', sa.String(64)),
        sa.Column('reset_password_expire', sa.DateTime()),
        sa.Column('last_login', sa.DateTime()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_reset_token', 'users', ['reset_password_token'])

    # Customers table
    op.create_table('customers',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255)),
        sa.Column('phone', sa.String(50)),
        sa.Column('alternate_mobile', sa.String(50)),
        sa.Column('address', sa.JSON()),
        sa.Column('notes', sa.Text()),
        sa.Column('is_draft', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_customers_email', 'customers', ['email'])
    op.create_index('ix_customers_phone', 'customers', ['phone'])
    op.create_index('ix_customers_name', 'customers', ['name'])

    # Vehicles table
    op.create_table('vehicles',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('customer_id', sa.String(36), nullable=False),
        sa.Column('make', sa.String(100)),
        sa.Column('model', sa.String(100)),
        sa.Column('year', sa.Integer()),
        sa.Column('plate_number', sa.String(50)),
        sa.Column('vin', sa.String(50)),
        sa.Column('color', sa.String(50)),
        sa.Column('mileage', sa.Integer(), server_default='0'),
        sa.Column('is_draft', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_vehicles_plate_number', 'vehicles', ['plate_number'])
    op.create_index('ix_vehicles_customer', 'vehicles', ['customer_id'])
    op.create_index('ix_vehicles_vin', 'vehicles', ['vin'])

    # Invoices table
    op.create_table('invoices',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('invoice_number', sa.String(32), nullable=False),
        sa.Column('customer_id', sa.String(36), nullable=False),
        sa.Column('vehicle_id', sa.String(36), nullable=False),
        sa.Column('items', sa.JSON()),
        sa.Column('subtotal', sa.Float(), server_default='0'),
        sa.Column('tax_rate', sa.Float(), server_default='0.1'),
        sa.Column('tax_amount', sa.Float(), server_default='0'),
        sa.Column('discount', sa.Float(), server_default='0'),
        sa.Column('total', sa.Float(), server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='draft'),
        sa.Column('due_date', sa.DateTime()),
        sa.Column('paid_at', sa.DateTime()),
        sa.Column('notes', sa.Text()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.ForeignKeyConstraint(['vehicle_id'], ['vehicles.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('invoice_number')
    )
    op.create_index('ix_invoices_customer', 'invoices', ['customer_id'])
    op.create_index('ix_invoices_vehicle', 'invoices', ['vehicle_id'])
    op.create_index('ix_invoices_status', 'invoices', ['status'])
    op.create_index('ix_invoices_due_date', 'invoices', ['due_date'])

    # Service orders table
    op.create_table('services',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('customer_id', sa.String(36), nullable=False),
        sa.Column('vehicle_id', sa.String(36), nullable=False),
        sa.Column('technician_id', sa.String(36)),
        sa.Column('invoice_id', sa.String(36)),
        sa.Column('service_type', sa.String(255), nullable=False, server_default='other'),
        sa.Column('description', sa.Text()),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('scheduled_at', sa.DateTime()),
        sa.Column('expected_delivery_date', sa.DateTime()),
        sa.Column('completed_at', sa.DateTime()),
        sa.Column('labor_hours', sa.Float(), server_default='0'),
        sa.Column('parts_used', sa.JSON()),
        sa.Column('total_cost', sa.Float(), server_default='0'),
        sa.Column('advanced_paid', sa.Float(), server_default='0'),
        sa.Column('vehicle_model', sa.String(255)),
        sa.Column('phone', sa.String(50)),
        sa.Column('address', sa.JSON()),
        sa.Column('notes', sa.Text()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.ForeignKeyConstraint(['vehicle_id'], ['vehicles.id']),
        sa.ForeignKeyConstraint(['technician_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_services_customer', 'services', ['customer_id'])
    op.create_index('ix_services_vehicle', 'services', ['vehicle_id'])
    op.create_index('ix_services_status', 'services', ['status'])
    op.create_index('ix_services_scheduled_at', 'services', ['scheduled_at'])
    op.create_index('ix_services_technician', 'services', ['technician_id'])

    # Invoice <-> service order links
    op.create_table('invoice_services',
        sa.Column('invoice_id', sa.String(36), nullable=False),
        sa.Column('service_id', sa.String(36), nullable=False),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['service_id'], ['services.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('invoice_id', 'service_id')
    )

    # Estimations table
    op.create_table('estimations',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('estimation_number', sa.String(32), nullable=False),
        sa.Column('customer_id', sa.String(36), nullable=False),
        sa.Column('vehicle_id', sa.String(36), nullable=False),
        sa.Column('items', sa.JSON()),
        sa.Column('item_descriptions', sa.Text()),
        sa.Column('subtotal', sa.Float(), server_default='0'),
        sa.Column('cgst_rate', sa.Float(), server_default='0.09'),
        sa.Column('sgst_rate', sa.Float(), server_default='0.09'),
        sa.Column('cgst_amount', sa.Float(), server_default='0'),
        sa.Column('sgst_amount', sa.Float(), server_default='0'),
        sa.Column('discount', sa.Float(), server_default='0'),
        sa.Column('total', sa.Float(), server_default='0'),
        sa.Column('valid_until', sa.DateTime(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='draft'),
        sa.Column('notes', sa.Text()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.ForeignKeyConstraint(['vehicle_id'], ['vehicles.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('estimation_number')
    )
    op.create_index('ix_estimations_customer', 'estimations', ['customer_id'])
    op.create_index('ix_estimations_vehicle', 'estimations', ['vehicle_id'])
    op.create_index('ix_estimations_status', 'estimations', ['status'])
    op.create_index('ix_estimations_valid_until', 'estimations', ['valid_until'])

    # Reminders table
    op.create_table('reminders',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('customer_id', sa.String(36), nullable=False),
        sa.Column('vehicle_id', sa.String(36)),
        sa.Column('created_by_id', sa.String(36)),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('reminder_type', sa.String(20), nullable=False, server_default='other'),
        sa.Column('scheduled_date', sa.DateTime(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('is_recurring', sa.Boolean(), server_default=sa.false()),
        sa.Column('recurring_interval', sa.String(20), server_default='yearly'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['vehicle_id'], ['vehicles.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_reminders_customer', 'reminders', ['customer_id'])
    op.create_index('ix_reminders_vehicle', 'reminders', ['vehicle_id'])
    op.create_index('ix_reminders_scheduled_date', 'reminders', ['scheduled_date'])
    op.create_index('ix_reminders_status', 'reminders', ['status'])
    op.create_index('ix_reminders_type', 'reminders', ['reminder_type'])

    # Document number counters, one row per prefix and year
    op.create_table('counters',
        sa.Column('name', sa.String(20), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False, autoincrement=False),
        sa.Column('value', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('name', 'year')
    )


def downgrade() -> None:
    # Drop tables in reverse order of creation (respecting foreign keys)
    op.drop_table('counters')
    op.drop_table('reminders')
    op.drop_table('estimations')
    op.drop_table('invoice_services')
    op.drop_table('services')
    op.drop_table('invoices')
    op.drop_table('vehicles')
    op.drop_table('customers')
    op.drop_table('users')
