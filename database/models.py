"""
SQLAlchemy models for the Motor Care CRM.
Defines the customer, vehicle, service order, estimation, invoice, reminder
and user tables plus the per-year document counters.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Column, String, Text, Integer, Float, Boolean, DateTime,
    ForeignKey, JSON, Index, Table
)
from sqlalchemy.orm import relationship
from database.connection import Base


USER_ROLES = ('admin', 'technician', 'receptionist')
SERVICE_STATUSES = ('pending', 'in-progress', 'completed', 'cancelled')
ESTIMATION_STATUSES = ('draft', 'sent', 'accepted', 'rejected', 'expired')
INVOICE_STATUSES = ('draft', 'sent', 'paid', 'overdue', 'cancelled')
REMINDER_STATUSES = ('pending', 'completed', 'cancelled')
REMINDER_TYPES = ('service', 'inspection', 'registration', 'insurance', 'maintenance', 'other')
RECURRING_INTERVALS = ('daily', 'weekly', 'monthly', 'yearly')


def generate_uuid():
    """Generate a new UUID."""
    return str(uuid.uuid4())


def utcnow():
    """Naive UTC timestamp, the format every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() if value else None


# =============================================================================
# USERS & AUTHENTICATION
# =============================================================================

class User(Base):
    """Staff accounts with a role and a hashed password."""
    __tablename__ = 'users'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default='receptionist')
    is_active = Column(Boolean, nullable=False, default=True)
    reset_password_token = Column(String(64))
    reset_password_expire = Column(DateTime)
    last_login = Column(DateTime)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index('ix_users_role', 'role'),
        Index('ix_users_reset_token', 'reset_password_token'),
    )

    def to_summary(self):
        return {'id': self.id, 'name': self.name, 'email': self.email, 'role': self.role}

    def to_dict(self, include_sensitive=False):
        data = {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'role': self.role,
            'isActive': self.is_active,
            'lastLogin': _iso(self.last_login),
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at)
        }
        if include_sensitive:
            data['passwordHash'] = self.password_hash
        return data


# =============================================================================
# CRM - CUSTOMERS & VEHICLES
# =============================================================================

class Customer(Base):
    """Customer records. Owns vehicles; reminders go with the customer."""
    __tablename__ = 'customers'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String(255))
    phone = Column(String(50))
    alternate_mobile = Column(String(50))
    address = Column(JSON, default=dict)  # street, city, state, zipCode
    notes = Column(Text, default='')
    is_draft = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    vehicles = relationship(
        "Vehicle", back_populates="customer",
        cascade="all, delete-orphan", order_by="Vehicle.created_at"
    )
    reminders = relationship("Reminder", back_populates="customer", cascade="all, delete-orphan")

    __table_args__ = (
        Index('ix_customers_email', 'email'),
        Index('ix_customers_phone', 'phone'),
        Index('ix_customers_name', 'name'),
    )

    def to_summary(self):
        return {'id': self.id, 'name': self.name, 'phone': self.phone, 'email': self.email}

    def to_dict(self, include_vehicles=True):
        data = {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'alternateMobile': self.alternate_mobile,
            'address': self.address or {},
            'notes': self.notes or '',
            'isDraft': self.is_draft,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at)
        }
        if include_vehicles:
            data['vehicles'] = [v.to_dict(include_customer=False) for v in self.vehicles]
        return data


class Vehicle(Base):
    """Vehicles, each belonging to exactly one customer."""
    __tablename__ = 'vehicles'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    customer_id = Column(String(36), ForeignKey('customers.id', ondelete='CASCADE'), nullable=False)
    make = Column(String(100))
    model = Column(String(100))
    year = Column(Integer)
    plate_number = Column(String(50))
    vin = Column(String(50))
    color = Column(String(50))
    mileage = Column(Integer, default=0)
    is_draft = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    customer = relationship("Customer", back_populates="vehicles")

    __table_args__ = (
        Index('ix_vehicles_plate_number', 'plate_number'),
        Index('ix_vehicles_customer', 'customer_id'),
        Index('ix_vehicles_vin', 'vin'),
    )

    def to_summary(self):
        return {
            'id': self.id,
            'make': self.make,
            'model': self.model,
            'year': self.year,
            'plateNumber': self.plate_number
        }

    def to_dict(self, include_customer=True):
        data = {
            'id': self.id,
            'customerId': self.customer_id,
            'make': self.make,
            'model': self.model,
            'year': self.year,
            'plateNumber': self.plate_number,
            'vin': self.vin,
            'color': self.color,
            'mileage': self.mileage or 0,
            'isDraft': self.is_draft,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at)
        }
        if include_customer:
            data['customer'] = self.customer.to_dict(include_vehicles=False) if self.customer else None
        return data


# =============================================================================
# SERVICE ORDERS
# =============================================================================

class ServiceOrder(Base):
    """Work performed on a vehicle, with a denormalized contact snapshot."""
    __tablename__ = 'services'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    customer_id = Column(String(36), ForeignKey('customers.id'), nullable=False)
    vehicle_id = Column(String(36), ForeignKey('vehicles.id'), nullable=False)
    technician_id = Column(String(36), ForeignKey('users.id', ondelete='SET NULL'))
    invoice_id = Column(String(36), ForeignKey('invoices.id', ondelete='SET NULL'))
    service_type = Column(String(255), nullable=False, default='other')
    description = Column(Text, default='')
    status = Column(String(20), nullable=False, default='pending')
    scheduled_at = Column(DateTime)
    expected_delivery_date = Column(DateTime)
    completed_at = Column(DateTime)
    labor_hours = Column(Float, default=0)
    parts_used = Column(JSON, default=list)
    total_cost = Column(Float, default=0)
    advanced_paid = Column(Float, default=0)
    vehicle_model = Column(String(255), default='')
    phone = Column(String(50))
    address = Column(JSON, default=dict)  # street, city, zipCode
    notes = Column(Text)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    customer = relationship("Customer")
    vehicle = relationship("Vehicle")
    technician = relationship("User")
    invoice = relationship("Invoice", foreign_keys=[invoice_id])

    __table_args__ = (
        Index('ix_services_customer', 'customer_id'),
        Index('ix_services_vehicle', 'vehicle_id'),
        Index('ix_services_status', 'status'),
        Index('ix_services_scheduled_at', 'scheduled_at'),
        Index('ix_services_technician', 'technician_id'),
    )

    def to_dict(self, detail=False):
        if detail:
            customer = self.customer.to_dict(include_vehicles=False) if self.customer else None
            vehicle = self.vehicle.to_dict(include_customer=False) if self.vehicle else None
            technician = self.technician.to_dict() if self.technician else None
        else:
            customer = self.customer.to_summary() if self.customer else None
            vehicle = self.vehicle.to_summary() if self.vehicle else None
            technician = {'id': self.technician.id, 'name': self.technician.name} if self.technician else None

        return {
            'id': self.id,
            'customer': customer,
            'vehicle': vehicle,
            'technician': technician,
            'invoice': self.invoice_id,
            'serviceType': self.service_type,
            'description': self.description or '',
            'status': self.status,
            'scheduledAt': _iso(self.scheduled_at),
            'expectedDeliveryDate': _iso(self.expected_delivery_date),
            'completedAt': _iso(self.completed_at),
            'laborHours': self.labor_hours or 0,
            'partsUsed': self.parts_used or [],
            'totalCost': self.total_cost or 0,
            'advancedPaid': self.advanced_paid or 0,
            'vehicleModel': self.vehicle_model or '',
            'phone': self.phone,
            'address': self.address or {'street': '', 'city': '', 'zipCode': ''},
            'notes': self.notes,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at)
        }


# =============================================================================
# BILLING - ESTIMATIONS & INVOICES
# =============================================================================

class Estimation(Base):
    """Priced quotes with split CGST/SGST tax."""
    __tablename__ = 'estimations'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    estimation_number = Column(String(32), unique=True, nullable=False)
    customer_id = Column(String(36), ForeignKey('customers.id'), nullable=False)
    vehicle_id = Column(String(36), ForeignKey('vehicles.id'), nullable=False)
    items = Column(JSON, default=list)
    item_descriptions = Column(Text, default='')  # search index over items
    subtotal = Column(Float, default=0)
    cgst_rate = Column(Float, default=0.09)
    sgst_rate = Column(Float, default=0.09)
    cgst_amount = Column(Float, default=0)
    sgst_amount = Column(Float, default=0)
    discount = Column(Float, default=0)
    total = Column(Float, default=0)
    valid_until = Column(DateTime, nullable=False)
    status = Column(String(20), nullable=False, default='draft')
    notes = Column(Text, default='')
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    customer = relationship("Customer")
    vehicle = relationship("Vehicle")

    __table_args__ = (
        Index('ix_estimations_customer', 'customer_id'),
        Index('ix_estimations_vehicle', 'vehicle_id'),
        Index('ix_estimations_status', 'status'),
        Index('ix_estimations_valid_until', 'valid_until'),
    )

    def to_dict(self, detail=False):
        if detail:
            customer = self.customer.to_dict(include_vehicles=False) if self.customer else None
            vehicle = self.vehicle.to_dict(include_customer=False) if self.vehicle else None
        else:
            customer = self.customer.to_summary() if self.customer else None
            vehicle = self.vehicle.to_summary() if self.vehicle else None

        return {
            'id': self.id,
            'estimationNumber': self.estimation_number,
            'customer': customer,
            'vehicle': vehicle,
            'items': self.items or [],
            'subtotal': self.subtotal or 0,
            'cgstRate': self.cgst_rate,
            'sgstRate': self.sgst_rate,
            'cgstAmount': self.cgst_amount or 0,
            'sgstAmount': self.sgst_amount or 0,
            'discount': self.discount or 0,
            'total': self.total or 0,
            'validUntil': _iso(self.valid_until),
            'status': self.status,
            'notes': self.notes or '',
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at)
        }


invoice_services = Table(
    'invoice_services',
    Base.metadata,
    Column('invoice_id', String(36), ForeignKey('invoices.id', ondelete='CASCADE'), primary_key=True),
    Column('service_id', String(36), ForeignKey('services.id', ondelete='CASCADE'), primary_key=True),
)


class Invoice(Base):
    """Invoices with a single tax rate."""
    __tablename__ = 'invoices'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    invoice_number = Column(String(32), unique=True, nullable=False)
    customer_id = Column(String(36), ForeignKey('customers.id'), nullable=False)
    vehicle_id = Column(String(36), ForeignKey('vehicles.id'), nullable=False)
    items = Column(JSON, default=list)
    subtotal = Column(Float, default=0)
    tax_rate = Column(Float, default=0.1)
    tax_amount = Column(Float, default=0)
    discount = Column(Float, default=0)
    total = Column(Float, default=0)
    status = Column(String(20), nullable=False, default='draft')
    due_date = Column(DateTime)
    paid_at = Column(DateTime)
    notes = Column(Text, default='')
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    customer = relationship("Customer")
    vehicle = relationship("Vehicle")
    services = relationship("ServiceOrder", secondary=invoice_services, order_by="ServiceOrder.created_at")

    __table_args__ = (
        Index('ix_invoices_customer', 'customer_id'),
        Index('ix_invoices_vehicle', 'vehicle_id'),
        Index('ix_invoices_status', 'status'),
        Index('ix_invoices_due_date', 'due_date'),
    )

    def to_dict(self, detail=False):
        if detail:
            customer = self.customer.to_dict(include_vehicles=False) if self.customer else None
            vehicle = self.vehicle.to_dict(include_customer=False) if self.vehicle else None
            services = [s.to_dict() for s in self.services]
        else:
            customer = self.customer.to_summary() if self.customer else None
            vehicle = self.vehicle.to_summary() if self.vehicle else None
            services = [s.id for s in self.services]

        return {
            'id': self.id,
            'invoiceNumber': self.invoice_number,
            'customer': customer,
            'vehicle': vehicle,
            'services': services,
            'items': self.items or [],
            'subtotal': self.subtotal or 0,
            'taxRate': self.tax_rate,
            'taxAmount': self.tax_amount or 0,
            'discount': self.discount or 0,
            'total': self.total or 0,
            'status': self.status,
            'dueDate': _iso(self.due_date),
            'paidAt': _iso(self.paid_at),
            'notes': self.notes or '',
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at)
        }


# =============================================================================
# REMINDERS
# =============================================================================

class Reminder(Base):
    """Scheduled follow-ups for a customer (and optionally a vehicle)."""
    __tablename__ = 'reminders'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    customer_id = Column(String(36), ForeignKey('customers.id', ondelete='CASCADE'), nullable=False)
    vehicle_id = Column(String(36), ForeignKey('vehicles.id', ondelete='SET NULL'))
    created_by_id = Column(String(36), ForeignKey('users.id', ondelete='SET NULL'))
    title = Column(String(255), nullable=False)
    description = Column(Text, default='')
    reminder_type = Column(String(20), nullable=False, default='other')
    scheduled_date = Column(DateTime, nullable=False)
    status = Column(String(20), nullable=False, default='pending')
    is_recurring = Column(Boolean, default=False)
    recurring_interval = Column(String(20), default='yearly')
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    customer = relationship("Customer", back_populates="reminders")
    vehicle = relationship("Vehicle")
    created_by = relationship("User")

    __table_args__ = (
        Index('ix_reminders_customer', 'customer_id'),
        Index('ix_reminders_vehicle', 'vehicle_id'),
        Index('ix_reminders_scheduled_date', 'scheduled_date'),
        Index('ix_reminders_status', 'status'),
        Index('ix_reminders_type', 'reminder_type'),
    )

    def to_dict(self, detail=False):
        if detail:
            customer = self.customer.to_dict(include_vehicles=False) if self.customer else None
            vehicle = self.vehicle.to_dict(include_customer=False) if self.vehicle else None
        else:
            customer = self.customer.to_summary() if self.customer else None
            vehicle = self.vehicle.to_summary() if self.vehicle else None

        return {
            'id': self.id,
            'customer': customer,
            'vehicle': vehicle,
            'createdBy': self.created_by.to_summary() if self.created_by else None,
            'title': self.title,
            'description': self.description or '',
            'type': self.reminder_type,
            'scheduledDate': _iso(self.scheduled_date),
            'status': self.status,
            'isRecurring': bool(self.is_recurring),
            'recurringInterval': self.recurring_interval,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at)
        }


# =============================================================================
# DOCUMENT NUMBERING
# =============================================================================

class Counter(Base):
    """Last issued sequence value per document prefix and year."""
    __tablename__ = 'counters'

    name = Column(String(20), primary_key=True)
    year = Column(Integer, primary_key=True, autoincrement=False)
    value = Column(Integer, nullable=False, default=0)
