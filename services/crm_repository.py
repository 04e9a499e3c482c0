"""
CRM Repository - Database access layer for the workshop records.
Handles customers, vehicles, service orders and reminders.
"""

import logging
from typing import Any, Callable, Dict, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from database.models import (
    Customer, Vehicle, ServiceOrder, Estimation, Invoice, Reminder, User, utcnow
)
from services.exceptions import ConflictError
from services.pagination import paginate, search_filter
from services.sync import sync_service_details
from services.totals import to_decimal
from validators import (
    ValidationError, parse_datetime, raise_for, sanitize_string,
    validate_customer_data, validate_vehicle_data, validate_service_data,
    validate_reminder_data
)

logger = logging.getLogger(__name__)

MIN_PHONE_MATCH_DIGITS = 7
REMINDER_DEFAULTED = ('type', 'status', 'recurringInterval')


def get_reference(session: Session, model, record_id: Any, label: str):
    """Resolve a referenced id, raising ValidationError when it does not exist."""
    record = session.get(model, str(record_id)) if record_id else None
    if record is None:
        raise ValidationError(f"{label} not found", label.lower())
    return record


def reference_id(value: Any) -> Optional[str]:
    """Accept either a bare id or a populated {'id': ...} object."""
    if isinstance(value, dict):
        value = value.get('id')
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return str(value).strip()


def only_digits(value: Any) -> str:
    return ''.join(ch for ch in str(value or '') if ch.isdigit())


def to_number(value: Any) -> float:
    return float(to_decimal(value, default=0))


def to_int(value: Any) -> Optional[int]:
    if value is None or value == '':
        return None
    return int(to_decimal(value, default=0))


def upper(value: Any) -> Any:
    value = sanitize_string(value)
    return value.upper() if isinstance(value, str) else value


def clean_payload(data: Dict, refs=(), defaulted=()) -> Dict:
    """
    Normalize reference fields to bare ids and drop blank values of fields
    that fall back to a column default.
    """
    data = dict(data)
    for key in refs:
        if key in data:
            data[key] = reference_id(data[key])
    for key in defaulted:
        if key in data and not sanitize_string(data[key]):
            del data[key]
    return data


def merged_state(current: Dict, data: Dict, fields) -> Dict:
    """Existing record values overlaid with the supplied payload fields."""
    state = dict(current)
    state.update({key: data[key] for key in fields if key in data})
    return state


class CRMRepository:
    """Repository for customers, vehicles, service orders and reminders."""

    # Map API field names to database column names
    CUSTOMER_FIELDS = {
        'name': 'name',
        'email': 'email',
        'phone': 'phone',
        'alternateMobile': 'alternate_mobile',
        'address': 'address',
        'notes': 'notes',
        'isDraft': 'is_draft',
    }

    VEHICLE_FIELDS = {
        'make': 'make',
        'model': 'model',
        'year': 'year',
        'plateNumber': 'plate_number',
        'vin': 'vin',
        'color': 'color',
        'mileage': 'mileage',
        'isDraft': 'is_draft',
    }

    SERVICE_FIELDS = {
        'serviceType': 'service_type',
        'description': 'description',
        'status': 'status',
        'scheduledAt': 'scheduled_at',
        'expectedDeliveryDate': 'expected_delivery_date',
        'completedAt': 'completed_at',
        'laborHours': 'labor_hours',
        'partsUsed': 'parts_used',
        'totalCost': 'total_cost',
        'advancedPaid': 'advanced_paid',
        'vehicleModel': 'vehicle_model',
        'phone': 'phone',
        'address': 'address',
        'notes': 'notes',
    }

    REMINDER_FIELDS = {
        'title': 'title',
        'description': 'description',
        'type': 'reminder_type',
        'scheduledDate': 'scheduled_date',
        'status': 'status',
        'isRecurring': 'is_recurring',
        'recurringInterval': 'recurring_interval',
    }

    # Value conversions applied before a payload value is stored
    CONVERTERS: Dict[str, Callable] = {
        'email': lambda v: sanitize_string(v) or None,
        'address': lambda v: dict(v or {}),
        'notes': lambda v: sanitize_string(v) or '',
        'description': lambda v: sanitize_string(v) or '',
        'isDraft': bool,
        'isRecurring': bool,
        'year': to_int,
        'mileage': lambda v: to_int(v) or 0,
        'plateNumber': upper,
        'vin': upper,
        'laborHours': to_number,
        'totalCost': to_number,
        'advancedPaid': to_number,
        'partsUsed': lambda v: list(v or []),
        'vehicleModel': lambda v: sanitize_string(v) or '',
        'scheduledAt': lambda v: parse_datetime(v, 'scheduledAt'),
        'expectedDeliveryDate': lambda v: parse_datetime(v, 'expectedDeliveryDate'),
        'completedAt': lambda v: parse_datetime(v, 'completedAt'),
        'scheduledDate': lambda v: parse_datetime(v, 'scheduledDate'),
    }

    def __init__(self, session: Session, user_id: str = None):
        self.session = session
        self.user_id = user_id  # For tracking who created reminders

    def _apply(self, record, data: Dict, fields: Dict[str, str]):
        """Copy the supplied API fields onto the model's columns."""
        for key, column in fields.items():
            if key not in data:
                continue
            converter = self.CONVERTERS.get(key, sanitize_string)
            setattr(record, column, converter(data[key]))

    # =========================================================================
    # CUSTOMERS
    # =========================================================================

    def list_customers(self, search: str = None, page: int = 1, limit: int = 25) -> Dict:
        """List customers, newest first, searching name, email and phone."""
        query = self.session.query(Customer)
        criteria = search_filter(search, Customer.name, Customer.email, Customer.phone)
        if criteria is not None:
            query = query.filter(criteria)
        query = query.order_by(Customer.created_at.desc())
        return paginate(query, page, limit, lambda c: c.to_dict())

    def get_customer(self, customer_id: str) -> Optional[Dict]:
        """Get a customer by ID, with vehicles."""
        customer = self.session.get(Customer, customer_id)
        return customer.to_dict() if customer else None

    def find_customer_by_phone(self, phone: str) -> Optional[Customer]:
        """
        Match a phone number against phone or alternateMobile.

        Compares digits only, so '+1 (555) 010-0000' finds '15550100000'.
        The shorter number must be a suffix of the longer one (country codes).
        """
        digits = only_digits(phone)
        if len(digits) < MIN_PHONE_MATCH_DIGITS:
            return None
        # Stored numbers keep their formatting, so compare in Python
        candidates = self.session.query(Customer).filter(
            or_(Customer.phone.isnot(None), Customer.alternate_mobile.isnot(None))
        ).order_by(Customer.created_at.desc()).all()
        for customer in candidates:
            for number in (customer.phone, customer.alternate_mobile):
                stored = only_digits(number)
                if len(stored) < MIN_PHONE_MATCH_DIGITS:
                    continue
                if stored.endswith(digits) or digits.endswith(stored):
                    return customer
        return None

    def create_customer(self, data: Dict) -> Dict:
        """Create a new customer (or a draft customer)."""
        raise_for(validate_customer_data(data))

        customer = Customer(address={}, notes='')
        self._apply(customer, data, self.CUSTOMER_FIELDS)
        self.session.add(customer)
        self.session.flush()

        logger.info(f"Created {'draft ' if customer.is_draft else ''}customer: {customer.id}")
        return customer.to_dict()

    def update_customer(self, customer_id: str, data: Dict) -> Optional[Dict]:
        """Update a customer; confirming a draft re-validates the full record."""
        customer = self.session.get(Customer, customer_id)
        if not customer:
            return None

        state = merged_state(customer.to_dict(include_vehicles=False), data, self.CUSTOMER_FIELDS)
        raise_for(validate_customer_data(state))

        was_draft = customer.is_draft
        self._apply(customer, data, self.CUSTOMER_FIELDS)
        self.session.flush()

        if was_draft and not customer.is_draft:
            logger.info(f"Confirmed draft customer: {customer_id}")
        logger.info(f"Updated customer: {customer_id}")
        return customer.to_dict()

    def delete_customer(self, customer_id: str) -> bool:
        """
        Delete a customer together with its vehicles and reminders.

        Raises:
            ConflictError: If service orders, estimations or invoices still
                reference the customer
        """
        customer = self.session.get(Customer, customer_id)
        if not customer:
            return False

        for model, label in ((ServiceOrder, 'services'), (Estimation, 'estimations'),
                             (Invoice, 'invoices')):
            if self.session.query(model).filter(model.customer_id == customer_id).count():
                raise ConflictError(f"Cannot delete customer with existing {label}")

        vehicle_count = len(customer.vehicles)
        self.session.delete(customer)
        self.session.flush()

        logger.info(f"Deleted customer: {customer_id} ({vehicle_count} vehicles)")
        return True

    # =========================================================================
    # VEHICLES
    # =========================================================================

    def _vehicle_state(self, vehicle: Vehicle) -> Dict:
        state = vehicle.to_dict(include_customer=False)
        state['customer'] = vehicle.customer_id
        return state

    def list_vehicles(self, search: str = None, customer_id: str = None,
                      page: int = 1, limit: int = 25) -> Dict:
        """List vehicles, newest first, searching plate, make, model and VIN."""
        query = self.session.query(Vehicle)
        if customer_id:
            query = query.filter(Vehicle.customer_id == customer_id)
        criteria = search_filter(search, Vehicle.plate_number, Vehicle.make,
                                 Vehicle.model, Vehicle.vin)
        if criteria is not None:
            query = query.filter(criteria)
        query = query.order_by(Vehicle.created_at.desc())
        return paginate(query, page, limit, lambda v: v.to_dict())

    def get_vehicle(self, vehicle_id: str) -> Optional[Dict]:
        """Get a vehicle by ID, with its owner."""
        vehicle = self.session.get(Vehicle, vehicle_id)
        return vehicle.to_dict() if vehicle else None

    def create_vehicle(self, data: Dict) -> Dict:
        """Create a vehicle and attach it to its customer."""
        data = dict(data, customer=reference_id(data.get('customer')))
        raise_for(validate_vehicle_data(data))
        customer = get_reference(self.session, Customer, data['customer'], 'Customer')

        vehicle = Vehicle(mileage=0)
        self._apply(vehicle, data, self.VEHICLE_FIELDS)
        customer.vehicles.append(vehicle)
        self.session.flush()

        logger.info(f"Created vehicle: {vehicle.id} for customer {customer.id}")
        return vehicle.to_dict()

    def update_vehicle(self, vehicle_id: str, data: Dict) -> Optional[Dict]:
        """Update a vehicle; moving it to another customer updates both lists."""
        vehicle = self.session.get(Vehicle, vehicle_id)
        if not vehicle:
            return None

        if 'customer' in data:
            data = dict(data, customer=reference_id(data.get('customer')))
        state = merged_state(self._vehicle_state(vehicle), data,
                             list(self.VEHICLE_FIELDS) + ['customer'])
        raise_for(validate_vehicle_data(state))

        if 'customer' in data and data['customer'] != vehicle.customer_id:
            vehicle.customer = get_reference(self.session, Customer, data['customer'], 'Customer')

        self._apply(vehicle, data, self.VEHICLE_FIELDS)
        self.session.flush()
        logger.info(f"Updated vehicle: {vehicle_id}")
        return vehicle.to_dict()

    def delete_vehicle(self, vehicle_id: str) -> bool:
        """
        Delete a vehicle and detach it from its customer and reminders.

        Raises:
            ConflictError: If service orders, estimations or invoices still
                reference the vehicle
        """
        vehicle = self.session.get(Vehicle, vehicle_id)
        if not vehicle:
            return False

        for model, label in ((ServiceOrder, 'services'), (Estimation, 'estimations'),
                             (Invoice, 'invoices')):
            if self.session.query(model).filter(model.vehicle_id == vehicle_id).count():
                raise ConflictError(f"Cannot delete vehicle with existing {label}")

        self.session.query(Reminder).filter(Reminder.vehicle_id == vehicle_id).update(
            {Reminder.vehicle_id: None}, synchronize_session='fetch'
        )
        vehicle.customer.vehicles.remove(vehicle)
        self.session.flush()

        logger.info(f"Deleted vehicle: {vehicle_id}")
        return True

    # =========================================================================
    # SERVICE ORDERS
    # =========================================================================

    def _service_state(self, service: ServiceOrder) -> Dict:
        state = service.to_dict()
        state['customer'] = service.customer_id
        state['vehicle'] = service.vehicle_id
        return state

    def _resolve_service_refs(self, service: ServiceOrder, data: Dict):
        """Point the service at the customer, vehicle, technician and invoice supplied."""
        if 'customer' in data:
            service.customer = get_reference(self.session, Customer, data['customer'], 'Customer')
        if 'vehicle' in data:
            service.vehicle = get_reference(self.session, Vehicle, data['vehicle'], 'Vehicle')
        if 'technician' in data:
            technician_id = reference_id(data['technician'])
            service.technician = (
                get_reference(self.session, User, technician_id, 'Technician')
                if technician_id else None
            )
        if 'invoice' in data:
            invoice_id = reference_id(data['invoice'])
            service.invoice = (
                get_reference(self.session, Invoice, invoice_id, 'Invoice')
                if invoice_id else None
            )

    def _clean_service_payload(self, data: Dict) -> Dict:
        return clean_payload(data, refs=('customer', 'vehicle'), defaulted=('serviceType', 'status'))

    def list_services(self, search: str = None, status: str = None,
                      page: int = 1, limit: int = 25) -> Dict:
        """List service orders, newest first, searching type and description."""
        query = self.session.query(ServiceOrder)
        if status:
            query = query.filter(ServiceOrder.status == status)
        criteria = search_filter(search, ServiceOrder.service_type, ServiceOrder.description)
        if criteria is not None:
            query = query.filter(criteria)
        query = query.order_by(ServiceOrder.created_at.desc())
        return paginate(query, page, limit, lambda s: s.to_dict())

    def get_service(self, service_id: str) -> Optional[Dict]:
        """Get a service order by ID, fully populated."""
        service = self.session.get(ServiceOrder, service_id)
        return service.to_dict(detail=True) if service else None

    def create_service(self, data: Dict) -> Dict:
        """Create a service order and sync its snapshot to the customer and vehicle."""
        data = self._clean_service_payload(data)
        raise_for(validate_service_data(data))

        service = ServiceOrder(
            service_type='other', status='pending', labor_hours=0, parts_used=[],
            total_cost=0, advanced_paid=0, vehicle_model='', address={}
        )
        self._resolve_service_refs(service, data)
        self._apply(service, data, self.SERVICE_FIELDS)
        if service.status == 'completed' and service.completed_at is None:
            service.completed_at = utcnow()

        self.session.add(service)
        self.session.flush()
        logger.info(f"Created service: {service.id}")

        sync_service_details(self.session, service, data)
        return service.to_dict(detail=True)

    def update_service(self, service_id: str, data: Dict) -> Optional[Dict]:
        """
        Update a service order.

        Moving the status to completed stamps completedAt unless the payload
        supplies one. The customer/vehicle sync runs for the supplied fields.
        """
        service = self.session.get(ServiceOrder, service_id)
        if not service:
            return None

        data = self._clean_service_payload(data)
        state = merged_state(self._service_state(service), data,
                             list(self.SERVICE_FIELDS) + ['customer', 'vehicle'])
        raise_for(validate_service_data(state))

        previous_status = service.status
        self._resolve_service_refs(service, data)
        self._apply(service, data, self.SERVICE_FIELDS)
        if data.get('status') == 'completed' and not data.get('completedAt'):
            if previous_status != 'completed' or service.completed_at is None:
                service.completed_at = utcnow()

        self.session.flush()
        logger.info(f"Updated service: {service_id}")

        sync_service_details(self.session, service, data)
        return service.to_dict(detail=True)

    def delete_service(self, service_id: str) -> bool:
        """Delete a service order; invoices referencing it drop the link."""
        service = self.session.get(ServiceOrder, service_id)
        if not service:
            return False
        self.session.delete(service)
        self.session.flush()
        logger.info(f"Deleted service: {service_id}")
        return True

    # =========================================================================
    # REMINDERS
    # =========================================================================

    def _reminder_state(self, reminder: Reminder) -> Dict:
        state = reminder.to_dict()
        state['customer'] = reminder.customer_id
        state['vehicle'] = reminder.vehicle_id
        return state

    def _resolve_reminder_refs(self, reminder: Reminder, data: Dict):
        if 'customer' in data:
            reminder.customer = get_reference(self.session, Customer, data['customer'], 'Customer')
        if 'vehicle' in data:
            reminder.vehicle = (
                get_reference(self.session, Vehicle, data['vehicle'], 'Vehicle')
                if data['vehicle'] else None
            )

    def list_reminders(self, search: str = None, status: str = None, reminder_type: str = None,
                       page: int = 1, limit: int = 25) -> Dict:
        """List reminders, soonest first."""
        query = self.session.query(Reminder)
        if status:
            query = query.filter(Reminder.status == status)
        if reminder_type:
            query = query.filter(Reminder.reminder_type == reminder_type)
        criteria = search_filter(search, Reminder.title, Reminder.description)
        if criteria is not None:
            query = query.filter(criteria)
        query = query.order_by(Reminder.scheduled_date.asc())
        return paginate(query, page, limit, lambda r: r.to_dict())

    def get_reminder(self, reminder_id: str) -> Optional[Dict]:
        """Get a reminder by ID, fully populated."""
        reminder = self.session.get(Reminder, reminder_id)
        return reminder.to_dict(detail=True) if reminder else None

    def create_reminder(self, data: Dict) -> Dict:
        """Create a reminder owned by the calling user."""
        data = clean_payload(data, refs=('customer', 'vehicle'), defaulted=REMINDER_DEFAULTED)
        raise_for(validate_reminder_data(data))

        reminder = Reminder(
            reminder_type='other', status='pending', description='',
            is_recurring=False, recurring_interval='yearly', created_by_id=self.user_id
        )
        self._resolve_reminder_refs(reminder, data)
        self._apply(reminder, data, self.REMINDER_FIELDS)
        self.session.add(reminder)
        self.session.flush()

        logger.info(f"Created reminder: {reminder.id}")
        return reminder.to_dict(detail=True)

    def update_reminder(self, reminder_id: str, data: Dict) -> Optional[Dict]:
        """Update a reminder."""
        reminder = self.session.get(Reminder, reminder_id)
        if not reminder:
            return None

        data = clean_payload(data, refs=('customer', 'vehicle'), defaulted=REMINDER_DEFAULTED)
        state = merged_state(self._reminder_state(reminder), data,
                             list(self.REMINDER_FIELDS) + ['customer', 'vehicle'])
        raise_for(validate_reminder_data(state))

        self._resolve_reminder_refs(reminder, data)
        self._apply(reminder, data, self.REMINDER_FIELDS)
        self.session.flush()
        logger.info(f"Updated reminder: {reminder_id}")
        return reminder.to_dict(detail=True)

    def delete_reminder(self, reminder_id: str) -> bool:
        """Delete a reminder."""
        reminder = self.session.get(Reminder, reminder_id)
        if not reminder:
            return False
        self.session.delete(reminder)
        self.session.flush()
        logger.info(f"Deleted reminder: {reminder_id}")
        return True
