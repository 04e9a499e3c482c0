"""
Service -> Customer/Vehicle synchronization.

A service order carries a snapshot of contact and vehicle details typed in at
the counter. When such a snapshot is saved, the parent records are brought in
line with it: vehicleModel feeds Vehicle.make/model, phone/address/notes feed
the Customer.

The updates run inside a SAVEPOINT of the service write: they apply together
or not at all, and a failure never undoes the service order itself.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from database.models import ServiceOrder

logger = logging.getLogger(__name__)


def split_vehicle_model(vehicle_model: Optional[str]) -> Dict[str, str]:
    """
    'Toyota Corolla Altis' -> {'make': 'Toyota', 'model': 'Corolla Altis'}
    'Corolla'              -> {'model': 'Corolla'}
    """
    parts = str(vehicle_model or '').split()
    if len(parts) >= 2:
        return {'make': parts[0], 'model': ' '.join(parts[1:])}
    if len(parts) == 1:
        return {'model': parts[0]}
    return {}


def customer_updates(data: Dict[str, Any]) -> Dict[str, Any]:
    """Customer column updates implied by a service payload."""
    changes = {}

    phone = data.get('phone')
    if isinstance(phone, str) and phone.strip():
        changes['phone'] = phone.strip()

    address = data.get('address')
    if isinstance(address, dict) and address:
        changes['address'] = dict(address)

    notes = data.get('notes')
    if isinstance(notes, str) and notes.strip():
        changes['notes'] = notes.strip()

    return changes


def _apply(service: ServiceOrder, data: Dict[str, Any]) -> Dict[str, Dict]:
    applied = {}

    vehicle_changes = split_vehicle_model(data.get('vehicleModel'))
    if vehicle_changes and service.vehicle is not None:
        for column, value in vehicle_changes.items():
            setattr(service.vehicle, column, value)
        applied['vehicle'] = vehicle_changes

    contact_changes = customer_updates(data)
    if contact_changes and service.customer is not None:
        for column, value in contact_changes.items():
            setattr(service.customer, column, value)
        applied['customer'] = contact_changes

    return applied


def sync_service_details(session: Session, service: ServiceOrder,
                         data: Dict[str, Any]) -> Optional[Dict[str, Dict]]:
    """
    Propagate the service snapshot in data to the linked customer and vehicle.

    Args:
        session: Session holding the (already flushed) service order
        service: The service order that was created or updated
        data: The request payload, camelCase keys

    Returns:
        The changes applied, or None when the sync failed and was rolled back
    """
    try:
        with session.begin_nested():
            applied = _apply(service, data)
    except Exception as e:
        logger.warning(f"Service {service.id}: customer/vehicle sync failed and was skipped: {e}")
        session.expire(service, ['customer', 'vehicle'])
        return None

    if applied:
        logger.info(f"Service {service.id}: synced {', '.join(sorted(applied))} details")
    return applied
