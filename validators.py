"""
Input Validation & Sanitization Utilities
Provides validation for API request payloads of every CRM entity
"""
import re
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional, Tuple
from dateutil import parser as date_parser

from database.models import (
    USER_ROLES, SERVICE_STATUSES, ESTIMATION_STATUSES, INVOICE_STATUSES,
    REMINDER_STATUSES, REMINDER_TYPES, RECURRING_INTERVALS
)

MIN_VEHICLE_YEAR = 1900
MIN_PASSWORD_LENGTH = 6

# Regex patterns
EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


class ValidationError(Exception):
    """Custom exception for validation errors"""
    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(self.message)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_required_fields(data: Dict[str, Any], required_fields: List[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate that all required fields are present in the data

    Args:
        data: Dictionary of input data
        required_fields: List of required field names

    Returns:
        Tuple of (is_valid, error_message)
    """
    missing_fields = [field for field in required_fields if field not in data or _is_blank(data[field])]

    if missing_fields:
        return False, f"Missing required fields: {', '.join(missing_fields)}"

    return True, None


def validate_email(email: str) -> Tuple[bool, Optional[str]]:
    """
    Validate email format

    Args:
        email: Email address to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not email or not isinstance(email, str):
        return False, "Email must be a non-empty string"

    if not EMAIL_PATTERN.match(email):
        return False, "Please provide a valid email"

    if len(email) > 254:  # RFC 5321
        return False, "Email address too long"

    return True, None


def validate_string_length(value: str, min_length: int = 0, max_length: int = 1000) -> Tuple[bool, Optional[str]]:
    """
    Validate string length is within acceptable range

    Args:
        value: String to validate
        min_length: Minimum allowed length
        max_length: Maximum allowed length

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, "Value must be a string"

    if len(value) < min_length:
        return False, f"Value too short (minimum {min_length} characters)"

    if len(value) > max_length:
        return False, f"Value too long (maximum {max_length} characters)"

    return True, None


def validate_choice(value: Any, choices: Tuple[str, ...], field: str) -> Tuple[bool, Optional[str]]:
    """Validate value is one of the allowed enum choices."""
    if value not in choices:
        return False, f"Invalid {field}. Allowed values: {', '.join(choices)}"
    return True, None


def sanitize_string(value: Any, max_length: int = 1000) -> Any:
    """
    Sanitize string input: strip null bytes and whitespace, cap the length.
    Non-string values are returned unchanged.
    """
    if not isinstance(value, str):
        return value

    sanitized = value.replace('\x00', '').strip()

    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized


def parse_datetime(value: Any, field: str) -> Optional[datetime]:
    """
    Parse an ISO-8601 date or datetime into a naive UTC datetime.

    Args:
        value: ISO string (or datetime); None / '' clears the field
        field: Field name used in the error message

    Returns:
        Naive UTC datetime or None

    Raises:
        ValidationError: If value is not a parseable date
    """
    if _is_blank(value):
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = date_parser.isoparse(str(value).strip())
        except (ValueError, OverflowError):
            raise ValidationError(f"Invalid date for {field}", field)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def validate_vehicle_year(year: Any) -> Tuple[bool, Optional[str]]:
    """Year must be an integer between 1900 and next year."""
    max_year = datetime.now(timezone.utc).year + 1
    try:
        year = int(year)
    except (TypeError, ValueError):
        return False, "Year must be a number"
    if year < MIN_VEHICLE_YEAR or year > max_year:
        return False, f"Year must be between {MIN_VEHICLE_YEAR} and {max_year}"
    return True, None


# ============================================================================
# ENTITY PAYLOADS
# ============================================================================
# Validators receive the merged record state (existing values overlaid with the
# request payload) in API field names, so create and update share the rules.

def validate_customer_data(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate customer data

    Draft customers only need a name; confirmed customers also need a phone.
    """
    if _is_blank(data.get('name')):
        return False, "Name is required"

    is_valid, error = validate_string_length(data['name'], min_length=1, max_length=255)
    if not is_valid:
        return False, f"Invalid name: {error}"

    if not data.get('isDraft') and _is_blank(data.get('phone')):
        return False, "Phone is required"

    if not _is_blank(data.get('email')):
        is_valid, error = validate_email(data['email'])
        if not is_valid:
            return False, error

    address = data.get('address')
    if address is not None and not isinstance(address, dict):
        return False, "Address must be an object"

    return True, None


def validate_vehicle_data(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate vehicle data

    Draft vehicles only need their customer; make, model, year and plate
    number are required once the vehicle is confirmed.
    """
    if _is_blank(data.get('customer')):
        return False, "Customer is required"

    if not data.get('isDraft'):
        for field, label in (('make', 'Make'), ('model', 'Model'),
                             ('year', 'Year'), ('plateNumber', 'Plate number')):
            if _is_blank(data.get(field)):
                return False, f"{label} is required"

    if not _is_blank(data.get('year')):
        is_valid, error = validate_vehicle_year(data['year'])
        if not is_valid:
            return False, error

    mileage = data.get('mileage')
    if not _is_blank(mileage):
        try:
            mileage = int(mileage)
        except (TypeError, ValueError):
            return False, "Mileage must be a number"
        if mileage < 0:
            return False, "Mileage cannot be negative"

    return True, None


def validate_service_data(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate service order data"""
    errors = []
    if _is_blank(data.get('customer')):
        errors.append('Customer is required')
    if _is_blank(data.get('vehicle')):
        errors.append('Vehicle is required')
    if errors:
        return False, '; '.join(errors)

    if data.get('status') is not None:
        is_valid, error = validate_choice(data['status'], SERVICE_STATUSES, 'status')
        if not is_valid:
            return False, error

    address = data.get('address')
    if address is not None and not isinstance(address, dict):
        return False, "Address must be an object"

    parts = data.get('partsUsed')
    if parts is not None and not isinstance(parts, list):
        return False, "partsUsed must be an array"

    return True, None


def _validate_items(items: Any) -> Tuple[bool, Optional[str]]:
    if items is None:
        return True, None
    if not isinstance(items, list):
        return False, "Items must be an array"
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            return False, f"Item {idx} must be an object"
    return True, None


def validate_estimation_data(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate estimation data"""
    is_valid, error = validate_required_fields(data, ['customer', 'vehicle', 'validUntil'])
    if not is_valid:
        return False, error

    if data.get('status') is not None:
        is_valid, error = validate_choice(data['status'], ESTIMATION_STATUSES, 'status')
        if not is_valid:
            return False, error

    return _validate_items(data.get('items'))


def validate_invoice_data(data: Dict[str, Any], require_items: bool = False) -> Tuple[bool, Optional[str]]:
    """Validate invoice data; new invoices need at least one item."""
    is_valid, error = validate_required_fields(data, ['customer', 'vehicle'])
    if not is_valid:
        return False, error

    if require_items and not (isinstance(data.get('items'), list) and data['items']):
        return False, "At least one item is required"

    if data.get('status') is not None:
        is_valid, error = validate_choice(data['status'], INVOICE_STATUSES, 'status')
        if not is_valid:
            return False, error

    services = data.get('services')
    if services is not None and not isinstance(services, list):
        return False, "Services must be an array"

    return _validate_items(data.get('items'))


def validate_reminder_data(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate reminder data"""
    if _is_blank(data.get('customer')):
        return False, "Customer is required"
    if _is_blank(data.get('title')):
        return False, "Title is required"
    if _is_blank(data.get('scheduledDate')):
        return False, "Scheduled date is required"

    for field, choices in (('type', REMINDER_TYPES), ('status', REMINDER_STATUSES),
                           ('recurringInterval', RECURRING_INTERVALS)):
        if data.get(field) is not None:
            is_valid, error = validate_choice(data[field], choices, field)
            if not is_valid:
                return False, error

    return True, None


def validate_password(password: Any, field: str = 'password') -> Tuple[bool, Optional[str]]:
    """Passwords are at least six characters."""
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        return False, f"{field.capitalize()} must be at least {MIN_PASSWORD_LENGTH} characters"
    return True, None


def validate_user_data(data: Dict[str, Any], require_password: bool = True) -> Tuple[bool, Optional[str]]:
    """
    Validate user registration / admin user data

    Args:
        data: Request data dictionary
        require_password: False for updates, where the password is never changed

    Returns:
        Tuple of (is_valid, error_message)
    """
    if _is_blank(data.get('name')):
        return False, "Name is required"

    is_valid, error = validate_email(data.get('email'))
    if not is_valid:
        return False, error

    if require_password:
        is_valid, error = validate_password(data.get('password'))
        if not is_valid:
            return False, error

    if data.get('role') is not None:
        is_valid, error = validate_choice(data['role'], USER_ROLES, 'role')
        if not is_valid:
            return False, error

    return True, None


def raise_for(result: Tuple[bool, Optional[str]]) -> None:
    """Raise ValidationError from a (is_valid, error_message) result."""
    is_valid, error = result
    if not is_valid:
        raise ValidationError(error)
