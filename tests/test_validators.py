"""
Tests for input validation utilities
"""
from datetime import datetime
import pytest
from validators import (
    ValidationError,
    parse_datetime,
    raise_for,
    sanitize_string,
    validate_customer_data,
    validate_email,
    validate_estimation_data,
    validate_invoice_data,
    validate_password,
    validate_reminder_data,
    validate_required_fields,
    validate_service_data,
    validate_user_data,
    validate_vehicle_data,
    validate_vehicle_year
)


@pytest.mark.unit
class TestRequiredFields:
    """Tests for required fields validation"""

    def test_validate_all_fields_present(self):
        """Test validation passes when all fields present"""
        data = {'name': 'John', 'email': 'john@example.com'}
        is_valid, error = validate_required_fields(data, ['name', 'email'])
        assert is_valid is True
        assert error is None

    def test_validate_missing_field(self):
        """Test validation fails when field missing"""
        is_valid, error = validate_required_fields({'name': 'John'}, ['name', 'email'])
        assert is_valid is False
        assert 'email' in error

    def test_validate_blank_field(self):
        """Test validation fails when field is whitespace"""
        is_valid, _ = validate_required_fields({'name': '   '}, ['name'])
        assert is_valid is False


@pytest.mark.unit
class TestEmailValidation:
    """Tests for email validation"""

    def test_valid_email(self):
        assert validate_email('user@example.com') == (True, None)

    def test_invalid_email(self):
        """Test the message clients display"""
        is_valid, error = validate_email('not-an-email')
        assert is_valid is False
        assert error == 'Please provide a valid email'

    def test_empty_email(self):
        is_valid, _ = validate_email('')
        assert is_valid is False


@pytest.mark.unit
class TestSanitizeString:
    """Tests for string sanitization"""

    def test_strips_whitespace_and_null_bytes(self):
        assert sanitize_string('  he\x00llo ') == 'hello'

    def test_caps_length(self):
        assert len(sanitize_string('x' * 2000)) == 1000

    def test_non_strings_unchanged(self):
        assert sanitize_string(42) == 42
        assert sanitize_string(None) is None


@pytest.mark.unit
class TestParseDatetime:
    """Tests for ISO date parsing"""

    def test_date_only(self):
        assert parse_datetime('2024-06-01', 'dueDate') == datetime(2024, 6, 1)

    def test_offset_converted_to_naive_utc(self):
        """Test that an offset timestamp is normalized to UTC"""
        assert parse_datetime('2024-06-01T10:00:00+05:30', 'scheduledAt') == datetime(2024, 6, 1, 4, 30)

    def test_blank_clears(self):
        assert parse_datetime('', 'dueDate') is None
        assert parse_datetime(None, 'dueDate') is None

    def test_invalid_date_raises(self):
        with pytest.raises(ValidationError) as exc:
            parse_datetime('next tuesday', 'dueDate')
        assert exc.value.field == 'dueDate'
        assert 'dueDate' in exc.value.message


@pytest.mark.unit
class TestCustomerValidation:
    """Tests for customer payloads, drafts included"""

    def test_confirmed_customer_needs_phone(self):
        is_valid, error = validate_customer_data({'name': 'Asha'})
        assert is_valid is False
        assert error == 'Phone is required'

    def test_draft_customer_needs_only_name(self):
        assert validate_customer_data({'name': 'Asha', 'isDraft': True}) == (True, None)

    def test_name_always_required(self):
        is_valid, error = validate_customer_data({'isDraft': True})
        assert is_valid is False
        assert error == 'Name is required'

    def test_bad_email_rejected(self):
        is_valid, _ = validate_customer_data({'name': 'Asha', 'phone': '123', 'email': 'nope'})
        assert is_valid is False

    def test_address_must_be_object(self):
        is_valid, _ = validate_customer_data({'name': 'Asha', 'phone': '1', 'address': 'Pune'})
        assert is_valid is False


@pytest.mark.unit
class TestVehicleValidation:
    """Tests for vehicle payloads, drafts included"""

    def test_confirmed_vehicle_needs_plate(self):
        data = {'customer': 'c1', 'make': 'Honda', 'model': 'City', 'year': 2020}
        is_valid, error = validate_vehicle_data(data)
        assert is_valid is False
        assert error == 'Plate number is required'

    def test_draft_vehicle_needs_only_customer(self):
        assert validate_vehicle_data({'customer': 'c1', 'isDraft': True}) == (True, None)

    def test_year_range(self):
        assert validate_vehicle_year(1899)[0] is False
        assert validate_vehicle_year(datetime.now().year + 2)[0] is False
        assert validate_vehicle_year('2015') == (True, None)

    def test_negative_mileage(self):
        data = {'customer': 'c1', 'isDraft': True, 'mileage': -5}
        assert validate_vehicle_data(data)[0] is False


@pytest.mark.unit
class TestDocumentValidation:
    """Tests for services, estimations, invoices and reminders"""

    def test_service_needs_customer_and_vehicle(self):
        is_valid, error = validate_service_data({})
        assert is_valid is False
        assert 'Customer is required' in error
        assert 'Vehicle is required' in error

    def test_service_status_enum(self):
        is_valid, _ = validate_service_data({'customer': 'c', 'vehicle': 'v', 'status': 'done'})
        assert is_valid is False

    def test_estimation_needs_valid_until(self):
        is_valid, error = validate_estimation_data({'customer': 'c', 'vehicle': 'v'})
        assert is_valid is False
        assert 'validUntil' in error

    def test_new_invoice_needs_items(self):
        is_valid, error = validate_invoice_data({'customer': 'c', 'vehicle': 'v', 'items': []},
                                                require_items=True)
        assert is_valid is False
        assert error == 'At least one item is required'

    def test_invoice_update_without_items_is_fine(self):
        assert validate_invoice_data({'customer': 'c', 'vehicle': 'v'}) == (True, None)

    def test_items_must_be_objects(self):
        is_valid, _ = validate_invoice_data({'customer': 'c', 'vehicle': 'v', 'items': ['x']})
        assert is_valid is False

    def test_reminder_type_enum(self):
        data = {'customer': 'c', 'title': 'Insurance', 'scheduledDate': '2030-01-01', 'type': 'party'}
        assert validate_reminder_data(data)[0] is False


@pytest.mark.unit
class TestUserValidation:
    """Tests for user and password payloads"""

    def test_short_password(self):
        is_valid, error = validate_password('12345')
        assert is_valid is False
        assert '6' in error

    def test_invalid_role(self):
        data = {'name': 'A', 'email': 'a@example.com', 'password': 'secret1', 'role': 'owner'}
        assert validate_user_data(data)[0] is False

    def test_update_does_not_need_password(self):
        data = {'name': 'A', 'email': 'a@example.com'}
        assert validate_user_data(data, require_password=False) == (True, None)

    def test_raise_for(self):
        with pytest.raises(ValidationError):
            raise_for((False, 'boom'))
        raise_for((True, None))
