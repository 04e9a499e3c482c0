"""
Pytest configuration and shared fixtures
"""
import sys
import pytest
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from services.exceptions import MessagingError  # noqa: E402

PASSWORD = 'secret123'


class FakeWhatsAppClient:
    """Records outbound messages instead of calling the Cloud API"""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send_text(self, number, text):
        if self.fail:
            raise MessagingError('WhatsApp API error 500: simulated')
        self.sent.append({'to': number, 'text': text})
        return {'messages': [{'id': f'wamid.{len(self.sent)}'}]}


@pytest.fixture
def app():
    """Application on a fresh in-memory database"""
    from app_init import create_app
    from database.connection import drop_db, reset_engine

    flask_app = create_app('testing')
    yield flask_app
    drop_db()
    reset_engine()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db_session(app):
    """Session for arranging and inspecting data directly"""
    from database.connection import get_session_factory

    session = get_session_factory()()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def users(app):
    """One active user per role, committed"""
    from database.connection import get_db_session
    from services.users_repository import UsersRepository

    created = {}
    with get_db_session() as session:
        repo = UsersRepository(session)
        for role in ('admin', 'technician', 'receptionist'):
            user = repo.create_user({
                'name': f'{role.title()} User',
                'email': f'{role}@motorcare.test',
                'password': PASSWORD,
                'role': role
            })
            created[role] = user.id
    return created


def _bearer(app, user_id, role):
    from auth import issue_token
    with app.app_context():
        return {'Authorization': f'Bearer {issue_token(user_id, role)}'}


@pytest.fixture
def admin_headers(app, users):
    return _bearer(app, users['admin'], 'admin')


@pytest.fixture
def technician_headers(app, users):
    return _bearer(app, users['technician'], 'technician')


@pytest.fixture
def auth_headers(app, users):
    """Headers for a receptionist, the least privileged role"""
    return _bearer(app, users['receptionist'], 'receptionist')


@pytest.fixture
def whatsapp(app):
    """Connect the app's WhatsApp service to a recording client"""
    fake = FakeWhatsAppClient()
    app.whatsapp_service.client = fake
    app.whatsapp_service.enabled = True
    return fake


@pytest.fixture
def customer(client, auth_headers):
    response = client.post('/api/customers', headers=auth_headers, json={
        'name': 'Ravi Kumar',
        'email': 'ravi@example.com',
        'phone': '+91 98765 43210',
        'address': {'street': '1 Main Rd', 'city': 'Pune', 'state': 'MH', 'zipCode': '411001'}
    })
    assert response.status_code == 201
    return response.get_json()['data']


@pytest.fixture
def vehicle(client, auth_headers, customer):
    response = client.post('/api/vehicles', headers=auth_headers, json={
        'customer': customer['id'],
        'make': 'Honda',
        'model': 'City',
        'year': 2019,
        'plateNumber': 'mh12ab1234'
    })
    assert response.status_code == 201
    return response.get_json()['data']


@pytest.fixture
def service_order(client, auth_headers, customer, vehicle):
    response = client.post('/api/services', headers=auth_headers, json={
        'customer': customer['id'],
        'vehicle': vehicle['id'],
        'serviceType': 'Oil change',
        'description': 'Engine oil and filter',
        'scheduledAt': '2030-01-15T10:30:00Z'
    })
    assert response.status_code == 201
    return response.get_json()['data']


@pytest.fixture
def invoice_payload(customer, vehicle):
    return {
        'customer': customer['id'],
        'vehicle': vehicle['id'],
        'items': [{'description': 'Labour', 'quantity': 1, 'unitPrice': 50}],
        'taxRate': 0.1,
        'discount': 0
    }
