"""
Tests for service orders and the customer/vehicle sync
"""
from unittest.mock import Mock
import pytest

from services.sync import customer_updates, split_vehicle_model, sync_service_details


@pytest.mark.unit
class TestSyncHelpers:
    """Tests for the snapshot-to-record mapping"""

    def test_split_make_and_model(self):
        assert split_vehicle_model('Toyota Corolla Altis') == {'make': 'Toyota', 'model': 'Corolla Altis'}

    def test_single_word_is_model(self):
        assert split_vehicle_model('Corolla') == {'model': 'Corolla'}

    def test_blank_vehicle_model(self):
        assert split_vehicle_model('   ') == {}
        assert split_vehicle_model(None) == {}

    def test_customer_updates_skip_blanks(self):
        """Test that empty phone, address and notes leave the customer alone"""
        assert customer_updates({'phone': ' ', 'address': {}, 'notes': ''}) == {}

    def test_customer_updates(self):
        changes = customer_updates({'phone': ' 555 ', 'address': {'city': 'Goa'}, 'notes': 'VIP'})
        assert changes == {'phone': '555', 'address': {'city': 'Goa'}, 'notes': 'VIP'}

    def test_failure_is_swallowed(self):
        """Test that a failing savepoint returns None instead of raising"""
        session = Mock()
        session.begin_nested.side_effect = RuntimeError('savepoint unsupported')
        service = Mock(id='svc-1')
        assert sync_service_details(session, service, {'vehicleModel': 'Kia Seltos'}) is None
        session.expire.assert_called_once_with(service, ['customer', 'vehicle'])


@pytest.mark.integration
class TestServiceOrders:
    """Tests for /api/services"""

    def test_create_populates_detail(self, service_order, customer, vehicle):
        assert service_order['status'] == 'pending'
        assert service_order['customer']['id'] == customer['id']
        assert service_order['vehicle']['plateNumber'] == 'MH12AB1234'
        assert service_order['scheduledAt'] == '2030-01-15T10:30:00'
        assert service_order['completedAt'] is None

    def test_requires_customer_and_vehicle(self, client, auth_headers):
        response = client.post('/api/services', headers=auth_headers, json={'serviceType': 'Wash'})
        assert response.status_code == 400
        assert response.get_json()['message'] == 'Customer is required; Vehicle is required'

    def test_invalid_status(self, client, auth_headers, service_order):
        response = client.put(f"/api/services/{service_order['id']}", headers=auth_headers,
                              json={'status': 'done'})
        assert response.status_code == 400
        assert response.get_json()['message'].startswith('Invalid status')

    def test_completion_stamps_completed_at(self, client, auth_headers, service_order):
        """Test that moving to completed sets completedAt"""
        response = client.put(f"/api/services/{service_order['id']}", headers=auth_headers,
                              json={'status': 'completed'})
        assert response.status_code == 200
        assert response.get_json()['data']['completedAt'] is not None

    def test_supplied_completed_at_is_kept(self, client, auth_headers, service_order):
        response = client.put(f"/api/services/{service_order['id']}", headers=auth_headers,
                              json={'status': 'completed', 'completedAt': '2030-01-16T09:00:00Z'})
        assert response.get_json()['data']['completedAt'] == '2030-01-16T09:00:00'

    def test_assign_technician(self, client, auth_headers, service_order, users):
        response = client.put(f"/api/services/{service_order['id']}", headers=auth_headers,
                              json={'technician': users['technician']})
        assert response.status_code == 200
        assert response.get_json()['data']['technician']['id'] == users['technician']

    def test_status_filter(self, client, auth_headers, service_order):
        pending = client.get('/api/services?status=pending', headers=auth_headers).get_json()
        done = client.get('/api/services?status=completed', headers=auth_headers).get_json()
        assert pending['pagination']['total'] == 1
        assert done['data'] == []

    def test_delete(self, client, auth_headers, service_order):
        response = client.delete(f"/api/services/{service_order['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert client.get(f"/api/services/{service_order['id']}", headers=auth_headers).status_code == 404


@pytest.mark.integration
class TestServiceSync:
    """Tests for details copied from a service order to its parents"""

    def test_vehicle_model_updates_vehicle(self, client, auth_headers, service_order, vehicle):
        client.put(f"/api/services/{service_order['id']}", headers=auth_headers,
                   json={'vehicleModel': 'Toyota Corolla Altis'})

        updated = client.get(f"/api/vehicles/{vehicle['id']}", headers=auth_headers).get_json()['data']
        assert updated['make'] == 'Toyota'
        assert updated['model'] == 'Corolla Altis'

    def test_contact_details_update_customer(self, client, auth_headers, customer, vehicle):
        """Test that phone, address and notes typed on a new order reach the customer"""
        response = client.post('/api/services', headers=auth_headers, json={
            'customer': customer['id'],
            'vehicle': vehicle['id'],
            'serviceType': 'Brake check',
            'phone': '+91 90000 11111',
            'address': {'street': '9 Hill Rd', 'city': 'Nashik', 'zipCode': '422001'},
            'notes': 'Prefers morning calls'
        })
        assert response.status_code == 201

        updated = client.get(f"/api/customers/{customer['id']}", headers=auth_headers).get_json()['data']
        assert updated['phone'] == '+91 90000 11111'
        assert updated['address']['city'] == 'Nashik'
        assert updated['notes'] == 'Prefers morning calls'

    def test_blank_snapshot_leaves_parents(self, client, auth_headers, service_order, customer, vehicle):
        client.put(f"/api/services/{service_order['id']}", headers=auth_headers,
                   json={'phone': '', 'vehicleModel': ''})

        assert client.get(f"/api/customers/{customer['id']}",
                          headers=auth_headers).get_json()['data']['phone'] == customer['phone']
        assert client.get(f"/api/vehicles/{vehicle['id']}",
                          headers=auth_headers).get_json()['data']['model'] == 'City'

    def test_single_word_changes_model_only(self, client, auth_headers, service_order, vehicle):
        """Test that a one-word vehicleModel keeps the stored make"""
        response = client.put(f"/api/services/{service_order['id']}", headers=auth_headers,
                              json={'vehicleModel': 'Corolla'})
        assert response.status_code == 200

        updated = client.get(f"/api/vehicles/{vehicle['id']}", headers=auth_headers).get_json()['data']
        assert updated['make'] == 'Honda'
        assert updated['model'] == 'Corolla'

    def test_failed_sync_keeps_service_and_parents(self, client, auth_headers, service_order,
                                                   customer, vehicle, monkeypatch):
        """Test that a sync error rolls back the parents but not the service write"""
        def exploding_apply(service, data):
            service.vehicle.model = 'Half-written'
            service.customer.phone = '000'
            raise RuntimeError('sync exploded')

        monkeypatch.setattr('services.sync._apply', exploding_apply)
        response = client.put(f"/api/services/{service_order['id']}", headers=auth_headers, json={
            'description': 'Oil, filter and coolant',
            'vehicleModel': 'Toyota Corolla',
            'phone': '+91 90000 11111'
        })
        assert response.status_code == 200

        stored = client.get(f"/api/services/{service_order['id']}", headers=auth_headers).get_json()['data']
        assert stored['description'] == 'Oil, filter and coolant'
        assert stored['vehicleModel'] == 'Toyota Corolla'

        kept_vehicle = client.get(f"/api/vehicles/{vehicle['id']}", headers=auth_headers).get_json()['data']
        assert (kept_vehicle['make'], kept_vehicle['model']) == ('Honda', 'City')
        kept_customer = client.get(f"/api/customers/{customer['id']}", headers=auth_headers).get_json()['data']
        assert kept_customer['phone'] == customer['phone']
