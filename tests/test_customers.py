"""
Tests for customer and vehicle records
"""
import pytest


@pytest.mark.integration
class TestCustomers:
    """Tests for /api/customers"""

    def test_create_and_fetch(self, client, auth_headers, customer):
        """Test that a created customer round-trips with its address"""
        response = client.get(f"/api/customers/{customer['id']}", headers=auth_headers)
        assert response.status_code == 200
        data = response.get_json()['data']
        assert data['name'] == 'Ravi Kumar'
        assert data['address']['city'] == 'Pune'
        assert data['isDraft'] is False
        assert data['vehicles'] == []

    def test_confirmed_customer_needs_phone(self, client, auth_headers):
        response = client.post('/api/customers', headers=auth_headers, json={'name': 'No Phone'})
        assert response.status_code == 400
        assert response.get_json() == {'success': False, 'message': 'Phone is required'}

    def test_draft_then_confirm(self, client, auth_headers):
        """Test that confirming a draft re-checks the full record"""
        created = client.post('/api/customers', headers=auth_headers, json={
            'name': 'Walk In', 'isDraft': True
        })
        assert created.status_code == 201
        draft = created.get_json()['data']
        assert draft['isDraft'] is True

        rejected = client.put(f"/api/customers/{draft['id']}", headers=auth_headers,
                              json={'isDraft': False})
        assert rejected.status_code == 400

        confirmed = client.put(f"/api/customers/{draft['id']}", headers=auth_headers,
                               json={'isDraft': False, 'phone': '9876500000'})
        assert confirmed.status_code == 200
        assert confirmed.get_json()['data']['isDraft'] is False

    def test_search_and_pagination(self, client, auth_headers):
        for index in range(3):
            client.post('/api/customers', headers=auth_headers, json={
                'name': f'Search Target {index}', 'phone': f'55500{index}'
            })
        client.post('/api/customers', headers=auth_headers, json={'name': 'Other', 'phone': '1'})

        response = client.get('/api/customers?search=target&limit=2', headers=auth_headers)
        assert response.status_code == 200
        body = response.get_json()
        assert body['pagination'] == {'page': 1, 'limit': 2, 'total': 3, 'pages': 2}
        assert len(body['data']) == 2
        assert all('Target' in c['name'] for c in body['data'])

    def test_search_by_phone(self, client, auth_headers, customer):
        response = client.get('/api/customers?search=98765', headers=auth_headers)
        assert [c['id'] for c in response.get_json()['data']] == [customer['id']]

    def test_search_wildcards_match_literally(self, client, auth_headers, customer):
        """Test that _ and % in a search term are not LIKE wildcards"""
        for term in ('_', '%'):
            response = client.get('/api/customers', headers=auth_headers, query_string={'search': term})
            assert response.get_json()['data'] == []

        fleet = client.post('/api/customers', headers=auth_headers, json={
            'name': 'Fleet_42 Logistics', 'phone': '9822000042'
        }).get_json()['data']
        response = client.get('/api/customers', headers=auth_headers, query_string={'search': 't_4'})
        assert [c['id'] for c in response.get_json()['data']] == [fleet['id']]

    def test_missing_customer_is_404(self, client, auth_headers):
        response = client.get('/api/customers/does-not-exist', headers=auth_headers)
        assert response.status_code == 404
        assert response.get_json()['message'] == 'Customer not found'

    def test_delete_removes_vehicles(self, client, auth_headers, customer, vehicle):
        """Test that deleting a customer deletes the vehicles it owns"""
        response = client.delete(f"/api/customers/{customer['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.get_json()['message'] == 'Customer deleted successfully'
        assert client.get(f"/api/vehicles/{vehicle['id']}", headers=auth_headers).status_code == 404

    def test_delete_with_service_orders_conflicts(self, client, auth_headers, customer, service_order):
        response = client.delete(f"/api/customers/{customer['id']}", headers=auth_headers)
        assert response.status_code == 409
        assert client.get(f"/api/customers/{customer['id']}", headers=auth_headers).status_code == 200

    def test_invalid_json_body(self, client, auth_headers):
        response = client.post('/api/customers', headers=auth_headers, data='{not json',
                               content_type='application/json')
        assert response.status_code == 400


@pytest.mark.integration
class TestVehicles:
    """Tests for /api/vehicles"""

    def test_plate_upper_cased_and_linked(self, client, auth_headers, customer, vehicle):
        assert vehicle['plateNumber'] == 'MH12AB1234'
        assert vehicle['customer']['id'] == customer['id']

        owner = client.get(f"/api/customers/{customer['id']}", headers=auth_headers).get_json()['data']
        assert [v['id'] for v in owner['vehicles']] == [vehicle['id']]

    def test_unknown_customer(self, client, auth_headers):
        response = client.post('/api/vehicles', headers=auth_headers, json={
            'customer': 'nobody', 'make': 'Tata', 'model': 'Nexon', 'year': 2022, 'plateNumber': 'X1'
        })
        assert response.status_code == 400
        assert response.get_json()['message'] == 'Customer not found'

    def test_year_out_of_range(self, client, auth_headers, customer):
        response = client.post('/api/vehicles', headers=auth_headers, json={
            'customer': customer['id'], 'make': 'Ford', 'model': 'T', 'year': 1850, 'plateNumber': 'OLD1'
        })
        assert response.status_code == 400
        assert response.get_json()['message'].startswith('Year must be between 1900')

    def test_draft_vehicle(self, client, auth_headers, customer):
        response = client.post('/api/vehicles', headers=auth_headers, json={
            'customer': customer['id'], 'isDraft': True
        })
        assert response.status_code == 201
        assert response.get_json()['data']['isDraft'] is True

    def test_filter_by_customer(self, client, auth_headers, customer, vehicle):
        other = client.post('/api/customers', headers=auth_headers,
                            json={'name': 'Other', 'phone': '123'}).get_json()['data']
        client.post('/api/vehicles', headers=auth_headers, json={
            'customer': other['id'], 'make': 'Maruti', 'model': 'Swift', 'year': 2018, 'plateNumber': 'KA01'
        })

        response = client.get(f"/api/vehicles?customer={customer['id']}", headers=auth_headers)
        assert [v['id'] for v in response.get_json()['data']] == [vehicle['id']]

    def test_move_to_other_customer(self, client, auth_headers, customer, vehicle):
        other = client.post('/api/customers', headers=auth_headers,
                            json={'name': 'New Owner', 'phone': '321'}).get_json()['data']
        response = client.put(f"/api/vehicles/{vehicle['id']}", headers=auth_headers,
                              json={'customer': other['id']})
        assert response.status_code == 200

        old_owner = client.get(f"/api/customers/{customer['id']}", headers=auth_headers).get_json()['data']
        new_owner = client.get(f"/api/customers/{other['id']}", headers=auth_headers).get_json()['data']
        assert old_owner['vehicles'] == []
        assert [v['id'] for v in new_owner['vehicles']] == [vehicle['id']]

    def test_delete_vehicle(self, client, auth_headers, customer, vehicle):
        response = client.delete(f"/api/vehicles/{vehicle['id']}", headers=auth_headers)
        assert response.status_code == 200
        owner = client.get(f"/api/customers/{customer['id']}", headers=auth_headers).get_json()['data']
        assert owner['vehicles'] == []

    def test_delete_vehicle_with_invoice_conflicts(self, client, auth_headers, vehicle, invoice_payload):
        client.post('/api/invoices', headers=auth_headers, json=invoice_payload)
        response = client.delete(f"/api/vehicles/{vehicle['id']}", headers=auth_headers)
        assert response.status_code == 409
